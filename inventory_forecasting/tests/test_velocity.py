"""
Unit tests for the velocity calculator.
"""
import unittest
from datetime import date, timedelta

from inventory_forecasting.core.records import ForecastConfig, SalesObservation, Trend
from inventory_forecasting.core.sales_history import aggregate_sales_history
from inventory_forecasting.core.velocity import (
    calculate_velocity_profile,
    classify_trend,
    calculate_change_pct,
    detect_spike
)

AS_OF = date(2024, 6, 30)


def profile_for(rows, config=None):
    history = aggregate_sales_history('SKU1', rows, AS_OF)
    return calculate_velocity_profile(history, config or ForecastConfig())


class TestVelocityCalculator(unittest.TestCase):
    """Test cases for velocity and trend."""

    def test_constant_sales_give_equal_velocities(self):
        """Constant daily sales over 90+ days give identical windows."""
        for units in (1, 3, 7, 10, 250):
            rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), units) for i in range(100)]
            profile = profile_for(rows)

            self.assertEqual(profile.velocity_7d, units)
            self.assertEqual(profile.velocity_30d, units)
            self.assertEqual(profile.velocity_90d, units)
            self.assertEqual(profile.trend, Trend.STABLE)
            self.assertEqual(profile.low_confidence_windows, ())

    def test_zero_history_velocity_is_zero(self):
        profile = profile_for([])

        self.assertEqual(profile.velocity_7d, 0.0)
        self.assertEqual(profile.velocity_30d, 0.0)
        self.assertEqual(profile.velocity_90d, 0.0)
        self.assertEqual(profile.trend, Trend.STABLE)
        self.assertEqual(profile.low_confidence_windows, (7, 30, 90))

    def test_partial_history_uses_available_days(self):
        """20 days of history: the 30/90-day windows average over 20 days."""
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 4) for i in range(20)]
        profile = profile_for(rows)

        self.assertEqual(profile.velocity_30d, 4.0)
        self.assertEqual(profile.velocity_90d, 4.0)
        self.assertEqual(profile.history_days, 20)
        self.assertEqual(profile.low_confidence_windows, (30, 90))

    def test_rising_trend(self):
        """Recent week selling double the month average."""
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 10 if i < 7 else 2) for i in range(90)]
        profile = profile_for(rows)

        self.assertEqual(profile.trend, Trend.RISING)
        self.assertGreater(profile.change_7d_pct, 0)

    def test_declining_trend(self):
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 0 if i < 7 else 5) for i in range(90)]
        profile = profile_for(rows)

        self.assertEqual(profile.trend, Trend.DECLINING)
        self.assertEqual(profile.change_7d_pct, -100.0)

    def test_classify_trend_thresholds(self):
        self.assertEqual(classify_trend(12.0, 10.0), Trend.RISING)
        self.assertEqual(classify_trend(8.0, 10.0), Trend.DECLINING)
        self.assertEqual(classify_trend(10.5, 10.0), Trend.STABLE)

    def test_classify_trend_boundaries_are_stable(self):
        """Exactly on a threshold is neither rising nor declining."""
        self.assertEqual(classify_trend(12.5, 10.0, rising_ratio=1.25), Trend.STABLE)
        self.assertEqual(classify_trend(5.0, 10.0, declining_ratio=0.5), Trend.STABLE)

    def test_thresholds_come_from_config(self):
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 11 if i < 7 else 10) for i in range(90)]

        self.assertEqual(profile_for(rows).trend, Trend.STABLE)
        strict = ForecastConfig(trend_rising_ratio=1.02)
        self.assertEqual(profile_for(rows, strict).trend, Trend.RISING)

    def test_spike_is_flagged(self):
        """A week at 10/day against 2/day before it."""
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 10 if i < 7 else 2) for i in range(90)]
        profile = profile_for(rows)

        self.assertTrue(profile.is_spiking)
        self.assertAlmostEqual(profile.spike_multiplier, round(10 / (116 / 30), 4))
        self.assertTrue(profile.to_dict()['isSpiking'])

    def test_steady_sales_do_not_spike(self):
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=i), 5) for i in range(90)]

        self.assertFalse(profile_for(rows).is_spiking)

    def test_detect_spike(self):
        self.assertEqual(detect_spike(15.0, 10.0, 90), 1.5)
        self.assertIsNone(detect_spike(14.9, 10.0, 90))
        self.assertIsNone(detect_spike(5.0, 0.0, 90))
        self.assertEqual(detect_spike(20.0, 10.0, 90, threshold_pct=100), 2.0)
        self.assertIsNone(detect_spike(15.0, 10.0, 90, threshold_pct=100))

    def test_short_history_never_spikes(self):
        self.assertIsNone(detect_spike(30.0, 10.0, 13))
        self.assertEqual(detect_spike(30.0, 10.0, 14), 3.0)

    def test_change_pct(self):
        self.assertEqual(calculate_change_pct(15.0, 10.0), 50.0)
        self.assertEqual(calculate_change_pct(5.0, 0.0), 0.0)


if __name__ == '__main__':
    unittest.main()
