"""
Unit tests for the utility helpers.
"""
import unittest
from datetime import date, datetime

from inventory_forecasting.core.records import ForecastConfig, InventorySnapshot, PlannedSpike, SkuPolicy
from inventory_forecasting.utils.date_utils import (
    add_days,
    convert_to_date,
    trailing_window_start,
    years_touched
)
from inventory_forecasting.utils.math_utils import (
    calculate_std_dev,
    ceil_units,
    relative_difference,
    round_to_multiple,
    safe_floor_divide
)
from inventory_forecasting.utils.validation import (
    validate_forecast_config,
    validate_planned_spike,
    validate_sku_policy,
    validate_snapshot
)


class TestDateUtils(unittest.TestCase):

    def test_convert_to_date(self):
        self.assertEqual(convert_to_date('2024-02-29'), date(2024, 2, 29))
        self.assertEqual(convert_to_date(datetime(2024, 2, 29, 13, 5)), date(2024, 2, 29))
        self.assertEqual(convert_to_date(date(2024, 1, 1)), date(2024, 1, 1))
        with self.assertRaises(ValueError):
            convert_to_date(20240101)

    def test_add_days(self):
        self.assertEqual(add_days(date(2024, 12, 30), 3), date(2025, 1, 2))
        self.assertIsNone(add_days(date(2024, 12, 30), None))

    def test_add_days_outside_calendar(self):
        self.assertEqual(add_days(date(9999, 12, 30), 1), date.max)
        self.assertIsNone(add_days(date(9999, 12, 30), 5))
        self.assertIsNone(add_days(date(2024, 6, 1), 10 ** 12))
        self.assertIsNone(add_days(date(1, 1, 2), -5))

    def test_trailing_window_start(self):
        self.assertEqual(trailing_window_start(date(2024, 3, 7), 7), date(2024, 3, 1))

    def test_years_touched(self):
        self.assertEqual(years_touched(date(2024, 12, 1), date(2025, 1, 31)), [2023, 2024, 2025])


class TestMathUtils(unittest.TestCase):

    def test_round_to_multiple(self):
        self.assertEqual(round_to_multiple(61, 10), 70)
        self.assertEqual(round_to_multiple(60, 10), 60)
        self.assertEqual(round_to_multiple(61, None), 61)

    def test_safe_floor_divide(self):
        self.assertEqual(safe_floor_divide(80, 10.0), 8)
        self.assertEqual(safe_floor_divide(-40, 10.0), -4)
        self.assertIsNone(safe_floor_divide(80, 0))

    def test_ceil_units(self):
        self.assertEqual(ceil_units(70.00000000001), 70)
        self.assertEqual(ceil_units(70.2), 71)

    def test_std_dev(self):
        self.assertEqual(calculate_std_dev([]), 0.0)
        self.assertEqual(calculate_std_dev([5, 5, 5]), 0.0)
        self.assertAlmostEqual(calculate_std_dev([2, 4, 4, 4, 5, 5, 7, 9]), 2.0)

    def test_relative_difference(self):
        self.assertEqual(relative_difference(0, 0), 0.0)
        self.assertEqual(relative_difference(5, 10), 0.5)


class TestValidation(unittest.TestCase):

    def test_default_config_is_valid(self):
        self.assertEqual(validate_forecast_config(ForecastConfig()), {})

    def test_invalid_config_values(self):
        errors = validate_forecast_config(ForecastConfig(
            lead_time_days_default=0,
            safety_stock_days_default=-1,
            round_to_nearest=0,
            trend_rising_ratio=0.8,
            service_level=100.0,
            allocation_policy='random',
            spike_threshold_pct=0,
            max_workers=0
        ))

        self.assertEqual(set(errors), {
            'lead_time_days_default', 'safety_stock_days_default', 'round_to_nearest',
            'trend_ratios', 'service_level', 'allocation_policy', 'spike_threshold_pct', 'max_workers'
        })

    def test_missing_values_are_errors(self):
        errors = validate_forecast_config(ForecastConfig(fba_target_days=None, min_history_days=None))

        self.assertIn('fba_target_days', errors)
        self.assertIn('min_history_days', errors)

    def test_sku_policy(self):
        self.assertEqual(validate_sku_policy(SkuPolicy('A1', lead_time_days=10)), {})
        errors = validate_sku_policy(SkuPolicy('A1', observed_lead_time_days=0, moq=-1))
        self.assertEqual(set(errors), {'observed_lead_time_days', 'moq'})

    def test_planned_spike(self):
        start = date(2024, 7, 1)
        self.assertEqual(validate_planned_spike(PlannedSpike('A1', start, start, 1.5)), {})
        errors = validate_planned_spike(PlannedSpike('', start, date(2024, 6, 30), 0))
        self.assertEqual(set(errors), {'sku', 'lift_multiplier', 'end_date'})

    def test_snapshot(self):
        self.assertEqual(validate_snapshot(InventorySnapshot('A1', 1, 2, 3, 4)), {})
        errors = validate_snapshot(InventorySnapshot('A1', warehouse_available=None, fba_inbound=-2))
        self.assertEqual(errors['warehouse_available'], 'Quantity is missing')
        self.assertEqual(errors['fba_inbound'], 'Negative quantity (-2)')


if __name__ == '__main__':
    unittest.main()
