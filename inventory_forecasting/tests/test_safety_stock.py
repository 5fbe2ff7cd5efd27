"""
Unit tests for the safety stock and reorder point calculations.
"""
import unittest

from inventory_forecasting.core.safety_stock import (
    calculate_buffer,
    calculate_reorder_point,
    calculate_safety_stock,
    calculate_statistical_safety_stock
)
from inventory_forecasting.exceptions import InvalidConfigurationError


class TestSafetyStock(unittest.TestCase):
    """Test cases for buffer calculations."""

    def test_days_based_safety_stock(self):
        self.assertEqual(calculate_safety_stock(10.0, 7), 70)
        self.assertEqual(calculate_safety_stock(0.0, 7), 0)

    def test_safety_stock_rounds_up(self):
        self.assertEqual(calculate_safety_stock(1.1, 7), 8)
        # 0.1 * 7 carries float noise; whole units must not gain one
        self.assertEqual(calculate_safety_stock(0.1, 70), 7)

    def test_reorder_point(self):
        """10/day, 14-day lead time, 7-day buffer: ROP 210."""
        safety_stock = calculate_safety_stock(10.0, 7)
        self.assertEqual(calculate_reorder_point(10.0, 14, safety_stock), 210)

    def test_buffer_days_method(self):
        safety_stock, reorder_point, explanation = calculate_buffer(10.0, 14, 7)

        self.assertEqual(safety_stock, 70)
        self.assertEqual(reorder_point, 210)
        self.assertIn('reorder point 210', explanation)

    def test_non_positive_lead_time_is_rejected(self):
        for lead_time in (0, -5):
            with self.assertRaises(InvalidConfigurationError):
                calculate_reorder_point(10.0, lead_time, 70)
            with self.assertRaises(InvalidConfigurationError):
                calculate_buffer(10.0, lead_time, 7)

    def test_negative_safety_days_are_rejected(self):
        with self.assertRaises(InvalidConfigurationError):
            calculate_safety_stock(10.0, -1)

    def test_statistical_safety_stock(self):
        """Z(95%) * sqrt(16 * 2^2) with no lead time variability."""
        result = calculate_statistical_safety_stock(10.0, 2.0, 16, 95.0, lead_time_std_dev=0.0)

        self.assertAlmostEqual(result, 1.6449 * 8, places=2)

    def test_statistical_safety_stock_default_lead_time_variability(self):
        without = calculate_statistical_safety_stock(10.0, 0.0, 10, 95.0, lead_time_std_dev=0.0)
        default = calculate_statistical_safety_stock(10.0, 0.0, 10, 95.0)

        self.assertEqual(without, 0.0)
        # sd_LT = 2 days -> Z * 10 * 2
        self.assertAlmostEqual(default, 1.6449 * 20, places=2)

    def test_service_level_never_below_days_buffer(self):
        safety_stock, _, _ = calculate_buffer(
            10.0, 14, 7, method='service_level', demand_std_dev=0.0, lead_time_std_dev=0.0
        )
        self.assertEqual(safety_stock, 70)

    def test_service_level_raises_buffer_for_volatile_demand(self):
        safety_stock, reorder_point, explanation = calculate_buffer(
            10.0, 30, 1, method='service_level', demand_std_dev=8.0
        )

        self.assertGreater(safety_stock, 10)
        self.assertEqual(reorder_point, 300 + safety_stock)
        self.assertIn('service level', explanation)


if __name__ == '__main__':
    unittest.main()
