"""
Unit tests for the sales history aggregator.
"""
import unittest
from datetime import date, timedelta

from inventory_forecasting.core.records import SalesObservation
from inventory_forecasting.core.sales_history import (
    aggregate_sales_history,
    build_daily_series,
    count_history_days
)

AS_OF = date(2024, 6, 30)


def daily_rows(sku, units, days, as_of=AS_OF):
    return [SalesObservation(sku, as_of - timedelta(days=i), units) for i in range(days)]


class TestSalesHistoryAggregator(unittest.TestCase):
    """Test cases for rolling window aggregation."""

    def test_full_history_windows(self):
        """120 days of 5 units/day fills every window."""
        history = aggregate_sales_history('SKU1', daily_rows('SKU1', 5, 120), AS_OF)

        self.assertEqual(history.history_days, 120)
        self.assertEqual(history.window_totals, {7: 35, 30: 150, 90: 450})
        self.assertEqual(history.window_days, {7: 7, 30: 30, 90: 90})
        self.assertEqual(len(history.daily_units), 90)

    def test_missing_days_count_as_zero(self):
        """Days without rows are zero sales, not missing data."""
        rows = [
            SalesObservation('SKU1', AS_OF - timedelta(days=9), 4),
            SalesObservation('SKU1', AS_OF - timedelta(days=3), 6),
            SalesObservation('SKU1', AS_OF, 8),
        ]
        history = aggregate_sales_history('SKU1', rows, AS_OF)

        self.assertEqual(history.history_days, 10)
        self.assertEqual(history.window_totals[7], 14)
        self.assertEqual(history.window_days[7], 7)
        # 30-day window only spans the 10 days of history
        self.assertEqual(history.window_totals[30], 18)
        self.assertEqual(history.window_days[30], 10)
        self.assertEqual(history.daily_units, (4, 0, 0, 0, 0, 0, 6, 0, 0, 8))

    def test_correction_rows_are_summed(self):
        """A late correction is an extra row for the same day."""
        rows = daily_rows('SKU1', 2, 30) + [SalesObservation('SKU1', AS_OF, -1)]
        history = aggregate_sales_history('SKU1', rows, AS_OF)

        self.assertEqual(history.window_totals[7], 13)
        self.assertEqual(history.daily_units[-1], 1)

    def test_rows_after_as_of_are_ignored(self):
        rows = daily_rows('SKU1', 1, 10) + [SalesObservation('SKU1', AS_OF + timedelta(days=1), 50)]
        history = aggregate_sales_history('SKU1', rows, AS_OF)

        self.assertEqual(history.window_totals[7], 7)
        self.assertEqual(history.history_days, 10)

    def test_other_skus_are_ignored(self):
        rows = daily_rows('SKU1', 1, 10) + daily_rows('SKU2', 100, 10)
        history = aggregate_sales_history('SKU1', rows, AS_OF)

        self.assertEqual(history.window_totals[30], 10)

    def test_no_history(self):
        """A SKU that never sold has empty windows, not an error."""
        history = aggregate_sales_history('NEW', [], AS_OF)

        self.assertFalse(history.has_history)
        self.assertEqual(history.history_days, 0)
        self.assertEqual(history.window_totals, {7: 0, 30: 0, 90: 0})
        self.assertEqual(history.window_days, {7: 0, 30: 0, 90: 0})
        self.assertEqual(history.daily_units, ())

    def test_build_daily_series_order(self):
        """Oldest day first, as_of last."""
        rows = [
            SalesObservation('SKU1', AS_OF - timedelta(days=2), 3),
            SalesObservation('SKU1', AS_OF, 7),
        ]
        series = build_daily_series(rows, AS_OF, 3)

        self.assertEqual(series.tolist(), [3, 0, 7])

    def test_count_history_days(self):
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=44), 0)]
        self.assertEqual(count_history_days(rows, AS_OF), 45)
        self.assertEqual(count_history_days([], AS_OF), 0)

    def test_first_sale_date_extends_history(self):
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=4), 1)]

        self.assertEqual(count_history_days(rows, AS_OF, AS_OF - timedelta(days=200)), 201)
        self.assertEqual(count_history_days([], AS_OF, AS_OF - timedelta(days=9)), 10)
        # A later first sale date never shortens the count
        self.assertEqual(count_history_days(rows, AS_OF, AS_OF - timedelta(days=1)), 5)
        self.assertEqual(count_history_days(rows, AS_OF, AS_OF + timedelta(days=3)), 5)

    def test_intermittent_seller_with_truncated_rows(self):
        """Only the recent sale was loaded; the SKU first sold 200 days ago."""
        rows = [SalesObservation('SKU1', AS_OF - timedelta(days=5), 1)]
        history = aggregate_sales_history('SKU1', rows, AS_OF, AS_OF - timedelta(days=200))

        self.assertEqual(history.history_days, 201)
        self.assertEqual(history.window_days, {7: 7, 30: 30, 90: 90})
        self.assertEqual(history.window_totals, {7: 1, 30: 1, 90: 1})
        self.assertEqual(len(history.daily_units), 90)


if __name__ == '__main__':
    unittest.main()
