"""
Tests for the Forecast service.
"""
import json
import unittest
from datetime import date, timedelta

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from inventory_forecasting.core.records import ForecastConfig
from inventory_forecasting.models import (
    Base, DailySales, ForecastRecommendation, ForecastSetting, InventoryLevel, Product
)
from inventory_forecasting.services.forecast_service import ForecastService

AS_OF = date(2024, 8, 1)


class TestForecastService(unittest.TestCase):
    """Test cases for running and storing forecasts."""

    def setUp(self):
        self.engine = create_engine('sqlite://')
        Base.metadata.create_all(self.engine)
        self.session = sessionmaker(bind=self.engine)()
        self.service = ForecastService(self.session)
        self.config = ForecastConfig(seasonality_lookahead_days=0)

        self.session.add_all([
            Product(sku='ABC123', lead_time_days=14, safety_stock_days=7),
            Product(sku='SLOW', lead_time_days=30),
            Product(sku='BROKEN', lead_time_days=30),
            InventoryLevel(sku='ABC123', warehouse_available=50, fba_available=100),
            InventoryLevel(sku='SLOW', warehouse_available=500, fba_available=500),
            InventoryLevel(sku='BROKEN', warehouse_available=-10, fba_available=0),
        ])
        for i in range(90):
            day = AS_OF - timedelta(days=i)
            self.session.add(DailySales(sku='ABC123', date=day, units_sold=10))
            self.session.add(DailySales(sku='SLOW', date=day, units_sold=1))
        self.session.flush()

    def tearDown(self):
        self.session.close()
        self.engine.dispose()

    def test_run_forecast(self):
        summary = self.service.run_forecast(as_of=AS_OF, config=self.config)

        self.assertTrue(summary['success'])
        self.assertEqual(summary['forecasted_skus'], 2)
        self.assertEqual(summary['skipped_skus'], 1)
        self.assertIn('BROKEN', summary['skipped'])
        self.assertEqual(summary['purchase_recommendations'], 1)
        self.assertEqual(summary['fba_units_today'], 50)

        result = summary['batch'].results['ABC123']
        self.assertEqual(result.recommended_order_qty, 60)
        self.assertEqual(result.reorder_point, 210)

    def test_results_are_stored(self):
        self.service.run_forecast(as_of=AS_OF, config=self.config)

        rows = self.service.get_latest_recommendations()
        self.assertEqual([row.sku for row in rows], ['ABC123', 'SLOW'])
        self.assertEqual(rows[0].urgency, 'medium')
        self.assertEqual(rows[0].purchase_by_date, AS_OF + timedelta(days=8))
        self.assertTrue(json.loads(rows[0].reasoning))

        self.assertEqual(list(self.service.get_skipped()), ['BROKEN'])

    def test_rerun_replaces_stored_results(self):
        self.service.run_forecast(as_of=AS_OF, config=self.config)
        self.service.run_forecast(as_of=AS_OF + timedelta(days=1), config=self.config)

        self.assertEqual(self.session.query(ForecastRecommendation).count(), 3)
        self.assertEqual(
            {row.as_of for row in self.session.query(ForecastRecommendation)},
            {AS_OF + timedelta(days=1)}
        )

    def test_store_results_disabled(self):
        self.service.run_forecast(as_of=AS_OF, config=self.config, store_results=False)

        self.assertEqual(self.session.query(ForecastRecommendation).count(), 0)

    def test_history_before_loaded_window_counts(self):
        """9 units 200 days ago and 1 unit 5 days ago: windows span full calendar days."""
        self.session.add_all([
            Product(sku='RARE', lead_time_days=30),
            InventoryLevel(sku='RARE', warehouse_available=10, fba_available=0),
            DailySales(sku='RARE', date=AS_OF - timedelta(days=200), units_sold=9),
            DailySales(sku='RARE', date=AS_OF - timedelta(days=5), units_sold=1),
        ])
        self.session.flush()

        summary = self.service.run_forecast(
            as_of=AS_OF, config=self.config, skus=['RARE'], store_results=False
        )
        velocity = summary['batch'].results['RARE'].velocity

        self.assertEqual(velocity.history_days, 201)
        self.assertAlmostEqual(velocity.velocity_7d, 1 / 7)
        self.assertAlmostEqual(velocity.velocity_30d, 1 / 30)
        self.assertAlmostEqual(velocity.velocity_90d, 1 / 90)
        self.assertEqual(velocity.low_confidence_windows, ())

    def test_sku_filter(self):
        summary = self.service.run_forecast(as_of=AS_OF, config=self.config, skus=['SLOW'])

        self.assertEqual(list(summary['batch'].outcomes), ['SLOW'])

    def test_stored_settings_override_base_config(self):
        self.session.add(ForecastSetting(key='fba_capacity', value='20'))
        self.session.flush()

        summary = self.service.run_forecast(as_of=AS_OF, config=self.config)

        self.assertEqual(summary['fba_units_today'], 20)
        self.assertTrue(summary['batch'].replenishment.capacity_limited)

    def test_urgency_filter(self):
        self.service.run_forecast(as_of=AS_OF, config=self.config)

        rows = self.service.get_latest_recommendations(urgency='medium')
        self.assertEqual([row.sku for row in rows], ['ABC123'])

    def test_alerts(self):
        summary = self.service.run_forecast(as_of=AS_OF, config=self.config)

        # 150 on-hand units at 10/day last 15 days, past the default 14-day threshold
        self.assertEqual([a['sku'] for a in summary['alerts']], [])
        summary = self.service.run_forecast(
            as_of=AS_OF, config=ForecastConfig(seasonality_lookahead_days=0, urgency_threshold_days=21)
        )
        self.assertEqual([a['sku'] for a in summary['alerts']], ['ABC123'])
        self.assertEqual(summary['alerts'][0]['severity'], 'warning')


if __name__ == '__main__':
    unittest.main()
