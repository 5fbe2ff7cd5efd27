# inventory_forecasting/services/forecast_service.py
import json
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_forecasting.core.engine import compute_forecast
from inventory_forecasting.core.records import ForecastBatch, ForecastConfig, Urgency
from inventory_forecasting.core.stockout import generate_stockout_alerts
from inventory_forecasting.exceptions import DatabaseError
from inventory_forecasting.models import ForecastRecommendation
from inventory_forecasting.services.data_loader import ForecastDataLoader

logger = logging.getLogger(__name__)


class ForecastService:
    """Runs the forecasting engine against the database and stores its decisions."""

    def __init__(self, session: Session):
        """Initialize the forecast service.

        Args:
            session: Database session
        """
        self.session = session
        self.loader = ForecastDataLoader(session)

    def run_forecast(
        self,
        as_of: Optional[date] = None,
        config: Optional[ForecastConfig] = None,
        skus: Optional[Iterable[str]] = None,
        history_days: int = 90,
        store_results: bool = True,
        cancel_event=None
    ) -> Dict:
        """Load inputs, forecast every SKU and optionally persist the results.

        Args:
            as_of: Forecast date (defaults to today)
            config: Base configuration; stored forecast settings are applied on top
            skus: SKUs to forecast (defaults to all active products)
            history_days: Days of sales history to load
            store_results: Whether to save the batch
            cancel_event: Optional cancellation flag checked between SKUs

        Returns:
            Dictionary with run summary, the batch and stockout alerts
        """
        as_of = as_of or date.today()
        forecast_config = self.loader.load_forecast_config(config)

        skus = sorted(skus) if skus is not None else self.loader.load_skus()
        logger.info(f"Running forecast for {len(skus)} SKUs as of {as_of}")

        batch = compute_forecast(
            skus,
            as_of,
            forecast_config,
            observations=self.loader.load_sales_observations(skus, as_of, history_days),
            snapshots=self.loader.load_inventory_snapshots(skus),
            events=self.loader.load_seasonal_events(),
            policies=self.loader.load_sku_policies(skus, as_of),
            spikes=self.loader.load_planned_spikes(skus, as_of),
            cancel_event=cancel_event
        )

        if store_results:
            self.save_batch(batch)

        results = batch.results
        alerts = generate_stockout_alerts(results.values(), forecast_config)

        return {
            'success': True,
            'as_of': as_of,
            'forecasted_skus': len(results),
            'skipped_skus': len(batch.skipped),
            'skipped': batch.skipped,
            'purchase_recommendations': sum(1 for r in results.values() if r.recommended_order_qty > 0),
            'critical_skus': sum(1 for r in results.values() if r.urgency == Urgency.CRITICAL),
            'fba_units_today': batch.replenishment.ship_today_total,
            'alerts': alerts,
            'batch': batch
        }

    def save_batch(self, batch: ForecastBatch) -> int:
        """Replace the stored recommendation of every SKU in the batch.

        Returns:
            Number of rows written
        """
        skus = list(batch.outcomes)
        try:
            self.session.query(ForecastRecommendation).filter(
                ForecastRecommendation.sku.in_(skus)
            ).delete(synchronize_session=False)

            for sku, outcome in sorted(batch.outcomes.items()):
                if outcome.is_ok:
                    self.session.add(self._to_record(batch.as_of, outcome.result))
                else:
                    self.session.add(ForecastRecommendation(
                        sku=sku,
                        as_of=batch.as_of,
                        status='skipped',
                        skip_reason=outcome.reason
                    ))

            self.session.flush()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error saving forecast results: {str(e)}")

        logger.info(f"Stored {len(skus)} forecast outcomes for {batch.as_of}")
        return len(skus)

    @staticmethod
    def _to_record(as_of: date, result) -> ForecastRecommendation:
        return ForecastRecommendation(
            sku=result.sku,
            as_of=as_of,
            status='ok',
            adjusted_velocity=result.adjusted_velocity,
            reorder_point=result.reorder_point,
            safety_stock=result.safety_stock,
            recommended_order_qty=result.recommended_order_qty,
            recommended_fba_qty=result.recommended_fba_qty,
            urgency=result.urgency.value,
            stockout_date=result.stockout_date,
            days_until_stockout=result.days_until_stockout,
            purchase_by_date=result.purchase_by_date,
            days_to_purchase=result.days_to_purchase,
            confidence=result.confidence,
            reasoning=json.dumps(list(result.reasoning))
        )

    def get_latest_recommendations(self, urgency: Optional[str] = None) -> List[ForecastRecommendation]:
        """Stored recommendations, most urgent first.

        Args:
            urgency: Optional urgency tier to filter by

        Returns:
            List of ForecastRecommendation rows with status 'ok'
        """
        query = self.session.query(ForecastRecommendation).filter(
            ForecastRecommendation.status == 'ok'
        )
        if urgency:
            query = query.filter(ForecastRecommendation.urgency == urgency)

        rank = {tier.value: tier.rank for tier in Urgency}
        rows = query.all()
        return sorted(rows, key=lambda row: (rank.get(row.urgency, len(rank)), row.sku))

    def get_skipped(self) -> Dict[str, str]:
        """Stored skipped SKUs with their reasons."""
        rows = self.session.query(ForecastRecommendation).filter(
            ForecastRecommendation.status == 'skipped'
        ).order_by(ForecastRecommendation.sku).all()
        return {row.sku: row.skip_reason for row in rows}
