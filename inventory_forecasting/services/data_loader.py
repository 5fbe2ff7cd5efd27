# inventory_forecasting/services/data_loader.py
import json
import logging
from dataclasses import fields, replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_forecasting.core.records import (
    ALL_CATEGORIES, ForecastConfig, InventorySnapshot, PlannedSpike, RecurringSeasonalEvent,
    SalesObservation, SkuPolicy
)
from inventory_forecasting.exceptions import DatabaseError, InvalidConfigurationError
from inventory_forecasting.models import (
    DailySales, ForecastSetting, InventoryLevel, PlannedSpikeRecord, Product, SeasonalEventRecord
)
from inventory_forecasting.utils.date_utils import trailing_window_start

logger = logging.getLogger(__name__)

OPEN_SPIKE_STATUSES = ('scheduled', 'active')


def parse_categories(value: Optional[str]):
    """Comma separated category tags; blank or 'all' applies to every SKU."""
    if not value or value.strip().lower() == ALL_CATEGORIES:
        return ALL_CATEGORIES
    return frozenset(tag.strip() for tag in value.split(',') if tag.strip())


def parse_sku_multipliers(value: Optional[str], event_name: str = '') -> Dict[str, float]:
    """Decode the JSON sku -> multiplier map; invalid JSON means no overrides."""
    if not value:
        return {}
    try:
        raw = json.loads(value)
        return {str(sku): float(multiplier) for sku, multiplier in raw.items()}
    except (ValueError, TypeError, AttributeError):
        logger.warning(f"Ignoring invalid SKU multipliers on seasonal event '{event_name}'")
        return {}


class ForecastDataLoader:
    """Reads forecasting inputs from the database into in-memory batches."""

    def __init__(self, session: Session):
        """Initialize the data loader.

        Args:
            session: Database session
        """
        self.session = session

    def load_skus(self, active_only: bool = True) -> List[str]:
        """SKUs to forecast."""
        try:
            query = self.session.query(Product.sku)
            if active_only:
                query = query.filter(Product.is_active.is_(True))
            return sorted(row.sku for row in query.all())
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading products: {str(e)}")

    def load_sales_observations(
        self,
        skus: Iterable[str],
        as_of: date,
        history_days: int = 90
    ) -> Dict[str, List[SalesObservation]]:
        """Daily sales rows for the trailing ``history_days`` days, keyed by SKU.

        Args:
            skus: SKUs to load
            as_of: Last day to include
            history_days: Days of history to load

        Returns:
            Dictionary mapping SKU to its observations in date order
        """
        skus = list(skus)
        start = trailing_window_start(as_of, history_days)
        observations: Dict[str, List[SalesObservation]] = {sku: [] for sku in skus}

        try:
            rows = self.session.query(DailySales).filter(
                DailySales.sku.in_(skus),
                DailySales.date >= start,
                DailySales.date <= as_of
            ).order_by(DailySales.sku, DailySales.date, DailySales.id).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading sales history: {str(e)}")

        for row in rows:
            observations[row.sku].append(
                SalesObservation(sku=row.sku, date=row.date, units_sold=row.units_sold or 0)
            )

        logger.debug(f"Loaded {len(rows)} sales rows for {len(skus)} SKUs since {start}")
        return observations

    def load_inventory_snapshots(self, skus: Iterable[str]) -> Dict[str, InventorySnapshot]:
        """Current inventory per SKU. SKUs without a row are left out."""
        skus = list(skus)
        try:
            levels = self.session.query(InventoryLevel).filter(InventoryLevel.sku.in_(skus)).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading inventory levels: {str(e)}")

        return {
            level.sku: InventorySnapshot(
                sku=level.sku,
                warehouse_available=level.warehouse_available,
                fba_available=level.fba_available,
                fba_inbound=level.fba_inbound,
                incoming_from_po=level.incoming_from_po,
            )
            for level in levels
        }

    def load_first_sale_dates(self, skus: Iterable[str], as_of: date) -> Dict[str, date]:
        """Earliest sales row on or before ``as_of`` per SKU, however old."""
        skus = list(skus)
        try:
            rows = self.session.query(
                DailySales.sku, func.min(DailySales.date).label('first_date')
            ).filter(
                DailySales.sku.in_(skus),
                DailySales.date <= as_of
            ).group_by(DailySales.sku).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading first sale dates: {str(e)}")

        return {row.sku: row.first_date for row in rows}

    def load_sku_policies(self, skus: Iterable[str], as_of: Optional[date] = None) -> Dict[str, SkuPolicy]:
        """Supplier lead times, MOQ and buffer overrides per SKU.

        With ``as_of`` set, each policy also carries the SKU's first sale
        date so history older than the loaded window still counts.
        """
        skus = list(skus)
        try:
            products = self.session.query(Product).filter(Product.sku.in_(skus)).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading products: {str(e)}")

        first_sales = self.load_first_sale_dates(skus, as_of) if as_of is not None else {}

        policies = {
            product.sku: SkuPolicy(
                sku=product.sku,
                category=product.category,
                lead_time_days=product.lead_time_days,
                observed_lead_time_days=product.avg_actual_lead_time_days,
                lead_time_std_dev=product.lead_time_std_dev,
                safety_stock_days=product.safety_stock_days,
                moq=product.moq,
                first_sale_date=first_sales.get(product.sku),
            )
            for product in products
        }
        for sku, first_date in first_sales.items():
            if sku not in policies:
                policies[sku] = SkuPolicy(sku=sku, first_sale_date=first_date)
        return policies

    def load_seasonal_events(self, active_only: bool = True) -> List[RecurringSeasonalEvent]:
        """The seasonal calendar as recurring month/day events."""
        try:
            query = self.session.query(SeasonalEventRecord)
            if active_only:
                query = query.filter(SeasonalEventRecord.is_active.is_(True))
            records = query.order_by(SeasonalEventRecord.name).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading seasonal events: {str(e)}")

        return [
            RecurringSeasonalEvent(
                name=record.name,
                start_month=record.start_month,
                start_day=record.start_day,
                end_month=record.end_month,
                end_day=record.end_day,
                base_multiplier=record.base_multiplier,
                event_type=record.event_type or 'custom',
                applies_to_categories=parse_categories(record.categories),
                exclusive=bool(record.exclusive),
                sku_multipliers=parse_sku_multipliers(record.sku_multipliers, record.name),
                learned_multiplier=record.learned_multiplier,
            )
            for record in records
        ]

    def load_planned_spikes(self, skus: Iterable[str], as_of: date) -> List[PlannedSpike]:
        """Scheduled or running lifts for the SKUs that have not ended by ``as_of``."""
        skus = list(skus)
        try:
            records = self.session.query(PlannedSpikeRecord).filter(
                PlannedSpikeRecord.sku.in_(skus),
                PlannedSpikeRecord.status.in_(OPEN_SPIKE_STATUSES),
                PlannedSpikeRecord.end_date >= as_of
            ).order_by(PlannedSpikeRecord.sku, PlannedSpikeRecord.start_date).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading planned spikes: {str(e)}")

        return [
            PlannedSpike(
                sku=record.sku,
                start_date=record.start_date,
                end_date=record.end_date,
                lift_multiplier=record.lift_multiplier,
                spike_type=record.spike_type or 'promotion',
            )
            for record in records
        ]

    def load_forecast_config(self, base: Optional[ForecastConfig] = None) -> ForecastConfig:
        """Apply key/value rows from forecast_settings on top of ``base``.

        Args:
            base: Starting configuration (defaults to ForecastConfig())

        Returns:
            Validated ForecastConfig

        Raises:
            InvalidConfigurationError: if a stored value cannot be used
        """
        base = base or ForecastConfig()
        field_types = {f.name: type(getattr(base, f.name)) for f in fields(ForecastConfig)}

        try:
            settings = self.session.query(ForecastSetting).order_by(ForecastSetting.key).all()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Error loading forecast settings: {str(e)}")

        overrides = {}
        for setting in settings:
            if setting.key not in field_types:
                logger.warning(f"Ignoring unknown forecast setting '{setting.key}'")
                continue
            overrides[setting.key] = self._coerce(setting.key, setting.value, field_types[setting.key])

        return replace(base, **overrides).validate()

    @staticmethod
    def _coerce(key: str, value: Optional[str], current_type: type):
        if value is None or value.strip() == '':
            return None
        try:
            if key in ('fba_capacity', 'round_to_nearest', 'min_history_days',
                       'seasonality_lookahead_days', 'max_workers'):
                return int(value)
            if current_type in (int, float):
                return float(value)
            return value.strip()
        except ValueError:
            raise InvalidConfigurationError(
                f"Forecast setting '{key}' has invalid value {value!r}",
                details={key: value}
            )
