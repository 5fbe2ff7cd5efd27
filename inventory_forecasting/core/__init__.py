from .records import (
    ForecastConfig, SalesObservation, SalesHistory, VelocityProfile, SeasonalEvent,
    RecurringSeasonalEvent, InventorySnapshot, SkuPolicy, ForecastResult, ForecastOk,
    Skipped, ForecastBatch, ReplenishmentCandidate, ReplenishmentLine, ReplenishmentPlan,
    Trend, Urgency, ALL_CATEGORIES
)
from .sales_history import aggregate_sales_history, build_daily_series
from .velocity import calculate_velocity_profile, classify_trend, calculate_change_pct
from .seasonality import (
    adjust_velocity, calculate_uplift, select_applicable_events,
    resolve_recurring_events, default_seasonal_calendar, DEFAULT_SEASONAL_CALENDAR
)
from .safety_stock import (
    calculate_safety_stock, calculate_statistical_safety_stock, calculate_reorder_point
)
from .purchase import (
    calculate_total_available, calculate_days_to_purchase, classify_urgency, recommend_purchase
)
from .replenishment import build_replenishment_candidate, plan_replenishment
from .stockout import predict_stockout, calculate_confidence, generate_stockout_alerts
from .engine import compute_forecast, forecast_sku

__all__ = [
    'ForecastConfig',
    'SalesObservation',
    'SalesHistory',
    'VelocityProfile',
    'SeasonalEvent',
    'RecurringSeasonalEvent',
    'InventorySnapshot',
    'SkuPolicy',
    'ForecastResult',
    'ForecastOk',
    'Skipped',
    'ForecastBatch',
    'ReplenishmentCandidate',
    'ReplenishmentLine',
    'ReplenishmentPlan',
    'Trend',
    'Urgency',
    'ALL_CATEGORIES',
    'aggregate_sales_history',
    'build_daily_series',
    'calculate_velocity_profile',
    'classify_trend',
    'calculate_change_pct',
    'adjust_velocity',
    'calculate_uplift',
    'select_applicable_events',
    'resolve_recurring_events',
    'default_seasonal_calendar',
    'DEFAULT_SEASONAL_CALENDAR',
    'calculate_safety_stock',
    'calculate_statistical_safety_stock',
    'calculate_reorder_point',
    'calculate_total_available',
    'calculate_days_to_purchase',
    'classify_urgency',
    'recommend_purchase',
    'build_replenishment_candidate',
    'plan_replenishment',
    'predict_stockout',
    'calculate_confidence',
    'generate_stockout_alerts',
    'compute_forecast',
    'forecast_sku'
]
