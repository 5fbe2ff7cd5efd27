from .data_loader import ForecastDataLoader
from .forecast_service import ForecastService
from .seasonal_calendar import initialize_seasonal_events, update_learned_multiplier

__all__ = [
    'ForecastDataLoader',
    'ForecastService',
    'initialize_seasonal_events',
    'update_learned_multiplier'
]
