from .forecast_job import run_forecast_job, ensure_seasonal_calendar

__all__ = [
    'run_forecast_job',
    'ensure_seasonal_calendar'
]
