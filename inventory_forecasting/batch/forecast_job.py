# inventory_forecasting/batch/forecast_job.py
from datetime import date, datetime
from typing import Dict, Iterable, Optional

from inventory_forecasting.config import config
from inventory_forecasting.db import session_scope
from inventory_forecasting.exceptions import ForecastingError, InvalidConfigurationError
from inventory_forecasting.logging_setup import logger as log_manager, get_logger
from inventory_forecasting.models import SeasonalEventRecord
from inventory_forecasting.services.forecast_service import ForecastService
from inventory_forecasting.services.seasonal_calendar import initialize_seasonal_events

logger = get_logger('forecast_job')


def ensure_seasonal_calendar() -> Dict:
    """Seed the default seasonal calendar the first time the job runs."""
    with session_scope() as session:
        if session.query(SeasonalEventRecord).first() is not None:
            return {'success': True, 'created': 0, 'updated': 0}
        return initialize_seasonal_events(session)


def run_forecast_job(
    as_of: Optional[date] = None,
    skus: Optional[Iterable[str]] = None,
    store_results: Optional[bool] = None
) -> Dict:
    """Run the scheduled forecasting job.

    Configuration errors abort the job before any SKU is processed; SKUs
    with bad data are reported as skipped.

    Args:
        as_of: Forecast date (defaults to today)
        skus: Optional SKU filter
        store_results: Override for BATCH_PROCESS.store_results

    Returns:
        Dictionary with job results
    """
    as_of = as_of or date.today()
    batch_config = config.batch_config
    if store_results is None:
        store_results = batch_config['store_results']

    start_time = datetime.now()
    log_info = log_manager.batch_start_log('forecast_job', {'as_of': as_of.isoformat()})

    results = {
        'success': False,
        'as_of': as_of,
        'start_time': start_time,
        'processes': {}
    }

    try:
        forecast_config = config.forecast_config

        results['processes']['seasonal_calendar'] = ensure_seasonal_calendar()

        with session_scope() as session:
            service = ForecastService(session)
            forecast = service.run_forecast(
                as_of=as_of,
                config=forecast_config,
                skus=skus,
                history_days=batch_config['history_days'],
                store_results=store_results
            )

        results['processes']['forecast'] = forecast
        results['success'] = True

        log_manager.log_outcomes('forecast_job', forecast['skipped'], forecast['alerts'])

    except InvalidConfigurationError as e:
        logger.error(f"Forecast job aborted, invalid configuration: {e}")
        results['error'] = str(e)
        results['error_details'] = e.to_dict()

    except ForecastingError as e:
        log_manager.log_exception('forecast_job', e, "Forecast job failed")
        results['error'] = str(e)
        results['error_details'] = e.to_dict()

    except Exception as e:
        log_manager.log_exception('forecast_job', e, "Forecast job failed with an unexpected error")
        results['error'] = str(e)

    end_time = datetime.now()
    results['end_time'] = end_time
    results['duration'] = end_time - start_time

    forecast = results['processes'].get('forecast', {})
    log_manager.batch_end_log(
        log_info,
        success=results['success'],
        result_info={
            'forecasted_skus': forecast.get('forecasted_skus', 0),
            'skipped_skus': forecast.get('skipped_skus', 0),
            'fba_units_today': forecast.get('fba_units_today', 0)
        }
    )

    return results
