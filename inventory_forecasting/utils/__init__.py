from .date_utils import convert_to_date, add_days, days_between, trailing_window_start
from .math_utils import round_to_multiple, safe_floor_divide, ceil_units, calculate_std_dev
from .validation import validate_forecast_config, validate_planned_spike, validate_sku_policy, validate_snapshot

__all__ = [
    'convert_to_date',
    'add_days',
    'days_between',
    'trailing_window_start',
    'round_to_multiple',
    'safe_floor_divide',
    'ceil_units',
    'calculate_std_dev',
    'validate_forecast_config',
    'validate_planned_spike',
    'validate_sku_policy',
    'validate_snapshot'
]
