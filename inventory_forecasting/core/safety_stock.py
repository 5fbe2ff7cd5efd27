# inventory_forecasting/core/safety_stock.py
import math
from typing import Optional, Tuple

from scipy import stats

from inventory_forecasting.exceptions import InvalidConfigurationError, CalculationError
from inventory_forecasting.utils.math_utils import ceil_units


def _check_policy(lead_time_days: Optional[float], safety_stock_days: Optional[float]) -> None:
    errors = {}
    if lead_time_days is not None and lead_time_days <= 0:
        errors['lead_time_days'] = f'Lead time must be greater than zero (got {lead_time_days})'
    if safety_stock_days is not None and safety_stock_days < 0:
        errors['safety_stock_days'] = f'Safety stock days cannot be negative (got {safety_stock_days})'
    if errors:
        raise InvalidConfigurationError('; '.join(errors.values()), details=errors)


def calculate_safety_stock(adjusted_velocity: float, safety_stock_days: float) -> int:
    """Calculate the safety stock buffer in units.

    Args:
        adjusted_velocity: Seasonality-adjusted units per day
        safety_stock_days: Days of demand to hold as buffer

    Returns:
        Safety stock in units (rounded up)
    """
    _check_policy(None, safety_stock_days)
    return ceil_units(adjusted_velocity * safety_stock_days)


def calculate_statistical_safety_stock(
    adjusted_velocity: float,
    demand_std_dev: float,
    lead_time_days: float,
    service_level: float = 95.0,
    lead_time_std_dev: Optional[float] = None
) -> float:
    """Calculate safety stock from demand and lead time variability.

    SS = Z * sqrt(LT * sd_d^2 + d^2 * sd_LT^2)
    where Z is the service level Z-score, LT the lead time in days, sd_d the
    daily demand standard deviation, d the daily demand and sd_LT the lead
    time standard deviation (defaults to 20% of lead time).

    Args:
        adjusted_velocity: Daily demand
        demand_std_dev: Standard deviation of daily demand
        lead_time_days: Lead time in days
        service_level: Service level goal as percentage (e.g., 95.0)
        lead_time_std_dev: Standard deviation of lead time in days

    Returns:
        Safety stock in units (unrounded)
    """
    _check_policy(lead_time_days, None)

    if lead_time_std_dev is None:
        lead_time_std_dev = lead_time_days * 0.2

    try:
        # For example, 95% service level = 1.645 standard deviations
        z_score = stats.norm.ppf(service_level / 100.0)

        return float(max(0.0, z_score * math.sqrt(
            (lead_time_days * demand_std_dev ** 2) +
            (adjusted_velocity ** 2 * lead_time_std_dev ** 2)
        )))

    except (ValueError, OverflowError) as e:
        raise CalculationError(f"Error calculating statistical safety stock: {str(e)}")


def calculate_reorder_point(
    adjusted_velocity: float,
    lead_time_days: float,
    safety_stock: int
) -> int:
    """Inventory level at or below which a purchase order should be placed.

    Args:
        adjusted_velocity: Seasonality-adjusted units per day
        lead_time_days: Supplier lead time in days
        safety_stock: Safety stock in units

    Returns:
        Reorder point in units

    Raises:
        InvalidConfigurationError: if lead_time_days is not positive
    """
    _check_policy(lead_time_days, None)
    return ceil_units(adjusted_velocity * lead_time_days) + safety_stock


def calculate_buffer(
    adjusted_velocity: float,
    lead_time_days: float,
    safety_stock_days: float,
    method: str = 'days',
    demand_std_dev: float = 0.0,
    service_level: float = 95.0,
    lead_time_std_dev: Optional[float] = None
) -> Tuple[int, int, str]:
    """Safety stock and reorder point under the configured buffer policy.

    The ``service_level`` method never goes below the days-of-cover buffer.

    Returns:
        Tuple of (safety_stock, reorder_point, explanation)
    """
    _check_policy(lead_time_days, safety_stock_days)

    safety_stock = calculate_safety_stock(adjusted_velocity, safety_stock_days)
    explanation = (
        f"Safety stock {safety_stock} = {adjusted_velocity:.2f}/day x {safety_stock_days:g} days"
    )

    if method == 'service_level':
        statistical = ceil_units(calculate_statistical_safety_stock(
            adjusted_velocity,
            demand_std_dev,
            lead_time_days,
            service_level=service_level,
            lead_time_std_dev=lead_time_std_dev
        ))
        if statistical > safety_stock:
            safety_stock = statistical
            explanation = (
                f"Safety stock {safety_stock} from {service_level:g}% service level "
                f"(demand sd {demand_std_dev:.2f}/day)"
            )

    reorder_point = calculate_reorder_point(adjusted_velocity, lead_time_days, safety_stock)
    explanation += f"; reorder point {reorder_point} over {lead_time_days:g}-day lead time"

    return safety_stock, reorder_point, explanation
