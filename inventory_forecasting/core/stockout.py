# inventory_forecasting/core/stockout.py
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from inventory_forecasting.core.records import ForecastConfig, ForecastResult, VelocityProfile
from inventory_forecasting.utils.date_utils import add_days
from inventory_forecasting.utils.math_utils import relative_difference, safe_floor_divide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockoutPrediction:
    days_until_stockout: Optional[int]
    stockout_date: Optional[date]
    confidence: float
    reasoning: Tuple[str, ...]


def calculate_confidence(
    profile: VelocityProfile,
    config: ForecastConfig
) -> Tuple[float, Tuple[str, ...]]:
    """Score how far the forecast can be trusted.

    Starts at 1.0 and is discounted for:
      - sparse history: scaled by history_days / min_history_days
      - volatility: scaled by 1 - weight * |v7 - v30| / max(v7, v30) once
        that difference exceeds the tolerance

    Returns:
        Tuple of (confidence in [0, 1], reasoning for each discount applied)
    """
    confidence = 1.0
    reasoning = []

    if profile.history_days < config.min_history_days:
        factor = profile.history_days / config.min_history_days
        confidence *= factor
        if profile.history_days == 0:
            reasoning.append("Confidence discounted to 0: no sales history")
        else:
            reasoning.append(
                f"Confidence x{factor:.2f}: only {profile.history_days} of "
                f"{config.min_history_days} days of history"
            )

    volatility = relative_difference(profile.velocity_7d, profile.velocity_30d)
    if volatility > config.volatility_tolerance:
        factor = 1.0 - config.volatility_weight * volatility
        confidence *= factor
        reasoning.append(
            f"Confidence x{factor:.2f}: 7-day and 30-day velocity differ by {volatility:.0%}"
        )

    return round(max(0.0, min(1.0, confidence)), 4), tuple(reasoning)


def predict_stockout(
    current_inventory: int,
    adjusted_velocity: float,
    profile: VelocityProfile,
    as_of: date,
    config: ForecastConfig
) -> StockoutPrediction:
    """Project when current stock runs out at the adjusted velocity.

    Args:
        current_inventory: Units on hand (warehouse + FBA + FBA inbound)
        adjusted_velocity: Seasonality-adjusted units per day
        profile: Velocity profile (history length and volatility)
        as_of: Forecast date
        config: Forecast configuration

    Returns:
        StockoutPrediction; days and date are None when nothing is selling
    """
    days_until_stockout = safe_floor_divide(current_inventory, adjusted_velocity)
    stockout_date = add_days(as_of, days_until_stockout)
    confidence, reasoning = calculate_confidence(profile, config)

    if days_until_stockout is None:
        reasoning = ("No sales velocity; no stockout projected",) + reasoning
    elif stockout_date is None:
        reasoning = (
            f"{current_inventory} units on hand last {days_until_stockout} days; "
            f"stockout falls beyond the calendar",
        ) + reasoning
    else:
        reasoning = (
            f"{current_inventory} units on hand last {days_until_stockout} days "
            f"(stockout {stockout_date})",
        ) + reasoning

    return StockoutPrediction(
        days_until_stockout=days_until_stockout,
        stockout_date=stockout_date,
        confidence=confidence,
        reasoning=reasoning,
    )


def generate_stockout_alerts(
    results: Iterable[ForecastResult],
    config: ForecastConfig
) -> List[Dict]:
    """Alerts for SKUs projected to stock out soon.

    ``critical`` when the stockout comes before a purchase placed today could
    arrive (within the lead time), ``warning`` when it falls within the
    urgency threshold.

    Args:
        results: Forecast results of a run
        config: Forecast configuration

    Returns:
        Alerts sorted by days until stockout, then SKU
    """
    alerts = []
    for result in results:
        days = result.days_until_stockout
        if days is None:
            continue

        lead_time = result.lead_time_days or config.lead_time_days_default
        if days < lead_time:
            severity = 'critical'
        elif days < config.urgency_threshold_days:
            severity = 'warning'
        else:
            continue

        alerts.append({
            'sku': result.sku,
            'severity': severity,
            'days_until_stockout': days,
            'stockout_date': result.stockout_date,
            'confidence': result.confidence,
            'message': (
                f"{result.sku} projected to stock out in {days} days "
                f"(lead time {lead_time:g} days)"
            ),
        })

    alerts.sort(key=lambda alert: (alert['days_until_stockout'], alert['sku']))
    if alerts:
        logger.info(f"Generated {len(alerts)} stockout alerts")
    return alerts
