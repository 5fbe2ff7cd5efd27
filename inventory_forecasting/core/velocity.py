# inventory_forecasting/core/velocity.py
import logging
from typing import Optional

from inventory_forecasting.core.records import (
    WINDOWS, ForecastConfig, SalesHistory, Trend, VelocityProfile
)
from inventory_forecasting.utils.math_utils import percent_change

logger = logging.getLogger(__name__)

# Spikes are not flagged on less than two weeks of history
SPIKE_MIN_HISTORY_DAYS = 14


def calculate_window_velocity(history: SalesHistory, window: int) -> float:
    """Average units per day over a trailing window.

    Args:
        history: Aggregated sales history
        window: Window length (7, 30 or 90)

    Returns:
        Units per day, 0.0 when the window holds no days
    """
    days = history.window_days[window]
    if days == 0:
        return 0.0
    return history.window_totals[window] / days


def classify_trend(
    velocity_7d: float,
    velocity_30d: float,
    rising_ratio: float = 1.15,
    declining_ratio: float = 0.85
) -> Trend:
    """Classify short-term demand against the 30-day baseline.

    Args:
        velocity_7d: 7-day velocity
        velocity_30d: 30-day velocity
        rising_ratio: velocity_7d above this multiple of velocity_30d is rising
        declining_ratio: velocity_7d below this multiple of velocity_30d is declining

    Returns:
        Trend classification
    """
    if velocity_7d > rising_ratio * velocity_30d:
        return Trend.RISING
    if velocity_7d < declining_ratio * velocity_30d:
        return Trend.DECLINING
    return Trend.STABLE


def detect_spike(
    velocity_7d: float,
    velocity_30d: float,
    history_days: int,
    threshold_pct: float = 50.0
) -> Optional[float]:
    """Flag a sudden jump in recent sales.

    Args:
        velocity_7d: 7-day velocity
        velocity_30d: 30-day baseline velocity
        history_days: Days of history behind the velocities
        threshold_pct: Percent above the baseline that counts as a spike

    Returns:
        velocity_7d / velocity_30d when spiking, otherwise None
    """
    if history_days < SPIKE_MIN_HISTORY_DAYS or velocity_30d <= 0:
        return None
    multiplier = velocity_7d / velocity_30d
    if multiplier >= 1 + threshold_pct / 100.0:
        return round(multiplier, 4)
    return None


def calculate_change_pct(current: float, baseline: float) -> float:
    """Percentage change of a short window over a longer one."""
    return round(percent_change(current, baseline), 4)


def calculate_velocity_profile(history: SalesHistory, config: ForecastConfig) -> VelocityProfile:
    """Derive per-window velocities and the trend for one SKU.

    Args:
        history: Aggregated sales history
        config: Forecast configuration (trend thresholds)

    Returns:
        VelocityProfile
    """
    velocities = {window: calculate_window_velocity(history, window) for window in WINDOWS}
    velocity_7d, velocity_30d, velocity_90d = velocities[7], velocities[30], velocities[90]

    trend = classify_trend(
        velocity_7d,
        velocity_30d,
        rising_ratio=config.trend_rising_ratio,
        declining_ratio=config.trend_declining_ratio
    )

    low_confidence_windows = tuple(
        window for window in WINDOWS if history.window_days[window] < window
    )

    logger.debug(
        f"{history.sku}: v7={velocity_7d:.3f} v30={velocity_30d:.3f} "
        f"v90={velocity_90d:.3f} trend={trend}"
    )

    return VelocityProfile(
        sku=history.sku,
        velocity_7d=velocity_7d,
        velocity_30d=velocity_30d,
        velocity_90d=velocity_90d,
        trend=trend,
        change_7d_pct=calculate_change_pct(velocity_7d, velocity_30d),
        change_30d_pct=calculate_change_pct(velocity_30d, velocity_90d),
        history_days=history.history_days,
        low_confidence_windows=low_confidence_windows,
        spike_multiplier=detect_spike(
            velocity_7d, velocity_30d, history.history_days, config.spike_threshold_pct
        ),
    )
