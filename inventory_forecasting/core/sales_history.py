# inventory_forecasting/core/sales_history.py
import logging
from datetime import date
from typing import Iterable, Optional

import numpy as np

from inventory_forecasting.core.records import WINDOWS, SalesHistory, SalesObservation
from inventory_forecasting.utils.date_utils import days_between

logger = logging.getLogger(__name__)


def build_daily_series(
    observations: Iterable[SalesObservation],
    as_of: date,
    days: int
) -> np.ndarray:
    """Build a zero-filled daily unit series for the trailing window.

    Index 0 is the oldest day and index ``days - 1`` is ``as_of``. Days with
    no observation count as zero sales. Rows for the same day are summed and
    rows dated after ``as_of`` are ignored.

    Args:
        observations: Sales observations for a single SKU
        as_of: Last day of the window
        days: Window length in calendar days

    Returns:
        Integer numpy array of length ``days``
    """
    series = np.zeros(days, dtype=np.int64)

    for observation in observations:
        offset = days_between(observation.date, as_of)
        if 0 <= offset < days:
            series[days - 1 - offset] += observation.units_sold

    return series


def count_history_days(
    observations: Iterable[SalesObservation],
    as_of: date,
    first_sale_date: Optional[date] = None
) -> int:
    """Days from the first observation through ``as_of``, inclusive.

    ``first_sale_date`` covers history older than the observations passed
    in; the earlier of it and the first observation starts the count.
    Returns 0 when the SKU has no history on or before ``as_of``.
    """
    first_date: Optional[date] = None
    if first_sale_date is not None and first_sale_date <= as_of:
        first_date = first_sale_date
    for observation in observations:
        if observation.date > as_of:
            continue
        if first_date is None or observation.date < first_date:
            first_date = observation.date

    if first_date is None:
        return 0
    return days_between(first_date, as_of) + 1


def aggregate_sales_history(
    sku: str,
    observations: Iterable[SalesObservation],
    as_of: date,
    first_sale_date: Optional[date] = None
) -> SalesHistory:
    """Turn raw per-day observations into 7/30/90-day rolling windows.

    A window longer than the available history is computed over the days
    that exist, so a SKU first sold 10 days ago has a 30-day window of 10 days.

    Args:
        sku: SKU being aggregated
        observations: Sales observations for this SKU (any order)
        as_of: Forecast date
        first_sale_date: First day the SKU ever sold, when older rows were not loaded

    Returns:
        SalesHistory with totals and effective day counts per window
    """
    observations = [obs for obs in observations if obs.sku == sku]
    longest = max(WINDOWS)

    history_days = count_history_days(observations, as_of, first_sale_date)
    daily = build_daily_series(observations, as_of, longest)

    window_totals = {}
    window_days = {}
    for window in WINDOWS:
        effective_days = min(window, history_days)
        window_days[window] = effective_days
        window_totals[window] = int(daily[longest - effective_days:].sum()) if effective_days else 0

    if history_days == 0:
        logger.debug(f"No sales history for {sku} as of {as_of}")

    return SalesHistory(
        sku=sku,
        as_of=as_of,
        history_days=history_days,
        window_totals=window_totals,
        window_days=window_days,
        daily_units=tuple(int(units) for units in daily[longest - min(longest, history_days):]),
    )
