# inventory_forecasting/core/seasonality.py
"""Seasonal uplift for demand forecasts.

Events are looked up over a horizon rather than on a single day: anything
that starts before a purchase placed today could arrive must already raise
today's forecast.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from inventory_forecasting.core.records import (
    ForecastConfig, PlannedSpike, RecurringSeasonalEvent, SeasonalEvent, VelocityProfile
)
from inventory_forecasting.utils.date_utils import years_touched

logger = logging.getLogger(__name__)

DEFAULT_SEASONAL_CALENDAR = (
    RecurringSeasonalEvent("Valentine's Day", 2, 1, 2, 14, 2.0, event_type='micro_peak'),
    RecurringSeasonalEvent("Spring Sales", 3, 1, 4, 30, 1.5, event_type='micro_peak'),
    RecurringSeasonalEvent("Mother's Day", 5, 1, 5, 14, 2.5, event_type='micro_peak'),
    RecurringSeasonalEvent("Father's Day", 6, 1, 6, 14, 2.0, event_type='micro_peak'),
    RecurringSeasonalEvent("Prime Day", 7, 10, 7, 20, 3.0, event_type='micro_peak'),
    RecurringSeasonalEvent("Black Friday through Christmas", 11, 15, 12, 24, 4.0, event_type='major_peak'),
)


@dataclass(frozen=True)
class SeasonalAdjustment:
    baseline_velocity: float
    uplift_factor: float
    adjusted_velocity: float
    applied_events: Tuple[str, ...]
    reasoning: Tuple[str, ...]
    applied_spikes: Tuple[PlannedSpike, ...] = ()


def seasonality_horizon(
    as_of: date,
    lead_time_days: float,
    lookahead_days: int = 0
) -> Tuple[date, date]:
    """Date range whose events influence an order decision made on ``as_of``.

    The horizon always covers the full lead time; a longer configured
    lookahead extends it.
    """
    span = math.ceil(max(lead_time_days, lookahead_days))
    return as_of, as_of + timedelta(days=span)


def resolve_recurring_events(
    recurring: Iterable[RecurringSeasonalEvent],
    start: date,
    end: date
) -> List[SeasonalEvent]:
    """Pin month/day calendar entries to the occurrences overlapping [start, end].

    Args:
        recurring: Recurring calendar entries
        start: First day of interest
        end: Last day of interest

    Returns:
        Dated events sorted by start date then name
    """
    events = []
    for entry in recurring:
        for year in years_touched(start, end):
            event = entry.resolve(year)
            if event.overlaps(start, end):
                events.append(event)
    return sorted(events, key=lambda e: (e.start_date, e.name))


def default_seasonal_calendar(start: date, end: date) -> List[SeasonalEvent]:
    """The built-in retail calendar resolved for [start, end]."""
    return resolve_recurring_events(DEFAULT_SEASONAL_CALENDAR, start, end)


def select_applicable_events(
    events: Iterable[SeasonalEvent],
    category: Optional[str],
    horizon_start: date,
    horizon_end: date
) -> List[SeasonalEvent]:
    """Events overlapping the horizon that apply to the SKU's category."""
    applicable = [
        event for event in events
        if event.overlaps(horizon_start, horizon_end) and event.applies_to(category)
    ]
    return sorted(applicable, key=lambda e: (e.start_date, e.name))


def calculate_uplift(sku: str, events: Sequence[SeasonalEvent]) -> Tuple[float, Tuple[str, ...], Tuple[str, ...]]:
    """Combine applicable events into one multiplier.

    Non-exclusive events multiply together. An exclusive event replaces every
    other event; if several exclusive events apply, the largest factor wins
    (ties go to the alphabetically first name) and the rest are discarded.

    Args:
        sku: SKU the factor is for (SKU-specific multipliers)
        events: Events already filtered to the horizon and category

    Returns:
        Tuple of (factor, names of applied events, reasoning lines)
    """
    reasoning = []
    exclusive = [event for event in events if event.exclusive]

    if exclusive:
        ranked = sorted(exclusive, key=lambda e: (-e.factor_for(sku), e.name))
        winner = ranked[0]
        factor = winner.factor_for(sku)
        reasoning.append(f"Exclusive event '{winner.name}' applies (x{factor:.2f})")
        for loser in ranked[1:]:
            reasoning.append(
                f"Discarded exclusive event '{loser.name}' (x{loser.factor_for(sku):.2f}) "
                f"in favour of '{winner.name}'"
            )
        for overridden in events:
            if not overridden.exclusive:
                reasoning.append(
                    f"Ignored event '{overridden.name}' (x{overridden.factor_for(sku):.2f}): "
                    f"overridden by exclusive '{winner.name}'"
                )
        return factor, (winner.name,), tuple(reasoning)

    # Multiply in value order so the product does not depend on input order
    factors = sorted(event.factor_for(sku) for event in events)
    factor = 1.0
    for value in factors:
        factor *= value

    for event in events:
        reasoning.append(f"Seasonal event '{event.name}' applies (x{event.factor_for(sku):.2f})")
    if len(events) > 1:
        reasoning.append(f"Combined seasonal factor x{factor:.2f}")

    return factor, tuple(event.name for event in events), tuple(reasoning)


def select_planned_spikes(
    spikes: Iterable[PlannedSpike],
    sku: str,
    horizon_start: date,
    horizon_end: date
) -> List[PlannedSpike]:
    """Planned lifts for ``sku`` overlapping the horizon."""
    selected = [
        spike for spike in spikes
        if spike.sku == sku and spike.overlaps(horizon_start, horizon_end)
    ]
    return sorted(selected, key=lambda s: (s.start_date, s.lift_multiplier))


def calculate_spike_lift(spikes: Sequence[PlannedSpike]) -> Tuple[float, Tuple[str, ...]]:
    """Multiply planned lifts together; they stack on the seasonal factor."""
    lift = 1.0
    for value in sorted(spike.lift_multiplier for spike in spikes):
        lift *= value

    reasoning = tuple(
        f"Planned {spike.spike_type} lift x{spike.lift_multiplier:.2f} "
        f"({spike.start_date} to {spike.end_date})"
        for spike in spikes
    )
    return lift, reasoning


def adjust_velocity(
    profile: VelocityProfile,
    as_of: date,
    events: Iterable[SeasonalEvent],
    config: ForecastConfig,
    lead_time_days: float,
    category: Optional[str] = None,
    spikes: Iterable[PlannedSpike] = ()
) -> SeasonalAdjustment:
    """Apply the seasonal calendar to a SKU's baseline velocity.

    Args:
        profile: Velocity profile for the SKU
        as_of: Forecast date
        events: Full seasonal calendar snapshot
        config: Forecast configuration (baseline window, lookahead)
        lead_time_days: Effective supplier lead time for the SKU
        category: SKU category tag
        spikes: Planned lifts; only those for this SKU inside the horizon apply

    Returns:
        SeasonalAdjustment with the adjusted velocity and its explanation
    """
    baseline = profile.velocity_for(config.baseline_window)
    horizon_start, horizon_end = seasonality_horizon(
        as_of, lead_time_days, config.seasonality_lookahead_days
    )

    applicable = select_applicable_events(events, category, horizon_start, horizon_end)
    factor, applied, reasoning = calculate_uplift(profile.sku, applicable)

    if not applicable:
        reasoning = (f"No seasonal events between {horizon_start} and {horizon_end}",)

    planned = select_planned_spikes(spikes, profile.sku, horizon_start, horizon_end)
    if planned:
        lift, spike_reasoning = calculate_spike_lift(planned)
        factor *= lift
        reasoning = reasoning + spike_reasoning

    adjusted = baseline * factor

    logger.debug(f"{profile.sku}: baseline {baseline:.3f} x {factor:.3f} = {adjusted:.3f}")

    return SeasonalAdjustment(
        baseline_velocity=baseline,
        uplift_factor=factor,
        adjusted_velocity=adjusted,
        applied_events=applied,
        reasoning=reasoning,
        applied_spikes=tuple(planned),
    )
