# inventory_forecasting/core/replenishment.py
"""Warehouse to FBA replenishment planning.

The planner is the only cross-SKU step of a forecasting run. It receives
every SKU's candidate at once and shares the daily FBA capacity between
them. The default allocation is a greedy knapsack by priority: SKUs are
funded in order of urgency (fewest days of FBA supply first) and the last
SKU that only partly fits is partially funded. It is not an optimal
packing; it protects the SKUs closest to stocking out.
"""
import logging
import math
from datetime import date
from typing import Dict, Iterable, List, Optional

from inventory_forecasting.core.records import (
    ForecastConfig, InventorySnapshot, ReplenishmentCandidate, ReplenishmentLine, ReplenishmentPlan
)
from inventory_forecasting.utils.date_utils import add_days
from inventory_forecasting.utils.math_utils import ceil_units

logger = logging.getLogger(__name__)


def calculate_days_of_supply(fba_stock: int, adjusted_velocity: float) -> float:
    """FBA days of supply; infinite when nothing is selling."""
    if adjusted_velocity <= 0:
        return math.inf
    return fba_stock / adjusted_velocity


def build_replenishment_candidate(
    sku: str,
    adjusted_velocity: float,
    snapshot: InventorySnapshot,
    fba_target_days: float
) -> ReplenishmentCandidate:
    """Work out how much one SKU needs at FBA and how much the warehouse can send.

    Args:
        sku: SKU
        adjusted_velocity: Seasonality-adjusted units per day
        snapshot: Current inventory for the SKU
        fba_target_days: Days of supply to hold at FBA

    Returns:
        ReplenishmentCandidate
    """
    ideal_fba_stock = ceil_units(fba_target_days * adjusted_velocity)
    replenishment_needed = max(0, ideal_fba_stock - snapshot.fba_total)
    can_send = min(replenishment_needed, snapshot.warehouse_available)

    return ReplenishmentCandidate(
        sku=sku,
        adjusted_velocity=adjusted_velocity,
        fba_available=snapshot.fba_available,
        fba_inbound=snapshot.fba_inbound,
        warehouse_available=snapshot.warehouse_available,
        ideal_fba_stock=ideal_fba_stock,
        replenishment_needed=replenishment_needed,
        can_send=can_send,
        days_of_supply=calculate_days_of_supply(snapshot.fba_total, adjusted_velocity),
    )


def is_eligible(candidate: ReplenishmentCandidate, urgency_threshold_days: float) -> bool:
    """Only SKUs running low at FBA and with something to send ship today."""
    return candidate.can_send > 0 and candidate.days_of_supply < urgency_threshold_days


def _priority(candidate: ReplenishmentCandidate):
    return (candidate.days_of_supply, candidate.sku)


def allocate_greedy(eligible: List[ReplenishmentCandidate], capacity: int) -> Dict[str, int]:
    """Fund SKUs fully in priority order until capacity runs out."""
    remaining = capacity
    allocations = {}
    for candidate in sorted(eligible, key=_priority):
        grant = min(candidate.can_send, remaining)
        allocations[candidate.sku] = grant
        remaining -= grant
    return allocations


def allocate_proportional(eligible: List[ReplenishmentCandidate], capacity: int) -> Dict[str, int]:
    """Give every SKU the same fraction of its need.

    Units lost to rounding down are handed out one at a time in priority order.
    """
    requested = sum(candidate.can_send for candidate in eligible)
    if requested == 0:
        return {candidate.sku: 0 for candidate in eligible}

    allocations = {
        candidate.sku: (candidate.can_send * capacity) // requested
        for candidate in eligible
    }

    remaining = capacity - sum(allocations.values())
    for candidate in sorted(eligible, key=_priority):
        if remaining <= 0:
            break
        if allocations[candidate.sku] < candidate.can_send:
            allocations[candidate.sku] += 1
            remaining -= 1

    return allocations


ALLOCATORS = {
    'greedy': allocate_greedy,
    'proportional': allocate_proportional,
}


def _ship_by_date(
    candidate: ReplenishmentCandidate,
    eligible: bool,
    as_of: date,
    urgency_threshold_days: float
) -> Optional[date]:
    if eligible:
        return as_of
    if candidate.can_send <= 0 or not math.isfinite(candidate.days_of_supply):
        return None
    slack = max(0, math.floor(candidate.days_of_supply - urgency_threshold_days))
    return add_days(as_of, slack)


def plan_replenishment(
    candidates: Iterable[ReplenishmentCandidate],
    as_of: date,
    config: ForecastConfig
) -> ReplenishmentPlan:
    """Allocate today's FBA shipments across all SKUs of a run.

    Must run after every per-SKU candidate is known. ``config.fba_capacity``
    caps the sum of allocations; ``None`` means unlimited.

    Args:
        candidates: One candidate per SKU
        as_of: Forecast date
        config: Forecast configuration

    Returns:
        ReplenishmentPlan
    """
    candidates = sorted(candidates, key=lambda c: c.sku)
    threshold = config.urgency_threshold_days
    capacity = config.fba_capacity

    eligible = [c for c in candidates if is_eligible(c, threshold)]
    requested = sum(c.can_send for c in eligible)
    capacity_limited = capacity is not None and requested > capacity

    if capacity_limited:
        allocations = ALLOCATORS[config.allocation_policy](eligible, capacity)
        logger.info(
            f"FBA capacity {capacity} below requested {requested}; "
            f"allocating {len(eligible)} SKUs by {config.allocation_policy} policy"
        )
    else:
        allocations = {c.sku: c.can_send for c in eligible}

    lines = {}
    for candidate in candidates:
        eligible_now = candidate.sku in allocations
        allocated = allocations.get(candidate.sku, 0)
        reasoning = []

        if eligible_now:
            reasoning.append(
                f"FBA has {candidate.days_of_supply:.1f} days of supply (< {threshold:g}); "
                f"ship {candidate.can_send} of {candidate.replenishment_needed} needed"
            )
            if capacity_limited:
                if allocated < candidate.can_send:
                    reasoning.append(
                        f"Capacity-limited: shipment capped from {candidate.can_send} to {allocated} "
                        f"(FBA capacity {capacity})"
                    )
                else:
                    reasoning.append(
                        f"Capacity-limited run: fully funded {allocated} within FBA capacity {capacity}"
                    )
        elif candidate.replenishment_needed > 0:
            if candidate.can_send == 0:
                reasoning.append(
                    f"FBA needs {candidate.replenishment_needed} units but warehouse has none to send"
                )
            else:
                reasoning.append(
                    f"FBA has {candidate.days_of_supply:.1f} days of supply; "
                    f"{candidate.can_send} units can wait for a later shipment"
                )
        if candidate.can_send < candidate.replenishment_needed and candidate.can_send > 0:
            reasoning.append(
                f"Warehouse stock limits shipment to {candidate.can_send} of "
                f"{candidate.replenishment_needed} needed"
            )

        lines[candidate.sku] = ReplenishmentLine(
            sku=candidate.sku,
            can_send=candidate.can_send,
            allocated=allocated,
            days_of_supply=candidate.days_of_supply,
            eligible=eligible_now,
            capacity_limited=eligible_now and capacity_limited,
            ship_by_date=_ship_by_date(candidate, eligible_now, as_of, threshold),
            reasoning=tuple(reasoning),
        )

    ship_today_total = sum(line.allocated for line in lines.values())

    return ReplenishmentPlan(
        lines=lines,
        ship_today_total=ship_today_total,
        capacity=capacity,
        capacity_limited=capacity_limited,
        policy=config.allocation_policy,
    )
