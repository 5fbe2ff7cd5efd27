# inventory_forecasting/core/purchase.py
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from inventory_forecasting.core.records import InventorySnapshot, Urgency
from inventory_forecasting.utils.date_utils import add_days
from inventory_forecasting.utils.math_utils import round_to_multiple, safe_floor_divide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseRecommendation:
    total_available: int
    shortfall: int
    recommended_order_qty: int
    urgency: Urgency
    days_to_purchase: Optional[int]
    purchase_by_date: Optional[date]
    reasoning: Tuple[str, ...]


def calculate_total_available(snapshot: InventorySnapshot) -> int:
    """Warehouse + FBA available + FBA inbound + open purchase orders."""
    return snapshot.total_available


def calculate_days_to_purchase(
    total_available: int,
    safety_stock: int,
    adjusted_velocity: float
) -> Optional[int]:
    """Days until stock above the safety buffer runs out.

    Returns None when velocity is zero: there is no depletion to plan for.
    """
    return safe_floor_divide(total_available - safety_stock, adjusted_velocity)


def classify_urgency(days_to_purchase: Optional[int], lead_time_days: float) -> Urgency:
    """Map days-to-purchase onto urgency tiers.

    Tiers, with boundaries belonging to the more urgent tier:
        critical: <= 0
        high: <= lead time / 2
        medium: <= lead time
        low: <= lead time * 2
        ok: anything later, or no depletion at all
    """
    if days_to_purchase is None:
        return Urgency.OK
    if days_to_purchase <= 0:
        return Urgency.CRITICAL
    if days_to_purchase <= lead_time_days / 2:
        return Urgency.HIGH
    if days_to_purchase <= lead_time_days:
        return Urgency.MEDIUM
    if days_to_purchase <= lead_time_days * 2:
        return Urgency.LOW
    return Urgency.OK


def calculate_order_quantity(
    shortfall: int,
    moq: Optional[int] = None,
    round_to_nearest: Optional[int] = None
) -> int:
    """Order enough to cover the shortfall, at least the MOQ, rounded up."""
    quantity = max(shortfall, moq or 0)
    return int(round_to_multiple(quantity, round_to_nearest))


def recommend_purchase(
    reorder_point: int,
    safety_stock: int,
    adjusted_velocity: float,
    snapshot: InventorySnapshot,
    lead_time_days: float,
    as_of: date,
    moq: Optional[int] = None,
    round_to_nearest: Optional[int] = None
) -> PurchaseRecommendation:
    """Compare the reorder point with everything on hand and on order.

    Args:
        reorder_point: Reorder point in units
        safety_stock: Safety stock in units
        adjusted_velocity: Seasonality-adjusted units per day
        snapshot: Current inventory for the SKU
        lead_time_days: Effective supplier lead time
        as_of: Forecast date
        moq: Supplier minimum order quantity
        round_to_nearest: Round order quantities up to this unit

    Returns:
        PurchaseRecommendation
    """
    total_available = calculate_total_available(snapshot)
    days_to_purchase = calculate_days_to_purchase(total_available, safety_stock, adjusted_velocity)
    purchase_by_date = add_days(as_of, days_to_purchase)
    reasoning = []

    if total_available >= reorder_point:
        reasoning.append(
            f"Total available {total_available} covers reorder point {reorder_point}; no purchase needed"
        )
        return PurchaseRecommendation(
            total_available=total_available,
            shortfall=0,
            recommended_order_qty=0,
            urgency=Urgency.OK,
            days_to_purchase=days_to_purchase,
            purchase_by_date=purchase_by_date,
            reasoning=tuple(reasoning),
        )

    shortfall = reorder_point - total_available
    quantity = calculate_order_quantity(shortfall, moq, round_to_nearest)
    urgency = classify_urgency(days_to_purchase, lead_time_days)

    reasoning.append(
        f"Total available {total_available} is {shortfall} below reorder point {reorder_point}"
    )
    if moq and moq > shortfall:
        reasoning.append(f"Order raised to supplier MOQ of {moq}")
    if round_to_nearest and quantity != max(shortfall, moq or 0):
        reasoning.append(f"Order rounded up to a multiple of {round_to_nearest}")
    reasoning.append(
        f"Purchase within {days_to_purchase} days (by {purchase_by_date}): {urgency} urgency"
    )

    logger.debug(f"{snapshot.sku}: order {quantity} units, urgency {urgency}")

    return PurchaseRecommendation(
        total_available=total_available,
        shortfall=shortfall,
        recommended_order_qty=quantity,
        urgency=urgency,
        days_to_purchase=days_to_purchase,
        purchase_by_date=purchase_by_date,
        reasoning=tuple(reasoning),
    )
