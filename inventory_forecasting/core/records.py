# inventory_forecasting/core/records.py
"""Value objects passed into and out of the forecasting engine.

Everything here is immutable: the engine never mutates its inputs and a new
run replaces, rather than updates, a previous ForecastResult.
"""
import calendar
import enum
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, Mapping, Optional, Tuple, Union

from inventory_forecasting.exceptions import InvalidConfigurationError
from inventory_forecasting.utils.validation import (
    ALLOCATION_POLICIES, BASELINE_WINDOWS, SAFETY_STOCK_METHODS, validate_forecast_config
)

ALL_CATEGORIES = 'all'

# Trailing windows (days) tracked for every SKU
WINDOWS = (7, 30, 90)


class Trend(enum.Enum):
    """Direction of short-term demand relative to the 30-day baseline."""
    RISING = 'rising'
    STABLE = 'stable'
    DECLINING = 'declining'

    def __str__(self):
        return self.value


class Urgency(enum.Enum):
    """Purchase urgency tiers, most urgent first.

    Values:
        CRITICAL: buy now, the buffer is already being consumed
        HIGH: buy within half a lead time
        MEDIUM: buy within one lead time
        LOW: buy within two lead times
        OK: nothing to do
    """
    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    OK = 'ok'

    def __str__(self):
        return self.value

    @property
    def rank(self) -> int:
        """Sort key: 0 is the most urgent tier."""
        return list(Urgency).index(self)


@dataclass(frozen=True)
class ForecastConfig:
    """Tunable policy for one forecasting run.

    Passed explicitly into every call; the engine never reads global settings.
    """
    safety_stock_days_default: float = 7
    fba_target_days: float = 45
    fba_capacity: Optional[int] = None
    lead_time_days_default: float = 30
    round_to_nearest: Optional[int] = None
    urgency_threshold_days: float = 14
    seasonality_lookahead_days: int = 30

    # Velocity trend thresholds (ratio of velocity_7d to velocity_30d)
    trend_rising_ratio: float = 1.15
    trend_declining_ratio: float = 0.85

    baseline_window: str = 'velocity_30d'

    # Confidence scoring
    min_history_days: int = 30
    volatility_tolerance: float = 0.15
    volatility_weight: float = 0.5

    safety_stock_method: str = 'days'
    service_level: float = 95.0

    # 7-day velocity this far (percent) above the 30-day baseline is a spike
    spike_threshold_pct: float = 50.0

    allocation_policy: str = 'greedy'
    max_workers: int = 1

    def validate(self) -> 'ForecastConfig':
        """Raise InvalidConfigurationError if any policy value is unusable."""
        errors = validate_forecast_config(self)
        if errors:
            summary = '; '.join(f"{key}: {value}" for key, value in sorted(errors.items()))
            raise InvalidConfigurationError(summary, details=errors)
        return self

    def to_dict(self) -> Dict:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class SalesObservation:
    """Units sold for one SKU on one day. Corrections arrive as extra rows."""
    sku: str
    date: date
    units_sold: int


@dataclass(frozen=True)
class SalesHistory:
    """Rolling sales windows for one SKU as of a given date."""
    sku: str
    as_of: date
    history_days: int
    window_totals: Mapping[int, int]
    window_days: Mapping[int, int]
    daily_units: Tuple[int, ...] = ()

    @property
    def has_history(self) -> bool:
        return self.history_days > 0


@dataclass(frozen=True)
class VelocityProfile:
    sku: str
    velocity_7d: float
    velocity_30d: float
    velocity_90d: float
    trend: Trend
    change_7d_pct: float
    change_30d_pct: float
    history_days: int = 0
    low_confidence_windows: Tuple[int, ...] = ()
    spike_multiplier: Optional[float] = None

    @property
    def is_spiking(self) -> bool:
        return self.spike_multiplier is not None

    def velocity_for(self, baseline_window: str) -> float:
        """Return the baseline velocity selected by ``baseline_window``."""
        if baseline_window == 'blended':
            return self.velocity_30d * 0.7 + self.velocity_90d * 0.3
        return getattr(self, baseline_window)

    def to_dict(self) -> Dict:
        return {
            'sku': self.sku,
            'velocity7d': self.velocity_7d,
            'velocity30d': self.velocity_30d,
            'velocity90d': self.velocity_90d,
            'trend': self.trend.value,
            'change7dPct': self.change_7d_pct,
            'change30dPct': self.change_30d_pct,
            'historyDays': self.history_days,
            'lowConfidenceWindows': list(self.low_confidence_windows),
            'isSpiking': self.is_spiking,
            'spikeMultiplier': self.spike_multiplier,
        }


@dataclass(frozen=True)
class SeasonalEvent:
    """A dated demand-affecting event on the seasonal calendar."""
    name: str
    start_date: date
    end_date: date
    uplift_factor: float
    applies_to_categories: Union[str, FrozenSet[str]] = ALL_CATEGORIES
    exclusive: bool = False
    sku_multipliers: Mapping[str, float] = field(default_factory=dict)
    learned_multiplier: Optional[float] = None

    def applies_to(self, category: Optional[str]) -> bool:
        if self.applies_to_categories == ALL_CATEGORIES:
            return True
        return category is not None and category in self.applies_to_categories

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start

    def factor_for(self, sku: str) -> float:
        """Effective uplift for a SKU.

        A SKU-specific multiplier replaces the base factor; a learned
        multiplier is blended 40/60 with the base factor.
        """
        if sku in self.sku_multipliers:
            return float(self.sku_multipliers[sku])
        if self.learned_multiplier:
            return self.uplift_factor * 0.4 + self.learned_multiplier * 0.6
        return float(self.uplift_factor)


@dataclass(frozen=True)
class PlannedSpike:
    """A dated demand lift planned for a single SKU (promotion, deal, ad push).

    Unlike calendar events it is scoped to one SKU and stacks on top of
    whatever seasonal factor applies.
    """
    sku: str
    start_date: date
    end_date: date
    lift_multiplier: float
    spike_type: str = 'promotion'

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True)
class RecurringSeasonalEvent:
    """A calendar event defined by month/day that repeats every year."""
    name: str
    start_month: int
    start_day: int
    end_month: int
    end_day: int
    base_multiplier: float
    event_type: str = 'custom'
    applies_to_categories: Union[str, FrozenSet[str]] = ALL_CATEGORIES
    exclusive: bool = False
    sku_multipliers: Mapping[str, float] = field(default_factory=dict)
    learned_multiplier: Optional[float] = None

    @property
    def crosses_year_end(self) -> bool:
        return (self.end_month, self.end_day) < (self.start_month, self.start_day)

    def resolve(self, year: int) -> SeasonalEvent:
        """Pin the event to the occurrence starting in ``year``."""
        end_year = year + 1 if self.crosses_year_end else year
        return SeasonalEvent(
            name=self.name,
            start_date=_clamped_date(year, self.start_month, self.start_day),
            end_date=_clamped_date(end_year, self.end_month, self.end_day),
            uplift_factor=self.base_multiplier,
            applies_to_categories=self.applies_to_categories,
            exclusive=self.exclusive,
            sku_multipliers=self.sku_multipliers,
            learned_multiplier=self.learned_multiplier,
        )


def _clamped_date(year: int, month: int, day: int) -> date:
    # Feb 29 falls back to Feb 28 outside leap years
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


@dataclass(frozen=True)
class InventorySnapshot:
    sku: str
    warehouse_available: int = 0
    fba_available: int = 0
    fba_inbound: int = 0
    incoming_from_po: int = 0

    @property
    def total_available(self) -> int:
        return self.warehouse_available + self.fba_available + self.fba_inbound + self.incoming_from_po

    @property
    def on_hand(self) -> int:
        """Stock physically held or already moving to FBA (excludes open POs)."""
        return self.warehouse_available + self.fba_available + self.fba_inbound

    @property
    def fba_total(self) -> int:
        return self.fba_available + self.fba_inbound


@dataclass(frozen=True)
class SkuPolicy:
    """Supplier and buffer settings for one SKU, overriding config defaults.

    ``first_sale_date`` is the first day the SKU appears in the sales feed.
    It lets history length be counted correctly when only a trailing slice
    of observations is passed in.
    """
    sku: str
    category: Optional[str] = None
    lead_time_days: Optional[float] = None
    observed_lead_time_days: Optional[float] = None
    lead_time_std_dev: Optional[float] = None
    safety_stock_days: Optional[float] = None
    moq: Optional[int] = None
    first_sale_date: Optional[date] = None

    def effective_lead_time(self, config: ForecastConfig) -> float:
        """Observed supplier performance wins over the quoted lead time."""
        if self.observed_lead_time_days is not None:
            return self.observed_lead_time_days
        if self.lead_time_days is not None:
            return self.lead_time_days
        return config.lead_time_days_default

    def effective_safety_stock_days(self, config: ForecastConfig) -> float:
        if self.safety_stock_days is not None:
            return self.safety_stock_days
        return config.safety_stock_days_default


@dataclass(frozen=True)
class ReplenishmentCandidate:
    """Per-SKU input to the cross-SKU replenishment reduction."""
    sku: str
    adjusted_velocity: float
    fba_available: int
    fba_inbound: int
    warehouse_available: int
    ideal_fba_stock: int
    replenishment_needed: int
    can_send: int
    days_of_supply: float

    @property
    def fba_total(self) -> int:
        return self.fba_available + self.fba_inbound


@dataclass(frozen=True)
class ReplenishmentLine:
    sku: str
    can_send: int
    allocated: int
    days_of_supply: float
    eligible: bool
    capacity_limited: bool
    ship_by_date: Optional[date]
    reasoning: Tuple[str, ...] = ()

    def to_dict(self) -> Dict:
        return {
            'sku': self.sku,
            'canSend': self.can_send,
            'allocated': self.allocated,
            'daysOfSupply': _finite_or_none(self.days_of_supply),
            'eligible': self.eligible,
            'capacityLimited': self.capacity_limited,
            'shipByDate': _iso(self.ship_by_date),
            'reasoning': list(self.reasoning),
        }


@dataclass(frozen=True)
class ReplenishmentPlan:
    lines: Mapping[str, ReplenishmentLine]
    ship_today_total: int
    capacity: Optional[int]
    capacity_limited: bool
    policy: str = 'greedy'

    def to_dict(self) -> Dict:
        return {
            'shipTodayTotal': self.ship_today_total,
            'capacity': self.capacity,
            'capacityLimited': self.capacity_limited,
            'policy': self.policy,
            'lines': {sku: line.to_dict() for sku, line in sorted(self.lines.items())},
        }


@dataclass(frozen=True)
class ForecastResult:
    """The engine's per-SKU decision record."""
    sku: str
    adjusted_velocity: float
    reorder_point: int
    safety_stock: int
    recommended_order_qty: int
    recommended_fba_qty: int
    urgency: Urgency
    confidence: float
    reasoning: Tuple[str, ...]
    stockout_date: Optional[date] = None
    days_until_stockout: Optional[int] = None
    purchase_by_date: Optional[date] = None
    days_to_purchase: Optional[int] = None
    velocity: Optional[VelocityProfile] = None
    seasonality_factor: float = 1.0
    lead_time_days: Optional[float] = None
    fba_ship_by_date: Optional[date] = None

    def to_dict(self) -> Dict:
        return {
            'sku': self.sku,
            'adjustedVelocity': self.adjusted_velocity,
            'reorderPoint': self.reorder_point,
            'safetyStock': self.safety_stock,
            'recommendedOrderQty': self.recommended_order_qty,
            'recommendedFbaQty': self.recommended_fba_qty,
            'urgency': self.urgency.value,
            'stockoutDate': _iso(self.stockout_date),
            'daysUntilStockout': self.days_until_stockout,
            'purchaseByDate': _iso(self.purchase_by_date),
            'daysToPurchase': self.days_to_purchase,
            'confidence': self.confidence,
            'reasoning': list(self.reasoning),
            'velocity': self.velocity.to_dict() if self.velocity else None,
            'seasonalityFactor': self.seasonality_factor,
            'leadTimeDays': self.lead_time_days,
            'fbaShipByDate': _iso(self.fba_ship_by_date),
        }


@dataclass(frozen=True)
class ForecastOk:
    result: ForecastResult

    @property
    def sku(self) -> str:
        return self.result.sku

    is_ok = True


@dataclass(frozen=True)
class Skipped:
    """A SKU that could not be forecast, with the reason shown to users."""
    sku: str
    reason: str

    is_ok = False


SkuOutcome = Union[ForecastOk, Skipped]


@dataclass(frozen=True)
class ForecastBatch:
    as_of: date
    outcomes: Mapping[str, SkuOutcome]
    replenishment: ReplenishmentPlan

    @property
    def results(self) -> Dict[str, ForecastResult]:
        return {sku: outcome.result for sku, outcome in self.outcomes.items() if outcome.is_ok}

    @property
    def skipped(self) -> Dict[str, str]:
        return {sku: outcome.reason for sku, outcome in self.outcomes.items() if not outcome.is_ok}

    def to_dict(self) -> Dict:
        return {
            'asOf': self.as_of.isoformat(),
            'results': {sku: result.to_dict() for sku, result in sorted(self.results.items())},
            'skipped': dict(sorted(self.skipped.items())),
            'replenishment': self.replenishment.to_dict(),
        }


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None
