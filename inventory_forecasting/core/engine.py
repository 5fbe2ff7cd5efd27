# inventory_forecasting/core/engine.py
"""Forecasting run orchestration.

A run is a pure function of its inputs: the per-SKU pipeline (history,
velocity, seasonality, buffer, purchase, stockout) fans out over a worker
pool, then a single reduction step allocates FBA capacity across SKUs.
"""
import logging
import os
from collections import defaultdict
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from inventory_forecasting.core.purchase import recommend_purchase
from inventory_forecasting.core.records import (
    ForecastBatch, ForecastConfig, ForecastOk, ForecastResult, InventorySnapshot, PlannedSpike,
    RecurringSeasonalEvent, ReplenishmentCandidate, SalesObservation, SeasonalEvent,
    Skipped, SkuPolicy
)
from inventory_forecasting.core.replenishment import build_replenishment_candidate, plan_replenishment
from inventory_forecasting.core.safety_stock import calculate_buffer
from inventory_forecasting.core.sales_history import aggregate_sales_history
from inventory_forecasting.core.seasonality import adjust_velocity, resolve_recurring_events
from inventory_forecasting.core.stockout import predict_stockout
from inventory_forecasting.core.velocity import calculate_velocity_profile
from inventory_forecasting.exceptions import (
    CalculationError, ForecastCancelledError, InconsistentSnapshotError, InvalidConfigurationError
)
from inventory_forecasting.utils.math_utils import calculate_std_dev
from inventory_forecasting.utils.validation import (
    validate_planned_spike, validate_sku_policy, validate_snapshot
)

logger = logging.getLogger(__name__)

ObservationInput = Union[Mapping[str, Iterable[SalesObservation]], Iterable[SalesObservation]]
EventInput = Iterable[Union[SeasonalEvent, RecurringSeasonalEvent]]


@dataclass(frozen=True)
class SkuTask:
    """Everything one SKU's pipeline needs; picklable for worker processes."""
    sku: str
    as_of: date
    config: ForecastConfig
    observations: Tuple[SalesObservation, ...]
    snapshot: Optional[InventorySnapshot]
    policy: SkuPolicy
    events: Tuple[SeasonalEvent, ...]
    spikes: Tuple[PlannedSpike, ...] = ()


@dataclass(frozen=True)
class SkuForecast:
    """Per-SKU output waiting for the replenishment reduction."""
    result: ForecastResult
    candidate: ReplenishmentCandidate


def check_snapshot(sku: str, snapshot: Optional[InventorySnapshot]) -> InventorySnapshot:
    """Reject missing or impossible inventory data for one SKU.

    Raises:
        InconsistentSnapshotError
    """
    if snapshot is None:
        raise InconsistentSnapshotError(f"No inventory snapshot for {sku}")

    errors = validate_snapshot(snapshot)
    if errors:
        detail = ', '.join(f"{field} {problem.lower()}" for field, problem in sorted(errors.items()))
        raise InconsistentSnapshotError(f"Inconsistent inventory snapshot for {sku}: {detail}", details=errors)

    return snapshot


def forecast_sku(task: SkuTask) -> Union[SkuForecast, Skipped]:
    """Run the per-SKU pipeline.

    Data problems are returned as Skipped so one bad SKU never fails a batch.
    """
    try:
        return _forecast_sku(task)
    except (InconsistentSnapshotError, CalculationError) as e:
        logger.warning(f"Skipping {task.sku}: {e.message}")
        return Skipped(sku=task.sku, reason=e.message)
    except ArithmeticError as e:
        reason = f"Calculation failed for {task.sku}: {e}"
        logger.warning(f"Skipping {task.sku}: {reason}")
        return Skipped(sku=task.sku, reason=reason)


def _forecast_sku(task: SkuTask) -> SkuForecast:
    sku, as_of, config, policy = task.sku, task.as_of, task.config, task.policy
    snapshot = check_snapshot(sku, task.snapshot)
    reasoning: List[str] = []

    history = aggregate_sales_history(sku, task.observations, as_of, policy.first_sale_date)
    profile = calculate_velocity_profile(history, config)

    if not history.has_history:
        reasoning.append("No sales history: velocity treated as 0")
    else:
        reasoning.append(
            f"Velocity 7d {profile.velocity_7d:.2f}, 30d {profile.velocity_30d:.2f}, "
            f"90d {profile.velocity_90d:.2f} units/day; trend {profile.trend}"
        )
        if profile.low_confidence_windows:
            windows = ', '.join(f"{window}d" for window in profile.low_confidence_windows)
            reasoning.append(
                f"Only {history.history_days} days of history; {windows} windows are partial"
            )
        if profile.is_spiking:
            reasoning.append(
                f"Sales spike: 7-day velocity is x{profile.spike_multiplier:.2f} the 30-day baseline"
            )

    lead_time_days = policy.effective_lead_time(config)
    safety_stock_days = policy.effective_safety_stock_days(config)

    adjustment = adjust_velocity(
        profile, as_of, task.events, config, lead_time_days,
        category=policy.category, spikes=task.spikes
    )
    adjusted_velocity = adjustment.adjusted_velocity
    reasoning.extend(adjustment.reasoning)

    safety_stock, reorder_point, buffer_note = calculate_buffer(
        adjusted_velocity,
        lead_time_days,
        safety_stock_days,
        method=config.safety_stock_method,
        demand_std_dev=calculate_std_dev(history.daily_units[-30:]),
        service_level=config.service_level,
        lead_time_std_dev=policy.lead_time_std_dev
    )
    reasoning.append(buffer_note)

    purchase = recommend_purchase(
        reorder_point,
        safety_stock,
        adjusted_velocity,
        snapshot,
        lead_time_days,
        as_of,
        moq=policy.moq,
        round_to_nearest=config.round_to_nearest
    )
    reasoning.extend(purchase.reasoning)

    stockout = predict_stockout(snapshot.on_hand, adjusted_velocity, profile, as_of, config)
    reasoning.extend(stockout.reasoning)

    result = ForecastResult(
        sku=sku,
        adjusted_velocity=adjusted_velocity,
        reorder_point=reorder_point,
        safety_stock=safety_stock,
        recommended_order_qty=purchase.recommended_order_qty,
        recommended_fba_qty=0,
        urgency=purchase.urgency,
        confidence=stockout.confidence,
        reasoning=tuple(reasoning),
        stockout_date=stockout.stockout_date,
        days_until_stockout=stockout.days_until_stockout,
        purchase_by_date=purchase.purchase_by_date,
        days_to_purchase=purchase.days_to_purchase,
        velocity=profile,
        seasonality_factor=adjustment.uplift_factor,
        lead_time_days=lead_time_days,
    )

    candidate = build_replenishment_candidate(sku, adjusted_velocity, snapshot, config.fba_target_days)

    return SkuForecast(result=result, candidate=candidate)


def _group_observations(observations: ObservationInput) -> Dict[str, List[SalesObservation]]:
    grouped: Dict[str, List[SalesObservation]] = defaultdict(list)
    if isinstance(observations, Mapping):
        for rows in observations.values():
            for observation in rows:
                grouped[observation.sku].append(observation)
    else:
        for observation in observations:
            grouped[observation.sku].append(observation)
    return grouped


def _resolve_events(
    events: EventInput,
    as_of: date,
    horizon_days: float
) -> Tuple[SeasonalEvent, ...]:
    dated = []
    recurring = []
    for event in events:
        if isinstance(event, RecurringSeasonalEvent):
            recurring.append(event)
        else:
            dated.append(event)

    if recurring:
        dated.extend(resolve_recurring_events(
            recurring, as_of, as_of + timedelta(days=int(horizon_days) + 1)
        ))

    return tuple(sorted(dated, key=lambda e: (e.start_date, e.name)))


def validate_run(
    config: ForecastConfig,
    policies: Mapping[str, SkuPolicy],
    spikes: Iterable[PlannedSpike] = ()
) -> None:
    """Fail fast on any policy problem before a single SKU is processed.

    Raises:
        InvalidConfigurationError
    """
    config.validate()

    errors = {}
    for sku, policy in sorted(policies.items()):
        for field, problem in validate_sku_policy(policy).items():
            errors[f"{sku}.{field}"] = problem
    for index, spike in enumerate(spikes):
        for field, problem in validate_planned_spike(spike).items():
            errors[f"{spike.sku}.spike{index}.{field}"] = problem

    if errors:
        summary = '; '.join(f"{key}: {value}" for key, value in sorted(errors.items()))
        raise InvalidConfigurationError(f"Invalid SKU policy: {summary}", details=errors)


def _check_cancelled(cancel_event, completed: int, total: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ForecastCancelledError(
            f"Forecast run cancelled after {completed} of {total} SKUs",
            details={'completed': completed, 'total': total}
        )


def _run_tasks(tasks: Sequence[SkuTask], workers: int, cancel_event) -> List[Union[SkuForecast, Skipped]]:
    outcomes = []

    if workers <= 1 or len(tasks) <= 1:
        for task in tasks:
            _check_cancelled(cancel_event, len(outcomes), len(tasks))
            outcomes.append(forecast_sku(task))
        return outcomes

    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(forecast_sku, task) for task in tasks]
        try:
            for future in futures:
                _check_cancelled(cancel_event, len(outcomes), len(tasks))
                outcomes.append(future.result())
        except ForecastCancelledError:
            for future in futures:
                future.cancel()
            raise

    return outcomes


def compute_forecast(
    skus: Iterable[str],
    as_of: date,
    config: ForecastConfig,
    observations: ObservationInput,
    snapshots: Mapping[str, InventorySnapshot],
    events: EventInput = (),
    policies: Optional[Mapping[str, SkuPolicy]] = None,
    spikes: Iterable[PlannedSpike] = (),
    cancel_event=None
) -> ForecastBatch:
    """Forecast every SKU and plan today's FBA replenishment.

    Args:
        skus: SKUs to forecast
        as_of: Forecast date
        config: Forecast configuration
        observations: Sales observations, keyed by SKU or as one flat sequence
        snapshots: Inventory snapshot per SKU
        events: Seasonal calendar (dated or recurring entries)
        policies: Per-SKU supplier/buffer settings
        spikes: Planned per-SKU lifts
        cancel_event: Optional object with ``is_set()``, checked between SKUs

    Returns:
        ForecastBatch with one outcome per SKU (ForecastOk or Skipped)

    Raises:
        InvalidConfigurationError: before any SKU is processed
        ForecastCancelledError: if cancel_event is set during the run
    """
    skus = sorted(set(skus))
    policies = {sku: (policies or {}).get(sku) or SkuPolicy(sku=sku) for sku in skus}

    spikes = tuple(spikes)
    validate_run(config, policies, spikes)

    grouped = _group_observations(observations)
    longest_lead_time = max(
        [policy.effective_lead_time(config) for policy in policies.values()] or [0]
    )
    calendar = _resolve_events(
        events, as_of, max(longest_lead_time, config.seasonality_lookahead_days)
    )

    tasks = [
        SkuTask(
            sku=sku,
            as_of=as_of,
            config=config,
            observations=tuple(grouped.get(sku, ())),
            snapshot=snapshots.get(sku),
            policy=policies[sku],
            events=calendar,
            spikes=tuple(spike for spike in spikes if spike.sku == sku),
        )
        for sku in skus
    ]

    workers = min(config.max_workers, os.cpu_count() or 1)
    logger.info(f"Forecasting {len(tasks)} SKUs as of {as_of} with {workers} worker(s)")

    per_sku = _run_tasks(tasks, workers, cancel_event)

    # Barrier: capacity is only shared once every SKU has been forecast
    forecasts = [outcome for outcome in per_sku if isinstance(outcome, SkuForecast)]
    plan = plan_replenishment([f.candidate for f in forecasts], as_of, config)

    outcomes = {}
    for outcome in per_sku:
        if isinstance(outcome, Skipped):
            outcomes[outcome.sku] = outcome
            continue

        line = plan.lines[outcome.result.sku]
        result = replace(
            outcome.result,
            recommended_fba_qty=line.allocated,
            fba_ship_by_date=line.ship_by_date,
            reasoning=outcome.result.reasoning + line.reasoning,
        )
        outcomes[result.sku] = ForecastOk(result)

    batch = ForecastBatch(as_of=as_of, outcomes=outcomes, replenishment=plan)

    logger.info(
        f"Forecast complete: {len(batch.results)} forecast, {len(batch.skipped)} skipped, "
        f"{plan.ship_today_total} units to ship to FBA today"
    )

    return batch
