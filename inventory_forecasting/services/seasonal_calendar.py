# inventory_forecasting/services/seasonal_calendar.py
import json
import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import Session

from inventory_forecasting.core.records import ALL_CATEGORIES, PlannedSpike, RecurringSeasonalEvent
from inventory_forecasting.core.seasonality import DEFAULT_SEASONAL_CALENDAR
from inventory_forecasting.exceptions import InvalidConfigurationError, NotFoundError
from inventory_forecasting.models import PlannedSpikeRecord, SeasonalEventRecord
from inventory_forecasting.utils.math_utils import percent_change
from inventory_forecasting.utils.validation import validate_planned_spike

logger = logging.getLogger(__name__)


def _categories_text(categories) -> str:
    if categories == ALL_CATEGORIES:
        return ''
    return ','.join(sorted(categories))


def initialize_seasonal_events(
    session: Session,
    events: Iterable[RecurringSeasonalEvent] = DEFAULT_SEASONAL_CALENDAR
) -> Dict:
    """Seed the seasonal calendar, updating events that already exist by name.

    Learned multipliers and active flags on existing events are preserved.

    Args:
        session: Database session
        events: Calendar entries to store

    Returns:
        Dictionary with created/updated counts
    """
    created = 0
    updated = 0

    for event in events:
        record = session.query(SeasonalEventRecord).filter(
            SeasonalEventRecord.name == event.name
        ).first()

        if record is None:
            record = SeasonalEventRecord(name=event.name, is_active=True)
            session.add(record)
            created += 1
        else:
            updated += 1

        record.event_type = event.event_type
        record.start_month = event.start_month
        record.start_day = event.start_day
        record.end_month = event.end_month
        record.end_day = event.end_day
        record.base_multiplier = event.base_multiplier
        record.categories = _categories_text(event.applies_to_categories)
        record.exclusive = event.exclusive
        record.sku_multipliers = json.dumps(dict(event.sku_multipliers)) if event.sku_multipliers else None

    session.flush()
    logger.info(f"Initialized seasonal calendar: {created} created, {updated} updated")

    return {
        'success': True,
        'created': created,
        'updated': updated
    }


def update_learned_multiplier(session: Session, event_id: int, multiplier: float) -> SeasonalEventRecord:
    """Store the multiplier observed for an event in past sales.

    Raises:
        NotFoundError: if the event does not exist
        InvalidConfigurationError: if the multiplier is not positive
    """
    if multiplier <= 0:
        raise InvalidConfigurationError(
            f"Learned multiplier must be positive, got {multiplier}",
            details={'learned_multiplier': multiplier}
        )

    record = session.get(SeasonalEventRecord, event_id)
    if record is None:
        raise NotFoundError(f"Seasonal event {event_id} not found")

    record.learned_multiplier = multiplier
    session.flush()
    logger.info(f"Learned multiplier for '{record.name}' set to {multiplier:.2f}")
    return record


def schedule_planned_spike(session: Session, spike: PlannedSpike, notes: Optional[str] = None) -> PlannedSpikeRecord:
    """Store a planned lift for one SKU.

    Raises:
        InvalidConfigurationError: if the lift or its dates are unusable
    """
    errors = validate_planned_spike(spike)
    if errors:
        summary = '; '.join(f"{key}: {value}" for key, value in sorted(errors.items()))
        raise InvalidConfigurationError(f"Invalid planned spike: {summary}", details=errors)

    record = PlannedSpikeRecord(
        sku=spike.sku,
        spike_type=spike.spike_type,
        lift_multiplier=spike.lift_multiplier,
        start_date=spike.start_date,
        end_date=spike.end_date,
        notes=notes,
        status='scheduled'
    )
    session.add(record)
    session.flush()
    logger.info(
        f"Planned {spike.spike_type} for {spike.sku}: x{spike.lift_multiplier:.2f} "
        f"from {spike.start_date} to {spike.end_date}"
    )
    return record


def record_spike_outcome(session: Session, spike_id: int, actual_lift: float) -> PlannedSpikeRecord:
    """Close a planned lift with the lift actually observed.

    Variance is the percent difference of the actual lift from the plan.

    Raises:
        NotFoundError: if the planned spike does not exist
        InvalidConfigurationError: if the actual lift is negative
    """
    if actual_lift < 0:
        raise InvalidConfigurationError(
            f"Actual lift cannot be negative, got {actual_lift}",
            details={'actual_lift': actual_lift}
        )

    record = session.get(PlannedSpikeRecord, spike_id)
    if record is None:
        raise NotFoundError(f"Planned spike {spike_id} not found")

    record.actual_lift = actual_lift
    record.variance = round(percent_change(actual_lift, record.lift_multiplier), 2)
    record.status = 'completed'
    session.flush()
    logger.info(f"Spike {spike_id} for {record.sku} closed: actual x{actual_lift:.2f}, variance {record.variance}%")
    return record
