# inventory_forecasting/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import List, Optional, Union


def convert_to_date(value: Union[date, datetime, str]) -> date:
    """Convert a date, datetime or ISO string to a date.

    Args:
        value: Value to convert

    Returns:
        Date object
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value[:10], '%Y-%m-%d').date()
    raise ValueError(f"Cannot convert {value!r} to a date")


def add_days(start: date, days: Optional[int]) -> Optional[date]:
    """Offset a date by a number of days, propagating None.

    Offsets that land before date.min or past date.max also return None.
    """
    if days is None:
        return None
    if days > (date.max - start).days or days < (date.min - start).days:
        return None
    return start + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Number of calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def trailing_window_start(as_of: date, days: int) -> date:
    """First day of the trailing window of ``days`` days ending on ``as_of``."""
    return as_of - timedelta(days=days - 1)


def years_touched(start: date, end: date) -> List[int]:
    """Calendar years overlapped by [start, end], plus the year before start.

    The previous year is included so events crossing the year end (e.g.
    Dec 15 - Jan 15) are found when the horizon starts in January.
    """
    return list(range(start.year - 1, end.year + 1))
