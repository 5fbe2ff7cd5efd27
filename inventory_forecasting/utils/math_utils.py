# inventory_forecasting/utils/math_utils.py
import math
from typing import Optional, Sequence

import numpy as np


def round_to_multiple(value: float, multiple: Optional[float]) -> float:
    """Round a value up to the next multiple.

    Args:
        value: Value to round
        multiple: Multiple to round to

    Returns:
        Rounded value
    """
    if not multiple or multiple <= 0:
        return value

    return math.ceil(value / multiple) * multiple


def safe_floor_divide(numerator: float, denominator: float) -> Optional[int]:
    """Floor of numerator / denominator, or None when the denominator is zero."""
    if denominator == 0:
        return None
    return int(math.floor(numerator / denominator))


def ceil_units(value: float) -> int:
    """Round a unit quantity up, tolerating float noise like 70.00000000001."""
    return int(math.ceil(round(value, 9)))


def calculate_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation of a demand series.

    Args:
        values: Daily demand values

    Returns:
        Standard deviation (0.0 for an empty series)
    """
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def relative_difference(a: float, b: float) -> float:
    """|a - b| scaled by the larger of the two, in [0, 1]."""
    largest = max(abs(a), abs(b))
    if largest == 0:
        return 0.0
    return abs(a - b) / largest


def percent_change(current: float, baseline: float) -> float:
    """Percentage change from baseline to current, 0.0 when baseline is 0."""
    if baseline == 0:
        return 0.0
    return (current - baseline) / baseline * 100.0
