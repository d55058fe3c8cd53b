# File: utils/math_utils.py
"""Math and calculation utilities for the medal tracker.

Functions:
    - is_number: Finite int/float check (bools excluded)
    - calculate_percentage: Progress percentage calculations
    - within_bounds: Inclusive range check with optional upper bound
"""

from __future__ import annotations

import math
from typing import Any

DATA_FLOAT_PRECISION = 2


def is_number(value: Any) -> bool:
    """Return True for finite ints/floats. Booleans are not numbers here."""
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value)


def calculate_percentage(
    current: float,
    target: float,
    precision: int | None = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate a percentage of ``target``.

    Args:
        current: Achieved value
        target: Maximum/total value
        precision: Decimal places for rounding, or None for the raw value

    Returns:
        Percentage (0-100 for current <= target), or 0.0 if target is 0

    Examples:
        calculate_percentage(50, 100) → 50.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0  # Division by zero protection
    """
    if target <= 0:
        return 0.0
    percent = (current / target) * 100
    if precision is None:
        return percent
    return round(percent, precision)


def within_bounds(value: Any, min_val: float, max_val: float | None) -> bool:
    """Inclusive bounds check; ``max_val=None`` means no upper bound."""
    if not is_number(value):
        return False
    if value < min_val:
        return False
    return max_val is None or value <= max_val
