"""Rounding helpers.

Python's built-in ``round`` uses banker's rounding (``round(6.5) == 6``).
Scores, percentages and rollups here round half up instead, so 6.5 becomes 7
and -20.5 becomes -20.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    return int(math.floor(value + 0.5))


def round_to_tenth(value: float) -> float:
    """Round to one decimal place for display (multiply, round, divide)."""
    return round_half_up(value * 10) / 10


def round_to_hundredth(value: float) -> float:
    return round_half_up(value * 100) / 100
