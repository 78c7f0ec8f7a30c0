"""Hours/minutes arithmetic and minute clamping."""

from __future__ import annotations

import math
from typing import Any

MAX_HOURS = 24
MAX_MINUTES = 59
MAX_MINUTES_PER_DAY = MAX_HOURS * 60


def to_minutes(hours: int, minutes: int) -> int:
    """Convert hours and minutes to total minutes. No bounds checking."""
    return hours * 60 + minutes


def from_minutes(total: int) -> tuple[int, int]:
    """Split total minutes into (hours, minutes)."""
    if total < 0:
        raise ValueError(f"Negative minute total: {total}")
    return divmod(int(total), 60)


def clamp_minutes(value: Any, maximum: int = MAX_MINUTES_PER_DAY) -> int:
    """Clamp a candidate minute value into [0, maximum].

    Floats are rounded half-up. None, NaN, infinities and anything
    non-numeric become 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        # exact; float() overflows on very large ints
        return max(0, min(value, maximum))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, min(round_half_up(number), maximum))


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (halves go up, not to even)."""
    if isinstance(value, int):
        return value
    return math.floor(value + 0.5)


def format_duration(total: int) -> str:
    hours, minutes = from_minutes(total)
    return f"{hours}h {minutes}m"
