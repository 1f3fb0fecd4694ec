"""Lune Usage Billing — Duration parsing and formatting.

Durations arrive from the device feed as ``H:MM:SS`` or ``MM:SS`` strings
and are billed in fractional minutes.
"""

import math
import re
from typing import Optional

_LEADING_DIGITS = re.compile(r"^\s*(\d+)")

# Longer digit runs are not real durations
MAX_FIELD_DIGITS = 9


def _field(value: str) -> Optional[int]:
    """Read the leading run of digits of a duration field, 0 if there is none.

    Returns None when the run is too long to be a duration.
    """
    match = _LEADING_DIGITS.match(value)
    if not match:
        return 0
    digits = match.group(1)
    if len(digits) > MAX_FIELD_DIGITS:
        return None
    return int(digits)


def _round2(value: float) -> float:
    """Round half-up to two decimals."""
    return math.floor(value * 100 + 0.5) / 100


def parse_duration(duration) -> float:
    """Convert a duration string to minutes.

    Args:
        duration: ``"H:MM:SS"`` or ``"MM:SS"``. Seconds above 59 are
            converted rather than rejected.

    Returns:
        Fractional minutes rounded to 2 decimals. Empty, missing or
        unrecognised input gives 0.0.
    """
    if not duration or not isinstance(duration, str):
        return 0.0

    fields = [_field(p) for p in duration.split(":")]
    if None in fields:
        return 0.0

    if len(fields) == 3:
        hours, mins, seconds = fields
        minutes = hours * 60 + mins + seconds / 60
    elif len(fields) == 2:
        mins, seconds = fields
        minutes = mins + seconds / 60
    else:
        return 0.0

    return _round2(minutes)


def _as_minutes(minutes) -> float:
    """Negative, non-finite or non-numeric input counts as 0."""
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        return 0.0
    try:
        minutes = float(minutes)
    except OverflowError:
        return 0.0
    if not math.isfinite(minutes) or minutes < 0:
        return 0.0
    return minutes


def format_duration(minutes) -> str:
    """Format minutes as ``"12m 30s"`` below an hour or ``"1h 5m"`` above.

    Zero-valued trailing units are dropped.
    """
    minutes = _as_minutes(minutes)

    if minutes < 60:
        mins = math.floor(minutes)
        secs = math.floor((minutes - mins) * 60 + 0.5)
        if secs >= 60:
            mins += 1
            secs = 0
        if mins >= 60:
            return "1h"
        return f"{mins}m {secs}s" if secs > 0 else f"{mins}m"

    hours = math.floor(minutes / 60)
    remaining = math.floor(minutes % 60)
    return f"{hours}h {remaining}m" if remaining > 0 else f"{hours}h"


def format_clock(minutes) -> str:
    """Format minutes as ``"M:SS"``."""
    minutes = _as_minutes(minutes)
    mins = math.floor(minutes)
    secs = math.floor((minutes - mins) * 60 + 0.5)
    if secs >= 60:
        mins += 1
        secs = 0
    return f"{mins}:{secs:02d}"
