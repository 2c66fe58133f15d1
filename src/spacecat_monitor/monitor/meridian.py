"""Time-to-meridian-flip formatting."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _truncate(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= _I32_MAX:
        return _I32_MAX
    if value <= _I32_MIN:
        return _I32_MIN
    return int(value)


def format_short(hours: float) -> str:
    """Render hours as zero-padded ``HH:MM``, truncating toward zero.

    >>> format_short(1.99999)
    '01:59'
    """
    total_minutes = _truncate(hours * 60)
    whole_hours, minutes = divmod(abs(total_minutes), 60)
    sign = -1 if total_minutes < 0 else 1
    return f"{sign * whole_hours:02d}:{sign * minutes:02d}"


def format_with_clock(hours: float, now: datetime | None = None) -> str:
    """Short form plus the local wall-clock time at which the flip happens."""
    short = format_short(hours)
    reference = now if now is not None else datetime.now().astimezone()
    try:
        flip_at = reference + timedelta(seconds=_truncate(hours * 3600))
    except OverflowError:
        return short
    return f"{short} (at {flip_at.strftime('%H:%M:%S')})"
