"""Delivery-time helpers — pure functions, no I/O.

Delivery times are stored as zero-padded "HH:MM" strings and compared by
string equality against the current local minute.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

# ASCII digits only: str.isdigit() also accepts superscripts and other scripts.
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})", re.ASCII)


def _split(text: str) -> tuple[int, int] | None:
    match = _TIME_RE.fullmatch(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def is_valid_time_format(text: str) -> bool:
    """Return True for 'HH:MM' (or 'H:MM') with 0 <= HH < 24 and 0 <= MM < 60."""
    parts = _split(text)
    if parts is None:
        return False
    hours, minutes = parts
    return hours < 24 and minutes < 60


def normalize_time(text: str) -> str:
    """Validate and zero-pad a delivery time: '8:05' -> '08:05'.

    Raises ValueError on malformed input.
    """
    text = text.strip()
    if not is_valid_time_format(text):
        raise ValueError(f"Invalid time format: {text!r} (expected HH:MM)")
    hours, minutes = _split(text)
    return f"{hours:02d}:{minutes:02d}"


def format_hhmm(moment: datetime) -> str:
    """Format a datetime as the 'HH:MM' string used for schedule matching."""
    return moment.strftime("%H:%M")


def seconds_until_next_minute(moment: datetime) -> float:
    """Seconds from `moment` to the start of the following minute, in (0, 60]."""
    next_minute = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return (next_minute - moment).total_seconds()
