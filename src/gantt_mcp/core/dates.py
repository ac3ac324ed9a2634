"""Calendar-date helpers shared by the summary cascade and the insertion engine.

Task dates are stored as ISO calendar-date strings (``YYYY-MM-DD``). Empty or
unparseable values are legal at rest and simply yield ``None`` here.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Optional


def parse_date(value: Any) -> Optional[date]:
    """Parse a stored task date.

    Accepts ``YYYY-MM-DD`` and full ISO timestamps (the date part is kept).

    Returns:
        The calendar date, or None for empty, non-string or invalid values
        (including impossible dates such as ``2025-02-30``).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def to_iso_date(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return value.isoformat()


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def inclusive_day_count(start: date, end: date) -> int:
    """Number of calendar days from start to end, both ends included.

    A one-day task (start == end) has a duration of 1.
    """
    return (end - start).days + 1
