"""Working-day calculator — chargeable days for a leave date range."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str, None]

# Monday=0 … Friday=4
_WEEKEND = {5, 6}


def parse_calendar_date(value: DateLike) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a calendar date.

    Time of day is dropped. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def count_working_days(start: date, end: date) -> int:
    """Number of Monday–Friday dates in the inclusive range [start, end]."""
    if end < start:
        return 0
    total = 0
    current = start
    while current <= end:
        if current.weekday() not in _WEEKEND:
            total += 1
        current += timedelta(days=1)
    return total


def compute_chargeable_days(
    start: DateLike,
    end: DateLike,
    manual_override: Optional[int] = None,
) -> int:
    """Days charged against quota for one request.

    A positive ``manual_override`` wins unconditionally. Otherwise weekdays in
    the inclusive range are counted; unparseable dates or ``end < start``
    yield 0.
    """
    if _is_positive_int(manual_override):
        return manual_override

    start_date = parse_calendar_date(start)
    end_date = parse_calendar_date(end)
    if start_date is None or end_date is None:
        return 0
    return count_working_days(start_date, end_date)
