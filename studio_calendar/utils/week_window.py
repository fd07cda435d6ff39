from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from studio_calendar.config import WEEK_STARTS_ON

MONDAY = 0
SUNDAY = 6


def _as_date(d) -> date:
    return d.date() if isinstance(d, datetime) else d


def week_start(reference: date, week_starts_on: int = WEEK_STARTS_ON) -> date:
    """Return the first day of the week containing `reference`."""
    reference = _as_date(reference)
    if not 0 <= week_starts_on <= 6:
        raise ValueError(f"week_starts_on must be a weekday number 0-6, got {week_starts_on}")
    offset = (reference.weekday() - week_starts_on) % 7
    return reference - timedelta(days=offset)


def week_days(reference: date, week_starts_on: int = WEEK_STARTS_ON) -> list[date]:
    first = week_start(reference, week_starts_on)
    return [first + timedelta(days=i) for i in range(7)]


def day_index(d: Optional[date], days: Sequence[date]) -> Optional[int]:
    if d is None:
        return None
    d = _as_date(d)
    for i, day in enumerate(days):
        if day == d:
            return i
    return None


def shift_week(start: date, weeks: int) -> date:
    return _as_date(start) + timedelta(weeks=weeks)
