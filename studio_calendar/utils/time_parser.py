import re
from typing import NamedTuple, Optional

from studio_calendar.config import END_HOUR, SLOT_MINUTES, START_HOUR

_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?\s*([AP]M)$", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class ClockTime(NamedTuple):
    hour: int
    minute: int

    @property
    def minutes(self) -> int:
        return self.hour * 60 + self.minute

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


def parse_time(raw) -> Optional[ClockTime]:
    """
    Parse a session time string into a 24-hour ClockTime.
    Accepted: "9:30 AM", "12:05pm", "19:15", "19:15:00"
    Returns None for anything else, including out-of-range values like "13:99".
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None

    m = _TWELVE_HOUR.match(s)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if not (1 <= hour <= 12) or minute > 59:
            return None
        period = m.group(3).upper()
        if period == "PM" and hour != 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
        return ClockTime(hour, minute)

    m = _TWENTY_FOUR_HOUR.match(s)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if hour > 23 or minute > 59:
            return None
        return ClockTime(hour, minute)

    return None


def in_display_range(clock: ClockTime, start_hour: int = START_HOUR, end_hour: int = END_HOUR) -> bool:
    return start_hour <= clock.hour < end_hour


def format_12h(hour: int, minute: int) -> str:
    period = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {period}"


def canonical_time(raw) -> str:
    """'HH:MM' for parseable times; otherwise the lower-cased input."""
    clock = parse_time(raw)
    if clock is not None:
        return clock.label
    return str(raw or "").strip().lower()


def time_slots(start_hour: int = START_HOUR, end_hour: int = END_HOUR, step: int = SLOT_MINUTES) -> list[ClockTime]:
    return [ClockTime(m // 60, m % 60) for m in range(start_hour * 60, end_hour * 60, step)]
