import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, NamedTuple, Optional

import pandas as pd

from studio_calendar.config import WEEKDAYS
from studio_calendar.utils.cleaners import clean_class, clean_day, clean_location


# -----------------------------
# Coercion helpers
# -----------------------------
def _to_count(x) -> int:
    if x is None:
        return 0
    if isinstance(x, bool):
        return int(x)
    if isinstance(x, (int, float)):
        if not math.isfinite(x):
            return 0
        return max(int(x), 0)
    s = str(x).strip().replace(",", "")
    if not s:
        return 0
    try:
        val = float(s)
    except ValueError:
        return 0
    # "inf", "nan" and "1e999" all parse as floats
    if not math.isfinite(val):
        return 0
    return max(int(val), 0)


def _to_amount(x) -> float:
    if x is None:
        return 0.0
    if isinstance(x, (int, float)) and not isinstance(x, bool):
        if x != x or x in (float("inf"), float("-inf")):
            return 0.0
        return max(float(x), 0.0)
    s = str(x).strip().replace(",", "")
    for sym in ("₹", "$", "£", "€"):
        s = s.replace(sym, "")
    if not s:
        return 0.0
    try:
        val = float(s)
    except ValueError:
        return 0.0
    if val != val or val in (float("inf"), float("-inf")):
        return 0.0
    return max(val, 0.0)


def _to_date(x) -> Optional[date]:
    if x is None:
        return None
    if isinstance(x, datetime):
        return x.date()
    if isinstance(x, date):
        return x
    s = str(x).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        pass
    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.date()


def _first(row: Mapping[str, Any], *keys: str):
    for k in keys:
        v = row.get(k)
        if v is None:
            continue
        if isinstance(v, float) and v != v:
            continue
        if str(v).strip() == "":
            continue
        return v
    return None


def _text(row: Mapping[str, Any], *keys: str) -> str:
    v = _first(row, *keys)
    return "" if v is None else str(v).strip()


# -----------------------------
# Data model
# -----------------------------
@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    date: Optional[date]
    day: str                     # Monday/Tuesday...
    time: str                    # raw, "9:30 AM" or "19:15:00"
    class_name: str
    class_type: str
    trainer_name: str
    location: str
    capacity: int = 0
    checked_in: int = 0
    booked: int = 0
    late_cancelled: int = 0
    waitlisted: int = 0
    non_paid: int = 0
    revenue: float = 0.0
    status: Optional[str] = None        # Active/Inactive, computed
    fill_rate: Optional[float] = None   # 0-100, computed

    @staticmethod
    def create(
        *,
        session_id: str,
        date=None,
        day: str = "",
        time: str = "",
        class_name: str = "",
        class_type: str = "",
        trainer_name: str = "",
        location: str = "",
        capacity=0,
        checked_in=0,
        booked=0,
        late_cancelled=0,
        waitlisted=0,
        non_paid=0,
        revenue=0.0,
        status: Optional[str] = None,
    ) -> "SessionRecord":
        d = _to_date(date)
        cleaned_day = clean_day(day)
        if not cleaned_day and d is not None:
            cleaned_day = WEEKDAYS[d.weekday()]
        return SessionRecord(
            session_id=str(session_id or "").strip(),
            date=d,
            day=cleaned_day,
            time=str(time or "").strip(),
            class_name=clean_class(class_name),
            class_type=str(class_type or "").strip(),
            trainer_name=str(trainer_name or "").strip(),
            location=clean_location(location),
            capacity=_to_count(capacity),
            checked_in=_to_count(checked_in),
            booked=_to_count(booked),
            late_cancelled=_to_count(late_cancelled),
            waitlisted=_to_count(waitlisted),
            non_paid=_to_count(non_paid),
            revenue=_to_amount(revenue),
            status=status or None,
        )

    @staticmethod
    def from_row(row: Mapping[str, Any]) -> "SessionRecord":
        """
        Accepts either the snake_case SESSIONS_HEADERS or the studio export's
        own column names (SessionID, CheckedIn, LateCancelled, ...).
        """
        trainer = _text(row, "trainer_name", "Trainer", "TeacherName")
        if not trainer:
            trainer = " ".join(p for p in (_text(row, "FirstName"), _text(row, "LastName")) if p)
        return SessionRecord.create(
            session_id=_text(row, "session_id", "SessionID", "UniqueID1"),
            date=_first(row, "date", "Date"),
            day=_text(row, "day", "Day", "DayOfWeek"),
            time=_text(row, "time", "Time"),
            class_name=_text(row, "class_name", "Class", "SessionName", "CleanedClass"),
            class_type=_text(row, "class_type", "Type"),
            trainer_name=trainer,
            location=_text(row, "location", "Location"),
            capacity=_first(row, "capacity", "Capacity"),
            checked_in=_first(row, "checked_in", "CheckedIn"),
            booked=_first(row, "booked", "Booked"),
            late_cancelled=_first(row, "late_cancelled", "LateCancelled"),
            waitlisted=_first(row, "waitlisted", "Waitlisted"),
            non_paid=_first(row, "non_paid", "NonPaid", "Complimentary"),
            revenue=_first(row, "revenue", "Revenue"),
            status=_text(row, "status", "Status") or None,
        )

    @property
    def session_fill_rate(self) -> float:
        return (self.checked_in / self.capacity) * 100 if self.capacity > 0 else 0.0


@dataclass(frozen=True)
class PlacedClass:
    session: SessionRecord
    day_index: int               # 0-6 relative to the displayed week's first day
    start_minutes: int           # minutes since midnight
    duration_minutes: int
    overlap_position: int = 0
    overlap_group_size: int = 1

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    @property
    def start_label(self) -> str:
        return f"{self.start_minutes // 60:02d}:{self.start_minutes % 60:02d}"


@dataclass(frozen=True)
class ActiveSlot:
    class_name: str
    location: str
    time: str
    trainer: str = ""
    notes: str = ""


ActiveReferenceTable = dict[str, list[ActiveSlot]]


class ConflictKey(NamedTuple):
    trainer: str
    day: str
    time: str

    def __str__(self) -> str:
        return f"{self.trainer}-{self.day}-{self.time}"
