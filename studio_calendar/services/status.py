"""
Active/Inactive tagging.

With a reference table of live class slots, a session is Active when its
class, location and time all match a slot on the same weekday. Class and
location match by substring containment after normalization, so a short
name such as "fit" also matches "fitexpress". Without a table, sessions
within RECENCY_WINDOW_DAYS of today are Active.
"""
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional

import pytz

from studio_calendar.config import RECENCY_WINDOW_DAYS, STATUS_ACTIVE, STATUS_INACTIVE, TIMEZONE
from studio_calendar.models.sessions import ActiveReferenceTable, ActiveSlot, SessionRecord
from studio_calendar.utils.cleaners import clean_day, normalize_name
from studio_calendar.utils.time_parser import canonical_time


def studio_today() -> date:
    return datetime.now(pytz.timezone(TIMEZONE)).date()


def _contains_either(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def _time_match(a: str, b: str) -> bool:
    a, b = canonical_time(a), canonical_time(b)
    if not a or not b:
        return False
    return a.startswith(b[:5]) or b.startswith(a[:5])


def matches_slot(session: SessionRecord, slot: ActiveSlot) -> bool:
    return (
        _contains_either(normalize_name(session.class_name), normalize_name(slot.class_name))
        and _contains_either(normalize_name(session.location), normalize_name(slot.location))
        and _time_match(session.time, slot.time)
    )


def classify(
    session: SessionRecord,
    table: Optional[ActiveReferenceTable] = None,
    *,
    today: Optional[date] = None,
) -> str:
    if not table:
        if session.date is None:
            return STATUS_INACTIVE
        today = today or studio_today()
        return STATUS_ACTIVE if abs((today - session.date).days) <= RECENCY_WINDOW_DAYS else STATUS_INACTIVE

    day = clean_day(session.day)
    if not day:
        return STATUS_INACTIVE
    for table_day, slots in table.items():
        if clean_day(table_day) != day:
            continue
        if any(matches_slot(session, slot) for slot in slots):
            return STATUS_ACTIVE
    return STATUS_INACTIVE


def apply_status(
    sessions: Iterable[SessionRecord],
    table: Optional[ActiveReferenceTable] = None,
    *,
    today: Optional[date] = None,
) -> list[SessionRecord]:
    """New records with status and fill_rate filled in."""
    today = today or studio_today()
    return [
        replace(s, status=classify(s, table, today=today), fill_rate=s.session_fill_rate)
        for s in sessions
    ]
