from datetime import date
from typing import Iterable, Optional

from studio_calendar.models.sessions import SessionRecord


def filter_sessions(
    sessions: Iterable[SessionRecord],
    *,
    locations: Optional[Iterable[str]] = None,
    statuses: Optional[Iterable[str]] = None,
    class_types: Optional[Iterable[str]] = None,
    trainers: Optional[Iterable[str]] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> list[SessionRecord]:
    """Empty or None selections mean 'no filter'. Source order is preserved."""
    locations = set(locations or [])
    statuses = set(statuses or [])
    class_types = set(class_types or [])
    trainers = set(trainers or [])

    out = []
    for s in sessions:
        if locations and s.location not in locations:
            continue
        if statuses and (s.status or "") not in statuses:
            continue
        if class_types and s.class_type not in class_types:
            continue
        if trainers and s.trainer_name not in trainers:
            continue
        if date_from or date_to:
            if s.date is None:
                continue
            if date_from and s.date < date_from:
                continue
            if date_to and s.date > date_to:
                continue
        out.append(s)
    return out
