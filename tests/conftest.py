from datetime import date
from itertools import count

import pytest

from studio_calendar.models.sessions import SessionRecord


@pytest.fixture
def monday():
    """First day of the reference week (Mon 3 Mar 2025)"""
    return date(2025, 3, 3)


@pytest.fixture
def make_session():
    """Factory for SessionRecord with sensible defaults; override any field by keyword"""
    ids = count(1)

    def _make(**overrides):
        fields = {
            "session_id": f"S{next(ids)}",
            "date": "2025-03-03",
            "time": "9:00 AM",
            "class_name": "Barre 57",
            "class_type": "Barre",
            "trainer_name": "Anisha",
            "location": "Kwality House, Kemps Corner",
            "capacity": 20,
            "checked_in": 10,
            "booked": 12,
        }
        fields.update(overrides)
        return SessionRecord.create(**fields)

    return _make
