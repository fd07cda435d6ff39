import pytest

from studio_calendar.utils.time_parser import (
    ClockTime,
    canonical_time,
    format_12h,
    in_display_range,
    parse_time,
    time_slots,
)


class TestParseTime:
    """Session time strings in the formats the exports actually contain"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("9:30 AM", (9, 30)),
            ("7:15 PM", (19, 15)),
            ("12:05pm", (12, 5)),
            ("12:00 AM", (0, 0)),
            ("19:15:00", (19, 15)),
            ("7:00", (7, 0)),
            ("  6:45 am ", (6, 45)),
            ("10:00:00 PM", (22, 0)),
        ],
    )
    def test_valid_formats(self, raw, expected):
        assert parse_time(raw) == ClockTime(*expected)

    @pytest.mark.parametrize("raw", ["13:99", "24:00", "13:00 PM", "0:30 AM", "noon", "9am", "", "   ", None])
    def test_invalid_returns_none(self, raw):
        assert parse_time(raw) is None

    def test_every_display_slot_survives_12h_formatting(self):
        for hour in range(7, 22):
            for minute in range(60):
                assert parse_time(format_12h(hour, minute)) == (hour, minute)


class TestClockHelpers:

    def test_minutes_and_label(self):
        clock = ClockTime(9, 5)
        assert clock.minutes == 545
        assert clock.label == "09:05"

    @pytest.mark.parametrize(
        "hour, minute, expected",
        [(0, 0, "12:00 AM"), (9, 30, "9:30 AM"), (12, 0, "12:00 PM"), (13, 5, "1:05 PM"), (23, 59, "11:59 PM")],
    )
    def test_format_12h(self, hour, minute, expected):
        assert format_12h(hour, minute) == expected

    def test_display_range_is_half_open(self):
        assert in_display_range(ClockTime(7, 0), 7, 22)
        assert in_display_range(ClockTime(21, 59), 7, 22)
        assert not in_display_range(ClockTime(22, 0), 7, 22)
        assert not in_display_range(ClockTime(6, 59), 7, 22)

    def test_canonical_time(self):
        assert canonical_time("6:00 PM") == "18:00"
        assert canonical_time("18:00:00") == "18:00"
        assert canonical_time(" TBD ") == "tbd"
        assert canonical_time(None) == ""

    def test_time_slots(self):
        assert time_slots(7, 8, 30) == [ClockTime(7, 0), ClockTime(7, 30)]
        assert len(time_slots()) == 30
