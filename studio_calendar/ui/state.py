# studio_calendar/ui/state.py
from datetime import date

import streamlit as st

from studio_calendar.config import WEEK_STARTS_ON
from studio_calendar.utils.week_window import shift_week, week_start

# Session-state keys shared by the page and the callbacks below
KEY_SESSIONS = "sessions"
KEY_SESSIONS_SOURCE = "sessions_source"
KEY_ACTIVE_TABLE = "active_table"
KEY_WEEK_START = "week_start"
KEY_WEEK_STARTS_ON = "week_starts_on"
KEY_SELECTED_DAY = "selected_day"
KEY_JUMP_DATE = "jump_date"


def init_state_if_missing() -> None:
    """Seed defaults on first run; the displayed week starts at today's week."""
    st.session_state.setdefault(KEY_SESSIONS, [])
    st.session_state.setdefault(KEY_SESSIONS_SOURCE, "")
    st.session_state.setdefault(KEY_ACTIVE_TABLE, {})
    st.session_state.setdefault(KEY_WEEK_STARTS_ON, WEEK_STARTS_ON)
    if KEY_WEEK_START not in st.session_state:
        st.session_state[KEY_WEEK_START] = week_start(date.today(), st.session_state[KEY_WEEK_STARTS_ON])


def set_sessions(records: list, source: str) -> None:
    st.session_state[KEY_SESSIONS] = records
    st.session_state[KEY_SESSIONS_SOURCE] = source


def set_active_table(table: dict) -> None:
    st.session_state[KEY_ACTIVE_TABLE] = table


def go_previous_week() -> None:
    st.session_state[KEY_WEEK_START] = shift_week(st.session_state[KEY_WEEK_START], -1)


def go_next_week() -> None:
    st.session_state[KEY_WEEK_START] = shift_week(st.session_state[KEY_WEEK_START], 1)


def go_this_week() -> None:
    st.session_state[KEY_WEEK_START] = week_start(date.today(), st.session_state[KEY_WEEK_STARTS_ON])


def jump_to(d: date) -> None:
    st.session_state[KEY_WEEK_START] = week_start(d, st.session_state[KEY_WEEK_STARTS_ON])


def on_jump_date_change() -> None:
    picked = st.session_state.get(KEY_JUMP_DATE)
    if isinstance(picked, date):
        jump_to(picked)


def set_week_starts_on(value: int) -> None:
    """Re-anchor the displayed week when the week-start convention changes."""
    st.session_state[KEY_WEEK_STARTS_ON] = value
    st.session_state[KEY_WEEK_START] = week_start(st.session_state[KEY_WEEK_START], value)
