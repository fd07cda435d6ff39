# studio_calendar/repositories/sessions_repo.py
import logging
from dataclasses import asdict
from typing import Iterable

import pandas as pd
import streamlit as st

from studio_calendar.config import SESSIONS_HEADERS, SESSIONS_TAB
from studio_calendar.models.sessions import SessionRecord
from studio_calendar.services.gsheets_client import get_spreadsheet

logger = logging.getLogger(__name__)


def get_worksheet(sh, tab_name: str):
    """Worksheet handle, memoized per browser session. Missing tabs raise WorksheetNotFound."""
    handles = st.session_state.setdefault("_worksheets", {})
    ref = (sh.id, tab_name)
    if ref not in handles:
        logger.debug("Opening worksheet %r", tab_name)
        handles[ref] = sh.worksheet(tab_name)
    return handles[ref]


def load_sessions_df() -> pd.DataFrame:
    sh = get_spreadsheet()
    ws = get_worksheet(sh, SESSIONS_TAB)
    records = ws.get_all_records()
    return pd.DataFrame(records) if records else pd.DataFrame(columns=SESSIONS_HEADERS)


def read_sessions_csv(source) -> pd.DataFrame:
    # Keep every column as text; SessionRecord does the coercion
    return pd.read_csv(source, dtype=str, keep_default_na=False, encoding="utf-8-sig")


def records_from_df(df: pd.DataFrame) -> list[SessionRecord]:
    if df is None or df.empty:
        return []
    df = df.rename(columns=lambda c: str(c).strip())
    records = [SessionRecord.from_row(row) for row in df.to_dict("records")]
    logger.info("Loaded %d session record(s)", len(records))
    return records


def sessions_frame(records: Iterable[SessionRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    df = pd.DataFrame(rows) if rows else pd.DataFrame(columns=SESSIONS_HEADERS)
    for c in SESSIONS_HEADERS:
        if c not in df.columns:
            df[c] = ""
    return df[SESSIONS_HEADERS]
