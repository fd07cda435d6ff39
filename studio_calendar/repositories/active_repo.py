# studio_calendar/repositories/active_repo.py
import csv
import io
import logging
from typing import Iterable, Mapping

import pandas as pd

from studio_calendar.config import ACTIVE_TAB
from studio_calendar.models.sessions import ActiveReferenceTable, ActiveSlot
from studio_calendar.repositories.sessions_repo import get_worksheet
from studio_calendar.services.gsheets_client import get_spreadsheet
from studio_calendar.utils.cleaners import clean_day

logger = logging.getLogger(__name__)

_COLUMN_ALIASES = {
    "day": ("day", "Day"),
    "time": ("time", "Time"),
    "location": ("location", "Location"),
    "class_name": ("class_name", "Class", "className"),
    "trainer": ("trainer", "Trainer", "Trainer 1", "trainer1"),
    "notes": ("notes", "Notes"),
}


def _add(table: ActiveReferenceTable, fields: list[str]) -> None:
    if len(fields) < 5:
        return
    day, time, location, class_name, trainer = (f.strip() for f in fields[:5])
    notes = fields[5].strip() if len(fields) > 5 else ""
    # Only slots with a trainer assigned are live
    if not trainer:
        return
    table.setdefault(clean_day(day), []).append(
        ActiveSlot(class_name=class_name, location=location, time=time, trainer=trainer, notes=notes)
    )


def parse_active_csv(text: str) -> ActiveReferenceTable:
    """
    Day, Time, Location, Class, Trainer[, Notes] with a header row.
    A line holding a tab is split on tabs; any other line is read as comma
    CSV with quoting, so one file may mix both.
    """
    lines = [ln for ln in (text or "").splitlines() if ln.strip()]
    table: ActiveReferenceTable = {}
    for line in lines[1:]:
        if "\t" in line:
            fields = line.split("\t")
        else:
            fields = next(csv.reader([line]))
        _add(table, fields)
    logger.info("Active schedule: %d slot(s) across %d day(s)", sum(len(v) for v in table.values()), len(table))
    return table


def _pick(row: Mapping, name: str) -> str:
    for alias in _COLUMN_ALIASES[name]:
        v = row.get(alias)
        if v is not None and str(v).strip():
            return str(v)
    return ""


def active_table_from_records(records: Iterable[Mapping]) -> ActiveReferenceTable:
    table: ActiveReferenceTable = {}
    for row in records:
        _add(table, [_pick(row, n) for n in ("day", "time", "location", "class_name", "trainer", "notes")])
    return table


def active_table_from_df(df: pd.DataFrame) -> ActiveReferenceTable:
    if df is None or df.empty:
        return {}
    return active_table_from_records(df.fillna("").to_dict("records"))


def load_active_table() -> ActiveReferenceTable:
    sh = get_spreadsheet()
    ws = get_worksheet(sh, ACTIVE_TAB)
    return active_table_from_df(pd.DataFrame(ws.get_all_records()))
