"""
Weekly calendar layout.

Sessions are windowed to one displayed week, placed on a (day, minute) grid,
stacked into overlap groups per day and checked for trainer double-booking
per date. Every function here is pure: each call returns fresh PlacedClass
values and never mutates its input.
"""
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from studio_calendar.config import DEFAULT_DURATION_MINUTES, END_HOUR, SLOT_MINUTES, START_HOUR, WEEK_STARTS_ON, WEEKDAYS
from studio_calendar.models.sessions import ConflictKey, PlacedClass, SessionRecord
from studio_calendar.utils.time_parser import format_12h, in_display_range, parse_time, time_slots
from studio_calendar.utils.week_window import day_index, week_days

logger = logging.getLogger(__name__)

SKIP_REASONS = ("no_time", "no_date", "day_not_in_week", "time_parse_failure", "outside_time_range")


@dataclass(frozen=True)
class Placement:
    classes: list[PlacedClass]
    skipped: Counter = field(default_factory=Counter)

    @property
    def placed_count(self) -> int:
        return self.skipped.get("placed", 0)


@dataclass(frozen=True)
class WeekLayout:
    days: list[date]
    classes: list[PlacedClass]
    skipped: Counter
    conflicts: dict[date, set[ConflictKey]]

    def classes_on(self, index: int) -> list[PlacedClass]:
        return sorted(
            (c for c in self.classes if c.day_index == index),
            key=lambda c: (c.start_minutes, c.overlap_position),
        )

    def by_location(self) -> dict[str, list[PlacedClass]]:
        """Classes per location, with overlaps re-stacked within each location column."""
        out: dict[str, list[PlacedClass]] = {}
        for c in self.classes:
            out.setdefault(c.session.location or "Unknown", []).append(c)
        return {loc: layout_week(classes) for loc, classes in sorted(out.items())}

    def conflicted(self, c: PlacedClass) -> bool:
        keys = self.conflicts.get(self.days[c.day_index], set())
        return _conflict_key(c) in keys


# -----------------------------
# Placement
# -----------------------------
def place_sessions(
    sessions: Iterable[SessionRecord],
    days: Sequence[date],
    *,
    start_hour: int = START_HOUR,
    end_hour: int = END_HOUR,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    durations_by_type: Optional[Mapping[str, int]] = None,
) -> Placement:
    """
    Turn session records into PlacedClass values for the given week.
    Records that cannot be placed are counted by reason, never raised on.
    """
    durations_by_type = durations_by_type or {}
    skipped: Counter = Counter({reason: 0 for reason in SKIP_REASONS})
    skipped["placed"] = 0
    out: list[PlacedClass] = []

    for s in sessions:
        if not s.time:
            skipped["no_time"] += 1
            continue
        if s.date is None:
            skipped["no_date"] += 1
            continue

        idx = day_index(s.date, days)
        if idx is None:
            skipped["day_not_in_week"] += 1
            continue

        clock = parse_time(s.time)
        if clock is None:
            skipped["time_parse_failure"] += 1
            continue
        if not in_display_range(clock, start_hour, end_hour):
            skipped["outside_time_range"] += 1
            continue

        skipped["placed"] += 1
        out.append(
            PlacedClass(
                session=s,
                day_index=idx,
                start_minutes=clock.minutes,
                duration_minutes=int(durations_by_type.get(s.class_type, duration_minutes)),
            )
        )

    logger.debug("Placement skip reasons: %s", dict(skipped))
    return Placement(classes=out, skipped=skipped)


# -----------------------------
# Overlap grouping
# -----------------------------
def intervals_overlap(s1: int, d1: int, s2: int, d2: int) -> bool:
    return s1 < s2 + d2 and s2 < s1 + d1


def assign_overlaps(day_classes: Sequence[PlacedClass]) -> list[PlacedClass]:
    """
    Annotate one day's classes with (overlap_position, overlap_group_size).

    Classes are visited in start order (stable). Each joins the first existing
    group holding a member it overlaps; groups are never merged, so a class that
    bridges two earlier groups only joins the first. Positions follow start
    order within a group. The result keeps the input order.
    """
    order = sorted(range(len(day_classes)), key=lambda i: day_classes[i].start_minutes)

    groups: list[list[int]] = []
    for i in order:
        cur = day_classes[i]
        for group in groups:
            if any(
                intervals_overlap(cur.start_minutes, cur.duration_minutes, day_classes[j].start_minutes, day_classes[j].duration_minutes)
                for j in group
            ):
                group.append(i)
                break
        else:
            groups.append([i])

    annotated: dict[int, PlacedClass] = {}
    for group in groups:
        for pos, i in enumerate(group):
            annotated[i] = replace(day_classes[i], overlap_position=pos, overlap_group_size=len(group))

    return [annotated[i] for i in range(len(day_classes))]


def layout_week(classes: Sequence[PlacedClass]) -> list[PlacedClass]:
    by_day: dict[int, list[int]] = defaultdict(list)
    for i, c in enumerate(classes):
        by_day[c.day_index].append(i)

    result: list[Optional[PlacedClass]] = [None] * len(classes)
    for indices in by_day.values():
        for i, placed in zip(indices, assign_overlaps([classes[i] for i in indices])):
            result[i] = placed
    return result  # type: ignore[return-value]


# -----------------------------
# Trainer conflicts
# -----------------------------
def _conflict_key(c: PlacedClass) -> ConflictKey:
    # The placed date decides the weekday; an explicit Day column may disagree with it
    d = c.session.date
    day = WEEKDAYS[d.weekday()] if d is not None else c.session.day
    return ConflictKey(c.session.trainer_name, day, c.start_label)


def detect_conflicts(classes: Iterable[PlacedClass], on_date: Optional[date] = None) -> set[ConflictKey]:
    """
    Trainer double-bookings: every (trainer, day, time) seen more than once.
    Pass `on_date` to restrict to a single calendar date.
    """
    seen: dict[str, set[tuple[str, str]]] = defaultdict(set)
    conflicts: set[ConflictKey] = set()

    for c in classes:
        if on_date is not None and c.session.date != on_date:
            continue
        trainer = c.session.trainer_name
        if not trainer:
            continue
        key = _conflict_key(c)
        slot = (key.day, key.time)
        if slot in seen[trainer]:
            conflicts.add(key)
        else:
            seen[trainer].add(slot)

    return conflicts


def conflicts_by_day(classes: Sequence[PlacedClass], days: Sequence[date]) -> dict[date, set[ConflictKey]]:
    return {d: detect_conflicts(classes, on_date=d) for d in days}


# -----------------------------
# Week facade
# -----------------------------
def build_week(
    sessions: Iterable[SessionRecord],
    reference: date,
    *,
    week_starts_on: int = WEEK_STARTS_ON,
    start_hour: int = START_HOUR,
    end_hour: int = END_HOUR,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
    durations_by_type: Optional[Mapping[str, int]] = None,
) -> WeekLayout:
    days = week_days(reference, week_starts_on)
    placement = place_sessions(
        sessions,
        days,
        start_hour=start_hour,
        end_hour=end_hour,
        duration_minutes=duration_minutes,
        durations_by_type=durations_by_type,
    )
    classes = layout_week(placement.classes)
    conflicts = conflicts_by_day(classes, days)

    n_conflicts = sum(len(v) for v in conflicts.values())
    if n_conflicts:
        logger.info("Week of %s: %d trainer conflict(s)", days[0].isoformat(), n_conflicts)

    return WeekLayout(days=days, classes=classes, skipped=placement.skipped, conflicts=conflicts)



def grid_frame(
    layout: WeekLayout,
    *,
    start_hour: int = START_HOUR,
    end_hour: int = END_HOUR,
    step: int = SLOT_MINUTES,
) -> pd.DataFrame:
    """
    The week as a table: one row per display slot, one column per date.
    Each cell lists the classes starting in that slot, with their stack
    position when they overlap and a marker when the trainer is double-booked.
    """
    slots = time_slots(start_hour, end_hour, step)
    cells = [["" for _ in layout.days] for _ in slots]

    for i in range(len(layout.days)):
        for c in layout.classes_on(i):
            row = (c.start_minutes - start_hour * 60) // step
            if not 0 <= row < len(slots):
                continue
            label = c.session.class_name or "Class"
            if c.overlap_group_size > 1:
                label += f" ({c.overlap_position + 1}/{c.overlap_group_size})"
            if layout.conflicted(c):
                label += " [conflict]"
            cells[row][i] = f"{cells[row][i]}; {label}" if cells[row][i] else label

    return pd.DataFrame(
        cells,
        index=pd.Index([format_12h(s.hour, s.minute) for s in slots], name="time"),
        columns=[f"{d:%a %d %b}" for d in layout.days],
    )
