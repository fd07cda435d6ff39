"""
Performance aggregation over historical sessions.

All rates are computed from sums (not averaged per session) and every
zero denominator resolves to 0. Recommendations are rule-based and fully
reproducible from the same input.
"""
import logging
from datetime import date
from enum import Enum
from statistics import pstdev
from typing import Iterable, Mapping, Optional, Union

import pandas as pd

from studio_calendar import config
from studio_calendar.models.performance import (
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    TREND_DECLINING,
    TREND_GROWING,
    TREND_STABLE,
    PerformanceSummary,
    Recommendation,
)
from studio_calendar.models.sessions import SessionRecord
from studio_calendar.utils.cleaners import clean_class, clean_day, clean_location
from studio_calendar.utils.time_parser import canonical_time

logger = logging.getLogger(__name__)


class GroupBy(str, Enum):
    CLASS = "class"
    CLASS_DAY_TIME_LOCATION = "class_day_time_location"
    CLASS_DAY_TIME_LOCATION_TRAINER = "class_day_time_location_trainer"
    TRAINER = "trainer"
    LOCATION = "location"
    DAY = "day"
    TIME = "time"


GROUP_FIELDS = {
    GroupBy.CLASS: ("class_name",),
    GroupBy.CLASS_DAY_TIME_LOCATION: ("class_name", "day", "time", "location"),
    GroupBy.CLASS_DAY_TIME_LOCATION_TRAINER: ("class_name", "day", "time", "location", "trainer_name"),
    GroupBy.TRAINER: ("trainer_name",),
    GroupBy.LOCATION: ("location",),
    GroupBy.DAY: ("day",),
    GroupBy.TIME: ("time",),
}


def _ratio(num: float, den: float) -> float:
    return num / den if den > 0 else 0.0


def _pct(num: float, den: float) -> float:
    return (num / den) * 100 if den > 0 else 0.0


def display_pct(value: float) -> float:
    """Clamp a percentage to [0, 100] for display; stored values stay raw."""
    return min(max(value, 0.0), 100.0)


def composite_score(avg_check_ins: float, fill_rate_pct: float, session_count: int) -> float:
    attendance = min(avg_check_ins * 5, 100)      # 20 per class scores 100
    fill = min(fill_rate_pct, 100)
    volume = min(session_count * 2, 100)          # 50 sessions scores 100
    return round(attendance * 0.4 + fill * 0.35 + volume * 0.25, 2)


def _chronological(sessions: list[SessionRecord]) -> list[SessionRecord]:
    return sorted(sessions, key=lambda s: (s.date is not None, s.date or date.min))


# -----------------------------
# Single summary
# -----------------------------
def summarize(sessions: Iterable[SessionRecord]) -> PerformanceSummary:
    sessions = list(sessions)
    n = len(sessions)
    if n == 0:
        return PerformanceSummary.empty()

    check_ins = sum(s.checked_in for s in sessions)
    capacity = sum(s.capacity for s in sessions)
    booked = sum(s.booked for s in sessions)
    late_cancelled = sum(s.late_cancelled for s in sessions)
    waitlisted = sum(s.waitlisted for s in sessions)
    revenue = sum(s.revenue for s in sessions)
    empty = sum(1 for s in sessions if s.checked_in == 0)

    avg_check_ins = check_ins / n
    fill_rate = _pct(check_ins, capacity)
    revenue_per_seat = _ratio(revenue, check_ins)

    ordered = _chronological(sessions)
    mid = n // 2
    first_half, second_half = ordered[:mid], ordered[mid:]
    first_avg = _ratio(sum(s.checked_in for s in first_half), len(first_half))
    second_avg = _ratio(sum(s.checked_in for s in second_half), len(second_half))
    if second_avg > first_avg:
        direction = TREND_GROWING
    elif second_avg < first_avg:
        direction = TREND_DECLINING
    else:
        direction = TREND_STABLE
    trend_pct = ((second_avg - first_avg) / first_avg) * 100 if first_avg > 0 else 0.0

    best = worst = sessions[0]
    for s in sessions[1:]:
        if s.checked_in > best.checked_in:
            best = s
        if s.checked_in < worst.checked_in:
            worst = s

    spread = pstdev([s.checked_in for s in sessions])
    consistency = max(0.0, 100 - (spread / avg_check_ins) * 100) if avg_check_ins > 0 else 0.0

    dated = [s.date for s in sessions if s.date is not None]

    return PerformanceSummary(
        session_count=n,
        avg_check_ins=avg_check_ins,
        avg_capacity=capacity / n,
        avg_fill_rate_pct=fill_rate,
        total_revenue=revenue,
        avg_revenue=revenue / n,
        cancellation_rate_pct=_pct(late_cancelled, booked),
        waitlist_rate_pct=_pct(waitlisted, capacity),
        revenue_per_seat=revenue_per_seat,
        estimated_revenue_lost_to_cancellation=late_cancelled * revenue_per_seat,
        trend_direction=direction,
        trend_pct=trend_pct,
        total_check_ins=check_ins,
        total_capacity=capacity,
        total_booked=booked,
        total_late_cancelled=late_cancelled,
        total_waitlisted=waitlisted,
        empty_sessions=empty,
        empty_session_ratio=empty / n,
        consistency_score=consistency,
        composite_score=composite_score(avg_check_ins, fill_rate, n),
        best_session=best,
        worst_session=worst,
        last_session_date=max(dated) if dated else None,
    )


# -----------------------------
# Grouping
# -----------------------------
def group_key(s: SessionRecord, group_by: GroupBy) -> tuple:
    values = {
        "class_name": clean_class(s.class_name),
        "day": clean_day(s.day),
        "time": canonical_time(s.time),
        "location": clean_location(s.location),
        "trainer_name": s.trainer_name,
    }
    return tuple(values[f] for f in GROUP_FIELDS[GroupBy(group_by)])


def group_sessions(sessions: Iterable[SessionRecord], group_by: GroupBy) -> dict[tuple, list[SessionRecord]]:
    groups: dict[tuple, list[SessionRecord]] = {}
    for s in sessions:
        groups.setdefault(group_key(s, group_by), []).append(s)
    return groups


def aggregate(
    sessions: Iterable[SessionRecord],
    group_by: Optional[GroupBy] = None,
) -> Union[PerformanceSummary, dict[tuple, PerformanceSummary]]:
    """One summary for the whole list, or one per group when `group_by` is given."""
    if group_by is None:
        return summarize(sessions)
    return {key: summarize(members) for key, members in group_sessions(sessions, group_by).items()}


def slot_performance(
    sessions: Iterable[SessionRecord],
    class_name: str,
    day: str,
    time: str,
    location: str,
) -> Optional[PerformanceSummary]:
    """History for one class/day/time/location slot, or None if it never ran."""
    key = (clean_class(class_name), clean_day(day), canonical_time(time), clean_location(location))
    matches = [s for s in sessions if group_key(s, GroupBy.CLASS_DAY_TIME_LOCATION) == key]
    if not matches:
        return None
    return summarize(matches)


def summaries_frame(summaries: Mapping[tuple, PerformanceSummary], group_by: GroupBy) -> pd.DataFrame:
    fields = GROUP_FIELDS[GroupBy(group_by)]
    rows = []
    for key, sm in summaries.items():
        row = dict(zip(fields, key))
        row.update(
            {
                "sessions": sm.session_count,
                "avg_check_ins": sm.avg_check_ins,
                "avg_capacity": sm.avg_capacity,
                "fill_rate_pct": sm.avg_fill_rate_pct,
                "cancellation_rate_pct": sm.cancellation_rate_pct,
                "waitlist_rate_pct": sm.waitlist_rate_pct,
                "total_revenue": sm.total_revenue,
                "revenue_per_seat": sm.revenue_per_seat,
                "revenue_lost": sm.estimated_revenue_lost_to_cancellation,
                "trend": sm.trend_direction,
                "trend_pct": sm.trend_pct,
                "consistency": sm.consistency_score,
                "composite_score": sm.composite_score,
            }
        )
        rows.append(row)

    df = pd.DataFrame(rows, columns=list(fields) + [
        "sessions", "avg_check_ins", "avg_capacity", "fill_rate_pct", "cancellation_rate_pct",
        "waitlist_rate_pct", "total_revenue", "revenue_per_seat", "revenue_lost", "trend",
        "trend_pct", "consistency", "composite_score",
    ])
    df = df.sort_values("avg_check_ins", ascending=False, kind="stable").reset_index(drop=True)
    df.insert(0, "rank", range(1, len(df) + 1))
    return df


# -----------------------------
# Recommendations
# -----------------------------
def recommend(summary: PerformanceSummary) -> list[Recommendation]:
    if summary.session_count == 0:
        return []

    out: list[Recommendation] = []

    if summary.empty_session_ratio > config.EMPTY_SESSION_RATIO_MAX:
        out.append(Recommendation(
            title="Reduce or cancel empty sessions",
            description=(
                f"{summary.empty_sessions} of {summary.session_count} sessions had no check-ins. "
                "Consolidate this slot or move it to a busier time."
            ),
            priority=PRIORITY_HIGH,
            supporting_metrics={"empty_sessions": summary.empty_sessions, "empty_session_ratio": summary.empty_session_ratio},
        ))

    if summary.avg_fill_rate_pct < config.LOW_FILL_RATE_PCT:
        out.append(Recommendation(
            title="Low fill rate",
            description=(
                f"Average fill rate is {summary.avg_fill_rate_pct:.1f}%. "
                "Try a more popular time slot, targeted promotion or intro pricing."
            ),
            priority=PRIORITY_HIGH,
            supporting_metrics={"avg_fill_rate_pct": summary.avg_fill_rate_pct},
        ))
    elif summary.avg_fill_rate_pct > config.HIGH_FILL_RATE_PCT:
        out.append(Recommendation(
            title="Expand capacity",
            description=(
                f"Sessions run at {summary.avg_fill_rate_pct:.1f}% of capacity. "
                "Add a parallel session or increase capacity."
            ),
            priority=PRIORITY_MEDIUM,
            supporting_metrics={"avg_fill_rate_pct": summary.avg_fill_rate_pct, "avg_capacity": summary.avg_capacity},
        ))

    if summary.cancellation_rate_pct > config.HIGH_CANCELLATION_RATE_PCT:
        out.append(Recommendation(
            title="High late cancellations",
            description=(
                f"{summary.cancellation_rate_pct:.1f}% of bookings were late-cancelled, "
                f"an estimated {summary.estimated_revenue_lost_to_cancellation:,.0f} in lost revenue. "
                "Tighten the cancellation window or send reminders."
            ),
            priority=PRIORITY_HIGH,
            supporting_metrics={
                "cancellation_rate_pct": summary.cancellation_rate_pct,
                "estimated_revenue_lost_to_cancellation": summary.estimated_revenue_lost_to_cancellation,
            },
        ))

    if abs(summary.trend_pct) > config.TREND_ALERT_PCT:
        if summary.trend_direction == TREND_DECLINING:
            out.append(Recommendation(
                title="Attendance declining",
                description=f"Recent sessions average {abs(summary.trend_pct):.1f}% fewer check-ins than earlier ones.",
                priority=PRIORITY_HIGH,
                supporting_metrics={"trend_pct": summary.trend_pct},
            ))
        elif summary.trend_direction == TREND_GROWING:
            out.append(Recommendation(
                title="Attendance growing",
                description=f"Recent sessions average {summary.trend_pct:.1f}% more check-ins than earlier ones.",
                priority=PRIORITY_LOW,
                supporting_metrics={"trend_pct": summary.trend_pct},
            ))

    if summary.waitlist_rate_pct > config.HIGH_WAITLIST_RATE_PCT:
        out.append(Recommendation(
            title="Consistent waitlists",
            description=(
                f"Waitlists equal {summary.waitlist_rate_pct:.1f}% of capacity. "
                "Trial a capacity increase or a second session at this time."
            ),
            priority=PRIORITY_MEDIUM,
            supporting_metrics={"waitlist_rate_pct": summary.waitlist_rate_pct},
        ))

    if summary.total_check_ins > 0 and summary.revenue_per_seat < config.REVENUE_PER_SEAT_FLOOR:
        out.append(Recommendation(
            title="Low revenue per seat",
            description=(
                f"Revenue per attendee is {summary.revenue_per_seat:,.0f}. "
                "Review complimentary visits and package pricing."
            ),
            priority=PRIORITY_MEDIUM,
            supporting_metrics={"revenue_per_seat": summary.revenue_per_seat},
        ))

    logger.debug("Derived %d recommendation(s)", len(out))
    return out
