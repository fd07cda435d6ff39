from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from studio_calendar.models.sessions import SessionRecord

TREND_GROWING = "growing"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"

PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"


@dataclass(frozen=True)
class PerformanceSummary:
    session_count: int = 0
    avg_check_ins: float = 0.0
    avg_capacity: float = 0.0
    avg_fill_rate_pct: float = 0.0
    total_revenue: float = 0.0
    avg_revenue: float = 0.0
    cancellation_rate_pct: float = 0.0
    waitlist_rate_pct: float = 0.0
    revenue_per_seat: float = 0.0
    estimated_revenue_lost_to_cancellation: float = 0.0
    trend_direction: str = TREND_STABLE
    trend_pct: float = 0.0              # signed, unbounded
    # Sums behind the rates
    total_check_ins: int = 0
    total_capacity: int = 0
    total_booked: int = 0
    total_late_cancelled: int = 0
    total_waitlisted: int = 0
    empty_sessions: int = 0
    empty_session_ratio: float = 0.0
    consistency_score: float = 0.0
    composite_score: float = 0.0
    best_session: Optional[SessionRecord] = None
    worst_session: Optional[SessionRecord] = None
    last_session_date: Optional[date] = None

    @staticmethod
    def empty() -> "PerformanceSummary":
        return PerformanceSummary()


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    priority: str                       # high / medium / low
    supporting_metrics: dict[str, Any] = field(default_factory=dict)
