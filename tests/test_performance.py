from datetime import date

import pytest

from studio_calendar.models.performance import (
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    TREND_DECLINING,
    TREND_GROWING,
    TREND_STABLE,
    PerformanceSummary,
)
from studio_calendar.services.performance import (
    GroupBy,
    aggregate,
    composite_score,
    display_pct,
    group_key,
    recommend,
    slot_performance,
    summaries_frame,
    summarize,
)


def _titles(recs):
    return [r.title for r in recs]


# =============================================================================
# SUMMARIES
# =============================================================================

class TestSummarize:

    def test_empty_is_all_zero(self):
        sm = summarize([])
        assert sm == PerformanceSummary.empty()
        assert sm.session_count == 0
        assert sm.avg_fill_rate_pct == 0.0
        assert sm.trend_direction == TREND_STABLE
        assert sm.best_session is None

    def test_fill_rate_from_sums(self, make_session):
        sessions = [make_session(capacity=20, checked_in=18), make_session(capacity=10, checked_in=1)]
        # sum-based (19/30), not the mean of per-session rates (50%)
        assert summarize(sessions).avg_fill_rate_pct == pytest.approx(63.333, abs=1e-3)

    def test_zero_denominators(self, make_session):
        sm = summarize([make_session(capacity=0, checked_in=0, booked=0, revenue=0)])

        assert sm.avg_fill_rate_pct == 0.0
        assert sm.cancellation_rate_pct == 0.0
        assert sm.waitlist_rate_pct == 0.0
        assert sm.revenue_per_seat == 0.0
        assert sm.trend_pct == 0.0
        assert sm.consistency_score == 0.0

    def test_rates_and_revenue(self, make_session):
        sessions = [
            make_session(capacity=20, checked_in=10, booked=20, late_cancelled=4, waitlisted=2, revenue=10000),
            make_session(capacity=20, checked_in=10, booked=20, late_cancelled=0, waitlisted=0, revenue=10000),
        ]
        sm = summarize(sessions)

        assert sm.cancellation_rate_pct == pytest.approx(10.0)
        assert sm.waitlist_rate_pct == pytest.approx(5.0)
        assert sm.revenue_per_seat == pytest.approx(1000.0)
        assert sm.estimated_revenue_lost_to_cancellation == pytest.approx(4000.0)
        assert sm.avg_revenue == pytest.approx(10000.0)
        assert sm.total_revenue == pytest.approx(20000.0)
        assert sm.consistency_score == pytest.approx(100.0)

    def test_overbooked_rate_is_not_clamped(self, make_session):
        sm = summarize([make_session(capacity=10, checked_in=12)])
        assert sm.avg_fill_rate_pct == pytest.approx(120.0)
        assert display_pct(sm.avg_fill_rate_pct) == 100.0

    def test_trend_uses_chronological_halves(self, make_session):
        sessions = [
            make_session(date="2025-03-24", checked_in=8),
            make_session(date="2025-03-03", checked_in=10),
            make_session(date="2025-03-17", checked_in=8),
            make_session(date="2025-03-10", checked_in=10),
        ]
        sm = summarize(sessions)

        assert sm.trend_direction == TREND_DECLINING
        assert sm.trend_pct == pytest.approx(-20.0)

    def test_trend_odd_count_puts_middle_in_second_half(self, make_session):
        sessions = [
            make_session(date="2025-03-03", checked_in=4),
            make_session(date="2025-03-10", checked_in=6),
            make_session(date="2025-03-17", checked_in=8),
        ]
        sm = summarize(sessions)

        assert sm.trend_direction == TREND_GROWING
        assert sm.trend_pct == pytest.approx(75.0)

    def test_single_session_trend_is_stable(self, make_session):
        sm = summarize([make_session(checked_in=12)])
        assert sm.trend_direction == TREND_STABLE
        assert sm.trend_pct == 0.0

    def test_best_and_worst_first_wins_ties(self, make_session):
        sessions = [
            make_session(session_id="a", checked_in=5),
            make_session(session_id="b", checked_in=15),
            make_session(session_id="c", checked_in=15),
            make_session(session_id="d", checked_in=5),
        ]
        sm = summarize(sessions)

        assert sm.best_session.session_id == "b"
        assert sm.worst_session.session_id == "a"

    def test_empty_sessions_and_last_date(self, make_session):
        sessions = [
            make_session(date="2025-03-03", checked_in=0),
            make_session(date="2025-03-17", checked_in=4),
            make_session(date=None, checked_in=6),
        ]
        sm = summarize(sessions)

        assert sm.empty_sessions == 1
        assert sm.empty_session_ratio == pytest.approx(1 / 3)
        assert sm.last_session_date == date(2025, 3, 17)

    def test_composite_score(self):
        assert composite_score(20, 100, 50) == 100.0
        assert composite_score(0, 0, 0) == 0.0
        assert composite_score(10, 50, 10) == pytest.approx(20 + 17.5 + 5)


# =============================================================================
# GROUPING
# =============================================================================

class TestGrouping:

    def test_aggregate_without_group_is_one_summary(self, make_session):
        sm = aggregate([make_session(), make_session()])
        assert isinstance(sm, PerformanceSummary)
        assert sm.session_count == 2

    def test_slot_keys_normalize_time_and_day(self, make_session):
        a = make_session(time="6:00 PM", day="mon")
        b = make_session(time="18:00:00", day="Monday")
        assert group_key(a, GroupBy.CLASS_DAY_TIME_LOCATION) == group_key(b, GroupBy.CLASS_DAY_TIME_LOCATION)
        assert group_key(a, GroupBy.CLASS_DAY_TIME_LOCATION) == (
            "Barre 57", "Monday", "18:00", "Kwality House, Kemps Corner",
        )

    def test_group_by_trainer_keeps_first_appearance_order(self, make_session):
        sessions = [
            make_session(trainer_name="Rohan"),
            make_session(trainer_name="Anisha"),
            make_session(trainer_name="Rohan"),
        ]
        groups = aggregate(sessions, GroupBy.TRAINER)

        assert list(groups) == [("Rohan",), ("Anisha",)]
        assert groups[("Rohan",)].session_count == 2

    def test_group_by_location(self, make_session):
        groups = aggregate(
            [make_session(location="bandra"), make_session(location="Bandra "), make_session(location="Powai")],
            GroupBy.LOCATION,
        )
        assert {k: v.session_count for k, v in groups.items()} == {("Bandra",): 2, ("Powai",): 1}

    def test_slot_performance(self, make_session):
        sessions = [
            make_session(time="9:00 AM", checked_in=10),
            make_session(time="09:00", checked_in=14),
            make_session(time="10:00 AM", checked_in=2),
        ]
        sm = slot_performance(sessions, "Barre 57", "Monday", "9:00 AM", "Kwality House, Kemps Corner")

        assert sm.session_count == 2
        assert sm.avg_check_ins == pytest.approx(12.0)

    def test_slot_performance_unknown_slot(self, make_session):
        assert slot_performance([make_session()], "Mat", "Friday", "7:00 AM", "Bandra") is None

    def test_summaries_frame_ranked(self, make_session):
        sessions = [
            make_session(class_name="Mat", checked_in=4),
            make_session(class_name="PowerCycle", checked_in=18),
            make_session(class_name="Barre 57", checked_in=12),
        ]
        df = summaries_frame(aggregate(sessions, GroupBy.CLASS), GroupBy.CLASS)

        assert list(df.columns[:3]) == ["rank", "class_name", "sessions"]
        assert df["class_name"].tolist() == ["PowerCycle", "Barre 57", "Mat"]
        assert df["rank"].tolist() == [1, 2, 3]
        assert df["consistency"].tolist() == [100.0, 100.0, 100.0]

    def test_summaries_frame_empty(self):
        df = summaries_frame({}, GroupBy.TRAINER)
        assert df.empty
        assert "trainer_name" in df.columns


# =============================================================================
# RECOMMENDATIONS
# =============================================================================

class TestRecommendations:

    def test_none_for_empty_summary(self):
        assert recommend(PerformanceSummary.empty()) == []

    def test_healthy_slot_has_no_recommendations(self, make_session):
        sessions = [make_session(capacity=20, checked_in=15, booked=16, revenue=15000) for _ in range(4)]
        assert recommend(summarize(sessions)) == []

    def test_low_fill_and_empty_sessions(self, make_session):
        sessions = [make_session(checked_in=0, revenue=0) for _ in range(3)] + [make_session(checked_in=4, revenue=4000)]
        recs = recommend(summarize(sessions))

        assert _titles(recs)[:2] == ["Reduce or cancel empty sessions", "Low fill rate"]
        assert all(r.priority == PRIORITY_HIGH for r in recs[:2])
        assert recs[0].supporting_metrics["empty_sessions"] == 3

    def test_expand_capacity(self, make_session):
        sessions = [make_session(capacity=10, checked_in=10, booked=10, revenue=10000) for _ in range(2)]
        recs = recommend(summarize(sessions))

        assert _titles(recs) == ["Expand capacity"]
        assert recs[0].priority == PRIORITY_MEDIUM

    def test_high_cancellations(self, make_session):
        sessions = [make_session(checked_in=15, booked=20, late_cancelled=5, revenue=15000)]
        recs = recommend(summarize(sessions))

        assert "High late cancellations" in _titles(recs)
        rec = recs[_titles(recs).index("High late cancellations")]
        assert rec.supporting_metrics["cancellation_rate_pct"] == pytest.approx(25.0)

    def test_declining_and_growing_trend(self, make_session):
        down = [make_session(date="2025-03-03", checked_in=16, revenue=16000),
                make_session(date="2025-03-10", checked_in=12, revenue=12000)]
        up = [make_session(date="2025-03-03", checked_in=12, revenue=12000),
              make_session(date="2025-03-10", checked_in=16, revenue=16000)]

        down_recs = recommend(summarize(down))
        up_recs = recommend(summarize(up))

        assert [(r.title, r.priority) for r in down_recs] == [("Attendance declining", PRIORITY_HIGH)]
        assert [(r.title, r.priority) for r in up_recs] == [("Attendance growing", PRIORITY_LOW)]

    def test_waitlist_and_low_revenue(self, make_session):
        sessions = [make_session(capacity=20, checked_in=14, booked=15, waitlisted=4, revenue=2800)]
        recs = recommend(summarize(sessions))

        assert _titles(recs) == ["Consistent waitlists", "Low revenue per seat"]

    def test_reproducible(self, make_session):
        sessions = [make_session(checked_in=0), make_session(checked_in=3)]
        assert recommend(summarize(sessions)) == recommend(summarize(sessions))
