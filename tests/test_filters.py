from datetime import date

from studio_calendar.services.filters import filter_sessions


class TestFilterSessions:

    def test_no_selection_keeps_everything(self, make_session):
        sessions = [make_session(), make_session(location="Powai")]
        assert filter_sessions(sessions) == sessions
        assert filter_sessions(sessions, locations=[], statuses=[]) == sessions

    def test_by_location_and_type(self, make_session):
        sessions = [
            make_session(session_id="a", location="Bandra", class_type="Barre"),
            make_session(session_id="b", location="Powai", class_type="Barre"),
            make_session(session_id="c", location="Bandra", class_type="PowerCycle"),
        ]
        out = filter_sessions(sessions, locations=["Bandra"], class_types=["Barre"])
        assert [s.session_id for s in out] == ["a"]

    def test_by_status(self, make_session):
        sessions = [make_session(session_id="a", status="Active"), make_session(session_id="b")]
        assert [s.session_id for s in filter_sessions(sessions, statuses=["Active"])] == ["a"]

    def test_by_trainer(self, make_session):
        sessions = [make_session(session_id="a", trainer_name="Rohan"), make_session(session_id="b")]
        assert [s.session_id for s in filter_sessions(sessions, trainers={"Rohan"})] == ["a"]

    def test_date_bounds_are_inclusive_and_drop_undated(self, make_session):
        sessions = [
            make_session(session_id="a", date="2025-03-02"),
            make_session(session_id="b", date="2025-03-03"),
            make_session(session_id="c", date="2025-03-09"),
            make_session(session_id="d", date="2025-03-10"),
            make_session(session_id="e", date=None),
        ]
        out = filter_sessions(sessions, date_from=date(2025, 3, 3), date_to=date(2025, 3, 9))
        assert [s.session_id for s in out] == ["b", "c"]
