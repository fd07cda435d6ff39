import logging
import pandas as pd
import streamlit as st
from gspread.exceptions import APIError, WorksheetNotFound

from studio_calendar.config import END_HOUR, START_HOUR, STATUS_ACTIVE, STATUS_INACTIVE, WEEKDAYS
from studio_calendar.models.performance import PRIORITY_HIGH, PRIORITY_MEDIUM
from studio_calendar.repositories.active_repo import load_active_table, parse_active_csv
from studio_calendar.repositories.sessions_repo import load_sessions_df, read_sessions_csv, records_from_df, sessions_frame
from studio_calendar.services.calendar import build_week, grid_frame
from studio_calendar.services.filters import filter_sessions
from studio_calendar.services.gsheets_client import sheets_configured
from studio_calendar.services.insights import SOURCE_AI, generate_insights
from studio_calendar.services.performance import (
    GROUP_FIELDS,
    GroupBy,
    aggregate,
    display_pct,
    recommend,
    slot_performance,
    summaries_frame,
    summarize,
)
from studio_calendar.services.status import apply_status
from studio_calendar.ui.state import (
    KEY_ACTIVE_TABLE,
    KEY_JUMP_DATE,
    KEY_SESSIONS,
    KEY_SELECTED_DAY,
    KEY_SESSIONS_SOURCE,
    KEY_WEEK_START,
    KEY_WEEK_STARTS_ON,
    go_next_week,
    go_previous_week,
    go_this_week,
    init_state_if_missing,
    on_jump_date_change,
    set_active_table,
    set_sessions,
    set_week_starts_on,
)
from studio_calendar.utils.time_parser import format_12h
from studio_calendar.utils.week_window import MONDAY, SUNDAY

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Studio Calendar Analytics", layout="wide")
init_state_if_missing()


def _label(c) -> str:
    return format_12h(c.start_minutes // 60, c.start_minutes % 60)


def _class_rows(classes, layout) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "time": _label(c),
                "class": c.session.class_name,
                "trainer": c.session.trainer_name,
                "location": c.session.location,
                "checked_in": c.session.checked_in,
                "capacity": c.session.capacity,
                "fill_%": round(display_pct(c.session.session_fill_rate), 1),
                "status": c.session.status or "",
                "overlap": f"{c.overlap_position + 1}/{c.overlap_group_size}",
                "conflict": "yes" if layout.conflicted(c) else "",
            }
            for c in classes
        ]
    )


# -----------------------------
# Sidebar: data sources
# -----------------------------
with st.sidebar:
    st.header("Data")

    uploaded = st.file_uploader("Sessions CSV", type=["csv"], key="sessions_upload")
    if uploaded is not None and st.session_state[KEY_SESSIONS_SOURCE] != uploaded.name:
        try:
            set_sessions(records_from_df(read_sessions_csv(uploaded)), uploaded.name)
        except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
            st.error(f"Could not read {uploaded.name}: {e}")

    if sheets_configured():
        if st.button("Load sessions from Google Sheet", key="load_sheet_btn"):
            try:
                set_sessions(records_from_df(load_sessions_df()), "Google Sheet")
            except (APIError, WorksheetNotFound) as e:
                st.error(f"Google Sheets error: {e}")
        if st.button("Load active schedule from Google Sheet", key="load_active_sheet_btn"):
            try:
                set_active_table(load_active_table())
            except (APIError, WorksheetNotFound) as e:
                st.error(f"Google Sheets error: {e}")

    active_upload = st.file_uploader("Active schedule (CSV/TSV)", type=["csv", "tsv", "txt"], key="active_upload")
    if active_upload is not None:
        set_active_table(parse_active_csv(active_upload.getvalue().decode("utf-8-sig", errors="replace")))

    if st.session_state[KEY_SESSIONS_SOURCE]:
        st.caption(f"{len(st.session_state[KEY_SESSIONS])} sessions from {st.session_state[KEY_SESSIONS_SOURCE]}")
    if st.session_state[KEY_ACTIVE_TABLE]:
        st.caption(f"Active schedule: {sum(len(v) for v in st.session_state[KEY_ACTIVE_TABLE].values())} slots")

sessions = apply_status(st.session_state[KEY_SESSIONS], st.session_state[KEY_ACTIVE_TABLE] or None)

if not sessions:
    st.title("Studio Calendar Analytics")
    st.info("Upload a sessions export (or load it from Google Sheets) to get started.")
    st.stop()

# -----------------------------
# Sidebar: filters + window
# -----------------------------
with st.sidebar:
    st.header("Filters")
    sel_locations = st.multiselect("Locations", sorted({s.location for s in sessions if s.location}))
    sel_statuses = st.multiselect("Status", [STATUS_ACTIVE, STATUS_INACTIVE])
    sel_types = st.multiselect("Class types", sorted({s.class_type for s in sessions if s.class_type}))

    st.header("Calendar")
    sunday_start = st.checkbox("Week starts on Sunday", value=st.session_state[KEY_WEEK_STARTS_ON] == SUNDAY)
    wanted = SUNDAY if sunday_start else MONDAY
    if wanted != st.session_state[KEY_WEEK_STARTS_ON]:
        set_week_starts_on(wanted)
    start_hour, end_hour = st.slider("Display hours", 0, 24, (START_HOUR, END_HOUR))

filtered = filter_sessions(sessions, locations=sel_locations, statuses=sel_statuses, class_types=sel_types)

# -----------------------------
# Week navigation
# -----------------------------
st.title("Studio Calendar Analytics")

n1, n2, n3, n4 = st.columns([1, 1, 1, 3])
with n1:
    st.button("Previous week", on_click=go_previous_week, key="prev_week_btn")
with n2:
    st.button("This week", on_click=go_this_week, key="this_week_btn")
with n3:
    st.button("Next week", on_click=go_next_week, key="next_week_btn")
with n4:
    st.date_input("Jump to", value=st.session_state[KEY_WEEK_START], key=KEY_JUMP_DATE, on_change=on_jump_date_change)

layout = build_week(
    filtered,
    st.session_state[KEY_WEEK_START],
    week_starts_on=st.session_state[KEY_WEEK_STARTS_ON],
    start_hour=start_hour,
    end_hour=end_hour,
)

st.caption(f"Week of {layout.days[0]:%d %b %Y} to {layout.days[-1]:%d %b %Y}: {len(layout.classes)} classes placed")
with st.expander("Skipped records"):
    st.dataframe(
        pd.DataFrame([{"reason": k, "count": v} for k, v in layout.skipped.items()]),
        hide_index=True,
        use_container_width=True,
    )
with st.expander(f"Session records ({len(filtered)})"):
    st.dataframe(sessions_frame(filtered), hide_index=True, use_container_width=True)

tab_grid, tab_horizontal, tab_locations, tab_analysis, tab_insights = st.tabs(
    ["Calendar", "Horizontal", "Multi-location", "Analysis", "Insights"]
)

with tab_grid:
    st.dataframe(
        grid_frame(layout, start_hour=start_hour, end_hour=end_hour),
        use_container_width=True,
        height=min(36 * (2 * (end_hour - start_hour) + 1), 1100),
    )
    st.caption("(n/m) marks a class stacked with overlapping ones; [conflict] marks a trainer double-booking.")

with tab_horizontal:
    for i, d in enumerate(layout.days):
        day_classes = layout.classes_on(i)
        st.subheader(f"{d:%A %d %b}")
        if not day_classes:
            st.caption("No classes")
            continue
        st.dataframe(_class_rows(day_classes, layout), hide_index=True, use_container_width=True)

with tab_locations:
    day_idx = st.selectbox("Date", range(7), format_func=lambda i: f"{layout.days[i]:%A %d %b}", key=KEY_SELECTED_DAY)
    selected_day = layout.days[day_idx]
    conflicts = layout.conflicts.get(selected_day, set())
    if conflicts:
        st.error("Trainer double-bookings: " + ", ".join(sorted(str(k) for k in conflicts)))
    else:
        st.success("No trainer conflicts on this date.")

    by_location = {
        loc: [c for c in classes if c.day_index == day_idx]
        for loc, classes in layout.by_location().items()
    }
    by_location = {loc: classes for loc, classes in by_location.items() if classes}
    if not by_location:
        st.info("No classes on this date.")
    else:
        for col, (loc, classes) in zip(st.columns(len(by_location)), by_location.items()):
            with col:
                st.markdown(f"**{loc}**")
                st.dataframe(
                    _class_rows(sorted(classes, key=lambda c: c.start_minutes), layout)[["time", "class", "trainer", "fill_%", "conflict"]],
                    hide_index=True,
                    use_container_width=True,
                )

with tab_analysis:
    overall = summarize(filtered)
    m1, m2, m3, m4, m5 = st.columns(5)
    m1.metric("Sessions", overall.session_count)
    m2.metric("Avg check-ins", f"{overall.avg_check_ins:.1f}")
    m3.metric("Fill rate", f"{display_pct(overall.avg_fill_rate_pct):.1f}%")
    m4.metric("Cancel rate", f"{display_pct(overall.cancellation_rate_pct):.1f}%")
    m5.metric("Revenue", f"{overall.total_revenue:,.0f}")

    group_by = st.selectbox(
        "Group by",
        list(GroupBy),
        format_func=lambda g: " / ".join(f.replace("_name", "").replace("_", " ") for f in GROUP_FIELDS[g]),
        key="group_by",
    )
    st.dataframe(summaries_frame(aggregate(filtered, group_by), group_by), hide_index=True, use_container_width=True)

    st.subheader("Slot drill-down")
    slots = list(aggregate(filtered, GroupBy.CLASS_DAY_TIME_LOCATION).keys())
    slots.sort(key=lambda k: (WEEKDAYS.index(k[1]) if k[1] in WEEKDAYS else 7, k[2], k[0], k[3]))
    slot = st.selectbox("Class / day / time / location", slots, format_func=" | ".join, key="drill_slot")
    if slot:
        sm = slot_performance(filtered, *slot)
        if sm is None:
            st.info("No history for this slot.")
        else:
            d1, d2, d3, d4, d5 = st.columns(5)
            d1.metric("Sessions", sm.session_count)
            d2.metric("Avg check-ins", f"{sm.avg_check_ins:.1f}", f"{sm.trend_pct:+.1f}% ({sm.trend_direction})")
            d3.metric("Fill rate", f"{display_pct(sm.avg_fill_rate_pct):.1f}%")
            d4.metric("Est. revenue lost", f"{sm.estimated_revenue_lost_to_cancellation:,.0f}")
            d5.metric("Consistency", f"{sm.consistency_score:.0f}/100")
            if sm.best_session is not None and sm.last_session_date is not None:
                st.caption(
                    f"Best: {sm.best_session.checked_in} on {sm.best_session.date} · "
                    f"Worst: {sm.worst_session.checked_in} on {sm.worst_session.date} · "
                    f"Last run: {sm.last_session_date}"
                )
            recs = recommend(sm)
            if not recs:
                st.success("No issues detected for this slot.")
            for r in recs:
                show = st.error if r.priority == PRIORITY_HIGH else st.warning if r.priority == PRIORITY_MEDIUM else st.info
                show(f"**{r.title}** ({r.priority}): {r.description}")

with tab_insights:
    if st.button("Generate insights", type="primary", key="insights_btn"):
        with st.spinner("Analyzing sessions..."):
            result = generate_insights(filtered)
        if result.source == SOURCE_AI:
            st.caption("Generated by Gemini")
        else:
            st.caption("Rule-based insights (AI unavailable)")
        for line in result.insights:
            st.markdown(f"- {line}")
