"""Team workload page: team and individual occupancy, shift-aware utilisation, trends."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from ops_app.analytics.dashboards.workload import IndividualMetrics, TeamMetrics, WorkloadSummary
from ops_app.app import register_page
from ops_app.core.errors import FetchError
from ops_app.features.filters import get_service, sidebar_filters
from ops_app.visual.charts import count_bar, daily_line, occupancy_bar, series_line
from ops_app.visual.progress import ProgressReporter
from ops_app.visual.tables import distribution_frame, render_table

VIEWS = {
    "Teams": "team_dashboard",
    "Individuals": "individual_dashboard",
    "Shift workload": "workload_dashboard",
    "Weekly trends": "trends_dashboard",
}


def team_table(teams: list[TeamMetrics]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "team": [t.team_name for t in teams],
            "members": [t.member_count for t in teams],
            "worked_hours": [t.total_worked_hours for t in teams],
            "available_hours": [t.available_hours for t in teams],
            "occupancy_rate": [t.occupancy_rate for t in teams],
        },
        columns=["team", "members", "worked_hours", "available_hours", "occupancy_rate"],
    )


def individual_table(people: list[IndividualMetrics]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "name": [p.user_name for p in people],
            "email": [p.user_email for p in people],
            "worked_hours": [p.total_worked_hours for p in people],
            "available_hours": [p.available_hours for p in people],
            "occupancy_rate": [p.occupancy_rate for p in people],
        },
        columns=["name", "email", "worked_hours", "available_hours", "occupancy_rate"],
    )


def _render_teams(teams: list[TeamMetrics]) -> None:
    table = team_table(teams)
    chart = occupancy_bar(table, "team", "occupancy_rate")
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    render_table(table, download_name="team_occupancy.csv")
    for team in teams:
        with st.expander(f"{team.team_name}: {team.occupancy_rate:.1f}% occupancy"):
            left, right = st.columns(2)
            left.markdown("**FTE per project**")
            left.dataframe(distribution_frame(team.fte_per_project, "project", "fte"), hide_index=True)
            right.markdown("**Hours by work type**")
            right.dataframe(distribution_frame(team.hours_by_work_type, "work_type", "hours"), hide_index=True)


def _render_individuals(people: list[IndividualMetrics]) -> None:
    table = individual_table(people)
    chart = occupancy_bar(table, "name", "occupancy_rate")
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    render_table(table, download_name="individual_occupancy.csv")
    for person in people:
        with st.expander(f"{person.user_name}: {person.total_worked_hours:.1f} h"):
            st.markdown("**Top tasks**")
            render_table(person.task_contributions)
            st.markdown("**Work logs**")
            render_table(person.work_logs, set_name="work_log", download_name=f"work_logs_{person.user_email}.csv")
            chart = count_bar(distribution_frame(person.project_hours, "project", "hours"), "project", "hours")
            if chart is not None:
                st.altair_chart(chart, use_container_width=True)


def _render_workload(summary: WorkloadSummary) -> None:
    cols = st.columns(5)
    cols[0].metric("Users", summary.total_users)
    cols[1].metric("Avg utilisation", f"{summary.average_utilization:.1f}%")
    cols[2].metric("Overtime", f"{summary.total_overtime:.1f} h")
    cols[3].metric("Idle", f"{summary.total_idle_hours:.1f} h")
    cols[4].metric("Leaves", summary.total_leaves)
    left, right = st.columns(2)
    with left:
        st.markdown("**Top contributors**")
        render_table(summary.top_contributors, download_name="top_contributors.csv")
    with right:
        st.markdown("**Underutilised members**")
        render_table(summary.underutilized_members, download_name="underutilized_members.csv")
    for member in summary.members:
        with st.expander(f"{member.user_name}: {member.utilization_rate:.1f}% utilisation"):
            chart = daily_line(member.daily_workload, "hours", title="Logged hours")
            if chart is None:
                st.caption("No working days in range.")
            else:
                st.altair_chart(chart, use_container_width=True)
            st.dataframe(distribution_frame(member.project_distribution, "project", "hours"), hide_index=True)


def _render_trends(trends: pd.DataFrame) -> None:
    for value, title in (("hours", "Worked hours"), ("team_occupancy", "Team occupancy (%)")):
        chart = series_line(trends, value, title=title)
        if chart is not None:
            st.altair_chart(chart, use_container_width=True)
    render_table(trends.drop(columns=["period_start"], errors="ignore"), download_name="weekly_trends.csv")


RENDERERS = {
    "Teams": _render_teams,
    "Individuals": _render_individuals,
    "Shift workload": _render_workload,
    "Weekly trends": _render_trends,
}


@register_page("Team Workload")
def workload_page():
    st.title("Team Workload")
    service = get_service()
    if service is None or service.store is None:
        st.warning("Initialize the data-store connection on the Setup page first.")
        return
    spec = sidebar_filters(service, "workload")
    view = st.radio("View", list(VIEWS), horizontal=True)
    result_key = f"workload_{VIEWS[view]}"

    if st.button("Load workload", type="primary"):
        reporter = ProgressReporter(f"Loading {view.lower()}")
        try:
            result = getattr(service, VIEWS[view])(spec, progress=reporter.callback)
        except FetchError as exc:
            reporter.error(f"Failed to load work logs: {exc}")
            st.error(str(exc))
            return
        if result is None:
            reporter.stale()
        else:
            st.session_state[result_key] = result
            reporter.complete("Workload ready.")

    result = st.session_state.get(result_key)
    if result is None:
        st.info("Choose filters and load the view.")
        return
    RENDERERS[view](result)
