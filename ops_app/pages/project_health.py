"""Project health page: FTE, effort share and utilisation per project."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from ops_app.analytics.dashboards.workload import ProjectHealthSummary
from ops_app.app import register_page
from ops_app.core.errors import FetchError
from ops_app.features.filters import get_service, sidebar_filters
from ops_app.visual.charts import daily_line, forecast_chart
from ops_app.visual.progress import ProgressReporter
from ops_app.visual.tables import render_table

RESULT_KEY = "project_health"


def health_table(summary: ProjectHealthSummary) -> pd.DataFrame:
    columns = ["project", "total_hours", "fte", "effort_share", "users", "contributors", "avg_hours_per_user"]
    rows = [
        [p.project_name, p.total_hours, p.fte, p.effort_share, p.user_count, p.contributor_count, p.average_hours_per_user]
        for p in summary.projects
    ]
    return pd.DataFrame(rows, columns=columns)


@register_page("Project Health")
def project_health_page():
    st.title("Project Health")
    service = get_service()
    if service is None or service.store is None:
        st.warning("Initialize the data-store connection on the Setup page first.")
        return
    spec = sidebar_filters(service, "project_health")

    if st.button("Load project health", type="primary"):
        reporter = ProgressReporter("Loading work logs and assignments")
        try:
            summary = service.project_health_dashboard(spec, progress=reporter.callback)
        except FetchError as exc:
            reporter.error(f"Failed to load project health: {exc}")
            st.error(str(exc))
            return
        if summary is None:
            reporter.stale()
        else:
            st.session_state[RESULT_KEY] = summary
            reporter.complete(f"Computed health for {summary.total_projects} project(s).")

    summary: ProjectHealthSummary | None = st.session_state.get(RESULT_KEY)
    if summary is None:
        st.info("Choose filters and load project health.")
        return
    cols = st.columns(5)
    cols[0].metric("Projects", summary.total_projects)
    cols[1].metric("Total FTE", f"{summary.total_fte:.2f}")
    cols[2].metric("Total hours", f"{summary.total_hours:.1f}")
    cols[3].metric("At capacity", summary.projects_at_capacity)
    cols[4].metric("Under capacity", summary.projects_under_capacity)
    render_table(health_table(summary), download_name="project_health.csv")

    for project in summary.projects:
        with st.expander(f"{project.project_name}: {project.fte:.2f} FTE"):
            chart = daily_line(project.utilization_trend, "utilization", title="Utilisation (%)")
            if chart is not None:
                st.altair_chart(chart, use_container_width=True)
            chart = forecast_chart(project.capacity_forecast)
            if chart is not None:
                st.caption("Capacity forecast")
                st.altair_chart(chart, use_container_width=True)
