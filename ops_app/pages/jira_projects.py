"""Jira projects page: per-project issue metrics and assignee/reporter views."""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from ops_app.analytics.dashboards.jira_projects import JiraOverview
from ops_app.app import register_page
from ops_app.core.errors import FetchError
from ops_app.features.filters import get_service, sidebar_filters
from ops_app.visual.charts import count_bar
from ops_app.visual.progress import ProgressReporter
from ops_app.visual.tables import distribution_frame, render_issue_table, render_table

logger = logging.getLogger(__name__)

RESULT_KEY = "jira_overview"
PROJECTS_KEY = "jira_project_choices"


def project_table(overview: JiraOverview) -> pd.DataFrame:
    columns = ["project_key", "project", "total", "open", "in_progress", "closed", "story_points", "avg_story_points"]
    rows = [
        [
            p.project_key,
            p.project_name,
            p.total_issues,
            p.open_issues,
            p.in_progress_issues,
            p.closed_issues,
            p.total_story_points,
            p.average_story_points,
        ]
        for p in overview.projects
    ]
    return pd.DataFrame(rows, columns=columns)


def _project_picker(service) -> list[str]:
    """Multiselect over the visible Jira projects; free text when they cannot be listed."""
    if PROJECTS_KEY not in st.session_state:
        try:
            st.session_state[PROJECTS_KEY] = service.jira.projects()
        except FetchError as exc:
            logger.warning("Listing Jira projects failed: %s", exc)
            st.session_state[PROJECTS_KEY] = []
    projects = st.session_state[PROJECTS_KEY]
    if projects:
        labels = {p["key"]: f"{p['key']}: {p['name']}" for p in projects}
        return st.multiselect("Projects", list(labels), format_func=labels.get, key="jira_keys")
    raw = st.text_input("Project keys (comma separated)", key="jira_keys_text")
    return [k.strip().upper() for k in raw.split(",") if k.strip()]


@register_page("Jira Projects")
def jira_projects_page():
    st.title("Jira Projects")
    service = get_service()
    if service is None or service.jira is None:
        st.warning("Initialize the Jira connection on the Setup page first.")
        return
    spec = sidebar_filters(service, "jira", people=False)
    keys = _project_picker(service)

    if st.button("Fetch issues", type="primary"):
        if not keys:
            st.error("Enter at least one project key.")
            return
        reporter = ProgressReporter(f"Querying Jira for {', '.join(keys)}")
        try:
            overview = service.jira_dashboard(keys, spec, progress=reporter.callback)
        except FetchError as exc:
            reporter.error(f"Failed to fetch Jira issues: {exc}")
            st.error(str(exc))
            return
        if overview is None:
            reporter.stale()
        else:
            st.session_state[RESULT_KEY] = overview
            reporter.complete(f"Loaded {len(overview.projects)} project(s).")

    overview: JiraOverview | None = st.session_state.get(RESULT_KEY)
    if overview is None:
        st.info("Enter project keys and fetch issues.")
        return
    render_table(project_table(overview), download_name="jira_projects.csv")
    server = st.session_state.get("jira_server", "")
    for project in overview.projects:
        with st.expander(f"{project.project_key}: {project.project_name} ({project.total_issues} issues)"):
            left, right = st.columns(2)
            chart = count_bar(distribution_frame(project.assignee_distribution, "assignee"), "assignee")
            if chart is not None:
                left.altair_chart(chart, use_container_width=True)
            right.dataframe(distribution_frame(project.priority_distribution, "priority"), hide_index=True)
            right.dataframe(distribution_frame(project.issue_type_distribution, "issuetype"), hide_index=True)
            st.markdown("**Recent activity**")
            render_issue_table(project.recent_activity, server)

    assignee_tab, reporter_tab = st.tabs(["Assignees", "Reporters"])
    with assignee_tab:
        render_table(overview.people.by_assignee, download_name="jira_assignees.csv")
    with reporter_tab:
        render_table(overview.people.by_reporter, download_name="jira_reporters.csv")
    if overview.mapped_users:
        st.subheader("Mapped dashboard users")
        mapped = pd.DataFrame(
            [
                {
                    "user": m.user_email,
                    "assignee_name": m.jira_assignee_name,
                    "assigned": m.total_assigned_issues,
                    "reported": m.total_reported_issues,
                    "open": m.open_assigned_issues,
                    "in_progress": m.in_progress_assigned_issues,
                    "closed": m.closed_assigned_issues,
                    "story_points": m.total_story_points,
                }
                for m in overview.mapped_users
            ]
        )
        render_table(mapped, download_name="jira_mapped_users.csv")
