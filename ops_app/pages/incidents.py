"""Incident dashboard: volume, MTTR/MTTI, SLA and resolution-time breakdowns."""

from __future__ import annotations

import streamlit as st

from ops_app.analytics.dashboards.incidents import IncidentMetrics
from ops_app.app import register_page
from ops_app.core.errors import FetchError
from ops_app.features.filters import get_service, sidebar_filters
from ops_app.visual.charts import bucket_bar, count_bar, daily_line, heatmap, stacked_bar
from ops_app.visual.progress import ProgressReporter
from ops_app.visual.tables import render_table

RESULT_KEY = "incident_metrics"


def _minutes(value: float) -> str:
    if value >= 60:
        return f"{value / 60:.1f} h"
    return f"{value:.0f} min"


def _kpis(metrics: IncidentMetrics) -> None:
    cols = st.columns(6)
    cols[0].metric("Incidents", metrics.total_incidents)
    cols[1].metric("MTTI", _minutes(metrics.mean_time_to_respond))
    cols[2].metric("MTTR", _minutes(metrics.mean_time_to_resolve))
    cols[3].metric("SLA compliance", f"{metrics.sla_compliance_rate:.1f}%")
    cols[4].metric("First-call resolution", f"{metrics.first_call_resolution_rate:.1f}%")
    cols[5].metric("Reopen rate", f"{metrics.incident_reopen_rate:.1f}%")


def _volume_tab(metrics: IncidentMetrics) -> None:
    st.subheader("Daily incidents")
    chart = daily_line(metrics.incident_trend, "count", title="Incidents")
    if chart is None:
        st.caption("No dated incidents.")
    else:
        st.altair_chart(chart, use_container_width=True)
    st.subheader("Monthly incidents by priority")
    chart = stacked_bar(metrics.incident_trend_by_priority, "priority")
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    render_table(metrics.priority_stacked.drop(columns=["period", "period_start"], errors="ignore"), download_name="priority_by_month.csv")

    left, right = st.columns(2)
    with left:
        st.markdown("**By priority**")
        chart = count_bar(metrics.incidents_by_priority, "priority")
        if chart is not None:
            st.altair_chart(chart, use_container_width=True)
        st.markdown("**By reported source**")
        render_table(metrics.incidents_by_reported_source, download_name="incidents_by_source.csv")
        st.markdown("**By department**")
        render_table(metrics.incidents_by_department, download_name="incidents_by_department.csv")
    with right:
        st.markdown("**By priority and status**")
        render_table(metrics.incidents_by_priority_and_status, download_name="incidents_by_priority_status.csv")
        st.markdown("**By impact**")
        render_table(metrics.incidents_by_impact, download_name="incidents_by_impact.csv")


def _resolution_tab(metrics: IncidentMetrics) -> None:
    st.subheader("Resolution time distribution")
    chart = bucket_bar(metrics.resolution_bucket_totals)
    if chart is None:
        st.caption("No incidents with a resolution time.")
    else:
        st.altair_chart(chart, use_container_width=True)
    render_table(metrics.resolution_time_buckets, download_name="resolution_time_buckets.csv")

    left, right = st.columns(2)
    with left:
        st.markdown("**Average resolution by group (min)**")
        render_table(metrics.average_resolution_time_by_group, download_name="resolution_by_group.csv")
    with right:
        st.markdown("**Average resolution by priority (min)**")
        render_table(metrics.average_resolution_time_by_priority, download_name="resolution_by_priority.csv")
    st.markdown("**Slowest incidents**")
    render_table(metrics.top_mttr_incidents, download_name="top_mttr_incidents.csv")


def _assignee_tab(metrics: IncidentMetrics) -> None:
    st.subheader("Assignee performance")
    render_table(metrics.assignee_performance, download_name="assignee_performance.csv")
    heat = metrics.assignee_mttr_heatmap.assign(metric="avg_mttr")
    chart = heatmap(heat, "metric", "assignee", "avg_mttr")
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)
    st.markdown("**Incidents per assignee**")
    chart = count_bar(metrics.incidents_per_assignee, "assignee")
    if chart is not None:
        st.altair_chart(chart, use_container_width=True)


def _category_tab(metrics: IncidentMetrics) -> None:
    left, right = st.columns(2)
    with left:
        st.markdown("**Operational category**")
        render_table(metrics.incidents_by_operational_category, download_name="operational_category.csv")
    with right:
        st.markdown("**Product categorization**")
        render_table(metrics.incidents_by_product_categorization, download_name="product_categorization.csv")
    st.markdown("**Operational category by month**")
    render_table(metrics.operational_category_monthly, download_name="operational_category_monthly.csv")
    st.markdown("**Product categorization by month**")
    render_table(metrics.product_categorization_monthly, download_name="product_categorization_monthly.csv")


@register_page("Incidents")
def incidents_page():
    st.title("Incident Dashboard")
    service = get_service()
    if service is None or service.store is None:
        st.warning("Initialize the data-store connection on the Setup page first.")
        return
    spec = sidebar_filters(service, "incidents", teams=False)

    if st.button("Load incidents", type="primary"):
        reporter = ProgressReporter("Loading incident tickets")
        try:
            metrics = service.incident_dashboard(spec, progress=reporter.callback)
        except FetchError as exc:
            reporter.error(f"Failed to load incidents: {exc}")
            st.error(str(exc))
            return
        if metrics is None:
            reporter.stale()
        else:
            st.session_state[RESULT_KEY] = metrics
            reporter.complete(f"Loaded {metrics.total_incidents} incident(s).")

    metrics: IncidentMetrics | None = st.session_state.get(RESULT_KEY)
    if metrics is None:
        st.info("Choose filters and load incidents.")
        return
    _kpis(metrics)
    volume, resolution, assignees, categories, tickets = st.tabs(
        ["Volume", "Resolution", "Assignees", "Categories", "Tickets"]
    )
    with volume:
        _volume_tab(metrics)
    with resolution:
        _resolution_tab(metrics)
    with assignees:
        _assignee_tab(metrics)
    with categories:
        _category_tab(metrics)
    with tickets:
        render_table(metrics.tickets, set_name="incident", download_name="incidents.csv")
