"""Incident (service desk) dashboard metrics."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from ops_app.analytics.metrics.incidents import (
    REPORTED,
    first_call_resolution_rate,
    is_resolved,
    reopen_rate,
    sla_compliance_rate,
    with_durations,
)
from ops_app.analytics.pipeline.aggregate import (
    RESOLUTION_BUCKETS,
    StatSpec,
    Unit,
    aggregate,
    count_by,
    summarize,
    top_n,
)
from ops_app.analytics.pipeline.filters import filter_records
from ops_app.analytics.pipeline.grouping import by_field, by_month
from ops_app.analytics.pipeline.normalize import normalize_column
from ops_app.analytics.pipeline.series import build_series, period_matrix, pivot_series, series_by
from ops_app.analytics.pipeline.timestamps import Period
from ops_app.core.config import DEFAULT_TOP_N, UNASSIGNED
from ops_app.core.models import FilterSpec

TOP_MTTR_COLUMNS = ["incident_id", "priority", "assignee", "time_taken"]


@dataclass(frozen=True, slots=True)
class IncidentMetrics:
    """Everything the incident dashboard renders. Durations are in minutes."""

    total_incidents: int = 0
    # Volume
    incidents_by_priority: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_by_reported_source: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_per_assignee: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_by_priority_and_status: pd.DataFrame = field(default_factory=pd.DataFrame)
    incident_trend: pd.DataFrame = field(default_factory=pd.DataFrame)
    incident_trend_by_priority: pd.DataFrame = field(default_factory=pd.DataFrame)
    priority_stacked: pd.DataFrame = field(default_factory=pd.DataFrame)
    # Performance
    mean_time_to_respond: float = 0.0
    mean_time_to_resolve: float = 0.0
    first_call_resolution_rate: float = 0.0
    incident_reopen_rate: float = 0.0
    sla_compliance_rate: float = 0.0
    average_resolution_time_by_group: pd.DataFrame = field(default_factory=pd.DataFrame)
    average_resolution_time_by_priority: pd.DataFrame = field(default_factory=pd.DataFrame)
    assignee_performance: pd.DataFrame = field(default_factory=pd.DataFrame)
    assignee_mttr_heatmap: pd.DataFrame = field(default_factory=pd.DataFrame)
    top_mttr_incidents: pd.DataFrame = field(default_factory=pd.DataFrame)
    resolution_time_buckets: pd.DataFrame = field(default_factory=pd.DataFrame)
    resolution_bucket_totals: dict[str, int] = field(default_factory=dict)
    # Categorization & impact
    incidents_by_operational_category: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_by_product_categorization: pd.DataFrame = field(default_factory=pd.DataFrame)
    operational_category_monthly: pd.DataFrame = field(default_factory=pd.DataFrame)
    product_categorization_monthly: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_by_department: pd.DataFrame = field(default_factory=pd.DataFrame)
    incidents_by_impact: pd.DataFrame = field(default_factory=pd.DataFrame)
    # Filtered tickets with response/resolution minutes, for the detail table.
    tickets: pd.DataFrame = field(default_factory=pd.DataFrame)


def filter_incidents(records, spec: FilterSpec | None) -> pd.DataFrame:
    # Uploaded tickets carry no team; team selections do not apply to them.
    return filter_records(
        records,
        spec,
        date_field=REPORTED,
        team_field=None,
        project_field="project",
        user_field="user_email",
    )


def _tier_parts(prefix: str):
    return [
        by_field(f"{prefix}_tier_1", label="tier1"),
        by_field(f"{prefix}_tier_2", label="tier2"),
        by_field(f"{prefix}_tier_3", label="tier3"),
        by_field("priority"),
    ]


def _assignee_performance(frame: pd.DataFrame) -> pd.DataFrame:
    stats = [
        StatSpec.mean("avg_mttr", "resolution_minutes", unit=Unit.MINUTES, skip_missing=True),
        StatSpec.maximum("max_mttr", "resolution_minutes", unit=Unit.MINUTES, skip_missing=True),
        StatSpec.mean("avg_mtti", "response_minutes", unit=Unit.MINUTES, skip_missing=True),
        StatSpec.maximum("max_mtti", "response_minutes", unit=Unit.MINUTES, skip_missing=True),
        StatSpec.count("total_tickets"),
    ]
    return summarize(frame, [by_field("assignee", UNASSIGNED)], stats)


def _top_mttr(timed: pd.DataFrame, n: int) -> pd.DataFrame:
    if timed.empty:
        return pd.DataFrame(columns=TOP_MTTR_COLUMNS)
    table = pd.DataFrame(
        {
            "incident_id": normalize_column(timed, "incident_id"),
            "priority": normalize_column(timed, "priority"),
            "assignee": normalize_column(timed, "assignee", UNASSIGNED),
            "time_taken": timed["resolution_minutes"].astype(float),
        }
    )
    return top_n(table, "time_taken", n)


def build_incident_metrics(records, spec: FilterSpec | None = None, *, top: int = DEFAULT_TOP_N) -> IncidentMetrics:
    """Compute the incident dashboard from raw tickets.

    Parameters
    ----------
    records : DataFrame or iterable of mappings
        Incident tickets as returned by the data store.
    spec : FilterSpec, optional
        Date range (on ``reported_date``) and team/project/user selections.
    top : int
        Size of the slowest-incidents table.

    Returns
    -------
    IncidentMetrics
        Zero-valued scalars and empty (but fully columned) tables when
        nothing matches.
    """
    frame = with_durations(filter_incidents(records, spec))
    resolved = frame[is_resolved(frame)]
    timed = frame[frame["resolution_minutes"].notna()]
    avg_resolution = [StatSpec.mean("avg_time", "resolution_minutes", unit=Unit.MINUTES)]
    bucket_stat = StatSpec.distribution("resolution_time", "resolution_minutes", RESOLUTION_BUCKETS)
    performance = _assignee_performance(frame)

    return IncidentMetrics(
        total_incidents=len(frame),
        incidents_by_priority=count_by(frame, [by_field("priority")]),
        incidents_by_reported_source=count_by(frame, [by_field("reported_source", label="source")]),
        incidents_per_assignee=count_by(frame, [by_field("assignee", UNASSIGNED)]),
        incidents_by_priority_and_status=count_by(frame, [by_field("priority"), by_field("status")]),
        incident_trend=build_series(frame, REPORTED, Period.DAY, [StatSpec.count()]),
        incident_trend_by_priority=series_by(frame, REPORTED, Period.MONTH, "priority"),
        priority_stacked=pivot_series(frame, REPORTED, Period.MONTH, "priority"),
        mean_time_to_respond=aggregate(resolved, StatSpec.mean("mtti", "response_minutes", unit=Unit.MINUTES)),
        mean_time_to_resolve=aggregate(resolved, StatSpec.mean("mttr", "resolution_minutes", unit=Unit.MINUTES)),
        first_call_resolution_rate=first_call_resolution_rate(resolved),
        incident_reopen_rate=reopen_rate(frame),
        sla_compliance_rate=sla_compliance_rate(resolved),
        average_resolution_time_by_group=summarize(resolved, [by_field("resolver_group", label="group")], avg_resolution),
        average_resolution_time_by_priority=summarize(resolved, [by_field("priority")], avg_resolution),
        assignee_performance=performance,
        assignee_mttr_heatmap=performance[["assignee", "avg_mttr"]].copy(),
        top_mttr_incidents=_top_mttr(timed, top),
        resolution_time_buckets=summarize(
            timed,
            [by_month(REPORTED), by_field("assignee", UNASSIGNED), by_field("priority")],
            [bucket_stat],
        ),
        resolution_bucket_totals=aggregate(timed, bucket_stat),
        incidents_by_operational_category=count_by(frame, [by_field("operational_category_tier_1", label="category")]),
        incidents_by_product_categorization=count_by(frame, [by_field("product_categorization_tier_1", label="category")]),
        operational_category_monthly=period_matrix(frame, _tier_parts("operational_category"), REPORTED),
        product_categorization_monthly=period_matrix(frame, _tier_parts("product_categorization"), REPORTED),
        incidents_by_department=count_by(frame, [by_field("department")]),
        incidents_by_impact=count_by(frame, [by_field("impact")]),
        tickets=frame.reset_index(drop=True),
    )
