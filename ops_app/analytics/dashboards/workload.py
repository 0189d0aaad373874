"""Work-log dashboards: team and individual occupancy, shift-aware workload,
project health and weekly trends.

All hours come from ``logged_duration_seconds``. When the filter carries no
date range, the range spanned by the filtered logs is used for capacity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from ops_app.analytics.metrics.capacity import (
    available_hours,
    capacity_forecast,
    fte,
    is_active_shift,
    occupancy_rate,
    shift_available_hours,
    shift_calendar,
    with_logged_hours,
    working_day_list,
)
from ops_app.analytics.pipeline.aggregate import StatSpec, Unit, aggregate, summarize, top_n
from ops_app.analytics.pipeline.filters import filter_records
from ops_app.analytics.pipeline.grouping import by_field
from ops_app.analytics.pipeline.normalize import normalize_column, records_frame
from ops_app.analytics.pipeline.series import build_series
from ops_app.analytics.pipeline.timestamps import Period, period_start_column, timestamp_column
from ops_app.core.config import (
    DEFAULT_TOP_CONTRIBUTORS,
    SHIFT_GENERAL,
    STANDARD_HOURS_PER_DAY,
    UNDERUTILIZED_THRESHOLD,
    UNKNOWN,
)
from ops_app.core.models import DateRange, FilterSpec

LOG_DATE = "start_time"
HOURS = StatSpec.total("hours", "logged_hours", unit=Unit.HOURS)
TASK_COLUMNS = ["ticket_id", "hours", "project"]
CONTRIBUTOR_COLUMNS = ["name", "hours", "utilization_rate"]
UNDERUTILIZED_COLUMNS = ["name", "hours", "utilization_rate", "has_work_logs"]


@dataclass(frozen=True, slots=True)
class TeamMetrics:
    team_name: str
    member_count: int
    total_worked_hours: float
    available_hours: float
    occupancy_rate: float
    fte_per_project: dict[str, float] = field(default_factory=dict)
    hours_by_work_type: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class IndividualMetrics:
    user_email: str
    user_name: str
    total_worked_hours: float
    available_hours: float
    occupancy_rate: float
    project_hours: dict[str, float] = field(default_factory=dict)
    task_contributions: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=TASK_COLUMNS))
    hours_by_work_type: dict[str, float] = field(default_factory=dict)
    work_logs: pd.DataFrame = field(default_factory=pd.DataFrame)


@dataclass(frozen=True, slots=True)
class MemberWorkload:
    user_email: str
    user_name: str
    total_logged_hours: float
    available_hours: float
    utilization_rate: float
    overtime_hours: float
    idle_hours: float
    leave_count: int
    has_active_shifts: bool
    project_distribution: dict[str, float] = field(default_factory=dict)
    work_type_distribution: dict[str, float] = field(default_factory=dict)
    daily_workload: pd.DataFrame = field(default_factory=pd.DataFrame)


@dataclass(frozen=True, slots=True)
class WorkloadSummary:
    members: list[MemberWorkload] = field(default_factory=list)
    total_users: int = 0
    average_utilization: float = 0.0
    total_overtime: float = 0.0
    total_idle_hours: float = 0.0
    total_leaves: int = 0
    top_contributors: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=CONTRIBUTOR_COLUMNS))
    underutilized_members: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=UNDERUTILIZED_COLUMNS))


@dataclass(frozen=True, slots=True)
class ProjectHealth:
    project_name: str
    total_hours: float
    fte: float
    effort_share: float
    user_count: int
    contributor_count: int
    average_hours_per_user: float
    utilization_trend: pd.DataFrame = field(default_factory=pd.DataFrame)
    capacity_forecast: pd.DataFrame = field(default_factory=pd.DataFrame)


@dataclass(frozen=True, slots=True)
class ProjectHealthSummary:
    projects: list[ProjectHealth] = field(default_factory=list)
    total_projects: int = 0
    total_fte: float = 0.0
    average_effort_share: float = 0.0
    total_hours: float = 0.0
    capacity_utilization: float = 0.0
    projects_at_capacity: int = 0
    projects_under_capacity: int = 0


def filter_work_logs(logs, spec: FilterSpec | None) -> pd.DataFrame:
    frame = filter_records(
        logs,
        spec,
        date_field=LOG_DATE,
        team_field="team",
        project_field="project",
        user_field="user_email",
    )
    return with_logged_hours(frame)


def effective_range(spec: FilterSpec | None, logs: pd.DataFrame) -> DateRange | None:
    if spec is not None and spec.date_range is not None:
        return spec.date_range
    if logs.empty:
        return None
    stamps = timestamp_column(logs, LOG_DATE).dropna()
    if stamps.empty:
        return None
    return DateRange(stamps.min().date(), stamps.max().date())


def _round(value: float) -> float:
    return round(float(value), 2)


def hours_by(frame: pd.DataFrame, field_name: str, default: str = UNKNOWN) -> dict[str, float]:
    table = summarize(frame, [by_field(field_name, default)], [HOURS])
    return {str(key): _round(hours) for key, hours in zip(table[field_name], table["hours"])}


def _rows_for(frame: pd.DataFrame, field_name: str, value: str) -> pd.DataFrame:
    if frame.empty:
        return frame
    return frame[normalize_column(frame, field_name) == value]


def _ordered_unique(values) -> list[str]:
    return [str(v) for v in pd.unique(pd.Series(list(values), dtype=object)) if v != UNKNOWN]


def _users_frame(users, spec: FilterSpec | None, logs: pd.DataFrame) -> pd.DataFrame:
    frame = records_frame(users)
    if frame.empty and not logs.empty:
        frame = pd.DataFrame(
            {
                "email": normalize_column(logs, "user_email"),
                "full_name": normalize_column(logs, "user_name"),
            }
        ).drop_duplicates("email")
    if frame.empty:
        return pd.DataFrame(columns=["email", "full_name"])
    frame = frame.assign(
        email=normalize_column(frame, "email"),
        full_name=normalize_column(frame, "full_name"),
    )
    frame = frame[frame["email"] != UNKNOWN]
    if spec is not None and spec.selected_users:
        frame = frame[frame["email"].isin(spec.selected_users)]
    return frame.reset_index(drop=True)


def build_team_metrics(logs, members, spec: FilterSpec | None = None) -> list[TeamMetrics]:
    """Occupancy and FTE per team.

    ``members`` rows carry ``team`` and ``user_email``. Available hours are
    8 x working days x team size.
    """
    frame = filter_work_logs(logs, spec)
    roster = records_frame(members)
    date_range = effective_range(spec, frame)

    names = _ordered_unique(normalize_column(roster, "team")) if not roster.empty else []
    if not frame.empty:
        names += [name for name in _ordered_unique(normalize_column(frame, "team")) if name not in names]
    if spec is not None and spec.selected_teams:
        names = [name for name in names if name in spec.selected_teams]

    out: list[TeamMetrics] = []
    for name in names:
        team_roster = _rows_for(roster, "team", name)
        member_count = int(normalize_column(team_roster, "user_email").nunique()) if not team_roster.empty else 0
        team_logs = _rows_for(frame, "team", name)
        worked = aggregate(team_logs, HOURS)
        capacity = available_hours(date_range, member_count)
        out.append(
            TeamMetrics(
                team_name=name,
                member_count=member_count,
                total_worked_hours=_round(worked),
                available_hours=_round(capacity),
                occupancy_rate=_round(occupancy_rate(worked, capacity)),
                fte_per_project={
                    project: _round(fte(hours, date_range)) for project, hours in hours_by(team_logs, "project").items()
                },
                hours_by_work_type=hours_by(team_logs, "work_type"),
            )
        )
    return out


def task_contributions(frame: pd.DataFrame, limit: int = 10) -> pd.DataFrame:
    table = summarize(frame, [by_field("ticket_id"), by_field("project")], [HOURS])
    if table.empty:
        return pd.DataFrame(columns=TASK_COLUMNS)
    table["hours"] = table["hours"].round(2)
    return top_n(table[TASK_COLUMNS], "hours", limit)


def build_individual_metrics(logs, users, spec: FilterSpec | None = None) -> list[IndividualMetrics]:
    """Per-user occupancy against 8 hours per working day."""
    frame = filter_work_logs(logs, spec)
    date_range = effective_range(spec, frame)
    capacity = available_hours(date_range, 1)
    out: list[IndividualMetrics] = []
    for user in _users_frame(users, spec, frame).itertuples(index=False):
        mine = _rows_for(frame, "user_email", user.email)
        worked = aggregate(mine, HOURS)
        out.append(
            IndividualMetrics(
                user_email=user.email,
                user_name=user.full_name,
                total_worked_hours=_round(worked),
                available_hours=_round(capacity),
                occupancy_rate=_round(occupancy_rate(worked, capacity)),
                project_hours=hours_by(mine, "project"),
                task_contributions=task_contributions(mine),
                hours_by_work_type=hours_by(mine, "work_type"),
                work_logs=mine.reset_index(drop=True),
            )
        )
    return out


def daily_workload(
    logs: pd.DataFrame,
    date_range: DateRange | None,
    calendar: dict[date, str],
) -> pd.DataFrame:
    """Zero-filled hours per working day with shift-aware availability."""
    series = build_series(logs, LOG_DATE, Period.DAY, [HOURS], fill_range=date_range, working_days_only=True)
    if series.empty:
        return series.assign(available_hours=pd.Series(dtype=float), utilization=pd.Series(dtype=float))
    available = [
        STANDARD_HOURS_PER_DAY if is_active_shift(calendar.get(start.date(), SHIFT_GENERAL)) else 0.0
        for start in series["period_start"]
    ]
    series["hours"] = series["hours"].astype(float).round(2)
    series["available_hours"] = available
    series["utilization"] = [_round(occupancy_rate(h, a)) for h, a in zip(series["hours"], available)]
    return series


def _member_workload(user, frame: pd.DataFrame, shifts, date_range: DateRange | None) -> MemberWorkload:
    mine = _rows_for(frame, "user_email", user.email)
    calendar = shift_calendar(shifts, user.email)
    capacity, leaves = shift_available_hours(date_range, calendar)
    logged = aggregate(mine, HOURS)
    return MemberWorkload(
        user_email=user.email,
        user_name=user.full_name,
        total_logged_hours=_round(logged),
        available_hours=_round(capacity),
        utilization_rate=_round(occupancy_rate(logged, capacity)),
        overtime_hours=_round(max(0.0, logged - capacity)),
        idle_hours=_round(max(0.0, capacity - logged)),
        leave_count=leaves,
        has_active_shifts=capacity > 0,
        project_distribution=hours_by(mine, "project"),
        work_type_distribution=hours_by(mine, "work_type"),
        daily_workload=daily_workload(mine, date_range, calendar),
    )


def build_workload_metrics(logs, users, shifts, spec: FilterSpec | None = None) -> WorkloadSummary:
    """Shift-aware utilisation per member plus team-level summary.

    Shift codes: ``L`` is leave (counted, not available), ``H`` is a
    holiday (not available), anything else or no entry is an 8-hour day.
    """
    frame = filter_work_logs(logs, spec)
    date_range = effective_range(spec, frame)
    members = [_member_workload(user, frame, shifts, date_range) for user in _users_frame(users, spec, frame).itertuples(index=False)]
    if not members:
        return WorkloadSummary()

    table = pd.DataFrame(
        {
            "name": [m.user_name for m in members],
            "hours": [m.total_logged_hours for m in members],
            "utilization_rate": [m.utilization_rate for m in members],
            "has_work_logs": [m.total_logged_hours > 0 for m in members],
            "active": [m.has_active_shifts for m in members],
        }
    )
    contributors = top_n(table[table["has_work_logs"]], "utilization_rate", DEFAULT_TOP_CONTRIBUTORS)
    under = table[table["active"] & (table["utilization_rate"] < UNDERUTILIZED_THRESHOLD)]
    under = under.sort_values("utilization_rate", kind="stable").head(DEFAULT_TOP_CONTRIBUTORS)

    return WorkloadSummary(
        members=members,
        total_users=len(members),
        average_utilization=_round(table["utilization_rate"].mean()),
        total_overtime=_round(sum(m.overtime_hours for m in members)),
        total_idle_hours=_round(sum(m.idle_hours for m in members)),
        total_leaves=sum(m.leave_count for m in members),
        top_contributors=contributors[CONTRIBUTOR_COLUMNS].reset_index(drop=True),
        underutilized_members=under[UNDERUTILIZED_COLUMNS].reset_index(drop=True),
    )


def _assigned_emails(assignments: pd.DataFrame, roster: pd.DataFrame, project: str | None = None) -> set[str]:
    if assignments.empty or roster.empty:
        return set()
    rows = assignments if project is None else _rows_for(assignments, "project", project)
    teams = set(normalize_column(rows, "team"))
    team_roster = roster[normalize_column(roster, "team").isin(teams)]
    return set(normalize_column(team_roster, "user_email")) - {UNKNOWN}


def utilization_trend(logs: pd.DataFrame, date_range: DateRange | None) -> pd.DataFrame:
    series = build_series(logs, LOG_DATE, Period.DAY, [HOURS], fill_range=date_range, working_days_only=True)
    series["hours"] = series["hours"].astype(float).round(2)
    series["utilization"] = (series["hours"] / STANDARD_HOURS_PER_DAY * 100.0).round(2)
    return series


def build_project_health(
    logs,
    projects,
    assignments,
    members,
    spec: FilterSpec | None = None,
) -> ProjectHealthSummary:
    """FTE, effort share and capacity forecast per project.

    Headcount comes from team-to-project ``assignments`` (``team``,
    ``project``) joined with team ``members`` (``team``, ``user_email``).
    Effort share is project hours over the capacity of everyone assigned to
    any project.
    """
    frame = filter_work_logs(logs, spec)
    date_range = effective_range(spec, frame)
    assignment_frame = records_frame(assignments)
    roster = records_frame(members)

    catalog = records_frame(projects)
    names = _ordered_unique(normalize_column(catalog, "name")) if not catalog.empty else []
    if not names and not frame.empty:
        names = _ordered_unique(normalize_column(frame, "project"))
    if spec is not None and spec.selected_projects:
        names = [name for name in names if name in spec.selected_projects]

    team_capacity = available_hours(date_range, len(_assigned_emails(assignment_frame, roster)))

    health: list[ProjectHealth] = []
    for name in names:
        project_logs = _rows_for(frame, "project", name)
        total = aggregate(project_logs, HOURS)
        headcount = len(_assigned_emails(assignment_frame, roster, name))
        contributors = int(normalize_column(project_logs, "user_email").nunique()) if not project_logs.empty else 0
        trend = utilization_trend(project_logs, date_range)
        daily = {start.date(): hours for start, hours in zip(trend["period_start"], trend["hours"])}
        health.append(
            ProjectHealth(
                project_name=name,
                total_hours=_round(total),
                fte=_round(fte(total, date_range, members=headcount)),
                effort_share=_round(occupancy_rate(total, team_capacity)),
                user_count=headcount,
                contributor_count=contributors,
                average_hours_per_user=_round(total / contributors) if contributors else 0.0,
                utilization_trend=trend,
                capacity_forecast=capacity_forecast(daily, date_range),
            )
        )

    if not health:
        return ProjectHealthSummary()
    total_fte = sum(p.fte for p in health)
    return ProjectHealthSummary(
        projects=health,
        total_projects=len(health),
        total_fte=_round(total_fte),
        average_effort_share=_round(sum(p.effort_share for p in health) / len(health)),
        total_hours=_round(sum(p.total_hours for p in health)),
        capacity_utilization=_round(total_fte / len(health)),
        projects_at_capacity=sum(1 for p in health if p.fte >= 1),
        projects_under_capacity=sum(1 for p in health if p.fte < 1),
    )


def build_trends(logs, members, spec: FilterSpec | None = None) -> pd.DataFrame:
    """Weekly worked hours with team and per-active-user occupancy.

    Team occupancy divides by everyone on the roster; individual occupancy
    divides by the users who logged time that week.
    """
    frame = filter_work_logs(logs, spec)
    date_range = effective_range(spec, frame)
    roster = records_frame(members)
    member_count = int(normalize_column(roster, "user_email").nunique()) if not roster.empty else 0

    stats = [HOURS, StatSpec.count("entries")]
    series = build_series(frame, LOG_DATE, Period.WEEK, stats)
    if series.empty:
        return series.assign(
            active_users=pd.Series(dtype=int),
            team_occupancy=pd.Series(dtype=float),
            individual_occupancy=pd.Series(dtype=float),
        )

    weeks = period_start_column(frame, LOG_DATE, Period.WEEK)
    active = normalize_column(frame, "user_email").groupby(weeks).nunique()
    days_in_range = set(working_day_list(date_range))

    team_rates, individual_rates, active_counts = [], [], []
    for start, hours in zip(series["period_start"], series["hours"]):
        week_days = [day for day in pd.date_range(start, periods=5).date if not days_in_range or day in days_in_range]
        users = int(active.get(start, 0))
        team_rates.append(_round(occupancy_rate(hours, STANDARD_HOURS_PER_DAY * len(week_days) * member_count)))
        individual_rates.append(_round(occupancy_rate(hours, STANDARD_HOURS_PER_DAY * len(week_days) * users)))
        active_counts.append(users)
    series["hours"] = series["hours"].astype(float).round(2)
    series["active_users"] = active_counts
    series["team_occupancy"] = team_rates
    series["individual_occupancy"] = individual_rates
    return series
