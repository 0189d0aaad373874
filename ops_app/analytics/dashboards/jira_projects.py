"""Jira dashboards: per-project issue metrics and assignee/reporter views."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from ops_app.analytics.metrics.incidents import minutes_between
from ops_app.analytics.pipeline.aggregate import StatSpec, Unit, aggregate, count_by, summarize, top_n
from ops_app.analytics.pipeline.filters import filter_records
from ops_app.analytics.pipeline.grouping import by_field, group_by
from ops_app.analytics.pipeline.normalize import normalize, normalize_column, records_frame
from ops_app.core.config import DEFAULT_TOP_N, NO_PRIORITY, UNASSIGNED, UNKNOWN
from ops_app.core.models import FilterSpec
from ops_app.core.status import CLOSED, IN_PROGRESS, OPEN, jira_status_bucket

RECENT_COLUMNS = ["key", "summary", "status", "updated"]


def _bucket_is(bucket: str):
    def predicate(frame: pd.DataFrame) -> pd.Series:
        return frame["status_bucket"] == bucket

    return predicate


STATUS_COUNTS = [
    StatSpec.count("open", predicate=_bucket_is(OPEN)),
    StatSpec.count("in_progress", predicate=_bucket_is(IN_PROGRESS)),
    StatSpec.count("closed", predicate=_bucket_is(CLOSED)),
]
STORY_POINTS = StatSpec.total("story_points", "story_points")
# Averaged over every issue; issues without an estimate count as 0 points.
AVERAGE_STORY_POINTS = StatSpec.mean("average_story_points", "story_points")


@dataclass(frozen=True, slots=True)
class JiraProjectMetrics:
    project_key: str
    project_name: str
    total_issues: int
    open_issues: int
    closed_issues: int
    in_progress_issues: int
    total_story_points: float
    average_story_points: float
    assignee_distribution: dict[str, int] = field(default_factory=dict)
    priority_distribution: dict[str, int] = field(default_factory=dict)
    issue_type_distribution: dict[str, int] = field(default_factory=dict)
    recent_activity: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=RECENT_COLUMNS))


@dataclass(frozen=True, slots=True)
class JiraPeopleMetrics:
    by_assignee: pd.DataFrame = field(default_factory=pd.DataFrame)
    by_reporter: pd.DataFrame = field(default_factory=pd.DataFrame)


@dataclass(frozen=True, slots=True)
class MappedUserMetrics:
    user_email: str
    user_name: str
    jira_assignee_name: str
    jira_reporter_name: str
    total_assigned_issues: int
    total_reported_issues: int
    open_assigned_issues: int
    in_progress_assigned_issues: int
    closed_assigned_issues: int
    total_story_points: float
    average_story_points: float
    issue_type_distribution: dict[str, int] = field(default_factory=dict)
    priority_distribution: dict[str, int] = field(default_factory=dict)
    project_distribution: dict[str, int] = field(default_factory=dict)


def prepare_issues(issues, spec: FilterSpec | None = None) -> pd.DataFrame:
    """Filter mapped Jira issues on ``created`` and project, and add ``status_bucket``."""
    frame = filter_records(issues, spec, date_field="created", project_field="project")
    frame["status_bucket"] = normalize_column(frame, "status", "").map(jira_status_bucket).astype(object)
    return frame


def _distribution(frame: pd.DataFrame, field_name: str, default: str) -> dict[str, int]:
    table = count_by(frame, [by_field(field_name, default)])
    return {str(k): int(v) for k, v in zip(table[field_name], table["count"])}


def _recent_activity(frame: pd.DataFrame, limit: int) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=RECENT_COLUMNS)
    table = pd.DataFrame({col: normalize_column(frame, col, "") for col in RECENT_COLUMNS})
    table["_updated"] = pd.to_datetime(table["updated"], utc=True, errors="coerce")
    return top_n(table, "_updated", limit)[RECENT_COLUMNS]


def build_jira_project_metrics(issues, spec: FilterSpec | None = None, *, recent: int = DEFAULT_TOP_N) -> list[JiraProjectMetrics]:
    """Issue counts, story points and distributions per Jira project, first-seen order."""
    frame = prepare_issues(issues, spec)
    out: list[JiraProjectMetrics] = []
    for key, group in group_by(frame, [by_field("project_key")]).items():
        row = {stat.name: aggregate(group, stat) for stat in [*STATUS_COUNTS, STORY_POINTS, AVERAGE_STORY_POINTS]}
        out.append(
            JiraProjectMetrics(
                project_key=str(key),
                project_name=str(normalize(group.iloc[0], "project", key)),
                total_issues=len(group),
                open_issues=row["open"],
                closed_issues=row["closed"],
                in_progress_issues=row["in_progress"],
                total_story_points=round(row["story_points"], 2),
                average_story_points=round(row["average_story_points"], 2),
                assignee_distribution=_distribution(group, "assignee", UNASSIGNED),
                priority_distribution=_distribution(group, "priority", NO_PRIORITY),
                issue_type_distribution=_distribution(group, "issuetype", UNKNOWN),
                recent_activity=_recent_activity(group, recent),
            )
        )
    return out


def build_jira_assignee_reporter(issues, spec: FilterSpec | None = None) -> JiraPeopleMetrics:
    """Per-assignee workload and per-reporter volume.

    Resolution days are averaged over issues that have a resolution date.
    """
    frame = prepare_issues(issues, spec)
    frame["resolution_days"] = minutes_between(frame, "created", "resolutiondate") / (60.0 * 24.0)
    by_assignee = summarize(
        frame,
        [by_field("assignee", UNASSIGNED)],
        [
            StatSpec.count("total"),
            *STATUS_COUNTS,
            STORY_POINTS,
            StatSpec.mean("avg_resolution_days", "resolution_days", unit=Unit.DAYS, skip_missing=True),
        ],
    )
    by_reporter = summarize(
        frame,
        [by_field("reporter", UNKNOWN)],
        [StatSpec.count("reported"), *STATUS_COUNTS],
    )
    return JiraPeopleMetrics(
        by_assignee=by_assignee.sort_values("total", ascending=False, kind="stable").reset_index(drop=True),
        by_reporter=by_reporter.sort_values("reported", ascending=False, kind="stable").reset_index(drop=True),
    )


def build_mapped_user_metrics(issues, mappings, spec: FilterSpec | None = None) -> list[MappedUserMetrics]:
    """Jira activity for dashboard users mapped to Jira assignee/reporter names.

    ``mappings`` rows carry ``user_email``, ``jira_assignee_name`` and an
    optional ``jira_reporter_name``. Every mapped user gets an entry, even
    without issues.
    """
    frame = prepare_issues(issues, spec)
    assignees = normalize_column(frame, "assignee", "")
    reporters = normalize_column(frame, "reporter", "")
    out: list[MappedUserMetrics] = []
    for mapping in records_frame(mappings).to_dict("records"):
        email = str(normalize(mapping, "user_email", ""))
        assignee_name = str(normalize(mapping, "jira_assignee_name", ""))
        reporter_name = str(normalize(mapping, "jira_reporter_name", ""))
        assigned = frame[assignees == assignee_name] if assignee_name else frame.head(0)
        reported = int((reporters == reporter_name).sum()) if reporter_name else 0
        counts = {stat.name: aggregate(assigned, stat) for stat in [*STATUS_COUNTS, STORY_POINTS, AVERAGE_STORY_POINTS]}
        out.append(
            MappedUserMetrics(
                user_email=email,
                user_name=email.split("@")[0],
                jira_assignee_name=assignee_name,
                jira_reporter_name=reporter_name,
                total_assigned_issues=len(assigned),
                total_reported_issues=reported,
                open_assigned_issues=counts["open"],
                in_progress_assigned_issues=counts["in_progress"],
                closed_assigned_issues=counts["closed"],
                total_story_points=round(counts["story_points"], 2),
                average_story_points=round(counts["average_story_points"], 2),
                issue_type_distribution=_distribution(assigned, "issuetype", UNKNOWN),
                priority_distribution=_distribution(assigned, "priority", NO_PRIORITY),
                project_distribution=_distribution(assigned, "project_key", UNKNOWN),
            )
        )
    return out


@dataclass(frozen=True, slots=True)
class JiraOverview:
    projects: list[JiraProjectMetrics] = field(default_factory=list)
    people: JiraPeopleMetrics = field(default_factory=JiraPeopleMetrics)
    mapped_users: list[MappedUserMetrics] = field(default_factory=list)


def build_jira_overview(issues, mappings=None, spec: FilterSpec | None = None) -> JiraOverview:
    return JiraOverview(
        projects=build_jira_project_metrics(issues, spec),
        people=build_jira_assignee_reporter(issues, spec),
        mapped_users=build_mapped_user_metrics(issues, mappings or [], spec),
    )
