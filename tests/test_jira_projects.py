from datetime import date

import pytest

from ops_app.analytics.dashboards.jira_projects import (
    build_jira_assignee_reporter,
    build_jira_overview,
    build_jira_project_metrics,
    build_mapped_user_metrics,
)
from ops_app.core.models import FilterSpec
from ops_app.core.status import CLOSED, IN_PROGRESS, OPEN, OTHER, is_resolved_status, jira_status_bucket


def _issue(key, status, **extra):
    issue = {
        "key": key,
        "summary": f"Issue {key}",
        "project_key": key.split("-")[0],
        "project": "Operations" if key.startswith("OPS") else "Infra",
        "status": status,
        "priority": "High",
        "assignee": "Alice",
        "reporter": "Bob",
        "issuetype": "Task",
        "created": "2024-03-01T10:00:00.000+0000",
        "updated": "2024-03-02T10:00:00.000+0000",
        "resolutiondate": None,
        "story_points": None,
    }
    issue.update(extra)
    return issue


def _sample_issues():
    return [
        _issue("OPS-1", "To Do", story_points=3),
        _issue("OPS-2", "In Progress", story_points=5, assignee=None, updated="2024-03-05T10:00:00.000+0000"),
        _issue("OPS-3", "Done", priority=None, resolutiondate="2024-03-03T10:00:00.000+0000"),
        _issue("INF-1", "Blocked", issuetype="Bug", reporter="Carol"),
    ]


def test_status_buckets():
    assert jira_status_bucket("Reopened") == OPEN
    assert jira_status_bucket("Resolved") == CLOSED
    assert jira_status_bucket("Under Development") == IN_PROGRESS
    assert jira_status_bucket(None) == OTHER
    assert is_resolved_status(" CLOSED ")
    assert not is_resolved_status("Done")


def test_project_metrics():
    projects = build_jira_project_metrics(_sample_issues())
    assert [p.project_key for p in projects] == ["OPS", "INF"]
    ops = projects[0]
    assert (ops.total_issues, ops.open_issues, ops.in_progress_issues, ops.closed_issues) == (3, 1, 1, 1)
    assert ops.project_name == "Operations"
    assert ops.total_story_points == 8.0
    assert ops.average_story_points == pytest.approx(2.67)
    assert ops.assignee_distribution == {"Alice": 2, "Unassigned": 1}
    assert ops.priority_distribution == {"High": 2, "No Priority": 1}
    assert ops.recent_activity["key"].tolist()[0] == "OPS-2"
    inf = projects[1]
    assert (inf.open_issues, inf.in_progress_issues, inf.closed_issues) == (0, 0, 0)
    assert inf.average_story_points == 0.0


def test_project_metrics_respect_date_filter():
    spec = FilterSpec.build(date(2024, 4, 1), date(2024, 4, 30))
    assert build_jira_project_metrics(_sample_issues(), spec) == []


def test_assignee_and_reporter_views():
    people = build_jira_assignee_reporter(_sample_issues())
    first = people.by_assignee.iloc[0]
    assert first["assignee"] == "Alice"
    assert first["total"] == 3
    assert first["avg_resolution_days"] == pytest.approx(2.0)
    assert people.by_reporter[["reporter", "reported"]].values.tolist() == [["Bob", 3], ["Carol", 1]]


def test_mapped_users():
    mappings = [
        {"user_email": "alice@x.io", "jira_assignee_name": "Alice", "jira_reporter_name": "Bob"},
        {"user_email": "dan@x.io", "jira_assignee_name": "Dan"},
    ]
    mapped = build_mapped_user_metrics(_sample_issues(), mappings)
    alice, dan = mapped
    assert alice.user_name == "alice"
    assert alice.total_assigned_issues == 3
    assert alice.total_reported_issues == 3
    assert alice.project_distribution == {"OPS": 2, "INF": 1}
    assert dan.total_assigned_issues == 0
    assert dan.average_story_points == 0.0


def test_overview_bundles_views():
    overview = build_jira_overview(_sample_issues())
    assert len(overview.projects) == 2
    assert overview.mapped_users == []
    assert not overview.people.by_assignee.empty
