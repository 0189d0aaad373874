from datetime import date

import pytest

from ops_app.analytics.dashboards.workload import (
    build_individual_metrics,
    build_project_health,
    build_team_metrics,
    build_trends,
    build_workload_metrics,
)
from ops_app.core.models import FilterSpec

HOUR = 3600


def _sample_logs():
    return [
        {"user_email": "a@x.io", "user_name": "Ann", "team": "Ops", "project": "Alpha", "ticket_id": "T-1",
         "work_type": "Support", "start_time": f"2024-03-0{d}T09:00:00Z", "logged_duration_seconds": 10 * HOUR}
        for d in range(4, 9)
    ] + [
        {"user_email": "b@x.io", "user_name": "Ben", "team": "Ops", "project": "Beta", "ticket_id": "T-2",
         "work_type": None, "start_time": "2024-03-05T09:00:00Z", "logged_duration_seconds": 4 * HOUR},
    ]


def _sample_users():
    return [
        {"email": "a@x.io", "full_name": "Ann"},
        {"email": "b@x.io", "full_name": "Ben"},
        {"email": "c@x.io", "full_name": "Cat"},
    ]


def _sample_members():
    return [{"team": "Ops", "user_email": "a@x.io"}, {"team": "Ops", "user_email": "b@x.io"}]


def _week():
    return FilterSpec.build(date(2024, 3, 4), date(2024, 3, 8))


def test_individual_occupancy_for_one_week():
    logs = [{"user_email": "a@x.io", "start_time": "2024-03-05T10:00:00Z", "logged_duration_seconds": 20 * HOUR}]
    people = build_individual_metrics(logs, [{"email": "a@x.io", "full_name": "Ann"}], _week())
    assert len(people) == 1
    assert people[0].available_hours == 40.0
    assert people[0].occupancy_rate == 50.0


def test_individual_metrics_fall_back_to_log_users():
    people = build_individual_metrics(_sample_logs(), [], _week())
    assert [p.user_email for p in people] == ["a@x.io", "b@x.io"]
    assert people[0].project_hours == {"Alpha": 50.0}
    assert people[0].task_contributions.to_dict("records") == [{"ticket_id": "T-1", "hours": 50.0, "project": "Alpha"}]


def test_team_metrics():
    teams = build_team_metrics(_sample_logs(), _sample_members(), _week())
    assert [t.team_name for t in teams] == ["Ops"]
    ops = teams[0]
    assert ops.member_count == 2
    assert ops.available_hours == 80.0
    assert ops.total_worked_hours == 54.0
    assert ops.occupancy_rate == pytest.approx(67.5)
    assert ops.hours_by_work_type == {"Support": 50.0, "Unknown": 4.0}
    assert ops.fte_per_project == {"Alpha": 1.25, "Beta": 0.1}


def test_workload_summary_is_shift_aware():
    shifts = [{"user_email": "c@x.io", "shift_date": "2024-03-04", "shift_type": "L"}]
    summary = build_workload_metrics(_sample_logs(), _sample_users(), shifts, _week())
    by_email = {m.user_email: m for m in summary.members}
    assert by_email["a@x.io"].utilization_rate == 125.0
    assert by_email["a@x.io"].overtime_hours == 10.0
    assert by_email["b@x.io"].idle_hours == 36.0
    assert by_email["c@x.io"].available_hours == 32.0
    assert summary.total_leaves == 1
    assert summary.top_contributors["name"].tolist() == ["Ann", "Ben"]
    assert summary.underutilized_members["name"].tolist() == ["Cat", "Ben"]
    daily = by_email["a@x.io"].daily_workload
    assert daily["hours"].tolist() == [10.0] * 5
    assert by_email["c@x.io"].daily_workload["available_hours"].tolist() == [0.0, 8.0, 8.0, 8.0, 8.0]


def test_workload_with_no_users_is_empty():
    summary = build_workload_metrics([], [], [], _week())
    assert summary.total_users == 0
    assert list(summary.top_contributors.columns) == ["name", "hours", "utilization_rate"]


def test_project_health():
    projects = [{"name": "Alpha"}, {"name": "Beta"}]
    assignments = [{"team": "Ops", "project": "Alpha"}]
    summary = build_project_health(_sample_logs(), projects, assignments, _sample_members(), _week())
    alpha, beta = summary.projects
    assert alpha.total_hours == 50.0
    assert alpha.user_count == 2
    assert alpha.fte == pytest.approx(0.62, abs=0.01)
    assert alpha.effort_share == 62.5
    assert beta.user_count == 0
    assert beta.contributor_count == 1
    assert summary.total_projects == 2
    assert len(alpha.utilization_trend) == 5
    assert len(alpha.capacity_forecast) == 30


def test_weekly_trends():
    trends = build_trends(_sample_logs(), _sample_members(), _week())
    assert trends["period"].tolist() == ["2024-03-04"]
    row = trends.iloc[0]
    assert row["hours"] == 54.0
    assert row["active_users"] == 2
    assert row["team_occupancy"] == pytest.approx(67.5)


def test_range_defaults_to_log_span_without_dates():
    people = build_individual_metrics(_sample_logs(), [], FilterSpec())
    assert people[0].available_hours == 40.0


def test_individual_metrics_keep_their_work_logs():
    people = build_individual_metrics(_sample_logs(), _sample_users(), _week())
    ann, ben, cat = people
    assert len(ann.work_logs) == 5
    assert ann.work_logs["logged_hours"].tolist() == [10.0] * 5
    assert ben.work_logs["ticket_id"].tolist() == ["T-2"]
    assert cat.work_logs.empty
