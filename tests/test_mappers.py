from ops_app.core.mappers import (
    issues_to_records,
    map_assignments,
    map_incident,
    map_jira_issue,
    map_team_members,
    map_work_log,
    teams_by_email,
    work_type_from_categories,
)


def _sample_teams():
    return [
        {
            "id": 1,
            "name": "Ops",
            "team_members": [
                {"user_email": "a@x.io"},
                {"user": {"email": "b@x.io", "full_name": "Ben"}},
                {"user": None},
            ],
        },
        {"id": 2, "name": "Infra", "team_members": [{"user_email": "a@x.io"}]},
    ]


def _sample_issue():
    return {
        "key": "OPS-7",
        "fields": {
            "summary": "Disk full",
            "project": {"key": "OPS", "name": "Operations"},
            "status": {"name": "In Progress"},
            "priority": {"name": "High"},
            "assignee": {"displayName": "Alice"},
            "reporter": None,
            "issuetype": {"name": "Bug"},
            "created": "2024-03-01T10:00:00.000+0000",
            "labels": ["ops", "Disk", "ops"],
            "customfield_10016": 5,
        },
    }


def test_team_members_flatten_embedded_users():
    members = map_team_members(_sample_teams())
    assert [(m["team"], m["user_email"]) for m in members] == [
        ("Ops", "a@x.io"),
        ("Ops", "b@x.io"),
        ("Infra", "a@x.io"),
    ]
    assert teams_by_email(members) == {"a@x.io": "Ops", "b@x.io": "Ops"}


def test_work_log_resolves_project_team_and_work_type():
    row = {
        "id": 9,
        "user_email": "b@x.io",
        "project": {"id": 4, "name": "Alpha"},
        "start_time": "2024-03-04T09:00:00+00:00",
        "logged_duration_seconds": 3600,
        "dynamic_category_selections": {"Region": "EU", "Work Type": "Support"},
    }
    record = map_work_log(row, {"b@x.io": "Ops"})
    assert record["project"] == "Alpha"
    assert record["project_id"] == 4
    assert record["team"] == "Ops"
    assert record["work_type"] == "Support"


def test_work_type_ignores_empty_and_non_mapping():
    assert work_type_from_categories({"Work Type": ""}) is None
    assert work_type_from_categories(None) is None


def test_assignments_resolve_ids():
    rows = [{"team_id": 1, "project_id": 4}, {"team": {"name": "Infra"}, "project": "Beta"}]
    mapped = map_assignments(rows, _sample_teams(), [{"id": 4, "name": "Alpha"}])
    assert mapped == [{"team": "Ops", "project": "Alpha"}, {"team": "Infra", "project": "Beta"}]


def test_incident_renames_upload_columns():
    row = {"reported_date1": "2024-03-01T08:00:00", "mapped_user_email": "a@x.io", "project_id": 4}
    record = map_incident(row, {4: "Alpha"})
    assert record["reported_date"] == "2024-03-01T08:00:00"
    assert record["user_email"] == "a@x.io"
    assert record["project"] == "Alpha"
    assert "reported_date1" in record


def test_jira_issue_flattening():
    record = map_jira_issue(_sample_issue())
    assert record["project_key"] == "OPS"
    assert record["status"] == "In Progress"
    assert record["assignee"] == "Alice"
    assert record["reporter"] is None
    assert record["labels"] == "Disk, ops"
    assert record["story_points"] == 5
    assert issues_to_records(None) == []
