from datetime import date

import pandas as pd

from ops_app.analytics.pipeline.filters import filter_records
from ops_app.analytics.pipeline.normalize import normalize, normalize_column, normalize_value, numeric_column
from ops_app.core.models import DateRange, FilterSpec


def _sample_logs(n: int = 100):
    projects = ["Alpha", "Beta", "Gamma"]
    return [
        {
            "id": i,
            "project": projects[i % 3],
            "team": "Ops" if i % 2 else "Dev",
            "user_email": f"user{i % 4}@example.com",
            "start_time": f"2024-03-{(i % 28) + 1:02d}T10:00:00Z",
        }
        for i in range(n)
    ]


def _window():
    return date(2024, 3, 1), date(2024, 3, 31)


def test_normalize_defaults():
    assert normalize_value(float("nan")) == "Unknown"
    assert normalize_value("", "Unassigned") == "Unassigned"
    assert normalize_value(0) == 0
    assert normalize({"priority": None}, "priority") == "Unknown"
    assert normalize({}, "assignee", "Unassigned") == "Unassigned"


def test_normalize_column_missing_field():
    frame = pd.DataFrame({"a": [1, 2]})
    assert list(normalize_column(frame, "priority")) == ["Unknown", "Unknown"]
    assert list(numeric_column(frame, "hours")) == [0.0, 0.0]


def test_numeric_column_coerces_garbage_to_zero():
    frame = pd.DataFrame({"group_transfers": [None, "", "2", "abc", float("inf")]})
    assert list(numeric_column(frame, "group_transfers")) == [0.0, 0.0, 2.0, 0.0, 0.0]


def test_empty_project_selection_keeps_all_records():
    start, end = _window()
    spec = FilterSpec.build(start, end, projects=[])
    out = filter_records(_sample_logs(), spec, date_field="start_time", project_field="project")
    assert len(out) == 100


def test_empty_selection_equals_absent_dimension():
    start, end = _window()
    with_empty = FilterSpec.build(start, end, teams=[], projects=[], users=[])
    date_only = FilterSpec.build(start, end)
    kwargs = dict(date_field="start_time", team_field="team", project_field="project", user_field="user_email")
    a = filter_records(_sample_logs(), with_empty, **kwargs)
    b = filter_records(_sample_logs(), date_only, **kwargs)
    pd.testing.assert_frame_equal(a, b)


def test_filter_is_idempotent():
    start, end = date(2024, 3, 5), date(2024, 3, 20)
    spec = FilterSpec.build(start, end, projects=["Alpha", "Gamma"], users=["user1@example.com"])
    kwargs = dict(date_field="start_time", project_field="project", user_field="user_email")
    once = filter_records(_sample_logs(), spec, **kwargs)
    twice = filter_records(once, spec, **kwargs)
    pd.testing.assert_frame_equal(once, twice)
    assert not once.empty
    assert set(once["project"]) <= {"Alpha", "Gamma"}


def test_date_range_is_inclusive_and_drops_unparsable():
    records = [
        {"start_time": "2024-03-01T00:00:00Z"},
        {"start_time": "2024-03-31T23:59:59Z"},
        {"start_time": "2024-04-01T00:00:00Z"},
        {"start_time": "not a date"},
        {"start_time": None},
    ]
    spec = FilterSpec.build(*_window())
    out = filter_records(records, spec, date_field="start_time")
    assert len(out) == 2
    # Without a date range nothing is dropped.
    assert len(filter_records(records, FilterSpec(), date_field="start_time")) == 5


def test_filter_does_not_mutate_input():
    frame = pd.DataFrame(_sample_logs(10))
    before = frame.copy()
    filter_records(frame, FilterSpec.build(*_window(), projects=["Beta"]), project_field="project")
    pd.testing.assert_frame_equal(frame, before)


def test_selection_matches_normalized_unknown():
    records = [{"project": None}, {"project": "Alpha"}]
    out = filter_records(records, FilterSpec.build(projects=["Unknown"]), project_field="project")
    assert len(out) == 1


def test_date_range_accepts_strings_and_timestamps():
    window = DateRange("2024-03-01", pd.Timestamp("2024-03-03 18:00"))
    assert window.end == date(2024, 3, 3)
    assert window.contains(date(2024, 3, 3))
    assert not window.contains(date(2024, 3, 4))
    assert len(list(window.days())) == 3
    assert DateRange(date(2024, 3, 2), date(2024, 3, 1)).is_empty
