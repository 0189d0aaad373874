from ops_app.core.column_config import get_columns, load_column_sets
from ops_app.core.config import WORK_LOG_COLUMNS


def test_column_sets_load():
    sets = load_column_sets(reload=True)
    assert {"incident", "work_log", "jira_issue"} <= set(sets)
    assert isinstance(get_columns("incident"), list)
    assert get_columns("missing") == []


def test_yaml_overrides_and_bad_yaml(tmp_path):
    (tmp_path / "columns.yaml").write_text("sets:\n  incident: [ticket_id, status]\n  extra: [a]\n")
    sets = load_column_sets(tmp_path, reload=True)
    assert sets["incident"] == ["ticket_id", "status"]
    assert sets["extra"] == ["a"]
    assert sets["work_log"] == list(WORK_LOG_COLUMNS)

    (tmp_path / "columns.yaml").write_text("sets: [unclosed\n")
    assert load_column_sets(tmp_path, reload=True)["incident"] != ["ticket_id", "status"]
    load_column_sets(reload=True)
