"""Load table column sets from ``columns.yaml``, falling back to config defaults."""

from __future__ import annotations

from pathlib import Path

import yaml

from .config import INCIDENT_CORE_COLUMNS, JIRA_ISSUE_COLUMNS, WORK_LOG_COLUMNS

_CACHE: dict[str, list[str]] | None = None


def _defaults() -> dict[str, list[str]]:
    return {
        "incident": list(INCIDENT_CORE_COLUMNS),
        "work_log": list(WORK_LOG_COLUMNS),
        "jira_issue": list(JIRA_ISSUE_COLUMNS),
    }


def load_column_sets(base_path: str | Path | None = None, *, reload: bool = False) -> dict[str, list[str]]:
    global _CACHE
    if _CACHE is not None and not reload:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "columns.yaml"
    sets = _defaults()
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except yaml.YAMLError:
            data = {}
        for name, columns in (data.get("sets") or {}).items():
            if isinstance(columns, list) and columns:
                sets[name] = [str(c) for c in columns]
    _CACHE = sets
    return _CACHE


def get_columns(set_name: str) -> list[str]:
    return list(load_column_sets().get(set_name, []))
