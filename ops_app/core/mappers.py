"""Map raw data-store rows and Jira issue JSON into flat dashboard records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .config import FIELD_IDS

# Dynamic category names that carry the work type of a log entry.
WORK_TYPE_MARKERS = ("work type", "type")


def _name(value: Any, key: str = "name") -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return value


def _id_lookup(rows: Iterable[Mapping[str, Any]] | None, key: str = "name") -> dict[Any, Any]:
    out: dict[Any, Any] = {}
    for row in rows or []:
        if row.get("id") is not None:
            out[row["id"]] = row.get(key)
    return out


def work_type_from_categories(selections: Any) -> str | None:
    """First dynamic category whose name looks like a work type."""
    if not isinstance(selections, Mapping):
        return None
    for category, value in selections.items():
        name = str(category).lower()
        if any(marker in name for marker in WORK_TYPE_MARKERS) and value:
            return str(value)
    return None


def map_work_log(row: Mapping[str, Any], teams_by_email: Mapping[str, str] | None = None) -> dict[str, Any]:
    user = row.get("user") if isinstance(row.get("user"), Mapping) else {}
    email = row.get("user_email") or user.get("email")
    project = row.get("project")
    return {
        "id": row.get("id"),
        "user_email": email,
        "user_name": row.get("user_name") or user.get("full_name"),
        "team": row.get("team") or (teams_by_email or {}).get(email),
        "project": _name(project),
        "project_id": row.get("project_id") or _name(project, "id"),
        "ticket_id": row.get("ticket_id"),
        "start_time": row.get("start_time"),
        "end_time": row.get("end_time"),
        "logged_duration_seconds": row.get("logged_duration_seconds"),
        "work_type": row.get("work_type") or work_type_from_categories(row.get("dynamic_category_selections")),
    }


def map_user(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "email": row.get("email"),
        "full_name": row.get("full_name") or row.get("name"),
        "team": _name(row.get("team")),
    }


def map_team_members(teams: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Flatten ``teams`` rows with embedded ``team_members`` into (team, user_email) rows."""
    out: list[dict[str, Any]] = []
    for team in teams or []:
        for member in team.get("team_members") or []:
            user = member.get("user") if isinstance(member.get("user"), Mapping) else {}
            email = member.get("user_email") or user.get("email")
            if email:
                out.append({"team": team.get("name"), "team_id": team.get("id"), "user_email": email})
    return out


def teams_by_email(members: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """First team per member email."""
    out: dict[str, str] = {}
    for member in members:
        email = member.get("user_email")
        if email and email not in out and member.get("team"):
            out[email] = member["team"]
    return out


def map_assignments(
    rows: Iterable[Mapping[str, Any]],
    teams: Iterable[Mapping[str, Any]] | None,
    projects: Iterable[Mapping[str, Any]] | None,
) -> list[dict[str, Any]]:
    team_names = _id_lookup(teams)
    project_names = _id_lookup(projects)
    return [
        {
            "team": _name(row.get("team")) or team_names.get(row.get("team_id")),
            "project": _name(row.get("project")) or project_names.get(row.get("project_id")),
        }
        for row in rows or []
    ]


def map_shift(row: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "user_email": row.get("user_email"),
        "shift_date": row.get("shift_date"),
        "shift_type": row.get("shift_type"),
    }


def map_incident(row: Mapping[str, Any], project_names: Mapping[Any, Any] | None = None) -> dict[str, Any]:
    """Uploaded service-desk ticket to an incident record.

    The upload table stores the report timestamp as ``reported_date1`` and the
    owning dashboard user as ``mapped_user_email``.
    """
    record = dict(row)
    record["reported_date"] = row.get("reported_date") or row.get("reported_date1")
    record["user_email"] = row.get("user_email") or row.get("mapped_user_email")
    if not row.get("project"):
        record["project"] = (project_names or {}).get(row.get("project_id"))
    else:
        record["project"] = _name(row.get("project"))
    return record


def map_jira_issue(raw: Mapping[str, Any]) -> dict[str, Any]:
    fields = raw.get("fields") or {}

    def display(key: str, attr: str = "displayName"):
        value = fields.get(key)
        return value.get(attr) if isinstance(value, Mapping) else None

    project = fields.get("project") or {}
    return {
        "key": raw.get("key"),
        "summary": fields.get("summary"),
        "project_key": project.get("key"),
        "project": project.get("name"),
        "status": display("status", "name"),
        "priority": display("priority", "name"),
        "assignee": display("assignee"),
        "reporter": display("reporter"),
        "issuetype": display("issuetype", "name"),
        "resolution": display("resolution", "name"),
        "created": fields.get("created"),
        "updated": fields.get("updated"),
        "resolutiondate": fields.get("resolutiondate"),
        "labels": ", ".join(sorted({str(v) for v in fields.get("labels") or [] if v}, key=str.lower)),
        "story_points": fields.get(FIELD_IDS["story_points"]),
    }


def issues_to_records(raw_issues: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    return [map_jira_issue(raw) for raw in raw_issues or []]
