"""Central configuration, constants, thresholds, and shared column definitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Time & Fetch Settings
# =============================================================================
# All timestamps are normalized to this zone before day/week/month bucketing.
TIMEZONE = "UTC"

# Applied to every outbound HTTP call (data store and Jira).
FETCH_TIMEOUT_SECONDS: float = 30.0

# Page size used when walking paginated REST results.
STORE_PAGE_SIZE: int = 1000

# Jira search results are reused for this long within one session.
JIRA_SEARCH_CACHE_TTL_SECONDS: float = 300.0

# Worker threads used to fetch independent sources concurrently.
FETCH_MAX_WORKERS: int = 4

# =============================================================================
# Normalization Defaults
# =============================================================================
UNKNOWN = "Unknown"
UNASSIGNED = "Unassigned"
NO_PRIORITY = "No Priority"

# =============================================================================
# Capacity Configuration
# =============================================================================
STANDARD_HOURS_PER_DAY: float = 8.0
SECONDS_PER_HOUR: float = 3600.0

# Utilization below this percentage flags a member as underutilized.
UNDERUTILIZED_THRESHOLD: float = 50.0

# Shift codes from the schedule table. Anything else counts as a working shift.
SHIFT_HOLIDAY = "H"
SHIFT_LEAVE = "L"
SHIFT_GENERAL = "G"

# =============================================================================
# Incident / SLA Configuration
# =============================================================================
# Ticket statuses that count as resolved (matched case-insensitively).
RESOLVED_STATUSES: frozenset[str] = frozenset({"resolved", "closed"})

# Resolution-time SLA per priority, in hours. Unmatched priorities use "medium".
SLA_HOURS_BY_PRIORITY: dict[str, float] = {
    "critical": 4.0,
    "high": 8.0,
    "medium": 24.0,
    "low": 48.0,
}
SLA_DEFAULT_PRIORITY = "medium"

# Resolution-time buckets in minutes: (column name, lower bound).
# Each bucket covers [lower, next lower); the last one is open-ended.
RESOLUTION_BUCKETS_MINUTES: Sequence[tuple[str, float]] = (
    ("less_than_1_hour", float("-inf")),
    ("one_to_two_hours", 60.0),
    ("two_to_four_hours", 120.0),
    ("four_to_eight_hours", 240.0),
    ("eight_to_twelve_hours", 480.0),
    ("twelve_to_twenty_four_hours", 720.0),
    ("more_than_24_hours", 1440.0),
)

# =============================================================================
# Jira Configuration
# =============================================================================
FIELD_IDS = {
    "story_points": "customfield_10016",
}

JIRA_FETCH_BASE_FIELDS = [
    "summary",
    "project",
    "created",
    "updated",
    "assignee",
    "reporter",
    "priority",
    "status",
    "resolution",
    "resolutiondate",
    "issuetype",
    "labels",
    FIELD_IDS["story_points"],
]

# Status substrings used to bucket Jira issues (checked in this order).
JIRA_OPEN_MARKERS: Sequence[str] = ("open", "to do")
JIRA_CLOSED_MARKERS: Sequence[str] = ("closed", "done", "resolved")
JIRA_PROGRESS_MARKERS: Sequence[str] = ("progress", "development")

# =============================================================================
# UI Default Values
# =============================================================================
DEFAULT_DATE_RANGE_DAYS: int = 30
DEFAULT_TOP_N: int = 5
DEFAULT_TOP_CONTRIBUTORS: int = 5

# =============================================================================
# Table Column Sets
# =============================================================================
INCIDENT_CORE_COLUMNS: Sequence[str] = (
    "incident_id",
    "priority",
    "status",
    "assignee",
    "resolver_group",
    "reported_date",
    "responded_date",
    "last_resolved_date",
    "resolution_minutes",
    "group_transfers",
    "reopen_count",
)

WORK_LOG_COLUMNS: Sequence[str] = (
    "user_name",
    "user_email",
    "team",
    "project",
    "ticket_id",
    "work_type",
    "start_time",
    "logged_hours",
)

JIRA_ISSUE_COLUMNS: Sequence[str] = (
    "Ticket",
    "summary",
    "project",
    "priority",
    "status",
    "assignee",
    "reporter",
    "issuetype",
    "created",
    "resolutiondate",
)


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    download_encoding: str = "utf-8"
    log_level: str = "INFO"


SETTINGS = AppSettings()
