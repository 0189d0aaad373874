"""Status categorization shared by the incident and Jira dashboards.

Incident tickets use exact status names (``Resolved``/``Closed``); Jira
workflows vary per project, so Jira statuses are bucketed by substring.
"""

from __future__ import annotations

from .config import JIRA_CLOSED_MARKERS, JIRA_OPEN_MARKERS, JIRA_PROGRESS_MARKERS, RESOLVED_STATUSES

OPEN = "open"
CLOSED = "closed"
IN_PROGRESS = "in_progress"
OTHER = "other"

_BUCKETS = (
    (OPEN, JIRA_OPEN_MARKERS),
    (CLOSED, JIRA_CLOSED_MARKERS),
    (IN_PROGRESS, JIRA_PROGRESS_MARKERS),
)


def jira_status_bucket(value: str | None) -> str:
    """Bucket a Jira status name; the first matching marker group wins.

    Examples
    --------
    >>> jira_status_bucket("To Do")
    'open'
    >>> jira_status_bucket("Done")
    'closed'
    >>> jira_status_bucket("In Development")
    'in_progress'
    >>> jira_status_bucket("Blocked")
    'other'
    """
    if not value:
        return OTHER
    text = str(value).strip().lower()
    for bucket, markers in _BUCKETS:
        if any(marker in text for marker in markers):
            return bucket
    return OTHER


def is_resolved_status(value: str | None) -> bool:
    if not value:
        return False
    return str(value).strip().lower() in RESOLVED_STATUSES
