"""Incident ticket formulas: durations, SLA, first-call resolution, reopen rate.

Durations are minutes between two ticket timestamps. A ticket missing either
timestamp has no duration (NaN) in ``*_minutes`` columns; rate and mean
helpers decide explicitly how such tickets count.
"""

from __future__ import annotations

import pandas as pd

from ops_app.analytics.pipeline.aggregate import StatSpec, aggregate
from ops_app.analytics.pipeline.normalize import lower_column, normalize_column, numeric_column, records_frame
from ops_app.analytics.pipeline.timestamps import timestamp_column
from ops_app.core.config import SLA_DEFAULT_PRIORITY, SLA_HOURS_BY_PRIORITY
from ops_app.core.status import is_resolved_status

REPORTED = "reported_date"
RESPONDED = "responded_date"
RESOLVED = "last_resolved_date"


def is_resolved(frame: pd.DataFrame) -> pd.Series:
    """Status is Resolved or Closed, any case."""
    return normalize_column(frame, "status", "").map(is_resolved_status).astype(bool)


def minutes_between(frame: pd.DataFrame, start_field: str, end_field: str) -> pd.Series:
    start = timestamp_column(frame, start_field)
    end = timestamp_column(frame, end_field)
    return ((end - start).dt.total_seconds() / 60.0).astype(float)


def with_durations(records) -> pd.DataFrame:
    """Copy of the tickets with ``response_minutes`` and ``resolution_minutes``."""
    frame = records_frame(records)
    frame["response_minutes"] = minutes_between(frame, REPORTED, RESPONDED)
    frame["resolution_minutes"] = minutes_between(frame, REPORTED, RESOLVED)
    return frame


def sla_threshold_minutes(priority) -> float:
    """Resolution SLA for a priority label; unknown labels get the medium SLA.

    >>> sla_threshold_minutes("Critical")
    240.0
    >>> sla_threshold_minutes(None)
    1440.0
    """
    key = str(priority).strip().lower() if priority is not None else ""
    hours = SLA_HOURS_BY_PRIORITY.get(key, SLA_HOURS_BY_PRIORITY[SLA_DEFAULT_PRIORITY])
    return float(hours) * 60.0


def within_sla(frame: pd.DataFrame) -> pd.Series:
    # A missing duration counts as 0 minutes.
    minutes = numeric_column(frame, "resolution_minutes")
    thresholds = lower_column(frame, "priority").map(sla_threshold_minutes)
    return minutes <= thresholds


def first_call_resolved(frame: pd.DataFrame) -> pd.Series:
    """No group transfers recorded (zero, blank or absent)."""
    return numeric_column(frame, "group_transfers") == 0


def is_reopened(frame: pd.DataFrame) -> pd.Series:
    return numeric_column(frame, "reopen_count") > 0


def sla_compliance_rate(resolved) -> float:
    return aggregate(resolved, StatSpec.rate("sla_compliance_rate", within_sla))


def first_call_resolution_rate(resolved) -> float:
    return aggregate(resolved, StatSpec.rate("first_call_resolution_rate", first_call_resolved))


def reopen_rate(tickets) -> float:
    """Reopened tickets over resolved tickets, as a percentage.

    Reopened tickets are counted among all tickets, so the rate can exceed
    100 when many open tickets carry a reopen count.
    """
    frame = records_frame(tickets)
    resolved = int(is_resolved(frame).sum()) if not frame.empty else 0
    if resolved == 0:
        return 0.0
    return float(is_reopened(frame).sum()) / resolved * 100.0
