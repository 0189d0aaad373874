"""Timestamp parsing and period bucketing.

All values are parsed as UTC (naive inputs are assumed to already be UTC) and
then converted to ``TIMEZONE`` before the calendar day, ISO week, or month is
taken. Bucketing therefore never depends on the zone of the machine running
the dashboard.
"""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum

import pandas as pd
import pytz

from ops_app.core.config import TIMEZONE


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


_KEY_FORMATS = {
    Period.DAY: "%Y-%m-%d",
    Period.WEEK: "%Y-%m-%d",
    Period.MONTH: "%Y-%m",
}

_LABEL_FORMATS = {
    Period.DAY: "%Y-%m-%d",
    Period.WEEK: "Wk %Y-%m-%d",
    Period.MONTH: "%b-%y",
}


def target_tz():
    return pytz.timezone(TIMEZONE)


def parse_timestamp(value) -> pd.Timestamp | None:
    """Parse a timestamp-like value into an aware timestamp in ``TIMEZONE``.

    Returns None when the input cannot be parsed.
    """
    if value is None or value == "":
        return None
    try:
        ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    return ts.tz_convert(target_tz())


def timestamp_column(frame: pd.DataFrame, field: str) -> pd.Series:
    """Parse ``field`` element-wise; unparsable or absent values become NaT."""
    if field not in frame.columns:
        return pd.Series(pd.NaT, index=frame.index, dtype=f"datetime64[ns, {TIMEZONE}]")
    parsed = frame[field].map(parse_timestamp)
    return pd.to_datetime(parsed, utc=True).dt.tz_convert(target_tz())


def period_start_column(frame: pd.DataFrame, field: str, period: Period) -> pd.Series:
    """Naive local start of the period containing each timestamp (NaT if unparsable)."""
    local = timestamp_column(frame, field).dt.tz_localize(None)
    day = local.dt.normalize()
    if period is Period.DAY:
        return day
    if period is Period.WEEK:
        return day - pd.to_timedelta(day.dt.weekday, unit="D")
    return local.dt.to_period("M").dt.to_timestamp()


def period_start(day: date, period: Period) -> pd.Timestamp:
    ts = pd.Timestamp(day).normalize()
    if period is Period.DAY:
        return ts
    if period is Period.WEEK:
        return ts - pd.Timedelta(days=ts.weekday())
    return ts.replace(day=1)


def period_key(start: pd.Timestamp, period: Period) -> str:
    """Sortable label: lexical order equals chronological order."""
    return start.strftime(_KEY_FORMATS[period])


def period_label(start: pd.Timestamp, period: Period) -> str:
    """Display label; not guaranteed to sort chronologically (e.g. ``Jan-24``)."""
    return start.strftime(_LABEL_FORMATS[period])


def periods_between(start: date, end: date, period: Period, *, working_days_only: bool = False):
    """Every period start from ``start`` through ``end`` (inclusive), in order."""
    out: list[pd.Timestamp] = []
    seen: set[pd.Timestamp] = set()
    current = start
    while current <= end:
        if not (working_days_only and period is Period.DAY and current.weekday() >= 5):
            ps = period_start(current, period)
            if ps not in seen:
                seen.add(ps)
                out.append(ps)
        current += timedelta(days=1)
    return out
