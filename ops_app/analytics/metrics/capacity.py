"""Capacity formulas: working days, available hours, occupancy and FTE."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, timedelta

import pandas as pd

from ops_app.analytics.pipeline.normalize import normalize_column, numeric_column, records_frame
from ops_app.analytics.pipeline.timestamps import parse_timestamp
from ops_app.core.config import (
    SECONDS_PER_HOUR,
    SHIFT_GENERAL,
    SHIFT_HOLIDAY,
    SHIFT_LEAVE,
    STANDARD_HOURS_PER_DAY,
)
from ops_app.core.models import DateRange

FORECAST_LOOKBACK_DAYS = 7
FORECAST_HORIZON_DAYS = 30


def working_day_list(date_range: DateRange | None) -> list[date]:
    if date_range is None:
        return []
    return [day for day in date_range.days() if day.weekday() < 5]


def working_days(date_range: DateRange | None) -> int:
    """Monday to Friday days in the inclusive range; no holiday calendar."""
    return len(working_day_list(date_range))


def available_hours(
    date_range: DateRange | None,
    member_count: int,
    hours_per_day: float = STANDARD_HOURS_PER_DAY,
) -> float:
    return float(hours_per_day * working_days(date_range) * max(member_count, 0))


def occupancy_rate(worked_hours: float, available: float) -> float:
    if available <= 0:
        return 0.0
    return worked_hours / available * 100.0


def fte(
    total_hours: float,
    date_range: DateRange | None,
    hours_per_day: float = STANDARD_HOURS_PER_DAY,
    members: int = 1,
) -> float:
    """Full-time equivalents: hours over one person's standard hours in the range.

    ``members`` spreads the figure over a team (FTE per head); 0 when there
    are no working days or no members.
    """
    capacity = available_hours(date_range, members, hours_per_day)
    if capacity <= 0:
        return 0.0
    return total_hours / capacity


def hours_column(frame: pd.DataFrame, field: str = "logged_duration_seconds") -> pd.Series:
    return numeric_column(frame, field) / SECONDS_PER_HOUR


def with_logged_hours(records) -> pd.DataFrame:
    """Copy of the work logs with a ``logged_hours`` column added."""
    frame = records_frame(records)
    frame["logged_hours"] = hours_column(frame)
    return frame


def shift_calendar(shifts, user_email: str) -> dict[date, str]:
    """Map shift day to shift code for one user; later rows win."""
    frame = records_frame(shifts)
    if frame.empty or "user_email" not in frame.columns:
        return {}
    mine = frame[normalize_column(frame, "user_email", "") == user_email]
    calendar: dict[date, str] = {}
    for raw_day, code in zip(mine.get("shift_date", []), normalize_column(mine, "shift_type", SHIFT_GENERAL)):
        ts = parse_timestamp(raw_day)
        if ts is not None:
            calendar[ts.date()] = str(code).strip().upper()
    return calendar


def is_active_shift(code: str) -> bool:
    return code not in (SHIFT_HOLIDAY, SHIFT_LEAVE)


def shift_available_hours(
    date_range: DateRange | None,
    calendar: Mapping[date, str],
    hours_per_day: float = STANDARD_HOURS_PER_DAY,
) -> tuple[float, int]:
    """Available hours and leave count over the working days of the range.

    Days without a schedule entry count as a general (working) shift, leave
    days are counted, holidays are skipped.
    """
    hours = 0.0
    leaves = 0
    for day in working_day_list(date_range):
        code = calendar.get(day, SHIFT_GENERAL)
        if code == SHIFT_LEAVE:
            leaves += 1
        elif code != SHIFT_HOLIDAY:
            hours += hours_per_day
    return hours, leaves


def capacity_forecast(
    daily_hours: Mapping[date, float],
    date_range: DateRange | None,
    *,
    lookback: int = FORECAST_LOOKBACK_DAYS,
    horizon: int = FORECAST_HORIZON_DAYS,
    hours_per_day: float = STANDARD_HOURS_PER_DAY,
) -> pd.DataFrame:
    """Flat projection of the recent daily average past the end of the range.

    The average is taken over the last ``lookback`` working days of the range.
    """
    columns = ["date", "projected_hours", "capacity_gap"]
    if date_range is None or date_range.is_empty:
        return pd.DataFrame(columns=columns)
    recent = working_day_list(date_range)[-lookback:]
    average = sum(daily_hours.get(day, 0.0) for day in recent) / len(recent) if recent else 0.0
    rows = []
    for offset in range(1, horizon + 1):
        day = date_range.end + timedelta(days=offset)
        rows.append(
            {
                "date": day,
                "projected_hours": round(average, 2),
                "capacity_gap": round(max(0.0, hours_per_day - average), 2),
            }
        )
    return pd.DataFrame(rows, columns=columns)
