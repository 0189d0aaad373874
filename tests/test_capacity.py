from datetime import date

import pytest

from ops_app.analytics.metrics.capacity import (
    available_hours,
    capacity_forecast,
    fte,
    occupancy_rate,
    shift_available_hours,
    shift_calendar,
    with_logged_hours,
    working_days,
)
from ops_app.core.models import DateRange

WEEK = DateRange(date(2024, 3, 4), date(2024, 3, 8))  # Mon..Fri


def test_available_hours_and_occupancy_for_one_week():
    assert working_days(WEEK) == 5
    assert available_hours(WEEK, 1) == 40.0
    assert occupancy_rate(20.0, 40.0) == 50.0


def test_occupancy_without_capacity_is_zero():
    assert occupancy_rate(10.0, 0.0) == 0.0
    assert available_hours(None, 3) == 0.0


def test_weekends_are_not_working_days():
    assert working_days(DateRange(date(2024, 3, 9), date(2024, 3, 10))) == 0
    assert working_days(DateRange(date(2024, 3, 1), date(2024, 3, 31))) == 21


def test_fte():
    two_weeks = DateRange(date(2024, 3, 4), date(2024, 3, 15))
    assert fte(80.0, two_weeks) == pytest.approx(1.0)
    assert fte(80.0, two_weeks, members=2) == pytest.approx(0.5)
    assert fte(80.0, two_weeks, members=0) == 0.0


def test_logged_hours_from_seconds():
    frame = with_logged_hours([{"logged_duration_seconds": 5400}, {"logged_duration_seconds": None}])
    assert frame["logged_hours"].tolist() == [1.5, 0.0]


def test_shift_availability_counts_leave_and_skips_holidays():
    shifts = [
        {"user_email": "a@x.io", "shift_date": "2024-03-04", "shift_type": "L"},
        {"user_email": "a@x.io", "shift_date": "2024-03-05", "shift_type": "h"},
        {"user_email": "a@x.io", "shift_date": "2024-03-06", "shift_type": "N"},
        {"user_email": "b@x.io", "shift_date": "2024-03-07", "shift_type": "L"},
    ]
    calendar = shift_calendar(shifts, "a@x.io")
    assert calendar[date(2024, 3, 5)] == "H"
    hours, leaves = shift_available_hours(WEEK, calendar)
    assert (hours, leaves) == (24.0, 1)
    assert shift_available_hours(WEEK, {}) == (40.0, 0)


def test_capacity_forecast_projects_recent_average():
    daily = {date(2024, 3, d): 4.0 for d in range(4, 9)}
    forecast = capacity_forecast(daily, WEEK, horizon=3)
    assert forecast["date"].tolist() == [date(2024, 3, 9), date(2024, 3, 10), date(2024, 3, 11)]
    assert forecast["projected_hours"].tolist() == [4.0, 4.0, 4.0]
    assert forecast["capacity_gap"].tolist() == [4.0, 4.0, 4.0]
    assert capacity_forecast(daily, None).empty
