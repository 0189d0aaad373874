from datetime import date

import pandas as pd

from ops_app.analytics.pipeline.aggregate import StatSpec
from ops_app.analytics.pipeline.grouping import by_field
from ops_app.analytics.pipeline.series import build_series, period_matrix, pivot_series, series_by
from ops_app.analytics.pipeline.timestamps import Period
from ops_app.core.models import DateRange


def _sample_tickets():
    # Deliberately out of order, crossing a year boundary.
    return [
        {"reported_date": "2024-02-03T10:00:00Z", "priority": "High", "tier": "Network"},
        {"reported_date": "2023-12-15T10:00:00Z", "priority": "Low", "tier": "Storage"},
        {"reported_date": "2024-01-20T10:00:00Z", "priority": "High", "tier": "Network"},
        {"reported_date": "2024-01-05T10:00:00Z", "priority": "Low", "tier": "Network"},
        {"reported_date": "bad", "priority": "High", "tier": "Network"},
    ]


def test_monthly_series_is_chronological_with_labels():
    series = build_series(_sample_tickets(), "reported_date", Period.MONTH, [StatSpec.count()])
    assert list(series["period"]) == ["2023-12", "2024-01", "2024-02"]
    assert list(series["label"]) == ["Dec-23", "Jan-24", "Feb-24"]
    assert list(series["count"]) == [1, 2, 1]
    assert series["period_start"].is_monotonic_increasing


def test_series_without_fill_omits_empty_periods():
    series = build_series(_sample_tickets(), "reported_date", Period.DAY, [StatSpec.count()])
    assert len(series) == 4


def test_fill_range_zero_fills_and_respects_working_days():
    records = [{"d": "2024-03-05T09:00:00Z", "hours": 2.0}]
    stats = [StatSpec.total("hours", "hours")]
    window = DateRange(date(2024, 3, 4), date(2024, 3, 10))
    full = build_series(records, "d", Period.DAY, stats, fill_range=window)
    assert len(full) == 7
    assert full["hours"].tolist() == [0.0, 2.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    weekdays = build_series(records, "d", Period.DAY, stats, fill_range=window, working_days_only=True)
    assert weekdays["period"].tolist() == ["2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07", "2024-03-08"]


def test_empty_series_has_columns():
    series = build_series([], "d", Period.WEEK, [StatSpec.count()])
    assert series.empty
    assert list(series.columns) == ["period", "period_start", "label", "count"]


def test_series_by_and_pivot():
    long = series_by(_sample_tickets(), "reported_date", Period.MONTH, "priority")
    assert long[["label", "priority", "count"]].values.tolist() == [
        ["Dec-23", "Low", 1],
        ["Jan-24", "High", 1],
        ["Jan-24", "Low", 1],
        ["Feb-24", "High", 1],
    ]
    wide = pivot_series(_sample_tickets(), "reported_date", Period.MONTH, "priority")
    assert list(wide.columns) == ["period", "period_start", "label", "Low", "High"]
    assert wide["label"].tolist() == ["Dec-23", "Jan-24", "Feb-24"]
    assert wide["High"].tolist() == [0, 1, 1]


def test_period_matrix_columns_are_chronological():
    matrix = period_matrix(_sample_tickets(), [by_field("tier"), by_field("priority")], "reported_date")
    assert list(matrix.columns) == ["tier", "priority", "Dec-23", "Jan-24", "Feb-24"]
    assert matrix[["tier", "priority"]].values.tolist() == [["Network", "High"], ["Storage", "Low"], ["Network", "Low"]]
    row = matrix[(matrix["tier"] == "Network") & (matrix["priority"] == "High")].iloc[0]
    assert (row["Jan-24"], row["Feb-24"]) == (1, 1)


def test_period_matrix_empty():
    matrix = period_matrix(pd.DataFrame(), [by_field("tier")], "reported_date")
    assert list(matrix.columns) == ["tier"]
