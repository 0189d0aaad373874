from datetime import date

import pandas as pd

from ops_app.analytics.pipeline.aggregate import StatSpec
from ops_app.analytics.pipeline.series import build_series
from ops_app.analytics.pipeline.timestamps import Period
from ops_app.core.models import DateRange
from ops_app.visual.charts import (
    bucket_bar,
    count_bar,
    daily_line,
    forecast_chart,
    heatmap,
    occupancy_bar,
    series_line,
    stacked_bar,
)


def _sample_series():
    long = pd.DataFrame(
        {
            "period": ["2024-02", "2024-01", "2024-02"],
            "period_start": pd.to_datetime(["2024-02-01", "2024-01-01", "2024-02-01"], utc=True),
            "label": ["Feb-24", "Jan-24", "Feb-24"],
            "priority": ["High", "Low", "Low"],
            "count": [2, 1, 3],
        }
    )
    return long


def test_empty_inputs_return_none():
    empty = pd.DataFrame()
    assert series_line(empty, "count") is None
    assert daily_line(empty, "hours") is None
    assert stacked_bar(empty, "priority") is None
    assert count_bar(empty, "priority") is None
    assert bucket_bar({"under_1h": 0}) is None
    assert occupancy_bar(empty, "team", "occupancy_rate") is None
    assert heatmap(empty, "x", "y", "v") is None
    assert forecast_chart(empty) is None


def test_series_charts_build():
    logs = [{"start_time": f"2024-03-0{d}T09:00:00+00:00", "hours": 2.0} for d in (1, 2, 4)]
    series = build_series(
        logs,
        "start_time",
        Period.DAY,
        [StatSpec.total("hours", "hours")],
        fill_range=DateRange(date(2024, 3, 1), date(2024, 3, 4)),
    )
    assert series_line(series, "hours") is not None
    assert daily_line(series, "hours") is not None
    assert series_line(series, "missing") is None


def test_table_charts_build():
    long = _sample_series()
    assert stacked_bar(long, "priority") is not None
    table = pd.DataFrame({"team": ["Ops", "Infra"], "occupancy_rate": [120.0, 60.0], "count": [3, 1]})
    assert count_bar(table, "team") is not None
    assert occupancy_bar(table, "team", "occupancy_rate") is not None
    assert heatmap(long, "label", "priority", "count") is not None
    assert bucket_bar({"under_1h": 2, "1h_to_4h": 0}) is not None
    forecast = pd.DataFrame(
        {"date": ["2024-04-01", "2024-04-02"], "projected_hours": [6.0, 7.0], "capacity_gap": [2.0, 1.0]}
    )
    assert forecast_chart(forecast) is not None
