"""Chart builders (Altair) for dashboard series and tables.

Every builder returns ``None`` for an empty input so pages can show a caption
instead of an empty chart.
"""

from __future__ import annotations

from collections.abc import Mapping

import altair as alt
import pandas as pd

PRIMARY = "#1f77b4"
ALERT = "#d62728"


def _weekend_shading(dates: pd.Series):
    days = pd.DataFrame({"date": pd.to_datetime(dates).drop_duplicates()})
    weekend = days[days["date"].dt.weekday.isin([5, 6])]
    if weekend.empty:
        return None
    weekend = weekend.assign(date_end=weekend["date"] + pd.Timedelta(days=1))
    return alt.Chart(weekend).mark_rect(color="#f2f2f2").encode(x="date:T", x2="date_end:T")


def _line_layers(series: pd.DataFrame, value: str, title: str | None):
    data = series[["period_start", "label", value]].copy()
    data["date"] = pd.to_datetime(data["period_start"], utc=True).dt.tz_localize(None)
    axis_title = title or value.replace("_", " ").title()
    line = alt.Chart(data).mark_line(color=PRIMARY).encode(
        x=alt.X("date:T", title="Period"),
        y=alt.Y(f"{value}:Q", title=axis_title),
    )
    points = alt.Chart(data).mark_circle(color=PRIMARY, opacity=0.75, size=60).encode(
        x="date:T",
        y=f"{value}:Q",
        tooltip=[alt.Tooltip("label:N", title="Period"), alt.Tooltip(f"{value}:Q", title=axis_title)],
    )
    return line, points


def series_line(series: pd.DataFrame, value: str, *, title: str | None = None, height: int = 300):
    """Line + points over ``period_start`` for a series frame."""
    if series.empty or value not in series.columns:
        return None
    line, points = _line_layers(series, value, title)
    return (line + points).properties(height=height)


def daily_line(series: pd.DataFrame, value: str, *, title: str | None = None, height: int = 300):
    """Daily series with weekends shaded."""
    if series.empty or value not in series.columns:
        return None
    line, points = _line_layers(series, value, title)
    shading = _weekend_shading(pd.to_datetime(series["period_start"], utc=True).dt.tz_localize(None))
    layers = [line, points] if shading is None else [shading, line, points]
    return alt.layer(*layers).properties(height=height)


def stacked_bar(long: pd.DataFrame, category: str, value: str = "count", *, height: int = 300):
    """Stacked bars per period from a long (period, category, value) frame.

    Period labels are ordered by ``period_start`` so months never sort
    alphabetically.
    """
    if long.empty:
        return None
    data = long.sort_values("period_start", kind="stable")[["label", category, value]]
    order = list(pd.unique(data["label"]))
    return (
        alt.Chart(data)
        .mark_bar()
        .encode(
            x=alt.X("label:N", title="Period", sort=order),
            y=alt.Y(f"{value}:Q", title=value.replace("_", " ").title(), stack="zero"),
            color=alt.Color(f"{category}:N", title=category.replace("_", " ").title()),
            tooltip=[
                alt.Tooltip("label:N", title="Period"),
                alt.Tooltip(f"{category}:N"),
                alt.Tooltip(f"{value}:Q"),
            ],
        )
        .properties(height=height)
    )


def count_bar(table: pd.DataFrame, category: str, value: str = "count", *, color: str = PRIMARY, height: int | None = None):
    """Horizontal bars for a count table, largest first."""
    if table.empty or category not in table.columns:
        return None
    data = table[[category, value]].copy()
    data[category] = data[category].astype(str)
    bar_height = height or max(120, 24 * len(data))
    return (
        alt.Chart(data)
        .mark_bar(color=color)
        .encode(
            y=alt.Y(f"{category}:N", sort="-x", title=category.replace("_", " ").title()),
            x=alt.X(f"{value}:Q", title=value.replace("_", " ").title()),
            tooltip=[alt.Tooltip(f"{category}:N"), alt.Tooltip(f"{value}:Q")],
        )
        .properties(height=bar_height)
    )


def bucket_bar(totals: Mapping[str, int], *, height: int = 260):
    """Resolution-time distribution in bucket order."""
    if not totals or sum(totals.values()) == 0:
        return None
    data = pd.DataFrame(
        {
            "bucket": [name.replace("_", " ") for name in totals],
            "count": list(totals.values()),
        }
    )
    return (
        alt.Chart(data)
        .mark_bar(color=PRIMARY)
        .encode(
            x=alt.X("bucket:N", sort=list(data["bucket"]), title="Resolution time"),
            y=alt.Y("count:Q", title="Incidents"),
            tooltip=["bucket:N", "count:Q"],
        )
        .properties(height=height)
    )


def occupancy_bar(table: pd.DataFrame, name: str, rate: str, *, target: float = 100.0, height: int | None = None):
    """Occupancy per team/member with a rule at the target rate; over-target bars are red."""
    if table.empty:
        return None
    data = table[[name, rate]].copy()
    data["over"] = data[rate] > target
    bar_height = height or max(120, 24 * len(data))
    bars = (
        alt.Chart(data)
        .mark_bar()
        .encode(
            y=alt.Y(f"{name}:N", sort="-x", title=None),
            x=alt.X(f"{rate}:Q", title="Occupancy (%)"),
            color=alt.condition("datum.over", alt.value(ALERT), alt.value(PRIMARY)),
            tooltip=[alt.Tooltip(f"{name}:N"), alt.Tooltip(f"{rate}:Q", format=".1f")],
        )
    )
    rule = alt.Chart(pd.DataFrame({"target": [target]})).mark_rule(strokeDash=[4, 4]).encode(x="target:Q")
    return (bars + rule).properties(height=bar_height)


def heatmap(table: pd.DataFrame, x: str, y: str, value: str, *, height: int | None = None):
    """Rect heatmap; ``x`` keeps the column's existing order."""
    if table.empty:
        return None
    data = table[[x, y, value]].copy()
    bar_height = height or max(120, 22 * data[y].nunique())
    return (
        alt.Chart(data)
        .mark_rect()
        .encode(
            x=alt.X(f"{x}:N", sort=list(pd.unique(data[x])), title=x.replace("_", " ").title()),
            y=alt.Y(f"{y}:N", title=y.replace("_", " ").title()),
            color=alt.Color(f"{value}:Q", scale=alt.Scale(scheme="orangered")),
            tooltip=[f"{x}:N", f"{y}:N", alt.Tooltip(f"{value}:Q", format=".1f")],
        )
        .properties(height=bar_height)
    )


def forecast_chart(forecast: pd.DataFrame, *, height: int = 220):
    if forecast.empty:
        return None
    data = forecast.copy()
    data["date"] = pd.to_datetime(data["date"])
    return (
        alt.Chart(data)
        .mark_area(opacity=0.35, color=PRIMARY)
        .encode(
            x=alt.X("date:T", title="Date"),
            y=alt.Y("projected_hours:Q", title="Projected hours / day"),
            tooltip=[alt.Tooltip("date:T"), "projected_hours:Q", "capacity_gap:Q"],
        )
        .properties(height=height)
    )
