import math

import pandas as pd
import pytest

from ops_app.analytics.pipeline.aggregate import (
    RESOLUTION_BUCKETS,
    BucketScheme,
    StatKind,
    StatSpec,
    aggregate,
    count_by,
    summarize,
    top_n,
)
from ops_app.analytics.pipeline.grouping import by_field


def _sample_logs():
    return pd.DataFrame(
        {
            "team": ["Ops", "Dev", "Ops", "Dev", "Ops"],
            "hours": [1.5, 2.0, None, 4.0, 3.5],
            "resolution_minutes": [30.0, 90.0, 0.0, -5.0, 2000.0],
        }
    )


def test_count_and_sum_are_additive_over_partition():
    frame = _sample_logs()
    whole_count = aggregate(frame, StatSpec.count())
    whole_sum = aggregate(frame, StatSpec.total("hours", "hours"))
    table = summarize(frame, [by_field("team")], [StatSpec.count(), StatSpec.total("hours", "hours")])
    assert table["count"].sum() == whole_count == 5
    assert table["hours"].sum() == pytest.approx(whole_sum) == pytest.approx(11.0)


def test_empty_mean_max_and_rate_are_zero():
    empty = pd.DataFrame(columns=["hours"])
    for stat in (
        StatSpec.mean("m", "hours"),
        StatSpec.maximum("x", "hours"),
        StatSpec.rate("r", lambda f: f["hours"] > 0),
        StatSpec.total("s", "hours"),
    ):
        value = aggregate(empty, stat)
        assert value == 0.0
        assert not math.isnan(value)
    assert aggregate([], StatSpec.count()) == 0


def test_mean_counts_missing_as_zero_unless_skipped():
    frame = _sample_logs()
    assert aggregate(frame, StatSpec.mean("m", "hours")) == pytest.approx(11.0 / 5)
    assert aggregate(frame, StatSpec.mean("m", "hours", skip_missing=True)) == pytest.approx(11.0 / 4)


def test_rate_uses_predicate_as_numerator():
    frame = _sample_logs()
    rate = aggregate(frame, StatSpec.rate("ops_share", lambda f: f["team"] == "Ops"))
    assert rate == pytest.approx(60.0)


def test_predicate_restricts_count():
    frame = _sample_logs()
    assert aggregate(frame, StatSpec.count("dev", predicate=lambda f: f["team"] == "Dev")) == 2


def test_distribution_sums_to_total_including_negative_and_zero():
    frame = _sample_logs()
    counts = aggregate(frame, StatSpec.distribution("resolution", "resolution_minutes"))
    assert sum(counts.values()) == len(frame)
    assert counts["less_than_1_hour"] == 3
    assert counts["one_to_two_hours"] == 1
    assert counts["more_than_24_hours"] == 1
    assert list(counts) == RESOLUTION_BUCKETS.names


def test_bucket_bounds_are_half_open():
    values = pd.Series([59.999, 60.0, 1439.0, 1440.0])
    assigned = list(RESOLUTION_BUCKETS.assign(values))
    assert assigned == ["less_than_1_hour", "one_to_two_hours", "twelve_to_twenty_four_hours", "more_than_24_hours"]


def test_bucket_scheme_rejects_unsorted_bounds():
    with pytest.raises(ValueError):
        BucketScheme((("a", 10.0), ("b", 5.0)))


def test_stat_spec_validation():
    with pytest.raises(ValueError):
        StatSpec("bad", StatKind.MEAN)
    with pytest.raises(ValueError):
        StatSpec("bad", StatKind.RATE)


def test_summarize_empty_keeps_columns():
    table = summarize([], [by_field("team")], [StatSpec.count(), StatSpec.distribution("d", "resolution_minutes")])
    assert table.empty
    assert list(table.columns) == ["team", "count", *RESOLUTION_BUCKETS.names]


def test_count_by_and_top_n():
    table = count_by(_sample_logs(), [by_field("team")])
    assert table.to_dict("records") == [{"team": "Ops", "count": 3}, {"team": "Dev", "count": 2}]
    top = top_n(pd.DataFrame({"name": ["a", "b", "c"], "v": [1, 3, 3]}), "v", 2)
    assert list(top["name"]) == ["b", "c"]


def test_container_values_degrade_to_defaults():
    records = [
        {"priority": ["High"], "hours": [1, 2]},
        {"priority": "Low", "hours": 3},
        {"priority": {"name": "High"}, "hours": {"v": 4}},
    ]
    table = count_by(records, [by_field("priority")])
    assert table.to_dict("records") == [{"priority": "Unknown", "count": 2}, {"priority": "Low", "count": 1}]
    assert aggregate(records, StatSpec.total("hours", "hours")) == 3.0
