"""Record filter: date range plus team/project/user selections."""

from __future__ import annotations

import pandas as pd

from ops_app.analytics.pipeline.normalize import normalize_column, records_frame
from ops_app.analytics.pipeline.timestamps import target_tz, timestamp_column
from ops_app.core.config import UNKNOWN
from ops_app.core.models import FilterSpec


def date_mask(frame: pd.DataFrame, field: str, start, end) -> pd.Series:
    """True where ``field`` parses and its local calendar day is within [start, end]."""
    tz = target_tz()
    ts = timestamp_column(frame, field)
    lower = pd.Timestamp(start).normalize().tz_localize(tz)
    upper = (pd.Timestamp(end).normalize() + pd.Timedelta(days=1)).tz_localize(tz)
    return ts.notna() & (ts >= lower) & (ts < upper)


def selection_mask(frame: pd.DataFrame, field: str, selected) -> pd.Series:
    values = normalize_column(frame, field, UNKNOWN).astype(str)
    return values.isin(set(selected))


def filter_records(
    records,
    spec: FilterSpec | None,
    *,
    date_field: str | None = None,
    team_field: str | None = None,
    project_field: str | None = None,
    user_field: str | None = None,
) -> pd.DataFrame:
    """Narrow ``records`` to the rows matching every active dimension of ``spec``.

    Parameters
    ----------
    records : DataFrame or iterable of mappings
        Raw records; never mutated.
    spec : FilterSpec or None
        Selection. ``None``, an unset date range, or an empty selection set
        leave the corresponding dimension unfiltered.
    date_field, team_field, project_field, user_field : str, optional
        Record field carrying each dimension. A dimension whose field is
        ``None`` does not apply to this record type and is ignored.

    Returns
    -------
    pd.DataFrame
        New frame holding the matching rows with their original index.
        Records whose date cannot be parsed are dropped whenever a date
        range is active.
    """
    frame = records_frame(records)
    if frame.empty or spec is None:
        return frame

    mask = pd.Series(True, index=frame.index)
    if spec.date_range is not None and date_field:
        mask &= date_mask(frame, date_field, spec.date_range.start, spec.date_range.end)
    for selected, field in (
        (spec.selected_teams, team_field),
        (spec.selected_projects, project_field),
        (spec.selected_users, user_field),
    ):
        if selected and field:
            mask &= selection_mask(frame, field, selected)
    return frame[mask].copy()
