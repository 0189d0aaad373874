"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from ops_app.core.column_config import get_columns
from ops_app.core.config import SETTINGS


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="medium",
        )
    }
    return out, cfg


def display_columns(df: pd.DataFrame, set_name: str) -> list[str]:
    """Configured columns present in ``df``, falling back to every column."""
    cols = [c for c in get_columns(set_name) if c in df.columns]
    return cols or list(df.columns)


def csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode(SETTINGS.download_encoding)


def download_button(df: pd.DataFrame, label: str, file_name: str, *, key: str | None = None) -> None:
    """CSV export of a metrics table; disabled when the table is empty."""
    st.download_button(
        label,
        data=csv_bytes(df),
        file_name=file_name,
        mime="text/csv",
        disabled=df.empty,
        key=key or f"download_{file_name}",
    )


def render_table(
    df: pd.DataFrame,
    *,
    set_name: str | None = None,
    column_config: dict | None = None,
    download_name: str | None = None,
    empty_message: str = "No data for the current filters.",
) -> None:
    if df.empty:
        st.caption(empty_message)
        return
    cols = display_columns(df, set_name) if set_name else list(df.columns)
    st.dataframe(df[cols].head(SETTINGS.max_table_rows), hide_index=True, column_config=column_config or {})
    if download_name:
        download_button(df[cols], "Download CSV", download_name)


def render_issue_table(df: pd.DataFrame, server: str, *, download_name: str | None = None) -> None:
    linked, cfg = add_ticket_link(df, server)
    render_table(linked, set_name="jira_issue", column_config=cfg, download_name=download_name)


def distribution_frame(values: dict, label: str, value: str = "count") -> pd.DataFrame:
    """Two-column frame from a ``{label: value}`` distribution, largest first."""
    frame = pd.DataFrame({label: list(values.keys()), value: list(values.values())})
    return frame.sort_values(value, ascending=False, kind="stable").reset_index(drop=True)
