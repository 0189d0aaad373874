"""Status panel shown while a dashboard loads its record sources."""

from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from ops_app.core.service import ProgressCallback


@dataclass(slots=True)
class ProgressEvent:
    message: str
    done: int | None = None
    total: int | None = None

    @property
    def label(self) -> str:
        if self.done is None or not self.total:
            return self.message
        return f"{self.message} ({self.done}/{self.total})"


class ProgressReporter:
    """Streamlit panel fed by the ``progress`` callback of ``DashboardService``.

    ``done``/``total`` move the bar; a step with neither (the metric
    calculation) leaves the bar where it is. Once ``complete``, ``stale`` or
    ``error`` is called the panel stops accepting steps.
    """

    def __init__(self, title: str):
        self._box = st.container()
        self._box.info(title)
        self._step = self._box.empty()
        self._bar = self._box.progress(0.0)
        self._ratio = 0.0
        self._closed = False
        self.events: list[ProgressEvent] = []

    @property
    def callback(self) -> ProgressCallback:
        return self._on_step

    def _on_step(self, message: str, done: int | None = None, total: int | None = None) -> None:
        if self._closed:
            return
        event = ProgressEvent(message, done, total)
        self.events.append(event)
        if done is not None and total:
            self._ratio = min(max(done / total, 0.0), 1.0)
            self._bar.progress(self._ratio)
        self._step.caption(event.label)

    def complete(self, message: str) -> None:
        self._close(self._box.success, message, bar=1.0)

    def stale(self, message: str = "A newer refresh replaced this one.") -> None:
        self._close(self._box.warning, message)

    def error(self, message: str) -> None:
        self._close(self._box.error, message)

    def _close(self, show, message: str, *, bar: float | None = None) -> None:
        if self._closed:
            return
        if bar is not None:
            self._bar.progress(bar)
        show(message)
        self._closed = True
