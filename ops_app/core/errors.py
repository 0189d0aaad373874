"""Exceptions raised at the fetch/service boundary."""

from __future__ import annotations


class FetchError(RuntimeError):
    """A data-store or Jira request failed or returned an error payload."""


class StaleResultError(RuntimeError):
    """A computed result belongs to a superseded refresh generation."""

    def __init__(self, dashboard: str, generation: int, latest: int):
        super().__init__(f"{dashboard}: generation {generation} superseded by {latest}")
        self.dashboard = dashboard
        self.generation = generation
        self.latest = latest
