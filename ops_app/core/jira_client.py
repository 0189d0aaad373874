"""Jira Cloud access: the ``jira`` client plus token-paged ``/search/jql``."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Iterator
from typing import Any

import requests
from jira import JIRA, JIRAError

from .config import FETCH_TIMEOUT_SECONDS, JIRA_SEARCH_CACHE_TTL_SECONDS
from .errors import FetchError

logger = logging.getLogger(__name__)

SEARCH_PATH = "/rest/api/3/search/jql"


class JiraAPI:
    """Thin wrapper over ``jira.JIRA`` for the dashboard's read-only needs.

    Searches call the enhanced search endpoint through the client's
    authenticated session. Results are memoised per query for
    ``JIRA_SEARCH_CACHE_TTL_SECONDS``.
    """

    def __init__(self, server: str, email: str, token: str, *, timeout: float = FETCH_TIMEOUT_SECONDS):
        self.server = server.rstrip("/")
        self.timeout = timeout
        try:
            self.client = JIRA(
                basic_auth=(email, token),
                options={"server": self.server, "rest_api_version": "3"},
                timeout=timeout,
                get_server_info=False,
            )
        except JIRAError as exc:
            raise FetchError(f"Could not connect to Jira at {self.server}: {exc}") from exc
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = JIRA_SEARCH_CACHE_TTL_SECONDS

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cache_key(self, jql: str, fields, page_size: int) -> str:
        blob = json.dumps({"jql": jql, "fields": fields, "page_size": page_size}, sort_keys=True)
        return hashlib.sha256(blob.encode()).hexdigest()

    def _cached(self, key: str) -> list[dict[str, Any]] | None:
        hit = self._cache.get(key)
        if hit is None:
            return None
        stored_at, issues = hit
        if time.time() - stored_at >= self._cache_ttl:
            del self._cache[key]
            return None
        return issues

    def projects(self) -> list[dict[str, Any]]:
        try:
            return [{"key": p.key, "name": p.name} for p in self.client.projects()]
        except (JIRAError, requests.RequestException) as exc:
            raise FetchError(f"Failed to list Jira projects: {exc}") from exc

    def _search_pages(self, jql: str, fields: list[str] | None, page_size: int) -> Iterator[dict[str, Any]]:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise FetchError("Jira session unavailable")
        base_params: dict[str, Any] = {"jql": jql, "maxResults": page_size}
        if fields:
            base_params["fields"] = ",".join(fields)
        page_token: str | None = None
        while True:
            params = base_params if page_token is None else {**base_params, "nextPageToken": page_token}
            try:
                resp = session.get(self.server + SEARCH_PATH, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                raise FetchError(f"Jira search failed: {exc}") from exc
            if resp.status_code >= 400:
                raise FetchError(f"Jira search failed {resp.status_code}: {resp.text[:200]}")
            try:
                page = resp.json()
            except ValueError as exc:
                raise FetchError("Jira search returned invalid JSON") from exc
            if not isinstance(page, dict):
                raise FetchError(f"Jira search returned {type(page).__name__}, expected an object")
            yield page
            page_token = page.get("nextPageToken")
            if not page_token or page.get("isLast") is True:
                return

    def search_enhanced(
        self,
        jql: str,
        fields: list[str] | None = None,
        page_size: int = 1000,
    ) -> list[dict[str, Any]]:
        """All issues matching ``jql``, following ``nextPageToken`` to the last page."""
        key = self._cache_key(jql, fields, page_size)
        cached = self._cached(key)
        if cached is not None:
            logger.debug("Jira search cache hit (%s issues)", len(cached))
            return cached
        issues: list[dict[str, Any]] = []
        for page in self._search_pages(jql, fields, page_size):
            issues.extend(page.get("issues", []))
        logger.debug("Jira search returned %s issues", len(issues))
        self._cache[key] = (time.time(), issues)
        return issues
