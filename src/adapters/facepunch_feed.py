"""Commit feed adapter for commits.facepunch.com.

Fetches one page of the repository feed as JSON. Every failure is reported
and turned into an empty page so the cycle always proceeds.
"""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import quote

import httpx

from core.config import DEFAULT_FEED_BASE_URL
from core.models import Commit, parse_commits, record_label
from core.ports import ErrorReporterPort

LOGGER = logging.getLogger(__name__)


class FacepunchFeed:
    """Feed adapter that reads the public JSON commit listing."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        repository: str,
        reporter: ErrorReporterPort,
        base_url: str = DEFAULT_FEED_BASE_URL,
    ) -> None:
        self._http = http
        self._repository = repository
        self._reporter = reporter
        self._base_url = base_url.rstrip("/")

    def _endpoint(self) -> str:
        return f"{self._base_url}/r/{quote(self._repository, safe='')}"

    async def fetch(self, page: int = 1) -> List[Commit]:
        """Return the commits on `page`, or [] if anything goes wrong."""

        try:
            response = await self._http.get(
                self._endpoint(),
                params={"p": page, "format": "json"},
            )
            response.raise_for_status()
            results = response.json()["results"]
            if not isinstance(results, list):
                raise TypeError(f"'results' must be a list, got {type(results).__name__}")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            await self._reporter.report(exc, f"fetching commits from page {page}")
            return []

        commits, rejected = parse_commits(results)
        for record, exc in rejected:
            await self._reporter.report(exc, f"parsing {record_label(record)} from page {page}")

        LOGGER.debug("Fetched %s commits from page %s (%s skipped)", len(commits), page, len(rejected))
        return commits
