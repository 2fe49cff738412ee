"""Core commit relay pipeline.

This module is integration-agnostic. It only relies on ports for the ledger,
the feed, formatting, notifications and error reporting, so the same cycle
runs against the JSON ledger and Discord in production and against fakes in
tests.

A polling cycle enforces a strict order:
1) Load the ledger fresh from storage
2) Fetch the first feed page
3) Keep only commits whose id is not in the ledger
4) Format + deliver each new commit, in feed order, appending it as it goes
5) Persist the ledger once if anything was appended
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from core.dedup import find_commit, find_new_commits
from core.models import Commit, CommitId, CycleResult
from core.ports import ErrorReporterPort, FeedPort, FormatterPort, LedgerPort, NotifierPort

LOGGER = logging.getLogger(__name__)


class CommitRelay:
    """Orchestrates fetch, dedup, notification, and ledger persistence."""

    def __init__(
        self,
        ledger: LedgerPort,
        feed: FeedPort,
        formatter: FormatterPort,
        notifier: NotifierPort,
        reporter: ErrorReporterPort,
    ) -> None:
        self._ledger = ledger
        self._feed = feed
        self._formatter = formatter
        self._notifier = notifier
        self._reporter = reporter
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self) -> Optional[CycleResult]:
        """Run one poll cycle.

        Returns None when another cycle is still in flight; the in-memory
        ledger and the ledger file are never touched by two cycles at once.
        """

        if self._lock.locked():
            LOGGER.warning("Previous cycle still running, skipping this tick")
            return None

        async with self._lock:
            try:
                return await self._cycle()
            except Exception as exc:
                await self._reporter.report(exc, "checking for new commits")
                return CycleResult(fetched=0, new=0, delivered=0)

    async def _cycle(self) -> CycleResult:
        ledger = await self._ledger.load()
        fetched = await self._feed.fetch(1)
        fresh = find_new_commits(fetched, ledger)

        if not fresh:
            LOGGER.info("No new commits to add.")
            return CycleResult(fetched=len(fetched), new=0, delivered=0)

        updated: List[Commit] = list(ledger)
        delivered = 0
        for commit in fresh:
            if await self._notify(commit):
                delivered += 1
            # Seen means "handled": a failed delivery is reported, not retried.
            updated.append(commit)

        await self._ledger.persist(updated)
        LOGGER.info(
            "Recorded %s new commit(s), %s delivered",
            len(fresh),
            delivered,
        )
        return CycleResult(fetched=len(fetched), new=len(fresh), delivered=delivered)

    async def _notify(self, commit: Commit) -> bool:
        try:
            message = self._formatter(commit)
        except Exception as exc:
            await self._reporter.report(exc, f"formatting commit {commit.id}")
            return False
        try:
            return await self._notifier.deliver(message, commit)
        except Exception as exc:
            # The commit still gets recorded; a later persist must not be lost.
            await self._reporter.report(exc, f"sending commit {commit.id}")
            return False

    async def resend(self, commit_id: CommitId) -> bool:
        """Deliver one commit from the ledger again without mutating it."""

        LOGGER.info("Attempting to resend commit ID: %s", commit_id)
        async with self._lock:
            try:
                ledger = await self._ledger.load(create=False)
                commit = find_commit(ledger, commit_id)
                if commit is None:
                    LOGGER.info("Commit ID %s not found in the ledger.", commit_id)
                    return False
                LOGGER.info("Sending commit: %s", commit_id)
                return await self._notify(commit)
            except Exception as exc:
                await self._reporter.report(exc, f"resending commit ID {commit_id}")
                return False
