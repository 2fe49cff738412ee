"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the ledger, the feed, notification
and error reporting adapters so that the core can be reused with different
backends.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

from core.models import Commit, NotificationMessage


class LedgerPort(Protocol):
    """Ledger operations required by the core pipeline."""

    async def load(self, create: bool = True) -> List[Commit]:
        ...

    async def persist(self, ledger: Sequence[Commit]) -> None:
        ...


class FeedPort(Protocol):
    """Commit feed operations required by the core pipeline."""

    async def fetch(self, page: int = 1) -> List[Commit]:
        ...


class FormatterPort(Protocol):
    def __call__(self, commit: Commit) -> NotificationMessage:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def deliver(self, message: NotificationMessage, commit: Commit) -> bool:
        ...


class ErrorReporterPort(Protocol):
    async def report(self, error: BaseException, action: str) -> None:
        ...
