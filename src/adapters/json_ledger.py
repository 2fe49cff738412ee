"""JSON file ledger adapter.

Implements the core LedgerPort using a single pretty-printed JSON array of
commit records. The file is rewritten in full on every persist.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, List, Sequence, Tuple

from core.models import Commit, parse_commits, record_label
from core.ports import ErrorReporterPort

LOGGER = logging.getLogger(__name__)


class LedgerFormatError(ValueError):
    """The ledger file parsed as JSON but is not a list of commits."""


class JsonLedgerStore:
    """Thin JSON file wrapper that satisfies the LedgerPort contract."""

    def __init__(self, path: str, reporter: ErrorReporterPort) -> None:
        self._path = path
        self._reporter = reporter
        # Set when the file on disk could not be parsed; the next persist
        # moves it aside instead of silently overwriting it.
        self._corrupt = False

    @property
    def path(self) -> str:
        return self._path

    async def load(self, create: bool = True) -> List[Commit]:
        """Return the ledger, or an empty one if the file is unusable.

        Entries that cannot be parsed are reported and skipped; the rest of
        the ledger is kept. With create=False a missing file stays missing.
        """

        try:
            commits, rejected = await asyncio.to_thread(self._read, create)
        except (ValueError, TypeError) as exc:
            self._corrupt = True
            await self._reporter.report(exc, "loading commits from file")
            return []
        except OSError as exc:
            await self._reporter.report(exc, "loading commits from file")
            return []

        if rejected:
            # Keep the original file around: the next rewrite drops these entries.
            self._corrupt = True
        for record, exc in rejected:
            await self._reporter.report(exc, f"loading {record_label(record)} from file")
        return commits

    async def persist(self, ledger: Sequence[Commit]) -> None:
        records = [commit.to_dict() for commit in ledger]
        try:
            await asyncio.to_thread(self._replace, records)
        except (OSError, TypeError, ValueError) as exc:
            await self._reporter.report(exc, "saving commits to file")

    def _read(self, create: bool) -> Tuple[List[Commit], List[Tuple[Any, Exception]]]:
        if not os.path.exists(self._path):
            if create:
                self._write([])
                LOGGER.info("Created empty commit ledger at %s", self._path)
            else:
                LOGGER.info("Commits file not found at %s", self._path)
            return [], []

        with open(self._path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, list):
            raise LedgerFormatError(
                f"{self._path} must contain a JSON array, found {type(data).__name__}"
            )
        self._corrupt = False
        return parse_commits(data)

    def _replace(self, records: List[dict[str, Any]]) -> None:
        if self._corrupt and os.path.exists(self._path):
            backup = f"{self._path}.corrupt"
            os.replace(self._path, backup)
            LOGGER.warning("Moved unreadable ledger aside to %s", backup)
        self._write(records)
        self._corrupt = False

    def _write(self, records: List[dict[str, Any]]) -> None:
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # Write next to the target and swap in, so a crash never leaves half a file.
        temp_path = f"{self._path}.tmp"
        with open(temp_path, "w", encoding="utf-8") as handle:
            json.dump(records, handle, indent=2, ensure_ascii=False)
        os.replace(temp_path, self._path)
