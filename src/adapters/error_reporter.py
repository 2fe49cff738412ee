"""Error reporting adapter.

Every stage of the relay hands its failures to one reporter, which writes a
line to the diagnostic file, logs it, and pings the owner on Discord. The
owner ping is a dead end: if it fails we only log locally, so a broken
webhook cannot trigger another report.
"""

from __future__ import annotations

import asyncio
import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Optional

from adapters.discord_webhook import DiscordWebhookClient

LOGGER = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Flatten an exception (with traceback when present) onto one line."""

    lines = traceback.format_exception(type(error), error, error.__traceback__)
    parts = [part.strip() for chunk in lines for part in chunk.splitlines() if part.strip()]
    return " | ".join(parts)


def format_diagnostic_line(error: BaseException, action: str, when: Optional[datetime] = None) -> str:
    stamp = (when or datetime.now(timezone.utc)).isoformat()
    return f"[{stamp}] Error encountered when {action}: {describe_error(error)}\n"


class ErrorReporter:
    """Writes diagnostics and alerts the owner through the webhook."""

    def __init__(
        self,
        log_path: str,
        owner_id: str,
        webhook: Optional[DiscordWebhookClient] = None,
    ) -> None:
        self._log_path = log_path
        self._owner_id = owner_id
        self._webhook = webhook

    def _append(self, line: str) -> None:
        directory = os.path.dirname(self._log_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self._log_path, "a", encoding="utf-8") as handle:
            handle.write(line)

    async def report(self, error: BaseException, action: str) -> None:
        line = format_diagnostic_line(error, action)
        try:
            await asyncio.to_thread(self._append, line)
        except OSError:
            LOGGER.exception("Could not write diagnostics to %s", self._log_path)

        LOGGER.error(
            "Error encountered when %s",
            action,
            exc_info=(type(error), error, error.__traceback__),
        )
        await self._alert_owner(action)

    async def _alert_owner(self, action: str) -> None:
        if self._webhook is None or not self._owner_id:
            return
        log_name = os.path.basename(self._log_path)
        payload = {
            "content": (
                f"<@!{self._owner_id}> An error was encountered when {action}. "
                f"Please check {log_name} for more details."
            ),
            "allowed_mentions": {"parse": ["users"]},
        }
        try:
            await self._webhook.execute(payload)
        except Exception:
            # Never report this failure: that would loop straight back here.
            LOGGER.warning("Failed to notify owner about: %s", action, exc_info=True)
