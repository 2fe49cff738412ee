"""Application entry point for the commit relay."""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
from typing import Optional

import httpx
from art import tprint

import settings
from adapters.discord_formatting import format_commit
from adapters.discord_webhook import DiscordWebhookClient, DiscordWebhookNotifier
from adapters.error_reporter import ErrorReporter
from adapters.facepunch_feed import FacepunchFeed
from adapters.json_ledger import JsonLedgerStore
from core.processor import CommitRelay
from core.scheduler import poll_forever
from logging_setup import configure_logging, env_secrets, webhook_secrets

NAME = "COMMITRELAY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    secrets = webhook_secrets(settings.WEBHOOK_URL) + env_secrets(config)
    configure_logging(config, settings.PROJECT_ROOT, secrets)


def build_relay(http: httpx.AsyncClient) -> CommitRelay:
    """Wire the adapters from settings into a CommitRelay."""

    webhook = DiscordWebhookClient(http, settings.NOTIFICATIONS.webhook_url)
    reporter = ErrorReporter(settings.DEBUG_LOG_PATH, settings.OWNER_ID, webhook)
    return CommitRelay(
        ledger=JsonLedgerStore(settings.RELAY.commits_file_path, reporter),
        feed=FacepunchFeed(
            http,
            settings.RELAY.repository,
            reporter,
            base_url=settings.RELAY.feed_base_url,
        ),
        formatter=functools.partial(format_commit, config=settings.NOTIFICATIONS),
        notifier=DiscordWebhookNotifier(webhook, reporter),
        reporter=reporter,
    )


async def _poll() -> None:
    logger = logging.getLogger(__name__)
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http:
        relay = build_relay(http)
        logger.info(
            "Watching %s every %ss",
            settings.RELAY.repository,
            settings.RELAY.check_interval_seconds,
        )
        await poll_forever(relay.run_cycle, settings.RELAY.check_interval_seconds)


async def _resend(commit_id: str) -> bool:
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http:
        return await build_relay(http).resend(commit_id)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="commitrelay")
    parser.add_argument(
        "--resend-commit",
        metavar="COMMIT_ID",
        help="Send the notification for one commit from the ledger again and exit",
    )
    args = parser.parse_args(argv)

    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    if args.resend_commit is not None:
        asyncio.run(_resend(args.resend_commit))
        return

    logger.info("Starting commitrelay")
    try:
        asyncio.run(_poll())
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
