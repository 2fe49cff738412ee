"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_FEED_BASE_URL = "https://commits.facepunch.com"
DEFAULT_FILES_BASE_URL = "https://files.facepunch.com/"


@dataclass(frozen=True)
class RelayConfig:
    """Feed and ledger settings for the relay pipeline."""

    repository: str
    commits_file_path: str
    check_interval_seconds: float
    feed_base_url: str = DEFAULT_FEED_BASE_URL


@dataclass(frozen=True)
class NotificationConfig:
    """Notification settings consumed by the Discord adapters."""

    webhook_url: str
    owner_id: str
    role_id: str
    repository: str
    feed_base_url: str = DEFAULT_FEED_BASE_URL
    files_base_url: str = DEFAULT_FILES_BASE_URL
