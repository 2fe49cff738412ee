"""Logging setup for commitrelay.

Handlers are built from the `logging` block of config.json. Every line they
emit passes through a formatter that masks the webhook URL, its token, and
any extra secret named in `logging.redact.patterns`.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

MASK = "***"
LINE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE = "logs/commitrelay.log"


class SecretMaskingFormatter(logging.Formatter):
    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__(fmt=LINE_FORMAT, datefmt=DATE_FORMAT)
        # Longest first, so a URL is masked whole before its token is.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        for secret in self._secrets:
            line = line.replace(secret, MASK)
        return line


def webhook_secrets(webhook_url: str) -> List[str]:
    """The webhook URL and its token segment (`/api/webhooks/<id>/<token>`)."""

    if not webhook_url:
        return []
    token = urlsplit(webhook_url).path.rstrip("/").rsplit("/", 1)[-1]
    return [webhook_url, token] if token else [webhook_url]


def env_secrets(config: dict) -> List[str]:
    redact = config.get("redact", {})
    if not redact.get("enabled", False):
        return []
    return [os.environ[name] for name in redact.get("patterns", []) if os.environ.get(name)]


def _file_handler(file_cfg: dict, project_root: str) -> logging.Handler:
    path = file_cfg.get("path", DEFAULT_LOG_FILE)
    if not os.path.isabs(path):
        path = os.path.join(project_root, path)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def configure_logging(
    config: dict,
    project_root: str,
    secrets: Iterable[str],
    logger: Optional[logging.Logger] = None,
) -> List[logging.Handler]:
    """Attach console/file handlers to `logger` (root by default)."""

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = SecretMaskingFormatter(secrets)

    handlers: List[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, project_root))

    target = logger or logging.getLogger()
    target.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        target.addHandler(handler)

    # httpx logs each request URL at INFO, webhook token included.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handlers
