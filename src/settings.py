"""Static configuration for commitrelay.

All user-editable settings (repository, Discord ids, ledger path, poll
interval, logging) live in a single JSON file for quick edits without
touching Python. The webhook URL is a secret and may come from the
environment (.env) instead.
"""

import json
import os

from dotenv import load_dotenv

from core.config import DEFAULT_FEED_BASE_URL, DEFAULT_FILES_BASE_URL, NotificationConfig, RelayConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# COMMITRELAY_CONFIG lets one checkout run several watchers side by side.
CONFIG_PATH = os.getenv("COMMITRELAY_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

REPOSITORY = _CONFIG.get("repository", "")
if not REPOSITORY:
    raise RuntimeError("config.json must set 'repository'")

# WEBHOOK_URL from the environment wins so the token can stay out of the repo.
WEBHOOK_URL = os.getenv("WEBHOOK_URL") or _CONFIG.get("webhook_url", "")
if not WEBHOOK_URL:
    raise RuntimeError("Set WEBHOOK_URL in the environment or webhook_url in config.json")

# Discord ids: the owner gets pinged on errors, the role on new commits.
OWNER_ID = str(_CONFIG.get("owner_id", ""))
ROLE_ID = str(_CONFIG.get("role_id", ""))

COMMITS_FILE_PATH = _resolve_path(_CONFIG.get("commits_file_path", "commits.json"))
DEBUG_LOG_PATH = _resolve_path(_CONFIG.get("debug_log_path", "debug.log"))

CHECK_INTERVAL_SECONDS = float(_CONFIG.get("check_interval_seconds", 300))
HTTP_TIMEOUT_SECONDS = float(_CONFIG.get("http_timeout_seconds", 30))

FEED_BASE_URL = _CONFIG.get("feed_base_url", DEFAULT_FEED_BASE_URL)
FILES_BASE_URL = _CONFIG.get("files_base_url", DEFAULT_FILES_BASE_URL)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})

RELAY = RelayConfig(
    repository=REPOSITORY,
    commits_file_path=COMMITS_FILE_PATH,
    check_interval_seconds=CHECK_INTERVAL_SECONDS,
    feed_base_url=FEED_BASE_URL,
)

NOTIFICATIONS = NotificationConfig(
    webhook_url=WEBHOOK_URL,
    owner_id=OWNER_ID,
    role_id=ROLE_ID,
    repository=REPOSITORY,
    feed_base_url=FEED_BASE_URL,
    files_base_url=FILES_BASE_URL,
)
