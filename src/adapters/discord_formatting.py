"""Discord notification formatting for commits.

Keeping formatting here keeps the webhook adapter free of layout decisions
and makes every rule (title cut, media split, colors) testable without HTTP.
"""

from __future__ import annotations

import posixpath
import re
from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import quote, urlsplit

from core.config import NotificationConfig
from core.models import Attachment, Commit, Embed, EmbedField, NotificationMessage

TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 4096
MAX_IMAGES = 4
MAX_ATTACHMENTS = 10
ELLIPSIS = "..."
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "mkv"})

DEFAULT_AVATAR_URL = "https://files.facepunch.com/garry/f549bfc2-2a49-4eb8-a701-3efd7ae046ac.png"
FOOTER_ICON_URL = (
    "https://images.squarespace-cdn.com/content/v1/627cb6fa4355783e5e375440/"
    "c92dbe6c-2afa-457c-a6b3-e9e8847d4565/rust-logo.png"
)
ADDITIONAL_IMAGE_TITLE = "Additional Image"

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def truncate(text: str, limit: int) -> str:
    """Cut `text` to at most `limit` characters, ending in an ellipsis if cut."""

    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def split_message(message: str) -> Tuple[str, str]:
    """Return (first line, remaining text stripped)."""

    first_line, _, rest = message.partition("\n")
    return first_line, rest.strip()


def author_color(name: str) -> int:
    """Deterministic 24-bit accent color for an author name."""

    acc = 0
    for char in name:
        acc = (acc * 31 + ord(char)) & 0xFFFFFFFF
    digits = format(acc, "x")[:6].ljust(6, "0")
    return int(digits, 16)


def is_numeric_changeset(changeset: object) -> bool:
    if isinstance(changeset, bool):
        return False
    if isinstance(changeset, int):
        return True
    return bool(_INTEGER_RE.match(str(changeset).strip()))


def find_media_urls(message: str, files_base_url: str) -> List[str]:
    pattern = re.escape(files_base_url.rstrip("/") + "/") + r"\S+"
    return re.findall(pattern, message)


def is_video(url: str) -> bool:
    extension = posixpath.splitext(urlsplit(url).path)[1].lstrip(".").lower()
    return extension in VIDEO_EXTENSIONS


def partition_media(urls: List[str]) -> Tuple[List[str], List[str]]:
    """Split urls into (images, videos), capping both at what Discord takes."""

    images: List[str] = []
    videos: List[str] = []
    for url in urls:
        if is_video(url):
            if len(videos) < MAX_ATTACHMENTS:
                videos.append(url)
        elif len(images) < MAX_IMAGES:
            images.append(url)
    return images, videos


def _attachment_for(url: str) -> Attachment:
    filename = posixpath.basename(urlsplit(url).path) or "attachment"
    return Attachment(url=url, filename=filename)


def _six_digit_fraction(match: re.Match[str]) -> str:
    # datetime.fromisoformat on 3.10 only takes 3 or 6 fractional digits.
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def _parse_timestamp(created: str) -> Optional[str]:
    if not created:
        return None
    value = created.strip()
    value = _FRACTION_RE.sub(_six_digit_fraction, value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value).isoformat()
    except ValueError:
        return None


def lead_text(commit: Commit, role_id: str) -> str:
    """Text sent above the embeds.

    Obfuscated changesets (non-numeric labels) are announced without pinging
    the role; numbered ones mention it together with the summary line.
    """

    if not is_numeric_changeset(commit.changeset):
        return f"New obfuscated commit by {commit.user.name}"
    return f"New <@&{role_id}> by {commit.user.name}, {commit.summary}"


def format_commit(commit: Commit, config: NotificationConfig) -> NotificationMessage:
    """Build the full Discord message for one commit."""

    first_line, body = split_message(commit.message)
    color = author_color(commit.user.name)
    site = config.feed_base_url.rstrip("/")
    branch_url = f"{site}/r/{commit.repo}/{quote(commit.branch, safe='')}"
    commit_url = f"{site}/{commit.id}"
    avatar_url = commit.user.avatar or DEFAULT_AVATAR_URL
    profile_name = re.sub(r"\s", "", commit.user.name)

    images, videos = partition_media(find_media_urls(commit.message, config.files_base_url))

    primary = Embed(
        title=truncate(first_line, TITLE_LIMIT),
        url=branch_url,
        color=color,
        description=truncate(body, DESCRIPTION_LIMIT) if body else None,
        image_url=images[0] if images else None,
        author_name=commit.user.name,
        author_icon_url=avatar_url,
        author_url=f"{site}/{profile_name}/{config.repository}",
        footer_text=f"Changeset {commit.changeset}",
        footer_icon_url=FOOTER_ICON_URL,
        timestamp=_parse_timestamp(commit.created),
        fields=(
            EmbedField(
                name="Commit Details",
                value=(
                    f"Commit ID: [{commit.id}]({commit_url})\n"
                    f"Branch: [{commit.branch}]({branch_url})"
                ),
            ),
        ),
    )
    extra_images = [
        Embed(title=ADDITIONAL_IMAGE_TITLE, url=branch_url, color=color, image_url=url)
        for url in images[1:]
    ]

    return NotificationMessage(
        content=lead_text(commit, config.role_id),
        username=commit.user.name,
        avatar_url=avatar_url,
        embeds=(primary, *extra_images),
        attachments=tuple(_attachment_for(url) for url in videos),
        allowed_mentions=("roles",),
    )
