"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the feed's JSON shape or to Discord's payload format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple, Union

CommitId = Union[int, str]

_KNOWN_KEYS = {"id", "repo", "branch", "user", "message", "changeset", "created"}


@dataclass(frozen=True)
class CommitAuthor:
    name: str
    avatar: Optional[str] = None


@dataclass(frozen=True)
class Commit:
    """A single commit record as published by the commit feed."""

    id: CommitId
    repo: str
    branch: str
    user: CommitAuthor
    message: str
    changeset: Union[int, str]
    created: str
    # Feed keys we do not model are carried through so the ledger keeps them.
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> "Commit":
        """Build a Commit from a feed/ledger record.

        Raises KeyError or TypeError when a required field is missing or the
        record is not a mapping.
        """

        user = record["user"] or {}
        return cls(
            id=record["id"],
            repo=record.get("repo") or "",
            branch=record.get("branch") or "",
            user=CommitAuthor(name=user["name"], avatar=user.get("avatar")),
            message=record.get("message") or "",
            changeset=record.get("changeset", ""),
            created=record.get("created") or "",
            extra={key: value for key, value in record.items() if key not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "repo": self.repo,
            "branch": self.branch,
            "user": {"name": self.user.name, "avatar": self.user.avatar},
            "message": self.message,
            "changeset": self.changeset,
            "created": self.created,
        }
        record.update(self.extra)
        return record

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass(frozen=True)
class Embed:
    """One visual block of a chat message."""

    title: str
    url: str
    color: int
    description: Optional[str] = None
    image_url: Optional[str] = None
    author_name: Optional[str] = None
    author_icon_url: Optional[str] = None
    author_url: Optional[str] = None
    footer_text: Optional[str] = None
    footer_icon_url: Optional[str] = None
    timestamp: Optional[str] = None
    fields: tuple[EmbedField, ...] = ()


@dataclass(frozen=True)
class Attachment:
    """A remote file that is downloaded and uploaded alongside the message."""

    url: str
    filename: str


@dataclass(frozen=True)
class NotificationMessage:
    """Everything needed for one webhook call, derived from a Commit."""

    content: str
    username: str
    avatar_url: str
    embeds: tuple[Embed, ...]
    attachments: tuple[Attachment, ...] = ()
    allowed_mentions: tuple[str, ...] = ("roles",)


@dataclass(frozen=True)
class CycleResult:
    """Counters describing one polling cycle."""

    fetched: int
    new: int
    delivered: int


def parse_commits(records: Iterable[Any]) -> Tuple[List[Commit], List[Tuple[Any, Exception]]]:
    """Parse records one by one.

    Returns the commits that parsed and, separately, each rejected record
    with the error it raised, so one bad entry never costs the others.
    """

    commits: List[Commit] = []
    rejected: List[Tuple[Any, Exception]] = []
    for record in records:
        try:
            commits.append(Commit.from_dict(record))
        except (KeyError, TypeError, AttributeError) as exc:
            rejected.append((record, exc))
    return commits, rejected


def record_label(record: Any) -> str:
    if isinstance(record, dict) and "id" in record:
        return f"record {record['id']!r}"
    return f"record {type(record).__name__}"
