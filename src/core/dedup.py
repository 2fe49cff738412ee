"""Deduplication helpers (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from core.models import Commit, CommitId


def canonical_commit_id(commit_id: CommitId) -> str:
    """Return the comparable form of a commit id.

    The ledger stores ids the way the feed sent them (usually numbers) while
    resend requests arrive as text, so both sides are compared as strings.
    Integral floats are printed without a fraction so 12345.0 == "12345".
    """

    if isinstance(commit_id, bool):
        return str(commit_id)
    if isinstance(commit_id, float) and commit_id.is_integer():
        return str(int(commit_id))
    return str(commit_id).strip()


def known_ids(ledger: Iterable[Commit]) -> set[str]:
    return {canonical_commit_id(commit.id) for commit in ledger}


def find_new_commits(fetched: Sequence[Commit], ledger: Sequence[Commit]) -> List[Commit]:
    """Return fetched commits absent from the ledger, in fetch order."""

    seen = known_ids(ledger)
    fresh: List[Commit] = []
    for commit in fetched:
        key = canonical_commit_id(commit.id)
        if key in seen:
            continue
        # A page that repeats a record must not put two entries in the ledger.
        seen.add(key)
        fresh.append(commit)
    return fresh


def find_commit(ledger: Iterable[Commit], commit_id: CommitId) -> Optional[Commit]:
    """Look up a ledger entry by id, whatever type the caller used."""

    wanted = canonical_commit_id(commit_id)
    for commit in ledger:
        if canonical_commit_id(commit.id) == wanted:
            return commit
    return None
