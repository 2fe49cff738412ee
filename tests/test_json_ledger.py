from __future__ import annotations

import asyncio
import json

from adapters.json_ledger import JsonLedgerStore, LedgerFormatError
from core.models import Commit, CommitAuthor


class FakeReporter:
    def __init__(self) -> None:
        self.reports: list[tuple[BaseException, str]] = []

    async def report(self, error: BaseException, action: str) -> None:
        self.reports.append((error, action))


def _commit(commit_id) -> Commit:
    return Commit(
        id=commit_id,
        repo="rust_reboot",
        branch="main",
        user=CommitAuthor(name="Helk", avatar=None),
        message=f"Commit {commit_id}\nBody",
        changeset="x1",
        created="2024-01-01T00:00:00",
        extra={"likes": 3},
    )


def test_persist_then_load_round_trip(tmp_path) -> None:
    reporter = FakeReporter()
    store = JsonLedgerStore(str(tmp_path / "commits.json"), reporter)
    ledger = [_commit(3), _commit("abc"), _commit(1)]

    asyncio.run(store.persist(ledger))
    loaded = asyncio.run(store.load())

    assert loaded == ledger
    assert [commit.id for commit in loaded] == [3, "abc", 1]
    assert loaded[0].extra == {"likes": 3}
    assert not reporter.reports


def test_persist_writes_two_space_indented_array(tmp_path) -> None:
    path = tmp_path / "commits.json"
    store = JsonLedgerStore(str(path), FakeReporter())

    asyncio.run(store.persist([_commit(1)]))

    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {\n    \"id\": 1,")
    assert json.loads(text)[0]["user"] == {"name": "Helk", "avatar": None}


def test_missing_file_is_created_empty(tmp_path) -> None:
    path = tmp_path / "nested" / "commits.json"
    store = JsonLedgerStore(str(path), FakeReporter())

    assert asyncio.run(store.load()) == []
    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_non_array_document_yields_empty_ledger(tmp_path) -> None:
    path = tmp_path / "commits.json"
    path.write_text('"not an array"', encoding="utf-8")
    reporter = FakeReporter()
    store = JsonLedgerStore(str(path), reporter)

    assert asyncio.run(store.load()) == []
    assert isinstance(reporter.reports[0][0], LedgerFormatError)
    assert reporter.reports[0][1] == "loading commits from file"
    # The unreadable file is left alone at load time.
    assert path.read_text(encoding="utf-8") == '"not an array"'


def test_invalid_json_yields_empty_ledger(tmp_path) -> None:
    path = tmp_path / "commits.json"
    path.write_text("[{broken", encoding="utf-8")
    reporter = FakeReporter()
    store = JsonLedgerStore(str(path), reporter)

    assert asyncio.run(store.load()) == []
    assert len(reporter.reports) == 1


def test_corrupt_file_is_moved_aside_before_rewrite(tmp_path) -> None:
    path = tmp_path / "commits.json"
    path.write_text("{}", encoding="utf-8")
    store = JsonLedgerStore(str(path), FakeReporter())

    asyncio.run(store.load())
    asyncio.run(store.persist([_commit(1)]))

    assert (tmp_path / "commits.json.corrupt").read_text(encoding="utf-8") == "{}"
    assert json.loads(path.read_text(encoding="utf-8"))[0]["id"] == 1


def test_persist_failure_is_reported(tmp_path) -> None:
    # A directory where the file should be makes the final rename fail.
    path = tmp_path / "commits.json"
    path.mkdir()
    reporter = FakeReporter()
    store = JsonLedgerStore(str(path), reporter)

    asyncio.run(store.persist([_commit(1)]))

    assert reporter.reports
    assert reporter.reports[0][1] == "saving commits to file"


def test_bad_entry_is_skipped_and_file_backed_up_on_rewrite(tmp_path) -> None:
    path = tmp_path / "commits.json"
    original = json.dumps([_commit(2).to_dict(), {"id": 1, "user": None}, "junk"])
    path.write_text(original, encoding="utf-8")
    reporter = FakeReporter()
    store = JsonLedgerStore(str(path), reporter)

    loaded = asyncio.run(store.load())

    assert [commit.id for commit in loaded] == [2]
    assert [action for _, action in reporter.reports] == [
        "loading record 1 from file",
        "loading record str from file",
    ]

    asyncio.run(store.persist(loaded + [_commit(3)]))

    assert (tmp_path / "commits.json.corrupt").read_text(encoding="utf-8") == original
    assert [record["id"] for record in json.loads(path.read_text(encoding="utf-8"))] == [2, 3]


def test_load_without_create_leaves_missing_file_missing(tmp_path) -> None:
    path = tmp_path / "commits.json"
    reporter = FakeReporter()
    store = JsonLedgerStore(str(path), reporter)

    assert asyncio.run(store.load(create=False)) == []
    assert not path.exists()
    assert not reporter.reports
