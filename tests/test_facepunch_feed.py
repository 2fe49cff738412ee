from __future__ import annotations

import asyncio

import httpx

from adapters.facepunch_feed import FacepunchFeed


class FakeReporter:
    def __init__(self) -> None:
        self.actions: list[str] = []

    async def report(self, error: BaseException, action: str) -> None:
        self.actions.append(action)


RECORD = {
    "id": 501234,
    "repo": "rust_reboot",
    "branch": "main",
    "user": {"name": "Maurino", "avatar": "https://files.facepunch.com/a.png"},
    "message": "Fixed doors\nThey open now",
    "changeset": 88123,
    "created": "2024-02-01T12:00:00",
    "likes": 4,
}


def _fetch(handler, page: int = 1):
    reporter = FakeReporter()

    async def scenario():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as http:
            feed = FacepunchFeed(http, "rust_reboot", reporter, base_url="https://commits.test/")
            return await feed.fetch(page)

    return asyncio.run(scenario()), reporter


def test_fetch_parses_results_and_builds_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"results": [RECORD]})

    commits, reporter = _fetch(handler, page=2)

    assert seen[0].url.path == "/r/rust_reboot"
    assert seen[0].url.params["p"] == "2"
    assert seen[0].url.params["format"] == "json"
    assert len(commits) == 1
    assert commits[0].id == 501234
    assert commits[0].user.name == "Maurino"
    assert commits[0].extra == {"likes": 4}
    assert not reporter.actions


def test_http_error_status_returns_empty_and_reports() -> None:
    commits, reporter = _fetch(lambda request: httpx.Response(503))

    assert commits == []
    assert reporter.actions == ["fetching commits from page 1"]


def test_transport_failure_returns_empty_and_reports() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    commits, reporter = _fetch(handler)

    assert commits == []
    assert len(reporter.actions) == 1


def test_malformed_body_returns_empty_and_reports() -> None:
    commits, reporter = _fetch(lambda request: httpx.Response(200, text="<html>"))
    assert commits == []
    assert len(reporter.actions) == 1

    commits, reporter = _fetch(lambda request: httpx.Response(200, json={"items": []}))
    assert commits == []
    assert len(reporter.actions) == 1

    commits, reporter = _fetch(lambda request: httpx.Response(200, json={"results": {"id": 1}}))
    assert commits == []
    assert len(reporter.actions) == 1


def test_bad_record_is_skipped_and_rest_of_page_kept() -> None:
    good = dict(RECORD, id=2)
    bad = dict(RECORD, id=1, user=None)

    commits, reporter = _fetch(lambda request: httpx.Response(200, json={"results": [good, bad]}))

    assert [commit.id for commit in commits] == [2]
    assert reporter.actions == ["parsing record 1 from page 1"]
