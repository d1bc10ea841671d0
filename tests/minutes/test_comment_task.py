from __future__ import annotations

import json
import logging
from typing import Any, Callable

import httpx
import pytest

from wgmeeting_ircbot.integrations.github.rest import GitHubRestClient
from wgmeeting_ircbot.minutes.comment_task import CommentTask, fetch_github_title
from wgmeeting_ircbot.minutes.models import ChatLine, TopicRecord

ISSUE = "https://github.com/acme/widgets/issues/42"
API_PREFIX = "/repos/acme/widgets/issues/42"


class _RecordingSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, bool]] = []

    def send_line(self, target: str, text: str, *, is_action: bool = False) -> None:
        self.sent.append((target, text, is_action))


def _github(handler: Callable[[httpx.Request], httpx.Response]) -> GitHubRestClient:
    client = GitHubRestClient(
        token="t0ken", user_agent="wgmeeting-test", base_url="https://github.test"
    )
    client._client = httpx.AsyncClient(
        base_url="https://github.test",
        transport=httpx.MockTransport(handler),
        headers=client._client.headers,
    )
    return client


def _topic(*, remove_from_agenda: bool = False, url: str = ISSUE) -> TopicRecord:
    topic = TopicRecord(topic="Widget design", group="Widgets WG", github_url=url)
    topic.lines.append(ChatLine("alice", False, "RESOLUTION: use blue"))
    topic.resolutions.append("RESOLUTION: use blue")
    topic.remove_from_agenda = remove_from_agenda
    return topic


async def _run(topic: TopicRecord, github: Any) -> _RecordingSender:
    sender = _RecordingSender()
    task = CommentTask(
        channel="#wg",
        topic=topic,
        sender=sender,
        github=github,
        logger=logging.getLogger("test.comment_task"),
    )
    try:
        await task.run()
    finally:
        if github is not None:
            await github.close()
    return sender


@pytest.mark.anyio
async def test_mock_mode_replays_comment_over_chat() -> None:
    sender = await _run(_topic(remove_from_agenda=True), None)

    assert sender.sent[0] == ("github-comments", f"!BEGIN GITHUB COMMENT IN {ISSUE}", False)
    assert sender.sent[1] == (
        "github-comments",
        "The Widgets WG just discussed `Widget design`, and agreed to the following:",
        False,
    )
    # The rendered body ends with a newline, so an empty final line is replayed.
    assert sender.sent[-3] == ("github-comments", "", False)
    assert sender.sent[-2] == ("github-comments", f"!END GITHUB COMMENT IN {ISSUE}", False)
    assert sender.sent[-1] == ("#wg", f"Successfully commented on {ISSUE}", True)


@pytest.mark.anyio
async def test_real_mode_comments_and_removes_agenda_labels() -> None:
    calls: list[tuple[str, str]] = []
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.raw_path.decode()))
        assert request.headers["Authorization"] == "Bearer t0ken"
        assert request.headers["User-Agent"] == "wgmeeting-test"
        if request.method == "POST":
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 1})
        if request.method == "GET":
            return httpx.Response(
                200,
                json=[
                    {"name": "Agenda+"},
                    {"name": "Agenda+ F2F"},
                    {"name": "css-color-4"},
                ],
            )
        if request.url.path.endswith("F2F"):
            return httpx.Response(404, json={"message": "Label does not exist"})
        return httpx.Response(200, json=[])

    sender = await _run(_topic(remove_from_agenda=True), _github(handler))

    assert ("POST", f"{API_PREFIX}/comments") in calls
    assert ("DELETE", f"{API_PREFIX}/labels/Agenda%2B") in calls
    assert ("DELETE", f"{API_PREFIX}/labels/Agenda%2B%20F2F") in calls
    assert not any("css-color-4" in path for _, path in calls)
    assert bodies[0]["body"].startswith("The Widgets WG just discussed")

    assert len(sender.sent) == 1
    target, status, is_action = sender.sent[0]
    assert (target, is_action) == ("#wg", True)
    assert status.startswith(
        f'Successfully commented on {ISSUE} and removed the "Agenda+" label'
        ' and UNABLE TO REMOVE LABEL "Agenda+ F2F" due to error: '
    )
    assert "status=404" in status


@pytest.mark.anyio
async def test_real_mode_without_resolution_skips_labels() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.method)
        return httpx.Response(201, json={"id": 1})

    sender = await _run(_topic(remove_from_agenda=False), _github(handler))

    assert calls == ["POST"]
    assert sender.sent == [("#wg", f"Successfully commented on {ISSUE}", True)]


@pytest.mark.anyio
async def test_comment_failure_does_not_stop_label_removal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(500, text="oops")
        if request.method == "GET":
            return httpx.Response(200, json=[{"name": "Agenda+"}])
        return httpx.Response(200, json=[])

    sender = await _run(_topic(remove_from_agenda=True), _github(handler))

    status = sender.sent[0][1]
    assert status.startswith(f"UNABLE TO COMMENT on {ISSUE} due to error: ")
    assert status.endswith(' and removed the "Agenda+" label')


@pytest.mark.anyio
async def test_label_listing_failure_is_reported() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(403, json={"message": "Forbidden"})
        return httpx.Response(201, json={"id": 1})

    sender = await _run(_topic(remove_from_agenda=True), _github(handler))

    status = sender.sent[0][1]
    assert status.startswith(
        f"Successfully commented on {ISSUE} and UNABLE TO RETRIEVE LABELS due to error: "
    )


@pytest.mark.anyio
async def test_url_that_no_longer_parses_is_logged_and_skipped(
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING, logger="test.comment_task"):
        sender = await _run(_topic(url=f"{ISSUE}#frag"), None)

    assert sender.sent == []
    assert any(
        json.loads(record.getMessage())["event"] == "github.comment.url_mismatch"
        for record in caplog.records
        if record.name == "test.comment_task"
    )


@pytest.mark.anyio
async def test_fetch_github_title() -> None:
    assert await fetch_github_title(None, ISSUE) == "TITLE"

    def ok_handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == API_PREFIX
        return httpx.Response(200, json={"title": "Make widgets blue"})

    github = _github(ok_handler)
    try:
        assert await fetch_github_title(github, ISSUE) == "Make widgets blue"
    finally:
        await github.close()

    def failing_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    github = _github(failing_handler)
    try:
        title = await fetch_github_title(github, ISSUE)
    finally:
        await github.close()
    assert title.startswith("COULDN'T GET TITLE due to error ")
