from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..core.logging_utils import log_event
from ..integrations.github.constants import AGENDA_LABEL_PREFIX
from ..integrations.github.errors import GitHubError
from ..integrations.github.rest import GitHubRestClient
from ..integrations.irc.constants import MOCK_GITHUB_COMMENTS_TARGET
from .github_urls import GithubURLParts
from .models import TopicRecord
from .rendering import render_comment
from .transport import ChatSender

MOCK_TITLE = "TITLE"


async def fetch_github_title(github: Optional[GitHubRestClient], url: str) -> str:
    """Return the issue/PR title for ``url``; never raises for API failures.

    ``github`` is ``None`` in mock mode, where every title is ``TITLE``.
    """

    if github is None:
        return MOCK_TITLE
    parts = GithubURLParts.from_string(url)
    if parts is None:
        return f"COULDN'T GET TITLE due to error {url!r} is not an issue URL"
    try:
        issue = await github.get_issue(parts.owner, parts.repo, parts.number)
    except GitHubError as exc:
        return f"COULDN'T GET TITLE due to error {exc}"
    title = issue.get("title")
    if not isinstance(title, str):
        return "COULDN'T GET TITLE due to error response had no title"
    return title


class CommentTask:
    """Posts one finished topic to GitHub and reports back to the channel.

    The task owns its ``TopicRecord``; the channel has already moved on. Every
    GitHub call is attempted once and any failure becomes part of the single
    status line sent to the channel.
    """

    def __init__(
        self,
        *,
        channel: str,
        topic: TopicRecord,
        sender: ChatSender,
        github: Optional[GitHubRestClient],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._channel = channel
        self._topic = topic
        self._sender = sender
        self._github = github
        self._logger = logger or logging.getLogger(__name__)

    async def run(self) -> None:
        url = self._topic.github_url
        if url is None:
            return
        parts = GithubURLParts.from_string(url)
        if parts is None:
            log_event(
                self._logger,
                logging.WARNING,
                "github.comment.url_mismatch",
                channel=self._channel,
                url=url,
            )
            return

        body = render_comment(self._topic)
        if self._github is None:
            self._replay_comment(parts, body)
            status = f"Successfully commented on {parts.url}"
        else:
            status = await self._post_comment(self._github, parts, body)
        log_event(
            self._logger,
            logging.INFO,
            "github.comment.finished",
            channel=self._channel,
            url=parts.url,
            status=status,
        )
        self._sender.send_line(self._channel, status, is_action=True)

    def _replay_comment(self, parts: GithubURLParts, body: str) -> None:
        target = MOCK_GITHUB_COMMENTS_TARGET
        self._sender.send_line(target, f"!BEGIN GITHUB COMMENT IN {parts.url}")
        for line in body.split("\n"):
            self._sender.send_line(target, line)
        self._sender.send_line(target, f"!END GITHUB COMMENT IN {parts.url}")

    async def _post_comment(
        self, github: GitHubRestClient, parts: GithubURLParts, body: str
    ) -> str:
        comment_message, label_messages = await asyncio.gather(
            self._create_comment(github, parts, body),
            self._remove_agenda_labels(github, parts),
        )
        return comment_message + "".join(label_messages)

    async def _create_comment(
        self, github: GitHubRestClient, parts: GithubURLParts, body: str
    ) -> str:
        try:
            await github.create_issue_comment(
                parts.owner, parts.repo, parts.number, body
            )
        except GitHubError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "github.comment.failed",
                channel=self._channel,
                url=parts.url,
                exc=exc,
            )
            return f"UNABLE TO COMMENT on {parts.url} due to error: {exc}"
        return f"Successfully commented on {parts.url}"

    async def _remove_agenda_labels(
        self, github: GitHubRestClient, parts: GithubURLParts
    ) -> list[str]:
        if not self._topic.remove_from_agenda:
            return []
        try:
            labels = await github.list_issue_labels(
                parts.owner, parts.repo, parts.number
            )
        except GitHubError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "github.labels.list_failed",
                url=parts.url,
                exc=exc,
            )
            return [f" and UNABLE TO RETRIEVE LABELS due to error: {exc}"]
        names = _agenda_label_names(labels)
        return list(
            await asyncio.gather(
                *(self._remove_label(github, parts, name) for name in names)
            )
        )

    async def _remove_label(
        self, github: GitHubRestClient, parts: GithubURLParts, label: str
    ) -> str:
        try:
            await github.remove_issue_label(
                parts.owner, parts.repo, parts.number, label
            )
        except GitHubError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "github.labels.remove_failed",
                url=parts.url,
                label=label,
                exc=exc,
            )
            return f' and UNABLE TO REMOVE LABEL "{label}" due to error: {exc}'
        return f' and removed the "{label}" label'


def _agenda_label_names(labels: list[dict[str, Any]]) -> list[str]:
    names = []
    for label in labels:
        name = label.get("name")
        if isinstance(name, str) and name.startswith(AGENDA_LABEL_PREFIX):
            names.append(name)
    return names
