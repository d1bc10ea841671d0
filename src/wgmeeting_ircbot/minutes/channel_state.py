"""Per-channel topic state machine and inactivity timer.

A channel is either idle or has exactly one open ``TopicRecord``. All state
changes happen synchronously on the event loop thread; the only awaits are in
spawned background work (title lookups and comment posting), which re-reads
the channel state when it resumes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from ..core.background import TaskRegistry
from ..core.config import ChannelConfig
from ..core.logging_utils import log_event
from ..integrations.github.rest import GitHubRestClient
from .classifier import ClassifiedLine, LineKind
from .comment_task import CommentTask, fetch_github_title
from .github_urls import bare_mention_warning, resolve_directive
from .models import TopicRecord
from .transport import ChatSender

NO_TOPIC_MESSAGE = "I can't set a github URL because you haven't started a topic."
CLEARED_URL_MESSAGE = "OK, I won't post this discussion to GitHub."

Clock = Callable[[], float]


class ChannelState:
    def __init__(
        self,
        name: str,
        *,
        config: Optional[ChannelConfig],
        activity_timeout_seconds: float,
        sender: ChatSender,
        github: Optional[GitHubRestClient],
        tasks: TaskRegistry,
        logger: Optional[logging.Logger] = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.name = name
        self.config = config
        self.current_topic: Optional[TopicRecord] = None
        self._activity_timeout = activity_timeout_seconds
        self._sender = sender
        self._github = github
        self._tasks = tasks
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self.last_activity = clock()
        # With no timeout configured the timer counts as permanently pending.
        self.timer_pending = activity_timeout_seconds <= 0
        self._timer_handle: Optional[asyncio.TimerHandle] = None
        self._generation = 0

    @property
    def allowed_repos(self) -> Optional[tuple[str, ...]]:
        if self.config is None:
            return None
        return self.config.github_repos_allowed

    @property
    def current_url(self) -> Optional[str]:
        if self.current_topic is None:
            return None
        return self.current_topic.github_url

    @property
    def generation(self) -> int:
        """Counter bumped every time a new topic opens."""

        return self._generation

    def handle_line(self, classified: ClassifiedLine) -> None:
        if classified.kind is LineKind.ATTENDANCE:
            return
        if classified.starts_topic:
            self.start_topic(classified.title or "")
        elif classified.kind is LineKind.MEETING_END:
            self.end_topic()

        topic = self.current_topic
        if topic is None:
            self._handle_url_without_topic(classified)
            return
        self._handle_url_in_topic(topic, classified)

        line = classified.line
        if line.is_action:
            return
        if classified.records_resolution:
            topic.resolutions.append(line.message)
        if classified.removes_from_agenda:
            topic.remove_from_agenda = True
        topic.lines.append(line)

    def start_topic(self, title: str) -> TopicRecord:
        self.end_topic()
        self._generation += 1
        config = self.config
        topic = TopicRecord(
            topic=title,
            group=config.group if config is not None else "",
            publish_resolutions_only=(
                config.publish_resolutions_only if config is not None else False
            ),
        )
        self.current_topic = topic
        log_event(
            self._logger,
            logging.INFO,
            "topic.started",
            channel=self.name,
            title=title,
            generation=self._generation,
        )
        return topic

    def end_topic(self) -> None:
        topic = self.current_topic
        if topic is None:
            return
        self.current_topic = None
        will_comment = topic.should_comment()
        log_event(
            self._logger,
            logging.INFO,
            "topic.ended",
            channel=self.name,
            title=topic.topic,
            lines=len(topic.lines),
            resolutions=len(topic.resolutions),
            url=topic.github_url,
            will_comment=will_comment,
        )
        if not will_comment:
            return
        task = CommentTask(
            channel=self.name,
            topic=topic,
            sender=self._sender,
            github=self._github,
            logger=self._logger,
        )
        self._tasks.spawn(task.run(), name=f"comment:{self.name}")

    def take_up(self, url: str, *, header: str, is_action: bool) -> None:
        """End the current topic and open one titled after the issue at ``url``.

        ``url`` must already have passed the allow-list check.
        """

        self.end_topic()
        self._tasks.spawn(
            self._take_up_with_title(url, header=header, is_action=is_action),
            name=f"take-up:{self.name}",
        )

    async def _take_up_with_title(
        self, url: str, *, header: str, is_action: bool
    ) -> None:
        title = await fetch_github_title(self._github, url)
        self._sender.send_line(self.name, f"{header}: {title}")
        self._sender.send_line(
            self.name, f"OK, I'll post this discussion to {url}.", is_action=is_action
        )
        topic = self.start_topic(title)
        topic.github_url = url

    def note_activity(self) -> None:
        """Record channel activity and arm the inactivity timer if needed."""

        self.last_activity = self._clock()
        if self.current_topic is not None and not self.timer_pending:
            self._schedule_activity_timer()

    def _schedule_activity_timer(self) -> None:
        self.timer_pending = True
        deadline = self.last_activity + self._activity_timeout
        delay = max(deadline - self._clock(), 0.0)
        loop = asyncio.get_running_loop()
        self._timer_handle = loop.call_later(delay, self.fire_activity_timer)

    def fire_activity_timer(self) -> None:
        self.close()
        self.timer_pending = False
        if self.current_topic is None:
            return
        if self._clock() >= self.last_activity + self._activity_timeout:
            log_event(
                self._logger,
                logging.INFO,
                "topic.activity_timeout",
                channel=self.name,
                idle_seconds=round(self._clock() - self.last_activity, 1),
            )
            self.end_topic()
            return
        # Activity arrived after the timer was armed.
        self._schedule_activity_timer()

    def close(self) -> None:
        """Cancel a scheduled inactivity timer; the open topic is left alone."""

        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

    def _respond(self, text: str) -> None:
        self._sender.send_line(self.name, text, is_action=True)

    def _handle_url_without_topic(self, classified: ClassifiedLine) -> None:
        if classified.directive is None:
            return
        result = resolve_directive(classified.directive, self.allowed_repos)
        if result.error is None:
            self._respond(NO_TOPIC_MESSAGE)
        else:
            self._respond(f"{NO_TOPIC_MESSAGE}  Also, {result.error}")

    def _handle_url_in_topic(
        self, topic: TopicRecord, classified: ClassifiedLine
    ) -> None:
        if classified.directive is None:
            if classified.mention is not None:
                warning = bare_mention_warning(
                    classified.mention, topic.github_url, in_topic=True
                )
                if warning is not None:
                    self._respond(warning)
            return

        result = resolve_directive(classified.directive, self.allowed_repos)
        if result.error is not None:
            self._respond(result.error)
            return
        old_url = topic.github_url
        new_url = result.url
        topic.github_url = new_url
        if new_url == old_url:
            return
        if new_url is None:
            self._respond(CLEARED_URL_MESSAGE)
            return
        self._tasks.spawn(
            self._confirm_url(new_url, old_url, self._generation),
            name=f"confirm-url:{self.name}",
        )

    async def _confirm_url(
        self, new_url: str, old_url: Optional[str], generation: int
    ) -> None:
        title = await fetch_github_title(self._github, new_url)
        if generation != self._generation or self.current_url != new_url:
            log_event(
                self._logger,
                logging.INFO,
                "topic.url_confirmation.dropped",
                channel=self.name,
                url=new_url,
            )
            return
        if old_url is None:
            self._respond(f"OK, I'll post this discussion to {new_url} ({title}).")
        else:
            self._respond(
                f"OK, I'll post this discussion to {new_url} ({title}) "
                f"instead of {old_url} like you said before."
            )
