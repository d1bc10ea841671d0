from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..core.background import TaskRegistry
from ..core.config import BotConfig
from ..integrations.github.rest import GitHubRestClient
from .channel_state import ChannelState, Clock
from .transport import ChatSender


class ChannelRegistry:
    """Lazily creates one ``ChannelState`` per channel and keeps it forever."""

    def __init__(
        self,
        config: BotConfig,
        *,
        sender: ChatSender,
        github: Optional[GitHubRestClient],
        tasks: TaskRegistry,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config = config
        self._sender = sender
        self._github = github
        self._tasks = tasks
        self._logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._channels: dict[str, ChannelState] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[ChannelState]:
        for name in sorted(self._channels):
            yield self._channels[name]

    def get(self, name: str) -> ChannelState:
        state = self._channels.get(name)
        if state is None:
            kwargs = {} if self._clock is None else {"clock": self._clock}
            state = ChannelState(
                name,
                config=self._config.channel(name),
                activity_timeout_seconds=self._config.bot.activity_timeout_seconds,
                sender=self._sender,
                github=self._github,
                tasks=self._tasks,
                logger=self._logger,
                **kwargs,
            )
            self._channels[name] = state
        return state

    def channels_with_topics(self) -> list[str]:
        return [state.name for state in self if state.current_topic is not None]

    def close(self) -> None:
        for state in self._channels.values():
            state.close()
