from __future__ import annotations

import contextlib
import logging
from typing import Optional

from ...core.background import TaskRegistry
from ...core.config import BotConfig
from ...core.logging_utils import log_event
from ...minutes.classifier import LineKind, chat_line_from_privmsg, classify_line
from ...minutes.commands import BotCommands, CommandRequest, command_addressed_to
from ...minutes.registry import ChannelRegistry
from ..github.rest import GitHubRestClient
from .client import IrcClient
from .protocol import IrcMessage


def build_github_client(config: BotConfig) -> Optional[GitHubRestClient]:
    """Real REST client, or ``None`` when GitHub is mocked over IRC."""

    settings = config.bot
    if settings.uses_mock_github:
        return None
    return GitHubRestClient(
        token=settings.github_access_token or "",
        user_agent=settings.github_uastring,
        timeout_seconds=settings.http_timeout_seconds,
    )


class IrcBotService:
    """Routes IRC traffic into the meeting core and owns its lifetime."""

    def __init__(
        self,
        config: BotConfig,
        *,
        logger: logging.Logger,
        client: Optional[IrcClient] = None,
        github: Optional[GitHubRestClient] = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._client = (
            client
            if client is not None
            else IrcClient(config.irc, channels=list(config.channels), logger=logger)
        )
        if github is None:
            github = build_github_client(config)
            self._owns_github = github is not None
        else:
            self._owns_github = False
        self._github = github
        self._tasks = TaskRegistry(logger=logger)
        self._registry = ChannelRegistry(
            config,
            sender=self._client,
            github=github,
            tasks=self._tasks,
            logger=logger,
        )
        self._commands = BotCommands(
            config,
            registry=self._registry,
            transport=self._client,
            tasks=self._tasks,
            logger=logger,
        )

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def tasks(self) -> TaskRegistry:
        return self._tasks

    async def run(self) -> None:
        log_event(
            self._logger,
            logging.INFO,
            "bot.starting",
            server=self._config.irc.server,
            nickname=self._config.irc.nickname,
            channels=list(self._config.channels),
            github_mode=self._config.bot.github_mode,
        )
        try:
            await self._client.run(self.handle_message)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        self._registry.close()
        await self._tasks.drain()
        pending = self._registry.channels_with_topics()
        if pending:
            log_event(
                self._logger,
                logging.WARNING,
                "bot.shutdown.unposted_topics",
                channels=pending,
            )
        if self._owns_github and self._github is not None:
            with contextlib.suppress(Exception):
                await self._github.close()
        log_event(self._logger, logging.INFO, "bot.stopped")

    async def handle_message(self, message: IrcMessage) -> None:
        if message.command == "PRIVMSG":
            self._handle_privmsg(message)
        elif message.command == "INVITE":
            self._handle_invite(message)

    def _handle_privmsg(self, message: IrcMessage) -> None:
        source = message.source_nickname
        target = message.param(0)
        text = message.param(1)
        if source is None or target is None or text is None:
            log_event(
                self._logger,
                logging.WARNING,
                "irc.privmsg.malformed",
                prefix=message.prefix,
                params=list(message.params),
            )
            return

        line = chat_line_from_privmsg(source, text)
        nickname = self._client.current_nickname
        if target == nickname:
            self._logger.info("[%s] %s", source, line)
            self._commands.handle(
                CommandRequest(text=line.message, requester=source, reply_target=source)
            )
            return
        if not target.startswith("#"):
            log_event(
                self._logger,
                logging.WARNING,
                "irc.privmsg.unexpected_target",
                target=target,
                source=source,
            )
            return

        self._logger.info("[%s] %s", target, line)
        command = command_addressed_to(nickname, line.message)
        if command is not None:
            self._commands.handle(
                CommandRequest(
                    text=command,
                    requester=source,
                    reply_target=target,
                    is_action=line.is_action,
                )
            )
        else:
            classified = classify_line(line)
            if classified.kind is not LineKind.ATTENDANCE:
                self._registry.get(target).handle_line(classified)
        self._registry.get(target).note_activity()

    def _handle_invite(self, message: IrcMessage) -> None:
        invited = message.param(0)
        channel = message.param(1)
        if invited != self._client.current_nickname or channel is None:
            return
        if self._config.channel(channel) is None:
            log_event(
                self._logger,
                logging.INFO,
                "irc.invite.ignored",
                channel=channel,
                source=message.source_nickname,
            )
            return
        self._client.join(channel)
