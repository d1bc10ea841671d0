"""Commands people send the bot, in a channel (``nick: cmd``) or privately."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .. import code_description
from ..core.background import TaskRegistry
from ..core.config import BotConfig
from ..core.logging_utils import log_event
from .github_urls import check_github_url
from .registry import ChannelRegistry
from .text import strip_ci_prefix
from .transport import ChatTransport

UNKNOWN_COMMAND_MESSAGE = "Sorry, I don't understand that command.  Try 'help'."

HELP_LINES = (
    "  help      - Send this message.",
    "  intro     - Send a message describing what I do.",
    "  status    - Send a message with current bot status.",
    "  bye       - Leave the channel.  (You can /invite me back.)",
    "  end topic - End the current topic without starting a new one.",
    "  reboot    - Make me leave the server and exit.  If properly configured, "
    "I will then update myself and return.",
    '  take up [URL] - Start a new topic and print a "Topic:" line based on '
    "the title of the github issue/PR at URL",
    '  topic [URL]   - Start a new topic and print a "Topic:" line based on '
    "the title of the github issue/PR at URL",
    '  take up subtopic [URL] - Start a new topic and print a "Subtopic:" line '
    "based on the title of the github issue/PR at URL",
    '  subtopic [URL]         - Start a new topic and print a "Subtopic:" line '
    "based on the title of the github issue/PR at URL",
)


@dataclass(frozen=True)
class CommandRequest:
    """One command, and where its replies go.

    ``reply_target`` is the channel for in-channel commands and the
    requester's nick for private ones.
    """

    text: str
    requester: str
    reply_target: str
    is_action: bool = False

    @property
    def in_channel(self) -> bool:
        return self.reply_target.startswith("#")


@dataclass(frozen=True)
class TakeUpRequest:
    url: str
    command_name: str
    header: str


def command_addressed_to(nickname: str, message: str) -> Optional[str]:
    """Return the command in ``nick: cmd`` / ``nick, cmd``, else ``None``."""

    if not message.startswith(nickname):
        return None
    after_nick = message[len(nickname) :]
    if not after_nick.startswith((":", ",")):
        return None
    return after_nick[1:].lstrip()


def parse_take_up(command: str) -> Optional[TakeUpRequest]:
    argument = strip_ci_prefix(command, "take up ")
    had_take_up = argument is not None
    inner = argument if argument is not None else command

    subtopic_url = strip_ci_prefix(inner, "subtopic ")
    if subtopic_url is not None:
        name = "take up subtopic" if had_take_up else "subtopic"
        return TakeUpRequest(url=subtopic_url, command_name=name, header="Subtopic")
    if had_take_up:
        return TakeUpRequest(url=inner, command_name="take up", header="Topic")
    topic_url = strip_ci_prefix(inner, "topic ")
    if topic_url is not None:
        return TakeUpRequest(url=topic_url, command_name="topic", header="Topic")
    return None


class BotCommands:
    def __init__(
        self,
        config: BotConfig,
        *,
        registry: ChannelRegistry,
        transport: ChatTransport,
        tasks: TaskRegistry,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._transport = transport
        self._tasks = tasks
        self._logger = logger or logging.getLogger(__name__)

    def handle(self, request: CommandRequest) -> None:
        log_event(
            self._logger,
            logging.INFO,
            "command.received",
            command=request.text,
            requester=request.requester,
            target=request.reply_target,
        )
        take_up = parse_take_up(request.text)
        if take_up is not None:
            self._take_up(request, take_up)
            return

        command = request.text
        if command.endswith("?"):
            command = command[:-1]
        handler = {
            "help": self._help,
            "intro": self._intro,
            "status": self._status,
            "bye": self._bye,
            "end topic": self._end_topic,
            "reboot": self._reboot,
        }.get(command)
        if handler is None:
            self._reply(request, UNKNOWN_COMMAND_MESSAGE, address=True)
            return
        handler(request)

    def _reply(self, request: CommandRequest, text: str, *, address: bool) -> None:
        if address and request.in_channel:
            text = f"{request.requester}, {text}"
        self._transport.send_line(
            request.reply_target, text, is_action=request.is_action
        )

    def _require_channel(self, request: CommandRequest, name: str) -> bool:
        if request.in_channel:
            return True
        self._reply(request, f"'{name}' only works in a channel", address=True)
        return False

    def _take_up(self, request: CommandRequest, take_up: TakeUpRequest) -> None:
        if not self._require_channel(request, take_up.command_name):
            return
        state = self._registry.get(request.reply_target)
        result = check_github_url(take_up.url, state.allowed_repos)
        if result.url is None:
            self._reply(request, result.error or "", address=True)
            return
        if state.current_topic is not None and state.current_url == result.url:
            self._reply(
                request,
                f"ignoring request to take up {result.url} which is already the "
                "current github URL",
                address=True,
            )
            return
        state.take_up(result.url, header=take_up.header, is_action=request.is_action)

    def _help(self, request: CommandRequest) -> None:
        self._reply(request, "The commands I understand are:", address=True)
        for line in HELP_LINES:
            self._reply(request, line, address=False)

    def _intro(self, request: CommandRequest) -> None:
        lines = [
            "My job is to leave comments in github when the group discusses github "
            "issues and takes minutes in IRC.",
            'I separate discussions by the "Topic:" lines, and I know what github '
            'issues to use only by lines of the form "GitHub: <url> | none".',
            'You can also use the "take up" command if you want me to output the '
            '"Topic:" lines myself, based on the title of the github issue.',
        ]
        if request.in_channel:
            channel_config = self._config.channel(request.reply_target)
            if channel_config is None:
                lines.append(
                    "In this channel, I don't have a configuration of allowed "
                    "repositories, so I won't comment on any issues."
                )
            else:
                repos = json.dumps(list(channel_config.github_repos_allowed))
                lines.append(
                    "In this channel, I'm only allowed to comment on issues in the "
                    f"repositories: {repos}."
                )
        owners = " ".join(self._config.bot.owners)
        lines.append(
            f"My source code is at {self._config.bot.source} and I'm run by {owners}."
        )
        for line in lines:
            self._reply(request, line, address=False)

    def _status(self, request: CommandRequest) -> None:
        description = f"This is {code_description()}"
        if self._config.bot.source:
            description += (
                f", which is probably in the repository at {self._config.bot.source}"
            )
        self._reply(request, description, address=True)
        self._reply(
            request, "I currently have data for the following channels:", address=False
        )
        for state in self._registry:
            topic = state.current_topic
            if topic is None:
                self._reply(
                    request, f"  {state.name} (no topic data buffered)", address=False
                )
                continue
            self._reply(
                request,
                f'  {state.name} ({len(topic.lines)} lines buffered on "{topic.topic}")',
                address=False,
            )
            if topic.github_url is None:
                self._reply(request, "    no GitHub URL to comment on", address=False)
            else:
                self._reply(
                    request, f"    will comment on {topic.github_url}", address=False
                )

    def _bye(self, request: CommandRequest) -> None:
        if not self._require_channel(request, "bye"):
            return
        self._registry.get(request.reply_target).end_topic()
        self._transport.part(
            request.reply_target,
            f"Leaving at request of {request.requester}.  "
            "Feel free to /invite me back.",
        )

    def _end_topic(self, request: CommandRequest) -> None:
        if not self._require_channel(request, "end topic"):
            return
        self._registry.get(request.reply_target).end_topic()

    def _reboot(self, request: CommandRequest) -> None:
        busy = self._registry.channels_with_topics()
        if busy:
            self._reply(
                request,
                "Sorry, I can't reboot right now because I have buffered topics in "
                f"{' '.join(busy)}.",
                address=True,
            )
            return
        self._reply(request, "OK, I'll reboot now.", address=True)
        log_event(
            self._logger, logging.INFO, "bot.reboot.requested", requester=request.requester
        )
        self._tasks.spawn(
            self._transport.quit(
                f"{code_description()}, rebooting at request of {request.requester}."
            ),
            name="reboot",
        )
