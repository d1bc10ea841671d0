from __future__ import annotations

import logging
from typing import Any, Callable

import pytest

from wgmeeting_ircbot.integrations.irc.protocol import IrcMessage, parse_irc_line
from wgmeeting_ircbot.integrations.irc.service import (
    IrcBotService,
    build_github_client,
)

ISSUE = "https://github.com/acme/widgets/issues/42"


class _FakeIrcClient:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, bool]] = []
        self.joined: list[str] = []
        self.parted: list[tuple[str, str]] = []
        self.quit_reasons: list[str] = []
        self.script: list[str] = []

    @property
    def current_nickname(self) -> str:
        return "ghbot"

    def send_line(self, target: str, text: str, *, is_action: bool = False) -> None:
        self.sent.append((target, text, is_action))

    def join(self, channel: str) -> None:
        self.joined.append(channel)

    def part(self, channel: str, reason: str) -> None:
        self.parted.append((channel, reason))

    async def quit(self, reason: str) -> None:
        self.quit_reasons.append(reason)

    async def run(self, on_message: Callable[[IrcMessage], Any]) -> None:
        for line in self.script:
            await on_message(parse_irc_line(line))

    def texts(self, target: str) -> list[str]:
        return [text for sent_to, text, _ in self.sent if sent_to == target]


def _service(config: Any, client: _FakeIrcClient) -> IrcBotService:
    return IrcBotService(
        config,
        logger=logging.getLogger("test.irc_service"),
        client=client,  # type: ignore[arg-type]
    )


async def _feed(service: IrcBotService, *lines: str) -> None:
    for line in lines:
        await service.handle_message(parse_irc_line(line))


@pytest.mark.anyio
async def test_private_message_runs_command_and_replies_privately(
    make_bot_config: Callable[..., Any],
) -> None:
    client = _FakeIrcClient()
    service = _service(make_bot_config(), client)

    await _feed(service, ":alice!a@host PRIVMSG ghbot :help")

    texts = client.texts("alice")
    assert texts[0] == "The commands I understand are:"
    assert len(service.registry) == 0


@pytest.mark.anyio
async def test_channel_minutes_are_buffered_and_posted(
    make_bot_config: Callable[..., Any],
) -> None:
    client = _FakeIrcClient()
    service = _service(make_bot_config(), client)

    await _feed(
        service,
        ":chair!c@host PRIVMSG #wg :Topic: Widget colors",
        f":chair!c@host PRIVMSG #wg :github: {ISSUE}",
        ":scribe!s@host PRIVMSG #wg :alice: blue is best",
        ":bob!b@host PRIVMSG #wg :present+",
        ":chair!c@host PRIVMSG #wg :RESOLUTION: widgets are blue",
        ":chair!c@host PRIVMSG #wg :ghbot, end topic",
    )
    await service.tasks.drain()

    assert "#wg" in service.registry
    assert service.registry.get("#wg").current_topic is None
    comment = client.texts("github-comments")
    assert comment[0] == f"!BEGIN GITHUB COMMENT IN {ISSUE}"
    assert "* `RESOLUTION: widgets are blue`" in comment
    assert not any("present+" in line for line in comment)
    assert ("#wg", f"Successfully commented on {ISSUE}", True) in client.sent


@pytest.mark.anyio
async def test_in_channel_command_is_addressed_and_mirrors_emotes(
    make_bot_config: Callable[..., Any],
) -> None:
    client = _FakeIrcClient()
    service = _service(make_bot_config(), client)

    await _feed(service, ":alice!a@host PRIVMSG #wg :\x01ACTION ghbot: dance\x01")

    assert client.sent == [
        ("#wg", "alice, Sorry, I don't understand that command.  Try 'help'.", True)
    ]


@pytest.mark.anyio
async def test_unexpected_targets_and_malformed_messages_are_ignored(
    make_bot_config: Callable[..., Any],
) -> None:
    client = _FakeIrcClient()
    service = _service(make_bot_config(), client)

    await _feed(
        service,
        ":alice!a@host PRIVMSG someoneelse :help",
        "PRIVMSG #wg :no prefix",
        ":alice!a@host NOTICE #wg :Topic: ignored",
    )

    assert client.sent == []
    assert len(service.registry) == 0


@pytest.mark.anyio
async def test_invite_joins_only_configured_channels(
    make_bot_config: Callable[..., Any],
) -> None:
    client = _FakeIrcClient()
    service = _service(make_bot_config(), client)

    await _feed(
        service,
        ":alice!a@host INVITE ghbot :#wg",
        ":alice!a@host INVITE ghbot :#random",
        ":alice!a@host INVITE otherbot :#wg",
    )

    assert client.joined == ["#wg"]


@pytest.mark.anyio
async def test_run_drains_tasks_and_reports_unposted_topics(
    make_bot_config: Callable[..., Any], caplog: pytest.LogCaptureFixture
) -> None:
    client = _FakeIrcClient()
    client.script = [
        ":chair!c@host PRIVMSG #wg :Topic: Widget colors",
        ":chair!c@host PRIVMSG #css :hello",
    ]
    service = _service(make_bot_config(), client)

    with caplog.at_level(logging.INFO, logger="test.irc_service"):
        await service.run()

    events = [message for message in caplog.messages if message.startswith("{")]
    assert any('"bot.shutdown.unposted_topics"' in event for event in events)
    assert any('"bot.stopped"' in event for event in events)
    assert service.registry.channels_with_topics() == ["#wg"]


def test_mock_mode_has_no_github_client(make_bot_config: Callable[..., Any]) -> None:
    assert build_github_client(make_bot_config()) is None
