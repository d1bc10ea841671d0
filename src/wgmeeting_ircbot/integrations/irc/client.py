from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import random
import ssl
from typing import Awaitable, Callable, Optional, Sequence

from ...core.config import IrcConfig
from ...core.exceptions import PermanentError
from ...core.logging_utils import log_event
from .chunking import chunk_outbound_line
from .constants import CTCP_ACTION_PREFIX, CTCP_DELIMITER, DEFAULT_QUIT_WAIT_SECONDS
from .errors import IrcConnectionError, IrcProtocolError, IrcRegistrationError
from .protocol import IrcMessage, format_irc_command, format_privmsg, parse_irc_line

StreamPair = tuple[asyncio.StreamReader, asyncio.StreamWriter]
ConnectFn = Callable[[str, int, Optional[ssl.SSLContext]], Awaitable[StreamPair]]
MessageHandler = Callable[[IrcMessage], Awaitable[None]]

RPL_WELCOME = "001"
ERR_NICKNAMEINUSE = "433"
ERR_PASSWDMISMATCH = "464"
ERR_YOUREBANNEDCREEP = "465"


def calculate_reconnect_backoff(
    attempt: int,
    *,
    base_seconds: float = 1.0,
    max_seconds: float = 60.0,
    rand_float: Callable[[], float] = random.random,
) -> float:
    normalized_attempt = max(attempt, 0)
    if max_seconds <= 0.0 or base_seconds <= 0.0:
        return 0.0
    min_jitter = 0.8
    cap_threshold = math.ceil(math.log2(max_seconds / (base_seconds * min_jitter)))
    if normalized_attempt >= max(cap_threshold, 0):
        return max_seconds
    scaled = base_seconds * (2**normalized_attempt)
    jitter_factor = 0.8 + (0.4 * min(max(rand_float(), 0.0), 1.0))
    result: float = min(max_seconds, max(0.0, scaled * jitter_factor))
    return result


async def open_irc_connection(
    host: str, port: int, ssl_context: Optional[ssl.SSLContext]
) -> StreamPair:
    return await asyncio.open_connection(host, port, ssl=ssl_context)


class IrcClient:
    """Line-oriented IRC connection with registration and reconnects.

    ``run`` owns the reconnect loop and hands every server message that is not
    connection housekeeping to ``on_message``. Sending is synchronous: lines
    are written to the transport buffer and flushed by the event loop.
    """

    def __init__(
        self,
        config: IrcConfig,
        *,
        channels: Sequence[str],
        logger: logging.Logger,
        connect: ConnectFn = open_irc_connection,
    ) -> None:
        self._config = config
        self._channels = tuple(channels)
        self._logger = logger
        self._connect = connect
        self._nickname = config.nickname
        self._writer: Optional[asyncio.StreamWriter] = None
        self._registered = False
        self._stop_event = asyncio.Event()

    @property
    def current_nickname(self) -> str:
        return self._nickname

    @property
    def connected(self) -> bool:
        return self._writer is not None and self._registered

    async def stop(self) -> None:
        self._stop_event.set()
        writer = self._writer
        if writer is not None:
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()

    async def run(self, on_message: MessageHandler) -> None:
        reconnect_attempt = 0
        while not self._stop_event.is_set():
            registered = False
            try:
                reader, writer = await self._connect(
                    self._config.server, self._config.port, self._ssl_context()
                )
                self._writer = writer
                registered = await self._run_connection(reader, on_message)
            except asyncio.CancelledError:
                raise
            except PermanentError as exc:
                log_event(
                    self._logger,
                    logging.ERROR,
                    "irc.connection.fatal",
                    server=self._config.server,
                    exc=exc,
                )
                raise
            except (OSError, IrcConnectionError, IrcProtocolError) as exc:
                log_event(
                    self._logger,
                    logging.WARNING,
                    "irc.connection.error",
                    server=self._config.server,
                    exc=exc,
                )
            finally:
                self._registered = False
                writer = self._writer
                self._writer = None
                if writer is not None:
                    writer.close()

            if self._stop_event.is_set():
                break
            if registered:
                reconnect_attempt = 0
            backoff = calculate_reconnect_backoff(reconnect_attempt)
            reconnect_attempt += 1
            log_event(
                self._logger,
                logging.INFO,
                "irc.connection.reconnecting",
                delay_seconds=round(backoff, 2),
                attempt=reconnect_attempt,
            )
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=backoff)

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        if not self._config.use_tls:
            return None
        return ssl.create_default_context()

    async def _run_connection(
        self, reader: asyncio.StreamReader, on_message: MessageHandler
    ) -> bool:
        self._nickname = self._config.nickname
        self._register()
        while True:
            raw = await reader.readline()
            if not raw:
                if self._stop_event.is_set():
                    return self._registered
                raise IrcConnectionError("IRC server closed the connection")
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if not line:
                continue
            message = parse_irc_line(line)
            if self._handle_housekeeping(message):
                continue
            await on_message(message)

    def _register(self) -> None:
        if self._config.password:
            self.send_raw(format_irc_command("PASS", self._config.password))
        self.send_raw(format_irc_command("NICK", self._nickname))
        self.send_raw(
            format_irc_command(
                "USER", self._config.username, "0", "*", trailing=self._config.realname
            )
        )

    def _handle_housekeeping(self, message: IrcMessage) -> bool:
        command = message.command
        if command == "PING":
            self.send_raw(format_irc_command("PONG", trailing=message.param(0) or ""))
            return True
        if command == RPL_WELCOME:
            self._registered = True
            welcomed_nick = message.param(0)
            if welcomed_nick:
                self._nickname = welcomed_nick
            log_event(
                self._logger,
                logging.INFO,
                "irc.registered",
                server=self._config.server,
                nickname=self._nickname,
            )
            for channel in self._channels:
                self.join(channel)
            return True
        if command == ERR_NICKNAMEINUSE and not self._registered:
            self._nickname = f"{self._nickname}_"
            self.send_raw(format_irc_command("NICK", self._nickname))
            return True
        if command in (ERR_PASSWDMISMATCH, ERR_YOUREBANNEDCREEP):
            reason = message.params[-1] if message.params else command
            raise IrcRegistrationError(f"IRC server refused registration: {reason}")
        if command == "NICK" and message.source_nickname == self._nickname:
            new_nick = message.param(0)
            if new_nick:
                self._nickname = new_nick
            return True
        if command == "ERROR":
            raise IrcConnectionError(f"IRC server error: {message.param(0) or ''}")
        return False

    def send_raw(self, line: str) -> None:
        writer = self._writer
        if writer is None or writer.is_closing():
            log_event(
                self._logger,
                logging.WARNING,
                "irc.send.dropped",
                command=line.split(" ", 1)[0],
            )
            return
        writer.write(f"{line}\r\n".encode("utf-8"))

    def send_line(self, target: str, text: str, *, is_action: bool = False) -> None:
        for payload in chunk_outbound_line(target, text, is_action=is_action):
            if is_action:
                shown = "* " + payload[len(CTCP_ACTION_PREFIX) : -len(CTCP_DELIMITER)]
            else:
                shown = payload
            self._logger.info("[%s] > %s", target, shown)
            self.send_raw(format_privmsg(target, payload))

    def join(self, channel: str) -> None:
        self.send_raw(format_irc_command("JOIN", channel))

    def part(self, channel: str, reason: str) -> None:
        self.send_raw(format_irc_command("PART", channel, trailing=reason))

    async def quit(
        self, reason: str, *, wait_seconds: float = DEFAULT_QUIT_WAIT_SECONDS
    ) -> None:
        self.send_raw(format_irc_command("QUIT", trailing=reason))
        writer = self._writer
        if writer is not None:
            with contextlib.suppress(Exception):
                await asyncio.wait_for(writer.drain(), timeout=wait_seconds)
        await self.stop()
