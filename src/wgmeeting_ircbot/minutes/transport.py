"""Outbound chat contract used by the meeting core.

The IRC client implements it; tests substitute an in-memory recorder.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChatSender(Protocol):
    """Delivers one logical line, splitting it as the wire protocol requires."""

    def send_line(self, target: str, text: str, *, is_action: bool = False) -> None:
        """Send ``text`` to ``target``, optionally as an emote."""


@runtime_checkable
class ChatTransport(ChatSender, Protocol):
    """Sender plus the connection controls the admin commands need."""

    @property
    def current_nickname(self) -> str:
        """Nickname the bot is currently registered under."""

    def part(self, channel: str, reason: str) -> None:
        """Leave ``channel`` with a parting message."""

    async def quit(self, reason: str) -> None:
        """Disconnect from the server and stop reconnecting."""
