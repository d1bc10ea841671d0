from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .errors import IrcProtocolError


@dataclass(frozen=True)
class IrcMessage:
    prefix: Optional[str]
    command: str
    params: tuple[str, ...] = field(default_factory=tuple)

    @property
    def source_nickname(self) -> Optional[str]:
        if not self.prefix:
            return None
        nick, _, _ = self.prefix.partition("!")
        return nick or None

    def param(self, index: int) -> Optional[str]:
        if index < len(self.params):
            return self.params[index]
        return None


def parse_irc_line(line: str) -> IrcMessage:
    """Parse ``[:prefix] COMMAND params [:trailing]`` (IRCv3 tags are dropped)."""

    rest = line.rstrip("\r\n")
    if rest.startswith("@"):
        _, _, rest = rest.partition(" ")
    prefix: Optional[str] = None
    if rest.startswith(":"):
        prefix, _, rest = rest[1:].partition(" ")
    rest = rest.lstrip(" ")
    trailing: Optional[str] = None
    if " :" in rest:
        rest, trailing = rest.split(" :", 1)
    elif rest.startswith(":"):
        rest, trailing = "", rest[1:]
    words = rest.split()
    if not words:
        raise IrcProtocolError(f"IRC line has no command: {line!r}")
    command = words[0].upper()
    params = words[1:]
    if trailing is not None:
        params.append(trailing)
    return IrcMessage(prefix=prefix or None, command=command, params=tuple(params))


def sanitize_outgoing(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ")


def format_irc_command(command: str, *params: str, trailing: Optional[str] = None) -> str:
    parts = [command, *params]
    if trailing is not None:
        parts.append(f":{sanitize_outgoing(trailing)}")
    return " ".join(parts)


def format_privmsg(target: str, text: str) -> str:
    return format_irc_command("PRIVMSG", target, trailing=text)
