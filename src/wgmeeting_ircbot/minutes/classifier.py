"""Normalization and one-shot classification of channel lines.

Each inbound line is classified exactly once into a ``LineKind``. The kind is
the line's primary meaning; a bare GitHub URL found anywhere in a
non-directive line is carried alongside in ``mention`` because a topic or
resolution line can also mention an issue.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..integrations.irc.constants import CTCP_ACTION_PREFIX, CTCP_DELIMITER
from .github_urls import directive_value, find_bare_mention
from .models import ChatLine
from .text import filter_bot_hidden, is_present_plus, strip_ci_prefix

TRACKBOT_NICK = "trackbot"
TRACKBOT_END_MESSAGE = "is ending a teleconference."
ZAKIM_NICK = "Zakim"
ZAKIM_END_PREFIX = "As of this point the attendees have been"


class LineKind(str, Enum):
    ATTENDANCE = "attendance"
    TOPIC_START = "topic_start"
    SUBTOPIC_START = "subtopic_start"
    MEETING_END = "meeting_end"
    GITHUB_DIRECTIVE = "github_directive"
    RESOLUTION = "resolution"
    SUMMARY = "summary"
    ACTION_ITEM = "action_item"
    BARE_MENTION = "bare_mention"
    PLAIN = "plain"


RESOLUTION_KINDS = frozenset(
    {LineKind.RESOLUTION, LineKind.SUMMARY, LineKind.ACTION_ITEM}
)


@dataclass(frozen=True)
class ClassifiedLine:
    line: ChatLine
    kind: LineKind
    title: Optional[str] = None
    directive: Optional[str] = None
    mention: Optional[str] = None

    @property
    def starts_topic(self) -> bool:
        return self.kind in (LineKind.TOPIC_START, LineKind.SUBTOPIC_START)

    @property
    def records_resolution(self) -> bool:
        return self.kind in RESOLUTION_KINDS

    @property
    def removes_from_agenda(self) -> bool:
        return self.kind is LineKind.RESOLUTION


def normalize_line(source: str, message: str, *, is_action: bool) -> ChatLine:
    return ChatLine(
        source=source, is_action=is_action, message=filter_bot_hidden(message)
    )


def chat_line_from_privmsg(source: str, text: str) -> ChatLine:
    """Build a ``ChatLine`` from raw PRIVMSG text, unwrapping CTCP ACTION."""

    if (
        text.startswith(CTCP_ACTION_PREFIX)
        and text.endswith(CTCP_DELIMITER)
        and len(text) > len(CTCP_ACTION_PREFIX)
    ):
        return normalize_line(
            source, text[len(CTCP_ACTION_PREFIX) : -1], is_action=True
        )
    return normalize_line(source, text, is_action=False)


def is_meeting_end(line: ChatLine) -> bool:
    if line.is_action:
        return line.source == TRACKBOT_NICK and line.message == TRACKBOT_END_MESSAGE
    return line.source == ZAKIM_NICK and line.message.startswith(ZAKIM_END_PREFIX)


def _resolution_kind(message: str) -> Optional[LineKind]:
    if message.startswith("RESOLUTION") or message.startswith("RESOLVED"):
        return LineKind.RESOLUTION
    if message.startswith("SUMMARY"):
        return LineKind.SUMMARY
    if message.startswith("ACTION"):
        return LineKind.ACTION_ITEM
    return None


def classify_line(line: ChatLine) -> ClassifiedLine:
    message = line.message
    if is_present_plus(message):
        return ClassifiedLine(line=line, kind=LineKind.ATTENDANCE)

    directive = directive_value(message)
    if directive is not None:
        return ClassifiedLine(
            line=line, kind=LineKind.GITHUB_DIRECTIVE, directive=directive
        )

    mention = find_bare_mention(message)
    if not line.is_action:
        title = strip_ci_prefix(message, "topic:")
        if title is not None:
            return ClassifiedLine(
                line=line, kind=LineKind.TOPIC_START, title=title, mention=mention
            )
        title = strip_ci_prefix(message, "subtopic:")
        if title is not None:
            return ClassifiedLine(
                line=line, kind=LineKind.SUBTOPIC_START, title=title, mention=mention
            )

    if is_meeting_end(line):
        return ClassifiedLine(line=line, kind=LineKind.MEETING_END, mention=mention)

    if not line.is_action:
        resolution_kind = _resolution_kind(message)
        if resolution_kind is not None:
            return ClassifiedLine(line=line, kind=resolution_kind, mention=mention)

    if mention is not None:
        return ClassifiedLine(line=line, kind=LineKind.BARE_MENTION, mention=mention)
    return ClassifiedLine(line=line, kind=LineKind.PLAIN)
