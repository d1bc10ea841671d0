from __future__ import annotations

from typing import Iterable, Optional

HIDDEN_MARKER = "[off]"
HIDDEN_REPLACEMENT = "[hidden]"
PRESENT_PLUS = "present+"


def ci_starts_with(text: str, prefix: str) -> bool:
    """ASCII case-insensitive ``startswith``; ``prefix`` must be lowercase."""

    head = text[: len(prefix)]
    return len(head) == len(prefix) and head.isascii() and head.lower() == prefix


def strip_ci_prefix(text: str, prefix: str) -> Optional[str]:
    if not ci_starts_with(text, prefix):
        return None
    return text[len(prefix) :].lstrip()


def strip_one_ci_prefix(text: str, prefixes: Iterable[str]) -> Optional[str]:
    for prefix in prefixes:
        stripped = strip_ci_prefix(text, prefix)
        if stripped is not None:
            return stripped
    return None


def filter_bot_hidden(message: str) -> str:
    """Drop everything from ``[off]`` onward, like other W3C logging bots."""

    index = message.find(HIDDEN_MARKER)
    if index == -1:
        return message
    return message[:index] + HIDDEN_REPLACEMENT


def is_present_plus(message: str) -> bool:
    if len(message) == len(PRESENT_PLUS):
        return ci_starts_with(message, PRESENT_PLUS)
    return ci_starts_with(message, PRESENT_PLUS + " ")
