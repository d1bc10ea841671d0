from __future__ import annotations

from .constants import (
    CTCP_ACTION_OVERHEAD,
    CTCP_ACTION_PREFIX,
    CTCP_DELIMITER,
    IRC_SEND_BUDGET,
    PRIVMSG_OVERHEAD,
)


def max_segment_bytes(target: str, *, is_action: bool) -> int:
    return (
        IRC_SEND_BUDGET
        - PRIVMSG_OVERHEAD
        - len(target.encode("utf-8"))
        - (CTCP_ACTION_OVERHEAD if is_action else 0)
    )


def split_utf8_segments(text: str, max_bytes: int) -> list[str]:
    """Split ``text`` into pieces of at most ``max_bytes`` UTF-8 bytes.

    Cuts never land inside a multi-byte sequence. An empty ``text`` still
    yields one empty segment.
    """

    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")
    data = text.encode("utf-8")
    segments: list[str] = []
    start = 0
    while True:
        if len(data) - start <= max_bytes:
            end = len(data)
        else:
            end = start + max_bytes
            while end > start and data[end] & 0b1100_0000 == 0b1000_0000:
                end -= 1
            if end == start:
                raise ValueError("max_bytes too small to hold a single character")
        segments.append(data[start:end].decode("utf-8"))
        start = end
        if start >= len(data):
            break
    return segments


def wrap_action(text: str) -> str:
    return f"{CTCP_ACTION_PREFIX}{text}{CTCP_DELIMITER}"


def chunk_outbound_line(target: str, text: str, *, is_action: bool = False) -> list[str]:
    """Return the PRIVMSG payloads needed to send ``text`` to ``target``."""

    segments = split_utf8_segments(
        text, max_segment_bytes(target, is_action=is_action)
    )
    if not is_action:
        return segments
    return [wrap_action(segment) for segment in segments]
