from __future__ import annotations

import pytest

from wgmeeting_ircbot.integrations.irc.chunking import (
    chunk_outbound_line,
    max_segment_bytes,
    split_utf8_segments,
)


def _unwrap(payload: str) -> str:
    assert payload.startswith("\x01ACTION ") and payload.endswith("\x01")
    return payload[len("\x01ACTION ") : -1]


def test_max_segment_bytes() -> None:
    assert max_segment_bytes("#wg", is_action=False) == 463 - 8 - 3
    assert max_segment_bytes("#wg", is_action=True) == 463 - 8 - 3 - 9
    assert max_segment_bytes("github-comments", is_action=False) == 440


def test_empty_line_yields_one_empty_segment() -> None:
    assert chunk_outbound_line("#wg", "") == [""]
    assert chunk_outbound_line("#wg", "", is_action=True) == ["\x01ACTION \x01"]


def test_short_line_is_sent_whole() -> None:
    assert chunk_outbound_line("#wg", "hello") == ["hello"]
    assert chunk_outbound_line("#wg", "waves", is_action=True) == [
        "\x01ACTION waves\x01"
    ]


@pytest.mark.parametrize("is_action", [False, True])
@pytest.mark.parametrize(
    "text",
    [
        "a" * 1000,
        "é" * 400,
        "日本語のテキスト" * 60,
        "mixed 😀 emoji " * 50,
        "x" * 451 + "€",
    ],
)
def test_chunks_reassemble_and_respect_limits(text: str, is_action: bool) -> None:
    target = "#wg"
    limit = max_segment_bytes(target, is_action=is_action)

    payloads = chunk_outbound_line(target, text, is_action=is_action)
    segments = [_unwrap(p) for p in payloads] if is_action else payloads

    assert "".join(segments) == text
    assert len(segments) > 1
    for segment in segments:
        encoded = segment.encode("utf-8")
        assert 0 < len(encoded) <= limit
        # Each piece decodes on its own, so no cut fell inside a character.
        assert encoded.decode("utf-8") == segment


def test_cut_backs_off_to_character_boundary() -> None:
    # Three bytes per character; a four-byte budget fits only one.
    assert split_utf8_segments("€€€", 4) == ["€", "€", "€"]
    assert split_utf8_segments("ab€", 3) == ["ab", "€"]


def test_budget_too_small_for_a_character() -> None:
    with pytest.raises(ValueError):
        split_utf8_segments("😀", 3)
