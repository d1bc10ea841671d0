from __future__ import annotations

import pytest

from wgmeeting_ircbot.minutes.classifier import (
    LineKind,
    chat_line_from_privmsg,
    classify_line,
    normalize_line,
)

ISSUE = "https://github.com/acme/widgets/issues/42"


def _classify(message: str, *, source: str = "alice", is_action: bool = False):
    return classify_line(normalize_line(source, message, is_action=is_action))


def test_chat_line_from_privmsg_unwraps_ctcp_action() -> None:
    line = chat_line_from_privmsg("alice", "\x01ACTION waves [off] secretly\x01")
    assert line.is_action is True
    assert line.message == "waves [hidden]"
    assert str(line) == "* alice waves [hidden]"

    plain = chat_line_from_privmsg("bob", "ACTION: bob to write tests")
    assert plain.is_action is False
    assert str(plain) == "<bob> ACTION: bob to write tests"


@pytest.mark.parametrize("message", ["present+", "Present+ alice", "PRESENT+ bob"])
def test_attendance_lines(message: str) -> None:
    assert _classify(message).kind is LineKind.ATTENDANCE


def test_topic_and_subtopic_lines() -> None:
    topic = _classify("Topic:   Widget design")
    assert topic.kind is LineKind.TOPIC_START
    assert topic.title == "Widget design"
    assert topic.starts_topic

    subtopic = _classify("SUBTOPIC: colors")
    assert subtopic.kind is LineKind.SUBTOPIC_START
    assert subtopic.title == "colors"
    assert subtopic.starts_topic

    assert _classify("topic: x", is_action=True).kind is LineKind.PLAIN


def test_topic_line_carries_bare_mention() -> None:
    classified = _classify(f"Topic: see {ISSUE}")
    assert classified.kind is LineKind.TOPIC_START
    assert classified.mention == ISSUE


@pytest.mark.parametrize("prefix", ["github:", "GitHub topic:", "github ISSUE:"])
def test_directives_are_recognized_on_any_line(prefix: str) -> None:
    classified = _classify(f"{prefix} {ISSUE}")
    assert classified.kind is LineKind.GITHUB_DIRECTIVE
    assert classified.directive == ISSUE
    assert classified.mention is None

    emote = _classify(f"{prefix} none", is_action=True)
    assert emote.kind is LineKind.GITHUB_DIRECTIVE
    assert emote.directive == "none"


def test_meeting_end_detection() -> None:
    assert (
        _classify("is ending a teleconference.", source="trackbot", is_action=True).kind
        is LineKind.MEETING_END
    )
    assert (
        _classify("is ending a teleconference.", source="trackbot").kind
        is LineKind.PLAIN
    )
    assert (
        _classify(
            "As of this point the attendees have been alice, bob", source="Zakim"
        ).kind
        is LineKind.MEETING_END
    )
    assert (
        _classify(
            "As of this point the attendees have been alice",
            source="Zakim",
            is_action=True,
        ).kind
        is LineKind.PLAIN
    )


@pytest.mark.parametrize(
    ("message", "kind", "removes"),
    [
        ("RESOLUTION: use blue", LineKind.RESOLUTION, True),
        ("RESOLVED: use blue", LineKind.RESOLUTION, True),
        ("SUMMARY: blue is nice", LineKind.SUMMARY, False),
        ("ACTION: alice to paint", LineKind.ACTION_ITEM, False),
    ],
)
def test_resolution_markers(message: str, kind: LineKind, removes: bool) -> None:
    classified = _classify(message)
    assert classified.kind is kind
    assert classified.records_resolution
    assert classified.removes_from_agenda is removes


def test_resolution_markers_are_case_sensitive_and_skip_emotes() -> None:
    assert _classify("resolution: lowercase").kind is LineKind.PLAIN
    assert _classify("RESOLUTION: emote", is_action=True).kind is LineKind.PLAIN


def test_bare_mention_and_plain() -> None:
    mention = _classify(f"look at {ISSUE}#issuecomment-1 please")
    assert mention.kind is LineKind.BARE_MENTION
    assert mention.mention == ISSUE

    plain = _classify("just talking")
    assert plain.kind is LineKind.PLAIN
    assert plain.mention is None
