"""Markdown rendering of a finished topic for a GitHub comment."""

from __future__ import annotations

import re

from .models import TopicRecord

# U+FEFF between "#" and a digit stops GitHub from linking "#123" to an issue.
_ISSUE_REFERENCE_RE = re.compile(r"(?P<space>[ \t\n\r\f\v])#(?P<number>[0-9])")
_ZERO_WIDTH_NO_BREAK_SPACE = "\ufeff"


def escape_as_code_span(text: str) -> str:
    """Wrap ``text`` in the shortest backtick run that cannot collide with it.

    See https://github.github.com/gfm/#code-spans: the delimiter is one
    backtick longer than the longest backtick run inside ``text``, and a
    space is added inside the delimiter when ``text`` itself starts or ends
    with a backtick.
    """

    longest = 0
    current = 0
    for char in text:
        if char == "`":
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    ticks = "`" * (longest + 1)
    space_first = " " if text.startswith("`") else ""
    space_last = " " if text.endswith("`") else ""
    return f"{ticks}{space_first}{text}{space_last}{ticks}"


def escape_for_html_block(text: str) -> str:
    # Issue-link suppression runs first so later escaping can never produce
    # a decimal character reference that it would then rewrite.
    no_issue_links = _ISSUE_REFERENCE_RE.sub(
        rf"\g<space>#{_ZERO_WIDTH_NO_BREAK_SPACE}\g<number>", text
    )
    return no_issue_links.replace("&", "&amp;").replace("<", "&lt;")


def render_comment(topic: TopicRecord) -> str:
    subject = escape_as_code_span(topic.topic) if topic.topic else "this issue"
    parts = [f"The {topic.group} just discussed {subject}"]
    if not topic.resolutions:
        parts.append(".\n")
    else:
        parts.append(", and agreed to the following:\n\n")
        for resolution in topic.resolutions:
            parts.append(f"* {escape_as_code_span(resolution)}\n")

    if not topic.publish_resolutions_only:
        parts.append(
            "\n<details><summary>The full IRC log of that discussion</summary>\n"
        )
        for line in topic.lines:
            parts.append(f"{escape_for_html_block(str(line))}<br>\n")
        parts.append("</details>\n")
    return "".join(parts)
