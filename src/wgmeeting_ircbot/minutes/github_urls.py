"""GitHub issue/PR URL recognition and per-channel allow-list checks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .text import strip_one_ci_prefix

GITHUB_DIRECTIVE_PREFIXES = ("github:", "github topic:", "github issue:")

_GITHUB_URL_PART_RE = re.compile(
    r"https://github\.com/(?P<repo>[^/]*/[^/]*)/(issues|pull)/(?P<number>[0-9]+)"
)
_GITHUB_URL_WHOLE_RE = re.compile(
    r"^(?P<issueurl>https://github\.com/(?P<owner>[^/]*)/(?P<repo>[^/]*)"
    r"/(?P<kind>issues|pull)/(?P<number>[0-9]+))([#][^ ]*)?$"
)
_GITHUB_URL_RE = re.compile(
    r"^https://github\.com/(?P<owner>[^/]*)/(?P<repo>[^/]*)"
    r"/(?P<kind>issues|pull)/(?P<number>[0-9]+)$"
)

NOT_AN_ISSUE_MESSAGE = (
    "I can't comment on that because it doesn't look like a github issue to me."
)
NO_ALLOWED_REPOS_MESSAGE = (
    "I can't comment on that github issue because I don't have a configuration "
    "of allowed repositories for this channel."
)
BARE_MENTION_WARNING = (
    "Because I don't want to spam github issues unnecessarily, I won't comment "
    'in that github issue unless you write "Github: <issue-url> | none" '
    '(or "Github issue: ..."/"Github topic: ...").'
)


@dataclass(frozen=True)
class GithubURLParts:
    url: str
    owner: str
    repo: str
    kind: str
    number: int

    @property
    def is_pull(self) -> bool:
        return self.kind == "pull"

    @classmethod
    def from_string(cls, url: str) -> Optional["GithubURLParts"]:
        match = _GITHUB_URL_RE.match(url)
        if match is None:
            return None
        return cls(
            url=url,
            owner=match.group("owner"),
            repo=match.group("repo"),
            kind=match.group("kind"),
            number=int(match.group("number")),
        )


@dataclass(frozen=True)
class DirectiveResult:
    """Outcome of a ``github:`` directive or ``take up`` URL check.

    Exactly one of three shapes: ``url`` set (associate it), ``error`` set
    (report it, change nothing), or neither (clear the association).
    """

    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def clears(self) -> bool:
        return self.url is None and self.error is None


def directive_value(message: str) -> Optional[str]:
    """Return the text after a ``github:``-style prefix, if there is one."""

    return strip_one_ci_prefix(message, GITHUB_DIRECTIVE_PREFIXES)


def repo_is_allowed(allowed_repos: Sequence[str], owner: str, repo: str) -> bool:
    for entry in allowed_repos:
        allowed_owner, sep, allowed_repo = entry.partition("/")
        if not sep:
            continue
        if allowed_owner == owner and (allowed_repo == repo or allowed_repo == "*"):
            return True
    return False


def check_github_url(
    candidate: str, allowed_repos: Optional[Sequence[str]]
) -> DirectiveResult:
    """Validate a full issue/PR URL against a channel allow-list.

    ``allowed_repos`` is ``None`` when the channel has no configuration at all.
    The returned URL has any ``#fragment`` removed.
    """

    match = _GITHUB_URL_WHOLE_RE.match(candidate)
    if match is None:
        return DirectiveResult(error=NOT_AN_ISSUE_MESSAGE)
    if allowed_repos is None:
        return DirectiveResult(error=NO_ALLOWED_REPOS_MESSAGE)
    if repo_is_allowed(allowed_repos, match.group("owner"), match.group("repo")):
        return DirectiveResult(url=match.group("issueurl"))
    return DirectiveResult(
        error=(
            "I can't comment on that github issue because it's not in a "
            "repository I'm allowed to comment on, which are: "
            f"{' '.join(allowed_repos)}."
        )
    )


def extract_directive(
    message: str, allowed_repos: Optional[Sequence[str]]
) -> Optional[DirectiveResult]:
    """Interpret ``github:``/``github topic:``/``github issue:`` lines.

    Returns ``None`` when the message is not a directive.
    """

    value = directive_value(message)
    if value is None:
        return None
    return resolve_directive(value, allowed_repos)


def resolve_directive(
    value: str, allowed_repos: Optional[Sequence[str]]
) -> DirectiveResult:
    if value.lower() == "none":
        return DirectiveResult()
    return check_github_url(value, allowed_repos)


def find_bare_mention(message: str) -> Optional[str]:
    match = _GITHUB_URL_PART_RE.search(message)
    return match.group(0) if match else None


def scan_bare_mention(
    message: str, current_url: Optional[str], in_topic: bool
) -> Optional[str]:
    """Warn about an issue URL pasted into the discussion without a directive.

    Mentions are ignored when no topic is open, or when they repeat the URL
    the topic is already associated with.
    """

    mention = find_bare_mention(message)
    if mention is None:
        return None
    return bare_mention_warning(mention, current_url, in_topic)


def bare_mention_warning(
    mention: str, current_url: Optional[str], in_topic: bool
) -> Optional[str]:
    if mention == current_url or not in_topic:
        return None
    return BARE_MENTION_WARNING


__all__ = [
    "BARE_MENTION_WARNING",
    "DirectiveResult",
    "GITHUB_DIRECTIVE_PREFIXES",
    "GithubURLParts",
    "NOT_AN_ISSUE_MESSAGE",
    "NO_ALLOWED_REPOS_MESSAGE",
    "bare_mention_warning",
    "check_github_url",
    "directive_value",
    "extract_directive",
    "find_bare_mention",
    "repo_is_allowed",
    "resolve_directive",
    "scan_bare_mention",
]
