"""Meeting-domain records buffered while a topic is open."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ChatLine:
    """One line said in a channel, after hidden-suffix filtering."""

    source: str
    is_action: bool
    message: str

    def __str__(self) -> str:
        if self.is_action:
            return f"* {self.source} {self.message}"
        return f"<{self.source}> {self.message}"


@dataclass
class TopicRecord:
    """Everything buffered for the topic currently under discussion.

    ``topic`` may be empty, which renders as "this issue". ``group`` and
    ``publish_resolutions_only`` are snapshotted from the channel config when
    the topic starts.
    """

    topic: str
    group: str
    publish_resolutions_only: bool = False
    github_url: Optional[str] = None
    lines: list[ChatLine] = field(default_factory=list)
    resolutions: list[str] = field(default_factory=list)
    remove_from_agenda: bool = False

    def should_comment(self) -> bool:
        return self.github_url is not None and (
            bool(self.resolutions) or not self.publish_resolutions_only
        )
