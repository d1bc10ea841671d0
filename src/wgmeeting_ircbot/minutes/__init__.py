"""Meeting core: line classification, topic state, rendering and posting."""

from .channel_state import ChannelState
from .classifier import ClassifiedLine, LineKind, chat_line_from_privmsg, classify_line
from .commands import BotCommands, CommandRequest, command_addressed_to
from .comment_task import CommentTask, fetch_github_title
from .models import ChatLine, TopicRecord
from .registry import ChannelRegistry
from .rendering import render_comment
from .transport import ChatSender, ChatTransport

__all__ = [
    "BotCommands",
    "ChannelRegistry",
    "ChannelState",
    "ChatLine",
    "ChatSender",
    "ChatTransport",
    "ClassifiedLine",
    "CommandRequest",
    "CommentTask",
    "LineKind",
    "TopicRecord",
    "chat_line_from_privmsg",
    "classify_line",
    "command_addressed_to",
    "fetch_github_title",
    "render_comment",
]
