"""Core runtime primitives."""

from .background import TaskRegistry
from .config import (
    BotConfig,
    BotSettings,
    ChannelConfig,
    ConfigError,
    IrcConfig,
    LogConfig,
    load_bot_config,
)
from .exceptions import PermanentError, TransientError, WgmeetingError
from .logging_utils import log_event, setup_rotating_logger

__all__ = [
    "BotConfig",
    "BotSettings",
    "ChannelConfig",
    "ConfigError",
    "IrcConfig",
    "LogConfig",
    "PermanentError",
    "TaskRegistry",
    "TransientError",
    "WgmeetingError",
    "load_bot_config",
    "log_event",
    "setup_rotating_logger",
]
