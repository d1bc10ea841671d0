from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .. import PACKAGE_NAME, __version__

DEFAULT_IRC_PORT = 6697
DEFAULT_GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_LOG_FILE = "wgmeeting-ircbot.log"
DEFAULT_LOG_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 5
GITHUB_MODE_REAL = "real"
GITHUB_MODE_MOCK = "mock"
GITHUB_MODES = {GITHUB_MODE_REAL, GITHUB_MODE_MOCK}


class ConfigError(Exception):
    """Raised when the bot configuration is missing or invalid."""


def default_github_uastring() -> str:
    return f"{PACKAGE_NAME}/{__version__}"


@dataclasses.dataclass(frozen=True)
class ChannelConfig:
    group: str
    github_repos_allowed: tuple[str, ...]
    publish_resolutions_only: bool = False

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "ChannelConfig":
        if not isinstance(raw, dict):
            raise ConfigError(f"channels.{name} must be a mapping")
        group = raw.get("group", "")
        if not isinstance(group, str):
            raise ConfigError(f"channels.{name}.group must be a string")
        repos = _parse_string_list(
            raw.get("github_repos_allowed"),
            key=f"channels.{name}.github_repos_allowed",
        )
        for repo in repos:
            if "/" not in repo:
                raise ConfigError(
                    f"channels.{name}.github_repos_allowed entry {repo!r} "
                    "must look like owner/repo or owner/*"
                )
        return cls(
            group=group,
            github_repos_allowed=tuple(repos),
            publish_resolutions_only=_parse_bool_or_default(
                raw.get("publish_resolutions_only"),
                default=False,
                key=f"channels.{name}.publish_resolutions_only",
            ),
        )


@dataclasses.dataclass(frozen=True)
class IrcConfig:
    server: str
    port: int
    use_tls: bool
    nickname: str
    username: str
    realname: str
    password: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "IrcConfig":
        cfg: dict[str, Any] = raw if isinstance(raw, dict) else {}
        server = str(cfg.get("server") or "").strip()
        if not server:
            raise ConfigError("irc.server must be non-empty")
        nickname = str(cfg.get("nickname") or "").strip()
        if not nickname:
            raise ConfigError("irc.nickname must be non-empty")
        port = _parse_positive_int_or_default(
            cfg.get("port"), default=DEFAULT_IRC_PORT, key="irc.port"
        )
        password: Optional[str] = None
        password_env = cfg.get("password_env")
        if password_env:
            password = os.environ.get(str(password_env))
            if not password:
                raise ConfigError(
                    f"irc.password_env is set but env var {password_env} is unset"
                )
        return cls(
            server=server,
            port=port,
            use_tls=_parse_bool_or_default(
                cfg.get("use_tls"), default=True, key="irc.use_tls"
            ),
            nickname=nickname,
            username=str(cfg.get("username") or nickname),
            realname=str(cfg.get("realname") or nickname),
            password=password,
        )


@dataclasses.dataclass(frozen=True)
class BotSettings:
    source: str
    owners: tuple[str, ...]
    activity_timeout_minutes: int
    github_uastring: str
    github_mode: str
    github_access_token: Optional[str]
    http_timeout_seconds: float

    @property
    def activity_timeout_seconds(self) -> float:
        return float(self.activity_timeout_minutes * 60)

    @property
    def uses_mock_github(self) -> bool:
        return self.github_mode == GITHUB_MODE_MOCK

    @classmethod
    def from_raw(cls, raw: Any, *, base_dir: Path) -> "BotSettings":
        cfg: dict[str, Any] = raw if isinstance(raw, dict) else {}
        timeout_minutes = cfg.get("activity_timeout_minutes", 0)
        if isinstance(timeout_minutes, bool) or not isinstance(timeout_minutes, int):
            raise ConfigError("bot.activity_timeout_minutes must be an integer")
        if timeout_minutes < 0:
            raise ConfigError("bot.activity_timeout_minutes must be >= 0")

        github_mode = str(cfg.get("github_mode", GITHUB_MODE_REAL)).strip().lower()
        if github_mode not in GITHUB_MODES:
            raise ConfigError("bot.github_mode must be 'real' or 'mock'")

        token = _resolve_github_token(cfg, base_dir=base_dir)
        if github_mode == GITHUB_MODE_REAL and not token:
            raise ConfigError(
                "bot.github_mode is 'real' but no GitHub token is configured "
                "(set bot.github_token_file or the bot.github_token_env variable)"
            )

        timeout_raw = cfg.get("http_timeout_seconds", DEFAULT_HTTP_TIMEOUT_SECONDS)
        try:
            http_timeout = float(timeout_raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError("bot.http_timeout_seconds must be a number") from exc
        if http_timeout <= 0:
            http_timeout = DEFAULT_HTTP_TIMEOUT_SECONDS

        return cls(
            source=str(cfg.get("source", "")),
            owners=tuple(_parse_string_list(cfg.get("owners"), key="bot.owners")),
            activity_timeout_minutes=timeout_minutes,
            github_uastring=str(
                cfg.get("github_uastring") or default_github_uastring()
            ),
            github_mode=github_mode,
            github_access_token=token,
            http_timeout_seconds=http_timeout,
        )


@dataclasses.dataclass(frozen=True)
class LogConfig:
    path: Path
    max_bytes: int
    backup_count: int
    level: int = logging.INFO

    @classmethod
    def from_raw(cls, raw: Any, *, base_dir: Path) -> "LogConfig":
        cfg: dict[str, Any] = raw if isinstance(raw, dict) else {}
        path_value = cfg.get("path", DEFAULT_LOG_FILE)
        if not isinstance(path_value, str) or not path_value.strip():
            raise ConfigError("log.path must be a string path")
        level_name = str(cfg.get("level", "INFO")).strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ConfigError(f"log.level {level_name!r} is not a logging level")
        return cls(
            path=(base_dir / path_value).resolve(),
            max_bytes=_parse_positive_int_or_default(
                cfg.get("max_bytes"), default=DEFAULT_LOG_MAX_BYTES, key="log.max_bytes"
            ),
            backup_count=_parse_positive_int_or_default(
                cfg.get("backup_count"),
                default=DEFAULT_LOG_BACKUP_COUNT,
                key="log.backup_count",
            ),
            level=level,
        )


@dataclasses.dataclass(frozen=True)
class BotConfig:
    config_path: Path
    irc: IrcConfig
    bot: BotSettings
    channels: Mapping[str, ChannelConfig]
    log: LogConfig

    def channel(self, name: str) -> Optional[ChannelConfig]:
        return self.channels.get(name)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], *, config_path: Path) -> "BotConfig":
        base_dir = config_path.parent
        channels_raw = raw.get("channels") or {}
        if not isinstance(channels_raw, dict):
            raise ConfigError("channels must be a mapping of channel name to settings")
        channels: dict[str, ChannelConfig] = {}
        for name, channel_raw in channels_raw.items():
            channel_name = str(name)
            if not channel_name.startswith("#"):
                raise ConfigError(f"channel name {channel_name!r} must start with '#'")
            channels[channel_name] = ChannelConfig.from_raw(channel_name, channel_raw)
        return cls(
            config_path=config_path,
            irc=IrcConfig.from_raw(raw.get("irc")),
            bot=BotSettings.from_raw(raw.get("bot"), base_dir=base_dir),
            channels=channels,
            log=LogConfig.from_raw(raw.get("log"), base_dir=base_dir),
        )


def load_bot_config(path: Path) -> BotConfig:
    config_path = path.resolve()
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    data = _load_yaml_dict(config_path)
    return BotConfig.from_raw(data, config_path=config_path)


def _load_yaml_dict(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data


def _resolve_github_token(cfg: dict[str, Any], *, base_dir: Path) -> Optional[str]:
    token_file = cfg.get("github_token_file")
    if token_file:
        token_path = (base_dir / str(token_file)).resolve()
        try:
            token = token_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(
                f"Failed to read bot.github_token_file {token_path}: {exc}"
            ) from exc
        return token or None
    token_env = str(cfg.get("github_token_env", DEFAULT_GITHUB_TOKEN_ENV)).strip()
    if not token_env:
        raise ConfigError("bot.github_token_env must be non-empty")
    return os.environ.get(token_env) or None


def _parse_string_list(value: Any, *, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split()
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"{key} must be a list of strings")
    parsed: list[str] = []
    for item in value:
        token = str(item).strip()
        if token:
            parsed.append(token)
    return parsed


def _parse_positive_int_or_default(value: Any, *, default: int, key: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer") from exc
    if parsed <= 0:
        return default
    return parsed


def _parse_bool_or_default(value: Any, *, default: bool, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{key} must be a boolean")
