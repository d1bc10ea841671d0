from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NoReturn, Optional

import typer

from ... import PACKAGE_NAME, __version__
from ...core.config import BotConfig, ConfigError, load_bot_config
from ...core.exceptions import PermanentError
from ...core.logging_utils import setup_rotating_logger
from ...integrations.irc.service import IrcBotService

LOGGER_NAME = "wgmeeting_ircbot"

app = typer.Typer(add_completion=False)


def raise_exit(message: str, *, cause: Optional[BaseException] = None) -> NoReturn:
    typer.echo(message, err=True)
    if cause is not None:
        raise typer.Exit(code=1) from cause
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"{PACKAGE_NAME} {__version__}")
    raise typer.Exit(code=0)


@app.callback()
def _root(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    return


def _require_config(path: Path) -> BotConfig:
    try:
        return load_bot_config(path)
    except ConfigError as exc:
        raise_exit(str(exc), cause=exc)


@app.command("run")
def run(
    config_path: Path = typer.Argument(..., help="Path to the bot's YAML config"),
) -> None:
    """Connect to IRC and minute meetings until asked to reboot."""

    config = _require_config(config_path)
    logger = setup_rotating_logger(LOGGER_NAME, config.log)
    service = IrcBotService(config, logger=logger)
    try:
        asyncio.run(service.run())
    except PermanentError as exc:
        raise_exit(f"Bot stopped: {exc}", cause=exc)
    except KeyboardInterrupt:
        typer.echo("Bot stopped.")


@app.command("check-config")
def check_config(
    config_path: Path = typer.Argument(..., help="Path to the bot's YAML config"),
) -> None:
    """Validate a config file and summarize the channels it configures."""

    config = _require_config(config_path)
    irc = config.irc
    scheme = "ircs" if irc.use_tls else "irc"
    typer.echo(f"Server: {scheme}://{irc.server}:{irc.port} as {irc.nickname}")
    typer.echo(f"GitHub mode: {config.bot.github_mode}")
    timeout = config.bot.activity_timeout_minutes
    typer.echo(
        f"Activity timeout: {timeout} minutes" if timeout else "Activity timeout: off"
    )
    if not config.channels:
        typer.echo("No channels configured.")
    for name, channel in sorted(config.channels.items()):
        repos = " ".join(channel.github_repos_allowed) or "(none)"
        mode = " [resolutions only]" if channel.publish_resolutions_only else ""
        typer.echo(f"{name}: {channel.group or '(no group)'} -> {repos}{mode}")


def main() -> None:
    """Entrypoint for CLI execution."""
    app()


if __name__ == "__main__":
    main()
