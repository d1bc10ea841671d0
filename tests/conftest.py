"""Test harness configuration.

This repo uses a `src/` layout. Ensure tests always import the in-repo code
rather than an older installed `wgmeeting_ircbot`.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 30


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    src_path = str(src_dir)
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout to non-integration tests.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def make_bot_config(tmp_path: Path) -> Callable[..., Any]:
    """Build a ``BotConfig`` in mock GitHub mode from a few overrides."""

    # Import lazily so `pytest_configure()` can prepend the local src/ directory
    # before any `wgmeeting_ircbot` modules are loaded.
    from wgmeeting_ircbot.core.config import BotConfig

    def _make(
        *,
        channels: Optional[dict[str, Any]] = None,
        bot: Optional[dict[str, Any]] = None,
    ) -> BotConfig:
        raw: dict[str, Any] = {
            "irc": {"server": "irc.example.test", "nickname": "ghbot"},
            "bot": {
                "source": "https://github.com/example/wgmeeting-github-ircbot",
                "owners": ["alice", "bob"],
                "github_mode": "mock",
                **(bot or {}),
            },
            "channels": (
                channels
                if channels is not None
                else {
                    "#wg": {
                        "group": "Widgets WG",
                        "github_repos_allowed": ["acme/widgets", "acme-drafts/*"],
                    }
                }
            ),
        }
        return BotConfig.from_raw(raw, config_path=tmp_path / "config.yml")

    return _make
