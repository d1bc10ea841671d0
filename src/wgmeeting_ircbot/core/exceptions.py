"""Shared error hierarchy.

Adapters compose these base types so severity and recoverability stay
consistent between the IRC and GitHub integrations.
"""

from __future__ import annotations

from typing import Optional


class WgmeetingError(Exception):
    """Base error for the bot."""

    recoverable = True
    severity = "error"

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message


class TransientError(WgmeetingError):
    """Failure that may succeed if attempted again later (network, 5xx)."""

    recoverable = True
    severity = "warning"


class PermanentError(WgmeetingError):
    """Failure that will not go away without a configuration change."""

    recoverable = False
    severity = "error"
