from __future__ import annotations

from ...core.exceptions import PermanentError, TransientError, WgmeetingError


class IrcError(WgmeetingError):
    """Base IRC integration error."""


class IrcProtocolError(IrcError):
    """A line from the server could not be parsed."""


class IrcConnectionError(IrcError, TransientError):
    """The connection dropped or could not be opened; reconnecting may help."""


class IrcRegistrationError(IrcError, PermanentError):
    """The server refused registration (for example a bad server password)."""

    recoverable = PermanentError.recoverable
    severity = PermanentError.severity
