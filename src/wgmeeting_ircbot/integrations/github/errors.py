from __future__ import annotations

from typing import Optional

from ...core.exceptions import PermanentError, TransientError, WgmeetingError


class GitHubError(WgmeetingError):
    """Base GitHub integration error."""


class GitHubAPIError(GitHubError):
    """GitHub REST request error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        user_message: Optional[str] = None,
    ) -> None:
        super().__init__(message, user_message=user_message)
        self.status_code = status_code


class GitHubTransientError(GitHubAPIError, TransientError):
    """GitHub failure that could succeed later (network issues, 5xx)."""


class GitHubPermanentError(GitHubAPIError, PermanentError):
    """GitHub failure that will not succeed as-is (auth, missing issue)."""

    recoverable = PermanentError.recoverable
    severity = PermanentError.severity
