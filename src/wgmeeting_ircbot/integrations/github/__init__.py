"""GitHub integration package."""

from .constants import AGENDA_LABEL_PREFIX, GITHUB_API_BASE_URL
from .errors import (
    GitHubAPIError,
    GitHubError,
    GitHubPermanentError,
    GitHubTransientError,
)
from .rest import GitHubRestClient

__all__ = [
    "AGENDA_LABEL_PREFIX",
    "GITHUB_API_BASE_URL",
    "GitHubAPIError",
    "GitHubError",
    "GitHubPermanentError",
    "GitHubRestClient",
    "GitHubTransientError",
]
