from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .constants import GITHUB_ACCEPT_HEADER, GITHUB_API_BASE_URL, GITHUB_API_VERSION
from .errors import GitHubAPIError, GitHubPermanentError, GitHubTransientError

logger = logging.getLogger(__name__)

_PERMANENT_STATUS_CODES = {401, 403, 404, 410, 422}


class GitHubRestClient:
    """Minimal async client for the issue endpoints the bot needs.

    Requests are never retried: callers turn failures into chat diagnostics.
    """

    def __init__(
        self,
        *,
        token: str,
        user_agent: str,
        timeout_seconds: float = 10.0,
        base_url: str = GITHUB_API_BASE_URL,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={
                "Accept": GITHUB_ACCEPT_HEADER,
                "Authorization": f"Bearer {token}",
                "User-Agent": user_agent,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubRestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            raise GitHubTransientError(
                f"GitHub API network error for {method} {path}: {exc}"
            ) from exc

        status_code = response.status_code
        if 200 <= status_code < 300:
            if not response.content:
                return {}
            try:
                return response.json()
            except ValueError as exc:
                raise GitHubAPIError(
                    f"GitHub API returned non-JSON success response for {method} {path}",
                    status_code=status_code,
                ) from exc

        body_preview = (response.text or "").strip().replace("\n", " ")[:200]
        message = (
            f"GitHub API request failed for {method} {path}: "
            f"status={status_code} body={body_preview!r}"
        )
        logger.debug("%s", message)
        if status_code in _PERMANENT_STATUS_CODES:
            raise GitHubPermanentError(message, status_code=status_code)
        if 500 <= status_code < 600 or status_code == 429:
            raise GitHubTransientError(message, status_code=status_code)
        raise GitHubAPIError(message, status_code=status_code)

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        payload = await self._request("GET", f"/repos/{owner}/{repo}/issues/{number}")
        return payload if isinstance(payload, dict) else {}

    async def create_issue_comment(
        self, owner: str, repo: str, number: int, body: str
    ) -> dict[str, Any]:
        payload = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            payload={"body": body},
        )
        return payload if isinstance(payload, dict) else {}

    async def list_issue_labels(
        self, owner: str, repo: str, number: int
    ) -> list[dict[str, Any]]:
        payload = await self._request(
            "GET", f"/repos/{owner}/{repo}/issues/{number}/labels"
        )
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def remove_issue_label(
        self, owner: str, repo: str, number: int, label: str
    ) -> None:
        await self._request(
            "DELETE",
            f"/repos/{owner}/{repo}/issues/{number}/labels/{quote(label, safe='')}",
        )
