from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, TypeVar

import httpx

from orgscraper.domain.entities import ApiResponse, PublicUser, Repository, SearchPage
from orgscraper.domain.errors import ApiError
from orgscraper.domain.interfaces import IDirectoryApi

log = logging.getLogger(__name__)

GITHUB_API_URL  = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT = 30.0

T = TypeVar("T")


class GitHubClient(IDirectoryApi):
    """
    Concrete implementation of IDirectoryApi for GitHub's REST API.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. This lets callers control the client lifecycle
    and makes testing trivial: pass a client built on httpx.MockTransport.

    One method = one request. Retrying and rate-limit waits are the
    governor's job, not this class's.
    """

    def __init__(self, token: str, client: httpx.AsyncClient, base_url: str = GITHUB_API_URL, timeout: float = REQUEST_TIMEOUT) -> None:
        self._client   = client
        self._base_url = base_url.rstrip("/")
        self._timeout  = timeout
        self._headers  = {
            "Authorization":        f"Bearer {token}",
            "Accept":               "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    # Anti-Corruption Layer
    @staticmethod
    def _parse_datetime(value: str | None) -> datetime | None:
        """Convert GitHub's ISO datetime string to Python datetime."""
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    def _parse_user(self, data: dict) -> PublicUser:
        """
        ANTI-CORRUPTION LAYER: GitHub's user JSON → our PublicUser.
        If GitHub renames a field, fix it HERE only.
        """
        return PublicUser(
            login            = data["login"],
            id               = data["id"],
            avatar_url       = data.get("avatar_url"),
            html_url         = data.get("html_url"),
            name             = data.get("name"),
            company          = data.get("company"),
            blog             = data.get("blog"),
            location         = data.get("location"),
            email            = data.get("email"),
            hireable         = data.get("hireable"),
            bio              = data.get("bio"),
            twitter_username = data.get("twitter_username"),
            public_repos     = data.get("public_repos", 0),
            followers        = data.get("followers", 0),
            following        = data.get("following", 0),
            created_at       = self._parse_datetime(data["created_at"]),
            updated_at       = self._parse_datetime(data.get("updated_at")),
        )

    @staticmethod
    def _parse_repos(data: list) -> list[Repository]:
        return [
            Repository(
                name              = repo["name"],
                stargazers_count  = repo.get("stargazers_count"),
                watchers_count    = repo.get("watchers_count"),
                forks_count       = repo.get("forks_count"),
                open_issues_count = repo.get("open_issues_count"),
            )
            for repo in data
        ]

    @staticmethod
    def _parse_search(data: dict) -> SearchPage:
        return SearchPage(
            total_count = data.get("total_count", 0),
            logins      = [item["login"] for item in data.get("items", [])],
        )

    async def _get(self, path: str, parse: Callable[[Any], T], params: dict[str, Any] | None = None) -> ApiResponse[T]:
        response = await self._client.get(
            f"{self._base_url}{path}",
            headers = self._headers,
            params  = params,
            timeout = self._timeout,
        )
        headers = {k.lower(): v for k, v in response.headers.items()}

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            if not isinstance(payload, dict):
                payload = {}
            message = payload.get("message") or response.reason_phrase
            log.debug("GET %s → %d %s", path, response.status_code, message)
            raise ApiError(response.status_code, message, payload, headers)

        return ApiResponse(data=parse(response.json()), headers=headers)

    # IDirectoryApi implementation
    async def search_users(
        self,
        query: str,
        *,
        sort: str | None = None,
        order: str | None = None,
        page: int = 1,
        per_page: int = 100,
    ) -> ApiResponse[SearchPage]:
        params: dict[str, Any] = {"q": query, "page": page, "per_page": per_page}
        if sort:
            params["sort"] = sort
        if order:
            params["order"] = order
        return await self._get("/search/users", self._parse_search, params)

    async def get_user(self, login: str) -> ApiResponse[PublicUser]:
        return await self._get(f"/users/{login}", self._parse_user)

    async def list_repos(self, login: str) -> ApiResponse[list[Repository]]:
        return await self._get(f"/users/{login}/repos", self._parse_repos, {"per_page": 100})

    async def list_repo_events(self, owner: str, repo: str) -> ApiResponse[list[dict[str, Any]]]:
        return await self._get(f"/repos/{owner}/{repo}/events", list)
