"""GitHub REST client used by the changelog pipeline.

Every listing endpoint is exposed as an async generator of pages. A page is
requested only when the consumer advances the generator, and iteration stops
after the first page that comes back shorter than ``per_page``.
"""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from changeling.logging import get_logger, log_debug

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import (
    Commit,
    CommitConstraints,
    GitHubRepository,
    Issue,
    PullRequest,
    PullRequestCommit,
    Release,
    Tag,
)

T = typ.TypeVar("T")

logger = get_logger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"
API_URL_ENV_VAR = "CHANGELING_GITHUB_API_URL"

DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 100

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
_HTTP_FORBIDDEN = 403
_HTTP_TOO_MANY_REQUESTS = 429


class GitHubRepositoryClient(typ.Protocol):
    """Read-only view of a GitHub repository needed to build a changelog."""

    async def get_latest_release(self, repo: GitHubRepository) -> Release | None:
        """Return the most recent release, or ``None`` when there is none."""
        ...

    async def get_release_by_tag(
        self, repo: GitHubRepository, tag: str
    ) -> Release | None:
        """Return the release published for ``tag``, if any."""
        ...

    def iter_tag_pages(
        self, repo: GitHubRepository, *, per_page: int = DEFAULT_PER_PAGE
    ) -> typ.AsyncGenerator[list[Tag], None]:
        """Yield pages of tags, newest first."""
        ...

    def iter_commit_pages(
        self,
        repo: GitHubRepository,
        constraints: CommitConstraints,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[Commit], None]:
        """Yield pages of commits matching ``constraints``."""
        ...

    def iter_pull_request_pages(
        self,
        repo: GitHubRepository,
        *,
        state: str,
        base: str,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[PullRequest], None]:
        """Yield pages of pull requests targeting ``base``, newest first."""
        ...

    def iter_pull_request_commit_pages(
        self,
        repo: GitHubRepository,
        number: int,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[PullRequestCommit], None]:
        """Yield pages of the commits belonging to pull request ``number``."""
        ...

    async def get_issue(self, repo: GitHubRepository, number: int) -> Issue | None:
        """Return issue ``number``, or ``None`` when it does not exist."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubClientConfig:
    """Connection settings for the GitHub REST API."""

    token: str
    base_url: str = "https://api.github.com"
    timeout_s: float = 20.0
    user_agent: str = "changeling/0.1"
    api_version: str = "2022-11-28"

    @classmethod
    def from_env(cls) -> GitHubClientConfig:
        """Build configuration from ``GITHUB_TOKEN`` and an optional API URL."""
        token = os.environ.get(TOKEN_ENV_VAR, "").strip()
        if not token:
            raise GitHubConfigError.missing_token(TOKEN_ENV_VAR)
        base_url = os.environ.get(API_URL_ENV_VAR, "").strip()
        if base_url:
            return cls(token=token, base_url=base_url)
        return cls(token=token)


def _validate_per_page(per_page: int) -> int:
    if not 1 <= per_page <= MAX_PER_PAGE:
        msg = f"per_page must be between 1 and {MAX_PER_PAGE}, got {per_page}"
        raise ValueError(msg)
    return per_page


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == _HTTP_TOO_MANY_REQUESTS:
        return True
    return (
        response.status_code == _HTTP_FORBIDDEN
        and response.headers.get("x-ratelimit-remaining") == "0"
    )


class GitHubRestClient:
    """httpx-backed implementation of :class:`GitHubRepositoryClient`."""

    def __init__(
        self,
        config: GitHubClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an owned ``httpx.AsyncClient`` is created if needed."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.api_version,
            "User-Agent": config.user_agent,
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> typ.Self:
        """Return the client for use in ``async with``."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close owned resources on exit."""
        await self.aclose()

    async def get_latest_release(self, repo: GitHubRepository) -> Release | None:
        """Return the newest release, or ``None`` for a repository without any."""
        path = self._repo_path(repo, "releases")
        response = await self._get(path, {"per_page": 1})
        releases = self._decode(response, list[Release], path)
        return releases[0] if releases else None

    async def get_release_by_tag(
        self, repo: GitHubRepository, tag: str
    ) -> Release | None:
        """Return the release for ``tag``; ``None`` when the tag has no release."""
        path = self._repo_path(repo, f"releases/tags/{quote(tag, safe='')}")
        response = await self._get(path, allow_not_found=True)
        if response is None:
            return None
        return self._decode(response, Release, path)

    def iter_tag_pages(
        self, repo: GitHubRepository, *, per_page: int = DEFAULT_PER_PAGE
    ) -> typ.AsyncGenerator[list[Tag], None]:
        """Yield pages of tags in the order GitHub lists them."""
        return self._iter_pages(self._repo_path(repo, "tags"), {}, Tag, per_page)

    def iter_commit_pages(
        self,
        repo: GitHubRepository,
        constraints: CommitConstraints,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[Commit], None]:
        """Yield pages of commits, newest first, filtered by ``constraints``."""
        return self._iter_pages(
            self._repo_path(repo, "commits"),
            constraints.as_query_params(),
            Commit,
            per_page,
        )

    def iter_pull_request_pages(
        self,
        repo: GitHubRepository,
        *,
        state: str,
        base: str,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[PullRequest], None]:
        """Yield pages of pull requests in GitHub's default (newest first) order."""
        return self._iter_pages(
            self._repo_path(repo, "pulls"),
            {"state": state, "base": base},
            PullRequest,
            per_page,
        )

    def iter_pull_request_commit_pages(
        self,
        repo: GitHubRepository,
        number: int,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> typ.AsyncGenerator[list[PullRequestCommit], None]:
        """Yield pages of commit shas that make up pull request ``number``."""
        return self._iter_pages(
            self._repo_path(repo, f"pulls/{number}/commits"),
            {},
            PullRequestCommit,
            per_page,
        )

    async def get_issue(self, repo: GitHubRepository, number: int) -> Issue | None:
        """Return issue ``number``; ``None`` when GitHub reports it missing."""
        path = self._repo_path(repo, f"issues/{number}")
        response = await self._get(path, allow_not_found=True)
        if response is None:
            return None
        return self._decode(response, Issue, path)

    async def _iter_pages(
        self,
        path: str,
        params: dict[str, str],
        item_type: type[T],
        per_page: int,
    ) -> typ.AsyncGenerator[list[T], None]:
        """Request successive pages until a short page ends the listing."""
        size = _validate_per_page(per_page)
        page = 1
        while True:
            response = await self._get(
                path, {**params, "per_page": size, "page": page}
            )
            items = self._decode(response, list[item_type], path)
            log_debug(logger, "GET %s page=%d items=%d", path, page, len(items))
            yield items
            if len(items) < size:
                return
            page += 1

    @typ.overload
    async def _get(
        self,
        path: str,
        params: dict[str, typ.Any] | None = None,
        *,
        allow_not_found: typ.Literal[False] = False,
    ) -> httpx.Response: ...

    @typ.overload
    async def _get(
        self,
        path: str,
        params: dict[str, typ.Any] | None = None,
        *,
        allow_not_found: typ.Literal[True],
    ) -> httpx.Response | None: ...

    async def _get(
        self,
        path: str,
        params: dict[str, typ.Any] | None = None,
        *,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """Issue a GET request and translate failures into changeling errors."""
        try:
            response = await self._client.get(
                f"{self._base_url}{path}",
                params=params,
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport(path, exc) from exc

        if allow_not_found and response.status_code == _HTTP_NOT_FOUND:
            return None
        if _is_rate_limited(response):
            raise GitHubAPIError.rate_limit_exceeded(
                response.status_code, response.headers.get("x-ratelimit-reset")
            )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, path)
        return response

    @staticmethod
    def _decode(response: httpx.Response, type_: type[T], path: str) -> T:
        """Decode a JSON body into ``type_``."""
        try:
            return msgspec.json.decode(response.content, type=type_)
        except msgspec.DecodeError as exc:
            raise GitHubResponseShapeError.undecodable(path, str(exc)) from exc

    @staticmethod
    def _repo_path(repo: GitHubRepository, suffix: str) -> str:
        return f"/repos/{repo.owner}/{repo.repo}/{suffix}"
