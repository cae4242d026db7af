"""Unit tests for the GitHub REST client."""

from __future__ import annotations

import datetime as dt
import secrets
import typing as typ

import httpx
import pytest

from changeling.github import GitHubClientConfig, GitHubRestClient
from changeling.github.client import API_URL_ENV_VAR, TOKEN_ENV_VAR
from changeling.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from changeling.github.models import CommitConstraints, GitHubRepository

_TOKEN = secrets.token_hex(8)
_REPO = GitHubRepository(owner="octo", repo="reef")

T = typ.TypeVar("T")

_Reply: typ.TypeAlias = tuple[int, typ.Any] | tuple[int, typ.Any, dict[str, str]]


def _make_client(
    replies: list[_Reply],
) -> tuple[GitHubRestClient, httpx.AsyncClient, list[httpx.Request]]:
    calls: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        reply = replies[len(calls) - 1]
        headers = reply[2] if len(reply) == 3 else {}  # noqa: PLR2004
        return httpx.Response(status_code=reply[0], json=reply[1], headers=headers)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = GitHubRestClient(
        GitHubClientConfig(token=_TOKEN, base_url="https://example.test/api/"),
        http_client=http_client,
    )
    return client, http_client, calls


def _commit_payload(sha: str) -> dict[str, typ.Any]:
    return {
        "sha": sha,
        "commit": {"message": f"Change {sha[:3]}", "tree": {"sha": "t"}},
        "author": {"login": "alice", "id": 1},
        "committer": None,
        "html_url": "ignored",
    }


async def _collect(pages: typ.AsyncGenerator[list[T], None]) -> list[list[T]]:
    return [page async for page in pages]


@pytest.mark.asyncio
async def test_requests_carry_auth_and_api_headers() -> None:
    """Every request is authenticated and pinned to the REST API version."""
    client, http_client, calls = _make_client([(200, [])])

    await client.get_latest_release(_REPO)

    request = calls[0]
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert request.url.path == "/api/repos/octo/reef/releases"
    assert request.url.params["per_page"] == "1"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_latest_release_decodes_timestamp() -> None:
    """The newest release is decoded with its publish time."""
    client, http_client, _ = _make_client(
        [(200, [{"tag_name": "v1.0.0", "published_at": "2024-06-30T09:15:00Z"}])]
    )

    release = await client.get_latest_release(_REPO)

    assert release is not None
    assert release.tag_name == "v1.0.0"
    assert release.published_at == dt.datetime(2024, 6, 30, 9, 15, tzinfo=dt.UTC)
    await http_client.aclose()


@pytest.mark.asyncio
async def test_commit_pages_stop_after_short_page() -> None:
    """Paging continues while pages are full and passes range filters."""
    client, http_client, calls = _make_client(
        [
            (200, [_commit_payload("a" * 40), _commit_payload("b" * 40)]),
            (200, [_commit_payload("c" * 40)]),
        ]
    )
    constraints = CommitConstraints(
        sha="f" * 40, since=dt.datetime(2024, 6, 30, 9, 15, 1, tzinfo=dt.UTC)
    )

    pages = await _collect(client.iter_commit_pages(_REPO, constraints, per_page=2))

    assert [[item.sha[0] for item in page] for page in pages] == [["a", "b"], ["c"]]
    assert pages[0][0].author is not None
    assert pages[0][0].author.login == "alice"
    assert [request.url.params["page"] for request in calls] == ["1", "2"]
    assert calls[0].url.params["since"] == "2024-06-30T09:15:01Z"
    assert calls[0].url.params["sha"] == "f" * 40
    await http_client.aclose()


@pytest.mark.asyncio
async def test_pull_request_pages_are_lazy() -> None:
    """No further page is requested until the consumer asks for it."""
    pr = {"number": 1, "title": "x", "labels": [{"name": "bug"}], "user": None}
    client, http_client, calls = _make_client([(200, [pr]), (200, [])])

    pages = client.iter_pull_request_pages(
        _REPO, state="closed", base="main", per_page=1
    )
    first = await anext(pages)
    await pages.aclose()

    assert first[0].labels[0].name == "bug"
    assert len(calls) == 1
    assert calls[0].url.params["state"] == "closed"
    assert calls[0].url.params["base"] == "main"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_missing_release_and_issue_return_none() -> None:
    """A 404 for lookups that may legitimately miss is not an error."""
    client, http_client, calls = _make_client(
        [(404, {"message": "Not Found"}), (404, {"message": "Not Found"})]
    )

    assert await client.get_release_by_tag(_REPO, "release/1.0") is None
    assert await client.get_issue(_REPO, 99) is None
    assert calls[0].url.raw_path.endswith(b"/releases/tags/release%2F1.0")
    await http_client.aclose()


@pytest.mark.asyncio
async def test_issue_labels_accept_strings_and_objects() -> None:
    """Issue labels may be label objects or bare names."""
    client, http_client, _ = _make_client(
        [
            (
                200,
                {
                    "number": 5,
                    "labels": ["bug", {"name": "feature"}],
                    "user": {"login": "carol"},
                    "pull_request": {"url": "https://example.test/pulls/5"},
                },
            )
        ]
    )

    issue = await client.get_issue(_REPO, 5)

    assert issue is not None
    assert issue.is_pull_request
    assert issue.labels[0] == "bug"
    await http_client.aclose()


@pytest.mark.asyncio
async def test_http_error_raises_api_error() -> None:
    """Non-success responses outside the 404 allowance raise."""
    client, http_client, _ = _make_client([(500, {"message": "boom"})])

    with pytest.raises(GitHubAPIError) as excinfo:
        await client.get_latest_release(_REPO)

    assert excinfo.value.status_code == 500  # noqa: PLR2004
    assert not excinfo.value.rate_limited
    await http_client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "headers"),
    [
        pytest.param(
            403,
            {"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"},
            id="primary_limit",
        ),
        pytest.param(429, {}, id="secondary_limit"),
    ],
)
async def test_rate_limit_is_flagged(status: int, headers: dict[str, str]) -> None:
    """Rate-limited responses are reported distinctly from other errors."""
    client, http_client, _ = _make_client([(status, {"message": "slow"}, headers)])

    with pytest.raises(GitHubAPIError, match="rate limit") as excinfo:
        await client.get_issue(_REPO, 1)

    assert excinfo.value.rate_limited
    await http_client.aclose()


@pytest.mark.asyncio
async def test_plain_forbidden_is_not_rate_limited() -> None:
    """A 403 with quota left is an ordinary HTTP error."""
    client, http_client, _ = _make_client(
        [(403, {"message": "no"}, {"x-ratelimit-remaining": "12"})]
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        await client.get_issue(_REPO, 1)

    assert not excinfo.value.rate_limited
    await http_client.aclose()


@pytest.mark.asyncio
async def test_unexpected_payload_raises_shape_error() -> None:
    """Payloads missing required fields fail typed decoding."""
    client, http_client, _ = _make_client([(200, [{"name": "v1.0.0"}])])

    with pytest.raises(GitHubResponseShapeError, match="/tags"):
        await _collect(client.iter_tag_pages(_REPO))
    await http_client.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped() -> None:
    """Connection errors surface as GitHubAPIError."""

    def _handler(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = GitHubRestClient(GitHubClientConfig(token=_TOKEN), http_client=http_client)

    with pytest.raises(GitHubAPIError, match="connection refused"):
        await client.get_latest_release(_REPO)
    await http_client.aclose()


@pytest.mark.asyncio
async def test_invalid_page_size_is_rejected() -> None:
    """Page sizes outside GitHub's limits are refused before any request."""
    client, http_client, calls = _make_client([])

    with pytest.raises(ValueError, match="per_page"):
        await _collect(client.iter_tag_pages(_REPO, per_page=101))

    assert calls == []
    await http_client.aclose()


def test_blank_token_is_rejected() -> None:
    """A client cannot be built without credentials."""
    with pytest.raises(GitHubConfigError):
        GitHubRestClient(GitHubClientConfig(token="  "))


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """The token and an optional API root come from the environment."""
    monkeypatch.setenv(TOKEN_ENV_VAR, _TOKEN)
    monkeypatch.setenv(API_URL_ENV_VAR, "https://ghe.example.test/api/v3")

    config = GitHubClientConfig.from_env()

    assert config.token == _TOKEN
    assert config.base_url == "https://ghe.example.test/api/v3"


def test_config_from_env_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing token names the variable to set."""
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)

    with pytest.raises(GitHubConfigError, match="GITHUB_TOKEN not found"):
        GitHubClientConfig.from_env()
