"""Unit tests for commit range resolution."""

from __future__ import annotations

import datetime as dt

import pytest

from changeling.changelog.constraints import resolve_commit_constraints
from changeling.errors import DataIntegrityError, NotFoundError
from changeling.github.models import CommitConstraints, GitHubRepository
from tests.helpers.fake_github import FakeGitHubClient
from tests.helpers.github_builders import OWNER, release, tag

_REPO = GitHubRepository(owner=OWNER, repo="reef")
_PUBLISHED = dt.datetime(2024, 6, 30, 9, 15, 0, tzinfo=dt.UTC)
_SINCE = dt.datetime(2024, 6, 30, 9, 15, 1, tzinfo=dt.UTC)


@pytest.mark.asyncio
async def test_no_releases_and_no_tag_is_unbounded() -> None:
    """Without any release the whole history is fetched."""
    client = FakeGitHubClient()

    constraints = await resolve_commit_constraints(client, _REPO)

    assert constraints == CommitConstraints()
    assert constraints.is_unbounded


@pytest.mark.asyncio
async def test_latest_release_sets_since_one_second_later() -> None:
    """The range starts one second after the latest release was published."""
    client = FakeGitHubClient(releases=[release("v1.2.0", _PUBLISHED)])

    constraints = await resolve_commit_constraints(client, _REPO)

    assert constraints == CommitConstraints(since=_SINCE)
    assert constraints.as_query_params() == {"since": "2024-06-30T09:15:01Z"}


@pytest.mark.asyncio
async def test_latest_release_drops_sub_second_precision() -> None:
    """Fractional seconds are truncated after the nudge."""
    published = _PUBLISHED.replace(microsecond=750_000)
    client = FakeGitHubClient(releases=[release("v1.2.0", published)])

    constraints = await resolve_commit_constraints(client, _REPO)

    assert constraints.since == _SINCE


@pytest.mark.asyncio
async def test_latest_release_without_publish_date_fails() -> None:
    """A draft-like release without a timestamp is a data integrity error."""
    client = FakeGitHubClient(releases=[release("v1.2.0", None)])

    with pytest.raises(DataIntegrityError, match="v1.2.0"):
        await resolve_commit_constraints(client, _REPO)


@pytest.mark.asyncio
async def test_tag_resolves_sha_and_previous_release() -> None:
    """A tag bounds the range between its commit and the previous release."""
    client = FakeGitHubClient(
        tags=[tag("v3.0.0", "c" * 40), tag("v2.0.0", "b" * 40), tag("v1.0.0", "a" * 40)],
        releases_by_tag={"v2.0.0": release("v2.0.0", _PUBLISHED)},
    )

    constraints = await resolve_commit_constraints(client, _REPO, "v3.0.0")

    assert constraints == CommitConstraints(sha="c" * 40, since=_SINCE)
    assert ("release_by_tag", "v2.0.0") in client.calls


@pytest.mark.asyncio
async def test_tag_scan_stops_once_previous_tag_is_found() -> None:
    """Later tag pages are never requested once both bounds are known."""
    tags = [tag(f"v{n}.0.0", f"{n:040d}") for n in range(10, 0, -1)]
    client = FakeGitHubClient(
        tags=tags,
        releases_by_tag={"v8.0.0": release("v8.0.0", _PUBLISHED)},
    )

    constraints = await resolve_commit_constraints(client, _REPO, "v9.0.0", per_page=2)

    assert constraints.sha == f"{9:040d}"
    assert client.pages_served["tags"] == 2


@pytest.mark.asyncio
async def test_tag_found_across_page_boundary() -> None:
    """The previous tag may sit on the page after the requested one."""
    client = FakeGitHubClient(
        tags=[tag("v3.0.0", "c" * 40), tag("v2.0.0", "b" * 40), tag("v1.0.0", "a" * 40)],
        releases_by_tag={"v1.0.0": release("v1.0.0", _PUBLISHED)},
    )

    constraints = await resolve_commit_constraints(client, _REPO, "v2.0.0", per_page=2)

    assert constraints == CommitConstraints(sha="b" * 40, since=_SINCE)


@pytest.mark.asyncio
async def test_oldest_tag_has_no_lower_bound() -> None:
    """The first tag in history yields only a sha constraint."""
    client = FakeGitHubClient(tags=[tag("v2.0.0", "b" * 40), tag("v1.0.0", "a" * 40)])

    constraints = await resolve_commit_constraints(client, _REPO, "v1.0.0")

    assert constraints == CommitConstraints(sha="a" * 40)


@pytest.mark.asyncio
async def test_previous_tag_without_release_has_no_lower_bound() -> None:
    """A preceding tag that was never released leaves ``since`` unset."""
    client = FakeGitHubClient(tags=[tag("v2.0.0", "b" * 40), tag("v1.0.0", "a" * 40)])

    constraints = await resolve_commit_constraints(client, _REPO, "v2.0.0")

    assert constraints == CommitConstraints(sha="b" * 40)


@pytest.mark.asyncio
async def test_previous_release_without_publish_date_fails() -> None:
    """The preceding release must carry a publish timestamp."""
    client = FakeGitHubClient(
        tags=[tag("v2.0.0", "b" * 40), tag("v1.0.0", "a" * 40)],
        releases_by_tag={"v1.0.0": release("v1.0.0", None)},
    )

    with pytest.raises(DataIntegrityError):
        await resolve_commit_constraints(client, _REPO, "v2.0.0")


@pytest.mark.asyncio
async def test_unknown_tag_raises_not_found() -> None:
    """A tag absent from the listing is reported verbatim."""
    client = FakeGitHubClient(tags=[tag("v1.0.0", "a" * 40)])

    with pytest.raises(NotFoundError, match="v9.9.9"):
        await resolve_commit_constraints(client, _REPO, "v9.9.9")
