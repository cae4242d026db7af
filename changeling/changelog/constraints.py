"""Resolve which commits a changelog covers."""

from __future__ import annotations

import contextlib
import typing as typ

from changeling.common.time import after_release
from changeling.errors import DataIntegrityError, NotFoundError
from changeling.github.client import DEFAULT_PER_PAGE
from changeling.github.models import CommitConstraints
from changeling.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import datetime as dt

    from changeling.github.client import GitHubRepositoryClient
    from changeling.github.models import GitHubRepository, Release

logger = get_logger(__name__)


def _published_at(release: Release) -> dt.datetime:
    if release.published_at is None:
        msg = f"Release for tag {release.tag_name} has no published date"
        raise DataIntegrityError(msg)
    return release.published_at


async def _since_latest_release(
    client: GitHubRepositoryClient, repo: GitHubRepository
) -> CommitConstraints:
    release = await client.get_latest_release(repo)
    if release is None:
        log_debug(logger, "No releases in %s; using the full history", repo.slug)
        return CommitConstraints()

    log_debug(logger, "Using latest release tag %s", release.tag_name)
    return CommitConstraints(since=after_release(_published_at(release)))


async def _between_tags(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    tag: str,
    *,
    per_page: int,
) -> CommitConstraints:
    log_debug(logger, "Using given release tag %s", tag)
    sha: str | None = None
    previous_tag: str | None = None

    # Tags are listed newest first, so the tag after ours in the listing is
    # the one released before it.
    async with contextlib.aclosing(
        client.iter_tag_pages(repo, per_page=per_page)
    ) as pages:
        async for page in pages:
            for candidate in page:
                if sha is None:
                    if candidate.name == tag:
                        sha = candidate.commit.sha
                    continue
                previous_tag = candidate.name
                break
            if previous_tag is not None:
                break

    if sha is None:
        msg = f"Tag {tag} not found in {repo.slug}"
        raise NotFoundError(msg)
    if previous_tag is None:
        log_debug(logger, "Tag %s has no predecessor; no lower bound", tag)
        return CommitConstraints(sha=sha)

    release = await client.get_release_by_tag(repo, previous_tag)
    if release is None:
        log_debug(logger, "Tag %s has no release; no lower bound", previous_tag)
        return CommitConstraints(sha=sha)
    return CommitConstraints(sha=sha, since=after_release(_published_at(release)))


async def resolve_commit_constraints(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    tag: str | None = None,
    *,
    per_page: int = DEFAULT_PER_PAGE,
) -> CommitConstraints:
    """Return the commit range the changelog should cover.

    Parameters
    ----------
    client
        GitHub client used for release and tag lookups.
    repo
        Target repository.
    tag
        Optional release tag. Without it the range starts one second after
        the latest release was published; with it the range ends at the tag's
        commit and starts one second after the preceding tag's release.
    per_page
        Page size for the tag listing.

    Returns
    -------
    CommitConstraints
        The resolved range; unbounded when there is nothing to anchor it.

    Raises
    ------
    NotFoundError
        If ``tag`` is not among the repository's tags.
    DataIntegrityError
        If an anchoring release has no publish timestamp.

    """
    if not tag:
        return await _since_latest_release(client, repo)
    return await _between_tags(client, repo, tag, per_page=per_page)
