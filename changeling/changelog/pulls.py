"""Correlate merged pull requests with the commits they produced.

A merged pull request replaces the entry of its merge commit with a richer
entry built from the pull request itself. Commits that were part of the pull
request are removed, so a squashed or rebased change appears exactly once.
"""

from __future__ import annotations

import contextlib
import dataclasses
import typing as typ

from changeling.github.models import label_names
from changeling.logging import get_logger, log_debug

from .issues import annotate_with_issue, find_body_issue
from .models import (
    ChangelogEntry,
    ChangelogEntryReference,
    ReferenceType,
    type_from_labels,
)

if typ.TYPE_CHECKING:
    from changeling.github.client import GitHubRepositoryClient
    from changeling.github.models import GitHubRepository, PullRequest

    from .config import ChangelogConfig
    from .models import EntrySlots

logger = get_logger(__name__)


@dataclasses.dataclass(slots=True)
class CorrelationResult:
    """Counts from one correlation pass."""

    pull_requests_seen: int = 0
    pull_requests_matched: int = 0
    commits_absorbed: int = 0


def entry_from_pull_request(pr: PullRequest, owner: str) -> ChangelogEntry:
    """Build the entry representing a merged pull request."""
    props: tuple[str, ...] = ()
    if pr.user is not None and pr.user.login != owner:
        props = (pr.user.login,)
    return ChangelogEntry(
        summary=pr.title,
        type=type_from_labels(label_names(pr.labels)),
        props=props,
        references=(
            ChangelogEntryReference(type=ReferenceType.PULL, id=str(pr.number)),
        ),
    )


async def _absorb_pull_request_commits(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    pr: PullRequest,
    *,
    slots: EntrySlots,
    sha_index: dict[str, int],
    pr_index: int,
    per_page: int,
) -> int:
    absorbed = 0
    async for page in client.iter_pull_request_commit_pages(
        repo, pr.number, per_page=per_page
    ):
        for commit in page:
            index = sha_index.get(commit.sha)
            if index is None or index == pr_index or slots.is_removed(index):
                continue
            slots.remove(index)
            absorbed += 1
    return absorbed


async def correlate_pull_requests(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    slots: EntrySlots,
    config: ChangelogConfig,
) -> CorrelationResult:
    """Replace merge-commit entries in ``slots`` with pull request entries.

    Closed pull requests targeting ``config.base_branch`` are read newest
    first, stopping after ``config.pull_request_page_limit`` pages. When a
    pull request body says it fixes an issue, that issue is applied to the
    new entry straight away.

    Parameters
    ----------
    client
        GitHub client shared by the run.
    repo
        Target repository.
    slots
        Entry arena built from commits; modified in place.
    config
        Run configuration supplying branch, page size and page limit.

    Returns
    -------
    CorrelationResult
        How many pull requests were read, matched, and commits absorbed.

    """
    result = CorrelationResult()
    sha_index = slots.sha_index()
    pages_read = 0

    async with contextlib.aclosing(
        client.iter_pull_request_pages(
            repo, state="closed", base=config.base_branch, per_page=config.per_page
        )
    ) as pages:
        async for page in pages:
            pages_read += 1
            for pr in page:
                result.pull_requests_seen += 1
                if not pr.is_merged:
                    continue
                index = sha_index.get(typ.cast("str", pr.merge_commit_sha))
                if index is None:
                    continue

                entry = entry_from_pull_request(pr, repo.owner)
                issue_number = find_body_issue(pr.body)
                if issue_number is not None:
                    entry = await annotate_with_issue(client, repo, entry, issue_number)
                slots.replace(index, entry)
                result.pull_requests_matched += 1

                result.commits_absorbed += await _absorb_pull_request_commits(
                    client,
                    repo,
                    pr,
                    slots=slots,
                    sha_index=sha_index,
                    pr_index=index,
                    per_page=config.per_page,
                )

            # TODO: keep paging while the oldest pull request on the page is
            # newer than the oldest fetched commit, instead of a fixed limit.
            if pages_read >= config.pull_request_page_limit:
                log_debug(
                    logger,
                    "Stopped after %d pull request page(s) for %s",
                    pages_read,
                    repo.slug,
                )
                break

    return result
