"""Turn raw commits into preliminary changelog entries."""

from __future__ import annotations

import typing as typ

from changeling.github.client import DEFAULT_PER_PAGE

from .models import ChangelogEntry, ChangelogEntryReference, ReferenceType

if typ.TYPE_CHECKING:
    from changeling.github.client import GitHubRepositoryClient
    from changeling.github.models import Commit, CommitConstraints, GitHubRepository

# Committer identity GitHub uses for merges and edits made in the web UI.
MERGE_BOT_LOGIN = "web-flow"


async def fetch_commits(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    constraints: CommitConstraints,
    *,
    per_page: int = DEFAULT_PER_PAGE,
) -> list[Commit]:
    """Drain every page of commits matching ``constraints``, in API order."""
    commits: list[Commit] = []
    async for page in client.iter_commit_pages(repo, constraints, per_page=per_page):
        commits.extend(page)
    return commits


def commit_props(commit: Commit, owner: str) -> tuple[str, ...]:
    """Return the logins credited for a commit.

    The author is credited unless they own the repository. The committer is
    credited only when they are neither the owner, the author, nor GitHub's
    web-flow bot.
    """
    props: list[str] = []
    author = commit.author.login if commit.author else None
    if author and author != owner:
        props.append(author)

    committer = commit.committer.login if commit.committer else None
    if committer and committer not in {owner, author, MERGE_BOT_LOGIN}:
        props.append(committer)
    return tuple(props)


def entry_from_commit(commit: Commit, owner: str) -> ChangelogEntry:
    """Build the entry for one commit from its first message line."""
    summary = commit.message.split("\n", 1)[0]
    return ChangelogEntry(
        summary=summary,
        props=commit_props(commit, owner),
        references=(
            ChangelogEntryReference(type=ReferenceType.COMMIT, id=commit.sha),
        ),
    )


def entries_from_commits(
    commits: typ.Iterable[Commit], owner: str
) -> list[ChangelogEntry]:
    """Return one entry per commit, preserving order."""
    return [entry_from_commit(commit, owner) for commit in commits]
