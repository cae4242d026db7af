"""Typed records decoded from GitHub REST responses.

Only the fields the changelog pipeline reads are declared; msgspec ignores
everything else in the payload.
"""

from __future__ import annotations

import dataclasses
import datetime as dt  # noqa: TC003
import typing as typ

import msgspec

from changeling.common.slug import parse_repo_slug, repo_slug
from changeling.common.time import format_github_timestamp


class GitHubRepository(msgspec.Struct, kw_only=True, frozen=True):
    """Owner and name of the repository every API call targets."""

    owner: str
    repo: str

    @classmethod
    def from_slug(cls, slug: str) -> GitHubRepository:
        """Build a repository from an ``owner/repo`` slug."""
        owner, repo = parse_repo_slug(slug)
        return cls(owner=owner, repo=repo)

    @property
    def slug(self) -> str:
        """Return the ``owner/repo`` identifier."""
        return repo_slug(self.owner, self.repo)


class GitHubUser(msgspec.Struct, frozen=True):
    """Account reference embedded in commits, pull requests and issues."""

    login: str


class Label(msgspec.Struct, frozen=True):
    """Label attached to a pull request or issue."""

    name: str | None = None


def label_names(labels: typ.Iterable[Label | str]) -> list[str]:
    """Return label names in order, skipping unnamed labels."""
    names: list[str] = []
    for label in labels:
        if isinstance(label, str):
            names.append(label)
        elif label.name:
            names.append(label.name)
    return names


class CommitDetail(msgspec.Struct, frozen=True):
    """Git-level commit data nested under ``commit`` in the REST payload."""

    message: str


class Commit(msgspec.Struct, kw_only=True, frozen=True):
    """A commit as returned by the list-commits endpoint.

    ``author`` and ``committer`` are GitHub accounts and are ``None`` when
    the git identity is not linked to one.
    """

    sha: str
    commit: CommitDetail
    author: GitHubUser | None = None
    committer: GitHubUser | None = None

    @property
    def message(self) -> str:
        """Return the full commit message."""
        return self.commit.message


class TagCommit(msgspec.Struct, frozen=True):
    """Commit a tag points at."""

    sha: str


class Tag(msgspec.Struct, frozen=True):
    """A git tag."""

    name: str
    commit: TagCommit


class Release(msgspec.Struct, kw_only=True, frozen=True):
    """A published (or draft) release."""

    tag_name: str
    published_at: dt.datetime | None = None


class PullRequest(msgspec.Struct, kw_only=True, frozen=True):
    """A pull request from the list-pulls endpoint."""

    number: int
    title: str
    body: str | None = None
    labels: tuple[Label, ...] = ()
    user: GitHubUser | None = None
    merge_commit_sha: str | None = None
    merged_at: dt.datetime | None = None

    @property
    def is_merged(self) -> bool:
        """Return True when the pull request was merged into its base."""
        return self.merged_at is not None and bool(self.merge_commit_sha)


class PullRequestCommit(msgspec.Struct, frozen=True):
    """Commit belonging to a pull request."""

    sha: str


class Issue(msgspec.Struct, kw_only=True, frozen=True):
    """An issue record; pull requests are issues with ``pull_request`` set."""

    number: int
    labels: tuple[Label | str, ...] = ()
    user: GitHubUser | None = None
    pull_request: dict[str, typ.Any] | None = None

    @property
    def is_pull_request(self) -> bool:
        """Return True when this issue number belongs to a pull request."""
        return self.pull_request is not None


@dataclasses.dataclass(frozen=True, slots=True)
class CommitConstraints:
    """Range filter for the list-commits endpoint.

    All fields ``None`` means the whole history of the default branch.
    """

    sha: str | None = None
    since: dt.datetime | None = None
    until: dt.datetime | None = None

    @property
    def is_unbounded(self) -> bool:
        """Return True when no filter is applied."""
        return self.sha is None and self.since is None and self.until is None

    def as_query_params(self) -> dict[str, str]:
        """Return the constraints as list-commits query parameters."""
        params: dict[str, str] = {}
        if self.sha is not None:
            params["sha"] = self.sha
        if self.since is not None:
            params["since"] = format_github_timestamp(self.since)
        if self.until is not None:
            params["until"] = format_github_timestamp(self.until)
        return params

    def describe(self) -> str:
        """Return a short human description of the range."""
        since = format_github_timestamp(self.since) if self.since else None
        if self.sha and since:
            return f"since {since} up to {self.sha}"
        if self.sha:
            return f"up to {self.sha}"
        if since:
            return f"since {since}"
        return "across the full history"
