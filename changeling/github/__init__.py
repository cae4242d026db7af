"""GitHub REST access for changelog generation."""

from __future__ import annotations

from .client import GitHubClientConfig, GitHubRepositoryClient, GitHubRestClient
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
from .remote import detect_github_repository, parse_github_remote_url

__all__ = [
    "Commit",
    "CommitConstraints",
    "GitHubAPIError",
    "GitHubClientConfig",
    "GitHubConfigError",
    "GitHubRepository",
    "GitHubRepositoryClient",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "Issue",
    "PullRequest",
    "PullRequestCommit",
    "Release",
    "Tag",
    "detect_github_repository",
    "parse_github_remote_url",
]
