"""Detect the GitHub repository of a local git checkout."""

from __future__ import annotations

import re
import subprocess
import typing as typ

from changeling.errors import NotFoundError
from changeling.logging import get_logger, log_debug

from .models import GitHubRepository

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)

_GITHUB_REMOTE_RE = re.compile(r"github\.com[:/](.+?)/(.+?)(?:\.git)?/?$")


def parse_github_remote_url(url: str) -> GitHubRepository | None:
    """Return the repository an ``https`` or ``ssh`` GitHub remote points at.

    Examples
    --------
    >>> parse_github_remote_url("git@github.com:octo/reef.git")
    GitHubRepository(owner='octo', repo='reef')

    """
    match = _GITHUB_REMOTE_RE.search(url.strip())
    if match is None:
        return None
    owner, repo = match.groups()
    return GitHubRepository(owner=owner, repo=repo)


def _origin_fetch_urls(remote_listing: str) -> typ.Iterator[str]:
    # `git remote -v` lines look like "origin\t<url> (fetch)".
    for line in remote_listing.splitlines():
        parts = line.split()
        if len(parts) == 3 and parts[0] == "origin" and parts[2] == "(fetch)":  # noqa: PLR2004
            yield parts[1]


def detect_github_repository(path: Path) -> GitHubRepository:
    """Return the GitHub repository behind the ``origin`` remote at ``path``.

    Raises
    ------
    NotFoundError
        If ``path`` is not a git checkout or ``origin`` is not a GitHub URL.

    """
    try:
        completed = subprocess.run(  # noqa: S603
            ["git", "remote", "-v"],  # noqa: S607
            cwd=path,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        msg = f"Could not read git remotes in {path}: {exc}"
        raise NotFoundError(msg) from exc

    for url in _origin_fetch_urls(completed.stdout):
        repository = parse_github_remote_url(url)
        if repository is not None:
            log_debug(logger, "Detected repository %s from %s", repository.slug, url)
            return repository

    msg = "Could not detect GitHub repository from git remotes"
    raise NotFoundError(msg)
