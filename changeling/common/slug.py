"""Repository slug utilities.

A slug is the ``owner/repo`` identifier GitHub uses in URLs. It is not a
filesystem path and should be parsed with these helpers rather than
``pathlib``.
"""

from __future__ import annotations

from changeling.errors import ConfigurationError


def repo_slug(owner: str, repo: str) -> str:
    """Build an ``owner/repo`` slug.

    Examples
    --------
    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{repo}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split an ``owner/repo`` slug into its two parts.

    Surrounding whitespace is ignored.

    Raises
    ------
    ConfigurationError
        If the value is not exactly two non-empty segments.

    Examples
    --------
    >>> parse_repo_slug("octo/reef")
    ('octo', 'reef')

    """
    text = slug.strip()
    if text.count("/") != 1:
        msg = f"Invalid repository: expected 'owner/repo', got {slug!r}"
        raise ConfigurationError(msg)

    owner, repo = (part.strip() for part in text.split("/"))
    if not owner or not repo:
        msg = f"Invalid repository: expected 'owner/repo', got {slug!r}"
        raise ConfigurationError(msg)
    return owner, repo
