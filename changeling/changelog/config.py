"""Configuration for a changelog run.

Usage
-----
Defaults match GitHub's conventions:

>>> config = ChangelogConfig()
>>> config.base_branch
'main'

Any field can be overridden directly:

>>> ChangelogConfig(issue_concurrency=4).issue_concurrency
4

:meth:`ChangelogConfig.from_env` reads the same overrides from the
``CHANGELING_*`` environment variables.

"""

from __future__ import annotations

import dataclasses as dc
import os

from changeling.errors import ConfigurationError
from changeling.github.client import DEFAULT_PER_PAGE, MAX_PER_PAGE

_DEFAULT_ISSUE_CONCURRENCY = 8
_DEFAULT_PULL_REQUEST_PAGE_LIMIT = 1
_DEFAULT_WEB_URL = "https://github.com"

WEB_URL_ENV_VAR = "CHANGELING_GITHUB_WEB_URL"


@dc.dataclass(frozen=True, slots=True)
class ChangelogConfig:
    """Settings shared by the pipeline stages.

    Attributes
    ----------
    base_branch
        Branch merged pull requests must target to be correlated.
    per_page
        Page size for every paginated GitHub listing (1-100).
    issue_concurrency
        Maximum number of issue lookups in flight while annotating entries.
    pull_request_page_limit
        Number of pull request pages examined during correlation. Only the
        newest page is read by default, so merges beyond the first
        ``per_page`` closed pull requests are not correlated.
    web_base_url
        Root of the GitHub web UI used for rendered links.

    """

    base_branch: str = "main"
    per_page: int = DEFAULT_PER_PAGE
    issue_concurrency: int = _DEFAULT_ISSUE_CONCURRENCY
    pull_request_page_limit: int = _DEFAULT_PULL_REQUEST_PAGE_LIMIT
    web_base_url: str = _DEFAULT_WEB_URL

    def __post_init__(self) -> None:
        """Reject values the pipeline cannot work with."""
        if not self.base_branch.strip():
            msg = "base_branch must be non-empty"
            raise ConfigurationError(msg)
        if not 1 <= self.per_page <= MAX_PER_PAGE:
            msg = f"per_page must be between 1 and {MAX_PER_PAGE}, got {self.per_page}"
            raise ConfigurationError(msg)
        if self.issue_concurrency < 1:
            msg = f"issue_concurrency must be positive, got {self.issue_concurrency}"
            raise ConfigurationError(msg)
        if self.pull_request_page_limit < 1:
            msg = (
                "pull_request_page_limit must be positive, "
                f"got {self.pull_request_page_limit}"
            )
            raise ConfigurationError(msg)

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ConfigurationError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ConfigurationError(msg)
        return value

    @classmethod
    def from_env(cls, *, base_branch: str | None = None) -> ChangelogConfig:
        """Create configuration from environment variables.

        Reads ``CHANGELING_BASE_BRANCH``, ``CHANGELING_PER_PAGE``,
        ``CHANGELING_ISSUE_CONCURRENCY``, ``CHANGELING_PR_PAGE_LIMIT`` and
        ``CHANGELING_GITHUB_WEB_URL``.
        An explicit ``base_branch`` argument wins over the environment.

        Raises
        ------
        ConfigurationError
            If a numeric variable is not a positive integer or is out of range.

        """
        branch = base_branch or os.environ.get("CHANGELING_BASE_BRANCH", "").strip()
        web_url = os.environ.get(WEB_URL_ENV_VAR, "").strip()
        return cls(
            base_branch=branch or "main",
            per_page=cls._parse_positive_int("CHANGELING_PER_PAGE", DEFAULT_PER_PAGE),
            issue_concurrency=cls._parse_positive_int(
                "CHANGELING_ISSUE_CONCURRENCY", _DEFAULT_ISSUE_CONCURRENCY
            ),
            pull_request_page_limit=cls._parse_positive_int(
                "CHANGELING_PR_PAGE_LIMIT", _DEFAULT_PULL_REQUEST_PAGE_LIMIT
            ),
            web_base_url=web_url or _DEFAULT_WEB_URL,
        )
