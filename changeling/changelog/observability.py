"""Structured log events for changelog runs.

``ChangelogGenerator`` reports the start, each completed stage, and the end
of a run through :class:`ChangelogEventLogger`. Failures carry an error
category so log queries can tell rate limiting from misconfiguration.
"""

from __future__ import annotations

import enum
import typing as typ

from changeling.errors import (
    ConfigurationError,
    DataIntegrityError,
    NotFoundError,
    TransportError,
)
from changeling.github.errors import GitHubAPIError
from changeling.logging import get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    import datetime as dt

    from changeling.github.models import CommitConstraints

logger = get_logger(__name__)


class ChangelogEventType(enum.StrEnum):
    """Structured log event types for changelog runs."""

    RUN_STARTED = "changelog.run.started"
    STAGE_COMPLETED = "changelog.stage.completed"
    RUN_COMPLETED = "changelog.run.completed"
    RUN_FAILED = "changelog.run.failed"


class ErrorCategory(enum.StrEnum):
    """Failure categories attached to ``changelog.run.failed`` events."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    DATA_INTEGRITY = "data_integrity"
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (ConfigurationError, ErrorCategory.CONFIGURATION),
    (NotFoundError, ErrorCategory.NOT_FOUND),
    (DataIntegrityError, ErrorCategory.DATA_INTEGRITY),
    (TransportError, ErrorCategory.TRANSPORT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Return the category used when logging a failed run."""
    if isinstance(exc, GitHubAPIError) and exc.rate_limited:
        return ErrorCategory.RATE_LIMITED

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


class ChangelogEventLogger:
    """Emit changelog run events via femtologging."""

    def log_run_started(self, *, repo_slug: str, tag: str | None) -> None:
        """Log the start of a run, before any GitHub request is made."""
        log_info(
            logger,
            "[%s] repo_slug=%s tag=%s",
            ChangelogEventType.RUN_STARTED,
            repo_slug,
            tag,
        )

    def log_constraints_resolved(
        self,
        *,
        repo_slug: str,
        constraints: CommitConstraints,
    ) -> None:
        """Log completion of the constraints stage with the resolved range."""
        log_info(
            logger,
            "[%s] repo_slug=%s stage=constraints range=%r",
            ChangelogEventType.STAGE_COMPLETED,
            repo_slug,
            constraints.describe(),
        )

    def log_stage_completed(
        self,
        *,
        repo_slug: str,
        stage: str,
        entries: int,
    ) -> None:
        """Log a finished pipeline stage with the number of entries left."""
        log_info(
            logger,
            "[%s] repo_slug=%s stage=%s entries=%d",
            ChangelogEventType.STAGE_COMPLETED,
            repo_slug,
            stage,
            entries,
        )

    def log_run_completed(
        self,
        *,
        repo_slug: str,
        entries: int,
        duration: dt.timedelta,
    ) -> None:
        """Log a successful run."""
        log_info(
            logger,
            "[%s] repo_slug=%s entries=%d duration_seconds=%.3f",
            ChangelogEventType.RUN_COMPLETED,
            repo_slug,
            entries,
            duration.total_seconds(),
        )

    def log_run_failed(
        self,
        *,
        repo_slug: str,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed run with its error category."""
        log_error(
            logger,
            "[%s] repo_slug=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            ChangelogEventType.RUN_FAILED,
            repo_slug,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
