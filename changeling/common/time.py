"""Timestamp helpers for GitHub's ``since``/``until`` filters."""

from __future__ import annotations

import datetime as dt

# Added to a release's publish time so the commit list filter, which is
# inclusive, does not return the release's own commit again.
RELEASE_BOUNDARY_NUDGE = dt.timedelta(seconds=1)


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def after_release(published_at: dt.datetime) -> dt.datetime:
    """Return the first instant strictly after a release, at second precision."""
    if published_at.tzinfo is None:
        msg = "published_at must be timezone-aware"
        raise ValueError(msg)
    boundary = published_at.astimezone(dt.UTC) + RELEASE_BOUNDARY_NUDGE
    return boundary.replace(microsecond=0)


def format_github_timestamp(value: dt.datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SSZ``."""
    if value.tzinfo is None:
        msg = "timestamp must be timezone-aware"
        raise ValueError(msg)
    return value.astimezone(dt.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
