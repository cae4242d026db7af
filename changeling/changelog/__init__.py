"""Changelog generation pipeline and its stages."""

from __future__ import annotations

from .classification import classify_entries, classify_entry, classify_summary
from .commits import entries_from_commits, entry_from_commit, fetch_commits
from .config import ChangelogConfig
from .constraints import resolve_commit_constraints
from .issues import annotate_entries, annotate_from_summary, annotate_with_issue
from .markdown import render_changelog_markdown
from .models import (
    ChangelogEntry,
    ChangelogEntryReference,
    EntrySlots,
    EntryType,
    ReferenceType,
)
from .noise import DEFAULT_NOISE_FILTER, CompiledNoiseFilter, compile_noise_filter
from .observability import ChangelogEventLogger, ErrorCategory, categorize_error
from .pulls import CorrelationResult, correlate_pull_requests
from .service import ChangelogGenerator

__all__ = [
    "DEFAULT_NOISE_FILTER",
    "ChangelogConfig",
    "ChangelogEntry",
    "ChangelogEntryReference",
    "ChangelogEventLogger",
    "ChangelogGenerator",
    "CompiledNoiseFilter",
    "CorrelationResult",
    "EntrySlots",
    "EntryType",
    "ErrorCategory",
    "ReferenceType",
    "annotate_entries",
    "annotate_from_summary",
    "annotate_with_issue",
    "categorize_error",
    "classify_entries",
    "classify_entry",
    "classify_summary",
    "compile_noise_filter",
    "correlate_pull_requests",
    "entries_from_commits",
    "entry_from_commit",
    "fetch_commits",
    "render_changelog_markdown",
    "resolve_commit_constraints",
]
