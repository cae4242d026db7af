"""Assign a taxonomy type to entries that labels did not classify."""

from __future__ import annotations

import re
import typing as typ

import msgspec

from .models import ChangelogEntry, EntryType

# Checked in order; the first pattern that matches decides the type.
TYPE_RULES: typ.Final[tuple[tuple[EntryType, re.Pattern[str]], ...]] = (
    (EntryType.BUG, re.compile(r"^(?:Fix|Resolve)\s", re.IGNORECASE)),
    (EntryType.DOCUMENTATION, re.compile(r"(?:^Document\s)|(?:docs?)", re.IGNORECASE)),
    (EntryType.FEATURE, re.compile(r"^(?:Introduce|Add)\s", re.IGNORECASE)),
)

FALLBACK_TYPE: typ.Final = EntryType.ENHANCEMENT


def classify_summary(summary: str) -> EntryType:
    """Return the type the summary text suggests.

    Examples
    --------
    >>> classify_summary("Fix broken pagination")
    <EntryType.BUG: 'bug'>
    >>> classify_summary("Improve error output")
    <EntryType.ENHANCEMENT: 'enhancement'>

    """
    for entry_type, pattern in TYPE_RULES:
        if pattern.search(summary):
            return entry_type
    return FALLBACK_TYPE


def classify_entry(entry: ChangelogEntry) -> ChangelogEntry:
    """Return the entry with a type; an existing type is never overwritten."""
    if entry.type is not None:
        return entry
    return msgspec.structs.replace(entry, type=classify_summary(entry.summary))


def classify_entries(entries: typ.Iterable[ChangelogEntry]) -> list[ChangelogEntry]:
    """Classify every entry, preserving order."""
    return [classify_entry(entry) for entry in entries]
