"""Enrich changelog entries with the issues they reference."""

from __future__ import annotations

import asyncio
import re
import typing as typ

import msgspec

from changeling.github.models import label_names
from changeling.logging import get_logger, log_warning

from .models import ChangelogEntryReference, ReferenceType, type_from_labels

if typ.TYPE_CHECKING:
    from changeling.github.client import GitHubRepositoryClient
    from changeling.github.models import GitHubRepository

    from .models import ChangelogEntry, EntrySlots

logger = get_logger(__name__)

# "Fix broken paging (fixes #42)": the parenthetical is dropped from the line.
_TRAILING_REFERENCE_RE = re.compile(r"\s\((?:fix(?:es)?|see) #(\d+)\)", re.IGNORECASE)
# "See #42 for details": the reference stays in the text.
_INLINE_REFERENCE_RE = re.compile(r"(?:fix(?:es)?|see) #(\d+)", re.IGNORECASE)
# Pull request bodies only count closing keywords.
_BODY_FIX_RE = re.compile(r"Fix(?:es)? #(\d+)", re.IGNORECASE)


def find_body_issue(body: str | None) -> int | None:
    """Return the issue a pull request body says it fixes, if any."""
    if not body:
        return None
    match = _BODY_FIX_RE.search(body)
    return int(match.group(1)) if match else None


def find_summary_issue(summary: str) -> tuple[str, int | None]:
    """Return ``(summary, issue number)`` for an entry summary.

    A trailing ``(fix #N)``, ``(fixes #N)`` or ``(see #N)`` is removed from
    the returned summary; a bare reference elsewhere leaves it untouched.

    Examples
    --------
    >>> find_summary_issue("Fix broken pagination (fixes #42)")
    ('Fix broken pagination', 42)
    >>> find_summary_issue("Tidy output, see #7")
    ('Tidy output, see #7', 7)

    """
    match = _TRAILING_REFERENCE_RE.search(summary)
    if match is not None:
        stripped = summary[: match.start()] + summary[match.end() :]
        return stripped, int(match.group(1))

    match = _INLINE_REFERENCE_RE.search(summary)
    if match is not None:
        return summary, int(match.group(1))
    return summary, None


def _references_issue(entry: ChangelogEntry, number: int) -> bool:
    issue_id = str(number)
    return any(
        ref.type is ReferenceType.ISSUE and ref.id == issue_id
        for ref in entry.references
    )


async def annotate_with_issue(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    entry: ChangelogEntry,
    number: int,
) -> ChangelogEntry:
    """Return ``entry`` enriched with issue ``number``.

    Appends an issue reference, takes the entry type from the issue labels
    when the entry has none, and credits the issue author unless they own the
    repository. Pull requests, missing issues and issues the entry already
    references leave the entry unchanged; the last are not fetched again.
    """
    if _references_issue(entry, number):
        return entry

    issue = await client.get_issue(repo, number)
    if issue is None:
        log_warning(logger, "Issue #%d referenced by %r not found", number, entry.summary)
        return entry
    if issue.is_pull_request:
        return entry

    amended = entry.with_reference(
        ChangelogEntryReference(type=ReferenceType.ISSUE, id=str(number))
    )
    if amended.type is None:
        entry_type = type_from_labels(label_names(issue.labels))
        if entry_type is not None:
            amended = msgspec.structs.replace(amended, type=entry_type)

    login = issue.user.login if issue.user else None
    if login and login != repo.owner:
        amended = amended.with_prop(login)
    return amended


async def annotate_from_summary(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    entry: ChangelogEntry,
) -> ChangelogEntry:
    """Scan an entry's summary for an issue reference and apply it."""
    summary, number = find_summary_issue(entry.summary)
    if number is None:
        return entry
    if summary != entry.summary:
        entry = msgspec.structs.replace(entry, summary=summary)
    return await annotate_with_issue(client, repo, entry, number)


async def annotate_entries(
    client: GitHubRepositoryClient,
    repo: GitHubRepository,
    slots: EntrySlots,
    *,
    concurrency: int,
) -> None:
    """Annotate every live entry in ``slots`` from its summary.

    Lookups run concurrently, at most ``concurrency`` at a time. The first
    failed lookup cancels the others and is re-raised as-is. Each task only
    computes a replacement for its own slot; slots are written once all
    tasks have finished, and nothing is written if any lookup failed.
    """
    semaphore = asyncio.Semaphore(concurrency)
    live = list(slots.live())

    async def bounded(entry: ChangelogEntry) -> ChangelogEntry:
        async with semaphore:
            return await annotate_from_summary(client, repo, entry)

    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(bounded(entry)) for _, entry in live]
    except ExceptionGroup as failures:
        raise failures.exceptions[0] from None

    for (index, _), task in zip(live, tasks, strict=True):
        slots.replace(index, task.result())
