"""Markdown renderer for changelogs.

Entries are grouped by type under bold headings in a fixed order. Each line
ends with contributor credits and links to the commits, pull requests and
issues it came from.

Usage
-----
>>> from changeling.changelog.models import ChangelogEntry, EntryType
>>> from changeling.github.models import GitHubRepository
>>> entry = ChangelogEntry(summary="Add widgets", type=EntryType.FEATURE)
>>> print(render_changelog_markdown([entry], GitHubRepository.from_slug("o/r")))
**Features:**
<BLANKLINE>
* Add widgets.
<BLANKLINE>
<BLANKLINE>

"""

from __future__ import annotations

import typing as typ

from .models import EntryType, ReferenceType

if typ.TYPE_CHECKING:
    from changeling.github.models import GitHubRepository

    from .models import ChangelogEntry, ChangelogEntryReference

SHORT_SHA_LENGTH = 7

TYPE_HEADINGS: typ.Final[tuple[tuple[EntryType, str], ...]] = (
    (EntryType.FEATURE, "Features"),
    (EntryType.ENHANCEMENT, "Enhancements"),
    (EntryType.BUG, "Bug Fixes"),
    (EntryType.DOCUMENTATION, "Documentation"),
)

_REFERENCE_PATHS: dict[ReferenceType, str] = {
    ReferenceType.COMMIT: "commit",
    ReferenceType.PULL: "pull",
    ReferenceType.ISSUE: "issues",
}


def _reference_link(
    reference: ChangelogEntryReference, repo_url: str
) -> str:
    """Return the Markdown link for a commit, pull request or issue."""
    if reference.type is ReferenceType.COMMIT:
        label = reference.id[:SHORT_SHA_LENGTH]
    else:
        label = f"#{reference.id}"
    return f"[{label}]({repo_url}/{_REFERENCE_PATHS[reference.type]}/{reference.id})"


def _user_link(login: str, web_base_url: str) -> str:
    return f"[{login}]({web_base_url}/{login})"


def _render_entry(entry: ChangelogEntry, repo_url: str, web_base_url: str) -> str:
    summary = entry.summary if entry.summary.endswith(".") else f"{entry.summary}."
    line = f"* {summary}"
    if entry.props:
        credits = ", ".join(_user_link(login, web_base_url) for login in entry.props)
        line += f" Props {credits}."
    if entry.references:
        links = ", ".join(_reference_link(ref, repo_url) for ref in entry.references)
        line += f" ({links})"
    return line


def _group_by_type(
    entries: typ.Iterable[ChangelogEntry],
) -> dict[EntryType, list[ChangelogEntry]]:
    groups: dict[EntryType, list[ChangelogEntry]] = {}
    for entry in entries:
        if entry.type is None:
            msg = f"Entry {entry.summary!r} has not been classified"
            raise ValueError(msg)
        groups.setdefault(entry.type, []).append(entry)
    return groups


def render_changelog_markdown(
    entries: typ.Sequence[ChangelogEntry],
    repo: GitHubRepository,
    *,
    web_base_url: str = "https://github.com",
) -> str:
    """Render classified entries as a Markdown changelog.

    Parameters
    ----------
    entries
        Classified entries in pipeline order. Within a heading the order is
        kept as given.
    repo
        Repository the reference links point into.
    web_base_url
        Root of the GitHub web UI.

    Returns
    -------
    str
        The changelog; empty when there are no entries.

    Raises
    ------
    ValueError
        If an entry has no type.

    """
    base = web_base_url.rstrip("/")
    repo_url = f"{base}/{repo.owner}/{repo.repo}"
    groups = _group_by_type(entries)

    lines: list[str] = []
    for entry_type, heading in TYPE_HEADINGS:
        group = groups.get(entry_type)
        if not group:
            continue
        lines.append(f"**{heading}:**")
        lines.append("")
        lines.extend(_render_entry(entry, repo_url, base) for entry in group)
        lines.append("")

    return "".join(f"{line}\n" for line in lines)
