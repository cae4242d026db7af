"""Changelog entries and the slot arena the pipeline stages share."""

from __future__ import annotations

import enum
import typing as typ

import msgspec


class ReferenceType(enum.StrEnum):
    """What a changelog reference links to."""

    COMMIT = "commit"
    PULL = "pull"
    ISSUE = "issue"


class EntryType(enum.StrEnum):
    """Taxonomy used for label mapping and for grouping the changelog."""

    FEATURE = "feature"
    ENHANCEMENT = "enhancement"
    BUG = "bug"
    DOCUMENTATION = "documentation"


# Label name -> entry type. Iteration order is irrelevant; callers walk the
# labels in their own order and take the first one found here.
TYPE_LABELS: typ.Final[dict[str, EntryType]] = {
    "feature": EntryType.FEATURE,
    "enhancement": EntryType.ENHANCEMENT,
    "bug": EntryType.BUG,
    "documentation": EntryType.DOCUMENTATION,
}


def type_from_labels(labels: typ.Iterable[str]) -> EntryType | None:
    """Return the entry type of the first label in the taxonomy, if any."""
    for label in labels:
        entry_type = TYPE_LABELS.get(label)
        if entry_type is not None:
            return entry_type
    return None


class ChangelogEntryReference(msgspec.Struct, kw_only=True, frozen=True):
    """Back-reference rendered as a link next to an entry."""

    type: ReferenceType
    id: str


class ChangelogEntry(msgspec.Struct, kw_only=True, frozen=True):
    """One candidate line of the changelog.

    Attributes
    ----------
    summary
        Text of the line.
    type
        Taxonomy type; ``None`` until a label or the classifier assigns one.
    props
        Credited contributor logins in discovery order, without duplicates.
    references
        Commits, pull requests and issues linked from the line.

    """

    summary: str
    type: EntryType | None = None
    props: tuple[str, ...] = ()
    references: tuple[ChangelogEntryReference, ...] = ()

    @property
    def commit_sha(self) -> str | None:
        """Return the sha when the entry still represents a single commit."""
        if self.references and self.references[0].type is ReferenceType.COMMIT:
            return self.references[0].id
        return None

    def with_prop(self, login: str) -> ChangelogEntry:
        """Return a copy crediting ``login``; unchanged if already credited."""
        if login in self.props:
            return self
        return msgspec.structs.replace(self, props=(*self.props, login))

    def with_reference(self, reference: ChangelogEntryReference) -> ChangelogEntry:
        """Return a copy with ``reference`` appended."""
        return msgspec.structs.replace(
            self, references=(*self.references, reference)
        )


class EntrySlots:
    """Indexed arena holding entries between the commit and noise stages.

    A slot keeps its index for the arena's lifetime so commit sha lookups
    built by one stage stay valid for later ones. Removal leaves an empty
    slot; :meth:`compact` is the only operation that shifts positions.
    """

    def __init__(self, entries: typ.Iterable[ChangelogEntry]) -> None:
        """Store ``entries`` in order, one slot each."""
        self._slots: list[ChangelogEntry | None] = list(entries)

    def __len__(self) -> int:
        """Return the number of slots, removed ones included."""
        return len(self._slots)

    def __getitem__(self, index: int) -> ChangelogEntry | None:
        """Return the entry in slot ``index``, or ``None`` if removed."""
        return self._slots[index]

    def sha_index(self) -> dict[str, int]:
        """Map the commit sha of every commit-derived live entry to its slot."""
        lookup: dict[str, int] = {}
        for index, entry in self.live():
            sha = entry.commit_sha
            if sha is not None:
                lookup[sha] = index
        return lookup

    def replace(self, index: int, entry: ChangelogEntry) -> None:
        """Put ``entry`` in slot ``index``."""
        self._slots[index] = entry

    def remove(self, index: int) -> None:
        """Mark slot ``index`` as removed."""
        self._slots[index] = None

    def is_removed(self, index: int) -> bool:
        """Return True when slot ``index`` has been removed."""
        return self._slots[index] is None

    def live(self) -> typ.Iterator[tuple[int, ChangelogEntry]]:
        """Yield ``(index, entry)`` for every slot that still holds an entry."""
        for index, entry in enumerate(self._slots):
            if entry is not None:
                yield index, entry

    def live_count(self) -> int:
        """Return the number of slots still holding an entry."""
        return sum(1 for _ in self.live())

    def compact(
        self, keep: typ.Callable[[ChangelogEntry], bool] | None = None
    ) -> list[ChangelogEntry]:
        """Return live entries in slot order, optionally filtered by ``keep``."""
        return [
            entry
            for _, entry in self.live()
            if keep is None or keep(entry)
        ]
