"""Noise filtering for changelog entries.

Entries about tooling, CI, dependency updates, merges and version bumps are
of no interest to readers of release notes. The filter is a pure predicate
over the entry summary, so applying it twice changes nothing.
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ

if typ.TYPE_CHECKING:
    from .models import ChangelogEntry, EntrySlots

# Dots are deliberately unescaped in the tooling pattern: ".json" also
# matches "-json" and similar spellings in commit summaries.
TOOLING_PATTERN = (
    r"( .(dist|env|eslint|git|npm|nvm|prettier))"
    r"|(config.js|.dist|.json|.xml|.yml)|(lint )|(readme)"
)
CI_PATTERN = (
    r"(GitHub)|(GitHub action)|(GH action)|(GitHub workflow)|(GH workflow)"
    r"|(actions/)|(Plugin Check)"
)
DEPENDENCY_PATTERN = r"(dependency)|(dependencies)|(versions)|(test)|(tests)"
MERGE_PATTERN = r"^Merge( remote-tracking)? branch"
VERSION_PATTERN = r"(^Bump )|(since annotation)"

DEFAULT_NOISE_PATTERNS: tuple[str, ...] = (
    TOOLING_PATTERN,
    CI_PATTERN,
    DEPENDENCY_PATTERN,
    MERGE_PATTERN,
    VERSION_PATTERN,
)


@dataclasses.dataclass(frozen=True, slots=True)
class CompiledNoiseFilter:
    """Case-insensitive summary patterns; any match marks an entry as noise."""

    patterns: tuple[re.Pattern[str], ...] = ()

    def should_drop(self, entry: ChangelogEntry) -> bool:
        """Return True when the entry's summary matches any pattern."""
        return any(pattern.search(entry.summary) for pattern in self.patterns)

    def keep(self, entry: ChangelogEntry) -> bool:
        """Return True when the entry survives the filter."""
        return not self.should_drop(entry)

    def apply(self, entries: typ.Iterable[ChangelogEntry]) -> list[ChangelogEntry]:
        """Return the entries that are not noise, in order."""
        return [entry for entry in entries if self.keep(entry)]

    def compact(self, slots: EntrySlots) -> list[ChangelogEntry]:
        """Drop removed slots and noise entries, returning a plain list."""
        return slots.compact(self.keep)


def compile_noise_filter(
    patterns: typ.Sequence[str] = DEFAULT_NOISE_PATTERNS,
) -> CompiledNoiseFilter:
    """Compile ``patterns`` case-insensitively, ignoring blanks and repeats."""
    unique = dict.fromkeys(pattern for pattern in patterns if pattern.strip())
    return CompiledNoiseFilter(
        patterns=tuple(re.compile(pattern, re.IGNORECASE) for pattern in unique)
    )


DEFAULT_NOISE_FILTER = compile_noise_filter()
