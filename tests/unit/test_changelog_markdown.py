"""Unit tests for the Markdown changelog renderer."""

from __future__ import annotations

import pytest

from changeling.changelog.markdown import render_changelog_markdown
from changeling.changelog.models import (
    ChangelogEntry,
    ChangelogEntryReference,
    EntryType,
    ReferenceType,
)
from changeling.github.models import GitHubRepository

_REPO = GitHubRepository(owner="octo", repo="reef")
_SHA = "0123456789abcdef0123456789abcdef01234567"


def _ref(kind: ReferenceType, ref_id: str) -> ChangelogEntryReference:
    return ChangelogEntryReference(type=kind, id=ref_id)


def test_renders_headings_props_and_links() -> None:
    """Each line carries credits and links in a fixed format."""
    entries = [
        ChangelogEntry(
            summary="Fix broken pagination",
            type=EntryType.BUG,
            props=("alice", "bob"),
            references=(
                _ref(ReferenceType.PULL, "12"),
                _ref(ReferenceType.ISSUE, "42"),
            ),
        ),
        ChangelogEntry(
            summary="Add widgets.",
            type=EntryType.FEATURE,
            references=(_ref(ReferenceType.COMMIT, _SHA),),
        ),
    ]

    rendered = render_changelog_markdown(entries, _REPO)

    assert rendered == (
        "**Features:**\n"
        "\n"
        "* Add widgets. ([0123456](https://github.com/octo/reef/commit/"
        f"{_SHA}))\n"
        "\n"
        "**Bug Fixes:**\n"
        "\n"
        "* Fix broken pagination. Props [alice](https://github.com/alice), "
        "[bob](https://github.com/bob). "
        "([#12](https://github.com/octo/reef/pull/12), "
        "[#42](https://github.com/octo/reef/issues/42))\n"
        "\n"
    )


def test_heading_order_is_fixed_and_group_order_kept() -> None:
    """Headings follow the taxonomy order regardless of group sizes."""
    entries = [
        ChangelogEntry(summary="Docs one", type=EntryType.DOCUMENTATION),
        ChangelogEntry(summary="Bug one", type=EntryType.BUG),
        ChangelogEntry(summary="Docs two", type=EntryType.DOCUMENTATION),
        ChangelogEntry(summary="Tweak one", type=EntryType.ENHANCEMENT),
        ChangelogEntry(summary="Docs three", type=EntryType.DOCUMENTATION),
    ]

    lines = render_changelog_markdown(entries, _REPO).splitlines()

    headings = [line for line in lines if line.startswith("**")]
    assert headings == ["**Enhancements:**", "**Bug Fixes:**", "**Documentation:**"]
    docs = [line for line in lines if line.startswith("* Docs")]
    assert docs == ["* Docs one.", "* Docs two.", "* Docs three."]


def test_empty_input_renders_nothing() -> None:
    """No entries means no headings at all."""
    assert render_changelog_markdown([], _REPO) == ""


def test_rendering_is_deterministic() -> None:
    """Identical input renders byte-identical output."""
    entries = [
        ChangelogEntry(summary=f"Change {n}", type=kind)
        for n, kind in enumerate(EntryType)
    ]

    first = render_changelog_markdown(entries, _REPO)

    assert render_changelog_markdown(list(entries), _REPO) == first


def test_web_base_url_is_configurable() -> None:
    """Links point at the configured host, without doubled slashes."""
    entry = ChangelogEntry(
        summary="Tune",
        type=EntryType.ENHANCEMENT,
        props=("carol",),
        references=(_ref(ReferenceType.PULL, "3"),),
    )

    rendered = render_changelog_markdown(
        [entry], _REPO, web_base_url="https://ghe.example.test/"
    )

    assert "[carol](https://ghe.example.test/carol)" in rendered
    assert "(https://ghe.example.test/octo/reef/pull/3)" in rendered


def test_unclassified_entry_is_rejected() -> None:
    """Every entry must carry a type before rendering."""
    with pytest.raises(ValueError, match="not been classified"):
        render_changelog_markdown([ChangelogEntry(summary="Loose")], _REPO)
