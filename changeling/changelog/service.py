"""Changelog generation pipeline.

``ChangelogGenerator`` runs the stages in a fixed order, each one consuming
the complete output of the previous one:

1. resolve the commit range (latest release, or a tag and its predecessor);
2. fetch commits and build one entry per commit;
3. replace merge commits with their pull requests and drop absorbed commits;
4. annotate entries with the issues their summaries reference;
5. drop noise entries and compact the arena;
6. classify the remaining entries;
7. render Markdown.

Nothing is rendered unless every stage succeeds.

Usage
-----
Inside a coroutine::

    async with GitHubRestClient(GitHubClientConfig.from_env()) as client:
        generator = ChangelogGenerator(client, ChangelogConfig())
        markdown = await generator.generate(GitHubRepository.from_slug("o/r"))

"""

from __future__ import annotations

import typing as typ

from changeling.common.heartbeat import DEFAULT_HEARTBEAT_INTERVAL_S, heartbeat
from changeling.common.time import utcnow
from changeling.logging import get_logger, log_info

from .classification import classify_entries
from .commits import entries_from_commits, fetch_commits
from .constraints import resolve_commit_constraints
from .issues import annotate_entries
from .markdown import render_changelog_markdown
from .models import EntrySlots
from .noise import DEFAULT_NOISE_FILTER
from .observability import ChangelogEventLogger
from .pulls import correlate_pull_requests

if typ.TYPE_CHECKING:
    from changeling.github.client import GitHubRepositoryClient
    from changeling.github.models import GitHubRepository

    from .config import ChangelogConfig
    from .models import ChangelogEntry
    from .noise import CompiledNoiseFilter

logger = get_logger(__name__)


class ChangelogGenerator:
    """Build changelogs for repositories through one shared GitHub client."""

    def __init__(
        self,
        client: GitHubRepositoryClient,
        config: ChangelogConfig,
        *,
        noise_filter: CompiledNoiseFilter = DEFAULT_NOISE_FILTER,
        event_logger: ChangelogEventLogger | None = None,
        heartbeat_interval_s: float = DEFAULT_HEARTBEAT_INTERVAL_S,
    ) -> None:
        """Store the collaborators used by every run."""
        self._client = client
        self._config = config
        self._noise_filter = noise_filter
        self._events = event_logger or ChangelogEventLogger()
        self._heartbeat_interval_s = heartbeat_interval_s

    async def build_entries(
        self, repo: GitHubRepository, tag: str | None = None
    ) -> list[ChangelogEntry]:
        """Return the classified entries for ``repo``.

        Parameters
        ----------
        repo
            Target repository.
        tag
            Optional release tag; without it the changelog covers everything
            since the latest release.

        Returns
        -------
        list[ChangelogEntry]
            Classified entries in pipeline order.

        """
        started_at = utcnow()
        try:
            entries = await self._run_stages(repo, tag)
        except Exception as exc:
            self._events.log_run_failed(
                repo_slug=repo.slug, error=exc, duration=utcnow() - started_at
            )
            raise
        self._events.log_run_completed(
            repo_slug=repo.slug, entries=len(entries), duration=utcnow() - started_at
        )
        return entries

    async def generate(self, repo: GitHubRepository, tag: str | None = None) -> str:
        """Return the Markdown changelog for ``repo``."""
        entries = await self.build_entries(repo, tag)
        return render_changelog_markdown(
            entries, repo, web_base_url=self._config.web_base_url
        )

    async def _run_stages(
        self, repo: GitHubRepository, tag: str | None
    ) -> list[ChangelogEntry]:
        client = self._client
        config = self._config

        self._events.log_run_started(repo_slug=repo.slug, tag=tag)
        constraints = await resolve_commit_constraints(
            client, repo, tag, per_page=config.per_page
        )
        self._events.log_constraints_resolved(
            repo_slug=repo.slug, constraints=constraints
        )

        log_info(logger, "Getting commits %s...", constraints.describe())
        async with heartbeat(
            "Still getting commits...", interval_s=self._heartbeat_interval_s
        ):
            commits = await fetch_commits(
                client, repo, constraints, per_page=config.per_page
            )
        slots = EntrySlots(entries_from_commits(commits, repo.owner))
        self._stage_done(repo, "commits", len(slots))

        log_info(logger, "Amending commit entries with relevant pull requests...")
        async with heartbeat(
            "Still looking for pull requests...", interval_s=self._heartbeat_interval_s
        ):
            await correlate_pull_requests(client, repo, slots, config)
        self._stage_done(repo, "pull_requests", slots.live_count())

        log_info(logger, "Amending commit entries with relevant issues...")
        async with heartbeat(
            "Still looking for issues...", interval_s=self._heartbeat_interval_s
        ):
            await annotate_entries(
                client, repo, slots, concurrency=config.issue_concurrency
            )
        self._stage_done(repo, "issues", slots.live_count())

        entries = self._noise_filter.compact(slots)
        self._stage_done(repo, "noise", len(entries))

        classified = classify_entries(entries)
        self._stage_done(repo, "classification", len(classified))
        return classified

    def _stage_done(self, repo: GitHubRepository, stage: str, entries: int) -> None:
        self._events.log_stage_completed(
            repo_slug=repo.slug, stage=stage, entries=entries
        )
