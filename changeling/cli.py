"""Generate a Markdown changelog from a GitHub repository's history.

By default the changelog covers every commit since the latest release. With
``--tag`` it covers the commits between that tag and the one before it.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from changeling.changelog import ChangelogConfig, ChangelogGenerator
from changeling.errors import ChangelingError
from changeling.github import (
    GitHubClientConfig,
    GitHubRepository,
    GitHubRestClient,
    detect_github_repository,
)
from changeling.logging import (
    LOG_LEVEL_ENV_VAR,
    configure_logging,
    get_logger,
    log_debug,
    log_warning,
)

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="changeling", description=__doc__)
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=None,
        help="Local checkout used to detect the repository (default: cwd)",
    )
    parser.add_argument(
        "-r",
        "--repository",
        default=None,
        help='GitHub repository as "owner/repo", overriding detection',
    )
    parser.add_argument(
        "-t",
        "--tag",
        default=None,
        help="Release tag to generate the changelog for",
    )
    parser.add_argument(
        "-b",
        "--base",
        default=None,
        help="Base branch merged pull requests target (default: main)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: CHANGELING_LOG_LEVEL or INFO)",
    )
    return parser


def _resolve_repository(args: argparse.Namespace) -> GitHubRepository:
    if args.repository:
        repository = GitHubRepository.from_slug(args.repository)
        log_debug(logger, "Using given repository %s", repository.slug)
        return repository

    path: Path = (args.path or Path.cwd()).resolve()
    repository = detect_github_repository(path)
    log_debug(logger, "Using detected repository %s", repository.slug)
    return repository


async def _generate(
    repository: GitHubRepository,
    tag: str | None,
    client_config: GitHubClientConfig,
    config: ChangelogConfig,
) -> str:
    async with GitHubRestClient(client_config) as client:
        generator = ChangelogGenerator(client, config)
        return await generator.generate(repository, tag)


def run(argv: list[str] | None = None) -> str:
    """Parse arguments, run the pipeline and return the Markdown changelog.

    Raises
    ------
    ChangelingError
        If configuration is invalid or any stage fails.

    """
    args = _build_parser().parse_args(argv)
    requested_level = args.log_level or os.environ.get(LOG_LEVEL_ENV_VAR)
    normalized_level, invalid_level = configure_logging(requested_level)
    if invalid_level and requested_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            requested_level,
            normalized_level,
        )

    # Configuration errors must surface before any network call.
    client_config = GitHubClientConfig.from_env()
    config = ChangelogConfig.from_env(base_branch=args.base)
    repository = _resolve_repository(args)
    return asyncio.run(_generate(repository, args.tag, client_config, config))


def main(argv: list[str] | None = None) -> int:
    """Console entry point.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when the changelog could not be built.

    """
    try:
        changelog = run(argv)
    except ChangelingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    sys.stdout.write(changelog)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
