"""Periodic progress messages for long-running awaits."""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from changeling.logging import get_logger, log_info

logger = get_logger(__name__)

DEFAULT_HEARTBEAT_INTERVAL_S = 5.0


async def _beat(message: str, interval_s: float) -> None:
    while True:
        await asyncio.sleep(interval_s)
        log_info(logger, "%s", message)


@contextlib.asynccontextmanager
async def heartbeat(
    message: str,
    *,
    interval_s: float = DEFAULT_HEARTBEAT_INTERVAL_S,
) -> typ.AsyncIterator[None]:
    """Log ``message`` every ``interval_s`` seconds until the block exits.

    Examples
    --------
    Inside a coroutine::

        async with heartbeat("Still getting commits..."):
            commits = await fetch_commits(client, repo, constraints)

    """
    if interval_s <= 0:
        msg = f"interval_s must be positive, got {interval_s}"
        raise ValueError(msg)

    task = asyncio.create_task(_beat(message, interval_s))
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
