"""femtologging helpers for changeling.

Messages are interpolated eagerly with percent-style templates before they
reach femtologging, so every call site formats the same way.

Example:
>>> from changeling.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Fetched %d commits", 42)

"""

from __future__ import annotations

import enum
import os
import typing as typ

from femtologging import basicConfig, get_logger

LOG_LEVEL_ENV_VAR = "CHANGELING_LOG_LEVEL"
_DEFAULT_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Levels accepted by :func:`configure_logging`."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return the upper-cased level and whether the input had to be replaced.

    Unknown or empty values fall back to ``INFO`` and set the flag so callers
    can warn about them once logging is up.
    """
    if not level or not level.strip():
        return (_DEFAULT_LEVEL, True)

    candidate = level.strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return (_DEFAULT_LEVEL, True)


def configure_logging(level: str | None = None, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging from an explicit level or ``CHANGELING_LOG_LEVEL``.

    Parameters
    ----------
    level : str | None, optional
        Requested level. ``None`` reads the environment variable instead.
    force : bool, optional
        Replace any handler configuration already installed.

    Returns
    -------
    tuple[str, bool]
        The level actually applied and a flag marking an invalid request.

    """
    requested = level if level is not None else os.environ.get(LOG_LEVEL_ENV_VAR)
    normalized, invalid = normalize_log_level(requested)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


class _SupportsLog(typ.Protocol):
    """Structural type for femtologging loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def format_log_message(template: str, *args: object) -> str:
    """Interpolate ``args`` into ``template`` using ``%`` formatting."""
    if not args:
        return template
    return template % args


def _emit(
    logger: _SupportsLog,
    level: LogLevel,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    logger.log(
        level.value,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a DEBUG message."""
    _emit(logger, LogLevel.DEBUG, template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message."""
    _emit(logger, LogLevel.INFO, template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message."""
    _emit(logger, LogLevel.WARNING, template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message, optionally attaching exception information."""
    _emit(logger, LogLevel.ERROR, template, args, exc_info)


__all__ = [
    "LOG_LEVEL_ENV_VAR",
    "LogLevel",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
