"""Changeling: release changelogs from GitHub history."""

from __future__ import annotations

from .errors import (
    ChangelingError,
    ConfigurationError,
    DataIntegrityError,
    NotFoundError,
    TransportError,
)

__all__ = [
    "ChangelingError",
    "ConfigurationError",
    "DataIntegrityError",
    "NotFoundError",
    "TransportError",
]
