"""Error taxonomy shared by every changelog stage.

Each failure a run can hit falls into one of four categories. They are all
fatal for the run: nothing is retried internally and no partial changelog is
rendered.
"""

from __future__ import annotations


class ChangelingError(Exception):
    """Base class for changeling errors."""


class ConfigurationError(ChangelingError):
    """Raised when the run is misconfigured before any API call is made."""


class NotFoundError(ChangelingError):
    """Raised when a requested tag or repository cannot be located."""


class DataIntegrityError(ChangelingError):
    """Raised when a remote record lacks a field the pipeline depends on."""


class TransportError(ChangelingError):
    """Raised when the remote API cannot be reached or rejects a request."""


__all__ = [
    "ChangelingError",
    "ConfigurationError",
    "DataIntegrityError",
    "NotFoundError",
    "TransportError",
]
