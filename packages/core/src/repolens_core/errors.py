"""Error kinds raised by the leaf clients and recorded by ReviewSession.

Every error carries a short ``kind`` string. The session copies it onto the
snapshot next to the message, so a presentation layer can tell "feature
unavailable" (kind ``config``) apart from a generic failure.

StoreError lives in repolens_store so the store package has no dependency
on core; it is re-exported here so callers have one place to import from.
"""

from __future__ import annotations

from repolens_store.base import StoreError


class RepoLensError(Exception):
    """Base class for every expected failure of a review command."""

    kind = "error"


class ValidationError(RepoLensError):
    """Required input is missing; raised before any I/O happens."""

    kind = "validation"


class NetworkError(RepoLensError):
    """Transport failure or non-2xx response from the source-tree provider."""

    kind = "network"

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class DecodeError(RepoLensError):
    """Blob content could not be decoded."""

    kind = "decode"


class ConfigError(RepoLensError):
    """The AI provider has no credential configured."""

    kind = "config"


class ModelError(RepoLensError):
    """The AI call failed or returned unusable output."""

    kind = "model"


SESSION_ERRORS = (RepoLensError, StoreError)

__all__ = [
    "ConfigError",
    "DecodeError",
    "ModelError",
    "NetworkError",
    "RepoLensError",
    "SESSION_ERRORS",
    "StoreError",
    "ValidationError",
]
