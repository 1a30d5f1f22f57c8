"""WTS exception hierarchy.

This module defines the closed set of domain errors raised by the store.
Callers branch on the exception type instead of parsing messages.
"""

from __future__ import annotations


class WtsError(Exception):
    """Base exception for all WTS failures."""


class WtsConfigError(WtsError):
    """Raised for invalid runtime configuration."""


class WtsIoError(WtsError):
    """Raised when the filesystem rejects a read or write."""


class EmptyRepositoryError(WtsError):
    """Raised when no repository control directory can be found."""


class ObjectNotFoundError(WtsError):
    """Raised when a commit record or tensor blob is missing for a digest."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Object not found: {key}")


class InvalidReferenceError(WtsError):
    """Raised when a branch, tag, or HEAD pointer is missing or malformed."""

    def __init__(self, reference: str, message: str | None = None) -> None:
        self.reference = reference
        super().__init__(message or f"Invalid reference: {reference}")


class WtsCodecError(WtsError):
    """Raised for malformed commit records, tensor containers, or metadata."""


class HistoryCycleError(WtsError):
    """Raised when a parent chain revisits a commit."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"Commit history revisits {key}. "
            "The parent chain is cyclic; repair the commit records before traversing."
        )


class WtsDependencyError(WtsError):
    """Raised when an optional runtime dependency is missing."""
