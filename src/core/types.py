"""Shared typed models.

This module defines immutable data models used by the object, commit,
and reference stores to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

TensorCollection = Mapping[str, Any]


@dataclass(frozen=True)
class Commit:
    """Immutable commit record.

    Attributes:
        hash: Content digest of the committed tensor collection.
        parent_hash: Digest of the preceding commit, ``None`` for a root commit.
        timestamp: UTC creation time with microsecond precision.
        message: Free-text commit message.
        metadata: Arbitrary JSON-compatible value.
    """

    hash: bytes
    parent_hash: bytes | None
    timestamp: datetime
    message: str
    metadata: Any = None

    @property
    def hex_hash(self) -> str:
        """Hex-encoded content digest."""
        return self.hash.hex()

    @property
    def hex_parent_hash(self) -> str | None:
        """Hex-encoded parent digest, if any."""
        return self.parent_hash.hex() if self.parent_hash is not None else None


@dataclass(frozen=True)
class Reference:
    """Named pointer to a commit digest.

    Attributes:
        namespace: ``heads`` for branches or ``tags``.
        name: Reference name, unique within its namespace.
        commit_hash: Hex digest the reference points to.
    """

    namespace: str
    name: str
    commit_hash: str

    @property
    def path(self) -> str:
        """Namespaced reference path, e.g. ``refs/heads/main``."""
        return f"refs/{self.namespace}/{self.name}"
