"""Public SDK surface for WTS.

This module provides a stable import path for library users.
It re-exports the repository, typed models, and error hierarchy.
"""

from __future__ import annotations

from core.config import WtsConfig
from core.errors import (
    EmptyRepositoryError,
    HistoryCycleError,
    InvalidReferenceError,
    ObjectNotFoundError,
    WtsCodecError,
    WtsConfigError,
    WtsDependencyError,
    WtsError,
    WtsIoError,
)
from core.types import Commit, Reference, TensorCollection
from store.commit_history import CommitHistory
from store.content_hash import compute_content_digest
from store.repository import Repository
from store.weights_file import load_weights_file

__all__ = [
    "Commit",
    "CommitHistory",
    "EmptyRepositoryError",
    "HistoryCycleError",
    "InvalidReferenceError",
    "ObjectNotFoundError",
    "Reference",
    "Repository",
    "TensorCollection",
    "WtsCodecError",
    "WtsConfig",
    "WtsConfigError",
    "WtsDependencyError",
    "WtsError",
    "WtsIoError",
    "compute_content_digest",
    "load_weights_file",
]
