"""Repository coordinator.

This module owns the ``.wts`` control directory layout and composes the
object, commit, and reference stores into commit/branch/tag operations.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np

from core.config import WtsConfig
from core.constants import (
    COMMITS_DIR_NAME,
    CONTROL_DIR_NAME,
    HEAD_FILE_NAME,
    HEADS_NAMESPACE,
    OBJECTS_DIR_NAME,
    REFS_DIR_NAME,
    TAGS_NAMESPACE,
)
from core.errors import (
    EmptyRepositoryError,
    HistoryCycleError,
    ObjectNotFoundError,
    WtsCodecError,
    WtsIoError,
)
from core.logging_config import get_logger
from core.types import Commit, Reference, TensorCollection
from store.commit_history import CommitHistory
from store.commit_store import CommitStore
from store.content_hash import compute_content_digest, digest_from_hex, digest_to_hex
from store.object_store import ObjectStore
from store.reference_store import ReferenceStore

_LOGGER = get_logger(__name__)


class Repository:
    """Weight tensor repository rooted at one directory.

    All state lives under ``<root>/.wts``; nothing is held process-wide,
    so independent repositories can be used side by side.
    """

    def __init__(self, root: Path) -> None:
        """Bind a repository handle to an existing root.

        Args:
            root: Directory containing the ``.wts`` control directory.
        """
        self.root = root
        self.control_dir = root / CONTROL_DIR_NAME
        self._objects = ObjectStore(self.control_dir / OBJECTS_DIR_NAME)
        self._commits = CommitStore(self.control_dir / COMMITS_DIR_NAME)
        self._refs = ReferenceStore(self.control_dir)

    @classmethod
    def init(cls, config: WtsConfig) -> "Repository":
        """Create the repository layout under ``config.repo_root``.

        Existing directories, objects, and the current ``HEAD`` are kept,
        so running init twice is harmless.

        Args:
            config: Runtime configuration.

        Returns:
            Repository handle.

        Raises:
            WtsIoError: If directories cannot be created.
        """
        repository = cls(config.repo_root)
        control_dir = repository.control_dir
        try:
            for directory in (
                control_dir / OBJECTS_DIR_NAME,
                control_dir / REFS_DIR_NAME / HEADS_NAMESPACE,
                control_dir / REFS_DIR_NAME / TAGS_NAMESPACE,
                control_dir / COMMITS_DIR_NAME,
            ):
                directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise WtsIoError(
                f"Failed to initialize repository at {control_dir}: {error}. "
                "Check write permissions for the target directory."
            ) from error
        head_written = not (control_dir / HEAD_FILE_NAME).exists()
        if head_written:
            repository._refs.write_head(config.default_branch)
        _LOGGER.info(
            "repository_initialized",
            root=str(config.repo_root),
            default_branch=config.default_branch,
            head_written=head_written,
        )
        return repository

    @classmethod
    def open(cls, config: WtsConfig) -> "Repository":
        """Open the repository at ``config.repo_root``.

        When ``config.search_parents`` is set, parent directories are
        searched for the nearest control directory.

        Raises:
            EmptyRepositoryError: If no control directory is found.
        """
        start = config.repo_root
        candidates = [start, *start.parents] if config.search_parents else [start]
        for candidate in candidates:
            if cls.is_initialized(candidate):
                return cls(candidate)
        raise EmptyRepositoryError(
            f"No {CONTROL_DIR_NAME} repository found at {start}"
            f"{' or any parent directory' if config.search_parents else ''}. "
            "Run 'wts init' first."
        )

    @staticmethod
    def is_initialized(root: Path) -> bool:
        """Return whether ``root`` holds a control directory."""
        return (root / CONTROL_DIR_NAME).is_dir()

    def create_commit(
        self,
        tensors: TensorCollection,
        message: str,
        metadata: Any = None,
        parent: str | None = None,
    ) -> str:
        """Record a tensor collection as a commit.

        The parent is taken as given; the current branch is never consulted.
        The commit is keyed by the content digest, so committing identical
        tensors again replaces the earlier commit record.

        Args:
            tensors: Tensor collection to snapshot.
            message: Commit message.
            metadata: Optional JSON-compatible metadata.
            parent: Optional hex digest of the parent commit.

        Returns:
            Hex-encoded content digest.

        Raises:
            ObjectNotFoundError: If ``parent`` names no stored commit.
            HistoryCycleError: If the new digest is ``parent`` or one of its ancestors.
            WtsCodecError: If tensors or metadata cannot be encoded.
            WtsIoError: If persistence fails.
        """
        digest = compute_content_digest(tensors)
        hex_hash = digest_to_hex(digest)
        parent_hash = self._resolve_parent(parent, hex_hash)
        self._objects.put(digest, tensors)
        commit = Commit(
            hash=digest,
            parent_hash=parent_hash,
            timestamp=datetime.now(timezone.utc),
            message=message,
            metadata=metadata,
        )
        self._warn_on_replacement(commit)
        self._commits.put(commit)
        _LOGGER.info(
            "commit_created",
            hash=hex_hash,
            parent_hash=commit.hex_parent_hash,
            tensor_count=len(tensors),
        )
        return hex_hash

    def create_branch(self, name: str, commit_hash: str) -> Reference:
        """Point branch ``name`` at an existing commit."""
        return self._set_reference(HEADS_NAMESPACE, name, commit_hash)

    def create_tag(self, name: str, commit_hash: str) -> Reference:
        """Point tag ``name`` at an existing commit."""
        return self._set_reference(TAGS_NAMESPACE, name, commit_hash)

    def get_commit(self, commit_hash: str) -> Commit:
        """Load a commit record.

        Raises:
            ObjectNotFoundError: If no commit exists for the digest.
        """
        return self._commits.get(commit_hash)

    def get_object(self, commit_hash: str) -> dict[str, np.ndarray]:
        """Load the tensor collection stored for a digest.

        Raises:
            ObjectNotFoundError: If no blob exists for the digest.
        """
        return self._objects.get(commit_hash)

    def resolve_reference(self, ref_path: str) -> str:
        """Resolve ``refs/heads/<n>``, ``refs/tags/<n>``, or ``HEAD``.

        Raises:
            InvalidReferenceError: If the reference is missing or malformed.
        """
        return self._refs.resolve(ref_path)

    def resolve_revision(self, revision: str) -> str:
        """Resolve a reference path, a bare branch/tag name, or a hex digest."""
        candidate = revision.strip()
        if candidate == HEAD_FILE_NAME or candidate.startswith(f"{REFS_DIR_NAME}/"):
            return self.resolve_reference(candidate)
        for namespace in (HEADS_NAMESPACE, TAGS_NAMESPACE):
            if (self.control_dir / REFS_DIR_NAME / namespace / candidate).is_file():
                return self._refs.get(namespace, candidate)
        return digest_to_hex(digest_from_hex(candidate))

    def list_references(self, namespace: str) -> list[Reference]:
        """List branches (``heads``) or tags (``tags``) sorted by name."""
        return self._refs.list_references(namespace)

    def current_branch(self) -> str:
        """Return the branch name ``HEAD`` points to."""
        return self._refs.read_head()

    def history(self, start_hash: str) -> CommitHistory:
        """Return a lazy iterator over ``start_hash`` and its ancestors."""
        return CommitHistory(self._commits, start_hash)

    def _set_reference(self, namespace: str, name: str, commit_hash: str) -> Reference:
        """Validate the target commit and write the reference."""
        hex_hash = digest_to_hex(digest_from_hex(commit_hash))
        if not self._commits.exists(hex_hash):
            raise ObjectNotFoundError(
                hex_hash,
                f"Object not found: cannot point {namespace}/{name} at {hex_hash}, "
                "no such commit. Create the commit first.",
            )
        return self._refs.set(namespace, name, hex_hash)

    def _resolve_parent(self, parent: str | None, hex_hash: str) -> bytes | None:
        """Validate a caller-supplied parent digest.

        Rewriting the record for ``hex_hash`` must not close a loop, so the
        parent's ancestry may not already contain ``hex_hash``.
        """
        if parent is None:
            return None
        parent_digest = digest_from_hex(parent)
        parent_hex = digest_to_hex(parent_digest)
        if parent_hex == hex_hash:
            raise HistoryCycleError(hex_hash)
        if not self._commits.exists(parent_hex):
            raise ObjectNotFoundError(
                parent_hex,
                f"Object not found: parent commit {parent_hex} does not exist.",
            )
        for entry in CommitHistory(self._commits, parent_hex):
            if isinstance(entry, Commit) and entry.hex_hash == hex_hash:
                raise HistoryCycleError(hex_hash)
        return parent_digest

    def _warn_on_replacement(self, commit: Commit) -> None:
        """Log when a new record overwrites a differing record for the same content."""
        if not self._commits.exists(commit.hex_hash):
            return
        try:
            previous = self._commits.get(commit.hex_hash)
        except WtsCodecError as error:
            _LOGGER.warning("commit_record_replaced", hash=commit.hex_hash, reason=str(error))
            return
        if (previous.parent_hash, previous.message, previous.metadata) != (
            commit.parent_hash,
            commit.message,
            commit.metadata,
        ):
            _LOGGER.warning(
                "commit_record_replaced",
                hash=commit.hex_hash,
                previous_message=previous.message,
                previous_parent_hash=previous.hex_parent_hash,
            )
