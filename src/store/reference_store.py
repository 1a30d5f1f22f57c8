"""Branch, tag, and HEAD pointer persistence.

This module stores mutable name -> digest pointers as plain text files
under ``.wts/refs/<namespace>/<name>`` and the symbolic ``HEAD`` file.
"""

from __future__ import annotations

from pathlib import Path

from core.constants import (
    HEAD_BRANCH_PREFIX,
    HEAD_FILE_NAME,
    HEAD_REF_PREFIX,
    HEADS_NAMESPACE,
    REFERENCE_NAMESPACES,
    REFS_DIR_NAME,
)
from core.errors import InvalidReferenceError
from core.logging_config import get_logger
from core.types import Reference
from store.atomic_write import atomic_write_text

_LOGGER = get_logger(__name__)
# Accepted on read; the writer emits HEAD_BRANCH_PREFIX.
_HEAD_BRANCH_PREFIXES = (HEAD_BRANCH_PREFIX, f"{REFS_DIR_NAME}/{HEADS_NAMESPACE}/")


class ReferenceStore:
    """Filesystem-backed reference store.

    The store never checks that a hash names an existing commit;
    that validation belongs to the repository coordinator.
    """

    def __init__(self, control_dir: Path) -> None:
        self._control_dir = control_dir
        self._refs_dir = control_dir / REFS_DIR_NAME

    def set(self, namespace: str, name: str, commit_hash: str) -> Reference:
        """Create or overwrite a reference.

        Args:
            namespace: ``heads`` or ``tags``.
            name: Reference name.
            commit_hash: Hex digest to point at.

        Returns:
            Written reference.

        Raises:
            InvalidReferenceError: If namespace or name is invalid.
            WtsIoError: If the file cannot be written.
        """
        ref_path = self._ref_path(namespace, name)
        atomic_write_text(ref_path, commit_hash)
        _LOGGER.info("reference_updated", namespace=namespace, name=name, hash=commit_hash)
        return Reference(namespace=namespace, name=name, commit_hash=commit_hash)

    def get(self, namespace: str, name: str) -> str:
        """Read the hex digest a reference points to.

        Raises:
            InvalidReferenceError: If the reference is missing, unreadable, or empty.
        """
        ref_path = self._ref_path(namespace, name)
        return _read_pointer(ref_path, f"{REFS_DIR_NAME}/{namespace}/{name}")

    def resolve(self, ref_path: str) -> str:
        """Resolve ``refs/<namespace>/<name>`` or ``HEAD`` to a hex digest.

        ``HEAD`` is followed through exactly one indirection to its branch.

        Raises:
            InvalidReferenceError: If the path is malformed or unresolvable.
        """
        normalized = ref_path.strip().strip("/")
        if normalized == HEAD_FILE_NAME:
            return self.get(HEADS_NAMESPACE, self.read_head())
        prefix, _, remainder = normalized.partition("/")
        namespace, _, name = remainder.partition("/")
        if prefix != REFS_DIR_NAME or not name:
            raise InvalidReferenceError(
                ref_path,
                f"Invalid reference: '{ref_path}'. Use refs/heads/<name>, refs/tags/<name>, "
                "or HEAD.",
            )
        return self.get(namespace, name)

    def list_references(self, namespace: str) -> list[Reference]:
        """List references in a namespace sorted by name.

        Empty or unreadable reference files are logged and skipped so one
        damaged entry does not hide the rest.
        """
        namespace_dir = self._namespace_dir(namespace)
        if not namespace_dir.is_dir():
            return []
        references: list[Reference] = []
        for ref_file in sorted(namespace_dir.rglob("*")):
            if not ref_file.is_file() or ref_file.name.startswith("."):
                continue
            name = ref_file.relative_to(namespace_dir).as_posix()
            try:
                commit_hash = self.get(namespace, name)
            except InvalidReferenceError as error:
                _LOGGER.warning(
                    "reference_skipped", namespace=namespace, name=name, reason=str(error)
                )
                continue
            references.append(Reference(namespace=namespace, name=name, commit_hash=commit_hash))
        return references

    def read_head(self) -> str:
        """Return the branch name ``HEAD`` points to.

        Raises:
            InvalidReferenceError: If HEAD is missing or not a branch pointer.
        """
        head_text = _read_pointer(self._control_dir / HEAD_FILE_NAME, HEAD_FILE_NAME)
        if head_text.startswith(HEAD_REF_PREFIX):
            target = head_text[len(HEAD_REF_PREFIX):].strip()
            for prefix in _HEAD_BRANCH_PREFIXES:
                if target.startswith(prefix) and len(target) > len(prefix):
                    return validate_reference_name(target[len(prefix):])
        raise InvalidReferenceError(
            HEAD_FILE_NAME,
            f"Invalid reference: HEAD contains '{head_text}', expected "
            f"'{HEAD_REF_PREFIX}{HEAD_BRANCH_PREFIX}<branch>'.",
        )

    def write_head(self, branch: str) -> None:
        """Point ``HEAD`` at a branch."""
        validate_reference_name(branch)
        atomic_write_text(
            self._control_dir / HEAD_FILE_NAME, f"{HEAD_REF_PREFIX}{HEAD_BRANCH_PREFIX}{branch}"
        )

    def _ref_path(self, namespace: str, name: str) -> Path:
        return self._namespace_dir(namespace) / validate_reference_name(name)

    def _namespace_dir(self, namespace: str) -> Path:
        if namespace not in REFERENCE_NAMESPACES:
            raise InvalidReferenceError(
                f"{REFS_DIR_NAME}/{namespace}",
                f"Invalid reference namespace '{namespace}'. "
                f"Use one of: {', '.join(REFERENCE_NAMESPACES)}.",
            )
        return self._refs_dir / namespace


def validate_reference_name(name: str) -> str:
    """Validate a branch or tag name usable as a relative file path.

    Raises:
        InvalidReferenceError: If the name is empty or escapes its namespace.
    """
    parts = name.split("/")
    if (
        not name
        or name != name.strip()
        or any(character.isspace() for character in name)
        or any(part in ("", ".", "..") for part in parts)
        or any(part.startswith(".") for part in parts)
    ):
        raise InvalidReferenceError(
            name,
            f"Invalid reference name '{name}'. Names must be non-empty, contain no "
            "whitespace, and have no empty, '.', or '..' path components.",
        )
    return name


def _read_pointer(pointer_path: Path, label: str) -> str:
    """Read and trim a pointer file."""
    try:
        value = pointer_path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as error:
        raise InvalidReferenceError(
            label, f"Invalid reference: {label} is missing or unreadable ({error})."
        ) from error
    if not value:
        raise InvalidReferenceError(label, f"Invalid reference: {label} is empty.")
    return value
