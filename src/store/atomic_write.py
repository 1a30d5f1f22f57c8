"""Atomic file replacement helpers.

Writers produce a temporary sibling file and rename it over the target,
so readers never observe a partially written object, record, or ref.
"""

from __future__ import annotations

import os
from pathlib import Path
import tempfile
from typing import Callable

from core.errors import WtsIoError


def atomic_write_text(target_path: Path, text: str) -> None:
    """Atomically replace a text file.

    Args:
        target_path: Final file path.
        text: UTF-8 text payload.

    Raises:
        WtsIoError: If the file cannot be written.
    """
    atomic_write_with(target_path, lambda temp_path: temp_path.write_text(text, encoding="utf-8"))


def atomic_write_with(target_path: Path, writer: Callable[[Path], object]) -> None:
    """Run a writer against a temporary sibling path, then rename it into place.

    Exceptions raised by ``writer`` propagate unchanged after the temporary
    file is removed; filesystem failures are raised as ``WtsIoError``.

    Args:
        target_path: Final file path.
        writer: Callable that writes the full payload to the given path.

    Raises:
        WtsIoError: If the temporary file cannot be created or renamed.
    """
    try:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        file_descriptor, temp_name = tempfile.mkstemp(
            prefix=f".{target_path.name}.",
            suffix=".tmp",
            dir=target_path.parent,
        )
        os.close(file_descriptor)
    except OSError as error:
        raise WtsIoError(
            f"Failed to create temporary file next to {target_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    temp_path = Path(temp_name)
    try:
        # mkstemp creates 0600 files; match what a plain open() would produce.
        os.chmod(temp_path, 0o666 & ~_current_umask())
        writer(temp_path)
        os.replace(temp_path, target_path)
    except OSError as error:
        temp_path.unlink(missing_ok=True)
        raise WtsIoError(
            f"Failed to write {target_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def _current_umask() -> int:
    """Return the process umask without changing it."""
    umask = os.umask(0)
    os.umask(umask)
    return umask
