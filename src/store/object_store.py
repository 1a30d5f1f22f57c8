"""Content-addressed tensor blob store.

This module persists whole tensor collections as safetensors blobs
named by the hex content digest under ``.wts/objects``.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from safetensors import SafetensorError
from safetensors.numpy import load_file, save_file

from core.errors import ObjectNotFoundError, WtsCodecError, WtsIoError
from core.logging_config import get_logger
from core.types import TensorCollection
from store.atomic_write import atomic_write_with
from store.content_hash import digest_to_hex, dtype_tag, normalize_hex_digest

_LOGGER = get_logger(__name__)


class ObjectStore:
    """Filesystem-backed tensor blob store keyed by content digest."""

    def __init__(self, objects_dir: Path) -> None:
        self._objects_dir = objects_dir

    def put(self, digest: bytes, tensors: TensorCollection) -> Path:
        """Persist a tensor collection under its digest.

        Writing an existing digest is a no-op: content addressing
        guarantees the stored payload is identical. Arrays are stored in
        little-endian C order, so a big-endian input loads back with equal
        values but native little-endian bytes, matching how the digest
        already treats both byte orders.

        Args:
            digest: Content digest of ``tensors``.
            tensors: Tensor collection to persist.

        Returns:
            Final blob path.

        Raises:
            WtsCodecError: If the collection cannot be encoded.
            WtsIoError: If the blob cannot be written.
        """
        hex_digest = digest_to_hex(digest)
        object_path = self._objects_dir / hex_digest
        if object_path.exists():
            _LOGGER.debug("object_exists", hash=hex_digest)
            return object_path
        payload = _prepare_payload(tensors)
        atomic_write_with(object_path, lambda temp_path: _save_payload(payload, temp_path))
        _LOGGER.info("object_written", hash=hex_digest, tensor_count=len(payload))
        return object_path

    def get(self, hex_digest: str) -> dict[str, np.ndarray]:
        """Load a tensor collection by hex digest.

        Args:
            hex_digest: Hex-encoded content digest.

        Returns:
            Mapping of tensor name to array.

        Raises:
            ObjectNotFoundError: If no blob exists for the digest.
            WtsCodecError: If the blob is not a valid container.
        """
        object_path = self.path_for(hex_digest)
        if not object_path.is_file():
            raise ObjectNotFoundError(
                hex_digest,
                f"Object not found: no tensor blob for {hex_digest} at {object_path}.",
            )
        try:
            return load_file(str(object_path))
        except OSError as error:
            raise WtsIoError(f"Failed to read tensor blob {object_path}: {error}.") from error
        except (SafetensorError, ValueError) as error:
            raise WtsCodecError(
                f"Failed to decode tensor blob {object_path}: {error}. "
                "The object is corrupted or was not written by wts."
            ) from error

    def exists(self, hex_digest: str) -> bool:
        """Return whether a blob exists for the digest; malformed keys never exist."""
        try:
            return self.path_for(hex_digest).is_file()
        except ObjectNotFoundError:
            return False

    def path_for(self, hex_digest: str) -> Path:
        """Return the blob path for a validated hex digest."""
        return self._objects_dir / normalize_hex_digest(hex_digest)


def _prepare_payload(tensors: TensorCollection) -> dict[str, np.ndarray]:
    """Convert a collection into contiguous little-endian arrays.

    Raises:
        WtsCodecError: If any tensor has an unsupported dtype.
    """
    payload: dict[str, np.ndarray] = {}
    for name in sorted(tensors):
        array = np.asarray(tensors[name])
        dtype_tag(array.dtype, name)
        payload[name] = np.asarray(array, dtype=array.dtype.newbyteorder("<"), order="C")
    return payload


def _save_payload(payload: dict[str, np.ndarray], temp_path: Path) -> None:
    """Write payload through the safetensors codec."""
    try:
        save_file(payload, str(temp_path))
    except (SafetensorError, ValueError, TypeError) as error:
        raise WtsCodecError(
            f"Failed to encode tensor collection: {error}. "
            "Ensure every tensor is a numeric array with a supported dtype."
        ) from error
