"""Content hashing for tensor collections.

This module derives the SHA-512 identity of a tensor collection and
converts digests between raw bytes and their hex storage keys.
"""

from __future__ import annotations

import hashlib
import string

import numpy as np

from core.constants import DIGEST_SIZE_BYTES, DTYPE_TAGS, HASH_ALGORITHM
from core.errors import ObjectNotFoundError, WtsCodecError
from core.types import TensorCollection

_HEX_DIGITS = frozenset(string.hexdigits.lower())


def compute_content_digest(tensors: TensorCollection) -> bytes:
    """Compute the deterministic content digest of a tensor collection.

    Names are sorted before hashing. For each tensor the hash consumes the
    name, the shape descriptor, the dtype tag, and the raw element bytes.

    Args:
        tensors: Mapping from tensor name to array value.

    Returns:
        64-byte digest.

    Raises:
        WtsCodecError: If a tensor has an unsupported dtype.
    """
    hash_builder = hashlib.new(HASH_ALGORITHM)
    for name in sorted(tensors):
        array = np.asarray(tensors[name])
        hash_builder.update(name.encode("utf-8"))
        hash_builder.update(shape_descriptor(array.shape).encode("utf-8"))
        hash_builder.update(dtype_tag(array.dtype, name).encode("utf-8"))
        hash_builder.update(tensor_bytes(array))
    return hash_builder.digest()


def shape_descriptor(shape: tuple[int, ...]) -> str:
    """Render a shape as stable text, e.g. ``[2, 3]``."""
    return "[" + ", ".join(str(int(dim)) for dim in shape) + "]"


def dtype_tag(dtype: np.dtype, name: str = "<tensor>") -> str:
    """Map a numpy dtype to its container dtype tag.

    Raises:
        WtsCodecError: If dtype has no container representation.
    """
    tag = DTYPE_TAGS.get(np.dtype(dtype).name)
    if tag is None:
        raise WtsCodecError(
            f"Unsupported dtype '{dtype}' for tensor '{name}'. "
            f"Convert it to one of: {', '.join(sorted(DTYPE_TAGS))}."
        )
    return tag


def tensor_bytes(array: np.ndarray) -> bytes:
    """Return little-endian C-order element bytes of an array."""
    little_endian = array.dtype.newbyteorder("<")
    return np.asarray(array, dtype=little_endian, order="C").tobytes()


def digest_to_hex(digest: bytes) -> str:
    """Encode a raw digest as its lowercase hex key."""
    return digest.hex()


def digest_from_hex(hex_digest: str) -> bytes:
    """Decode and validate a hex digest key.

    Args:
        hex_digest: Hex-encoded digest.

    Returns:
        Raw 64-byte digest.

    Raises:
        ObjectNotFoundError: If the key is not a well-formed digest.
    """
    normalized = normalize_hex_digest(hex_digest)
    return bytes.fromhex(normalized)


def normalize_hex_digest(hex_digest: str) -> str:
    """Lowercase, trim, and validate a hex digest key.

    Raises:
        ObjectNotFoundError: If the key is not a well-formed digest.
    """
    normalized = hex_digest.strip().lower()
    if len(normalized) != DIGEST_SIZE_BYTES * 2 or not set(normalized) <= _HEX_DIGITS:
        raise ObjectNotFoundError(
            hex_digest,
            f"Object not found: '{hex_digest}' is not a {DIGEST_SIZE_BYTES * 2}-character "
            "hex digest.",
        )
    return normalized
