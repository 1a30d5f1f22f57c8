"""Commit record persistence.

This module serializes commit records to JSON files under
``.wts/commits/<hex>.json`` and validates them on the way back in.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
from pathlib import Path
from typing import Any

from core.constants import COMMIT_RECORD_SUFFIX, DIGEST_SIZE_BYTES, TIMESTAMP_FRACTION_DIGITS
from core.errors import ObjectNotFoundError, WtsCodecError, WtsIoError
from core.types import Commit
from store.atomic_write import atomic_write_text
from store.content_hash import normalize_hex_digest

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_RECORD_FIELDS = ("hash", "parent_hash", "timestamp", "message")


class CommitStore:
    """Filesystem-backed commit record store keyed by content digest."""

    def __init__(self, commits_dir: Path) -> None:
        self._commits_dir = commits_dir

    def put(self, commit: Commit) -> Path:
        """Persist a commit record, replacing any record with the same key.

        Args:
            commit: Commit record to write.

        Returns:
            Record file path.

        Raises:
            WtsCodecError: If metadata is not JSON-serializable.
            WtsIoError: If the record cannot be written.
        """
        record_path = self.path_for(commit.hex_hash)
        try:
            record_text = json.dumps(commit_to_payload(commit), indent=2)
        except (TypeError, ValueError) as error:
            raise WtsCodecError(
                f"Failed to encode commit {commit.hex_hash}: {error}. "
                "Commit metadata must be JSON-serializable."
            ) from error
        atomic_write_text(record_path, record_text + "\n")
        return record_path

    def get(self, hex_digest: str) -> Commit:
        """Load a commit record by hex digest.

        Args:
            hex_digest: Hex-encoded content digest.

        Returns:
            Parsed commit record.

        Raises:
            ObjectNotFoundError: If no record exists for the digest.
            WtsCodecError: If the record is malformed.
        """
        record_path = self.path_for(hex_digest)
        try:
            record_text = record_path.read_text(encoding="utf-8")
        except FileNotFoundError as error:
            raise ObjectNotFoundError(
                hex_digest,
                f"Object not found: no commit record for {hex_digest} at {record_path}.",
            ) from error
        except OSError as error:
            raise WtsIoError(f"Failed to read commit record {record_path}: {error}.") from error
        try:
            payload = json.loads(record_text)
        except json.JSONDecodeError as error:
            raise WtsCodecError(
                f"Failed to parse commit record at {record_path}: {error.msg}. "
                "The record is corrupted or was not written by wts."
            ) from error
        return commit_from_payload(payload, record_path)

    def exists(self, hex_digest: str) -> bool:
        """Return whether a record exists for the digest; malformed keys never exist."""
        try:
            return self.path_for(hex_digest).is_file()
        except ObjectNotFoundError:
            return False

    def path_for(self, hex_digest: str) -> Path:
        """Return the record path for a validated hex digest."""
        return self._commits_dir / f"{normalize_hex_digest(hex_digest)}{COMMIT_RECORD_SUFFIX}"


def commit_to_payload(commit: Commit) -> dict[str, object]:
    """Serialize a Commit into a JSON-safe payload.

    Args:
        commit: Commit record.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "hash": list(commit.hash),
        "parent_hash": list(commit.parent_hash) if commit.parent_hash is not None else None,
        "timestamp": format_timestamp(commit.timestamp),
        "message": commit.message,
        "metadata": commit.metadata,
    }


def commit_from_payload(payload: Any, record_path: Path) -> Commit:
    """Deserialize and validate a commit payload.

    Args:
        payload: Parsed JSON value.
        record_path: Source path for error context.

    Returns:
        Typed commit record.

    Raises:
        WtsCodecError: If the payload does not match the record shape.
    """
    if not isinstance(payload, dict):
        raise _shape_error(record_path, "expected a JSON object at top level")
    missing = [field for field in _RECORD_FIELDS if field not in payload]
    if missing:
        raise _shape_error(record_path, f"missing field(s) {', '.join(missing)}")
    message = payload["message"]
    if not isinstance(message, str):
        raise _shape_error(record_path, "'message' must be a string")
    parent_payload = payload["parent_hash"]
    return Commit(
        hash=_parse_digest_bytes(payload["hash"], "hash", record_path),
        parent_hash=None
        if parent_payload is None
        else _parse_digest_bytes(parent_payload, "parent_hash", record_path),
        timestamp=_parse_record_timestamp(payload["timestamp"], record_path),
        message=message,
        metadata=payload.get("metadata"),
    )


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp as seconds since epoch with six decimals."""
    delta = timestamp.astimezone(timezone.utc) - _EPOCH
    seconds = delta.days * 86400 + delta.seconds
    return f"{seconds}.{delta.microseconds:0{TIMESTAMP_FRACTION_DIGITS}d}"


def parse_timestamp(value: str) -> datetime:
    """Parse ``<seconds>.<micros>`` text into an aware UTC datetime.

    Raises:
        ValueError: If the text is not a valid timestamp.
    """
    seconds_text, _, fraction_text = value.strip().partition(".")
    if not seconds_text.lstrip("-").isdigit():
        raise ValueError(f"invalid seconds component in '{value}'")
    if fraction_text and not fraction_text.isdigit():
        raise ValueError(f"invalid fractional component in '{value}'")
    fraction = fraction_text[:TIMESTAMP_FRACTION_DIGITS].ljust(TIMESTAMP_FRACTION_DIGITS, "0")
    return _EPOCH + timedelta(seconds=int(seconds_text), microseconds=int(fraction))


def _parse_record_timestamp(value: object, record_path: Path) -> datetime:
    if not isinstance(value, str):
        raise _shape_error(record_path, "'timestamp' must be a string")
    try:
        return parse_timestamp(value)
    except ValueError as error:
        raise _shape_error(record_path, f"invalid timestamp: {error}") from error


def _parse_digest_bytes(value: object, field_name: str, record_path: Path) -> bytes:
    """Validate a JSON byte array holding a digest."""
    if not isinstance(value, list) or len(value) != DIGEST_SIZE_BYTES:
        raise _shape_error(
            record_path, f"'{field_name}' must be an array of {DIGEST_SIZE_BYTES} bytes"
        )
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
        raise _shape_error(record_path, f"'{field_name}' must contain integers")
    try:
        return bytes(value)
    except ValueError as error:
        raise _shape_error(record_path, f"'{field_name}' has out-of-range bytes") from error


def _shape_error(record_path: Path, detail: str) -> WtsCodecError:
    return WtsCodecError(
        f"Invalid commit record at {record_path}: {detail}. "
        "The record is corrupted or was not written by wts."
    )
