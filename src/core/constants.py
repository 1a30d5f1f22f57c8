"""Core constants used across WTS modules.

This module centralizes repository layout names and hashing parameters.
Keeping values here avoids magic literals in store logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_REPO_ROOT = Path(".")
DEFAULT_BRANCH_NAME = "main"
CONTROL_DIR_NAME = ".wts"
OBJECTS_DIR_NAME = "objects"
COMMITS_DIR_NAME = "commits"
REFS_DIR_NAME = "refs"
HEADS_NAMESPACE = "heads"
TAGS_NAMESPACE = "tags"
REFERENCE_NAMESPACES = (HEADS_NAMESPACE, TAGS_NAMESPACE)
HEAD_FILE_NAME = "HEAD"
HEAD_REF_PREFIX = "ref: "
HEAD_BRANCH_PREFIX = "ref/heads/"
COMMIT_RECORD_SUFFIX = ".json"
HASH_ALGORITHM = "sha512"
DIGEST_SIZE_BYTES = 64
TIMESTAMP_FRACTION_DIGITS = 6
TORCH_WEIGHTS_EXTENSIONS = (".pt", ".pth", ".bin")
SAFETENSORS_EXTENSIONS = (".safetensors",)
# numpy dtype name -> safetensors dtype tag
DTYPE_TAGS = {
    "bool": "BOOL",
    "uint8": "U8",
    "int8": "I8",
    "uint16": "U16",
    "int16": "I16",
    "uint32": "U32",
    "int32": "I32",
    "uint64": "U64",
    "int64": "I64",
    "float16": "F16",
    "float32": "F32",
    "float64": "F64",
}
