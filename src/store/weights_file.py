"""Weight file loading for commits.

This module reads tensor collections from safetensors files, and from
PyTorch state-dict checkpoints when the optional torch extra is installed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import numpy as np
from safetensors import SafetensorError
from safetensors.numpy import load_file

from core.constants import SAFETENSORS_EXTENSIONS, TORCH_WEIGHTS_EXTENSIONS
from core.errors import WtsCodecError, WtsDependencyError, WtsIoError


def load_weights_file(weights_path: str | Path) -> dict[str, np.ndarray]:
    """Load a tensor collection from a weights file.

    Args:
        weights_path: Path to a ``.safetensors`` or torch checkpoint file.

    Returns:
        Mapping of tensor name to array.

    Raises:
        WtsIoError: If the file does not exist.
        WtsCodecError: If the file cannot be decoded.
        WtsDependencyError: If a torch checkpoint is given without torch installed.
    """
    resolved_path = Path(weights_path).expanduser().resolve()
    if not resolved_path.is_file():
        raise WtsIoError(
            f"Weights file not found at {resolved_path}. "
            "Provide the path to a .safetensors or .pt file."
        )
    suffix = resolved_path.suffix.lower()
    if suffix in TORCH_WEIGHTS_EXTENSIONS:
        return _load_torch_state_dict(resolved_path)
    if suffix and suffix not in SAFETENSORS_EXTENSIONS:
        raise WtsCodecError(
            f"Unsupported weights file extension '{suffix}' for {resolved_path}. "
            f"Use one of: {', '.join(SAFETENSORS_EXTENSIONS + TORCH_WEIGHTS_EXTENSIONS)}."
        )
    try:
        return load_file(str(resolved_path))
    except (SafetensorError, ValueError) as error:
        raise WtsCodecError(
            f"Could not load tensors from {resolved_path}: {error}. "
            "Verify the file is a valid safetensors container."
        ) from error


def _load_torch_state_dict(weights_path: Path) -> dict[str, np.ndarray]:
    """Read a torch checkpoint and convert its tensors to numpy arrays."""
    torch_module = _import_torch_optional()
    try:
        payload = torch_module.load(str(weights_path), map_location="cpu", weights_only=True)
    except (OSError, RuntimeError) as error:
        raise WtsCodecError(
            f"Failed to load torch checkpoint from {weights_path}: {error}. "
            "Verify the checkpoint file is readable and valid."
        ) from error
    state_dict = _extract_state_dict(payload, weights_path)
    tensors: dict[str, np.ndarray] = {}
    for name, value in state_dict.items():
        if not hasattr(value, "detach"):
            continue
        try:
            tensors[str(name)] = value.detach().cpu().contiguous().numpy()
        except TypeError as error:
            raise WtsCodecError(
                f"Tensor '{name}' in {weights_path} has no numpy dtype: {error}. "
                "Cast it to float32 or float16 before committing."
            ) from error
    if not tensors:
        raise WtsCodecError(f"Torch checkpoint at {weights_path} contains no tensors.")
    return tensors


def _extract_state_dict(payload: object, weights_path: Path) -> Mapping[str, Any]:
    """Extract the tensor mapping from a raw checkpoint payload."""
    if isinstance(payload, Mapping):
        nested_payload = payload.get("model_state_dict")
        if isinstance(nested_payload, Mapping):
            return nested_payload
        if all(isinstance(key, str) for key in payload):
            return payload
    raise WtsCodecError(
        f"Invalid checkpoint format at {weights_path}: expected a state_dict mapping "
        "or a mapping containing model_state_dict."
    )


def _import_torch_optional() -> Any:
    """Import torch for checkpoint loading."""
    try:
        import torch
    except ImportError as error:
        raise WtsDependencyError(
            "Loading torch checkpoints requires torch, but it is not installed. "
            "Install with pip install -e .[torch] or convert the file to safetensors."
        ) from error
    return torch
