"""Runtime configuration model for WTS.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_BRANCH_NAME, DEFAULT_REPO_ROOT
from core.errors import WtsConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class WtsConfig:
    """Validated runtime configuration.

    Attributes:
        repo_root: Directory holding (or searched for) the ``.wts`` control directory.
        default_branch: Branch name written to ``HEAD`` by ``init``.
        search_parents: Whether ``open`` walks up parent directories.
    """

    repo_root: Path
    default_branch: str
    search_parents: bool

    @classmethod
    def from_env(cls) -> "WtsConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            WtsConfigError: If environment values are invalid.
        """
        repo_root_value = os.getenv("WTS_REPO_ROOT", str(DEFAULT_REPO_ROOT))
        default_branch = _parse_branch_name(os.getenv("WTS_DEFAULT_BRANCH", DEFAULT_BRANCH_NAME))
        search_parents = _parse_flag("WTS_SEARCH_PARENTS", os.getenv("WTS_SEARCH_PARENTS", "1"))
        return cls(
            repo_root=Path(repo_root_value).expanduser().resolve(),
            default_branch=default_branch,
            search_parents=search_parents,
        )


def _parse_branch_name(raw_value: str) -> str:
    """Validate the default branch environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Stripped branch name.

    Raises:
        WtsConfigError: If the value cannot name a branch file.
    """
    value = raw_value.strip()
    if not value or value.startswith("/") or ".." in value.split("/") or " " in value:
        raise WtsConfigError(
            "Invalid WTS_DEFAULT_BRANCH value: "
            f"got '{raw_value}'. Use a simple branch name such as 'main'."
        )
    return value


def _parse_flag(variable: str, raw_value: str) -> bool:
    """Parse a boolean environment flag.

    Args:
        variable: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean.

    Raises:
        WtsConfigError: If value is not a recognized boolean spelling.
    """
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise WtsConfigError(
        f"Invalid {variable} value: expected one of "
        f"{', '.join(_TRUE_VALUES + _FALSE_VALUES)}, got '{raw_value}'."
    )
