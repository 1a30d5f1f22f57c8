"""Pytest configuration for repository test runs."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from core.config import WtsConfig  # noqa: E402
from store.repository import Repository  # noqa: E402


@pytest.fixture
def wts_config(tmp_path: Path) -> WtsConfig:
    """Config rooted at an isolated temporary directory."""
    return replace(
        WtsConfig.from_env(),
        repo_root=tmp_path,
        default_branch="main",
        search_parents=False,
    )


@pytest.fixture
def repository(wts_config: WtsConfig) -> Repository:
    """Freshly initialized repository."""
    return Repository.init(wts_config)
