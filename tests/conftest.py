"""Pytest configuration for the dockhand test-suite."""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

import pytest

pytest_plugins = ("cmd_mox.pytest_plugin",)

_TRACKER_ENV_VARS = ("JIRA_HOST", "JIRA_EMAIL", "JIRA_TOKEN")


@pytest.fixture
def repo_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def _restore_repo_env() -> typ.Iterator[None]:
    """Ensure tests do not leak ``DOCKHAND_REPO_ROOT`` between runs."""
    from dockhand.cli import REPO_ROOT_ENV_VAR

    original = os.environ.get(REPO_ROOT_ENV_VAR)
    try:
        yield
    finally:
        if original is None:
            os.environ.pop(REPO_ROOT_ENV_VAR, None)
        else:
            os.environ[REPO_ROOT_ENV_VAR] = original


@pytest.fixture(autouse=True)
def _isolate_tracker_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide any tracker credentials present in the developer's shell."""
    for name in _TRACKER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
