"""Tests for filesystem and path helpers."""

from __future__ import annotations

import stat
import typing as typ

import pytest

from dockhand.utils import (
    normalise_repo_root,
    read_text_preserving_newlines,
    write_atomic_text,
)
from dockhand.utils.path import relative_to_root

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_normalise_repo_root_defaults_to_cwd(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Default repository resolution uses the current working directory."""
    monkeypatch.chdir(tmp_path)
    assert normalise_repo_root(None) == tmp_path.resolve()


def test_relative_to_root(tmp_path: Path) -> None:
    """Paths inside the root are shown relative to it."""
    assert relative_to_root(tmp_path / "db" / "x.sql", tmp_path) == "db/x.sql"
    assert relative_to_root(tmp_path.parent, tmp_path) == str(tmp_path.parent)


def test_write_atomic_text_round_trips_newlines(tmp_path: Path) -> None:
    """Line endings are written and read back untranslated."""
    path = tmp_path / "structure.sql"
    write_atomic_text(path, "a\r\nb\n")

    assert path.read_bytes() == b"a\r\nb\n"
    assert read_text_preserving_newlines(path) == "a\r\nb\n"
    assert [entry.name for entry in tmp_path.iterdir()] == ["structure.sql"]


def test_write_atomic_text_keeps_mode(tmp_path: Path) -> None:
    """Replacing a file keeps its permission bits."""
    path = tmp_path / "structure.sql"
    path.write_text("old", encoding="utf-8")
    path.chmod(0o640)

    write_atomic_text(path, "new")

    assert path.read_text(encoding="utf-8") == "new"
    assert stat.S_IMODE(path.stat().st_mode) == 0o640
