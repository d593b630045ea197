"""Atomic file persistence."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path


def read_text_preserving_newlines(path: Path) -> str:
    """Return the UTF-8 text of ``path`` with its line endings untranslated."""
    with path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def write_atomic_text(path: Path, content: str) -> None:
    """Persist ``content`` to ``path`` atomically using UTF-8 encoding.

    The content is written to a sibling temporary file which then replaces
    ``path``. An interruption before the final rename leaves the original
    file untouched. The existing file mode is carried over when present.
    """
    dirpath = path.parent
    existing_mode: int | None = None
    with suppress(FileNotFoundError):
        existing_mode = path.stat().st_mode
    fd, tmp_path = tempfile.mkstemp(dir=dirpath, prefix=f"{path.name}.", text=True)
    try:
        if existing_mode is not None:
            with suppress(AttributeError):
                os.fchmod(fd, existing_mode)  # not available on Windows
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        Path(tmp_path).replace(path)
    finally:
        with suppress(FileNotFoundError):
            Path(tmp_path).unlink()
