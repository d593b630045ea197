"""Collect migration identifiers from disk and from the schema dump."""

from __future__ import annotations

import re
import typing as typ

from dockhand.errors import DockhandError

if typ.TYPE_CHECKING:
    from pathlib import Path

_MIGRATION_FILENAME: typ.Final[re.Pattern[str]] = re.compile(r"^(\d{14})_.+\.[^.]+$")
_RECORDED_ID: typ.Final[re.Pattern[str]] = re.compile(r"\('(\d{14})'\)")


class StructureFileNotFoundError(DockhandError, FileNotFoundError):
    """Raised when the schema dump cannot be read."""

    def __init__(self, path: Path) -> None:
        """Record the missing ``path`` for the operator."""
        super().__init__(f"Structure file not found: {path}")
        self.path = path


def scan_migration_ids(directory: Path, pattern: str = "*") -> tuple[str, ...]:
    """Return sorted unique identifiers from migration filenames in ``directory``.

    Filenames must look like ``<14 digits>_<name>.<ext>``; anything else is
    ignored. A missing directory is treated the same as an empty one.
    """
    if not directory.is_dir():
        return ()
    identifiers: set[str] = set()
    for entry in directory.glob(pattern):
        if not entry.is_file():
            continue
        match = _MIGRATION_FILENAME.match(entry.name)
        if match is not None:
            identifiers.add(match.group(1))
    return tuple(sorted(identifiers))


def extract_recorded_ids(path: Path) -> tuple[str, ...]:
    """Return sorted unique ``('<id>')`` literals recorded in ``path``."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise StructureFileNotFoundError(path) from exc
    return tuple(sorted(set(_RECORDED_ID.findall(text))))
