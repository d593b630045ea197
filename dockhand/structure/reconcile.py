"""Merge missing migration identifiers into the schema dump.

The dump records applied migrations as a block of lines shaped like
``('<id>'),`` closed by a single ``('<id>');`` line. Missing identifiers are
appended after that closing line, which is turned into a continuation, so
the block keeps exactly one terminator.

When a dump contains several blocks matching this shape, the last
terminator in the file is used.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from dockhand.errors import DockhandError
from dockhand.utils import read_text_preserving_newlines, write_atomic_text

from .scan import extract_recorded_ids, scan_migration_ids

if typ.TYPE_CHECKING:
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

_TERMINATOR_LINE: typ.Final[re.Pattern[str]] = re.compile(r"^\('\d{14}'\);")
_TERMINATOR_SUFFIX: typ.Final[re.Pattern[str]] = re.compile(r"\);\s*$")


class StructureFormatError(DockhandError):
    """Raised when the migration list block cannot be located."""


@dc.dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of comparing migrations on disk with the schema dump."""

    structure_file: Path
    disk_count: int
    recorded_count: int
    missing: tuple[str, ...]
    written: bool

    @property
    def up_to_date(self) -> bool:
        """Return ``True`` when no identifiers were missing."""
        return not self.missing


def missing_ids(
    disk: typ.Sequence[str], recorded: typ.Sequence[str]
) -> tuple[str, ...]:
    """Return identifiers in ``disk`` absent from ``recorded``.

    Both inputs must be sorted and free of duplicates. The sequences are
    walked together once, so the cost is linear in their combined length.
    """
    result: list[str] = []
    recorded_index = 0
    recorded_length = len(recorded)
    for identifier in disk:
        while (
            recorded_index < recorded_length
            and recorded[recorded_index] < identifier
        ):
            recorded_index += 1
        if recorded_index < recorded_length and recorded[recorded_index] == identifier:
            recorded_index += 1
            continue
        result.append(identifier)
    return tuple(result)


def _find_terminator(lines: typ.Sequence[str]) -> int:
    """Return the index of the last ``('<id>');`` line in ``lines``."""
    for index in range(len(lines) - 1, -1, -1):
        if _TERMINATOR_LINE.match(lines[index]):
            return index
    message = "Could not find the migration list in the structure file"
    raise StructureFormatError(message)


def _split_line_ending(line: str) -> tuple[str, str]:
    """Split ``line`` into its content and trailing newline characters."""
    body = line.rstrip("\r\n")
    return body, line[len(body) :]


def append_missing_ids(text: str, missing: typ.Sequence[str]) -> str:
    """Return ``text`` with ``missing`` appended to its migration block."""
    if not missing:
        return text
    lines = text.splitlines(keepends=True)
    index = _find_terminator(lines)
    head = lines[: index + 1]
    tail = lines[index + 1 :]

    body, ending = _split_line_ending(head[-1])
    newline = ending or "\n"
    head[-1] = _TERMINATOR_SUFFIX.sub("),", body) + newline

    appended = [f"('{identifier}'),{newline}" for identifier in missing]
    appended[-1] = f"('{missing[-1]}');{ending}"
    return "".join([*head, *appended, *tail])


def patch_structure_file(path: Path, missing: typ.Sequence[str]) -> bool:
    """Append ``missing`` to the dump at ``path``; return ``True`` if written."""
    if not missing:
        return False
    text = read_text_preserving_newlines(path)
    write_atomic_text(path, append_missing_ids(text, missing))
    return True


def reconcile(
    structure_file: Path,
    migrations_dir: Path,
    *,
    pattern: str = "*",
    dry_run: bool = False,
) -> ReconcileResult:
    """Compare ``migrations_dir`` with ``structure_file`` and add what is missing."""
    LOGGER.info("Finding migrations on disk...")
    disk = scan_migration_ids(migrations_dir, pattern)
    LOGGER.info("  Found %d migration(s) on disk", len(disk))
    LOGGER.info("Reading migrations from %s...", structure_file.name)
    recorded = extract_recorded_ids(structure_file)
    missing = missing_ids(disk, recorded)
    for identifier in missing:
        LOGGER.info("  Missing: %s", identifier)
    written = False
    if missing and not dry_run:
        written = patch_structure_file(structure_file, missing)
    elif missing:
        # Dry runs still reject a dump without a migration block.
        append_missing_ids(read_text_preserving_newlines(structure_file), missing)
    return ReconcileResult(
        structure_file=structure_file,
        disk_count=len(disk),
        recorded_count=len(recorded),
        missing=missing,
        written=written,
    )
