"""Tests for merging missing migrations into ``structure.sql``."""

from __future__ import annotations

import textwrap
import typing as typ

import pytest

from dockhand.structure import (
    StructureFileNotFoundError,
    StructureFormatError,
    append_missing_ids,
    extract_recorded_ids,
    missing_ids,
    reconcile,
    scan_migration_ids,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

STRUCTURE = textwrap.dedent(
    """\
    SET search_path TO "$user", public;

    INSERT INTO "schema_migrations" (version) VALUES
    ('20230101000000'),
    ('20230102000000');


    """
)


def _write_migrations(directory: Path, *names: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text("# migration\n", encoding="utf-8")


def _terminator_lines(text: str) -> list[str]:
    return [
        line
        for line in text.splitlines()
        if line.startswith("('") and line.endswith(";")
    ]


@pytest.mark.parametrize(
    ("disk", "recorded", "expected"),
    [
        ((), (), ()),
        (("1", "2", "3"), (), ("1", "2", "3")),
        (("1", "2", "3"), ("1", "2", "3"), ()),
        (("1", "3", "5"), ("2", "3", "4"), ("1", "5")),
        (("1", "2"), ("0", "1", "2", "9"), ()),
    ],
)
def test_missing_ids_returns_sorted_difference(
    disk: tuple[str, ...], recorded: tuple[str, ...], expected: tuple[str, ...]
) -> None:
    """Only identifiers on disk and absent from the dump are reported."""
    assert missing_ids(disk, recorded) == expected


def test_scan_migration_ids_filters_and_sorts(tmp_path: Path) -> None:
    """Only ``<14 digits>_<name>.<ext>`` files contribute identifiers."""
    _write_migrations(
        tmp_path,
        "20230103000000_add_users.rb",
        "20230101000000_create_accounts.rb",
        "README.md",
        "2023010100000_too_short.rb",
        "20230102000000_noext",
    )
    (tmp_path / "20230104000000_directory.rb").mkdir()

    assert scan_migration_ids(tmp_path) == ("20230101000000", "20230103000000")


def test_scan_migration_ids_honours_glob(tmp_path: Path) -> None:
    """The glob narrows which files are considered."""
    _write_migrations(tmp_path, "20230101000000_a.rb", "20230102000000_b.sql")

    assert scan_migration_ids(tmp_path, "*.rb") == ("20230101000000",)


def test_scan_migration_ids_missing_directory(tmp_path: Path) -> None:
    """A missing migrations directory yields no identifiers."""
    assert scan_migration_ids(tmp_path / "absent") == ()


def test_extract_recorded_ids_deduplicates(tmp_path: Path) -> None:
    """Recorded identifiers are sorted and unique."""
    path = tmp_path / "structure.sql"
    path.write_text(
        "('20230102000000'),\n('20230101000000'),\n('20230102000000');\n",
        encoding="utf-8",
    )

    assert extract_recorded_ids(path) == ("20230101000000", "20230102000000")


def test_extract_recorded_ids_missing_file(tmp_path: Path) -> None:
    """A missing dump raises a dedicated error."""
    path = tmp_path / "structure.sql"
    with pytest.raises(StructureFileNotFoundError) as excinfo:
        extract_recorded_ids(path)
    assert str(path) in str(excinfo.value)
    assert isinstance(excinfo.value, FileNotFoundError)


def test_append_missing_ids_moves_terminator() -> None:
    """Appended identifiers follow the old terminator, which becomes ``),``."""
    patched = append_missing_ids(STRUCTURE, ["20230103000000", "20230104000000"])

    assert "('20230102000000'),\n('20230103000000'),\n('20230104000000');\n" in (
        patched
    )
    assert _terminator_lines(patched) == ["('20230104000000');"]
    assert patched.endswith(";\n\n\n")


def test_append_missing_ids_without_missing_is_identity() -> None:
    """Nothing to append leaves the text unchanged."""
    assert append_missing_ids(STRUCTURE, []) == STRUCTURE


def test_append_missing_ids_preserves_crlf() -> None:
    """Windows line endings survive the patch."""
    text = STRUCTURE.replace("\n", "\r\n")

    patched = append_missing_ids(text, ["20230103000000"])

    assert "('20230102000000'),\r\n('20230103000000');\r\n" in patched
    assert "\n" not in patched.replace("\r\n", "")


def test_append_missing_ids_terminator_on_last_line() -> None:
    """A terminator without a trailing newline stays without one."""
    patched = append_missing_ids("('20230101000000');", ["20230102000000"])

    assert patched == "('20230101000000'),\n('20230102000000');"


def test_append_missing_ids_uses_last_terminator() -> None:
    """With several blocks only the last terminator is extended."""
    text = "('20230101000000');\n-- other\n('20230102000000');\n"

    patched = append_missing_ids(text, ["20230103000000"])

    assert patched == (
        "('20230101000000');\n-- other\n"
        "('20230102000000'),\n('20230103000000');\n"
    )


def test_append_missing_ids_without_block() -> None:
    """A dump without a migration block is rejected."""
    with pytest.raises(StructureFormatError, match="Could not find"):
        append_missing_ids("CREATE TABLE foo ();\n", ["20230101000000"])


def test_reconcile_appends_missing(tmp_path: Path) -> None:
    """Missing migrations are written to the dump."""
    structure = tmp_path / "structure.sql"
    structure.write_text(STRUCTURE, encoding="utf-8")
    migrations = tmp_path / "migrate"
    _write_migrations(
        migrations,
        "20230101000000_a.rb",
        "20230102000000_b.rb",
        "20230103000000_c.rb",
    )

    result = reconcile(structure, migrations)

    assert result.missing == ("20230103000000",)
    assert result.written is True
    assert result.disk_count == 3
    assert result.recorded_count == 2
    text = structure.read_text(encoding="utf-8")
    assert _terminator_lines(text) == ["('20230103000000');"]


def test_reconcile_is_idempotent(tmp_path: Path) -> None:
    """A second run finds nothing to do and leaves the file untouched."""
    structure = tmp_path / "structure.sql"
    structure.write_text(STRUCTURE, encoding="utf-8")
    migrations = tmp_path / "migrate"
    _write_migrations(migrations, "20230105000000_e.rb")

    reconcile(structure, migrations)
    first = structure.read_bytes()
    result = reconcile(structure, migrations)

    assert result.up_to_date
    assert result.written is False
    assert structure.read_bytes() == first


def test_reconcile_dry_run_leaves_file(tmp_path: Path) -> None:
    """Dry runs report missing identifiers without writing."""
    structure = tmp_path / "structure.sql"
    structure.write_text(STRUCTURE, encoding="utf-8")
    migrations = tmp_path / "migrate"
    _write_migrations(migrations, "20230105000000_e.rb")

    result = reconcile(structure, migrations, dry_run=True)

    assert result.missing == ("20230105000000",)
    assert result.written is False
    assert structure.read_text(encoding="utf-8") == STRUCTURE


def test_reconcile_format_error_leaves_file(tmp_path: Path) -> None:
    """A dump without a migration block is left byte-for-byte unchanged."""
    structure = tmp_path / "structure.sql"
    original = "CREATE TABLE foo ();\n"
    structure.write_text(original, encoding="utf-8")
    migrations = tmp_path / "migrate"
    _write_migrations(migrations, "20230101000000_a.rb")

    with pytest.raises(StructureFormatError):
        reconcile(structure, migrations)

    assert structure.read_text(encoding="utf-8") == original
    assert sorted(path.name for path in tmp_path.iterdir()) == [
        "migrate",
        "structure.sql",
    ]
