"""Migration list reconciliation for schema dumps."""

from __future__ import annotations

from .reconcile import (
    ReconcileResult,
    StructureFormatError,
    append_missing_ids,
    missing_ids,
    patch_structure_file,
    reconcile,
)
from .scan import (
    StructureFileNotFoundError,
    extract_recorded_ids,
    scan_migration_ids,
)

__all__ = [
    "ReconcileResult",
    "StructureFileNotFoundError",
    "StructureFormatError",
    "append_missing_ids",
    "extract_recorded_ids",
    "missing_ids",
    "patch_structure_file",
    "reconcile",
    "scan_migration_ids",
]
