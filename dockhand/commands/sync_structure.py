"""Reconcile ``structure.sql`` with the migrations on disk."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from dockhand import config as config_module
from dockhand.forge import git
from dockhand.structure import reconcile
from dockhand.utils import normalise_repo_root
from dockhand.utils.path import relative_to_root

if typ.TYPE_CHECKING:
    from pathlib import Path

    from dockhand.config import DockhandConfig
    from dockhand.structure import ReconcileResult

LOGGER = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class SyncOptions:
    """Options for a ``sync-structure`` run."""

    checkout: bool = True
    dry_run: bool = False
    configuration: DockhandConfig | None = None


def checkout_structure_file(
    repo_root: Path, remote: str, branch: str, structure_file: str
) -> None:
    """Replace ``structure_file`` with its copy from ``remote/branch``."""
    LOGGER.info("Checking out %s from %s/%s...", structure_file, remote, branch)
    git("checkout", f"{remote}/{branch}", "--", structure_file, cwd=repo_root)


def run(
    repo_root: Path | str,
    branch: str,
    options: SyncOptions | None = None,
) -> str:
    """Refresh the schema dump from ``branch`` and append missing migrations."""
    options = SyncOptions() if options is None else options
    root_path = normalise_repo_root(repo_root)
    configuration = config_module.ensure_configuration(options.configuration, root_path)
    settings = configuration.sync_structure
    if options.checkout:
        checkout_structure_file(
            root_path, settings.remote, branch, settings.structure_file
        )
    result = reconcile(
        root_path / settings.structure_file,
        root_path / settings.migrations_dir,
        pattern=settings.migration_glob,
        dry_run=options.dry_run,
    )
    return _format_result(result, root_path, dry_run=options.dry_run)


def _format_result(result: ReconcileResult, root_path: Path, *, dry_run: bool) -> str:
    """Summarise the reconciliation outcome for CLI presentation."""
    display_path = relative_to_root(result.structure_file, root_path)
    if result.up_to_date:
        return f"No missing migrations found; {display_path} is up to date."
    count = len(result.missing)
    if dry_run:
        header = (
            f"Dry run; would append {count} missing migration(s) to {display_path}:"
        )
    else:
        header = f"Appended {count} missing migration(s) to {display_path}:"
    return "\n".join([header, *(f"- {identifier}" for identifier in result.missing)])
