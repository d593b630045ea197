"""Filesystem path helpers used across :mod:`dockhand`."""

from __future__ import annotations

from pathlib import Path

from plumbum import local


def normalise_repo_root(value: Path | str | None) -> Path:
    """Return an absolute repository path with ``~`` expanded."""
    if value is None:
        return Path.cwd().resolve()
    candidate = local.path(str(value))
    expanded = Path(str(candidate)).expanduser()
    return expanded.resolve(strict=False)


def relative_to_root(path: Path, repo_root: Path) -> str:
    """Return ``path`` relative to ``repo_root`` when possible."""
    try:
        relative = path.relative_to(repo_root)
    except ValueError:
        return str(path)
    return str(relative)
