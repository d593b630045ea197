"""Command-line interface for the :mod:`dockhand` toolkit."""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from contextlib import contextmanager
from pathlib import Path

from cyclopts import App, Parameter

from . import commands, config
from .errors import DockhandError, UserAbortError
from .utils import normalise_repo_root

REPO_ROOT_ENV_VAR = "DOCKHAND_REPO_ROOT"
LOG_LEVEL_ENV_VAR = "DOCKHAND_LOG_LEVEL"
REPO_ROOT_REQUIRED_MESSAGE = "--repo-root requires a value"
_REPO_ROOT_PARAMETER = Parameter(
    name="repo-root",
    env_var=REPO_ROOT_ENV_VAR,
    help="Path to the repository root.",
)
RepoRootOption = typ.Annotated[Path, _REPO_ROOT_PARAMETER]

app = App(help="Day-to-day repository chores for the dockhand toolkit.")


def _validate_repo_value(value: str) -> str:
    """Ensure ``value`` is usable as a repository path."""
    if not value or value.startswith("-"):
        raise SystemExit(REPO_ROOT_REQUIRED_MESSAGE)
    return value


def _parse_repo_flag(tokens: typ.Sequence[str], index: int) -> tuple[str, int]:
    """Parse ``--repo-root <path>`` form starting at ``index``."""
    try:
        candidate = tokens[index + 1]
    except IndexError as err:
        raise SystemExit(REPO_ROOT_REQUIRED_MESSAGE) from err
    repo = _validate_repo_value(candidate)
    return repo, index + 2


def _parse_repo_equals(argument: str, index: int) -> tuple[str, int]:
    """Parse ``--repo-root=<path>`` form for ``argument``."""
    candidate = argument.partition("=")[2]
    repo = _validate_repo_value(candidate)
    return repo, index + 1


def _extract_repo_override(
    tokens: typ.Sequence[str],
) -> tuple[str | None, list[str]]:
    """Split ``--repo-root`` from CLI tokens.

    The flag can appear in either ``--repo-root <path>`` or
    ``--repo-root=<path>`` form and the last occurrence wins. The returned
    token list can be passed directly to :func:`cyclopts.App.__call__`.
    """
    repo: str | None = None
    remainder: list[str] = []
    index = 0
    while index < len(tokens):
        current_argument = tokens[index]
        if current_argument == "--repo-root":
            repo, index = _parse_repo_flag(tokens, index)
            continue
        if current_argument.startswith("--repo-root="):
            repo, index = _parse_repo_equals(current_argument, index)
            continue
        remainder.append(current_argument)
        index += 1
    return repo, remainder


@contextmanager
def _repo_env(value: Path) -> typ.Iterator[None]:
    """Temporarily set :data:`REPO_ROOT_ENV_VAR` to ``value``."""
    previous = os.environ.get(REPO_ROOT_ENV_VAR)
    os.environ[REPO_ROOT_ENV_VAR] = str(value)
    try:
        yield
    finally:
        if previous is None:
            os.environ.pop(REPO_ROOT_ENV_VAR, None)
        else:
            os.environ[REPO_ROOT_ENV_VAR] = previous


def _configure_logging() -> None:
    """Send log records to stderr at the level named by the environment."""
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").strip().upper()
    level = logging.getLevelNamesMapping().get(level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def _dispatch_and_print(tokens: typ.Sequence[str]) -> int:
    """Execute the Cyclopts app and print command results."""
    try:
        result = app(tokens)
    except SystemExit as err:
        code = err.code
        if code is None:
            return 0
        if isinstance(code, int):
            return code
        print(code, file=sys.stderr)
        return 1
    if isinstance(result, int):
        return result
    if result is not None:
        print(result)
    return 0


def _run_command(repo_root: Path, remaining: list[str]) -> int:
    """Load configuration for ``repo_root`` and dispatch ``remaining``."""
    try:
        configuration = config.load_configuration(repo_root)
    except config.ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    try:
        with _repo_env(repo_root), config.use_configuration(configuration):
            return _dispatch_and_print(remaining)
    except UserAbortError as exc:
        print(exc)
        return exc.exit_code
    except DockhandError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Entry point for ``python -m dockhand.cli``."""
    try:
        if argv is None:
            argv = sys.argv[1:]
        repo_override, remaining = _extract_repo_override(list(argv))
        repo_root = normalise_repo_root(repo_override)
        if not remaining:
            _dispatch_and_print(remaining)  # Print usage message
            return 2  # Standard exit code for missing subcommand
        _configure_logging()
        return _run_command(repo_root, remaining)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except Exception as exc:  # noqa: BLE001 - fallback guard for CLI entry point
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 1


@app.command
def sync_structure(
    branch: str,
    *,
    repo_root: RepoRootOption | None = None,
    checkout: bool = True,
    dry_run: bool = False,
) -> str:
    """Append migrations missing from the schema dump of ``branch``.

    Parameters
    ----------
    branch
        Branch whose ``structure.sql`` is checked out before reconciling.
    checkout
        Check the schema dump out from the remote branch first.
    dry_run
        Report missing migrations without touching the file.

    """
    resolved = normalise_repo_root(repo_root)
    options = commands.sync_structure.SyncOptions(checkout=checkout, dry_run=dry_run)
    return commands.sync_structure.run(resolved, branch, options)


@app.command
def review_digest(
    project: str,
    *,
    repo_root: RepoRootOption | None = None,
    output: Path | None = None,
    open_browser: typ.Annotated[bool, Parameter(name="open")] = False,
) -> str:
    """Build a Slack digest of pull requests awaiting review or test.

    Parameters
    ----------
    project
        Issue tracker project key, for example ``DEV``.
    output
        Where to write the rich-paste HTML fragment.
    open_browser
        Open the HTML fragment in the default browser.

    """
    resolved = normalise_repo_root(repo_root)
    options = commands.review_digest.DigestOptions(
        output=output, open_browser=open_browser
    )
    return commands.review_digest.run(resolved, project, options)


@app.command
def inspect(
    ticket_key: str,
    *,
    repo_root: RepoRootOption | None = None,
) -> str:
    """Show the status and linked pull requests of one ticket."""
    resolved = normalise_repo_root(repo_root)
    return commands.inspect_ticket.run(resolved, ticket_key)


@app.command
def backport(
    pr_number: int,
    release_branch: str,
    *,
    repo_root: RepoRootOption | None = None,
    suffix: str | None = None,
) -> str:
    """Cherry-pick a merged pull request onto a release branch.

    Parameters
    ----------
    pr_number
        Number of the merged pull request.
    release_branch
        Branch receiving the backport.
    suffix
        Appended to the source branch name to form the backport branch.

    """
    resolved = normalise_repo_root(repo_root)
    options = commands.backport.BackportOptions(suffix=suffix)
    return commands.backport.run(resolved, pr_number, release_branch, options)


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    raise SystemExit(main())
