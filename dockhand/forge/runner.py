"""Thin wrappers for invoking ``git`` and ``gh`` through :mod:`plumbum`."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from plumbum import local
from plumbum.commands.processes import CommandNotFound

from dockhand.errors import DockhandError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from plumbum.commands.base import BoundCommand

LOGGER = logging.getLogger(__name__)


class CommandError(DockhandError):
    """Raised when an external command cannot be executed successfully."""


class ExecutableNotFoundError(CommandError):
    """Raised when an executable is missing from ``PATH``."""

    def __init__(self, program: str) -> None:
        """Initialise the error with a descriptive message."""
        super().__init__(f"The {program!r} executable could not be located.")
        self.program = program


@dc.dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of an external command."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        """Return ``True`` when the command exited successfully."""
        return self.exit_code == 0


class CommandFailedError(CommandError):
    """Raised when a command exits with a failure code."""

    def __init__(
        self, program: str, args: typ.Sequence[str], result: CommandResult
    ) -> None:
        """Summarise the failing invocation for the caller."""
        command_line = " ".join([program, *args])
        detail = (
            result.stderr.strip()
            or result.stdout.strip()
            or f"exited with status {result.exit_code}"
        )
        super().__init__(f"{command_line} failed: {detail}")
        self.result = result


def _bind_command(
    program: str,
    args: typ.Sequence[str],
    env: typ.Mapping[str, str] | None = None,
) -> BoundCommand:
    """Return ``program`` bound to ``args`` and optional environment overrides."""
    try:
        command = local[program]
    except CommandNotFound as exc:
        raise ExecutableNotFoundError(program) from exc
    bound = command[tuple(args)]
    if env:
        return bound.with_env(**env)
    return bound


def _coerce_text(value: str | bytes) -> str:
    """Normalise process output to text."""
    return value.decode("utf-8") if isinstance(value, bytes) else value


def run_command(
    program: str,
    *args: str,
    cwd: Path,
    env: typ.Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``program`` with ``args`` in ``cwd`` and capture its output."""
    LOGGER.debug("Running %s %s", program, " ".join(args))
    command = _bind_command(program, args, env)
    exit_code, stdout, stderr = command.run(retcode=None, cwd=str(cwd))
    return CommandResult(
        exit_code=exit_code,
        stdout=_coerce_text(stdout),
        stderr=_coerce_text(stderr),
    )


def check_command(
    program: str,
    *args: str,
    cwd: Path,
    env: typ.Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``program`` like :func:`run_command` but raise on failure."""
    result = run_command(program, *args, cwd=cwd, env=env)
    if not result.ok:
        raise CommandFailedError(program, args, result)
    return result


def git(*args: str, cwd: Path) -> CommandResult:
    """Run ``git`` with ``args`` and raise when it fails."""
    return check_command("git", *args, cwd=cwd)
