"""Shared helpers for stubbing ``git`` and ``gh`` in tests."""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from cmd_mox.ipc import Invocation

if typ.TYPE_CHECKING:
    import pytest
    from cmd_mox import CmdMox


def install_command_stub(cmd_mox: CmdMox, monkeypatch: pytest.MonkeyPatch) -> None:
    """Route every external command through cmd-mox expectations."""
    from dockhand.forge import runner as runner_module

    class _StubCommand:
        """Use cmd-mox expectations without invoking an external process."""

        def __init__(self, program: str, args: typ.Sequence[str]) -> None:
            self.program = program
            self.args = list(args)

        def run(
            self,
            *,
            retcode: int | tuple[int, ...] | None = None,
            cwd: str | os.PathLike[str] | None = None,
        ) -> tuple[int, str, str]:
            invocation = Invocation(
                command=self.program,
                args=self.args,
                stdin="",
                env=dict(os.environ),
            )
            response = cmd_mox._handle_invocation(invocation)
            return response.exit_code, response.stdout, response.stderr

    def _bind(
        program: str,
        args: typ.Sequence[str],
        env: typ.Mapping[str, str] | None = None,
    ) -> _StubCommand:
        return _StubCommand(program, args)

    monkeypatch.setattr(runner_module, "_bind_command", _bind)


@dc.dataclass(slots=True)
class ScriptedCommands:
    """Record command invocations and answer them from a script.

    Responses are keyed by the full command line. Commands without a scripted
    response succeed with empty output.
    """

    responses: dict[tuple[str, ...], list[tuple[int, str, str]]] = dc.field(
        default_factory=dict
    )
    calls: list[tuple[str, ...]] = dc.field(default_factory=list)
    cwds: list[str | None] = dc.field(default_factory=list)
    envs: list[dict[str, str] | None] = dc.field(default_factory=list)

    def respond(
        self,
        *command_line: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        """Queue a response for the next matching invocation."""
        self.responses.setdefault(command_line, []).append(
            (exit_code, stdout, stderr)
        )

    def install(self, monkeypatch: pytest.MonkeyPatch) -> ScriptedCommands:
        """Replace the command binder with this script."""
        from dockhand.forge import runner as runner_module

        script = self

        class _ScriptedCommand:
            def __init__(
                self,
                command_line: tuple[str, ...],
                env: typ.Mapping[str, str] | None,
            ) -> None:
                self.command_line = command_line
                self.env = None if env is None else dict(env)

            def run(
                self,
                *,
                retcode: int | tuple[int, ...] | None = None,
                cwd: str | os.PathLike[str] | None = None,
            ) -> tuple[int, str, str]:
                script.calls.append(self.command_line)
                script.cwds.append(None if cwd is None else os.fspath(cwd))
                script.envs.append(self.env)
                queued = script.responses.get(self.command_line)
                if queued:
                    return queued.pop(0)
                return 0, "", ""

        def _bind(
            program: str,
            args: typ.Sequence[str],
            env: typ.Mapping[str, str] | None = None,
        ) -> _ScriptedCommand:
            return _ScriptedCommand((program, *args), env)

        monkeypatch.setattr(runner_module, "_bind_command", _bind)
        return self


@dc.dataclass(slots=True)
class ScriptedConsole:
    """Console double answering prompts from a queue of replies."""

    replies: list[str] = dc.field(default_factory=list)
    prompts: list[str] = dc.field(default_factory=list)
    output: list[str] = dc.field(default_factory=list)

    def ask(self, prompt: str) -> str:
        """Return the next scripted reply for ``prompt``."""
        self.prompts.append(prompt)
        if not self.replies:
            message = f"Unexpected prompt: {prompt!r}"
            raise AssertionError(message)
        return self.replies.pop(0)

    def echo(self, text: str) -> None:
        """Record ``text`` as console output."""
        self.output.append(text)

    @property
    def text(self) -> str:
        """Return everything echoed so far as one string."""
        return "\n".join(self.output)

    def as_console(self) -> typ.Any:
        """Return a :class:`dockhand.prompts.Console` bound to this double."""
        from dockhand.prompts import Console

        return Console(ask=self.ask, echo=self.echo)
