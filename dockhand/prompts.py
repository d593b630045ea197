"""Interactive confirmation and selection prompts.

Every prompt reads from a :class:`Console` so commands can be driven by
scripted answers in tests.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import re
import typing as typ

from dockhand.errors import UserAbortError

_SELECTION_SEPARATOR: typ.Final[re.Pattern[str]] = re.compile(r"[\s,]+")
_NO_SELECTION: typ.Final[frozenset[str]] = frozenset({"none", "-"})


@dc.dataclass(frozen=True, slots=True)
class Console:
    """Input and output callables used by interactive commands."""

    ask: typ.Callable[[str], str] = input
    echo: typ.Callable[[str], None] = print


class ConfirmationState(enum.Enum):
    """States of a yes/no confirmation."""

    AWAIT_CONFIRM = "await-confirm"
    PROCEEDING = "proceeding"
    ABORTED = "aborted"


class Confirmation:
    """A single yes/no question.

    The confirmation starts in ``AWAIT_CONFIRM`` and moves to ``PROCEEDING``
    only when the answer is ``y``; anything else moves it to ``ABORTED``.
    Both outcomes are final.
    """

    def __init__(self, question: str) -> None:
        """Create an unanswered confirmation for ``question``."""
        self.question = question
        self.state = ConfirmationState.AWAIT_CONFIRM

    def answer(self, reply: str) -> ConfirmationState:
        """Apply ``reply`` and return the resulting state."""
        if self.state is not ConfirmationState.AWAIT_CONFIRM:
            message = f"Confirmation already answered: {self.state.value}"
            raise RuntimeError(message)
        if reply.strip().lower() == "y":
            self.state = ConfirmationState.PROCEEDING
        else:
            self.state = ConfirmationState.ABORTED
        return self.state

    def run(self, console: Console) -> bool:
        """Ask the question on ``console`` and return whether to proceed."""
        reply = console.ask(f"{self.question} (y/n) ")
        return self.answer(reply) is ConfirmationState.PROCEEDING


def confirm(console: Console, question: str) -> bool:
    """Return ``True`` when the operator answers ``y`` to ``question``."""
    return Confirmation(question).run(console)


def require_confirmation(
    console: Console, question: str, abort_message: str = "Aborted."
) -> None:
    """Ask ``question`` and raise :class:`UserAbortError` unless confirmed."""
    if not confirm(console, question):
        raise UserAbortError(abort_message)


@dc.dataclass(frozen=True, slots=True)
class Choice:
    """One selectable entry."""

    label: str
    checked: bool = True


class _InvalidSelectionError(ValueError):
    """Raised when a selection answer cannot be parsed."""


def _parse_selection(answer: str, count: int) -> list[int]:
    """Return zero-based indices named by ``answer`` in the given order."""
    ordered: list[int] = []
    for token in _SELECTION_SEPARATOR.split(answer.strip()):
        if not token:
            continue
        try:
            number = int(token)
        except ValueError as exc:
            message = f"{token!r} is not a number"
            raise _InvalidSelectionError(message) from exc
        if not 1 <= number <= count:
            message = f"{number} is outside 1-{count}"
            raise _InvalidSelectionError(message)
        if number - 1 not in ordered:
            ordered.append(number - 1)
    return ordered


def render_choices(choices: typ.Sequence[Choice]) -> list[str]:
    """Return numbered lines showing ``choices`` and their default marks."""
    width = len(str(len(choices)))
    return [
        f"  {index:>{width}}. [{'x' if choice.checked else ' '}] {choice.label}"
        for index, choice in enumerate(choices, start=1)
    ]


def select_and_order(
    console: Console,
    choices: typ.Sequence[Choice],
    *,
    message: str,
) -> list[int]:
    """Let the operator pick and reorder ``choices``.

    The answer lists item numbers in the desired order, separated by commas
    or spaces. An empty answer keeps the checked items in their listed order
    and ``none`` selects nothing. Returns zero-based indices.
    """
    console.echo(message)
    for line in render_choices(choices):
        console.echo(line)
    while True:
        answer = console.ask(
            "Order (e.g. 2,1,3), Enter for checked items, 'none' for nothing: "
        )
        stripped = answer.strip().lower()
        if not stripped:
            return [index for index, choice in enumerate(choices) if choice.checked]
        if stripped in _NO_SELECTION:
            return []
        try:
            return _parse_selection(stripped, len(choices))
        except _InvalidSelectionError as exc:
            console.echo(f"Invalid selection: {exc}")
