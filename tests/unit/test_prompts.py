"""Tests for interactive prompts."""

from __future__ import annotations

import pytest

from dockhand.errors import UserAbortError
from dockhand.prompts import (
    Choice,
    Confirmation,
    ConfirmationState,
    confirm,
    render_choices,
    require_confirmation,
    select_and_order,
)
from tests.helpers.command_helpers import ScriptedConsole


@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ("y", ConfirmationState.PROCEEDING),
        (" Y ", ConfirmationState.PROCEEDING),
        ("yes", ConfirmationState.ABORTED),
        ("n", ConfirmationState.ABORTED),
        ("", ConfirmationState.ABORTED),
    ],
)
def test_confirmation_only_proceeds_on_y(
    reply: str, expected: ConfirmationState
) -> None:
    """Only a literal ``y`` moves the confirmation to ``PROCEEDING``."""
    confirmation = Confirmation("Continue?")

    assert confirmation.state is ConfirmationState.AWAIT_CONFIRM
    assert confirmation.answer(reply) is expected


def test_confirmation_outcome_is_final() -> None:
    """A confirmation cannot be answered twice."""
    confirmation = Confirmation("Continue?")
    confirmation.answer("n")

    with pytest.raises(RuntimeError, match="already answered"):
        confirmation.answer("y")


def test_confirm_appends_yes_no_hint() -> None:
    """The prompt shows the accepted answers."""
    console = ScriptedConsole(replies=["y"])

    assert confirm(console.as_console(), "Push branch?") is True
    assert console.prompts == ["Push branch? (y/n) "]


def test_require_confirmation_raises_on_decline() -> None:
    """Declining raises ``UserAbortError`` with exit code 3."""
    console = ScriptedConsole(replies=["n"])

    with pytest.raises(UserAbortError) as excinfo:
        require_confirmation(console.as_console(), "Proceed?")

    assert str(excinfo.value) == "Aborted."
    assert excinfo.value.exit_code == 3


def test_render_choices_marks_checked_items() -> None:
    """Checked items are shown with ``[x]``."""
    lines = render_choices([Choice("first"), Choice("second", checked=False)])

    assert lines == ["  1. [x] first", "  2. [ ] second"]


def _choices() -> list[Choice]:
    return [Choice("a"), Choice("b", checked=False), Choice("c")]


@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ("", [0, 2]),
        ("none", []),
        ("-", []),
        ("3,1", [2, 0]),
        ("2 3", [1, 2]),
        ("1, 1, 2", [0, 1]),
    ],
)
def test_select_and_order(reply: str, expected: list[int]) -> None:
    """Answers choose and order items by their numbers."""
    console = ScriptedConsole(replies=[reply])

    result = select_and_order(console.as_console(), _choices(), message="Pick")

    assert result == expected
    assert console.output[0] == "Pick"


def test_select_and_order_reprompts_on_invalid_answer() -> None:
    """Invalid answers are reported and the question is asked again."""
    console = ScriptedConsole(replies=["x", "9", "2"])

    result = select_and_order(console.as_console(), _choices(), message="Pick")

    assert result == [1]
    invalid = [line for line in console.output if line.startswith("Invalid")]
    assert invalid == [
        "Invalid selection: 'x' is not a number",
        "Invalid selection: 9 is outside 1-3",
    ]
    assert len(console.prompts) == 3
