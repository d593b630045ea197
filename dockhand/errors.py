"""Exception hierarchy shared by :mod:`dockhand` commands."""

from __future__ import annotations

import typing as typ

USER_ABORT_EXIT_CODE: typ.Final[int] = 3


class DockhandError(RuntimeError):
    """Base class for failures reported to the operator."""

    exit_code: int = 1


class UserAbortError(DockhandError):
    """Raised when the operator declines an interactive confirmation."""

    exit_code = USER_ABORT_EXIT_CODE

    def __init__(self, message: str = "Aborted.") -> None:
        """Record the abort message shown to the operator."""
        super().__init__(message)


class PayloadValidationError(DockhandError):
    """Raised when an external JSON payload does not match its schema."""

    def __init__(self, source: str, detail: str) -> None:
        """Describe which payload failed validation and why."""
        super().__init__(f"Unexpected {source} payload: {detail}")
        self.source = source
        self.detail = detail
