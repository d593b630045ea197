"""Version-control and forge command wrappers for :mod:`dockhand`."""

from __future__ import annotations

from .github import (
    MergeCommit,
    PullRequestMetadata,
    create_pull_request,
    decode_pull_request,
    load_pull_request,
)
from .runner import (
    CommandError,
    CommandFailedError,
    CommandResult,
    ExecutableNotFoundError,
    check_command,
    git,
    run_command,
)

__all__ = [
    "CommandError",
    "CommandFailedError",
    "CommandResult",
    "ExecutableNotFoundError",
    "MergeCommit",
    "PullRequestMetadata",
    "check_command",
    "create_pull_request",
    "decode_pull_request",
    "git",
    "load_pull_request",
    "run_command",
]
