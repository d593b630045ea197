"""Pull request metadata via the ``gh`` forge CLI."""

from __future__ import annotations

import typing as typ

import msgspec

from dockhand.errors import PayloadValidationError

from .runner import check_command

if typ.TYPE_CHECKING:
    from pathlib import Path

# Disable pagers so gh output can be captured.
GH_ENV: typ.Final[dict[str, str]] = {"GH_PAGER": "cat", "PAGER": "cat"}
PULL_REQUEST_FIELDS: typ.Final[str] = "mergeCommit,title,headRefName,body"


class MergeCommit(msgspec.Struct, frozen=True, kw_only=True):
    """Commit created when a pull request was merged."""

    oid: str


class PullRequestMetadata(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Fields read from ``gh pr view --json``."""

    title: str
    head_ref_name: str
    body: str | None = None
    merge_commit: MergeCommit | None = None

    @property
    def merge_sha(self) -> str | None:
        """Return the merge commit SHA, or ``None`` for unmerged requests."""
        if self.merge_commit is None or not self.merge_commit.oid:
            return None
        return self.merge_commit.oid


def decode_pull_request(payload: str | bytes) -> PullRequestMetadata:
    """Validate ``payload`` against :class:`PullRequestMetadata`."""
    try:
        return msgspec.json.decode(payload, type=PullRequestMetadata)
    except msgspec.DecodeError as exc:
        raise PayloadValidationError("pull request", str(exc)) from exc


def load_pull_request(number: int, cwd: Path) -> PullRequestMetadata:
    """Fetch metadata for pull request ``number`` using ``gh pr view``."""
    result = check_command(
        "gh",
        "pr",
        "view",
        str(number),
        "--json",
        PULL_REQUEST_FIELDS,
        cwd=cwd,
        env=GH_ENV,
    )
    return decode_pull_request(result.stdout)


def create_pull_request(
    *,
    title: str,
    body: str,
    base: str,
    head: str,
    cwd: Path,
) -> str:
    """Open a pull request with ``gh pr create`` and return its output."""
    result = check_command(
        "gh",
        "pr",
        "create",
        "--title",
        title,
        "--body",
        body,
        "--base",
        base,
        "--head",
        head,
        cwd=cwd,
        env=GH_ENV,
    )
    return result.stdout.strip()
