"""Schemas for tracker REST payloads.

Payloads are decoded with :mod:`msgspec`; anything that does not match the
declared shape raises :class:`~dockhand.errors.PayloadValidationError`
rather than falling back to defaults.
"""

from __future__ import annotations

import typing as typ

import msgspec

from dockhand.errors import PayloadValidationError

UNKNOWN_PR_NUMBER: typ.Final[str] = "???"


class IssueStatus(msgspec.Struct, frozen=True, kw_only=True):
    """Workflow status attached to an issue."""

    name: str
    id: str | None = None


class IssueFields(msgspec.Struct, frozen=True, kw_only=True):
    """Subset of issue fields requested by the search."""

    summary: str | None = None
    status: IssueStatus | None = None
    labels: tuple[str, ...] = ()


class Issue(msgspec.Struct, frozen=True, kw_only=True):
    """Issue returned by the JQL search endpoint."""

    id: str
    key: str | None = None
    fields: IssueFields

    @property
    def display_key(self) -> str:
        """Return the issue key, or an id-based placeholder."""
        return self.key or f"ID:{self.id}"

    @property
    def status_name(self) -> str:
        """Return the workflow status name."""
        if self.fields.status is None:
            return "Unknown"
        return self.fields.status.name


class SearchResponse(msgspec.Struct, frozen=True, kw_only=True):
    """Body of ``POST /rest/api/3/search/jql``."""

    issues: tuple[Issue, ...]


class RepositoryRef(msgspec.Struct, frozen=True, kw_only=True):
    """Repository reference nested in dev-status entries."""

    name: str | None = None


class PullRequestLink(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Pull request linked to an issue through the dev-status API."""

    id: str | None = None
    name: str | None = None
    url: str | None = None
    status: str | None = None
    repository_name: str | None = None
    repository: RepositoryRef | None = None

    @property
    def repo_name(self) -> str:
        """Return the ``owner/name`` repository identifier when known."""
        if self.repository_name:
            return self.repository_name
        if self.repository is not None and self.repository.name:
            return self.repository.name
        return ""

    @property
    def number(self) -> str:
        """Return the pull request number without its ``#`` prefix."""
        if not self.id:
            return UNKNOWN_PR_NUMBER
        return self.id.removeprefix("#")

    @property
    def is_open(self) -> bool:
        """Return ``True`` unless the tracker reports a non-open state."""
        return not self.status or self.status == "OPEN"


class DevStatusDetail(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """One application entry in a dev-status response."""

    pull_requests: tuple[PullRequestLink, ...] | None = None


class DevStatusResponse(msgspec.Struct, frozen=True, kw_only=True):
    """Body of ``GET /rest/dev-status/1.0/issue/detail``."""

    detail: tuple[DevStatusDetail, ...] = ()

    @property
    def pull_requests(self) -> tuple[PullRequestLink, ...] | None:
        """Return pull requests from the first detail entry, if any."""
        if not self.detail:
            return None
        return self.detail[0].pull_requests


class ProjectRef(msgspec.Struct, frozen=True, kw_only=True):
    """Project an issue belongs to."""

    key: str


class IssueTypeRef(msgspec.Struct, frozen=True, kw_only=True):
    """Issue type descriptor."""

    name: str


class SprintRef(msgspec.Struct, frozen=True, kw_only=True):
    """Sprint descriptor."""

    name: str


class IssueDetailFields(msgspec.Struct, frozen=True, kw_only=True):
    """Fields returned by ``GET /rest/api/3/issue/{key}``."""

    summary: str | None = None
    status: IssueStatus
    project: ProjectRef
    issuetype: IssueTypeRef
    labels: tuple[str, ...] = ()
    sprint: SprintRef | None = None


class IssueDetail(msgspec.Struct, frozen=True, kw_only=True):
    """Single issue fetched for inspection."""

    id: str
    key: str
    fields: IssueDetailFields

    def as_issue(self) -> Issue:
        """Return the search-shaped view of this issue."""
        return Issue(
            id=self.id,
            key=self.key,
            fields=IssueFields(
                summary=self.fields.summary,
                status=self.fields.status,
                labels=self.fields.labels,
            ),
        )


def decode_payload[T](payload: bytes | str, model: type[T], source: str) -> T:
    """Decode ``payload`` as ``model`` or raise :class:`PayloadValidationError`."""
    try:
        return msgspec.json.decode(payload, type=model)
    except msgspec.DecodeError as exc:
        raise PayloadValidationError(source, str(exc)) from exc
