"""Synchronous client for the tracker REST and dev-status APIs."""

from __future__ import annotations

import logging
import typing as typ

import httpx

from dockhand.errors import DockhandError

from .models import (
    DevStatusResponse,
    Issue,
    IssueDetail,
    PullRequestLink,
    SearchResponse,
    decode_payload,
)

if typ.TYPE_CHECKING:
    from types import TracebackType

    from .credentials import TrackerCredentials

LOGGER = logging.getLogger(__name__)

SEARCH_PATH: typ.Final[str] = "/rest/api/3/search/jql"
ISSUE_PATH: typ.Final[str] = "/rest/api/3/issue/{key}"
DEV_STATUS_PATH: typ.Final[str] = "/rest/dev-status/1.0/issue/detail"
DEFAULT_SEARCH_FIELDS: typ.Final[tuple[str, ...]] = ("summary", "status", "labels")
DEFAULT_TIMEOUT: typ.Final[float] = 30.0


class TrackerRequestError(DockhandError):
    """Raised when a tracker request fails."""

    @classmethod
    def from_response(
        cls, action: str, response: httpx.Response
    ) -> TrackerRequestError:
        """Describe a failed ``response`` for ``action``."""
        detail = f"{response.status_code} {response.reason_phrase}"
        body = response.text.strip()
        if body:
            detail = f"{detail} {body}"
        return cls(f"{action} failed: {detail}")


class TrackerClient:
    """Query issues and their linked pull requests.

    The client owns an :class:`httpx.Client` configured with basic auth
    unless one is supplied, in which case the caller keeps ownership.
    """

    def __init__(
        self,
        credentials: TrackerCredentials,
        client: httpx.Client | None = None,
    ) -> None:
        """Bind the client to ``credentials``."""
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=credentials.host,
            auth=(credentials.email, credentials.token),
            headers={"Accept": "application/json"},
            timeout=DEFAULT_TIMEOUT,
        )

    def __enter__(self) -> TrackerClient:
        """Return ``self`` for use as a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the HTTP client when it is owned by this instance."""
        self.close()

    def close(self) -> None:
        """Release HTTP resources owned by the client."""
        if self._owns_client:
            self._client.close()

    def browse_url(self, key: str) -> str:
        """Return the web URL for issue ``key``."""
        return f"{self._credentials.host}/browse/{key}"

    def _request(
        self, action: str, method: str, path: str, **kwargs: typ.Any
    ) -> httpx.Response:
        """Send a request, wrapping transport failures."""
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            message = f"{action} failed: {exc}"
            raise TrackerRequestError(message) from exc

    def search_issues(
        self,
        jql: str,
        *,
        fields: typ.Sequence[str] = DEFAULT_SEARCH_FIELDS,
        max_results: int = 100,
    ) -> tuple[Issue, ...]:
        """Return issues matching ``jql``."""
        LOGGER.info("Searching for issues with JQL: %s", jql)
        response = self._request(
            "Issue search",
            "POST",
            SEARCH_PATH,
            json={"jql": jql, "fields": list(fields), "maxResults": max_results},
        )
        if not response.is_success:
            raise TrackerRequestError.from_response("Issue search", response)
        result = decode_payload(response.content, SearchResponse, "issue search")
        LOGGER.info("Found issues: %d", len(result.issues))
        return result.issues

    def pull_requests(self, issue_id: str) -> tuple[PullRequestLink, ...] | None:
        """Return pull requests linked to ``issue_id``.

        ``None`` means the dev-status lookup failed or carried no pull request
        detail; callers skip such issues.
        """
        response = self._request(
            "Development status lookup",
            "GET",
            DEV_STATUS_PATH,
            params={
                "issueId": issue_id,
                "applicationType": "GitHub",
                "dataType": "pullrequest",
            },
        )
        if not response.is_success:
            LOGGER.warning(
                "Development status lookup for issue %s failed: %s",
                issue_id,
                response.status_code,
            )
            return None
        status = decode_payload(response.content, DevStatusResponse, "dev-status")
        return status.pull_requests

    def get_issue(self, key: str) -> IssueDetail:
        """Return the full record for issue ``key``."""
        response = self._request("Issue lookup", "GET", ISSUE_PATH.format(key=key))
        if not response.is_success:
            raise TrackerRequestError.from_response("Issue lookup", response)
        return decode_payload(response.content, IssueDetail, "issue")
