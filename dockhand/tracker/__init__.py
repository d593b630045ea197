"""Issue tracker access and review digest formatting."""

from __future__ import annotations

from .client import TrackerClient, TrackerRequestError
from .credentials import MissingCredentialsError, TrackerCredentials, load_credentials
from .digest import (
    DigestEntry,
    ReviewItem,
    build_jql,
    collect_items,
    consolidate,
    format_html,
    format_slack,
)
from .models import (
    DevStatusResponse,
    Issue,
    IssueDetail,
    PullRequestLink,
    SearchResponse,
)

__all__ = [
    "DevStatusResponse",
    "DigestEntry",
    "Issue",
    "IssueDetail",
    "MissingCredentialsError",
    "PullRequestLink",
    "ReviewItem",
    "SearchResponse",
    "TrackerClient",
    "TrackerCredentials",
    "TrackerRequestError",
    "build_jql",
    "collect_items",
    "consolidate",
    "format_html",
    "format_slack",
    "load_credentials",
]
