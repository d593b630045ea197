"""Show the fields of one issue that matter for board configuration."""

from __future__ import annotations

import contextlib
import typing as typ

from dockhand.tracker import TrackerClient, load_credentials
from dockhand.utils import normalise_repo_root

if typ.TYPE_CHECKING:
    from pathlib import Path

    from dockhand.tracker import IssueDetail, PullRequestLink


def _format_pull_requests(
    pull_requests: typ.Sequence[PullRequestLink] | None,
) -> list[str]:
    if not pull_requests:
        return ["No pull requests found"]
    lines = [f"Pull Requests ({len(pull_requests)}):"]
    for pull_request in pull_requests:
        repo_name = pull_request.repo_name or "unknown"
        state = pull_request.status or "UNKNOWN"
        lines.append(f"  {repo_name}#{pull_request.number} - {state}")
        if pull_request.url:
            lines.append(f"     {pull_request.url}")
    return lines


def format_issue(
    issue: IssueDetail, pull_requests: typ.Sequence[PullRequestLink] | None
) -> str:
    """Render ``issue`` and its pull requests for the terminal."""
    fields = issue.fields
    lines = [
        "Ticket Information:",
        f"Key:           {issue.key}",
        f"Summary:       {fields.summary or ''}",
        f"Status:        {fields.status.name} (id: {fields.status.id})",
        f"Project:       {fields.project.key}",
        f"Issue Type:    {fields.issuetype.name}",
    ]
    if fields.labels:
        lines.append(f"Labels:        {', '.join(fields.labels)}")
    if fields.sprint is not None:
        lines.append(f"Sprint:        {fields.sprint.name}")
    lines.extend(
        [
            "",
            "Use this status name in your board config:",
            f'   "{fields.status.name}"',
            "",
            *_format_pull_requests(pull_requests),
        ]
    )
    return "\n".join(lines)


def run(
    repo_root: Path | str,
    ticket_key: str,
    client: TrackerClient | None = None,
) -> str:
    """Fetch ``ticket_key`` and describe it."""
    root_path = normalise_repo_root(repo_root)
    with contextlib.ExitStack() as stack:
        if client is None:
            client = stack.enter_context(TrackerClient(load_credentials(root_path)))
        issue = client.get_issue(ticket_key)
        pull_requests = client.pull_requests(issue.id)
    return format_issue(issue, pull_requests)
