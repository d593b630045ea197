"""Collect pull requests awaiting review or test into a Slack digest."""

from __future__ import annotations

import contextlib
import dataclasses as dc
import logging
import typing as typ
import webbrowser
from pathlib import Path

from dockhand import config as config_module
from dockhand.prompts import Choice, Console, select_and_order
from dockhand.tracker import (
    TrackerClient,
    build_jql,
    collect_items,
    consolidate,
    format_html,
    format_slack,
    load_credentials,
)
from dockhand.utils import normalise_repo_root

if typ.TYPE_CHECKING:
    from dockhand.config import DockhandConfig
    from dockhand.tracker import Issue, PullRequestLink

LOGGER = logging.getLogger(__name__)

SELECTION_MESSAGE = (
    "Select and reorder PRs for the Slack message. "
    "Checked items are selected by default."
)


@dc.dataclass(frozen=True, slots=True)
class DigestOptions:
    """Options for a ``review-digest`` run."""

    output: Path | None = None
    open_browser: bool = False
    configuration: DockhandConfig | None = None
    console: Console = dc.field(default_factory=Console)
    client: TrackerClient | None = None


def resolve_board(
    configuration: DockhandConfig, project: str
) -> config_module.BoardConfig:
    """Return the board for ``project``, falling back to defaults."""
    board = configuration.review_digest.board_for(project)
    if board is None:
        LOGGER.warning("No board configuration found for %s. Using defaults.", project)
        return config_module.BoardConfig()
    return board


def describe_board(project: str, board: config_module.BoardConfig) -> str:
    """Return a short description of the columns searched for ``project``."""
    return "\n".join(
        [
            f"Board configuration for {project}:",
            f"  Review columns: {', '.join(board.review_statuses) or '(none)'}",
            f"  Test columns: {', '.join(board.test_statuses) or '(none)'}",
        ]
    )


def fetch_linked_issues(
    client: TrackerClient, issues: typ.Iterable[Issue]
) -> list[tuple[Issue, tuple[PullRequestLink, ...]]]:
    """Pair each issue with its linked pull requests, skipping issues without."""
    linked: list[tuple[Issue, tuple[PullRequestLink, ...]]] = []
    for issue in issues:
        pull_requests = client.pull_requests(issue.id)
        if pull_requests is None:
            continue
        linked.append((issue, pull_requests))
    return linked


def _output_path(
    options: DigestOptions, configuration: DockhandConfig, root_path: Path
) -> Path:
    if options.output is not None:
        return Path(options.output).expanduser()
    return root_path / configuration.review_digest.html_output


def run(
    repo_root: Path | str,
    project: str,
    options: DigestOptions | None = None,
) -> str:
    """Build the review digest for ``project``."""
    options = DigestOptions() if options is None else options
    root_path = normalise_repo_root(repo_root)
    configuration = config_module.ensure_configuration(options.configuration, root_path)
    console = options.console

    with contextlib.ExitStack() as stack:
        client = options.client
        if client is None:
            client = stack.enter_context(TrackerClient(load_credentials(root_path)))

        board = resolve_board(configuration, project)
        console.echo(describe_board(project, board))

        issues = client.search_issues(build_jql(project, board))
        items = collect_items(
            fetch_linked_issues(client, issues),
            board,
            configuration.review_digest.abbreviate,
        )
        if not items:
            return "No issues with open PRs found."

        indices = select_and_order(
            console,
            [Choice(item.display, checked=not item.excluded) for item in items],
            message=SELECTION_MESSAGE,
        )
        if not indices:
            return "No PRs selected. Exiting."

        entries = consolidate([items[index] for index in indices])
        slack_message = format_slack(entries, client.browse_url)
        html_fragment = format_html(entries, client.browse_url)

    output_path = _output_path(options, configuration, root_path)
    output_path.write_text(html_fragment, encoding="utf-8")
    LOGGER.info("Wrote rich-paste HTML to %s", output_path)
    if options.open_browser:
        webbrowser.open(output_path.resolve().as_uri())

    return "\n".join(
        [
            "Final Slack message:",
            slack_message,
            "",
            "HTML for rich paste:",
            html_fragment,
            "",
            f"HTML written to {output_path}",
        ]
    )
