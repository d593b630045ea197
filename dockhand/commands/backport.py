"""Backport a merged pull request to a release branch.

The merge commit is cherry-picked onto a new branch cut from the release
branch. Every step that changes shared state asks for confirmation first.
"""

from __future__ import annotations

import dataclasses as dc
import logging
import os
import re
import typing as typ

from dockhand import config as config_module
from dockhand.errors import DockhandError, UserAbortError
from dockhand.forge import create_pull_request, git, load_pull_request, run_command
from dockhand.prompts import Console, confirm, require_confirmation
from dockhand.tracker.credentials import HOST_ENV_VAR
from dockhand.utils import normalise_repo_root

if typ.TYPE_CHECKING:
    from pathlib import Path

    from dockhand.config import DockhandConfig
    from dockhand.forge import PullRequestMetadata

LOGGER = logging.getLogger(__name__)

UNKNOWN_TICKET: typ.Final[str] = "UNKNOWN"
EMPTY_CHERRY_PICK_MARKER: typ.Final[str] = "The previous cherry-pick is now empty"
_TICKET_PATTERN: typ.Final[re.Pattern[str]] = re.compile(
    r"Resolves\s+\[?([A-Z]+-[0-9]+)"
)


class BackportError(DockhandError):
    """Raised when a backport cannot be completed."""


@dc.dataclass(frozen=True, slots=True)
class BackportOptions:
    """Options for a ``backport`` run."""

    suffix: str | None = None
    configuration: DockhandConfig | None = None
    console: Console = dc.field(default_factory=Console)


@dc.dataclass(frozen=True, slots=True)
class BackportPlan:
    """Everything needed to cherry-pick and open the backport request."""

    pr_number: int
    merge_sha: str
    title: str
    ticket: str
    source_branch: str
    backport_branch: str
    release_branch: str
    remote: str
    new_title: str
    new_body: str


def extract_ticket(body: str | None) -> str | None:
    """Return the first ``Resolves KEY-123`` ticket mentioned in ``body``."""
    if not body:
        return None
    match = _TICKET_PATTERN.search(body)
    return match.group(1) if match else None


def _ticket_base_url(configured: str | None) -> str | None:
    if configured:
        return configured
    host = os.environ.get(HOST_ENV_VAR, "").strip().rstrip("/")
    return f"{host}/browse" if host else None


def build_pr_body(ticket: str, pr_number: int, ticket_url: str | None) -> str:
    """Return the body for the backport pull request."""
    reference = f"[{ticket}]({ticket_url}/{ticket})" if ticket_url else ticket
    return f"Resolves {reference}\n\nSee #{pr_number} for more information."


def plan_backport(
    metadata: PullRequestMetadata,
    pr_number: int,
    release_branch: str,
    *,
    suffix: str,
    remote: str,
    ticket_url: str | None,
) -> BackportPlan:
    """Derive the backport branch, title and body from ``metadata``."""
    merge_sha = metadata.merge_sha
    if merge_sha is None:
        message = f"No merge commit found for PR #{pr_number}. Was it merged?"
        raise BackportError(message)
    ticket = extract_ticket(metadata.body)
    if ticket is None:
        LOGGER.warning(
            "No Jira ticket found in PR description. Using %s.", UNKNOWN_TICKET
        )
        ticket = UNKNOWN_TICKET
    return BackportPlan(
        pr_number=pr_number,
        merge_sha=merge_sha,
        title=metadata.title,
        ticket=ticket,
        source_branch=metadata.head_ref_name,
        backport_branch=f"{metadata.head_ref_name}{suffix}",
        release_branch=release_branch,
        remote=remote,
        new_title=f"{metadata.title} (release)",
        new_body=build_pr_body(ticket, pr_number, ticket_url),
    )


def describe_plan(plan: BackportPlan) -> str:
    """Return the summary shown before confirmation."""
    return "\n".join(
        [
            f"Ready to backport PR #{plan.pr_number}",
            f"Merge Commit:     {plan.merge_sha}",
            f"PR Title:         {plan.title}",
            f"Jira Ticket:      {plan.ticket}",
            f"Source Branch:    {plan.source_branch}",
            f"Backport Branch:  {plan.backport_branch}",
            f"Target Release:   {plan.release_branch}",
        ]
    )


def render_preview(title: str, body: str) -> str:
    """Draw ``title`` and ``body`` inside a box."""
    body_lines = body.splitlines() or [""]
    width = max(len(title), *(len(line) for line in body_lines)) + 2
    inner = width - 2
    rule = "─" * width
    lines = [f"┌{rule}┐", f"│ {title:<{inner}} │", f"├{rule}┤"]
    lines.extend(f"│ {line:<{inner}} │" for line in body_lines)
    lines.append(f"└{rule}┘")
    return "\n".join(lines)


def _create_branch(plan: BackportPlan, root_path: Path) -> None:
    LOGGER.info("Creating backport branch and cherry-picking...")
    git("fetch", plan.remote, plan.release_branch, cwd=root_path)
    git(
        "checkout",
        "-b",
        plan.backport_branch,
        f"{plan.remote}/{plan.release_branch}",
        cwd=root_path,
    )


def _handle_empty_cherry_pick(
    plan: BackportPlan, root_path: Path, console: Console
) -> None:
    console.echo("Cherry-pick resulted in an empty commit.")
    console.echo(
        f"    This usually means the changes are already in {plan.release_branch}"
    )
    if confirm(console, "Skip this commit and continue?"):
        git("cherry-pick", "--skip", cwd=root_path)
        console.echo("Skipped empty commit.")
        return
    git("cherry-pick", "--abort", cwd=root_path)
    message = "Aborted cherry-pick."
    raise UserAbortError(message)


def _wait_for_conflict_resolution(root_path: Path, console: Console) -> None:
    console.echo("Cherry-pick failed due to conflicts.")
    console.echo("Please resolve the conflicts manually:")
    console.echo("   1. Fix the conflicts in your editor")
    console.echo("   2. Stage the resolved files: git add <files>")
    console.echo("   3. Continue the cherry-pick: git cherry-pick --continue")
    console.ask(
        "Press Enter once you've resolved conflicts and completed the cherry-pick... "
    )
    status = run_command("git", "status", cwd=root_path)
    if "cherry-pick" in status.stdout:
        message = "Cherry-pick still in progress. Please complete or abort it."
        raise BackportError(message)
    console.echo("Cherry-pick resolution confirmed.")


def cherry_pick(plan: BackportPlan, root_path: Path, console: Console) -> None:
    """Cherry-pick the merge commit, guiding the operator through failures."""
    result = run_command("git", "cherry-pick", "-x", plan.merge_sha, cwd=root_path)
    if result.ok:
        return
    status = run_command("git", "status", cwd=root_path)
    outputs = (result.stdout, result.stderr, status.stdout)
    if any(EMPTY_CHERRY_PICK_MARKER in output for output in outputs):
        _handle_empty_cherry_pick(plan, root_path, console)
        return
    _wait_for_conflict_resolution(root_path, console)


def run(
    repo_root: Path | str,
    pr_number: int,
    release_branch: str,
    options: BackportOptions | None = None,
) -> str:
    """Backport pull request ``pr_number`` onto ``release_branch``."""
    options = BackportOptions() if options is None else options
    root_path = normalise_repo_root(repo_root)
    configuration = config_module.ensure_configuration(
        options.configuration, root_path
    )
    settings = configuration.backport
    console = options.console

    LOGGER.info("Fetching PR metadata...")
    metadata = load_pull_request(pr_number, root_path)
    plan = plan_backport(
        metadata,
        pr_number,
        release_branch,
        suffix=settings.suffix if options.suffix is None else options.suffix,
        remote=settings.remote,
        ticket_url=_ticket_base_url(settings.ticket_url),
    )

    console.echo(describe_plan(plan))
    console.echo(render_preview(plan.new_title, plan.new_body))
    require_confirmation(
        console, "Proceed with creating backport branch and cherry-pick?"
    )

    _create_branch(plan, root_path)
    cherry_pick(plan, root_path, console)
    console.echo("Cherry-pick completed.")

    if not confirm(console, "Push branch?"):
        return (
            f"Backport branch {plan.backport_branch} created locally only. "
            "Not pushing."
        )
    LOGGER.info("Pushing branch to %s...", plan.remote)
    git("push", "-u", plan.remote, plan.backport_branch, cwd=root_path)

    if not confirm(console, "Create pull request on GitHub?"):
        return (
            f"Backport branch {plan.backport_branch} pushed only. "
            "Not creating PR."
        )
    LOGGER.info("Creating pull request...")
    url = create_pull_request(
        title=plan.new_title,
        body=plan.new_body,
        base=plan.release_branch,
        head=plan.backport_branch,
        cwd=root_path,
    )
    lines = ["Backport PR created successfully!"]
    if url:
        lines.append(url)
    return "\n".join(lines)
