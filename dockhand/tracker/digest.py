"""Build and format the review digest posted to Slack."""

from __future__ import annotations

import dataclasses as dc
import html
import typing as typ

from .models import UNKNOWN_PR_NUMBER

if typ.TYPE_CHECKING:
    from dockhand.config import BoardConfig, Column

    from .models import Issue, PullRequestLink

EMOJI_NUMBERS: typ.Final[tuple[str, ...]] = (
    ":one:",
    ":two:",
    ":three:",
    ":four:",
    ":five:",
    ":six:",
    ":seven:",
    ":eight:",
    ":nine:",
    ":keycap_ten:",
)
FALLBACK_EMOJI: typ.Final[str] = ":grey_question:"
NO_SUMMARY: typ.Final[str] = "(no summary)"

_SECTIONS: typ.Final[tuple[tuple[Column, str], ...]] = (
    ("review", "Review:"),
    ("test", "Testing:"),
)


@dc.dataclass(frozen=True, slots=True)
class ReviewItem:
    """One pull request linked to one issue."""

    repo_abbr: str
    pr_number: str
    issue_key: str
    summary: str
    pr_url: str | None
    column: Column
    issue_status: str
    excluded: bool = False

    @property
    def display(self) -> str:
        """Return the label shown in the selection prompt."""
        return (
            f"[{self.column.upper()}] {self.repo_abbr}#{self.pr_number}: "
            f"[{self.issue_key}] {self.summary}"
        )


@dc.dataclass(frozen=True, slots=True)
class DigestEntry:
    """A pull request with every issue that references it in one column."""

    repo_abbr: str
    pr_number: str
    issue_keys: tuple[str, ...]
    summary: str
    pr_url: str | None
    column: Column


def build_jql(project: str, board: BoardConfig) -> str:
    """Return the JQL selecting in-sprint issues with open PRs on ``board``."""
    statuses = ", ".join(f"'{status}'" for status in board.statuses)
    return (
        f'project = "{project}" AND status in ({statuses}) '
        "AND development[pullrequests].open > 0 AND Sprint in openSprints()"
    )


def has_excluded_label(
    labels: typ.Iterable[str], board: BoardConfig, column: Column
) -> bool:
    """Return ``True`` when any of ``labels`` is excluded for ``column``."""
    excluded = {label.lower() for label in board.exclude_labels.for_column(column)}
    return any(label.lower() in excluded for label in labels)


def collect_items(
    linked: typ.Iterable[tuple[Issue, typ.Sequence[PullRequestLink]]],
    board: BoardConfig,
    abbreviate: typ.Callable[[str], str],
) -> list[ReviewItem]:
    """Flatten issues and their open pull requests into review items."""
    items: list[ReviewItem] = []
    for issue, pull_requests in linked:
        status = issue.status_name
        column = board.column_for(status)
        excluded = has_excluded_label(issue.fields.labels, board, column)
        for pull_request in pull_requests:
            repo_abbr = abbreviate(pull_request.repo_name)
            if not repo_abbr or not pull_request.is_open:
                continue
            items.append(
                ReviewItem(
                    repo_abbr=repo_abbr,
                    pr_number=pull_request.number,
                    issue_key=issue.display_key,
                    summary=issue.fields.summary or NO_SUMMARY,
                    pr_url=pull_request.url,
                    column=column,
                    issue_status=status,
                    excluded=excluded,
                )
            )
    return items


def consolidate(selected: typ.Sequence[ReviewItem]) -> list[DigestEntry]:
    """Merge items that share a pull request URL and column.

    Entries keep the position of their first item; later items only add
    their issue keys.
    """
    grouped: dict[tuple[str | None, Column], list[ReviewItem]] = {}
    for item in selected:
        grouped.setdefault((item.pr_url, item.column), []).append(item)
    return [
        DigestEntry(
            repo_abbr=items[0].repo_abbr,
            pr_number=items[0].pr_number,
            issue_keys=tuple(item.issue_key for item in items),
            summary=items[0].summary,
            pr_url=items[0].pr_url,
            column=column,
        )
        for (_, column), items in grouped.items()
    ]


def _emoji(index: int) -> str:
    if index < len(EMOJI_NUMBERS):
        return EMOJI_NUMBERS[index]
    return FALLBACK_EMOJI


def _pr_text(entry: DigestEntry) -> str:
    text = f"{entry.repo_abbr}#{entry.pr_number}"
    if entry.summary:
        text = f"{text} {entry.summary}"
    return text


def _is_linkable(entry: DigestEntry) -> bool:
    return bool(entry.pr_url) and entry.pr_number not in {"", UNKNOWN_PR_NUMBER}


def format_slack_line(
    emoji: str, entry: DigestEntry, browse_url: typ.Callable[[str], str]
) -> str:
    """Return ``entry`` in Slack mrkdwn link syntax."""
    keys = " / ".join(f"<{browse_url(key)}|[{key}]>" for key in entry.issue_keys)
    pr_text = _pr_text(entry)
    if _is_linkable(entry):
        pr_text = f"<{entry.pr_url}|{pr_text}>"
    return f"{emoji} {keys} {pr_text}"


def format_html_line(
    emoji: str, entry: DigestEntry, browse_url: typ.Callable[[str], str]
) -> str:
    """Return ``entry`` as an HTML list item."""
    keys = " / ".join(
        f'<a href="{html.escape(browse_url(key))}">[{html.escape(key)}]</a>'
        for key in entry.issue_keys
    )
    pr_text = html.escape(_pr_text(entry), quote=False)
    if _is_linkable(entry):
        pr_text = f'<a href="{html.escape(entry.pr_url or "")}">{pr_text}</a>'
    return f"<li>{emoji} {keys} {pr_text}</li>"


def _by_column(
    entries: typ.Sequence[DigestEntry],
) -> list[tuple[str, list[DigestEntry]]]:
    """Return non-empty review and test sections in display order."""
    sections = []
    for column, title in _SECTIONS:
        members = [entry for entry in entries if entry.column == column]
        if members:
            sections.append((title, members))
    return sections


def format_slack(
    entries: typ.Sequence[DigestEntry], browse_url: typ.Callable[[str], str]
) -> str:
    """Render the Slack message for ``entries``."""
    lines: list[str] = []
    for title, members in _by_column(entries):
        if lines:
            lines.append("")
        lines.append(f"*{title}*")
        lines.extend(
            format_slack_line(_emoji(index), entry, browse_url)
            for index, entry in enumerate(members)
        )
    return "\n".join(lines)


def format_html(
    entries: typ.Sequence[DigestEntry], browse_url: typ.Callable[[str], str]
) -> str:
    """Render the rich-paste HTML fragment for ``entries``."""
    lines: list[str] = []
    for title, members in _by_column(entries):
        lines.extend((f"<h3>{title}</h3>", "<ul>"))
        lines.extend(
            format_html_line(_emoji(index), entry, browse_url)
            for index, entry in enumerate(members)
        )
        lines.append("</ul>")
    return "\n".join(lines)
