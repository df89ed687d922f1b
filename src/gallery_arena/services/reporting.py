"""Markdown rendering of leaderboards and arena stats."""

from __future__ import annotations

from tabulate import tabulate

from gallery_arena.core.context import VoteScope
from gallery_arena.services.leaderboard import (
    ArenaSummary,
    GalleryCard,
    GalleryReport,
    Leaderboard,
)

MAX_HANDLE_LENGTH = 24


def truncate(text: str, max_length: int = MAX_HANDLE_LENGTH) -> str:
    """Shorten a label for table display."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _last_vote(entry) -> str:
    moment = entry.standing.last_vote_at
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "-"


def _with_heading(title: str, body: str, description: str | None = None) -> str:
    lines = [f"# {title}", ""]
    if description:
        lines.extend([description, ""])
    lines.append(body)
    return "\n".join(lines)


def format_gallery_leaderboard(board: Leaderboard, title: str | None = None) -> str:
    """Render a gallery leaderboard as a markdown table.

    Args:
        board: Leaderboard of GalleryEntry rows.
        title: Heading; defaults to the scope name.

    Returns:
        Markdown report content.
    """
    title = title or f"{board.scope.value.title()} Gallery Leaderboard"
    rows = [
        (
            e.rank,
            truncate(e.display_handle),
            e.score,
            f"{e.standing.win_rate:.0%}",
            e.standing.total_votes,
            f"{e.standing.elo:.1f}",
            _last_vote(e),
        )
        for e in board.ranked
    ]
    headers = ("Rank", "Gallery", "Score", "Win Rate", "Votes", "Elo", "Last Vote")
    if rows:
        table = tabulate(rows, headers=headers, tablefmt="github")
    else:
        table = "_No ranked galleries yet._"

    description = f"Galleries need at least {board.min_votes} votes to be ranked."
    if board.unranked:
        description += f" {len(board.unranked)} still collecting votes."
    return _with_heading(title, table, description)


def format_item_leaderboard(board: Leaderboard, title: str | None = None) -> str:
    """Render an item leaderboard as a markdown table."""
    title = title or f"Top Items ({board.scope.value})"
    rows = [
        (
            e.rank,
            e.item_id[:8],
            truncate(e.display_handle),
            e.collection or "-",
            e.score,
            f"{e.standing.wins}-{e.standing.losses}",
            f"{e.standing.elo:.1f}",
        )
        for e in board.ranked
    ]
    headers = ("Rank", "Item", "Gallery", "Collection", "Score", "W-L", "Elo")
    table = tabulate(rows, headers=headers, tablefmt="github") if rows else "_No ranked items yet._"
    return _with_heading(title, table)


def format_gallery_report(report: GalleryReport) -> str:
    """Render one gallery's aggregate stats followed by its ranked items."""
    summary = report.summary
    standing = summary.standing
    stats = [
        ("Visibility", "public" if report.gallery.is_public else "private"),
        ("Score", summary.score if summary.score is not None else "-"),
        ("Record", f"{standing.wins}-{standing.losses}"),
        ("Win rate", f"{standing.win_rate:.0%}"),
        ("Mean Elo", f"{standing.elo:.1f}"),
        ("Items rated", summary.items_rated),
    ]
    body = [tabulate(stats, tablefmt="github")]

    items = format_item_leaderboard(report.items, title=f"Items ({report.items.scope.value})")
    body.extend(["", items.replace("# ", "## ", 1)])
    if report.items.unranked:
        body.extend(["", f"{len(report.items.unranked)} items have no votes yet."])
    return _with_heading(report.gallery.display_handle, "\n".join(body))


def format_directory(cards: list[GalleryCard]) -> str:
    """Render the public gallery directory."""
    rows = [
        (truncate(c.display_handle), c.item_count, c.community_votes, c.community_points)
        for c in cards
    ]
    headers = ("Gallery", "Items", "Community Votes", "Points")
    table = tabulate(rows, headers=headers, tablefmt="github") if rows else "_No public galleries._"
    return _with_heading("Public Galleries", table)


def format_summary(summary: ArenaSummary) -> str:
    """Render headline arena counts."""
    rows = [
        ("Active items", summary.active_items),
        ("Galleries", summary.galleries),
        ("Public galleries", summary.public_galleries),
        ("Personal votes", summary.votes.get(VoteScope.PERSONAL, 0)),
        ("Community votes", summary.votes.get(VoteScope.COMMUNITY, 0)),
    ]
    table = tabulate(rows, headers=("Metric", "Value"), tablefmt="github")
    return _with_heading("Arena Stats", table)
