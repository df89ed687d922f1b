"""CLI for Gallery Arena."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import structlog
import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from gallery_arena import __version__
from gallery_arena.core.config import ArenaConfig, StoreConfig, load_config
from gallery_arena.core.context import MatchupScope, VoterContext, VoteScope
from gallery_arena.core.errors import ArenaError, ConfigurationError, MissingFieldError
from gallery_arena.services.arena import ArenaService, MatchupResponse
from gallery_arena.services.reporting import (
    format_directory,
    format_gallery_leaderboard,
    format_gallery_report,
    format_item_leaderboard,
    format_summary,
)
from gallery_arena.services.storage import ArenaStore

T = TypeVar("T")

load_dotenv()

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="gallery-arena",
    help="Gallery Arena - head-to-head image voting with Elo and Wilson-score leaderboards",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
DatabaseOption = Annotated[
    str | None, typer.Option("--database", "-d", help="Database URL (overrides config)")
]
ScopeOption = Annotated[
    VoteScope, typer.Option("--scope", "-s", help="Ledger: personal or community")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"gallery-arena v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Gallery Arena CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: Path | None, database: str | None) -> ArenaConfig:
    try:
        config = load_config(config_path) if config_path else ArenaConfig()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e

    if database:
        config.store = StoreConfig(
            database_url=database,
            busy_timeout=config.store.busy_timeout,
            echo=config.store.echo,
        )
    return config


def _execute(config: ArenaConfig, action: Callable[[ArenaService], Awaitable[T]]) -> T:
    """Run an async action against a fresh service, mapping engine errors to exit code 1."""

    async def _run() -> T:
        service = ArenaService(config)
        try:
            return await action(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_run())
    except ArenaError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e


def _print_report(report: str) -> None:
    console.print(report, markup=False, highlight=False, soft_wrap=True)


def _context(voter: str | None, anonymous: str | None, recent: list[str] | None) -> VoterContext:
    if voter is None and anonymous is None:
        console.print("[red]Error:[/red] pass --voter or --anonymous")
        raise typer.Exit(1)
    return VoterContext(
        voter_id=voter,
        anonymous_identity=anonymous,
        recent_gallery_ids=tuple(recent or ()),
    )


def _require(entry: dict[str, Any], field: str, source: Path) -> Any:
    if field not in entry or entry[field] in (None, ""):
        raise MissingFieldError(field, str(source))
    return entry[field]


SeedPlan = list[tuple[dict[str, Any], list[dict[str, Any]]]]


def _seed_plan(data: dict, source: Path) -> SeedPlan:
    """Check every gallery and item entry before anything is written."""
    plan: SeedPlan = []
    for entry in data.get("galleries") or []:
        handle = _require(entry, "handle", source)
        gallery = {
            "owner_id": entry.get("owner") or handle,
            "display_handle": handle,
            "is_public": bool(entry.get("public", True)),
            "gallery_id": entry.get("id"),
        }
        items = [
            {
                "media_url": _require(item, "url", source),
                "collection": item.get("collection"),
                "item_id": item.get("id"),
            }
            for item in entry.get("items") or []
        ]
        plan.append((gallery, items))
    return plan


async def _seed(service: ArenaService, plan: SeedPlan) -> tuple[int, int]:
    items = 0
    for gallery_fields, item_fields in plan:
        gallery = await service.store.catalog.add_gallery(**gallery_fields)
        for fields in item_fields:
            await service.store.catalog.add_item(gallery.id, **fields)
            items += 1
    return len(plan), items


@app.command("init-db")
def init_db(config_path: ConfigOption = None, database: DatabaseOption = None) -> None:
    """Create the database tables."""
    config = _load(config_path, database)
    ArenaStore(config).close_sync()
    console.print(f"[green]Database ready:[/green] {config.store.database_url}")


@app.command()
def seed(
    seed_path: Annotated[Path, typer.Argument(help="YAML file of galleries and items")],
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Load galleries and items from a YAML file.

    Expected layout::

        galleries:
          - handle: ana
            owner: user-1
            public: true
            items:
              - url: https://cdn.example/ana/1.jpg
                collection: portraits
    """
    config = _load(config_path, database)
    if not seed_path.exists():
        console.print(f"[red]Error:[/red] Seed file not found: {seed_path}")
        raise typer.Exit(1)

    with seed_path.open() as f:
        data = yaml.safe_load(f) or {}

    try:
        plan = _seed_plan(data, seed_path)
        galleries, items = _execute(config, lambda service: _seed(service, plan))
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e

    console.print(f"[green]Seeded[/green] {galleries} galleries, {items} items")


def _print_matchup(response: MatchupResponse) -> None:
    for label, view in (("A", response.item_a), ("B", response.item_b)):
        console.print(
            f"[bold]{label}[/bold] {view.item_id}  {view.display_handle}  "
            f"rating={view.rating:.1f}  {view.media_url}",
            highlight=False,
            soft_wrap=True,
        )
    console.print(f"Match quality: {response.match_quality:.2f}")
    if response.recent_gallery_ids:
        console.print(f"Recent galleries: {' '.join(response.recent_gallery_ids)}")
    if response.quota.remaining is not None:
        console.print(f"Anonymous matchups left: {response.quota.remaining}")


@app.command()
def matchup(
    gallery: Annotated[
        str | None, typer.Option("--gallery", "-g", help="Personal pool: gallery id")
    ] = None,
    voter: Annotated[str | None, typer.Option("--voter", help="Authenticated voter id")] = None,
    anonymous: Annotated[
        str | None, typer.Option("--anonymous", "-a", help="Anonymous identity token")
    ] = None,
    recent: Annotated[
        list[str] | None, typer.Option("--recent", "-r", help="Recently shown gallery id")
    ] = None,
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Draw a matchup from one gallery (--gallery) or the community pool."""
    config = _load(config_path, database)
    context = _context(voter, anonymous, recent)
    scope = MatchupScope.personal(gallery) if gallery else MatchupScope.community()

    result = _execute(config, lambda service: service.matchup(scope, context))
    if not isinstance(result, MatchupResponse):
        console.print(f"[yellow]No matchup:[/yellow] {result.reason}")
        raise typer.Exit(2)
    _print_matchup(result)


@app.command()
def vote(
    winner: Annotated[str, typer.Argument(help="Winning item id")],
    loser: Annotated[str, typer.Argument(help="Losing item id")],
    scope: ScopeOption = VoteScope.COMMUNITY,
    voter: Annotated[str | None, typer.Option("--voter", help="Authenticated voter id")] = None,
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Record a vote for WINNER over LOSER."""
    config = _load(config_path, database)
    context = VoterContext(voter_id=voter)

    outcome = _execute(config, lambda service: service.vote(winner, loser, scope, context))
    if not outcome.applied:
        console.print("[yellow]Duplicate vote skipped[/yellow]")
        return
    console.print(
        f"[green]Vote recorded[/green] ({outcome.scope.value}): "
        f"winner {outcome.winner_rating:.1f} ({outcome.winner_delta:+.1f}), "
        f"loser {outcome.loser_rating:.1f} ({outcome.loser_delta:+.1f})",
        highlight=False,
    )


@app.command()
def leaderboard(
    scope: ScopeOption = VoteScope.COMMUNITY,
    min_votes: Annotated[
        int | None, typer.Option("--min-votes", help="Votes required to be ranked")
    ] = None,
    items: Annotated[bool, typer.Option("--items", help="Rank items instead of galleries")] = False,
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Show the gallery (or item) leaderboard."""
    config = _load(config_path, database)
    if items:
        board = _execute(config, lambda service: service.top_items(scope, min_votes=min_votes))
        _print_report(format_item_leaderboard(board))
    else:
        board = _execute(config, lambda service: service.leaderboard(scope, min_votes=min_votes))
        _print_report(format_gallery_leaderboard(board))


@app.command()
def gallery(
    gallery_id: Annotated[str, typer.Argument(help="Gallery id")],
    scope: ScopeOption = VoteScope.PERSONAL,
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Show one gallery's stats and its ranked items."""
    config = _load(config_path, database)
    report = _execute(config, lambda service: service.gallery(gallery_id, scope))
    if report is None:
        console.print(f"[red]Error:[/red] Gallery not found: {gallery_id}")
        raise typer.Exit(1)
    _print_report(format_gallery_report(report))


@app.command()
def quota(
    anonymous: Annotated[str, typer.Argument(help="Anonymous identity token")],
    config_path: ConfigOption = None,
    database: DatabaseOption = None,
) -> None:
    """Show the matchups an anonymous identity has left."""
    config = _load(config_path, database)
    context = VoterContext(anonymous_identity=anonymous)
    status = _execute(config, lambda service: service.quota(context))
    colour = "green" if status.allowed else "red"
    allotment = config.quota.anonymous_allotment
    console.print(f"[{colour}]{status.remaining} of {allotment} left[/{colour}]")


@app.command()
def stats(config_path: ConfigOption = None, database: DatabaseOption = None) -> None:
    """Show arena totals and the public gallery directory."""
    config = _load(config_path, database)

    async def _collect(service: ArenaService) -> tuple:
        return await service.stats(), await service.galleries()

    summary, cards = _execute(config, _collect)
    _print_report(format_summary(summary))
    console.print()
    _print_report(format_directory(cards))


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.store.database_url}")
        console.print(f"  Initial rating: {config.rating.initial_rating}")
        console.print(f"  K-factor: {config.rating.k_factor}")
        console.print(f"  Exclusion window: {config.matchup.exclusion_window}")
        console.print(f"  Min votes to rank: {config.ranking.min_votes}")
        console.print(
            f"  Score weights: wilson={config.ranking.wilson_weight}, "
            f"elo={config.ranking.elo_weight}"
        )
        console.print(f"  Anonymous allotment: {config.quota.anonymous_allotment}")
        console.print(f"  Deduplicate votes: {config.voting.deduplicate}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Gallery Arena[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Create tables and load sample galleries")
    console.print("  gallery-arena init-db")
    console.print("  gallery-arena seed galleries.yaml\n")

    console.print("  # Community matchup for an anonymous visitor")
    console.print("  gallery-arena matchup --anonymous visitor-1\n")

    console.print("  # Personal matchup inside one gallery")
    console.print("  gallery-arena matchup --gallery <gallery-id> --voter user-1\n")

    console.print("  # Record a community vote")
    console.print("  gallery-arena vote <winner-id> <loser-id> --scope community\n")

    console.print("  # Leaderboards")
    console.print("  gallery-arena leaderboard --scope community --min-votes 5")
    console.print("  gallery-arena leaderboard --scope personal --items\n")

    console.print("  # Validate config")
    console.print("  gallery-arena validate config.yaml")


if __name__ == "__main__":
    app()
