"""CLI for the Aura tournament core."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, TypeVar

import structlog
import typer
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler

from aura_tournament import __version__
from aura_tournament.core.config import AuraConfig, load_config
from aura_tournament.core.errors import ConfigurationError, TournamentError
from aura_tournament.models import ScoreSnapshot
from aura_tournament.services.reporting import (
    generate_leaderboard,
    generate_round_report,
    generate_teammate_report,
)
from aura_tournament.services.scoring import CourtPositions, TeamPositions
from aura_tournament.tournament import TournamentService, create_service

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
    name="aura-tournament",
    help="Aura doubles tournament core - pairings, ratings and live scoring",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"aura-tournament v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Aura tournament CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _load(config_path: Path | None) -> AuraConfig:
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except PydanticValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1) from e


def _run(
    config_path: Path | None,
    verbose: bool,
    action: Callable[[TournamentService], Awaitable[T]],
) -> T:
    """Run one async operation against a fresh service and map errors to exit 1."""
    _configure_logging(verbose)
    config = _load(config_path)

    async def _main() -> T:
        service = create_service(config)
        try:
            return await action(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_main())
    except TournamentError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1) from e


def _print_snapshot(snapshot: ScoreSnapshot) -> None:
    positions = CourtPositions.from_dict(snapshot.positions)
    console.print(
        f"[bold]{snapshot.team_a_score} - {snapshot.team_b_score}[/bold]  "
        f"serving: team {snapshot.serving_team_id} (server {snapshot.server_sequence})"
    )
    console.print(f"  Team A  right {positions.team_a.right}  left {positions.team_a.left}")
    console.print(f"  Team B  right {positions.team_b.right}  left {positions.team_b.left}")


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file."""
    config = _load(config_path)
    console.print("[green]Configuration is valid![/green]")
    console.print(f"  Database: {config.get_database_url()}")
    console.print(
        f"  Game: to {config.scoring.points_to_win}, win by {config.scoring.win_by}"
    )
    console.print(
        f"  Initial rating: mu {config.rating.initial_mu}, sigma {config.rating.initial_sigma}"
    )
    console.print(f"  Max players: {config.pairing.max_players}")


@app.command("init-db")
def init_db(config_path: ConfigOption = None, verbose: VerboseOption = False) -> None:
    """Create the database tables."""

    async def _action(service: TournamentService) -> str:
        return service.store.database_url

    url = _run(config_path, verbose, _action)
    console.print(f"[green]Database ready:[/green] {url}")


@app.command("create-tournament")
def create_tournament(
    name: Annotated[str, typer.Argument(help="Tournament name")],
    rounds: Annotated[int, typer.Option("--rounds", "-r", min=1, help="Number of rounds")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Create a tournament."""
    tournament = _run(
        config_path, verbose, lambda service: service.create_tournament(name, rounds)
    )
    console.print(f"[green]Created tournament {tournament.id}:[/green] {tournament.name}")


@app.command("add-player")
def add_player(
    username: Annotated[str, typer.Argument(help="Player name")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Add a player."""
    player = _run(config_path, verbose, lambda service: service.add_player(username))
    console.print(f"[green]Added player {player.id}:[/green] {player.username}")


@app.command()
def register(
    tournament_id: Annotated[int, typer.Argument(help="Tournament id")],
    player_ids: Annotated[list[int], typer.Argument(help="Player ids")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Register players for a tournament."""
    added = _run(
        config_path, verbose, lambda service: service.register(tournament_id, player_ids)
    )
    console.print(f"[green]Registered {added} player(s)[/green]")


@app.command("generate-round")
def generate_round(
    tournament_id: Annotated[int, typer.Argument(help="Tournament id")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Pair the roster for the next round."""
    result = _run(config_path, verbose, lambda service: service.generate_round(tournament_id))
    console.print(generate_round_report(result))


@app.command()
def start(
    match_id: Annotated[int, typer.Argument(help="Match id")],
    serving: Annotated[int, typer.Option("--serving", "-s", help="Serving team id")],
    positions: Annotated[
        tuple[int, int, int, int],
        typer.Option(
            "--positions",
            "-p",
            help="Player ids: Team A right, Team A left, Team B right, Team B left",
        ),
    ],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Start a scheduled match."""
    a_right, a_left, b_right, b_left = positions
    court = CourtPositions(
        team_a=TeamPositions(right=a_right, left=a_left),
        team_b=TeamPositions(right=b_right, left=b_left),
    )
    snapshot = _run(
        config_path, verbose, lambda service: service.start_match(match_id, serving, court)
    )
    _print_snapshot(snapshot)


@app.command()
def point(
    match_id: Annotated[int, typer.Argument(help="Match id")],
    team_id: Annotated[int, typer.Argument(help="Team that won the rally")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Record a rally."""

    async def _action(service: TournamentService) -> tuple[ScoreSnapshot, float]:
        snapshot = await service.record_point(match_id, team_id)
        return snapshot, await service.get_win_probability(match_id)

    snapshot, probability = _run(config_path, verbose, _action)
    _print_snapshot(snapshot)
    console.print(f"  Team A win probability: {probability:.1%}")


@app.command()
def undo(
    match_id: Annotated[int, typer.Argument(help="Match id")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Undo the last rally."""
    snapshot = _run(config_path, verbose, lambda service: service.undo_point(match_id))
    console.print("[yellow]Point undone[/yellow]")
    _print_snapshot(snapshot)


@app.command()
def state(
    match_id: Annotated[int, typer.Argument(help="Match id")],
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the live score and win probability of a match."""

    async def _action(service: TournamentService) -> tuple[ScoreSnapshot, float]:
        snapshot = await service.get_live_state(match_id)
        return snapshot, await service.get_win_probability(match_id)

    snapshot, probability = _run(config_path, verbose, _action)
    _print_snapshot(snapshot)
    console.print(f"  Team A win probability: {probability:.1%}")


@app.command()
def leaderboard(
    tournament_id: Annotated[int, typer.Argument(help="Tournament id")],
    partners: Annotated[
        bool, typer.Option("--partners", help="Also list each player's partners")
    ] = False,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show tournament standings."""

    async def _action(service: TournamentService) -> str:
        standings = await service.get_standings(tournament_id)
        report = generate_leaderboard(standings)
        if partners:
            history = await service.get_teammate_history(tournament_id)
            names = {entry.player_id: entry.name for entry in standings}
            report += "\n\n" + generate_teammate_report(history, names)
        return report

    console.print(_run(config_path, verbose, _action))


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Aura Tournament[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Set up a tournament")
    console.print("  aura-tournament create-tournament 'Club Night' --rounds 3")
    console.print("  aura-tournament add-player alice")
    console.print("  aura-tournament register 1 1 2 3 4\n")

    console.print("  # Pair the next round")
    console.print("  aura-tournament generate-round 1\n")

    console.print("  # Score a match")
    console.print("  aura-tournament start 1 --serving 1 --positions 1 2 3 4")
    console.print("  aura-tournament point 1 1")
    console.print("  aura-tournament undo 1\n")

    console.print("  # Standings")
    console.print("  aura-tournament leaderboard 1 --partners\n")

    console.print("  # Use another database")
    console.print("  AURA_DATABASE_URL=sqlite:///club.db aura-tournament init-db")


if __name__ == "__main__":
    app()
