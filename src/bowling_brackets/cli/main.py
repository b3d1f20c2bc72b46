"""Typer CLI application for running bowling brackets from a JSON store."""

from __future__ import annotations

import datetime
import random
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from bowling_brackets.config import load_config
from bowling_brackets.engine.tree import round_name
from bowling_brackets.errors import BracketError, InputError, PlayerNotFoundError
from bowling_brackets.service.reconcile import ReconcileResult
from bowling_brackets.service.stats import active_brackets, player_ledger
from bowling_brackets.service.tournament import TournamentService
from bowling_brackets.store.repository import JsonRepository
from bowling_brackets.store.schema import Bracket, CohortType, Match, Player
from bowling_brackets.utils.logger import LEVEL_NAMES, configure_logging

app = typer.Typer(help="Bowling bracket manager")
console = Console()

DATA_DIR_OPTION = typer.Option(Path("data/"), "--data-dir", help="Directory holding the JSON store")
CONFIG_OPTION = typer.Option(None, "--config", help="Path to JSON config override")


@app.callback()
def _callback(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help=f"One of {', '.join(LEVEL_NAMES)}; defaults to BOWLING_BRACKETS_LOG_LEVEL or NORMAL",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Same as --log-level VERBOSE"),
) -> None:
    """Bowling brackets: deploy cohorts, enter scores, settle payouts."""
    try:
        configure_logging("VERBOSE" if verbose and log_level is None else log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


@contextmanager
def _errors() -> Iterator[None]:
    """Print library and config errors in red and exit with status 1."""
    try:
        yield
    except (BracketError, FileNotFoundError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def _service(data_dir: Path, config: Path | None = None, seed: int | None = None) -> TournamentService:
    data_dir.mkdir(parents=True, exist_ok=True)
    rng = random.Random(seed) if seed is not None else None
    return TournamentService(JsonRepository(base_path=data_dir), load_config(config), rng=rng)


def _player_by_name(service: TournamentService, name: str) -> Player:
    player = service.find_player(name)
    if player is None:
        msg = f"Player {name!r} not found"
        raise PlayerNotFoundError(msg)
    return player


def _print_result(result: ReconcileResult) -> None:
    console.print(f"{result.advancements} advancements across {result.brackets_updated} brackets")
    for event in result.completed:
        console.print(f"[green]{event.winner_name} wins bracket {event.bracket_number}[/green]")
    for bracket_id, reason in result.failures.items():
        console.print(f"[yellow]Bracket {bracket_id} halted: {reason}[/yellow]")


def _slot(match: Match, which: str) -> str:
    player = getattr(match, which)
    if player is None:
        return "-"
    if match.winner is not None and match.winner.id == player.id:
        return f"[bold]{player.name}[/bold]"
    return player.name


def _bracket_table(bracket: Bracket) -> Table:
    title = f"Bracket {bracket.bracket_number}"
    if bracket.structure.winner is not None:
        title += f" (won by {bracket.structure.winner.name})"
    table = Table(title=title)
    table.add_column("Round")
    table.add_column("Match", justify="right")
    table.add_column("Player 1")
    table.add_column("Player 2")
    for round_index, match_index, match in bracket.structure.iter_matches():
        table.add_row(
            round_name(round_index),
            str(match_index + 1),
            _slot(match, "player1"),
            _slot(match, "player2"),
        )
    return table


@app.command("add-player")
def add_player(
    name: str = typer.Argument(..., help="Player name"),
    average: float = typer.Option(0.0, "--average", help="Bowling average"),
    handicap: int = typer.Option(0, "--handicap", help="Pins added in handicap cohorts"),
    entries: int = typer.Option(1, "--entries", help="Default number of bracket entries"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Register a player."""
    with _errors():
        player = _service(data_dir).add_player(name, average=average, handicap=handicap, default_entries=entries)
    console.print(f"Added {player.name} ({player.id})")


@app.command("create-cohort")
def create_cohort(
    name: str = typer.Argument(..., help="Cohort name"),
    cohort_type: CohortType = typer.Option(
        CohortType.SCRATCH, "--type", case_sensitive=False, help="Scratch or Handicap"
    ),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Create an undeployed cohort."""
    with _errors():
        cohort = _service(data_dir).create_cohort(name, cohort_type)
    console.print(f"Created {cohort.type.value} cohort {cohort.name} ({cohort.id})")


@app.command()
def enter(
    cohort: str = typer.Argument(..., help="Cohort name"),
    players: list[str] = typer.Argument(..., help="Entrants as NAME or NAME:COUNT"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Select the entrants of a cohort and how many brackets each buys."""
    with _errors():
        service = _service(data_dir)
        target = service.find_cohort(cohort)
        counts: dict[str, int] = {}
        for entry in players:
            name, _, count = entry.rpartition(":") if ":" in entry else (entry, "", "")
            if count and not count.isdigit():
                msg = f"Bad entry count in {entry!r}"
                raise InputError(msg)
            player = _player_by_name(service, name)
            counts[player.id] = int(count) if count else player.default_entries
        service.set_entries(target.id, counts)
    console.print(f"{len(counts)} players entered in {target.name} ({sum(counts.values())} entries)")


@app.command()
def deploy(
    cohort: str = typer.Argument(..., help="Cohort name"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for reproducible draws"),
    data_dir: Path = DATA_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Assign entries to brackets and activate the cohort."""
    with _errors():
        service = _service(data_dir, config, seed)
        result = service.deploy_cohort(service.find_cohort(cohort).id)
    console.print(
        f"Deployed {len(result.brackets)} brackets "
        f"({result.entries_placed} of {result.entries_requested} entries placed)"
    )
    dropped = result.assignment.dropped_by_player()
    if dropped:
        names = {p.id: p.name for p in service.list_players()}
        for player_id, count in dropped.items():
            console.print(f"[yellow]{names.get(player_id, player_id)}: {count} entries not placed[/yellow]")


@app.command()
def score(
    cohort: str = typer.Argument(..., help="Cohort name"),
    player: str = typer.Argument(..., help="Player name"),
    game: int = typer.Argument(..., help="Game number (1-3)"),
    pins: int = typer.Argument(..., help="Raw score"),
    data_dir: Path = DATA_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Record a game score and advance every bracket it decides."""
    with _errors():
        service = _service(data_dir, config)
        target = service.find_cohort(cohort)
        entrant = _player_by_name(service, player)
        if not service.is_score_relevant(target.id, entrant.id, game):
            console.print(f"[yellow]{entrant.name} is out of every bracket before game {game}[/yellow]")
        result = service.record_score(target.id, entrant.id, game, pins)
    _print_result(result)


@app.command()
def resync(
    cohort: str = typer.Argument(..., help="Cohort name"),
    data_dir: Path = DATA_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Re-run reconciliation over every bracket of a cohort."""
    with _errors():
        service = _service(data_dir, config)
        result = service.resync_cohort(service.find_cohort(cohort).id)
    _print_result(result)


@app.command()
def show(
    cohort: str = typer.Argument(..., help="Cohort name"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """Print every bracket of a cohort."""
    with _errors():
        service = _service(data_dir)
        target = service.find_cohort(cohort)
        brackets = service.cohort_brackets(target.id)
    console.print(f"{target.name} ({target.type.value}, {target.status.value})")
    for bracket in brackets:
        console.print(_bracket_table(bracket))


@app.command()
def payouts(
    player: str | None = typer.Option(None, "--player", help="Filter by player name (substring)"),
    cohort: str | None = typer.Option(None, "--cohort", help="Filter by cohort name"),
    date: datetime.datetime | None = typer.Option(None, "--date", formats=["%Y-%m-%d"], help="Payout day"),
    operator: bool = typer.Option(False, "--operator", help="Show the operator's cut"),
    data_dir: Path = DATA_DIR_OPTION,
) -> None:
    """List payouts."""
    day = date.date() if date is not None else None
    with _errors():
        service = _service(data_dir)
        if operator:
            rows = service.get_operator_payouts(day)
        elif player is not None:
            rows = service.get_player_payouts(player, day)
        elif cohort is not None:
            rows = service.get_payouts_for_cohort(service.find_cohort(cohort).id)
        else:
            rows = service.repository.get_payouts()
    table = Table(title="Payouts")
    for column in ("Date", "Cohort", "Bracket", "Player", "Position", "Amount"):
        table.add_column(column, no_wrap=column in ("Date", "Amount"))
    for payout in rows:
        table.add_row(
            payout.date.isoformat(),
            payout.cohort_name,
            payout.bracket_id,
            payout.player_name,
            payout.position.name.title(),
            f"${payout.amount:.2f}",
        )
    console.print(table)
    console.print(f"Total: ${sum(p.amount for p in rows):.2f}")


@app.command()
def stats(
    player: str = typer.Argument(..., help="Player name"),
    data_dir: Path = DATA_DIR_OPTION,
    config: Path | None = CONFIG_OPTION,
) -> None:
    """Print a player's ledger and live brackets."""
    with _errors():
        service = _service(data_dir, config)
        entrant = _player_by_name(service, player)
        ledger, summary = player_ledger(service.repository, entrant.id, service.config.entry_fee)
        live = active_brackets(service.repository, entrant.id, service.config.first_place_amount)

    console.print(
        f"{entrant.name}: {summary.total_entries} entries, "
        f"cost ${summary.total_cost:.2f}, won ${summary.total_revenue:.2f}, "
        f"net ${summary.net_pnl:.2f}"
    )
    console.print(f"ROI {summary.roi_pct:.1f}%, cash rate {summary.cash_rate_pct:.1f}%")
    table = Table(title="Daily")
    for column in ("Date", "Entries", "Cost", "Revenue", "P&L"):
        table.add_column(column)
    for row in ledger.iloc[::-1].itertuples(index=False):
        table.add_row(str(row.date), str(row.entries), f"{row.cost:.2f}", f"{row.revenue:.2f}", f"{row.pnl:.2f}")
    console.print(table)

    for item in live:
        console.print(
            f"{item.cohort_name} bracket {item.bracket_number}: round {item.current_round}, "
            f"playing for ${item.potential:.2f}"
        )
