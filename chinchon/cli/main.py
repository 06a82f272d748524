"""Typer entry-point wiring for the Chinchón CLI."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from .. import benchmark, rules
from ..engine import ChinchonGame
from ..state import GameConfig
from .render import render_deal, render_self_play

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_logging(log_level: str) -> None:
    level = log_level.upper()
    if level not in _LOG_LEVELS:
        raise typer.BadParameter(f"log level must be one of {', '.join(_LOG_LEVELS)}")
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def simulate(
    games: int = typer.Option(10, min=1, help="Number of self-play games."),
    seed: int = typer.Option(123, help="Random seed for the whole batch."),
    max_points: int = typer.Option(rules.DEFAULT_MAX_POINTS, min=1, help="Points needed to win a game."),
    log_level: str = typer.Option("WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
) -> None:
    """Play greedy bots against each other and print the aggregated results."""

    _configure_logging(log_level)
    report = benchmark.run_self_play(games, seed=seed, max_points=max_points)
    console.print(render_self_play(report))
    console.print(
        f"[cyan]{len(report.results)} game(s), {len(report.history.rounds)} round(s) simulated;"
        f" {report.average_rounds:.1f} round(s) per game.[/cyan]"
    )


@app.command()
def deal(
    seed: int | None = typer.Option(None, help="Random seed for a reproducible deal (omit for randomness)."),
) -> None:
    """Deal round one of a fresh game and show each hand's meld candidates."""

    game = ChinchonGame(GameConfig(seed=seed))
    console.print(render_deal(game.state))


def main() -> None:
    """Entry-point for the ``chinchon`` console script."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
