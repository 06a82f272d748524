"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Iterable

from rich import box
from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table

from .. import melds
from ..benchmark import SelfPlayReport
from ..cards import Card, Suit, sort_cards
from ..state import GameState

_SUIT_COLORS = {
    Suit.ORO: "yellow",
    Suit.COPA: "red",
    Suit.ESPADA: "cyan",
    Suit.BASTO: "green",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``."""

    color = _SUIT_COLORS.get(card.suit, "white")
    return f"[{color}]{card.label()}[/{color}]"


def format_cards(cards: Iterable[Card]) -> str:
    labels = [format_card(card) for card in cards]
    return " ".join(labels) if labels else "—"


def render_deal(game_state: GameState, title: str = "Chinchón") -> RenderableType:
    """Return a panel listing each hand, its deadwood and its meld candidates."""

    table = Table(box=box.ROUNDED, expand=True)
    table.add_column("Player", justify="left", style="bold")
    table.add_column("Hand", justify="left")
    table.add_column("Deadwood", justify="right")
    table.add_column("Meld candidates", justify="left")

    for player_id, player in game_state.players.items():
        name = f"P{player_id}"
        if player_id == game_state.turn_player_id:
            name = f"[yellow]{name} ▶[/yellow]"
        candidates = melds.enumerate_melds(player.hand)
        candidate_text = "\n".join(
            f"{meld.type.value}: {format_cards(meld.cards)}" for meld in candidates
        )
        table.add_row(
            name,
            format_cards(sort_cards(player.hand)),
            str(player.deadwood()),
            candidate_text or "[dim]none[/dim]",
        )

    top = game_state.discard_pile.cards[-1] if game_state.discard_pile.cards else None
    footer = (
        f"Round {game_state.round_number} • draw pile {len(game_state.draw_pile)} card(s)"
        f" • discard top {format_card(top) if top is not None else '—'}"
    )
    table.caption = footer
    return Panel(table, title=title, padding=(0, 1), border_style="cyan")


def render_self_play(report: SelfPlayReport) -> Table:
    """Return the aggregated self-play summary table."""

    totals = report.history.totals()
    table = Table(title="Self-Play Summary", box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="center")
    table.add_column("Games", justify="right")
    table.add_column("Rounds", justify="right")
    table.add_column("Gins", justify="right")
    table.add_column("Undercuts", justify="right")
    table.add_column("Points", justify="right")

    best = max((total.games_won for total in totals), default=0)
    for total in totals:
        label = f"P{total.player_id}"
        games = str(total.games_won)
        if total.games_won == best and report.history.games:
            label = f"[bold blue]{label}[/bold blue]"
            games = f"[bold blue]{games}[/bold blue]"
        table.add_row(
            label,
            games,
            str(total.rounds_won),
            str(total.gins),
            str(total.undercuts),
            str(total.points),
        )
    return table
