"""Helpers for tracking Chinchón results across rounds and games."""

from __future__ import annotations

from dataclasses import dataclass, field

from . import rules
from .state import GameState, RoundLog

__all__ = ["RoundSummary", "PlayerMatchTotal", "MatchHistory"]


@dataclass(frozen=True, slots=True)
class RoundSummary:
    """Outcome of a single finished round."""

    round_number: int
    winner_player_id: int
    knocked_player_id: int
    points_awarded: int
    winner_deadwood_points: int
    loser_deadwood_points: int

    @property
    def is_gin(self) -> bool:
        return self.winner_deadwood_points == 0

    @property
    def is_undercut(self) -> bool:
        return self.knocked_player_id != self.winner_player_id

    @classmethod
    def from_round_log(cls, round_number: int, entry: RoundLog) -> "RoundSummary":
        return cls(
            round_number=round_number,
            winner_player_id=entry.winner_player_id,
            knocked_player_id=entry.knocked_player_id,
            points_awarded=entry.points_awarded,
            winner_deadwood_points=entry.winner_deadwood_points,
            loser_deadwood_points=entry.loser_deadwood_points,
        )


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate totals accumulated for one seat across all recorded games."""

    player_id: int
    games_won: int
    rounds_won: int
    gins: int
    undercuts: int
    points: int


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker accumulating round summaries and game winners."""

    num_players: int = len(rules.PLAYER_IDS)
    rounds: list[RoundSummary] = field(default_factory=list)
    games: int = 0
    _games_won: list[int] = field(init=False, repr=False)
    _rounds_won: list[int] = field(init=False, repr=False)
    _gins: list[int] = field(init=False, repr=False)
    _undercuts: list[int] = field(init=False, repr=False)
    _points: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.num_players <= 0:
            raise ValueError("num_players must be positive")
        self._games_won = [0 for _ in range(self.num_players)]
        self._rounds_won = [0 for _ in range(self.num_players)]
        self._gins = [0 for _ in range(self.num_players)]
        self._undercuts = [0 for _ in range(self.num_players)]
        self._points = [0 for _ in range(self.num_players)]

    def _check_player(self, player_id: int) -> None:
        if player_id < 0 or player_id >= self.num_players:
            raise ValueError("player id out of range")

    def record(self, summary: RoundSummary) -> None:
        """Record ``summary`` and update cumulative totals."""

        winner = summary.winner_player_id
        self._check_player(winner)
        self.rounds.append(summary)
        self._rounds_won[winner] += 1
        self._points[winner] += summary.points_awarded
        if summary.is_gin:
            self._gins[winner] += 1
        if summary.is_undercut:
            self._undercuts[winner] += 1

    def record_game(self, game_state: GameState) -> None:
        """Record every scored round of ``game_state`` and its winner, if any."""

        for round_number, entry in enumerate(game_state.rounds_log):
            if entry.winner_player_id == rules.NO_PLAYER:
                continue
            self.record(RoundSummary.from_round_log(round_number, entry))
        self.games += 1
        if game_state.is_game_ended:
            self._check_player(game_state.winner_player_id)
            self._games_won[game_state.winner_player_id] += 1

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seat order."""

        return [
            PlayerMatchTotal(
                player_id=idx,
                games_won=self._games_won[idx],
                rounds_won=self._rounds_won[idx],
                gins=self._gins[idx],
                undercuts=self._undercuts[idx],
                points=self._points[idx],
            )
            for idx in range(self.num_players)
        ]
