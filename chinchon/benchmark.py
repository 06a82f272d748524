"""Self-play harness driving complete Chinchón games between bots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from . import rules, scoreboard
from .bots import Bot, GreedyBot
from .engine import ChinchonGame
from .state import GameConfig, GameState

__all__ = ["MAX_ACTIONS", "GameResult", "SelfPlayReport", "play_game", "run_self_play"]

logger = logging.getLogger(__name__)

MAX_ACTIONS = 20_000


@dataclass(frozen=True, slots=True)
class GameResult:
    """Outcome of one self-play game."""

    winner_player_id: int
    rounds_played: int
    actions_played: int
    final_scores: tuple[int, ...]
    state: GameState = field(repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class SelfPlayReport:
    """Summary of a batch of self-play games."""

    history: scoreboard.MatchHistory
    results: tuple[GameResult, ...]

    @property
    def average_rounds(self) -> float:
        if not self.results:
            return 0.0
        return sum(result.rounds_played for result in self.results) / len(self.results)


def play_game(
    bots: Sequence[Bot],
    config: GameConfig | None = None,
    *,
    max_actions: int = MAX_ACTIONS,
) -> GameResult:
    """Play one game to completion, seat ``i`` controlled by ``bots[i]``."""

    if len(bots) != len(rules.PLAYER_IDS):
        raise ValueError(f"expected {len(rules.PLAYER_IDS)} bots, got {len(bots)}")
    if max_actions <= 0:
        raise ValueError("max_actions must be positive")

    game = ChinchonGame(config)
    actions_played = 0
    while not game.is_game_ended:
        if actions_played >= max_actions:
            raise RuntimeError(f"game did not finish within {max_actions} actions")
        actor = game.state.turn_player_id
        game.run_bot(bots[actor], actor)
        actions_played += 1

    game_state = game.state
    return GameResult(
        winner_player_id=game_state.winner_player_id,
        rounds_played=game_state.round_number,
        actions_played=actions_played,
        final_scores=tuple(player.score for player in game_state.players.values()),
        state=game_state,
    )


def run_self_play(
    games: int,
    *,
    seed: int = 123,
    max_points: int = rules.DEFAULT_MAX_POINTS,
) -> SelfPlayReport:
    """Play ``games`` games between two greedy bots and aggregate the results."""

    if games <= 0:
        raise ValueError("games must be positive")

    seeds = np.random.SeedSequence(seed).generate_state(games)
    history = scoreboard.MatchHistory()
    results: list[GameResult] = []
    bots = (GreedyBot(), GreedyBot())

    for game_number, game_seed in enumerate(seeds, start=1):
        config = GameConfig(max_points=max_points, seed=int(game_seed))
        result = play_game(bots, config)
        history.record_game(result.state)
        results.append(result)
        logger.info(
            "Game %d/%d: player %d wins after %d rounds (%s)",
            game_number,
            games,
            result.winner_player_id,
            result.rounds_played,
            " - ".join(str(score) for score in result.final_scores),
        )

    return SelfPlayReport(history=history, results=tuple(results))
