"""Rule constants, error types and round scoring for Chinchón."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Final, Mapping

__all__ = [
    "DEFAULT_MAX_POINTS",
    "DEFAULT_HAND_SIZE",
    "KNOCK_THRESHOLD",
    "GIN_BONUS",
    "UNDERCUT_BONUS",
    "NO_PLAYER",
    "PLAYER_IDS",
    "ChinchonError",
    "ActionNotPossible",
    "NotYourTurn",
    "GameEnded",
    "EmptyPile",
    "UnknownAction",
    "RoundScore",
    "score_round",
    "game_winner",
]

DEFAULT_MAX_POINTS: Final[int] = 100
DEFAULT_HAND_SIZE: Final[int] = 7
KNOCK_THRESHOLD: Final[int] = 10
GIN_BONUS: Final[int] = 25
UNDERCUT_BONUS: Final[int] = 10
NO_PLAYER: Final[int] = -1
PLAYER_IDS: Final[tuple[int, int]] = (0, 1)


class ChinchonError(RuntimeError):
    """Base class for every rejection raised by the engine."""

    code: ClassVar[str] = "CHINCHON_ERROR"


class ActionNotPossible(ChinchonError):
    """Raised when an action's legality predicate does not hold."""

    code = "ACTION_NOT_POSSIBLE"


class NotYourTurn(ChinchonError):
    """Raised when a non-turn player acts during an unfinished round."""

    code = "NOT_YOUR_TURN"


class GameEnded(ChinchonError):
    """Raised for any action submitted after the game has ended."""

    code = "GAME_ENDED"


class EmptyPile(ChinchonError):
    """Raised when drawing from or peeking at an exhausted pile."""

    code = "EMPTY_PILE"


class UnknownAction(ChinchonError, ValueError):
    """Raised when a serialized action cannot be resolved to a variant."""

    code = "UNKNOWN_ACTION"


@dataclass(frozen=True, slots=True)
class RoundScore:
    """Outcome of a knock: who won the round and by how much."""

    knocked_player_id: int
    winner_player_id: int
    loser_player_id: int
    winner_deadwood_points: int
    loser_deadwood_points: int
    points_awarded: int

    @property
    def is_gin(self) -> bool:
        return self.winner_deadwood_points == 0

    @property
    def is_undercut(self) -> bool:
        return self.knocked_player_id != NO_PLAYER and self.knocked_player_id != self.winner_player_id


def score_round(deadwood: Mapping[int, int], knocked_player_id: int) -> RoundScore:
    """Compute the round result from both players' deadwood totals.

    Lower deadwood wins; an exact tie goes to the player who did not knock.
    The winner earns the deadwood difference, plus ``GIN_BONUS`` on zero
    deadwood, plus ``UNDERCUT_BONUS`` when the knocker lost the round.
    """

    first, second = PLAYER_IDS
    if deadwood[second] < deadwood[first]:
        winner, loser = second, first
    elif deadwood[second] > deadwood[first]:
        winner, loser = first, second
    elif knocked_player_id == first:
        winner, loser = second, first
    else:
        winner, loser = first, second

    winner_deadwood = deadwood[winner]
    loser_deadwood = deadwood[loser]
    points = loser_deadwood - winner_deadwood
    if winner_deadwood == 0:
        points += GIN_BONUS
    if knocked_player_id != NO_PLAYER and knocked_player_id != winner:
        points += UNDERCUT_BONUS

    return RoundScore(
        knocked_player_id=knocked_player_id,
        winner_player_id=winner,
        loser_player_id=loser,
        winner_deadwood_points=winner_deadwood,
        loser_deadwood_points=loser_deadwood,
        points_awarded=points,
    )


def game_winner(scores: Mapping[int, int], max_points: int, round_winner: int = NO_PLAYER) -> int:
    """Return the player who has won the game, or ``NO_PLAYER``.

    When several players reach ``max_points`` at once the highest score wins;
    equal scores go to the winner of the round just scored, then to the lower
    seat id.
    """

    qualifying = [player_id for player_id, score in scores.items() if score >= max_points]
    if not qualifying:
        return NO_PLAYER
    return min(
        qualifying,
        key=lambda player_id: (-scores[player_id], player_id != round_winner, player_id),
    )
