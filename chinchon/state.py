"""Core game state data structures for Chinchón."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

import orjson

from . import encoding, rules
from .cards import Card, Deck
from .melds import Meld, deadwood_points
from .piles import Pile

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .actions import Action


class TurnPhase(str, Enum):
    """Phases derived from the per-turn and per-round flags."""

    DRAWING = "drawing"
    DISCARDING = "discarding"
    MELD_OR_KNOCK = "meld_or_knock"
    ROUND_FINISHED = "round_finished"
    GAME_ENDED = "game_ended"


@dataclass(slots=True)
class GameConfig:
    """Rule parameters fixed for the lifetime of one game."""

    max_points: int = rules.DEFAULT_MAX_POINTS
    hand_size: int = rules.DEFAULT_HAND_SIZE
    knock_threshold: int = rules.KNOCK_THRESHOLD
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_points <= 0:
            raise ValueError("max_points must be positive")
        if self.hand_size <= 0:
            raise ValueError("hand_size must be positive")
        if self.knock_threshold < 0:
            raise ValueError("knock_threshold must not be negative")
        if self.hand_size * len(rules.PLAYER_IDS) >= encoding.DECK_CARD_COUNT:
            raise ValueError("hand_size leaves no card for the discard pile")


GameOption = Callable[[GameConfig], None]


def with_max_points(max_points: int) -> GameOption:
    """Return an option overriding the points needed to win the game."""

    def _apply(config: GameConfig) -> None:
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        config.max_points = max_points

    return _apply


def with_seed(seed: int | None) -> GameOption:
    """Return an option fixing the shuffle seed for reproducible games."""

    def _apply(config: GameConfig) -> None:
        config.seed = seed

    return _apply


def rules_from_mapping(data: Mapping[str, Any]) -> GameConfig:
    """Build a config from a client rules record such as ``{"maxPoints": 50}``.

    Missing or non-positive ``maxPoints`` keeps the default. ``isFlorEnabled``
    is accepted for forward compatibility and has no effect yet.
    """

    config = GameConfig()
    max_points = data.get("maxPoints")
    if isinstance(max_points, int) and not isinstance(max_points, bool) and max_points > 0:
        config.max_points = max_points
    return config


@dataclass(slots=True)
class PlayerState:
    """Hand, declared melds and cumulative score for one seat."""

    hand: list[Card] = field(default_factory=list)
    melds: list[Meld] = field(default_factory=list)
    score: int = 0

    def deadwood(self) -> int:
        return deadwood_points(self.hand, self.melds)

    def has_cards(self, cards: Iterable[Card]) -> bool:
        """Return ``True`` when every card in ``cards`` is held in hand."""

        remaining = list(self.hand)
        for card in cards:
            if card not in remaining:
                return False
            remaining.remove(card)
        return True

    def copy(self) -> "PlayerState":
        return PlayerState(hand=list(self.hand), melds=list(self.melds), score=self.score)


@dataclass(frozen=True, slots=True)
class ActionLog:
    """One applied action in serialized form, keyed by the acting player."""

    player_id: int
    action: dict[str, Any]


@dataclass(slots=True)
class RoundLog:
    """Record of a single round; index-aligned with the round number."""

    hands_dealt: dict[int, list[Card]] = field(default_factory=dict)
    melds_dealt: dict[int, list[Meld]] = field(default_factory=dict)
    knocked_player_id: int = rules.NO_PLAYER
    winner_player_id: int = rules.NO_PLAYER
    loser_player_id: int = rules.NO_PLAYER
    winner_deadwood_points: int = 0
    loser_deadwood_points: int = 0
    points_awarded: int = 0
    actions_log: list[ActionLog] = field(default_factory=list)

    def record_score(self, score: rules.RoundScore) -> None:
        self.knocked_player_id = score.knocked_player_id
        self.winner_player_id = score.winner_player_id
        self.loser_player_id = score.loser_player_id
        self.winner_deadwood_points = score.winner_deadwood_points
        self.loser_deadwood_points = score.loser_deadwood_points
        self.points_awarded = score.points_awarded

    def copy(self) -> "RoundLog":
        return RoundLog(
            hands_dealt={pid: list(hand) for pid, hand in self.hands_dealt.items()},
            melds_dealt={pid: list(melds) for pid, melds in self.melds_dealt.items()},
            knocked_player_id=self.knocked_player_id,
            winner_player_id=self.winner_player_id,
            loser_player_id=self.loser_player_id,
            winner_deadwood_points=self.winner_deadwood_points,
            loser_deadwood_points=self.loser_deadwood_points,
            points_awarded=self.points_awarded,
            actions_log=list(self.actions_log),
        )


def _new_players() -> dict[int, PlayerState]:
    return {player_id: PlayerState() for player_id in rules.PLAYER_IDS}


@dataclass(slots=True)
class GameState:
    """Authoritative aggregate for one game, mutated only by the engine."""

    config: GameConfig = field(default_factory=GameConfig)
    round_number: int = 0
    turn_player_id: int = 0
    turn_opponent_player_id: int = 1
    starting_player_id: int = rules.NO_PLAYER
    players: dict[int, PlayerState] = field(default_factory=_new_players)
    draw_pile: Pile = field(default_factory=Pile)
    discard_pile: Pile = field(default_factory=Pile)
    has_drawn_this_turn: bool = False
    has_discarded_this_turn: bool = False
    is_round_finished: bool = False
    knocked_player_id: int = rules.NO_PLAYER
    is_game_ended: bool = False
    winner_player_id: int = rules.NO_PLAYER
    round_finished_confirmed_player_ids: set[int] = field(default_factory=set)
    rounds_log: list[RoundLog] = field(default_factory=lambda: [RoundLog()])
    possible_actions: list["Action"] = field(default_factory=list)
    deck: Deck = field(default_factory=Deck, repr=False, compare=False)

    @property
    def max_points(self) -> int:
        return self.config.max_points

    @property
    def phase(self) -> TurnPhase:
        if self.is_game_ended:
            return TurnPhase.GAME_ENDED
        if self.is_round_finished:
            return TurnPhase.ROUND_FINISHED
        if not self.has_drawn_this_turn:
            return TurnPhase.DRAWING
        if not self.has_discarded_this_turn:
            return TurnPhase.DISCARDING
        return TurnPhase.MELD_OR_KNOCK

    def opponent_of(self, player_id: int) -> int:
        for candidate in self.players:
            if candidate != player_id:
                return candidate
        return rules.NO_PLAYER

    def current_round_log(self) -> RoundLog:
        return self.rounds_log[self.round_number]

    def last_action_log(self) -> ActionLog | None:
        actions_log = self.current_round_log().actions_log
        return actions_log[-1] if actions_log else None

    def round_actions(self, player_id: int | None = None) -> list["Action"]:
        """Decode the current round's action log, optionally for one player."""

        from .codec import action_from_dict  # Local import to avoid cycles

        decoded = [action_from_dict(entry.action) for entry in self.current_round_log().actions_log]
        if player_id is None:
            return decoded
        return [action for action in decoded if action.player_id == player_id]

    def clone(self) -> "GameState":
        """Copy everything an action may mutate; the deck is shared."""

        return GameState(
            config=self.config,
            round_number=self.round_number,
            turn_player_id=self.turn_player_id,
            turn_opponent_player_id=self.turn_opponent_player_id,
            starting_player_id=self.starting_player_id,
            players={pid: player.copy() for pid, player in self.players.items()},
            draw_pile=self.draw_pile.copy(),
            discard_pile=self.discard_pile.copy(),
            has_drawn_this_turn=self.has_drawn_this_turn,
            has_discarded_this_turn=self.has_discarded_this_turn,
            is_round_finished=self.is_round_finished,
            knocked_player_id=self.knocked_player_id,
            is_game_ended=self.is_game_ended,
            winner_player_id=self.winner_player_id,
            round_finished_confirmed_player_ids=set(self.round_finished_confirmed_player_ids),
            rounds_log=[entry.copy() for entry in self.rounds_log],
            possible_actions=list(self.possible_actions),
            deck=self.deck,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the full, unprojected state."""

        from .codec import action_to_dict, card_to_dict, meld_to_dict  # Local import to avoid cycles

        def _cards(cards: Iterable[Card]) -> list[dict[str, Any]]:
            return [card_to_dict(card) for card in cards]

        def _melds(melds: Iterable[Meld]) -> list[dict[str, Any]]:
            return [meld_to_dict(meld) for meld in melds]

        return {
            "roundNumber": self.round_number,
            "turnPlayerID": self.turn_player_id,
            "turnOpponentPlayerID": self.turn_opponent_player_id,
            "players": {
                str(pid): {"hand": _cards(player.hand), "melds": _melds(player.melds), "score": player.score}
                for pid, player in self.players.items()
            },
            "possibleActions": [action_to_dict(action) for action in self.possible_actions],
            "drawPile": _cards(self.draw_pile.cards),
            "discardPile": _cards(self.discard_pile.cards),
            "hasDrawnThisTurn": self.has_drawn_this_turn,
            "hasDiscardedThisTurn": self.has_discarded_this_turn,
            "knockedPlayerID": self.knocked_player_id,
            "isRoundFinished": self.is_round_finished,
            "isGameEnded": self.is_game_ended,
            "winnerPlayerID": self.winner_player_id,
            "roundsLog": [
                {
                    "handsDealt": {str(pid): _cards(hand) for pid, hand in entry.hands_dealt.items()},
                    "meldsDealt": {str(pid): _melds(melds) for pid, melds in entry.melds_dealt.items()},
                    "knockedPlayerID": entry.knocked_player_id,
                    "winnerPlayerID": entry.winner_player_id,
                    "loserPlayerID": entry.loser_player_id,
                    "winnerDeadwoodPoints": entry.winner_deadwood_points,
                    "loserDeadwoodPoints": entry.loser_deadwood_points,
                    "pointsAwarded": entry.points_awarded,
                    "actionsLog": [
                        {"playerID": log.player_id, "action": log.action} for log in entry.actions_log
                    ],
                }
                for entry in self.rounds_log
            ],
            "roundFinishedConfirmedPlayerIDs": sorted(self.round_finished_confirmed_player_ids),
            "ruleMaxPoints": self.max_points,
        }

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())


def new_game_state(config: GameConfig | None = None) -> GameState:
    """Return a game with the round-0 sentinel and a fresh deck, not yet dealt."""

    config = config or GameConfig()
    return GameState(config=config, deck=Deck(config.seed))


def deal_round(state: GameState) -> None:
    """Shuffle, redeal and reset every per-round field, appending a new round log.

    The first round is opened by seat 0; every following round is opened by
    the player who did not open the previous one.
    """

    state.deck.shuffle()
    state.round_number += 1

    if state.starting_player_id == rules.NO_PLAYER:
        starter = rules.PLAYER_IDS[0]
    else:
        starter = state.opponent_of(state.starting_player_id)
    state.starting_player_id = starter
    state.turn_player_id = starter
    state.turn_opponent_player_id = state.opponent_of(starter)

    hands: dict[int, list[Card]] = {player_id: [] for player_id in state.players}
    for _ in range(state.config.hand_size):
        for player_id in (starter, state.turn_opponent_player_id):
            hands[player_id].extend(state.deck.deal(1))

    for player_id, player in state.players.items():
        player.hand = hands[player_id]
        player.melds = []

    state.draw_pile = Pile(state.deck.deal(len(state.deck)))
    state.discard_pile = Pile()
    if not state.draw_pile.is_empty():
        state.discard_pile.push(state.draw_pile.draw())

    state.knocked_player_id = rules.NO_PLAYER
    state.has_drawn_this_turn = False
    state.has_discarded_this_turn = False
    state.is_round_finished = False
    state.round_finished_confirmed_player_ids = set()

    state.rounds_log.append(
        RoundLog(hands_dealt={player_id: list(hand) for player_id, hand in hands.items()})
    )


def replenish_draw_pile(state: GameState) -> bool:
    """Turn the discard pile, minus its top card, into a fresh draw pile.

    Only acts when the draw pile is exhausted and the discard pile holds more
    than one card. Returns ``True`` when cards were moved.
    """

    if not state.draw_pile.is_empty() or len(state.discard_pile) <= 1:
        return False
    top_card = state.discard_pile.draw()
    pool = list(state.discard_pile.cards)
    order = state.deck.spawn_rng().permutation(len(pool))
    state.draw_pile = Pile([pool[int(idx)] for idx in order])
    state.discard_pile = Pile([top_card])
    return True
