"""Game engine driving the Chinchón turn, round and game lifecycle."""

from __future__ import annotations

import logging
import threading
from dataclasses import fields
from typing import TYPE_CHECKING, Any, Mapping

from . import actions, rules
from .actions import Action
from .codec import action_to_dict, deserialize_action
from .perspective import ClientGameState, to_client_state
from .state import (
    ActionLog,
    GameConfig,
    GameOption,
    GameState,
    deal_round,
    new_game_state,
    replenish_draw_pile,
)

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .bots import Bot

logger = logging.getLogger(__name__)


def _restore(target: GameState, snapshot: GameState) -> None:
    for state_field in fields(GameState):
        setattr(target, state_field.name, getattr(snapshot, state_field.name))


class ChinchonGame:
    """Single owner of one game's ``GameState``.

    All mutations go through :meth:`apply_action`, which is serialized by a
    per-game lock and either applies an action completely or leaves the state
    untouched.
    """

    def __init__(self, config: GameConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._state = new_game_state(config)
        self._start_new_round()

    @classmethod
    def new(cls, *options: GameOption, config: GameConfig | None = None) -> "ChinchonGame":
        """Create a game from ``config`` (or the defaults) with ``options`` applied in order."""

        base = config or GameConfig()
        resolved = GameConfig(
            max_points=base.max_points,
            hand_size=base.hand_size,
            knock_threshold=base.knock_threshold,
            seed=base.seed,
        )
        for option in options:
            option(resolved)
        return cls(resolved)

    @property
    def state(self) -> GameState:
        """The authoritative aggregate. Callers must treat it as read-only."""

        return self._state

    @property
    def is_game_ended(self) -> bool:
        return self._state.is_game_ended

    def apply_action(self, action: Action) -> None:
        """Validate and apply ``action``, then advance turn, round and game state."""

        with self._lock:
            state = self._state
            if state.is_game_ended:
                logger.warning("Rejected %s: game is ended", actions.describe(action))
                raise rules.GameEnded(f"game is ended trying to run [{actions.describe(action)}]")
            if (
                not state.is_round_finished
                and action.name != actions.CONFIRM_ROUND_FINISHED
                and action.player_id != state.turn_player_id
            ):
                logger.warning("Rejected %s: not player's turn", actions.describe(action))
                raise rules.NotYourTurn(
                    f"player {action.player_id} acted during player {state.turn_player_id}'s turn"
                )
            action = actions.enrich(action, state)
            if not actions.is_legal(action, state):
                logger.warning("Rejected %s: not possible", actions.describe(action))
                raise rules.ActionNotPossible(f"action not possible trying to run [{actions.describe(action)}]")

            snapshot = state.clone()
            try:
                self._transition(action)
            except Exception:
                _restore(state, snapshot)
                raise

    def submit(self, payload: bytes | str | Mapping[str, Any], player_id: int) -> ClientGameState:
        """Decode a serialized action sent by ``player_id``, apply it and return their view."""

        action = deserialize_action(payload)
        if action.player_id != player_id:
            raise rules.NotYourTurn(f"player {player_id} cannot act as player {action.player_id}")
        self.apply_action(action)
        return self.client_state(player_id)

    def legal_actions(self, player_id: int | None = None) -> list[Action]:
        """Return the current legal actions, optionally only those of ``player_id``."""

        with self._lock:
            possible = actions.legal_actions(self._state)
        if player_id is None:
            return possible
        return [action for action in possible if action.player_id == player_id]

    def client_state(self, player_id: int) -> ClientGameState:
        with self._lock:
            return to_client_state(self._state, player_id)

    def run_bot(self, bot: "Bot", player_id: int) -> Action:
        """Let ``bot`` choose an action from ``player_id``'s view and apply it."""

        action = bot.choose_action(self.client_state(player_id))
        self.apply_action(action)
        return action

    def _transition(self, action: Action) -> None:
        state = self._state
        actions.apply_action(action, state)
        logger.debug("Round %d: %s", state.round_number, actions.describe(action))

        if action.name != actions.CONFIRM_ROUND_FINISHED:
            state.current_round_log().actions_log.append(
                ActionLog(player_id=state.turn_player_id, action=action_to_dict(action))
            )
        if action.name == actions.KNOCK:
            round_log = state.current_round_log()
            logger.info(
                "Round %d won by player %d (%d vs %d deadwood, %d points)",
                state.round_number,
                round_log.winner_player_id,
                round_log.winner_deadwood_points,
                round_log.loser_deadwood_points,
                round_log.points_awarded,
            )

        confirmed = state.round_finished_confirmed_player_ids
        if state.is_round_finished and len(confirmed) == len(state.players):
            self._start_new_round()
            return

        if not state.is_round_finished and actions.yields_turn(action, state):
            self._hand_over_turn()

        if state.is_round_finished and len(confirmed) == 1 and state.turn_player_id in confirmed:
            self._swap_turn()

        self._check_game_end()

        possible = actions.legal_actions(state)
        if not state.is_game_ended and not any(a.player_id == state.turn_player_id for a in possible):
            if state.is_round_finished:
                self._swap_turn()
            else:
                self._hand_over_turn()
            possible = actions.legal_actions(state)
        state.possible_actions = possible

    def _swap_turn(self) -> None:
        state = self._state
        state.turn_player_id, state.turn_opponent_player_id = (
            state.turn_opponent_player_id,
            state.turn_player_id,
        )

    def _hand_over_turn(self) -> None:
        state = self._state
        self._swap_turn()
        state.has_drawn_this_turn = False
        state.has_discarded_this_turn = False
        if replenish_draw_pile(state):
            logger.debug("Round %d: discard pile reshuffled into draw pile", state.round_number)

    def _check_game_end(self) -> None:
        state = self._state
        scores = {player_id: player.score for player_id, player in state.players.items()}
        winner = rules.game_winner(scores, state.max_points, state.current_round_log().winner_player_id)
        if winner == rules.NO_PLAYER:
            return
        for player in state.players.values():
            player.score = min(player.score, state.max_points)
        state.is_game_ended = True
        state.winner_player_id = winner
        logger.info("Game ended after round %d: player %d wins", state.round_number, winner)

    def _start_new_round(self) -> None:
        state = self._state
        deal_round(state)
        state.possible_actions = actions.legal_actions(state)
        logger.debug(
            "Round %d dealt; player %d starts", state.round_number, state.turn_player_id
        )
