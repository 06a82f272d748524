"""Player-specific projection of the authoritative game state."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from . import actions
from .actions import Action
from .cards import Card
from .codec import action_to_dict, card_to_dict, meld_to_dict
from .melds import Meld
from .state import ActionLog, GameState


@dataclass(frozen=True, slots=True)
class ClientGameState:
    """Read-only view of a game for one viewing player.

    Recomputed on every query and never stored. Both hands are visible; the
    projection mainly narrows ``possible_actions`` to the viewer's own.
    """

    round_number: int
    turn_player_id: int
    you_player_id: int
    them_player_id: int
    your_score: int
    their_score: int
    your_hand_cards: tuple[Card, ...]
    their_hand_cards: tuple[Card, ...]
    your_melds: tuple[Meld, ...]
    their_melds: tuple[Meld, ...]
    discard_pile_top_card: Card | None
    possible_actions: tuple[Action, ...]
    is_game_ended: bool
    is_round_finished: bool
    winner_player_id: int
    knocked_player_id: int
    your_deadwood_points: int
    their_deadwood_points: int
    last_action_log: ActionLog | None
    rule_max_points: int

    def to_dict(self) -> dict[str, Any]:
        """Return the wire record pushed to the viewer after each change."""

        last_action = None
        if self.last_action_log is not None:
            last_action = {
                "playerID": self.last_action_log.player_id,
                "action": self.last_action_log.action,
            }
        top_card = None
        if self.discard_pile_top_card is not None:
            top_card = card_to_dict(self.discard_pile_top_card)
        return {
            "roundNumber": self.round_number,
            "turnPlayerID": self.turn_player_id,
            "you": self.you_player_id,
            "them": self.them_player_id,
            "yourScore": self.your_score,
            "theirScore": self.their_score,
            "yourHandCards": [card_to_dict(card) for card in self.your_hand_cards],
            "theirHandCards": [card_to_dict(card) for card in self.their_hand_cards],
            "yourMelds": [meld_to_dict(meld) for meld in self.your_melds],
            "theirMelds": [meld_to_dict(meld) for meld in self.their_melds],
            "discardPileTopCard": top_card,
            "possibleActions": [action_to_dict(action) for action in self.possible_actions],
            "isGameEnded": self.is_game_ended,
            "isRoundFinished": self.is_round_finished,
            "winnerPlayerID": self.winner_player_id,
            "knockedPlayerID": self.knocked_player_id,
            "yourDeadwoodPoints": self.your_deadwood_points,
            "theirDeadwoodPoints": self.their_deadwood_points,
            "lastActionLog": last_action,
            "ruleMaxPoints": self.rule_max_points,
        }


def to_client_state(state: GameState, viewer_id: int) -> ClientGameState:
    """Project ``state`` for ``viewer_id``."""

    if viewer_id not in state.players:
        raise ValueError(f"unknown player id {viewer_id}")
    them_id = state.opponent_of(viewer_id)
    you = state.players[viewer_id]
    them = state.players[them_id]
    last_entry = state.last_action_log()
    if last_entry is not None:
        # Views outlive the call; never hand out the live log record.
        last_entry = ActionLog(last_entry.player_id, copy.deepcopy(last_entry.action))

    return ClientGameState(
        round_number=state.round_number,
        turn_player_id=state.turn_player_id,
        you_player_id=viewer_id,
        them_player_id=them_id,
        your_score=you.score,
        their_score=them.score,
        your_hand_cards=tuple(you.hand),
        their_hand_cards=tuple(them.hand),
        your_melds=tuple(you.melds),
        their_melds=tuple(them.melds),
        discard_pile_top_card=None if state.discard_pile.is_empty() else state.discard_pile.peek(),
        possible_actions=tuple(actions.legal_actions_for(state, viewer_id)),
        is_game_ended=state.is_game_ended,
        is_round_finished=state.is_round_finished,
        winner_player_id=state.winner_player_id,
        knocked_player_id=state.knocked_player_id,
        your_deadwood_points=you.deadwood(),
        their_deadwood_points=them.deadwood(),
        last_action_log=last_entry,
        rule_max_points=state.max_points,
    )
