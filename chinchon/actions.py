"""Action variants, their rules, and legal action generation for Chinchón.

Every action is a frozen dataclass carrying its acting ``player_id``. The
behaviour of each variant lives in ``ACTION_RULES``, a table keyed by the
variant's ``name`` that bundles its legality predicate, effect, turn-yield
flag, priority and enrichment hook.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Final, Union

from . import melds, rules
from .cards import Card
from .melds import Meld, MeldType
from .state import GameState, TurnPhase

DRAW_FROM_DRAW_PILE: Final[str] = "draw_from_draw_pile"
DRAW_FROM_DISCARD_PILE: Final[str] = "draw_from_discard_pile"
DISCARD_CARD: Final[str] = "discard_card"
MELD_CARDS: Final[str] = "meld_cards"
KNOCK: Final[str] = "knock"
CONFIRM_ROUND_FINISHED: Final[str] = "confirm_round_finished"


@dataclass(frozen=True, slots=True)
class DrawFromDrawPile:
    """Take the top card of the draw pile."""

    player_id: int
    name: ClassVar[str] = DRAW_FROM_DRAW_PILE


@dataclass(frozen=True, slots=True)
class DrawFromDiscardPile:
    """Take the visible top card of the discard pile."""

    player_id: int
    name: ClassVar[str] = DRAW_FROM_DISCARD_PILE


@dataclass(frozen=True, slots=True)
class DiscardCard:
    """Put ``card`` from hand onto the discard pile."""

    player_id: int
    card: Card
    name: ClassVar[str] = DISCARD_CARD


@dataclass(frozen=True, slots=True)
class MeldCards:
    """Declare ``cards`` from hand as a meld of ``meld_type``."""

    player_id: int
    cards: tuple[Card, ...]
    meld_type: MeldType
    name: ClassVar[str] = MELD_CARDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "cards", tuple(self.cards))
        object.__setattr__(self, "meld_type", MeldType(self.meld_type))


@dataclass(frozen=True, slots=True)
class Knock:
    """End the round with deadwood at or below the knock threshold."""

    player_id: int
    name: ClassVar[str] = KNOCK


@dataclass(frozen=True, slots=True)
class ConfirmRoundFinished:
    """Acknowledge the result of a finished round."""

    player_id: int
    name: ClassVar[str] = CONFIRM_ROUND_FINISHED


Action = Union[DrawFromDrawPile, DrawFromDiscardPile, DiscardCard, MeldCards, Knock, ConfirmRoundFinished]


@dataclass(frozen=True, slots=True)
class ActionRules:
    """Behaviour shared by every action of one variant."""

    is_legal: Callable[[Action, GameState], bool]
    apply: Callable[[Action, GameState], None]
    yields_turn: Callable[[Action, GameState], bool]
    priority: int = 0
    enrich: Callable[[Action, GameState], Action] = lambda action, state: action


def _is_turn_player(state: GameState, player_id: int) -> bool:
    return (
        player_id in state.players
        and state.turn_player_id == player_id
        and not state.is_round_finished
    )


def _can_draw(state: GameState, player_id: int) -> bool:
    return _is_turn_player(state, player_id) and not state.has_drawn_this_turn


def _draw_pile_legal(action: DrawFromDrawPile, state: GameState) -> bool:
    return _can_draw(state, action.player_id) and not state.draw_pile.is_empty()


def _draw_pile_apply(action: DrawFromDrawPile, state: GameState) -> None:
    state.players[action.player_id].hand.append(state.draw_pile.draw())
    state.has_drawn_this_turn = True


def _discard_pile_legal(action: DrawFromDiscardPile, state: GameState) -> bool:
    return _can_draw(state, action.player_id) and not state.discard_pile.is_empty()


def _discard_pile_apply(action: DrawFromDiscardPile, state: GameState) -> None:
    state.players[action.player_id].hand.append(state.discard_pile.draw())
    state.has_drawn_this_turn = True


def _discard_legal(action: DiscardCard, state: GameState) -> bool:
    if not _is_turn_player(state, action.player_id):
        return False
    if not state.has_drawn_this_turn or state.has_discarded_this_turn:
        return False
    return action.card in state.players[action.player_id].hand


def _discard_apply(action: DiscardCard, state: GameState) -> None:
    state.players[action.player_id].hand.remove(action.card)
    state.discard_pile.push(action.card)
    state.has_discarded_this_turn = True


def _discard_yields_turn(action: DiscardCard, state: GameState) -> bool:
    # A player left within knocking range keeps the turn and must knock;
    # only melds and Knock are offered in that phase.
    return state.players[action.player_id].deadwood() > state.config.knock_threshold


def _meld_legal(action: MeldCards, state: GameState) -> bool:
    if not _is_turn_player(state, action.player_id):
        return False
    player = state.players[action.player_id]
    if not state.has_drawn_this_turn or not player.has_cards(action.cards):
        return False
    if not state.has_discarded_this_turn and len(action.cards) >= len(player.hand):
        return False
    return melds.is_valid_meld(action.cards, action.meld_type)


def _meld_apply(action: MeldCards, state: GameState) -> None:
    player = state.players[action.player_id]
    for card in action.cards:
        player.hand.remove(card)
    player.melds.append(Meld(type=action.meld_type, cards=tuple(action.cards)))


def _knock_legal(action: Knock, state: GameState) -> bool:
    if not _is_turn_player(state, action.player_id):
        return False
    if not state.has_drawn_this_turn or not state.has_discarded_this_turn:
        return False
    return state.players[action.player_id].deadwood() <= state.config.knock_threshold


def _knock_apply(action: Knock, state: GameState) -> None:
    state.knocked_player_id = action.player_id
    score = rules.score_round(
        {player_id: player.deadwood() for player_id, player in state.players.items()},
        knocked_player_id=action.player_id,
    )
    state.players[score.winner_player_id].score += score.points_awarded

    round_log = state.current_round_log()
    round_log.record_score(score)
    round_log.melds_dealt = {player_id: list(player.melds) for player_id, player in state.players.items()}
    state.is_round_finished = True


def _confirm_legal(action: ConfirmRoundFinished, state: GameState) -> bool:
    return (
        state.is_round_finished
        and action.player_id in state.players
        and action.player_id not in state.round_finished_confirmed_player_ids
    )


def _confirm_apply(action: ConfirmRoundFinished, state: GameState) -> None:
    state.round_finished_confirmed_player_ids.add(action.player_id)


def _always(action: Action, state: GameState) -> bool:
    return True


def _never(action: Action, state: GameState) -> bool:
    return False


ACTION_RULES: Final[dict[str, ActionRules]] = {
    DRAW_FROM_DRAW_PILE: ActionRules(_draw_pile_legal, _draw_pile_apply, _never),
    DRAW_FROM_DISCARD_PILE: ActionRules(_discard_pile_legal, _discard_pile_apply, _never),
    DISCARD_CARD: ActionRules(_discard_legal, _discard_apply, _discard_yields_turn),
    MELD_CARDS: ActionRules(_meld_legal, _meld_apply, _never),
    KNOCK: ActionRules(_knock_legal, _knock_apply, _always),
    CONFIRM_ROUND_FINISHED: ActionRules(_confirm_legal, _confirm_apply, _never),
}


def rules_for(action: Action) -> ActionRules:
    try:
        return ACTION_RULES[action.name]
    except (AttributeError, KeyError) as exc:
        raise rules.UnknownAction(f"no rules registered for {action!r}") from exc


def is_legal(action: Action, state: GameState) -> bool:
    """Pure legality check; never mutates ``state``."""

    return rules_for(action).is_legal(action, state)


def apply_action(action: Action, state: GameState) -> None:
    """Run the effect of ``action`` after re-validating it against ``state``."""

    action_rules = rules_for(action)
    if not action_rules.is_legal(action, state):
        raise rules.ActionNotPossible(f"{describe(action)} is not possible")
    action_rules.apply(action, state)


def yields_turn(action: Action, state: GameState) -> bool:
    return rules_for(action).yields_turn(action, state)


def priority(action: Action) -> int:
    return rules_for(action).priority


def enrich(action: Action, state: GameState) -> Action:
    return rules_for(action).enrich(action, state)


def describe(action: Action) -> str:
    """Return a human-readable sentence for logs."""

    if isinstance(action, DiscardCard):
        return f"Player {action.player_id} discards {action.card}"
    if isinstance(action, MeldCards):
        cards = " ".join(card.label() for card in action.cards)
        return f"Player {action.player_id} melds {cards} as {action.meld_type.value}"
    return f"Player {action.player_id} {action.name.replace('_', ' ')}"


def candidate_actions(state: GameState) -> list[Action]:
    """Return every action worth checking for legality in the current phase."""

    phase = state.phase
    if phase is TurnPhase.GAME_ENDED:
        return []
    if phase is TurnPhase.ROUND_FINISHED:
        return [ConfirmRoundFinished(player_id) for player_id in (state.turn_player_id, state.turn_opponent_player_id)]

    player_id = state.turn_player_id
    if phase is TurnPhase.DRAWING:
        return [DrawFromDrawPile(player_id), DrawFromDiscardPile(player_id)]

    player = state.players[player_id]
    meld_actions: list[Action] = [
        MeldCards(player_id=player_id, cards=meld.cards, meld_type=meld.type)
        for meld in melds.enumerate_melds(player.hand)
    ]
    if phase is TurnPhase.DISCARDING:
        discards: list[Action] = [DiscardCard(player_id=player_id, card=card) for card in player.hand]
        return discards + meld_actions
    return [Knock(player_id), *meld_actions]


def legal_actions(state: GameState) -> list[Action]:
    """Return the legal actions of the highest priority present."""

    possible: list[Action] = []
    for candidate in candidate_actions(state):
        enriched = enrich(candidate, state)
        if is_legal(enriched, state):
            possible.append(enriched)
    if not possible:
        return []
    top = max(priority(action) for action in possible)
    return [action for action in possible if priority(action) == top]


def legal_actions_for(state: GameState, player_id: int) -> list[Action]:
    return [action for action in legal_actions(state) if action.player_id == player_id]
