"""Bot collaborators that choose actions from a player's projected view."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from . import melds
from .actions import (
    Action,
    ConfirmRoundFinished,
    DiscardCard,
    DrawFromDiscardPile,
    DrawFromDrawPile,
    Knock,
    MeldCards,
)
from .cards import Card
from .perspective import ClientGameState

__all__ = ["Bot", "RandomBot", "GreedyBot"]


class Bot(Protocol):
    """Structural protocol for anything able to play a seat."""

    def choose_action(self, view: ClientGameState) -> Action:  # pragma: no cover - protocol only
        ...


def _require_actions(view: ClientGameState) -> Sequence[Action]:
    if not view.possible_actions:
        raise ValueError(f"player {view.you_player_id} has no legal actions")
    return view.possible_actions


@dataclass(slots=True)
class RandomBot:
    """Pick uniformly among the legal actions."""

    rng: random.Random = field(default_factory=random.Random)

    def choose_action(self, view: ClientGameState) -> Action:
        return self.rng.choice(list(_require_actions(view)))


def _completes_meld(hand: Sequence[Card], card: Card) -> bool:
    return any(card in meld.cards for meld in melds.enumerate_melds([*hand, card]))


def _first(possible: Sequence[Action], kind: type) -> Action | None:
    for action in possible:
        if isinstance(action, kind):
            return action
    return None


@dataclass(slots=True)
class GreedyBot:
    """Simple heuristic player used for self-play.

    Melds the largest candidate first, knocks as soon as it may, only takes the
    discard top when that card completes a meld, and otherwise sheds its
    highest-value card that is not part of any meld candidate.
    """

    def choose_action(self, view: ClientGameState) -> Action:
        possible = _require_actions(view)

        confirm = _first(possible, ConfirmRoundFinished)
        if confirm is not None:
            return confirm

        meld_actions = [action for action in possible if isinstance(action, MeldCards)]
        if meld_actions:
            return max(meld_actions, key=lambda action: (len(action.cards), sum(c.points for c in action.cards)))

        knock = _first(possible, Knock)
        if knock is not None:
            return knock

        take_discard = _first(possible, DrawFromDiscardPile)
        draw = _first(possible, DrawFromDrawPile)
        top = view.discard_pile_top_card
        if take_discard is not None and top is not None:
            if draw is None or _completes_meld(view.your_hand_cards, top):
                return take_discard
        if draw is not None:
            return draw

        discards = [action for action in possible if isinstance(action, DiscardCard)]
        if discards:
            return self._choose_discard(view.your_hand_cards, discards)
        return possible[0]

    @staticmethod
    def _choose_discard(hand: Sequence[Card], discards: Sequence[DiscardCard]) -> DiscardCard:
        in_melds = melds.covered_cards(melds.enumerate_melds(hand))
        loose = [action for action in discards if action.card not in in_melds]
        pool = loose or list(discards)
        return max(pool, key=lambda action: (action.card.points, action.card.number, -action.card.id))
