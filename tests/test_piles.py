from __future__ import annotations

import pytest

from chinchon.cards import cards_from_labels
from chinchon.piles import Pile
from chinchon.rules import EmptyPile


def test_pile_draws_from_the_top() -> None:
    pile = Pile(cards_from_labels("1O 2O 3O"))

    assert pile.peek().label() == "3O"
    assert pile.draw().label() == "3O"
    assert pile.draw().label() == "2O"
    assert len(pile) == 1


def test_push_places_card_on_top() -> None:
    pile = Pile()
    pile.extend(cards_from_labels("4C 5C"))
    pile.push(cards_from_labels("7E")[0])

    assert pile.peek().label() == "7E"
    assert len(pile) == 3


def test_empty_pile_raises() -> None:
    pile = Pile()

    assert pile.is_empty()
    with pytest.raises(EmptyPile):
        pile.draw()
    with pytest.raises(EmptyPile):
        pile.peek()


def test_copy_is_independent() -> None:
    pile = Pile(cards_from_labels("1B 2B"))
    clone = pile.copy()
    clone.draw()

    assert len(pile) == 2
    assert len(clone) == 1
