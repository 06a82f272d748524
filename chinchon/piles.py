"""LIFO card piles used for the draw and discard piles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .cards import Card
from .rules import EmptyPile


@dataclass(slots=True)
class Pile:
    """Ordered stack of cards; the top is the end of ``cards``."""

    cards: list[Card] = field(default_factory=list)

    def draw(self) -> Card:
        """Remove and return the top card."""

        if not self.cards:
            raise EmptyPile("pile is empty")
        return self.cards.pop()

    def peek(self) -> Card:
        """Return the top card without removing it."""

        if not self.cards:
            raise EmptyPile("pile is empty")
        return self.cards[-1]

    def push(self, card: Card) -> None:
        self.cards.append(card)

    def extend(self, cards: Iterable[Card]) -> None:
        self.cards.extend(cards)

    def is_empty(self) -> bool:
        return not self.cards

    def copy(self) -> "Pile":
        return Pile(list(self.cards))

    def __len__(self) -> int:
        return len(self.cards)
