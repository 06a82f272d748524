"""Card abstractions and the shuffled 40-card deck."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

import numpy as np

from . import encoding


class Suit(str, Enum):
    """The four Spanish suits."""

    ORO = "oro"
    COPA = "copa"
    ESPADA = "espada"
    BASTO = "basto"


_SUIT_SYMBOLS = {
    Suit.ORO: "O",
    Suit.COPA: "C",
    Suit.ESPADA: "E",
    Suit.BASTO: "B",
}
_SYMBOL_SUITS = {symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()}


@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing a physical Chinchón card."""

    number: int
    suit: Suit

    def __post_init__(self) -> None:
        if self.number not in encoding.RANK_TO_IDX:
            raise ValueError(f"invalid card number {self.number}")
        if not isinstance(self.suit, Suit):
            object.__setattr__(self, "suit", Suit(self.suit))

    @classmethod
    def from_id(cls, card_identifier: int) -> "Card":
        decoded = encoding.decode_id(card_identifier)
        return cls(number=decoded.rank, suit=Suit(decoded.suit))

    @classmethod
    def from_label(cls, label: str) -> "Card":
        """Parse a compact label such as ``"5O"`` or ``"12B"``."""

        text = label.strip().upper()
        suit = _SYMBOL_SUITS.get(text[-1:])
        if suit is None or not text[:-1].isdigit():
            raise ValueError(f"invalid card label {label!r}")
        return cls(number=int(text[:-1]), suit=suit)

    @property
    def id(self) -> int:
        return encoding.encode_card(self.number, self.suit.value)

    @property
    def points(self) -> int:
        """Deadwood value of the card when left unmelded."""

        return encoding.rank_points(self.number)

    def label(self) -> str:
        """Create a compact label suitable for logs and CLI output."""

        return f"{self.number}{_SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.label()


def cards_from_labels(labels: str) -> list[Card]:
    """Parse whitespace-separated card labels, e.g. ``"1O 2O 3O"``."""

    return [Card.from_label(label) for label in labels.split()]


def iter_full_deck() -> Iterator[Card]:
    """Yield all 40 cards in identifier order."""

    for card_identifier in range(encoding.DECK_CARD_COUNT):
        yield Card.from_id(card_identifier)


def sort_cards(cards: Iterable[Card]) -> list[Card]:
    """Return ``cards`` ordered by suit then number."""

    return sorted(cards, key=lambda card: card.id)


class Deck:
    """The 40-card source consumed into hands and piles at every round start.

    Each deck owns a ``numpy`` seed sequence. Every shuffle spawns a child
    sequence and builds a fresh generator from it, so two rounds (or two games)
    never draw from the same stream. Passing a ``seed`` makes the whole
    sequence of shuffles reproducible.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._seed_sequence = np.random.SeedSequence(seed)
        self.cards: list[Card] = list(iter_full_deck())

    def spawn_rng(self) -> np.random.Generator:
        """Return a new generator seeded from an unused child sequence."""

        (child,) = self._seed_sequence.spawn(1)
        return np.random.default_rng(child)

    def shuffle(self) -> None:
        """Restore all 40 cards and put them in a uniformly random order."""

        order = self.spawn_rng().permutation(encoding.DECK_CARD_COUNT)
        self.cards = [Card.from_id(int(card_identifier)) for card_identifier in order]

    def deal(self, count: int) -> list[Card]:
        """Remove and return ``count`` cards from the front of the deck."""

        if count > len(self.cards):
            raise ValueError("insufficient cards in deck for requested deal")
        dealt = self.cards[:count]
        del self.cards[:count]
        return dealt

    def __len__(self) -> int:
        return len(self.cards)
