"""Meld validation, deadwood scoring and meld-candidate enumeration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Final, Iterable, Sequence

from .cards import Card, Suit

MIN_MELD_SIZE: Final[int] = 3


class MeldType(str, Enum):
    """Kinds of meld a player can declare."""

    SET = "set"  # same number, distinct suits
    RUN = "run"  # same suit, consecutive numbers


@dataclass(frozen=True, slots=True)
class Meld:
    """A declared combination of cards owned by one player."""

    type: MeldType
    cards: tuple[Card, ...]

    @property
    def points(self) -> int:
        return sum(card.points for card in self.cards)


def is_valid_set(cards: Sequence[Card]) -> bool:
    """Return ``True`` for three or more cards of one number in distinct suits."""

    if len(cards) < MIN_MELD_SIZE:
        return False
    number = cards[0].number
    suits: set[Suit] = set()
    for card in cards:
        if card.number != number or card.suit in suits:
            return False
        suits.add(card.suit)
    return True


def is_valid_run(cards: Sequence[Card]) -> bool:
    """Return ``True`` for three or more same-suit cards with consecutive numbers."""

    if len(cards) < MIN_MELD_SIZE:
        return False
    suit = cards[0].suit
    if any(card.suit != suit for card in cards):
        return False
    numbers = sorted(card.number for card in cards)
    return all(current == previous + 1 for previous, current in zip(numbers, numbers[1:]))


def is_valid_meld(cards: Sequence[Card], meld_type: MeldType) -> bool:
    if meld_type == MeldType.SET:
        return is_valid_set(cards)
    if meld_type == MeldType.RUN:
        return is_valid_run(cards)
    return False


def covered_cards(melds: Iterable[Meld]) -> set[Card]:
    """Return every card that appears in ``melds``."""

    return {card for meld in melds for card in meld.cards}


def deadwood_points(hand: Iterable[Card], melds: Iterable[Meld] = ()) -> int:
    """Sum the values of the cards in ``hand`` not covered by ``melds``."""

    covered = covered_cards(melds)
    return sum(card.points for card in hand if card not in covered)


def set_candidates(hand: Sequence[Card]) -> list[tuple[Card, ...]]:
    """Return every three-card set available in ``hand``."""

    by_number: dict[int, list[Card]] = {}
    for card in hand:
        by_number.setdefault(card.number, []).append(card)

    candidates: list[tuple[Card, ...]] = []
    for number in sorted(by_number):
        group = by_number[number]
        if len(group) < MIN_MELD_SIZE:
            continue
        for combo in combinations(group, MIN_MELD_SIZE):
            if is_valid_set(combo):
                candidates.append(combo)
    return candidates


def _maximal_runs(cards: Sequence[Card]) -> list[list[Card]]:
    """Split number-sorted same-suit cards into maximal consecutive stretches."""

    runs: list[list[Card]] = []
    current: list[Card] = []
    for card in cards:
        if current and card.number != current[-1].number + 1:
            runs.append(current)
            current = []
        current.append(card)
    if current:
        runs.append(current)
    return runs


def run_candidates(hand: Sequence[Card]) -> list[tuple[Card, ...]]:
    """Return every contiguous sub-run of length three or more in ``hand``.

    Overlapping candidates are emitted on purpose so that a player can lay down
    a shorter run and keep the remaining cards in hand.
    """

    candidates: list[tuple[Card, ...]] = []
    for suit in Suit:
        group = sorted((card for card in hand if card.suit == suit), key=lambda card: card.number)
        for run in _maximal_runs(group):
            length = len(run)
            for size in range(MIN_MELD_SIZE, length + 1):
                for start in range(length - size + 1):
                    candidates.append(tuple(run[start : start + size]))
    return candidates


def enumerate_melds(hand: Sequence[Card]) -> list[Meld]:
    """Return every set and run the holder of ``hand`` could declare."""

    found = [Meld(MeldType.SET, combo) for combo in set_candidates(hand)]
    found.extend(Meld(MeldType.RUN, run) for run in run_candidates(hand))
    return found
