"""Card identifier encoding utilities for Chinchón."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

RANKS: Final[tuple[int, ...]] = (1, 2, 3, 4, 5, 6, 7, 10, 11, 12)
SUITS: Final[tuple[str, ...]] = ("oro", "copa", "espada", "basto")
RANK_TO_IDX: Final[dict[int, int]] = {rank: idx for idx, rank in enumerate(RANKS)}
SUIT_TO_IDX: Final[dict[str, int]] = {suit: idx for idx, suit in enumerate(SUITS)}
FACE_CARD_POINTS: Final[int] = 10
DECK_CARD_COUNT: Final[int] = len(RANKS) * len(SUITS)


@dataclass(frozen=True, slots=True)
class CardDecoding:
    """Typed container describing a decoded card identifier."""

    rank_idx: int
    suit_idx: int

    @property
    def rank(self) -> int:
        return RANKS[self.rank_idx]

    @property
    def suit(self) -> str:
        return SUITS[self.suit_idx]


def card_id(rank_idx: int, suit_idx: int) -> int:
    """Encode a rank and suit index into a card identifier."""

    if not 0 <= rank_idx < len(RANKS):
        raise ValueError("rank_idx out of range")
    if not 0 <= suit_idx < len(SUITS):
        raise ValueError("suit_idx out of range")
    return suit_idx * len(RANKS) + rank_idx


def encode_card(rank: int, suit: str) -> int:
    """Encode a face value (1-7, 10-12) and suit name into an identifier."""

    if rank not in RANK_TO_IDX:
        raise ValueError(f"rank {rank} is not part of a Spanish 40-card deck")
    if suit not in SUIT_TO_IDX:
        raise ValueError(f"unknown suit '{suit}'")
    return card_id(RANK_TO_IDX[rank], SUIT_TO_IDX[suit])


def _validate_card_identifier(card_identifier: int) -> None:
    if card_identifier < 0 or card_identifier >= DECK_CARD_COUNT:
        raise ValueError(f"card identifier {card_identifier} out of range")


def decode_id(card_identifier: int) -> CardDecoding:
    """Decode a card identifier into its rank and suit indices."""

    _validate_card_identifier(card_identifier)
    suit_idx, rank_idx = divmod(card_identifier, len(RANKS))
    return CardDecoding(rank_idx=rank_idx, suit_idx=suit_idx)


def rank_points(rank: int) -> int:
    """Return the deadwood value of a face value: 1-7 at face, figures at 10."""

    if 1 <= rank <= 7:
        return rank
    return FACE_CARD_POINTS

