"""Tagged-record encoding for actions, cards and melds.

An action travels as ``{"name": ..., "playerID": ..., <variant fields>}``.
Decoding switches on ``name`` to pick the variant before reading the rest of
the record.
"""

from __future__ import annotations

from typing import Any, Callable, Final, Mapping

import orjson

from .actions import (
    CONFIRM_ROUND_FINISHED,
    DISCARD_CARD,
    DRAW_FROM_DISCARD_PILE,
    DRAW_FROM_DRAW_PILE,
    KNOCK,
    MELD_CARDS,
    Action,
    ConfirmRoundFinished,
    DiscardCard,
    DrawFromDiscardPile,
    DrawFromDrawPile,
    Knock,
    MeldCards,
)
from .cards import Card, Suit
from .melds import Meld, MeldType
from .rules import UnknownAction

__all__ = [
    "card_to_dict",
    "card_from_dict",
    "meld_to_dict",
    "meld_from_dict",
    "action_to_dict",
    "action_from_dict",
    "serialize_action",
    "deserialize_action",
]


def card_to_dict(card: Card) -> dict[str, Any]:
    return {"number": card.number, "suit": card.suit.value}


def card_from_dict(data: Any) -> Card:
    if not isinstance(data, Mapping):
        raise ValueError(f"card must be an object, got {data!r}")
    number = data.get("number")
    if not isinstance(number, int) or isinstance(number, bool):
        raise ValueError(f"card number must be an integer, got {number!r}")
    return Card(number=number, suit=Suit(data.get("suit")))


def meld_to_dict(meld: Meld) -> dict[str, Any]:
    return {"type": meld.type.value, "cards": [card_to_dict(card) for card in meld.cards]}


def meld_from_dict(data: Mapping[str, Any]) -> Meld:
    return Meld(type=MeldType(data.get("type")), cards=_cards_from(data.get("cards")))


def _cards_from(data: Any) -> tuple[Card, ...]:
    if not isinstance(data, list):
        raise ValueError(f"cards must be a list, got {data!r}")
    return tuple(card_from_dict(item) for item in data)


def action_to_dict(action: Action) -> dict[str, Any]:
    record: dict[str, Any] = {"name": action.name, "playerID": action.player_id}
    if isinstance(action, DiscardCard):
        record["card"] = card_to_dict(action.card)
    elif isinstance(action, MeldCards):
        record["cards"] = [card_to_dict(card) for card in action.cards]
        record["meldType"] = action.meld_type.value
    return record


def _player_id(data: Mapping[str, Any]) -> int:
    player_id = data.get("playerID")
    if not isinstance(player_id, int) or isinstance(player_id, bool):
        raise ValueError(f"playerID must be an integer, got {player_id!r}")
    return player_id


_DECODERS: Final[dict[str, Callable[[Mapping[str, Any]], Action]]] = {
    DRAW_FROM_DRAW_PILE: lambda data: DrawFromDrawPile(_player_id(data)),
    DRAW_FROM_DISCARD_PILE: lambda data: DrawFromDiscardPile(_player_id(data)),
    DISCARD_CARD: lambda data: DiscardCard(_player_id(data), card_from_dict(data.get("card"))),
    MELD_CARDS: lambda data: MeldCards(
        _player_id(data), _cards_from(data.get("cards")), MeldType(data.get("meldType"))
    ),
    KNOCK: lambda data: Knock(_player_id(data)),
    CONFIRM_ROUND_FINISHED: lambda data: ConfirmRoundFinished(_player_id(data)),
}


def action_from_dict(data: Mapping[str, Any]) -> Action:
    """Rebuild an action from its tagged record.

    Raises ``UnknownAction`` when the tag is missing or unrecognised and
    ``ValueError`` when the variant fields are malformed.
    """

    if not isinstance(data, Mapping):
        raise UnknownAction(f"action must be an object, got {data!r}")
    name = data.get("name")
    decoder = _DECODERS.get(name) if isinstance(name, str) else None
    if decoder is None:
        raise UnknownAction(f"unknown action: [{name!r}]")
    return decoder(data)


def serialize_action(action: Action) -> bytes:
    return orjson.dumps(action_to_dict(action))


def deserialize_action(payload: bytes | str | Mapping[str, Any]) -> Action:
    """Decode an action from JSON bytes, a JSON string, or an already parsed record."""

    if isinstance(payload, Mapping):
        return action_from_dict(payload)
    try:
        data = orjson.loads(payload)
    except orjson.JSONDecodeError as exc:
        raise UnknownAction(f"malformed action payload: {payload!r}") from exc
    return action_from_dict(data)
