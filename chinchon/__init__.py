"""Top-level package for the Chinchón rules engine."""

from . import actions, cards, codec, encoding, engine, melds, perspective, rules, state
from .engine import ChinchonGame

__all__ = [
    "ChinchonGame",
    "actions",
    "cards",
    "codec",
    "encoding",
    "engine",
    "melds",
    "perspective",
    "rules",
    "state",
]
