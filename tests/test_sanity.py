"""Sanity tests ensuring the package modules import correctly."""

from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module_name",
    [
        "chinchon",
        "chinchon.actions",
        "chinchon.benchmark",
        "chinchon.bots",
        "chinchon.cards",
        "chinchon.codec",
        "chinchon.encoding",
        "chinchon.engine",
        "chinchon.melds",
        "chinchon.perspective",
        "chinchon.piles",
        "chinchon.rules",
        "chinchon.scoreboard",
        "chinchon.state",
        "chinchon.cli.main",
    ],
)
def test_modules_import(module_name: str) -> None:
    """Ensure all foundational modules can be imported."""

    assert importlib.import_module(module_name)
