from __future__ import annotations

import random
import threading

import pytest

from chinchon import rules
from chinchon.actions import (
    ConfirmRoundFinished,
    DiscardCard,
    DrawFromDiscardPile,
    DrawFromDrawPile,
    Knock,
    MeldCards,
)
from chinchon.bots import RandomBot
from chinchon.cards import Card, cards_from_labels, iter_full_deck
from chinchon.engine import ChinchonGame
from chinchon.melds import MeldType
from chinchon.piles import Pile
from chinchon.state import GameConfig, GameState, with_max_points


def _card(label: str) -> Card:
    return Card.from_label(label)


def _rig(
    game: ChinchonGame,
    hand0: str,
    hand1: str,
    *,
    discard: str = "",
    draw_top: str = "",
) -> GameState:
    """Replace the dealt cards while keeping all 40 cards in play.

    ``draw_top`` lists the next cards to be drawn, first card first.
    """

    game_state = game.state
    hands = {0: cards_from_labels(hand0), 1: cards_from_labels(hand1)}
    discard_cards = cards_from_labels(discard)
    top_cards = cards_from_labels(draw_top)
    used = set(hands[0]) | set(hands[1]) | set(discard_cards) | set(top_cards)
    rest = [card for card in iter_full_deck() if card not in used]
    for player_id, hand in hands.items():
        game_state.players[player_id].hand = hand
    game_state.discard_pile = Pile(discard_cards)
    game_state.draw_pile = Pile(rest + list(reversed(top_cards)))
    return game_state


def _cards_in_play(game_state: GameState) -> list[Card]:
    cards = [*game_state.draw_pile.cards, *game_state.discard_pile.cards]
    for player in game_state.players.values():
        cards.extend(player.hand)
        for meld in player.melds:
            cards.extend(meld.cards)
    return cards


def _total_cards(game_state: GameState) -> int:
    return len(_cards_in_play(game_state))


KNOCKER_HAND = "1O 2O 3O 4O 5C 1C 12B"
OPPONENT_HAND = "7E 6B 5B 10E 11E 12O 3E"


def _play_to_knock(game: ChinchonGame) -> None:
    _rig(game, KNOCKER_HAND, OPPONENT_HAND, discard="6C", draw_top="2E")
    game.apply_action(DrawFromDrawPile(0))
    game.apply_action(MeldCards(0, tuple(cards_from_labels("1O 2O 3O 4O")), MeldType.RUN))
    game.apply_action(DiscardCard(0, _card("12B")))
    game.apply_action(Knock(0))


def test_new_game_deals_round_one() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    game_state = game.state

    assert game_state.round_number == 1
    assert game_state.turn_player_id == 0
    assert game_state.possible_actions == [DrawFromDrawPile(0), DrawFromDiscardPile(0)]
    assert _total_cards(game_state) == 40


def test_new_applies_options_without_mutating_base_config() -> None:
    base = GameConfig(seed=4)
    game = ChinchonGame.new(with_max_points(30), config=base)

    assert game.state.max_points == 30
    assert base.max_points == 100


def test_draw_then_discard_passes_turn() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _rig(game, "10O 11O 12E 10C 11E 12B 7C", "1O 3C 5E 7B 2O 4C 6E", discard="5O", draw_top="6B")

    game.apply_action(DrawFromDrawPile(0))
    game_state = game.state
    assert game_state.has_drawn_this_turn
    assert len(game_state.players[0].hand) == 8

    game.apply_action(DiscardCard(0, _card("6B")))
    assert len(game_state.players[0].hand) == 7
    assert game_state.discard_pile.peek() == _card("6B")
    assert game_state.turn_player_id == 1
    assert game_state.turn_opponent_player_id == 0
    assert not game_state.has_drawn_this_turn
    assert not game_state.has_discarded_this_turn
    assert game_state.possible_actions == [DrawFromDrawPile(1), DrawFromDiscardPile(1)]


def test_actions_are_logged_under_the_acting_player() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _rig(game, "10O 11O 12E 10C 11E 12B 7C", "1O 3C 5E 7B 2O 4C 6E", discard="5O", draw_top="6B")

    game.apply_action(DrawFromDrawPile(0))
    game.apply_action(DiscardCard(0, _card("6B")))

    game_state = game.state
    assert game_state.round_actions() == [DrawFromDrawPile(0), DiscardCard(0, _card("6B"))]
    last = game_state.last_action_log()
    assert last is not None
    assert last.player_id == 0
    assert last.action == {"name": "discard_card", "playerID": 0, "card": {"number": 6, "suit": "basto"}}


def test_knock_finishes_round_and_scores() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _play_to_knock(game)

    game_state = game.state
    round_log = game_state.current_round_log()
    assert game_state.is_round_finished
    assert round_log.knocked_player_id == 0
    assert round_log.winner_player_id == 0
    assert round_log.loser_player_id == 1
    assert round_log.winner_deadwood_points == 8
    assert round_log.loser_deadwood_points == 51
    assert round_log.points_awarded == 51 - 8
    assert game_state.players[0].score == 43
    assert game_state.turn_player_id == 0
    assert game_state.possible_actions == [ConfirmRoundFinished(0), ConfirmRoundFinished(1)]
    assert not game_state.is_game_ended


def test_discard_within_knocking_range_keeps_turn() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _rig(game, KNOCKER_HAND, OPPONENT_HAND, discard="6C", draw_top="2E")
    game.apply_action(DrawFromDrawPile(0))
    game.apply_action(MeldCards(0, tuple(cards_from_labels("1O 2O 3O 4O")), MeldType.RUN))
    game.apply_action(DiscardCard(0, _card("12B")))

    game_state = game.state
    assert game_state.turn_player_id == 0
    assert game_state.has_discarded_this_turn
    assert game_state.possible_actions == [Knock(0)]
    with pytest.raises(rules.NotYourTurn):
        game.apply_action(DrawFromDrawPile(1))


def test_low_deadwood_discard_leaves_only_melds_and_knock() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _rig(game, "1O 1C 1E 1B 2O 2C 12B", OPPONENT_HAND, discard="6C", draw_top="2E")
    game.apply_action(DrawFromDrawPile(0))
    game.apply_action(DiscardCard(0, _card("12B")))

    game_state = game.state
    assert game_state.players[0].deadwood() == 10
    assert game_state.turn_player_id == 0
    assert game_state.possible_actions[0] == Knock(0)
    assert game_state.possible_actions[1:]
    assert all(isinstance(action, MeldCards) for action in game_state.possible_actions[1:])
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(DiscardCard(0, _card("2O")))

    game.apply_action(MeldCards(0, tuple(cards_from_labels("1O 1C 1E")), MeldType.SET))
    assert game.state.turn_player_id == 0
    game.apply_action(Knock(0))

    assert game.state.is_round_finished
    assert game.state.knocked_player_id == 0


def test_meld_before_drawing_is_rejected() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _rig(game, "1O 2O 3O 4O 5C 5E 5B", "7E 6B 10E 11E 12O 3E 7B", discard="6C")
    before = game.state.to_dict()

    assert game.legal_actions(0) == [DrawFromDrawPile(0), DrawFromDiscardPile(0)]
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(MeldCards(0, tuple(cards_from_labels("1O 2O 3O 4O")), MeldType.RUN))
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(MeldCards(0, tuple(cards_from_labels("5C 5E 5B")), MeldType.SET))

    assert game.state.to_dict() == before


def test_both_confirmations_start_next_round() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _play_to_knock(game)

    game.apply_action(ConfirmRoundFinished(0))
    game_state = game.state
    assert game_state.turn_player_id == 1
    assert game_state.possible_actions == [ConfirmRoundFinished(1)]
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(ConfirmRoundFinished(0))

    game.apply_action(ConfirmRoundFinished(1))
    assert game_state.round_number == 2
    assert game_state.turn_player_id == 1
    assert game_state.turn_opponent_player_id == 0
    assert not game_state.is_round_finished
    assert not game_state.has_drawn_this_turn
    assert not game_state.has_discarded_this_turn
    assert game_state.knocked_player_id == rules.NO_PLAYER
    assert all(len(player.hand) == 7 for player in game_state.players.values())
    assert all(not player.melds for player in game_state.players.values())
    assert len(game_state.discard_pile) == 1
    assert len(game_state.draw_pile) == 25
    assert game_state.players[0].score == 43
    assert game_state.possible_actions == [DrawFromDrawPile(1), DrawFromDiscardPile(1)]
    assert len(game_state.rounds_log) == 3
    assert game_state.rounds_log[1].points_awarded == 43


def test_opponent_may_confirm_first() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    _play_to_knock(game)

    game.apply_action(ConfirmRoundFinished(1))

    game_state = game.state
    assert game_state.turn_player_id == 0
    assert game_state.possible_actions == [ConfirmRoundFinished(0)]


def test_reaching_max_points_ends_game() -> None:
    game = ChinchonGame(GameConfig(max_points=40, seed=11))
    _play_to_knock(game)

    game_state = game.state
    assert game_state.is_game_ended
    assert game_state.winner_player_id == 0
    assert game_state.players[0].score == 40
    assert game_state.possible_actions == []
    assert game.legal_actions() == []
    with pytest.raises(rules.GameEnded):
        game.apply_action(ConfirmRoundFinished(0))
    with pytest.raises(rules.GameEnded):
        game.apply_action(DrawFromDrawPile(1))


def test_exact_max_points_ends_game() -> None:
    game = ChinchonGame(GameConfig(max_points=43, seed=11))
    _play_to_knock(game)

    assert game.is_game_ended
    assert game.state.players[0].score == 43


def test_unknown_serialized_action_is_rejected_before_any_mutation() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    before = game.state.to_dict()

    with pytest.raises(rules.UnknownAction):
        game.submit(b'{"name": "steal_card", "playerID": 0}', 0)

    assert game.state.to_dict() == before


def test_submit_returns_the_players_view() -> None:
    game = ChinchonGame(GameConfig(seed=11))

    view = game.submit('{"name": "draw_from_draw_pile", "playerID": 0}', 0)

    assert view.you_player_id == 0
    assert len(view.your_hand_cards) == 8
    assert all(isinstance(action, DiscardCard | MeldCards) for action in view.possible_actions)


def test_submit_rejects_acting_as_another_player() -> None:
    game = ChinchonGame(GameConfig(seed=11))

    with pytest.raises(rules.NotYourTurn):
        game.submit({"name": "draw_from_draw_pile", "playerID": 0}, 1)


def test_non_turn_player_is_rejected() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    before = game.state.to_dict()

    with pytest.raises(rules.NotYourTurn):
        game.apply_action(DrawFromDrawPile(1))
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(DiscardCard(0, game.state.players[0].hand[0]))
    with pytest.raises(rules.ActionNotPossible):
        game.apply_action(ConfirmRoundFinished(1))

    assert game.state.to_dict() == before


def test_failed_transition_rolls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    game = ChinchonGame(GameConfig(seed=11))
    game_state = game.state
    before = game_state.to_dict()

    def _explode(self: ChinchonGame) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(ChinchonGame, "_check_game_end", _explode)
    with pytest.raises(RuntimeError, match="boom"):
        game.apply_action(DrawFromDrawPile(0))

    assert game.state is game_state
    assert game_state.to_dict() == before


def test_exhausted_draw_pile_is_replenished_on_hand_over() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    game_state = _rig(game, "10O 11O 12E 10C 11E 12B 7C", "1O 3C 5E 7B 2O 4C 6E", discard="5O", draw_top="6B")
    spare = game_state.draw_pile.cards[:-1]
    game_state.draw_pile = Pile([game_state.draw_pile.cards[-1]])
    game_state.discard_pile = Pile(spare + [_card("5O")])

    game.apply_action(DrawFromDrawPile(0))
    assert game_state.draw_pile.is_empty()
    game.apply_action(DiscardCard(0, _card("6B")))

    assert game_state.turn_player_id == 1
    assert game_state.discard_pile.cards == [_card("6B")]
    assert set(game_state.draw_pile.cards) == set(spare) | {_card("5O")}
    assert _total_cards(game_state) == 40


def test_legal_actions_filter_by_player() -> None:
    game = ChinchonGame(GameConfig(seed=11))

    assert game.legal_actions(0) == [DrawFromDrawPile(0), DrawFromDiscardPile(0)]
    assert game.legal_actions(1) == []


def test_concurrent_submissions_apply_once() -> None:
    game = ChinchonGame(GameConfig(seed=11))
    outcomes: list[str] = []
    outcomes_lock = threading.Lock()

    def _worker() -> None:
        try:
            game.apply_action(DrawFromDrawPile(0))
            outcome = "applied"
        except rules.ActionNotPossible:
            outcome = "rejected"
        with outcomes_lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count("applied") == 1
    assert outcomes.count("rejected") == 7
    assert len(game.state.players[0].hand) == 8


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_random_play_preserves_invariants(seed: int) -> None:
    rng = random.Random(seed)
    game = ChinchonGame(GameConfig(max_points=30, seed=seed))
    bots = (RandomBot(random.Random(seed)), RandomBot(random.Random(seed + 100)))
    previous_scores = [0, 0]

    for _ in range(20_000):
        game_state = game.state
        if game_state.is_game_ended:
            break
        assert _total_cards(game_state) == 40
        assert set(_cards_in_play(game_state)) == set(iter_full_deck())

        if not game_state.is_round_finished and rng.random() < 0.05:
            intruder = game_state.turn_opponent_player_id
            before = game_state.to_dict()
            with pytest.raises(rules.NotYourTurn):
                game.apply_action(DrawFromDrawPile(intruder))
            assert game_state.to_dict() == before

        actor = game_state.turn_player_id
        action = game.run_bot(bots[actor], actor)
        assert action.player_id == actor

        scores = [player.score for player in game_state.players.values()]
        assert all(now >= then for now, then in zip(scores, previous_scores))
        previous_scores = scores
        for round_log in game_state.rounds_log[1:]:
            if round_log.knocked_player_id != rules.NO_PLAYER:
                knocker = round_log.knocked_player_id
                knocker_deadwood = (
                    round_log.winner_deadwood_points
                    if knocker == round_log.winner_player_id
                    else round_log.loser_deadwood_points
                )
                assert knocker_deadwood <= 10
    else:
        pytest.fail("random game did not finish")

    game_state = game.state
    assert game_state.is_game_ended
    assert max(player.score for player in game_state.players.values()) == 30
    assert game_state.players[game_state.winner_player_id].score == 30
