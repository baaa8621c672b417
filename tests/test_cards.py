# tests/test_cards.py
import random

import pytest

from rook_server.cards import (
    ROOK,
    Card,
    CardType,
    Color,
    Deck,
    card_to_dict,
    deal,
    dict_to_card,
    find_card,
    parse_card_id,
    sort_hand,
)
from rook_server.ruleset import KENTUCKY_ROOK, RuleSet


def test_deck_composition():
    deck = Deck(KENTUCKY_ROOK)
    assert len(deck.cards) == 45
    assert len(set(deck.cards)) == 45
    assert sum(1 for c in deck.cards if c.is_rook) == 1
    for color in Color:
        ranks = sorted(c.rank for c in deck.cards if c.color == color)
        assert ranks == [1, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14]


def test_deck_points_total_180():
    deck = Deck(KENTUCKY_ROOK)
    assert sum(c.points for c in deck.cards) == 180
    assert KENTUCKY_ROOK.total_points == 180
    rook = next(c for c in deck.cards if c.is_rook)
    assert rook.points == 20
    by_rank = {c.rank: c.points for c in deck.cards if c.color == Color.RED}
    assert by_rank[1] == 15
    assert by_rank[5] == 5
    assert by_rank[10] == 10
    assert by_rank[14] == 10
    assert by_rank[13] == 0


def test_card_validation():
    with pytest.raises(ValueError):
        Card(CardType.NUMBER, Color.RED, None)
    with pytest.raises(ValueError):
        Card(CardType.NUMBER, Color.RED, 15)
    with pytest.raises(ValueError):
        Card(CardType.ROOK, Color.RED)


def test_card_equality_ignores_points():
    assert Card(CardType.NUMBER, Color.GREEN, 14, points=10) == Card(CardType.NUMBER, Color.GREEN, 14)
    assert ROOK == Card(CardType.ROOK, points=20)


def test_deal_sizes_and_conservation():
    for seed in range(5):
        hands, nest = deal(KENTUCKY_ROOK, random.Random(seed))
        assert len(nest) == 5
        assert [len(h) for h in hands] == [10, 10, 10, 10]
        everything = list(nest) + [c for h in hands for c in h]
        assert len(everything) == 45
        assert len(set(everything)) == 45


def test_deal_takes_nest_first_then_round_robin():
    deck = Deck(KENTUCKY_ROOK)
    ordered = list(deck.cards)
    hands, nest = deck.deal()
    assert nest == ordered[:5]
    # Seat 0 receives the 6th card of the deck, seat 1 the 7th, and so on.
    assert ordered[5] in hands[0]
    assert ordered[6] in hands[1]
    assert ordered[9] in hands[0]
    assert deck.cards == []


def test_deal_is_reproducible_with_seed():
    a = deal(KENTUCKY_ROOK, random.Random(42))
    b = deal(KENTUCKY_ROOK, random.Random(42))
    assert a == b


def test_ruleset_rejects_inconsistent_deal():
    with pytest.raises(ValueError):
        RuleSet(nest_size=6)
    with pytest.raises(ValueError):
        RuleSet(min_opening_bid=200)


def test_rulesets_are_hashable_values():
    assert hash(KENTUCKY_ROOK) == hash(RuleSet())
    cheap_rook = RuleSet(points=((0, 10), (1, 15), (5, 5), (10, 10), (14, 10)))
    assert cheap_rook != KENTUCKY_ROOK
    assert cheap_rook.rook_points == 10
    assert cheap_rook.total_points == 170
    assert len({KENTUCKY_ROOK, RuleSet(), cheap_rook}) == 2


def test_sort_hand_before_and_after_trump():
    hand = [
        ROOK,
        Card(CardType.NUMBER, Color.YELLOW, 5),
        Card(CardType.NUMBER, Color.BLACK, 14),
        Card(CardType.NUMBER, Color.BLACK, 1),
        Card(CardType.NUMBER, Color.RED, 9),
    ]
    sort_hand(hand, KENTUCKY_ROOK)
    assert [c.id for c in hand] == ["Black01", "Black14", "Red09", "Yellow05", "ROOK"]

    sort_hand(hand, KENTUCKY_ROOK, trump=Color.RED)
    assert [c.id for c in hand] == ["Black01", "Black14", "ROOK", "Red09", "Yellow05"]


def test_card_wire_format():
    card = Card(CardType.NUMBER, Color.GREEN, 14, points=10)
    data = card_to_dict(card)
    assert data == {"id": "Green14", "color": "Green", "number": 14, "points": 10}
    assert dict_to_card(data) == card
    assert dict_to_card({"color": "Green", "number": 14}) == card
    assert card_to_dict(ROOK)["color"] == "Rook"
    assert dict_to_card({"id": "ROOK"}) == ROOK
    assert parse_card_id("Red05") == Card(CardType.NUMBER, Color.RED, 5)


def test_parse_card_id_rejects_garbage():
    with pytest.raises(ValueError):
        parse_card_id("Purple07")
    with pytest.raises(ValueError):
        parse_card_id(7)


def test_find_card_returns_held_instance():
    held = Card(CardType.NUMBER, Color.RED, 10, points=10)
    hand = [Card(CardType.NUMBER, Color.RED, 9), held]
    found = find_card(hand, parse_card_id("Red10"))
    assert found is held
    assert found.points == 10
    assert find_card(hand, ROOK) is None
