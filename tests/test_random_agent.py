# tests/test_random_agent.py
import random

from rook_server.agents.random_agent import RandomRookAgent
from rook_server.cards import ROOK, Card, CardType, Color, card_to_dict
from rook_server.ruleset import KENTUCKY_ROOK


def c(color: Color, rank: int) -> Card:
    return Card(CardType.NUMBER, color, rank, points=KENTUCKY_ROOK.points_for_rank(rank))


HAND = [
    c(Color.RED, 1),
    c(Color.RED, 14),
    c(Color.RED, 10),
    c(Color.RED, 9),
    c(Color.GREEN, 5),
    c(Color.GREEN, 6),
    c(Color.BLACK, 7),
    c(Color.YELLOW, 8),
    c(Color.YELLOW, 12),
    ROOK,
]


def _obs(**extra):
    obs = {"hand": [card_to_dict(card) for card in HAND], "hand_cards": list(HAND)}
    obs.update(extra)
    return obs


def test_bid_is_an_option_or_pass():
    for seed in range(20):
        agent = RandomRookAgent(rng=random.Random(seed))
        options = [150, 155, 160]
        bid = agent.choose_bid(_obs(bid_options=options))
        assert bid is None or bid in options


def test_no_options_means_pass():
    agent = RandomRookAgent(rng=random.Random(0))
    assert agent.choose_bid(_obs(bid_options=[])) is None


def test_trump_is_longest_color():
    agent = RandomRookAgent(rng=random.Random(0))
    assert agent.choose_trump(_obs()) == Color.RED


def test_discard_keeps_trump_and_points():
    agent = RandomRookAgent(rng=random.Random(0))
    indices = agent.choose_discard(_obs(trump="Red", discard_count=3))
    assert len(set(indices)) == 3
    thrown = [HAND[i] for i in indices]
    assert all(card.color != Color.RED and not card.is_rook for card in thrown)
    assert all(card.points == 0 for card in thrown)


def test_choose_card_from_legal():
    agent = RandomRookAgent(rng=random.Random(0))
    legal = [2, 5, 7]
    for _ in range(10):
        assert agent.choose_card(_obs(legal_move_indices=legal)) in legal
