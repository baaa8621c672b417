# tests/test_simulate.py
import random

from rook_server.agents import RandomRookAgent, RookAgent
from rook_server.simulate import GameRunner


def _make_runner(seed: int = 999) -> GameRunner:
    agents = [RandomRookAgent(rng=random.Random(100 + i)) for i in range(4)]
    return GameRunner(agents=agents, player_names=[f"P{i}" for i in range(4)], rng_seed=seed)


def test_agents_satisfy_protocol():
    assert isinstance(RandomRookAgent(rng=random.Random(0)), RookAgent)


def test_full_game_basic_invariants():
    runner = _make_runner()
    game_state = runner.play_game()

    assert game_state.winning_team in (0, 1)
    assert max(game_state.team_scores) >= 500
    assert game_state.results

    totals = [0, 0]
    for i, result in enumerate(game_state.results):
        assert result.round_index == i
        assert result.dealer == i % 4
        assert sum(result.team_points) == 180
        assert 100 <= result.bid <= 180
        for team in (0, 1):
            totals[team] += result.score_deltas[team]
        assert list(result.team_scores) == totals
    assert game_state.team_scores == totals


def test_every_round_plays_ten_tricks():
    runner = _make_runner(seed=5)
    runner.play_round()
    rnd = runner.game.round
    assert rnd.tricks_played == 10
    assert all(len(t.plays) == 4 for t in rnd.tricks)
    assert all(not hand for hand in rnd.hands)
    assert rnd.announced
