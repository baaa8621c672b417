# tests/test_game_log.py
import csv
import random

import pandas as pd

from rook_server.agents import RandomRookAgent
from rook_server.game_log import (
    DEFAULT_RESULTS_DIR,
    FIELDNAMES,
    build_round_rows,
    simulation_csv_path,
    write_round_scores_csv,
)
from rook_server.results.contract_rates import contract_rates, load_rounds
from rook_server.simulate import GameRunner


def _finished_game():
    agents = [RandomRookAgent(rng=random.Random(7 + i)) for i in range(4)]
    runner = GameRunner(agents=agents, player_names=["A", "B", "C", "D"], rng_seed=3)
    return runner.play_game()


def test_rows_match_round_results():
    game_state = _finished_game()
    rows = build_round_rows(game_state, game_id="g1")

    assert len(rows) == len(game_state.results)
    for row in rows:
        assert set(row) == set(FIELDNAMES)
        assert row["game_id"] == "g1"
        assert row["team0_points"] + row["team1_points"] == 180
        assert row["declarer_name"] == "ABCD"[row["declarer"]]
    assert rows[-1]["winning_team"] == game_state.winning_team
    assert all(row["winning_team"] is None for row in rows[:-1])
    assert [rows[-1]["team0_score"], rows[-1]["team1_score"]] == game_state.team_scores


def test_csv_round_trip_and_contract_rates(tmp_path):
    game_state = _finished_game()
    path = tmp_path / "rounds.csv"
    write_round_scores_csv(game_state, path, game_id="g1")

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == FIELDNAMES
        assert len(list(reader)) == len(game_state.results)

    df = load_rounds(path)
    rates = contract_rates(df)
    assert rates["rounds"].sum() == len(game_state.results)
    assert ((rates["make_rate"] >= 0) & (rates["make_rate"] <= 1)).all()
    assert list(rates["bid"]) == sorted(rates["bid"])


def test_contract_rates_counts():
    df = pd.DataFrame(
        {
            "game_id": ["g"] * 4,
            "bid": [100, 100, 120, 120],
            "made_contract": [True, False, True, True],
            "declarer_team": [0, 1, 0, 1],
            "team0_points": [110, 120, 130, 50],
            "team1_points": [70, 60, 50, 130],
        }
    )
    rates = contract_rates(df).set_index("bid")
    assert rates.loc[100, "rounds"] == 2
    assert rates.loc[100, "make_rate"] == 0.5
    assert rates.loc[120, "make_rate"] == 1.0
    assert rates.loc[100, "mean_declarer_points"] == 85.0


def test_csv_path_defaults_to_a_name_per_run(tmp_path):
    results = tmp_path / "out"
    path = simulation_csv_path(None, results, seed=7, games=20)
    assert path == results / "rook_rounds_seed7_games20.csv"
    assert results.is_dir()


def test_csv_path_relative_and_absolute(tmp_path):
    assert simulation_csv_path("x.csv", tmp_path, seed=0, games=1) == tmp_path / "x.csv"
    absolute = tmp_path / "elsewhere" / "y.csv"
    assert simulation_csv_path(str(absolute), DEFAULT_RESULTS_DIR, seed=0, games=1) == absolute
    assert not (tmp_path / "elsewhere").exists()
