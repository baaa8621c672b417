# rook_server/game_log.py
from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .state import GameState, team_of

# Simulation output lands here unless ROOK_RESULTS_DIR points elsewhere.
DEFAULT_RESULTS_DIR = Path(__file__).resolve().parent / "results"

FIELDNAMES = [
    "game_id",
    "round_index",
    "dealer",
    "declarer",
    "declarer_name",
    "declarer_team",
    "bid",
    "forced_bid",
    "trump",
    "team0_points",
    "team1_points",
    "made_contract",
    "team0_delta",
    "team1_delta",
    "team0_score",
    "team1_score",
    "winning_team",
]


def build_round_rows(
    game_state: GameState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    One row per scored round, keys as in FIELDNAMES.

    `winning_team` is filled in on the final row of a finished game only.
    Rounds still being played have no result yet and are left out.
    """
    rows: List[Dict[str, Any]] = []
    results = game_state.results
    for i, result in enumerate(results):
        is_final = i == len(results) - 1 and game_state.winning_team is not None
        rows.append(
            {
                "game_id": game_id,
                "round_index": result.round_index,
                "dealer": result.dealer,
                "declarer": result.declarer,
                "declarer_name": game_state.seats[result.declarer].name,
                "declarer_team": team_of(result.declarer),
                "bid": result.bid,
                "forced_bid": result.forced_bid,
                "trump": result.trump.value if result.trump is not None else None,
                "team0_points": result.team_points[0],
                "team1_points": result.team_points[1],
                "made_contract": result.made_contract,
                "team0_delta": result.score_deltas[0],
                "team1_delta": result.score_deltas[1],
                "team0_score": result.team_scores[0],
                "team1_score": result.team_scores[1],
                "winning_team": game_state.winning_team if is_final else None,
            }
        )
    return rows


def write_rows_csv(rows: List[Dict[str, Any]], path) -> None:
    """
    Write round rows to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in FIELDNAMES})


def write_round_scores_csv(
    game_state: GameState,
    path,
    game_id: Optional[str] = None,
) -> None:
    write_rows_csv(build_round_rows(game_state, game_id=game_id), path)


def simulation_csv_path(
    csv_arg: Optional[Union[str, Path]],
    results_dir: Path,
    *,
    seed: int,
    games: int,
) -> Path:
    """
    Where a `simulate` run writes its round rows.

    With no path given the file is named after the run, e.g.
    `rook_rounds_seed7_games20.csv`, so runs with different seeds do not
    overwrite each other. Relative paths land in `results_dir`, which is
    created on demand; absolute paths are used as they are.
    """
    if csv_arg is None:
        csv_arg = f"rook_rounds_seed{seed}_games{games}.csv"
    path = Path(csv_arg)
    if path.is_absolute():
        return path
    results_dir.mkdir(parents=True, exist_ok=True)
    return results_dir / path
