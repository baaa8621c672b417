# rook_server/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from .agents import RandomRookAgent
from .game_log import DEFAULT_RESULTS_DIR, build_round_rows, simulation_csv_path, write_rows_csv
from .settings import ServerSettings
from .simulate import GameRunner


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Kentucky ROOK game server and headless simulator."
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: ROOK_LOG_LEVEL or INFO.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the websocket game server.")
    serve.add_argument("--host", type=str, default=None, help="Bind address (default: ROOK_HOST).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: PORT or 3000).")

    sim = sub.add_parser("simulate", help="Play games between random agents and log rounds to CSV.")
    sim.add_argument(
        "--games",
        type=int,
        default=1,
        help="Number of full games to play (default: 1).",
    )
    sim.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base random seed for deals and agents.",
    )
    sim.add_argument(
        "--csv",
        type=str,
        default=None,
        help=(
            "Output CSV; relative paths land in the results folder "
            "(default: rook_rounds_seed<seed>_games<games>.csv)."
        ),
    )
    sim.add_argument(
        "--parallel-games",
        type=int,
        default=4,
        help="Max number of games to play concurrently (default: 4).",
    )
    return parser.parse_args(argv)


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _play_single_game(game_index: int, *, seed: int) -> Tuple[List[Dict[str, Any]], str]:
    """Run one game synchronously (meant for thread execution)."""
    game_id = f"game-{game_index}"
    agents = [
        RandomRookAgent(rng=random.Random(seed + game_index * 1000 + i))
        for i in range(4)
    ]
    runner = GameRunner(
        agents=agents,
        player_names=[f"Random {i}" for i in range(4)],
        rng_seed=seed + game_index,
        game_label=game_id,
    )
    game_state = runner.play_game()
    logging.info(
        "Finished %s after %d rounds: %s",
        game_id,
        len(game_state.results),
        game_state.team_scores,
    )
    return build_round_rows(game_state, game_id=game_id), game_id


async def _play_single_game_async(game_index: int, *, seed: int) -> Tuple[List[Dict[str, Any]], str]:
    return await asyncio.to_thread(_play_single_game, game_index, seed=seed)


async def simulate(args: argparse.Namespace, settings: ServerSettings) -> int:
    csv_path = simulation_csv_path(
        args.csv,
        settings.results_dir or DEFAULT_RESULTS_DIR,
        seed=args.seed,
        games=args.games,
    )
    parallel_games = max(1, min(args.parallel_games, args.games))

    logging.info("Games to play: %d", args.games)
    logging.info("Output CSV: %s", csv_path)
    logging.info("Running up to %d game(s) concurrently", parallel_games)

    all_rows: List[Dict[str, Any]] = []
    failures = 0
    for batch_start in range(0, args.games, parallel_games):
        batch_indices = list(range(batch_start, min(batch_start + parallel_games, args.games)))
        tasks = [
            asyncio.create_task(_play_single_game_async(game_index, seed=args.seed))
            for game_index in batch_indices
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logging.error("Game task failed: %s", result)
                failures += 1
                continue
            rows, _ = result
            all_rows.extend(rows)

    write_rows_csv(all_rows, csv_path)
    logging.info(
        "Finished %d games; wrote %d rows to %s",
        args.games - failures,
        len(all_rows),
        csv_path,
    )
    return 1 if failures else 0


def serve(args: argparse.Namespace, settings: ServerSettings) -> None:
    import uvicorn

    from .server import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    logging.info("Serving ROOK on %s:%d", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    settings = ServerSettings.from_env()
    _configure_logging(args.log_level or settings.log_level)

    if args.command == "serve":
        serve(args, settings)
    else:
        code = asyncio.run(simulate(args, settings))
        if code:
            raise SystemExit(code)


if __name__ == "__main__":
    main()
