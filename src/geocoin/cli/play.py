from __future__ import annotations

import argparse
import json
import logging
from typing import Sequence

from geocoin.cli.viewer import run_session
from geocoin.content.io import export_game_json, load_game
from geocoin.content.storage import FileStorage
from geocoin.sim.caches import DEFAULT_SPAWN_PROBABILITY
from geocoin.sim.game import DEFAULT_START, GameConfig
from geocoin.sim.grid import DEFAULT_NEIGHBORHOOD_RADIUS, DEFAULT_TILE_SIZE, LatLng
from geocoin.sim.hash import game_hash

DEFAULT_SAVE_DIR = "saves/geocoin"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="geocoin-play", description="Collect and deposit coins in nearby caches.")
    parser.add_argument("--save-dir", default=DEFAULT_SAVE_DIR, help="Directory holding the saved game entries.")
    parser.add_argument("--tile-size", type=float, default=DEFAULT_TILE_SIZE, help="Cell edge length in degrees.")
    parser.add_argument("--radius", type=int, default=DEFAULT_NEIGHBORHOOD_RADIUS, help="Cells scanned around the player.")
    parser.add_argument(
        "--spawn-probability",
        type=float,
        default=DEFAULT_SPAWN_PROBABILITY,
        help="Chance that a cell holds a cache.",
    )
    parser.add_argument("--lat", type=float, default=DEFAULT_START.lat, help="Start latitude for a new game.")
    parser.add_argument("--lng", type=float, default=DEFAULT_START.lng, help="Start longitude for a new game.")
    parser.add_argument("--summary", action="store_true", help="Print a one-line status and exit.")
    parser.add_argument("--export", metavar="PATH", help="Write the saved game to one JSON file and exit.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
        config = GameConfig(
            tile_size=args.tile_size,
            neighborhood_radius=args.radius,
            spawn_probability=args.spawn_probability,
            start=LatLng(lat=args.lat, lng=args.lng),
        )
        game = load_game(FileStorage(args.save_dir), config)

        if args.export:
            export_game_json(args.export, game)
            print(f"ok export={args.export} state_hash={game_hash(game)}")
            return 0
        if args.summary:
            print("summary " + json.dumps(game.status(), sort_keys=True))
            return 0
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    run_session(game)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
