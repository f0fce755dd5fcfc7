#!/usr/bin/env python3
# ruff: noqa: E402
import argparse
import logging
import os
import sys
import time

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo root (which contains `src/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.chess.fen import STARTING_FEN
from src.chess.game import Game
from src.chess.perft import count_positions, divide
from src.core.config import Settings, configure_logging
from src.core.exceptions import InvalidFENError

logger = logging.getLogger("perft")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run perft on a given FEN and depth")
    parser.add_argument(
        "--fen", type=str, default=STARTING_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide",
        action="store_true",
        help="also log the node count below every root move",
    )
    parser.add_argument(
        "--expected",
        type=int,
        default=None,
        help="reference node count; exit with status 1 when the result differs",
    )
    args = parser.parse_args(argv)

    configure_logging(Settings.from_env())

    try:
        game = Game.from_fen(args.fen)
    except InvalidFENError as exc:
        logger.error("%s", exc)
        return 2

    start = time.perf_counter()
    if args.divide and args.depth > 0:
        counts = divide(game, args.depth)
        for uci, count in sorted(counts.items()):
            logger.info("%s: %d", uci, count)
        nodes = sum(counts.values())
    else:
        nodes = count_positions(game, args.depth)
    dt = time.perf_counter() - start

    logger.info(
        "nodes=%d depth=%d time_ms=%d nps=%d",
        nodes,
        args.depth,
        int(dt * 1000),
        int(nodes / max(dt, 1e-9)),
    )

    if args.expected is not None and nodes != args.expected:
        logger.error("MISMATCH: expected %d nodes, counted %d", args.expected, nodes)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
