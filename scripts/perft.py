#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import time
import os
import sys

# Allow running this script directly via `python scripts/perft.py`
# by adding `src/` to sys.path.
SRC_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chessrules.engine.board import STARTPOS_RANKS, Board, Color
from chessrules.engine.perft import perft


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a board layout and depth")
    parser.add_argument(
        "--layout",
        type=str,
        default="/".join(STARTPOS_RANKS),
        help="8 ranks separated by '/', rank 8 first, '.' for empty (default: startpos)",
    )
    parser.add_argument("--black", action="store_true", help="Black to move")
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    args = parser.parse_args()

    side = Color.BLACK if args.black else Color.WHITE
    try:
        board = Board.from_ranks(args.layout.split("/"), side)
    except ValueError as e:
        parser.error(str(e))
    start = time.perf_counter()
    nodes = perft(board, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
