#!/usr/bin/env python3
"""
Benchmark: measure nodes searched and time per move at a fixed depth.

Run before and after each search or evaluation change to quantify its
effect. A lower node count at the same depth indicates more effective
pruning or ordering; higher NPS indicates a faster evaluation or move
generator.

Usage: python3 tools/bench.py [depth]
"""
import os
import sys
import time

REPO = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO not in sys.path:
    sys.path.insert(0, REPO)

from chessbot.constants import MAX_DIFFICULTY  # noqa: E402
from chessbot.game import game_from_moves  # noqa: E402
from chessbot.search import Searcher  # noqa: E402

DEFAULT_DEPTH = 3

# Fixed positions spanning opening, middlegame, and endgame, given as move
# lists from the initial position. Same positions for every comparison.
POSITIONS = [
    ("Start",       ""),
    ("After 1.e4",  "e2e4"),
    ("Sicilian",    "e2e4 c7c5"),
    ("Italian",     "e2e4 e7e5 g1f3 b8c6 f1c4"),
    ("London",      "d2d4 d7d5 g1f3 g8f6 c1f4"),
    ("Two knights", "e2e4 e7e5 g1f3 b8c6 f1c4 g8f6 d2d3 f8c5 e1g1 d7d6"),
    ("Open centre", "e2e4 d7d5 e4d5 d8d5 b1c3 d5a5 d2d4 g8f6 g1f3 c8f5 f1c4 e7e6"),
    ("In check",    "d2d4 d7d5 c2c4 d5c4 d1a4 d8d7 a4c4 d7d4 c4d4 e7e5 d4e5"),
]


def run_position(label: str, moves: str, depth: int) -> dict:
    """Search one position to *depth* in-process and return its metrics.

    The opening book and weak-play emulation are bypassed: the searcher's
    iterative deepening is called directly with an unbounded clock, so every
    run reaches the requested depth.

    Args:
        label: Human-readable position name for display.
        moves: Space-separated coordinate moves from the initial position.
        depth: Depth of the last iteration.

    Returns:
        Dict with keys: label, move, depth, score, nodes, nps, time_ms.
    """
    state = game_from_moves(moves.split())
    searcher = Searcher(MAX_DIFFICULTY, max_depth=depth, time_limit_ms=10**9)

    start = time.monotonic()
    result = searcher.search(state)
    time_ms = int((time.monotonic() - start) * 1000)
    nps = int(result.nodes * 1000 / time_ms) if time_ms > 0 else 0

    return {
        "label": label,
        "move": str(result.move) if result.move else "(none)",
        "depth": result.depth,
        "score": result.score,
        "nodes": result.nodes,
        "nps": nps,
        "time_ms": time_ms,
    }


def main() -> None:
    """Run all benchmark positions and print a summary table."""
    depth = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DEPTH
    print(f"Chess bot benchmark, depth {depth}, {sys.executable}")
    print()
    print(
        f"{'Position':<14} {'Move':<7} {'Depth':>5} {'Score':>6} "
        f"{'Nodes':>8} {'NPS':>8} {'Time(ms)':>9}"
    )
    print("-" * 68)

    results = []
    for label, moves in POSITIONS:
        r = run_position(label, moves, depth)
        results.append(r)
        print(
            f"{r['label']:<14} {r['move']:<7} {r['depth']:>5} {r['score']:>6} "
            f"{r['nodes']:>8,} {r['nps']:>8,} {r['time_ms']:>9,}"
        )

    valid = [r for r in results if r["nodes"] > 0]
    if valid:
        avg_nodes = sum(r["nodes"] for r in valid) // len(valid)
        avg_time = sum(r["time_ms"] for r in valid) // len(valid)
        avg_nps = sum(r["nps"] for r in valid) // len(valid)
        print("-" * 68)
        print(
            f"{'AVERAGE':<14} {'':<7} {'':<5} {'':<6} "
            f"{avg_nodes:>8,} {avg_nps:>8,} {avg_time:>9,}"
        )


if __name__ == "__main__":
    main()
