"""Built-in opening book.

Positions are identified by the game's move history: the comma-joined
coordinate keys of every move played so far ("e2e4,e7e5,g1f3"). Each key
maps to the candidate replies in the same notation; the engine picks one
uniformly at random.

The table is assembled at import time from two sources: a handful of
hand-written prefix -> replies entries, and a repertoire of full opening
lines from which every prefix -> next-move pair is derived.
"""

import logging
import random
from typing import Iterable, Optional

from chessbot.constants import OPENING_BOOK_MAX_PLY
from chessbot.game import GameState
from chessbot.notation import parse_move

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Repertoire
# ---------------------------------------------------------------------------

_BOOK_ENTRIES: dict[str, list[str]] = {
    "e2e4,e7e5,g1f3,b8c6,f1c4": ["b7b5", "d7d6", "f7f5", "g8f6"],
    "e2e4,c7c5": ["g1f3", "d2d4", "b1c3"],
    "e2e4,e7e6": ["d2d4", "g1f3"],
    "d2d4,d7d5,c2c4": ["e7e6", "c7c6", "d5c4"],
    "d2d4,g8f6,c2c4,g7g6": ["b1c3", "g1f3"],
    "e2e4,e7e5,g1f3,b8c6,f1b5": ["a7a6", "g8f6", "f7f5"],
    "c2c4": ["e7e5", "g8f6", "c7c5", "e7e6"],
    "e2e4,c7c6": ["d2d4", "b1c3", "g1f3"],
}

# Space-separated coordinate moves; castling is written as the king's move.
_OPENING_LINES: list[str] = [
    # 1.e4
    # Ruy Lopez, Closed
    "e2e4 e7e5 g1f3 b8c6 f1b5 a7a6 b5a4 g8f6 e1g1 f8e7 f1e1 b7b5 a4b3 d7d6 c2c3 e8g8",
    # Ruy Lopez, Berlin
    "e2e4 e7e5 g1f3 b8c6 f1b5 g8f6 e1g1 f6e4 d2d4 e4d6 b5c6 d7c6 d4e5 d6f5",
    # Italian Game
    "e2e4 e7e5 g1f3 b8c6 f1c4 g8f6 d2d3 f8c5 e1g1 d7d6 c2c3 e8g8",
    "e2e4 e7e5 g1f3 b8c6 f1c4 f8c5 c2c3 g8f6 d2d3 d7d6 e1g1 e8g8",
    # Scotch Game
    "e2e4 e7e5 g1f3 b8c6 d2d4 e5d4 f3d4 g8f6 d4c6 b7c6 e4e5 d8e7",
    # Petroff Defence
    "e2e4 e7e5 g1f3 g8f6 f3e5 d7d6 e5f3 f6e4 d2d4 d6d5 f1d3 b8c6",
    # Sicilian Najdorf
    "e2e4 c7c5 g1f3 d7d6 d2d4 c5d4 f3d4 g8f6 b1c3 a7a6 f1e2 e7e5 d4b3 f8e7",
    # Sicilian Dragon
    "e2e4 c7c5 g1f3 d7d6 d2d4 c5d4 f3d4 g8f6 b1c3 g7g6 c1e3 f8g7 f2f3 e8g8",
    # French Tarrasch
    "e2e4 e7e6 d2d4 d7d5 b1d2 g8f6 e4e5 f6d7 f1d3 c7c5 c2c3 b8c6",
    # Caro-Kann Classical
    "e2e4 c7c6 d2d4 d7d5 b1c3 d5e4 c3e4 c8f5 e4g3 f5g6 h2h4 h7h6",
    # 1.d4
    # Queen's Gambit Declined
    "d2d4 d7d5 c2c4 e7e6 b1c3 g8f6 c1g5 f8e7 e2e3 e8g8 g1f3 b8d7",
    # Queen's Gambit Accepted
    "d2d4 d7d5 c2c4 d5c4 g1f3 g8f6 e2e3 e7e6 f1c4 c7c5 e1g1 a7a6",
    # Slav Defence
    "d2d4 d7d5 c2c4 c7c6 g1f3 g8f6 b1c3 d5c4 a2a4 c8f5 e2e3 e7e6",
    # Nimzo-Indian
    "d2d4 g8f6 c2c4 e7e6 b1c3 f8b4 d1c2 e8g8 a2a3 b4c3 c2c3 b7b6",
    # King's Indian Classical
    "d2d4 g8f6 c2c4 g7g6 b1c3 f8g7 e2e4 d7d6 g1f3 e8g8 f1e2 e7e5",
    # London System
    "d2d4 d7d5 c1f4 g8f6 e2e3 c7c5 c2c3 b8c6 b1d2 e7e6 g1f3 f8d6",
    # 1.c4
    # English Opening
    "c2c4 e7e5 b1c3 g8f6 g1f3 b8c6 g2g3 d7d5 c4d5 f6d5 f1g2 d5b6",
]


class OpeningBook:
    """Move-history keyed table of candidate replies."""

    def __init__(self, entries: Optional[dict[str, list[str]]] = None,
                 lines: Iterable[str] = (), max_ply: int = OPENING_BOOK_MAX_PLY):
        self.max_ply = max_ply
        self._table: dict[str, list[str]] = {}
        for key, replies in (entries or {}).items():
            for reply in replies:
                self._add(key, reply)
        for line in lines:
            moves = line.split()
            for ply, reply in enumerate(moves):
                self._add(",".join(moves[:ply]), reply)

    def _add(self, key: str, reply: str) -> None:
        replies = self._table.setdefault(key, [])
        if reply not in replies:
            replies.append(reply)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: str) -> bool:
        return key in self._table

    def replies(self, key: str) -> list[str]:
        """Candidate replies stored for *key* (empty when out of book)."""
        return list(self._table.get(key, ()))

    def lookup(self, state: GameState, rng: Optional[random.Random] = None) -> Optional[str]:
        """
        Pick a book reply for *state*, or None when out of book.

        Only replies that are legal in *state* are eligible, so a stale or
        mistyped entry can never produce an illegal move.
        """
        if len(state.move_history) >= self.max_ply:
            return None
        key = state.history_key()
        candidates = [reply for reply in self._table.get(key, ()) if _is_legal(state, reply)]
        if not candidates:
            return None
        choice = (rng or random.Random()).choice(candidates)
        _log.debug("Book hit after %r: %s (of %d)", key, choice, len(candidates))
        return choice


def _is_legal(state: GameState, text: str) -> bool:
    try:
        from_square, to_square, _ = parse_move(text)
    except ValueError:
        return False
    return state.is_legal_move(from_square, to_square)


DEFAULT_BOOK = OpeningBook(_BOOK_ENTRIES, _OPENING_LINES)
