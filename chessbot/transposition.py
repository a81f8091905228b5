"""
Zobrist position hashing and the transposition table.

The same position is often reached through different move orders
(1.e4 e5 2.Nf3 and 1.Nf3 e5 2.e4). The transposition table remembers the
result of searching a position so the second visit can reuse it instead of
searching the subtree again.

Zobrist hashing:
    Every (piece type, colour, square) triple is assigned an independent
    64-bit pseudorandom constant. A position's key is the XOR of the constants
    of all occupied squares, XORed with one constant when Black is to move,
    one per en passant file, and one per castling right still available.
    Keys are recomputed from scratch per node; the search clones states
    rather than making and unmaking moves, so incremental updates would buy
    little.

Bounds:
    Alpha-beta rarely learns a position's exact value. A node that failed
    high only proves score >= beta (LOWERBOUND); one that failed low proves
    score <= alpha (UPPERBOUND). Only a score strictly inside the window is
    EXACT. The probe side uses these flags to decide whether a stored score
    can cut off the current node.
"""

import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from chessbot.constants import CHECKMATE_SCORE, TT_MAX_ENTRIES
from chessbot.game import GameState
from chessbot.pieces import BOARD_SIZE, Color, PieceType, Square

# Fixed seed: keys must be identical across runs so searches are reproducible.
ZOBRIST_SEED: int = 0x5EED_C4E55

_rng = random.Random(ZOBRIST_SEED)

PIECE_KEYS: dict[tuple[PieceType, Color], list[list[int]]] = {
    (piece_type, color): [[_rng.getrandbits(64) for _ in range(BOARD_SIZE)] for _ in range(BOARD_SIZE)]
    for piece_type in PieceType
    for color in Color
}
BLACK_TO_MOVE_KEY: int = _rng.getrandbits(64)
EN_PASSANT_FILE_KEYS: list[int] = [_rng.getrandbits(64) for _ in range(BOARD_SIZE)]
# (colour, king side?) -> key
CASTLING_KEYS: dict[tuple[Color, bool], int] = {
    (color, king_side): _rng.getrandbits(64) for color in Color for king_side in (True, False)
}

del _rng

# Scores beyond this magnitude encode "mate in N plies".
MATE_THRESHOLD: int = CHECKMATE_SCORE - 1_000


def _castling_available(state: GameState, color: Color, king_side: bool) -> bool:
    row = color.back_rank
    king = state.board[row][4]
    rook = state.board[row][7 if king_side else 0]
    return (
        king is not None and king.type is PieceType.KING and king.color is color and not king.has_moved
        and rook is not None and rook.type is PieceType.ROOK and rook.color is color and not rook.has_moved
    )


def zobrist_key(state: GameState) -> int:
    """64-bit hash of the placement, side to move, en passant file and castling rights."""
    key = 0
    for row_index, row in enumerate(state.board):
        for col_index, piece in enumerate(row):
            if piece is not None:
                key ^= PIECE_KEYS[(piece.type, piece.color)][row_index][col_index]
    if state.current_player is Color.BLACK:
        key ^= BLACK_TO_MOVE_KEY
    if state.en_passant_target is not None:
        key ^= EN_PASSANT_FILE_KEYS[state.en_passant_target[1]]
    for (color, king_side), castling_key in CASTLING_KEYS.items():
        if _castling_available(state, color, king_side):
            key ^= castling_key
    return key


def score_to_tt(score: int, ply: int) -> int:
    """Store mate scores relative to the node rather than the root."""
    if score > MATE_THRESHOLD:
        return score + ply
    if score < -MATE_THRESHOLD:
        return score - ply
    return score


def score_from_tt(score: int, ply: int) -> int:
    if score > MATE_THRESHOLD:
        return score - ply
    if score < -MATE_THRESHOLD:
        return score + ply
    return score


class Bound(IntEnum):
    EXACT = 0
    LOWERBOUND = 1  # fail-high: true score >= stored score
    UPPERBOUND = 2  # fail-low: true score <= stored score


MoveKey = tuple[Square, Square]


@dataclass
class TTEntry:
    key: int
    depth: int
    score: int
    bound: Bound
    best_move: Optional[MoveKey] = None


class TranspositionTable:
    """
    Dictionary-backed transposition table.

    Entries are replaced when the new search is at least as deep as the stored
    one. Once the table reaches max_entries it is cleared wholesale before the
    next insert; there is no per-entry eviction.
    """

    def __init__(self, max_entries: int = TT_MAX_ENTRIES):
        self.max_entries = max_entries
        self._entries: dict[int, TTEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def probe(self, key: int) -> Optional[TTEntry]:
        return self._entries.get(key)

    def store(self, key: int, depth: int, score: int, bound: Bound,
              best_move: Optional[MoveKey] = None) -> None:
        entry = self._entries.get(key)
        if entry is not None and depth < entry.depth:
            return
        if entry is None and len(self._entries) >= self.max_entries:
            self._entries.clear()
        self._entries[key] = TTEntry(key, depth, score, bound, best_move)

    def clear(self) -> None:
        self._entries.clear()
