"""
Search-side move representation, generation, and ordering.

Alpha-beta prunes best when the best move is searched first, so every node
sorts its candidates by a composite score before exploring them:

    PV move           +PV_MOVE_BONUS (best move remembered for this position)
    capture           +CAPTURE_BONUS + victim value - attacker value / 10
    killer move       +KILLER_BONUS (quiet move that cut off a sibling)
    history           +min(history[from, to], HISTORY_BONUS_CAP)
    centralisation    +(centrality(to) - centrality(from)) * CENTRALITY_WEIGHT
    pawn advance      +PAWN_ADVANCE_BONUS per rank gained
    castling          +CASTLING_BONUS

Killers and history live in a MoveOrderer owned by one searcher and are
reset at the start of every top-level search.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from chessbot.constants import (
    CAPTURE_BONUS,
    CASTLING_BONUS,
    CENTRALITY_WEIGHT,
    HISTORY_BONUS_CAP,
    KILLER_BONUS,
    KILLER_DEPTHS,
    KILLER_SLOTS,
    PAWN_ADVANCE_BONUS,
    PIECE_VALUES,
    PV_MOVE_BONUS,
)
from chessbot.game import GameState
from chessbot.notation import move_key
from chessbot.pieces import PieceType, Square
from chessbot.transposition import MoveKey


@dataclass
class Move:
    """A legal move as the search sees it."""

    from_square: Square
    to_square: Square
    piece_type: PieceType
    captured_type: Optional[PieceType] = None
    promotion: Optional[PieceType] = None
    score: int = 0

    @property
    def key(self) -> MoveKey:
        return (self.from_square, self.to_square)

    @property
    def is_capture(self) -> bool:
        return self.captured_type is not None

    @property
    def is_castling(self) -> bool:
        return self.piece_type is PieceType.KING and abs(self.to_square[1] - self.from_square[1]) == 2

    @property
    def uci(self) -> str:
        """Coordinate notation, with a promotion suffix when promoting."""
        text = move_key(self.from_square, self.to_square)
        if self.promotion is not None:
            text += self.promotion.letter.lower()
        return text

    def __str__(self) -> str:
        return self.uci


def generate_moves(state: GameState, captures_only: bool = False) -> list[Move]:
    """
    Every legal move for the side to move, as Move objects.

    Pawns reaching the last rank are generated as queen promotions only.
    En passant captures carry captured_type PAWN even though the
    destination square is empty.
    """
    moves: list[Move] = []
    for piece, to_square in state.all_legal_moves():
        to_row, to_col = to_square
        target = state.board[to_row][to_col]
        captured_type = target.type if target is not None else None
        if piece.type is PieceType.PAWN and target is None and to_square == state.en_passant_target:
            captured_type = PieceType.PAWN
        if captures_only and captured_type is None:
            continue
        promotion = None
        if piece.type is PieceType.PAWN and to_row == piece.color.promotion_rank:
            promotion = PieceType.QUEEN
        moves.append(Move(piece.position, to_square, piece.type, captured_type, promotion))
    return moves


def mvv_lva(move: Move) -> int:
    """Capture score: most valuable victim first, cheapest attacker breaks ties."""
    if move.captured_type is None:
        return 0
    return CAPTURE_BONUS + PIECE_VALUES[move.captured_type] - PIECE_VALUES[move.piece_type] // 10


def order_captures(moves: Iterable[Move]) -> list[Move]:
    return sorted(moves, key=mvv_lva, reverse=True)


def _centrality(square: Square) -> int:
    row, col = square
    # 7 minus the Manhattan distance to (3.5, 3.5).
    return 7 - (abs(7 - 2 * row) + abs(7 - 2 * col)) // 2


class MoveOrderer:
    """Killer-move and history tables plus the composite ordering score."""

    def __init__(self) -> None:
        self.killers: list[list[MoveKey]] = []
        self.history: dict[MoveKey, int] = {}
        self.clear()

    def clear(self) -> None:
        self.killers = [[] for _ in range(KILLER_DEPTHS)]
        self.history = {}

    def store_killer(self, move: Move, depth: int) -> None:
        """Remember a quiet cutoff move for *depth*, newest first, KILLER_SLOTS kept."""
        if not 0 <= depth < KILLER_DEPTHS:
            return
        slots = self.killers[depth]
        if move.key in slots:
            slots.remove(move.key)
        slots.insert(0, move.key)
        del slots[KILLER_SLOTS:]

    def is_killer(self, move: Move, depth: int) -> bool:
        return 0 <= depth < KILLER_DEPTHS and move.key in self.killers[depth]

    def update_history(self, move: Move, depth: int) -> None:
        self.history[move.key] = self.history.get(move.key, 0) + depth * depth

    def score_move(self, move: Move, depth: int, pv_move: Optional[MoveKey] = None) -> int:
        score = 0
        if pv_move is not None and move.key == pv_move:
            score += PV_MOVE_BONUS
        score += mvv_lva(move)
        if self.is_killer(move, depth):
            score += KILLER_BONUS
        score += min(self.history.get(move.key, 0), HISTORY_BONUS_CAP)
        score += (_centrality(move.to_square) - _centrality(move.from_square)) * CENTRALITY_WEIGHT
        if move.piece_type is PieceType.PAWN:
            score += abs(move.to_square[0] - move.from_square[0]) * PAWN_ADVANCE_BONUS
        if move.is_castling:
            score += CASTLING_BONUS
        return score

    def order(self, moves: list[Move], depth: int, pv_move: Optional[MoveKey] = None) -> list[Move]:
        """Score *moves* in place and return them sorted best-first (stable)."""
        for move in moves:
            move.score = self.score_move(move, depth, pv_move)
        return sorted(moves, key=lambda m: m.score, reverse=True)
