"""
Board and piece model: piece types, colours, and per-type movement rules.

Movement rules are pure functions of the board contents plus a small
MoveContext supplied by the rules engine, because castling and en passant
eligibility depend on game history rather than on the piece alone. The
functions here are pseudo-legal: they never ask whether the mover's own king
ends up in check. That filtering belongs to chessbot.game.

Board convention:
    board[row][col], row 0 = Black's back rank (rank 8), row 7 = White's
    back rank (rank 1), col 0 = the a-file. White pawns move towards row 0.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

BOARD_SIZE = 8

Square = tuple[int, int]
Board = list[list[Optional["Piece"]]]


class Color(Enum):
    WHITE = "WHITE"
    BLACK = "BLACK"

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Row delta of a pawn step for this colour."""
        return -1 if self is Color.WHITE else 1

    @property
    def back_rank(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_rank(self) -> int:
        """Row the pawns start on."""
        return 6 if self is Color.WHITE else 1

    @property
    def promotion_rank(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceType(Enum):
    PAWN = "PAWN"
    KNIGHT = "KNIGHT"
    BISHOP = "BISHOP"
    ROOK = "ROOK"
    QUEEN = "QUEEN"
    KING = "KING"

    @property
    def letter(self) -> str:
        """Upper-case algebraic letter (N for knight)."""
        return "N" if self is PieceType.KNIGHT else self.value[0]

    @classmethod
    def from_letter(cls, letter: str) -> "PieceType":
        for piece_type in cls:
            if piece_type.letter == letter.upper():
                return piece_type
        raise ValueError(f"Unknown piece letter: {letter!r}")


MINOR_PIECES = (PieceType.KNIGHT, PieceType.BISHOP)
PROMOTION_TYPES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)

SYMBOLS: dict[Color, dict[PieceType, str]] = {
    Color.WHITE: {
        PieceType.KING: "♔", PieceType.QUEEN: "♕", PieceType.ROOK: "♖",
        PieceType.BISHOP: "♗", PieceType.KNIGHT: "♘", PieceType.PAWN: "♙",
    },
    Color.BLACK: {
        PieceType.KING: "♚", PieceType.QUEEN: "♛", PieceType.ROOK: "♜",
        PieceType.BISHOP: "♝", PieceType.KNIGHT: "♞", PieceType.PAWN: "♟",
    },
}

BACK_RANK_ORDER = (
    PieceType.ROOK, PieceType.KNIGHT, PieceType.BISHOP, PieceType.QUEEN,
    PieceType.KING, PieceType.BISHOP, PieceType.KNIGHT, PieceType.ROOK,
)

KNIGHT_OFFSETS = ((-2, -1), (-2, 1), (-1, -2), (-1, 2), (1, -2), (1, 2), (2, -1), (2, 1))
KING_OFFSETS = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))
ORTHOGONAL = ((0, 1), (0, -1), (1, 0), (-1, 0))
DIAGONAL = ((1, 1), (1, -1), (-1, 1), (-1, -1))


@dataclass
class Piece:
    type: PieceType
    color: Color
    row: int
    col: int
    has_moved: bool = False

    @property
    def position(self) -> Square:
        return (self.row, self.col)

    @property
    def symbol(self) -> str:
        return SYMBOLS[self.color][self.type]

    @property
    def square_name(self) -> str:
        return f"{chr(ord('a') + self.col)}{BOARD_SIZE - self.row}"

    def move_to(self, row: int, col: int) -> None:
        self.row = row
        self.col = col
        self.has_moved = True

    def clone(self) -> "Piece":
        return Piece(self.type, self.color, self.row, self.col, self.has_moved)


@dataclass(frozen=True)
class MoveContext:
    """Game-level facts a piece cannot see on the board by itself."""

    en_passant_target: Optional[Square] = None
    can_castle_king_side: bool = False
    can_castle_queen_side: bool = False


NO_CONTEXT = MoveContext()


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def empty_board() -> Board:
    return [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]


# ---------------------------------------------------------------------------
# Pseudo-legal move generation
# ---------------------------------------------------------------------------


def possible_moves(board: Board, piece: Piece, context: MoveContext = NO_CONTEXT) -> list[Square]:
    """
    Return every pseudo-legal destination square for *piece*.

    Destinations never include squares occupied by the mover's own pieces.
    King safety is not considered.

    Args:
        board:   The board the piece stands on.
        piece:   The piece to move.
        context: En passant target and castling permissions, as decided by
                 the rules engine. Defaults to "no special moves".

    Returns:
        Destination squares as (row, col) tuples.
    """
    piece_type = piece.type
    if piece_type is PieceType.PAWN:
        return _pawn_moves(board, piece, context.en_passant_target)
    if piece_type is PieceType.KNIGHT:
        return _step_moves(board, piece, KNIGHT_OFFSETS)
    if piece_type is PieceType.BISHOP:
        return _slide_moves(board, piece, DIAGONAL)
    if piece_type is PieceType.ROOK:
        return _slide_moves(board, piece, ORTHOGONAL)
    if piece_type is PieceType.QUEEN:
        return _slide_moves(board, piece, ORTHOGONAL) + _slide_moves(board, piece, DIAGONAL)
    if piece_type is PieceType.KING:
        return _king_moves(board, piece, context)
    return []


def _pawn_moves(board: Board, piece: Piece, en_passant_target: Optional[Square]) -> list[Square]:
    moves: list[Square] = []
    direction = piece.color.forward
    row, col = piece.row, piece.col
    new_row = row + direction
    if not 0 <= new_row < BOARD_SIZE:
        return moves

    if board[new_row][col] is None:
        moves.append((new_row, col))
        two_row = new_row + direction
        if row == piece.color.pawn_rank and board[two_row][col] is None:
            moves.append((two_row, col))

    for new_col in (col - 1, col + 1):
        if 0 <= new_col < BOARD_SIZE:
            target = board[new_row][new_col]
            if target is not None and target.color is not piece.color:
                moves.append((new_row, new_col))

    # En passant: the capturing pawn sits on its fifth rank, next to the
    # pawn that just jumped.
    en_passant_row = 3 if piece.color is Color.WHITE else 4
    if en_passant_target is not None and row == en_passant_row:
        target_row, target_col = en_passant_target
        if target_row == new_row and abs(target_col - col) == 1:
            moves.append((target_row, target_col))
    return moves


def _step_moves(board: Board, piece: Piece, offsets: tuple[tuple[int, int], ...]) -> list[Square]:
    moves: list[Square] = []
    for dr, dc in offsets:
        r, c = piece.row + dr, piece.col + dc
        if 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            target = board[r][c]
            if target is None or target.color is not piece.color:
                moves.append((r, c))
    return moves


def _slide_moves(board: Board, piece: Piece, directions: tuple[tuple[int, int], ...]) -> list[Square]:
    moves: list[Square] = []
    for dr, dc in directions:
        r, c = piece.row + dr, piece.col + dc
        while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            target = board[r][c]
            if target is None:
                moves.append((r, c))
            else:
                if target.color is not piece.color:
                    moves.append((r, c))
                break
            r += dr
            c += dc
    return moves


def _king_moves(board: Board, piece: Piece, context: MoveContext) -> list[Square]:
    moves = _step_moves(board, piece, KING_OFFSETS)
    if not piece.has_moved and piece.col == 4:
        if context.can_castle_king_side:
            moves.append((piece.row, 6))
        if context.can_castle_queen_side:
            moves.append((piece.row, 2))
    return moves


# ---------------------------------------------------------------------------
# Attacks
# ---------------------------------------------------------------------------


def attacked_squares(board: Board, piece: Piece) -> list[Square]:
    """
    Squares *piece* attacks (could capture on), regardless of occupancy by
    the opponent.

    Differs from possible_moves only for pawns (the two forward diagonals,
    never the push squares) and kings (no castling). En passant is not an
    attack on the target square.
    """
    if piece.type is PieceType.PAWN:
        r = piece.row + piece.color.forward
        if not 0 <= r < BOARD_SIZE:
            return []
        return [(r, c) for c in (piece.col - 1, piece.col + 1) if 0 <= c < BOARD_SIZE]
    if piece.type is PieceType.KING:
        return _step_moves(board, piece, KING_OFFSETS)
    return possible_moves(board, piece)


def is_square_attacked(board: Board, square: Square, by_color: Color) -> bool:
    """
    True if any piece of *by_color* attacks *square*.

    Looks outward from the target along each attack pattern instead of
    generating every enemy move, which keeps legality checks cheap.
    """
    tr, tc = square

    # Pawns: an attacking pawn sits one row "behind" the square from its
    # own point of view.
    pawn_row = tr - by_color.forward
    if 0 <= pawn_row < BOARD_SIZE:
        for c in (tc - 1, tc + 1):
            if 0 <= c < BOARD_SIZE:
                p = board[pawn_row][c]
                if p is not None and p.color is by_color and p.type is PieceType.PAWN:
                    return True

    for dr, dc in KNIGHT_OFFSETS:
        r, c = tr + dr, tc + dc
        if 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            p = board[r][c]
            if p is not None and p.color is by_color and p.type is PieceType.KNIGHT:
                return True

    for dr, dc in KING_OFFSETS:
        r, c = tr + dr, tc + dc
        if 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
            p = board[r][c]
            if p is not None and p.color is by_color and p.type is PieceType.KING:
                return True

    for directions, sliders in (
        (ORTHOGONAL, (PieceType.ROOK, PieceType.QUEEN)),
        (DIAGONAL, (PieceType.BISHOP, PieceType.QUEEN)),
    ):
        for dr, dc in directions:
            r, c = tr + dr, tc + dc
            while 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE:
                p = board[r][c]
                if p is not None:
                    if p.color is by_color and p.type in sliders:
                        return True
                    break
                r += dr
                c += dc
    return False


def count_attackers(board: Board, square: Square, by_color: Color) -> int:
    """Number of *by_color* pieces attacking *square*."""
    count = 0
    for row in board:
        for piece in row:
            if piece is not None and piece.color is by_color and square in attacked_squares(board, piece):
                count += 1
    return count
