"""
Rules engine: game state, move legality, move execution, and termination.

GameState owns the 8x8 board and everything the rules need beyond piece
placement: side to move, castling eligibility (through each piece's
has_moved flag), the en passant target, the fifty-move clock, and the move
history. It is the unit of cloning for the search, which explores
hypothetical moves on deep copies and never on the real game.

Illegal moves are routine (misclicks, speculative probing), so apply_move
reports them by returning False instead of raising. Out-of-range
coordinates degrade to None / empty results.

State machine:
    PLAYING <-> CHECK are live; CHECKMATE, STALEMATE and DRAW are terminal.
    Callers stop issuing moves once the status is terminal.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from chessbot.constants import FIFTY_MOVE_LIMIT
from chessbot.notation import algebraic, move_key, parse_move
from chessbot.pieces import (
    BACK_RANK_ORDER,
    BOARD_SIZE,
    MINOR_PIECES,
    PROMOTION_TYPES,
    Board,
    Color,
    MoveContext,
    Piece,
    PieceType,
    Square,
    empty_board,
    in_bounds,
    is_square_attacked,
    possible_moves,
)

_log = logging.getLogger(__name__)


class Status(Enum):
    PLAYING = "PLAYING"
    CHECK = "CHECK"
    CHECKMATE = "CHECKMATE"
    STALEMATE = "STALEMATE"
    DRAW = "DRAW"


TERMINAL_STATUSES = frozenset({Status.CHECKMATE, Status.STALEMATE, Status.DRAW})


@dataclass(frozen=True)
class MoveRecord:
    """One entry of the move history. Append-only."""

    from_square: Square
    to_square: Square
    piece_type: PieceType
    captured_type: Optional[PieceType]
    notation: str
    promotion: Optional[PieceType] = None

    @property
    def key(self) -> str:
        """Coordinate form, e.g. "e2e4" (opening-book alphabet)."""
        return move_key(self.from_square, self.to_square)


class GameState:
    """Complete state of one chess game."""

    def __init__(self) -> None:
        self.reset()

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    def reset(self) -> None:
        """Put the game back to the standard starting position."""
        self._clear(Color.WHITE)
        for col, piece_type in enumerate(BACK_RANK_ORDER):
            self.place(piece_type, Color.BLACK, (0, col))
            self.place(PieceType.PAWN, Color.BLACK, (1, col))
            self.place(PieceType.PAWN, Color.WHITE, (6, col))
            self.place(piece_type, Color.WHITE, (7, col))

    @classmethod
    def empty(cls, current_player: Color = Color.WHITE) -> "GameState":
        """
        A state with no pieces on the board, for composing positions.

        Place both kings (and anything else) with place(), then call
        update_status() so the status reflects the composed position.
        """
        state = cls.__new__(cls)
        state._clear(current_player)
        return state

    def _clear(self, current_player: Color) -> None:
        self.board: Board = empty_board()
        self.current_player: Color = current_player
        self.status: Status = Status.PLAYING
        self.move_history: list[MoveRecord] = []
        self.captured_pieces: dict[Color, list[Piece]] = {Color.WHITE: [], Color.BLACK: []}
        self.last_move: Optional[MoveRecord] = None
        self.king_positions: dict[Color, Square] = {Color.WHITE: (7, 4), Color.BLACK: (0, 4)}
        self.en_passant_target: Optional[Square] = None
        self.half_move_clock: int = 0
        self.full_move_number: int = 1

    def place(self, piece_type: PieceType, color: Color, square: Square, has_moved: bool = False) -> Piece:
        """Put a new piece on *square*, replacing whatever stood there."""
        row, col = square
        piece = Piece(piece_type, color, row, col, has_moved)
        self.board[row][col] = piece
        if piece_type is PieceType.KING:
            self.king_positions[color] = square
        return piece

    def remove(self, square: Square) -> Optional[Piece]:
        row, col = square
        piece = self.board[row][col]
        self.board[row][col] = None
        return piece

    def clone(self) -> "GameState":
        """Deep, independent copy: nothing is shared with the original."""
        new = GameState.__new__(GameState)
        new.board = [[None if cell is None else cell.clone() for cell in row] for row in self.board]
        new.current_player = self.current_player
        new.status = self.status
        new.move_history = list(self.move_history)
        new.captured_pieces = {color: [p.clone() for p in pieces] for color, pieces in self.captured_pieces.items()}
        new.last_move = self.last_move
        new.king_positions = dict(self.king_positions)
        new.en_passant_target = self.en_passant_target
        new.half_move_clock = self.half_move_clock
        new.full_move_number = self.full_move_number
        return new

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_piece_at(self, row: int, col: int) -> Optional[Piece]:
        if in_bounds(row, col):
            return self.board[row][col]
        return None

    def pieces(self, color: Color) -> list[Piece]:
        return [p for row in self.board for p in row if p is not None and p.color is color]

    @staticmethod
    def opponent(color: Color) -> Color:
        return color.opposite

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def history_key(self) -> str:
        """Comma-joined coordinate keys of every move played so far."""
        return ",".join(record.key for record in self.move_history)

    def is_square_attacked(self, square: Square, by_color: Color) -> bool:
        return is_square_attacked(self.board, square, by_color)

    def is_in_check(self, color: Color) -> bool:
        return is_square_attacked(self.board, self.king_positions[color], color.opposite)

    def can_castle(self, color: Color, king_side: bool) -> bool:
        """
        Whether *color* may castle on the given side right now.

        Requires an unmoved king on its home square and an unmoved rook in
        the corner, an empty path between them, the king not in check, and
        no square the king crosses or lands on attacked.
        """
        row = color.back_rank
        king = self.board[row][4]
        rook = self.board[row][7 if king_side else 0]
        if king is None or king.type is not PieceType.KING or king.color is not color or king.has_moved:
            return False
        if rook is None or rook.type is not PieceType.ROOK or rook.color is not color or rook.has_moved:
            return False

        between = (5, 6) if king_side else (1, 2, 3)
        if any(self.board[row][col] is not None for col in between):
            return False

        if self.is_in_check(color):
            return False

        enemy = color.opposite
        transit = (5, 6) if king_side else (3, 2)
        return not any(is_square_attacked(self.board, (row, col), enemy) for col in transit)

    def move_context(self, piece: Piece) -> MoveContext:
        if piece.type is PieceType.KING:
            return MoveContext(
                en_passant_target=self.en_passant_target,
                can_castle_king_side=self.can_castle(piece.color, True),
                can_castle_queen_side=self.can_castle(piece.color, False),
            )
        return MoveContext(en_passant_target=self.en_passant_target)

    # -----------------------------------------------------------------------
    # Legality
    # -----------------------------------------------------------------------

    def legal_moves(self, piece: Optional[Piece]) -> list[Square]:
        """
        Destinations *piece* may legally move to.

        Empty for pieces of the side not to move and for pieces that are not
        on this state's board.
        """
        if piece is None or piece.color is not self.current_player:
            return []
        if self.get_piece_at(piece.row, piece.col) is not piece:
            return []
        return [to for to in possible_moves(self.board, piece, self.move_context(piece))
                if self._is_safe(piece, to)]

    def is_legal_move(self, from_square: Square, to_square: Square) -> bool:
        piece = self.get_piece_at(*from_square)
        if piece is None or piece.color is not self.current_player:
            return False
        candidates = possible_moves(self.board, piece, self.move_context(piece))
        return to_square in candidates and self._is_safe(piece, to_square)

    def _is_safe(self, piece: Piece, to_square: Square) -> bool:
        """
        True if moving *piece* to *to_square* leaves its own king unattacked.

        Works on a scratch copy of the grid (piece objects are shared but
        never mutated), so the real board is never disturbed.
        """
        from_row, from_col = piece.row, piece.col
        to_row, to_col = to_square

        # Castling was fully validated by can_castle before it was generated.
        if piece.type is PieceType.KING and abs(to_col - from_col) == 2:
            return True

        scratch = [row[:] for row in self.board]
        if piece.type is PieceType.PAWN and to_square == self.en_passant_target and scratch[to_row][to_col] is None:
            scratch[from_row][to_col] = None
        scratch[to_row][to_col] = piece
        scratch[from_row][from_col] = None

        king_square = to_square if piece.type is PieceType.KING else self.king_positions[piece.color]
        return not is_square_attacked(scratch, king_square, piece.color.opposite)

    def all_legal_moves(self, color: Optional[Color] = None) -> list[tuple[Piece, Square]]:
        """Every legal (piece, destination) pair for *color* (default: side to move)."""
        color = color or self.current_player
        if color is not self.current_player:
            return []
        return [(piece, to) for piece in self.pieces(color) for to in self.legal_moves(piece)]

    def has_legal_moves(self, color: Color) -> bool:
        return any(self.legal_moves(piece) for piece in self.pieces(color))

    # -----------------------------------------------------------------------
    # Move execution
    # -----------------------------------------------------------------------

    def apply_move(
        self,
        from_square: Square,
        to_square: Square,
        promotion: Optional[PieceType] = PieceType.QUEEN,
    ) -> bool:
        """
        Play a move, mutating the state.

        Args:
            from_square: Square of the piece to move.
            to_square:   Destination square.
            promotion:   Piece a pawn becomes on the last rank. None means
                         queen.

        Returns:
            False (and no mutation) if there is no piece on from_square or
            the move is illegal; True once the move has been applied and the
            status recomputed.
        """
        piece = self.get_piece_at(*from_square)
        if piece is None or not self.is_legal_move(from_square, to_square):
            _log.debug("Rejected move %s -> %s", from_square, to_square)
            return False

        from_row, from_col = from_square
        to_row, to_col = to_square
        promotion = promotion or PieceType.QUEEN
        promotes = piece.type is PieceType.PAWN and to_row == piece.color.promotion_rank
        if promotes and promotion not in PROMOTION_TYPES:
            return False

        captured = self.board[to_row][to_col]
        if piece.type is PieceType.PAWN and captured is None and to_square == self.en_passant_target:
            captured = self.board[from_row][to_col]
            self.board[from_row][to_col] = None

        mover_type = piece.type
        notation = algebraic(
            mover_type, from_square, to_square,
            captured.type if captured is not None else None,
            promotion if promotes else None,
        )

        if captured is not None:
            self.captured_pieces[captured.color].append(captured)
            self.half_move_clock = 0
        elif mover_type is PieceType.PAWN:
            self.half_move_clock = 0
        else:
            self.half_move_clock += 1

        self.board[to_row][to_col] = piece
        self.board[from_row][from_col] = None
        piece.move_to(to_row, to_col)

        if mover_type is PieceType.KING:
            self.king_positions[piece.color] = to_square
            if abs(to_col - from_col) == 2:
                self._move_castling_rook(from_row, king_side=to_col > from_col)

        if promotes:
            piece.type = promotion

        if mover_type is PieceType.PAWN and abs(to_row - from_row) == 2:
            self.en_passant_target = ((from_row + to_row) // 2, from_col)
        else:
            self.en_passant_target = None

        record = MoveRecord(
            from_square, to_square, mover_type,
            captured.type if captured is not None else None,
            notation,
            promotion if promotes else None,
        )
        self.move_history.append(record)
        self.last_move = record

        self.current_player = self.current_player.opposite
        if self.current_player is Color.WHITE:
            self.full_move_number += 1

        self.update_status()
        return True

    def _move_castling_rook(self, row: int, king_side: bool) -> None:
        rook_from, rook_to = (7, 5) if king_side else (0, 3)
        rook = self.board[row][rook_from]
        if rook is not None:
            self.board[row][rook_to] = rook
            self.board[row][rook_from] = None
            rook.move_to(row, rook_to)

    # -----------------------------------------------------------------------
    # Termination
    # -----------------------------------------------------------------------

    def update_status(self) -> Status:
        """Recompute and store the status for the side to move."""
        in_check = self.is_in_check(self.current_player)
        has_moves = self.has_legal_moves(self.current_player)

        if in_check and not has_moves:
            status = Status.CHECKMATE
        elif not has_moves:
            status = Status.STALEMATE
        elif in_check:
            status = Status.CHECK
        else:
            status = Status.PLAYING

        if self.half_move_clock >= FIFTY_MOVE_LIMIT or self.is_insufficient_material():
            status = Status.DRAW

        self.status = status
        return status

    def is_insufficient_material(self) -> bool:
        """King vs king, or king and one minor piece vs a lone king."""
        white = [p.type for p in self.pieces(Color.WHITE)]
        black = [p.type for p in self.pieces(Color.BLACK)]
        if len(white) == 1 and len(black) == 1:
            return True
        for own, other in ((white, black), (black, white)):
            if len(own) == 2 and len(other) == 1:
                extra = next(t for t in own if t is not PieceType.KING)
                if extra in MINOR_PIECES:
                    return True
        return False

    def is_endgame(self) -> bool:
        """No queens left, or at most two queens, two rooks and four minors."""
        queens = rooks = minors = 0
        for row in self.board:
            for p in row:
                if p is None:
                    continue
                if p.type is PieceType.QUEEN:
                    queens += 1
                elif p.type is PieceType.ROOK:
                    rooks += 1
                elif p.type in MINOR_PIECES:
                    minors += 1
        return queens == 0 or (queens <= 2 and rooks <= 2 and minors <= 4)


# ---------------------------------------------------------------------------
# Module-level interface for UI callers
# ---------------------------------------------------------------------------


def new_game() -> GameState:
    return GameState()


def reset_game(state: GameState) -> None:
    state.reset()


def get_piece_at(state: GameState, row: int, col: int) -> Optional[Piece]:
    return state.get_piece_at(row, col)


def legal_moves(state: GameState, piece: Optional[Piece]) -> list[Square]:
    return state.legal_moves(piece)


def apply_move(
    state: GameState,
    from_square: Square,
    to_square: Square,
    promotion: Optional[PieceType] = None,
) -> bool:
    return state.apply_move(from_square, to_square, promotion)


def game_status(state: GameState) -> Status:
    return state.status


def is_in_check(state: GameState, color: Color) -> bool:
    return state.is_in_check(color)


def game_from_moves(moves: Iterable[str]) -> GameState:
    """
    Replay coordinate moves ("e2e4", "e7e8q", ...) from the start position.

    Raises:
        ValueError: If a move is malformed or illegal at its turn.
    """
    state = GameState()
    for ply, text in enumerate(moves):
        from_square, to_square, promotion = parse_move(text)
        if not state.apply_move(from_square, to_square, promotion):
            raise ValueError(f"Illegal move at ply {ply}: {text!r}")
    return state


__all__ = [
    "BOARD_SIZE",
    "GameState",
    "MoveRecord",
    "Status",
    "TERMINAL_STATUSES",
    "apply_move",
    "game_from_moves",
    "game_status",
    "get_piece_at",
    "is_in_check",
    "legal_moves",
    "new_game",
    "reset_game",
]
