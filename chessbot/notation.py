"""Square names, coordinate move keys, and short algebraic notation.

Coordinate notation (used by the opening book and the web layer):
  e2e4      piece on e2 goes to e4
  e1g1      castling is written as the king's move
  e7e8q     promotion; the trailing letter picks the new piece

Short algebraic notation (MoveRecord.notation):
  e4  Nf3  exd5  Bxc6  O-O  O-O-O  e8=Q
"""

import re
from typing import Optional

from chessbot.pieces import BOARD_SIZE, PieceType, Square

FILES = "abcdefgh"

_SQUARE_RE = re.compile(r"^([a-h])([1-8])$")
_MOVE_RE = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbnQRBN]?)$")


def square_name(square: Square) -> str:
    row, col = square
    return f"{FILES[col]}{BOARD_SIZE - row}"


def parse_square(text: str) -> Square:
    """Parse "e2" into (6, 4).

    Raises:
        ValueError: If the text is not a square name.
    """
    match = _SQUARE_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Invalid square: {text!r}")
    file_char, rank_char = match.groups()
    return (BOARD_SIZE - int(rank_char), FILES.index(file_char))


def move_key(from_square: Square, to_square: Square) -> str:
    return square_name(from_square) + square_name(to_square)


def parse_move(text: str) -> tuple[Square, Square, Optional[PieceType]]:
    """Parse coordinate notation into (from, to, promotion).

    Raises:
        ValueError: If the text is not coordinate notation.
    """
    match = _MOVE_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Invalid move: {text!r}")
    from_text, to_text, promo = match.groups()
    promotion = PieceType.from_letter(promo) if promo else None
    return parse_square(from_text), parse_square(to_text), promotion


def algebraic(
    piece_type: PieceType,
    from_square: Square,
    to_square: Square,
    captured: Optional[PieceType] = None,
    promotion: Optional[PieceType] = None,
) -> str:
    """Short algebraic notation for a move, without check suffixes."""
    if piece_type is PieceType.KING and abs(to_square[1] - from_square[1]) == 2:
        return "O-O" if to_square[1] > from_square[1] else "O-O-O"

    notation = ""
    if piece_type is not PieceType.PAWN:
        notation += piece_type.letter
    if captured is not None:
        if piece_type is PieceType.PAWN:
            notation += FILES[from_square[1]]
        notation += "x"
    notation += square_name(to_square)
    if promotion is not None:
        notation += "=" + promotion.letter
    return notation
