"""
Static position evaluation.

The search needs a numeric score for any position so it can compare the
leaves of its tree. This module provides two evaluators:

- evaluate():        the full evaluator used by the iterative-deepening
                     engine. Sums material with piece-square tables,
                     weighted mobility, pawn structure, king safety (or king
                     activity in the endgame), square control with outposts,
                     and piece coordination.
- evaluate_simple(): the lighter evaluator of the basic engine. Material and
                     tables, flat mobility, a safety bonus for unattacked
                     pieces, and simple king/pawn/centre terms, plus
                     zero-mean noise at low difficulty.

Both return integer centipawns from White's point of view: positive means
White is better. The negamax search flips the sign for Black itself.

Every term is computed separately for each side and subtracted, so a
position and its colour-mirrored twin evaluate to exact negatives. Attack
maps are built once per call and shared by all terms.
"""

import random
from typing import Optional

from chessbot import constants as C
from chessbot.constants import (
    BASIC_CHECKMATE_SCORE,
    CHECKMATE_SCORE,
    DRAW_SCORE,
    KING_ENDGAME_TABLE,
    PIECE_SQUARE_TABLES,
    PIECE_VALUES,
)
from chessbot.game import GameState, Status
from chessbot.pieces import (
    BOARD_SIZE,
    MINOR_PIECES,
    Color,
    Piece,
    PieceType,
    Square,
    possible_moves,
)

COLORS = (Color.WHITE, Color.BLACK)


def piece_square_value(piece: Piece, endgame: bool) -> int:
    """Table bonus for *piece* on its current square (tables mirrored for Black)."""
    if piece.type is PieceType.KING and endgame:
        table = KING_ENDGAME_TABLE
    else:
        table = PIECE_SQUARE_TABLES[piece.type]
    row = piece.row if piece.color is Color.WHITE else BOARD_SIZE - 1 - piece.row
    return table[row][piece.col]


def center_distance(row: int, col: int) -> int:
    """Manhattan distance from the board centre (3.5, 3.5); integral on board squares."""
    return (abs(7 - 2 * row) + abs(7 - 2 * col)) // 2


def manhattan(a: Square, b: Square) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class _Features:
    """Per-call cache of piece lists, move lists, and attack counts."""

    def __init__(self, state: GameState):
        self.state = state
        self.board = state.board
        self.pieces: dict[Color, list[Piece]] = {Color.WHITE: [], Color.BLACK: []}
        self.moves: dict[int, list[Square]] = {}
        self.attacks: dict[Color, list[list[int]]] = {
            color: [[0] * BOARD_SIZE for _ in range(BOARD_SIZE)] for color in COLORS
        }
        self.pawn_attacks: dict[Color, set[Square]] = {Color.WHITE: set(), Color.BLACK: set()}

        for row in self.board:
            for piece in row:
                if piece is None:
                    continue
                self.pieces[piece.color].append(piece)
                moves = possible_moves(self.board, piece)
                self.moves[id(piece)] = moves
                attack_grid = self.attacks[piece.color]
                if piece.type is PieceType.PAWN:
                    r = piece.row + piece.color.forward
                    if 0 <= r < BOARD_SIZE:
                        for c in (piece.col - 1, piece.col + 1):
                            if 0 <= c < BOARD_SIZE:
                                attack_grid[r][c] += 1
                                self.pawn_attacks[piece.color].add((r, c))
                else:
                    for r, c in moves:
                        attack_grid[r][c] += 1

        self.pawns: dict[Color, list[Piece]] = {
            color: [p for p in self.pieces[color] if p.type is PieceType.PAWN] for color in COLORS
        }
        self.pawn_files: dict[Color, list[int]] = {color: [0] * BOARD_SIZE for color in COLORS}
        for color in COLORS:
            for pawn in self.pawns[color]:
                self.pawn_files[color][pawn.col] += 1

    def of_type(self, color: Color, piece_type: PieceType) -> list[Piece]:
        return [p for p in self.pieces[color] if p.type is piece_type]

    def is_open_file(self, col: int) -> bool:
        return self.pawn_files[Color.WHITE][col] == 0 and self.pawn_files[Color.BLACK][col] == 0

    def is_semi_open_file(self, col: int, color: Color) -> bool:
        return self.pawn_files[color][col] == 0

    def is_passed(self, pawn: Piece) -> bool:
        """No enemy pawn ahead of *pawn* on its own or an adjacent file."""
        for enemy in self.pawns[pawn.color.opposite]:
            if abs(enemy.col - pawn.col) <= 1:
                if pawn.color is Color.WHITE and enemy.row < pawn.row:
                    return False
                if pawn.color is Color.BLACK and enemy.row > pawn.row:
                    return False
        return True

    def is_backward(self, pawn: Piece) -> bool:
        """A friendly pawn on an adjacent file has advanced past *pawn*."""
        for other in self.pawns[pawn.color]:
            if abs(other.col - pawn.col) != 1:
                continue
            if pawn.color is Color.WHITE and other.row < pawn.row:
                return True
            if pawn.color is Color.BLACK and other.row > pawn.row:
                return True
        return False


def _ranks_advanced(pawn: Piece) -> int:
    return BOARD_SIZE - 1 - pawn.row if pawn.color is Color.WHITE else pawn.row


# ---------------------------------------------------------------------------
# Full evaluator
# ---------------------------------------------------------------------------


def evaluate(state: GameState) -> int:
    """
    Centipawn evaluation of *state* from White's perspective.

    Terminal positions short-circuit: checkmate is worth CHECKMATE_SCORE to
    the side delivering it, stalemate and draws are worth DRAW_SCORE.

    Args:
        state: The position to score. Not modified.

    Returns:
        Integer score, positive when White is better.
    """
    if state.status is Status.CHECKMATE:
        return CHECKMATE_SCORE if state.current_player is Color.BLACK else -CHECKMATE_SCORE
    if state.status in (Status.STALEMATE, Status.DRAW):
        return DRAW_SCORE

    features = _Features(state)
    endgame = state.is_endgame()

    score = _material(features, endgame)
    score += _mobility(features)
    score += _pawn_structure(features)
    if endgame:
        score += _king_activity(features)
    else:
        score += _king_safety(features)
    score += _square_control(features)
    score += _coordination(features)
    return score


def _material(features: _Features, endgame: bool) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        for piece in features.pieces[color]:
            score += sign * (PIECE_VALUES[piece.type] + piece_square_value(piece, endgame))
    return score


def _mobility(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        for piece in features.pieces[color]:
            score += sign * len(features.moves[id(piece)]) * C.MOBILITY_WEIGHTS[piece.type]
    return score


def _pawn_structure(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        pawns = features.pawns[color]
        side = 0
        for pawn in pawns:
            if any(abs(p.col - pawn.col) == 1 and abs(p.row - pawn.row) == 1 for p in pawns):
                side += C.PAWN_CHAIN_BONUS
            if features.is_passed(pawn):
                rank = _ranks_advanced(pawn)
                side += C.PASSED_PAWN_BASE + rank * rank * C.PASSED_PAWN_RANK_SQUARED
            if not any(abs(p.col - pawn.col) == 1 for p in pawns):
                side -= C.ISOLATED_PAWN_PENALTY
            if features.is_backward(pawn):
                side -= C.BACKWARD_PAWN_PENALTY
        for count in features.pawn_files[color]:
            if count > 1:
                side -= C.DOUBLED_PAWN_PENALTY * (count - 1)
        score += sign * side
    return score


def _king_safety(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        king_row, king_col = features.state.king_positions[color]
        enemy = color.opposite
        forward = color.forward
        safety = 0

        for col in (king_col - 1, king_col, king_col + 1):
            if not 0 <= col < BOARD_SIZE:
                continue
            for distance, bonus in ((1, C.SHIELD_NEAR_BONUS), (2, C.SHIELD_FAR_BONUS)):
                shield = features.state.get_piece_at(king_row + forward * distance, col)
                if shield is not None and shield.type is PieceType.PAWN and shield.color is color:
                    safety += bonus
            if features.is_open_file(col):
                safety -= C.KING_OPEN_FILE_PENALTY
            elif features.is_semi_open_file(col, color):
                safety -= C.KING_SEMI_OPEN_FILE_PENALTY

        safety -= features.attacks[enemy][king_row][king_col] * C.KING_ATTACKER_PENALTY

        king = features.state.get_piece_at(king_row, king_col)
        if king is not None and king.type is PieceType.KING and not king.has_moved:
            safety += C.UNMOVED_KING_BONUS

        for piece in features.pieces[enemy]:
            if piece.type in (PieceType.KING, PieceType.PAWN):
                continue
            distance = manhattan(piece.position, (king_row, king_col))
            if distance <= C.TROPISM_RANGE:
                safety -= (C.TROPISM_RANGE + 1 - distance) * C.TROPISM_WEIGHT

        score += sign * safety
    return score


def _king_activity(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        king_square = features.state.king_positions[color]
        activity = (7 - center_distance(*king_square)) * C.KING_CENTRALITY_WEIGHT
        for pawn in features.pawns[color]:
            if features.is_passed(pawn):
                activity += (8 - manhattan(pawn.position, king_square)) * C.KING_PASSER_PROXIMITY_WEIGHT
        score += sign * activity
    return score


def _square_control(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        grid = features.attacks[color]
        control = sum(grid[r][c] for r, c in C.CENTER_SQUARES) * C.CENTER_CONTROL_WEIGHT
        control += sum(grid[r][c] for r, c in C.EXTENDED_CENTER_SQUARES) * C.EXTENDED_CENTER_CONTROL_WEIGHT

        # Outposts: minor pieces defended by a pawn that no enemy pawn can hit.
        for piece in features.pieces[color]:
            if piece.type not in MINOR_PIECES:
                continue
            square = piece.position
            if square in features.pawn_attacks[color] and square not in features.pawn_attacks[color.opposite]:
                control += C.KNIGHT_OUTPOST_BONUS if piece.type is PieceType.KNIGHT else C.BISHOP_OUTPOST_BONUS
        score += sign * control
    return score


def _rooks_connected(features: _Features, first: Piece, second: Piece) -> bool:
    board = features.board
    if first.row == second.row:
        low, high = sorted((first.col, second.col))
        return all(board[first.row][c] is None for c in range(low + 1, high))
    if first.col == second.col:
        low, high = sorted((first.row, second.row))
        return all(board[r][first.col] is None for r in range(low + 1, high))
    return False


def _coordination(features: _Features) -> int:
    score = 0
    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        side = 0
        rooks = features.of_type(color, PieceType.ROOK)
        for rook in rooks:
            if features.is_open_file(rook.col):
                side += C.ROOK_OPEN_FILE_BONUS
            elif features.is_semi_open_file(rook.col, color):
                side += C.ROOK_SEMI_OPEN_FILE_BONUS
        if len(rooks) == 2 and _rooks_connected(features, *rooks):
            side += C.CONNECTED_ROOKS_BONUS

        bishops = features.of_type(color, PieceType.BISHOP)
        if len(bishops) == 2:
            side += C.BISHOP_PAIR_BONUS

        knights = features.of_type(color, PieceType.KNIGHT)
        for i, knight in enumerate(knights):
            for other in knights[i + 1:]:
                # A knight defends another exactly when they are a knight's jump apart.
                if sorted((abs(knight.row - other.row), abs(knight.col - other.col))) == [1, 2]:
                    side += C.KNIGHT_PAIR_PROTECTION_BONUS
            for bishop in bishops:
                if manhattan(knight.position, bishop.position) <= C.KNIGHT_BISHOP_RANGE:
                    side += C.KNIGHT_BISHOP_PROXIMITY_BONUS
        score += sign * side
    return score


# ---------------------------------------------------------------------------
# Simple evaluator
# ---------------------------------------------------------------------------


def evaluate_simple(state: GameState, difficulty: int = 3, rng: Optional[random.Random] = None) -> int:
    """
    Lightweight evaluation for the basic engine, from White's perspective.

    Below difficulty 3 a uniform noise term of up to +/-25 * (4 - difficulty)
    centipawns is added so weak levels do not play the same game twice.
    """
    if state.status is Status.CHECKMATE:
        return BASIC_CHECKMATE_SCORE if state.current_player is Color.BLACK else -BASIC_CHECKMATE_SCORE
    if state.status in (Status.STALEMATE, Status.DRAW):
        return DRAW_SCORE

    features = _Features(state)
    endgame = state.is_endgame()
    score = 0

    for color, sign in ((Color.WHITE, 1), (Color.BLACK, -1)):
        enemy_attacks = features.attacks[color.opposite]
        side = 0
        for piece in features.pieces[color]:
            side += PIECE_VALUES[piece.type] + piece_square_value(piece, endgame)
            side += len(features.moves[id(piece)]) * C.SIMPLE_MOBILITY_WEIGHT
            if enemy_attacks[piece.row][piece.col] == 0:
                side += C.SIMPLE_SAFE_PIECE_BONUS

        king_row, king_col = state.king_positions[color]
        if not endgame:
            side += center_distance(king_row, king_col) * C.SIMPLE_KING_CENTER_DISTANCE_WEIGHT
        side -= enemy_attacks[king_row][king_col] * C.SIMPLE_KING_ATTACKER_PENALTY
        for col in (king_col - 1, king_col, king_col + 1):
            shield = state.get_piece_at(king_row + color.forward, col)
            if shield is not None and shield.type is PieceType.PAWN and shield.color is color:
                side += C.SIMPLE_SHIELD_BONUS

        pawns = features.pawns[color]
        for count in features.pawn_files[color]:
            if count > 1:
                side -= C.SIMPLE_DOUBLED_PAWN_PENALTY * (count - 1)
        for pawn in pawns:
            if not any(abs(p.col - pawn.col) == 1 for p in pawns):
                side -= C.SIMPLE_ISOLATED_PAWN_PENALTY
            if features.is_passed(pawn):
                side += C.PASSED_PAWN_BASE + _ranks_advanced(pawn) * C.SIMPLE_PASSED_PAWN_RANK_WEIGHT

        grid = features.attacks[color]
        side += sum(grid[r][c] for r, c in C.CENTER_SQUARES) * C.SIMPLE_CENTER_CONTROL_WEIGHT
        score += sign * side

    if difficulty < C.SIMPLE_NOISE_MAX_DIFFICULTY:
        rng = rng or random.Random()
        score += int((rng.random() - 0.5) * C.SIMPLE_NOISE_SCALE * (4 - difficulty))
    return score
