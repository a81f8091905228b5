"""
Basic engine: fixed-depth negamax alpha-beta with the simple evaluator.

A lighter alternative to chessbot.search.Searcher, for the lower end of the
strength range and for slow machines. No iterative deepening, no clock, no
null move, no quiescence. It keeps a position memo keyed by the board
placement string and two killer moves per depth, and orders moves by
captures, checks, killers, and centralisation.

Low difficulties add zero-mean evaluation noise (see evaluate_simple), so
the same position does not always produce the same reply.

By default a side in check plays a uniformly random escape instead of
searching (CheckPolicy.ESCAPE_RANDOM).
"""

import logging
import random
import time
from typing import Optional

from chessbot.constants import (
    BASIC_CHECKMATE_SCORE,
    BASIC_DEFAULT_DEPTH,
    BASIC_DEPTHS,
    DEFAULT_DIFFICULTY,
    DRAW_SCORE,
    INFINITY,
    KILLER_SLOTS,
    PIECE_VALUES,
)
from chessbot.evaluate import center_distance, evaluate_simple
from chessbot.game import GameState, Status
from chessbot.move_ordering import Move, MoveKey, generate_moves
from chessbot.pieces import Color
from chessbot.search import CheckPolicy, SearchResult, child_state
from chessbot.transposition import Bound

_log = logging.getLogger(__name__)

# Ordering weights of the basic engine.
CAPTURE_WEIGHT = 1000
CHECK_WEIGHT = 500
KILLER_WEIGHT = 100
CENTER_WEIGHT = 10


def placement_key(state: GameState) -> str:
    """Two characters per square (colour + piece letter, or "--") plus the side to move."""
    cells = []
    for row in state.board:
        for piece in row:
            cells.append("--" if piece is None else piece.color.value[0] + piece.type.letter)
    cells.append(state.current_player.value[0])
    return "".join(cells)


class BasicSearcher:
    """Fixed-depth alpha-beta engine; depth 2, 3, 4, 5 for levels 1..4."""

    def __init__(
        self,
        difficulty: int = DEFAULT_DIFFICULTY,
        rng: Optional[random.Random] = None,
        check_policy: CheckPolicy = CheckPolicy.ESCAPE_RANDOM,
        depth: Optional[int] = None,
    ):
        self.rng = rng or random.Random()
        self.check_policy = check_policy
        self.depth_override = depth
        self.memo: dict[str, tuple[int, int, Bound]] = {}
        self.killers: dict[int, list[MoveKey]] = {}
        self.nodes = 0
        self.last_result: Optional[SearchResult] = None
        self.difficulty = difficulty
        self.depth = BASIC_DEFAULT_DEPTH
        self.set_difficulty(difficulty)

    def set_difficulty(self, level: int) -> None:
        self.difficulty = level
        self.memo.clear()
        self.killers.clear()
        self.depth = self.depth_override or BASIC_DEPTHS.get(level, BASIC_DEFAULT_DEPTH)

    def choose_move(self, state: GameState) -> Optional[Move]:
        start = time.monotonic()
        self.memo.clear()
        self.killers.clear()
        self.nodes = 0

        moves = generate_moves(state)
        if not moves:
            result = SearchResult(None, source="none")
        elif self.check_policy is CheckPolicy.ESCAPE_RANDOM and state.status is Status.CHECK:
            _log.debug("In check, %d escapes available", len(moves))
            result = SearchResult(self.rng.choice(moves), source="escape")
        else:
            best_move, best_score = None, -INFINITY
            alpha, beta = -INFINITY, INFINITY
            for move in self._order(state, moves, self.depth):
                score = -self.negamax(child_state(state, move), self.depth - 1, -beta, -alpha, 1)
                if score > best_score:
                    best_move, best_score = move, score
                alpha = max(alpha, score)
            result = SearchResult(best_move, best_score, self.depth, self.nodes, source="search")

        result.elapsed_ms = int((time.monotonic() - start) * 1000)
        self.last_result = result
        _log.info("basic %s move=%s source=%s score=%d nodes=%d time=%dms",
                  state.current_player.value, result.move, result.source,
                  result.score, result.nodes, result.elapsed_ms)
        return result.move

    def hint(self, state: GameState, color: Color) -> Optional[Move]:
        # The side to move is in check: no hint for the other side.
        if state.current_player is not color and state.is_in_check(state.current_player):
            self.last_result = SearchResult(None, source="none")
            return None
        probe = state.clone()
        if probe.current_player is not color:
            probe.current_player = color
            probe.en_passant_target = None
            probe.update_status()
        return self.choose_move(probe)

    def negamax(self, state: GameState, depth: int, alpha: int, beta: int, ply: int) -> int:
        self.nodes += 1

        if state.status is Status.CHECKMATE:
            return -(BASIC_CHECKMATE_SCORE - ply)
        if state.status in (Status.STALEMATE, Status.DRAW):
            return DRAW_SCORE
        if depth == 0:
            score = evaluate_simple(state, self.difficulty, self.rng)
            return score if state.current_player is Color.WHITE else -score

        key = placement_key(state)
        cached = self.memo.get(key)
        if cached is not None and cached[0] >= depth:
            _, cached_score, bound = cached
            if bound is Bound.EXACT:
                return cached_score
            if bound is Bound.LOWERBOUND and cached_score >= beta:
                return cached_score
            if bound is Bound.UPPERBOUND and cached_score <= alpha:
                return cached_score

        moves = generate_moves(state)
        if not moves:
            return -(BASIC_CHECKMATE_SCORE - ply) if state.is_in_check(state.current_player) else DRAW_SCORE

        window_alpha = alpha
        best_score = -INFINITY
        for move in self._order(state, moves, depth):
            score = -self.negamax(child_state(state, move), depth - 1, -beta, -alpha, ply + 1)
            best_score = max(best_score, score)
            alpha = max(alpha, score)
            if alpha >= beta:
                if not move.is_capture:
                    self._store_killer(move, depth)
                break

        if best_score <= window_alpha:
            bound = Bound.UPPERBOUND
        elif best_score >= beta:
            bound = Bound.LOWERBOUND
        else:
            bound = Bound.EXACT
        self.memo[key] = (depth, best_score, bound)
        return best_score

    def _store_killer(self, move: Move, depth: int) -> None:
        slots = self.killers.setdefault(depth, [])
        if move.key in slots:
            slots.remove(move.key)
        slots.insert(0, move.key)
        del slots[KILLER_SLOTS:]

    def _order(self, state: GameState, moves: list[Move], depth: int) -> list[Move]:
        killers = self.killers.get(depth, [])
        for move in moves:
            score = 0
            if move.captured_type is not None:
                score += CAPTURE_WEIGHT + PIECE_VALUES[move.captured_type]
            if child_state(state, move).is_in_check(state.current_player.opposite):
                score += CHECK_WEIGHT
            if move.key in killers:
                score += KILLER_WEIGHT
            score += CENTER_WEIGHT - center_distance(*move.to_square)
            move.score = score
        return sorted(moves, key=lambda m: m.score, reverse=True)
