"""
Search entry point: iterative deepening over principal variation search
with a transposition table, null-move pruning, quiescence search, and
killer/history/PV move ordering.

choose_move(state, difficulty) is the stable interface the UI layer calls.
Difficulty selects the deepest iteration, the wall-clock budget, whether the
opening book is consulted, and how often a deliberately weaker move is
played. Only the internals below evolve.

Pipeline for one call:

1. Out of legal moves: return None (the game status already says why).
2. Optional check policy: when in check, ESCAPE_RANDOM plays any legal
   escape immediately; SEARCH (the default) lets the search handle it.
3. Opening book: within the first OPENING_BOOK_MAX_PLY plies, a book reply
   for the exact move history is played immediately.
4. Weak-play emulation: with the difficulty's move_randomness probability,
   play one of the RANDOM_TOP_K best-ordered moves without searching.
5. Iterative deepening, depth 1 .. max_depth, until the time budget is spent.
   A depth cut short by the clock is discarded unless it is the only one.

Scores inside the search are negamax scores: relative to the side to move
at that node, positive meaning that side is ahead. evaluate() speaks from
White's point of view, so leaves flip the sign for Black.

Mate scores are encoded as CHECKMATE_SCORE - ply so the engine prefers the
fastest mate and the slowest defeat.

Time management:
    The budget is checked at the top of every iteration, before every root
    move, and every TIME_CHECK_NODES nodes inside the recursion. Crossing it
    sets stop_event, after which every node unwinds immediately and the
    partial iteration is thrown away.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chessbot.constants import (
    CHECKMATE_SCORE,
    DEFAULT_DIFFICULTY,
    DRAW_SCORE,
    INFINITY,
    NULL_MOVE_MIN_DEPTH,
    NULL_MOVE_REDUCTION,
    QUIESCENCE_MAX_DEPTH,
    RANDOM_TOP_K,
    TIME_CHECK_NODES,
    DifficultySettings,
    difficulty_settings,
)
from chessbot.evaluate import evaluate
from chessbot.game import GameState, Status
from chessbot.move_ordering import Move, MoveKey, MoveOrderer, generate_moves, order_captures
from chessbot.opening_book import DEFAULT_BOOK, OpeningBook
from chessbot.pieces import Color
from chessbot.transposition import (
    MATE_THRESHOLD,
    Bound,
    TranspositionTable,
    score_from_tt,
    score_to_tt,
    zobrist_key,
)

_log = logging.getLogger(__name__)


class CheckPolicy(Enum):
    """What the engine does when asked to move while in check."""

    SEARCH = "search"                # search as usual; illegal replies are never generated
    ESCAPE_RANDOM = "escape_random"  # play a uniformly random check-escaping move


@dataclass
class SearchResult:
    """
    Outcome of one choose_move call.

    Attributes:
        move:       The chosen move, or None if the side to move had none.
        score:      Centipawns from the mover's perspective (0 unless searched).
        depth:      Deepest completed iteration (0 unless searched).
        nodes:      Nodes visited, quiescence included.
        elapsed_ms: Wall-clock time spent.
        source:     "search", "book", "random", "escape", or "none".
    """

    move: Optional[Move]
    score: int = 0
    depth: int = 0
    nodes: int = 0
    elapsed_ms: int = 0
    source: str = "search"


@dataclass
class SearchState:
    """
    Per-call bookkeeping for the recursive search.

    Attributes:
        stop_event:    Set once the time budget is exhausted. Every node checks
                       it and unwinds immediately; results computed after it
                       is set are discarded.
        time_limit_ms: Budget for the whole call.
        node_count:    Nodes visited so far (negamax and quiescence).
        start_time:    Monotonic timestamp the call started at.
    """

    stop_event: threading.Event = field(default_factory=threading.Event)
    time_limit_ms: float = float("inf")
    node_count: int = 0
    start_time: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def out_of_time(self) -> bool:
        return self.elapsed_ms() >= self.time_limit_ms

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()


def terminal_score(state: GameState, ply: int) -> Optional[int]:
    """Negamax score of a finished game at distance *ply* from the root, else None."""
    if state.status is Status.CHECKMATE:
        return -(CHECKMATE_SCORE - ply)
    if state.status in (Status.STALEMATE, Status.DRAW):
        return DRAW_SCORE
    return None


def child_state(state: GameState, move: Move) -> GameState:
    child = state.clone()
    child.apply_move(move.from_square, move.to_square, move.promotion)
    return child


class Searcher:
    """
    Iterative-deepening alpha-beta engine.

    Owns its transposition table, killer moves and history table; nothing is
    shared between instances. Killers and history are reset on every
    choose_move call, the transposition table only when it fills up.

    Args:
        difficulty:    Level 1..5; other values fall back to the default.
        rng:           Source of randomness for the book, weak-play emulation
                       and the escape policy. A fresh unseeded Random if None.
        check_policy:  See CheckPolicy.
        max_depth:     Overrides the difficulty's deepest iteration.
        time_limit_ms: Overrides the difficulty's time budget.
        book:          Opening book to consult (when the difficulty allows).
        null_move:     Enables null-move pruning.
    """

    def __init__(
        self,
        difficulty: int = DEFAULT_DIFFICULTY,
        rng: Optional[random.Random] = None,
        check_policy: CheckPolicy = CheckPolicy.SEARCH,
        max_depth: Optional[int] = None,
        time_limit_ms: Optional[int] = None,
        book: Optional[OpeningBook] = DEFAULT_BOOK,
        null_move: bool = True,
    ):
        self.rng = rng or random.Random()
        self.check_policy = check_policy
        self.book = book
        self.null_move = null_move
        self.depth_override = max_depth
        self.time_override = time_limit_ms
        self.tt = TranspositionTable()
        self.orderer = MoveOrderer()
        self.search_state = SearchState()
        self.last_result: Optional[SearchResult] = None
        self.settings: DifficultySettings = difficulty_settings(difficulty)

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    def set_difficulty(self, level: int) -> None:
        """Switch presets; unknown levels fall back to the default preset.

        The transposition table, killers and history are cleared: their
        entries were searched under the old depth and time settings.
        """
        self.settings = difficulty_settings(level)
        self.tt.clear()
        self.orderer.clear()

    @property
    def difficulty(self) -> int:
        return self.settings.level

    @property
    def max_depth(self) -> int:
        return self.depth_override if self.depth_override is not None else self.settings.max_depth

    @property
    def time_limit_ms(self) -> int:
        return self.time_override if self.time_override is not None else self.settings.time_limit_ms

    # -----------------------------------------------------------------------
    # Public entry points
    # -----------------------------------------------------------------------

    def choose_move(self, state: GameState) -> Optional[Move]:
        """
        Pick a move for the side to move in *state*.

        Args:
            state: The position. Not modified.

        Returns:
            The chosen move, or None when the side to move has no legal move.
            Details of the decision are left in self.last_result.
        """
        start = time.monotonic()
        self.orderer.clear()
        moves = generate_moves(state)

        if not moves:
            result = SearchResult(None, source="none")
        elif self.check_policy is CheckPolicy.ESCAPE_RANDOM and state.status is Status.CHECK:
            # Every legal move already leaves the king safe.
            result = SearchResult(self.rng.choice(moves), source="escape")
        else:
            result = self._book_move(state, moves) or self._random_move(moves) or self.search(state)

        result.elapsed_ms = int((time.monotonic() - start) * 1000)
        self.last_result = result
        _log.info(
            "%s move=%s source=%s score=%d depth=%d nodes=%d time=%dms",
            state.current_player.value, result.move, result.source,
            result.score, result.depth, result.nodes, result.elapsed_ms,
        )
        return result.move

    def hint(self, state: GameState, color: Color) -> Optional[Move]:
        """
        Suggest a move for *color* without touching *state*.

        The search runs on a clone with the side to move set to *color*.
        Returns None when the side to move is in check and *color* is the
        other side: flipping the turn would leave a king en prise.
        """
        if state.current_player is not color and state.is_in_check(state.current_player):
            _log.debug("No hint for %s: %s is in check", color.value, state.current_player.value)
            self.last_result = SearchResult(None, source="none")
            return None
        probe = state.clone()
        if probe.current_player is not color:
            probe.current_player = color
            probe.en_passant_target = None
            probe.update_status()
        return self.choose_move(probe)

    def search(self, state: GameState) -> SearchResult:
        """
        Iterative deepening from depth 1 to max_depth within the time budget.

        Returns the result of the deepest iteration that completed. If the
        clock runs out before depth 1 completes, the best move of the partial
        root enumeration is returned (or the first ordered move if not even
        one root move was searched).
        """
        self.search_state = SearchState(time_limit_ms=float(self.time_limit_ms))
        best_move: Optional[Move] = None
        best_score = 0
        completed_depth = 0
        pv_move: Optional[MoveKey] = None

        for depth in range(1, self.max_depth + 1):
            if self.search_state.out_of_time():
                _log.info("Time budget spent before depth %d", depth)
                break

            move, score, finished = self.search_root(state, depth, pv_move)
            if not finished:
                _log.info("Depth %d interrupted after %.0fms", depth, self.search_state.elapsed_ms())
                if best_move is None:
                    best_move, best_score = move, score
                break

            best_move, best_score, completed_depth = move, score, depth
            pv_move = move.key if move is not None else None
            _log.debug(
                "depth=%d score=%d nodes=%d time=%.0fms best=%s",
                depth, score, self.search_state.node_count, self.search_state.elapsed_ms(), move,
            )
            # A forced mate will not get any better by searching deeper.
            if abs(score) > MATE_THRESHOLD:
                break

        if best_move is None:
            ordered = self.orderer.order(generate_moves(state), 0, pv_move)
            best_move = ordered[0] if ordered else None

        return SearchResult(
            best_move,
            score=best_score,
            depth=completed_depth,
            nodes=self.search_state.node_count,
            source="search",
        )

    # -----------------------------------------------------------------------
    # Shortcuts taken before searching
    # -----------------------------------------------------------------------

    def _book_move(self, state: GameState, moves: list[Move]) -> Optional[SearchResult]:
        if not self.settings.use_opening_book or self.book is None:
            return None
        reply = self.book.lookup(state, self.rng)
        if reply is None:
            return None
        for move in moves:
            if move.uci[:4] == reply[:4]:
                return SearchResult(move, source="book")
        return None

    def _random_move(self, moves: list[Move]) -> Optional[SearchResult]:
        randomness = self.settings.move_randomness
        if randomness <= 0 or self.rng.random() >= randomness:
            return None
        ordered = self.orderer.order(list(moves), 0)
        return SearchResult(self.rng.choice(ordered[:RANDOM_TOP_K]), source="random")

    # -----------------------------------------------------------------------
    # Recursive search
    # -----------------------------------------------------------------------

    def _tick(self) -> bool:
        """Count a node and poll the clock periodically. True once stopped."""
        state = self.search_state
        state.node_count += 1
        if state.node_count % TIME_CHECK_NODES == 0 and state.out_of_time():
            state.stop_event.set()
        return state.stopped

    def _evaluate(self, state: GameState) -> int:
        score = evaluate(state)
        return score if state.current_player is Color.WHITE else -score

    def search_root(
        self,
        state: GameState,
        depth: int,
        pv_move: Optional[MoveKey] = None,
    ) -> tuple[Optional[Move], int, bool]:
        """
        Search every root move to *depth* with a full window.

        Returns:
            (best move, its score, whether the iteration finished). An
            unfinished iteration reports the best of the root moves that were
            fully searched before the clock ran out.
        """
        moves = self.orderer.order(generate_moves(state), depth, pv_move)
        alpha, beta = -INFINITY, INFINITY
        best_move: Optional[Move] = None
        best_score = -INFINITY

        for i, move in enumerate(moves):
            if self.search_state.out_of_time():
                self.search_state.stop_event.set()
            if self.search_state.stopped:
                break

            child = child_state(state, move)
            if i == 0:
                score = -self.alpha_beta(child, depth - 1, -beta, -alpha, 1)
            else:
                score = -self.alpha_beta(child, depth - 1, -alpha - 1, -alpha, 1)
                if alpha < score < beta and not self.search_state.stopped:
                    score = -self.alpha_beta(child, depth - 1, -beta, -alpha, 1)
            if self.search_state.stopped:
                break

            if score > best_score:
                best_score, best_move = score, move
            alpha = max(alpha, score)

        finished = not self.search_state.stopped
        if finished and best_move is not None:
            self.tt.store(zobrist_key(state), depth, score_to_tt(best_score, 0), Bound.EXACT, best_move.key)
        return best_move, best_score, finished

    def alpha_beta(
        self,
        state: GameState,
        depth: int,
        alpha: int,
        beta: int,
        ply: int,
        allow_null: bool = True,
    ) -> int:
        """
        Principal variation search below the root.

        Args:
            state:      Position at this node. Not modified.
            depth:      Remaining depth in plies; 0 drops into quiescence.
            alpha:      Score the side to move is already guaranteed.
            beta:       Score the opponent will not allow us to exceed.
            ply:        Distance from the root, for mate scoring.
            allow_null: False directly below a null move, so two passes are
                        never made in a row.

        Returns:
            Negamax score of the node (fail-soft). 0 once the search has been
            stopped; callers discard it.
        """
        if self._tick():
            return 0

        terminal = terminal_score(state, ply)
        if terminal is not None:
            return terminal
        if depth <= 0:
            return self.quiescence(state, alpha, beta, ply)

        key = zobrist_key(state)
        entry = self.tt.probe(key)
        tt_move: Optional[MoveKey] = None
        if entry is not None:
            tt_move = entry.best_move
            if entry.depth >= depth:
                stored = score_from_tt(entry.score, ply)
                if entry.bound is Bound.EXACT:
                    return stored
                if entry.bound is Bound.LOWERBOUND:
                    alpha = max(alpha, stored)
                elif entry.bound is Bound.UPPERBOUND:
                    beta = min(beta, stored)
                if alpha >= beta:
                    return stored

        in_check = state.status is Status.CHECK

        # Null move: let the opponent move twice. If we still fail high the
        # position is good enough to prune without searching real moves.
        if (
            self.null_move
            and allow_null
            and depth >= NULL_MOVE_MIN_DEPTH
            and not in_check
            and not state.is_endgame()
        ):
            passed = state.clone()
            passed.current_player = passed.current_player.opposite
            passed.en_passant_target = None
            passed.update_status()
            score = -self.alpha_beta(passed, depth - NULL_MOVE_REDUCTION, -beta, -beta + 1, ply + 1, False)
            if self.search_state.stopped:
                return 0
            if score >= beta:
                return beta

        moves = generate_moves(state)
        if not moves:
            return -(CHECKMATE_SCORE - ply) if state.is_in_check(state.current_player) else DRAW_SCORE

        window_alpha = alpha
        best_score = -INFINITY
        best_move: Optional[Move] = None

        for i, move in enumerate(self.orderer.order(moves, depth, tt_move)):
            child = child_state(state, move)
            if i == 0:
                score = -self.alpha_beta(child, depth - 1, -beta, -alpha, ply + 1)
            else:
                score = -self.alpha_beta(child, depth - 1, -alpha - 1, -alpha, ply + 1)
                if alpha < score < beta and not self.search_state.stopped:
                    score = -self.alpha_beta(child, depth - 1, -beta, -alpha, ply + 1)
            if self.search_state.stopped:
                return 0

            if score > best_score:
                best_score, best_move = score, move
            if score > alpha:
                alpha = score
            if alpha >= beta:
                if not move.is_capture:
                    self.orderer.store_killer(move, depth)
                    self.orderer.update_history(move, depth)
                break

        if best_score <= window_alpha:
            bound = Bound.UPPERBOUND
        elif best_score >= beta:
            bound = Bound.LOWERBOUND
        else:
            bound = Bound.EXACT
        self.tt.store(key, depth, score_to_tt(best_score, ply), bound, best_move.key if best_move else None)
        return best_score

    def quiescence(self, state: GameState, alpha: int, beta: int, ply: int, qdepth: int = 0) -> int:
        """
        Capture-only search past the horizon.

        The side to move may always decline to capture, so the static
        evaluation (stand-pat) is a lower bound. Captures are tried in
        MVV-LVA order for at most QUIESCENCE_MAX_DEPTH further plies.

        Returns:
            Fail-hard negamax score clamped to [alpha, beta].
        """
        if self._tick():
            return 0

        terminal = terminal_score(state, ply)
        if terminal is not None:
            return terminal

        stand_pat = self._evaluate(state)
        if stand_pat >= beta:
            return beta
        if stand_pat > alpha:
            alpha = stand_pat
        if qdepth >= QUIESCENCE_MAX_DEPTH:
            return alpha

        for move in order_captures(generate_moves(state, captures_only=True)):
            score = -self.quiescence(child_state(state, move), -beta, -alpha, ply + 1, qdepth + 1)
            if self.search_state.stopped:
                return 0
            if score >= beta:
                return beta
            if score > alpha:
                alpha = score
        return alpha


# ---------------------------------------------------------------------------
# Module-level interface
# ---------------------------------------------------------------------------


def choose_move(
    state: GameState,
    difficulty: int = DEFAULT_DIFFICULTY,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """Best move for the side to move at *difficulty*, from a fresh engine."""
    return Searcher(difficulty, rng=rng).choose_move(state)


def hint(
    state: GameState,
    for_color: Color,
    difficulty: int = DEFAULT_DIFFICULTY,
    rng: Optional[random.Random] = None,
) -> Optional[Move]:
    """Suggested move for *for_color*; *state* is left untouched."""
    return Searcher(difficulty, rng=rng).hint(state, for_color)
