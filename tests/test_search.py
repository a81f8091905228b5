"""Tests for the iterative-deepening alpha-beta engine."""

import random
import time

import pytest

from chessbot.constants import CHECKMATE_SCORE, INFINITY, MAX_DIFFICULTY, TIME_CHECK_NODES
from chessbot.move_ordering import Move, MoveOrderer, generate_moves
from chessbot.opening_book import DEFAULT_BOOK
from chessbot.pieces import Color, PieceType
from chessbot.search import (
    CheckPolicy,
    Searcher,
    SearchState,
    child_state,
    choose_move,
    hint,
    terminal_score,
)
from chessbot.transposition import Bound, score_to_tt, zobrist_key

BACK_RANK_MATE_IN_ONE = {
    "g1": "K", "f2": "P", "g2": "P", "h2": "P", "a1": "R",
    "g8": "k", "f7": "p", "g7": "p", "h7": "p",
}

HANGING_QUEEN = {"a1": "K", "d1": "R", "d5": "q", "h8": "k"}

SMALL_ENDGAME = {"g1": "K", "d1": "R", "e4": "P", "g8": "k", "c6": "n", "d5": "p"}

# Out of book: "a2a3,h7h6" is not a book key.
OFF_BOOK = "a2a3 h7h6"


class _NoRandom(random.Random):
    """Fails the test if the engine consults randomness."""

    def random(self):
        raise AssertionError("randomness consulted")

    def choice(self, seq):
        raise AssertionError("randomness consulted")


class _AlwaysLow(random.Random):
    """random() always returns 0.0, so every probability check succeeds."""

    def random(self):
        return 0.0


def engine(**kwargs):
    kwargs.setdefault("book", None)
    kwargs.setdefault("time_limit_ms", 10**7)
    return Searcher(MAX_DIFFICULTY, **kwargs)


def minimax(searcher, state, depth, ply):
    """Plain negamax without pruning; leaves are scored by full-window quiescence."""
    terminal = terminal_score(state, ply)
    if terminal is not None:
        return terminal
    if depth == 0:
        return searcher.quiescence(state, -INFINITY, INFINITY, ply)
    return max(-minimax(searcher, child_state(state, move), depth - 1, ply + 1)
               for move in generate_moves(state))


class TestSearchState:
    def test_defaults(self):
        state = SearchState()
        assert not state.stopped
        assert not state.out_of_time()
        assert state.node_count == 0

    def test_zero_budget_is_out_of_time(self):
        assert SearchState(time_limit_ms=0).out_of_time()


class TestTerminalScore:
    def test_checkmate_is_relative_to_ply(self, fools_mate):
        assert terminal_score(fools_mate, 3) == -(CHECKMATE_SCORE - 3)

    def test_live_game(self, game):
        assert terminal_score(game, 0) is None


class TestCorrectness:
    @pytest.mark.parametrize("depth", [1, 2])
    def test_matches_plain_minimax(self, position, depth):
        state = position(SMALL_ENDGAME)
        searcher = engine(null_move=False)
        _, score, finished = searcher.search_root(state, depth)
        assert finished
        reference = minimax(engine(null_move=False), state, depth, 0)
        assert score == reference

    def test_mate_in_one(self, position):
        state = position(BACK_RANK_MATE_IN_ONE)
        searcher = engine(max_depth=3)
        move = searcher.choose_move(state)
        assert move.uci == "a1a8"
        assert searcher.last_result.score == CHECKMATE_SCORE - 1
        # Iterative deepening stops as soon as a mate is proven.
        assert searcher.last_result.depth == 1

    def test_wins_hanging_queen(self, position):
        state = position(HANGING_QUEEN)
        move = engine(max_depth=2).choose_move(state)
        assert move.uci == "d1d5"
        assert move.captured_type is PieceType.QUEEN

    def test_escapes_check(self, play):
        state = play("e2e4 f7f6 d1h5")
        assert engine(max_depth=2).choose_move(state).uci == "g7g6"

    def test_no_moves(self, fools_mate):
        searcher = engine()
        assert searcher.choose_move(fools_mate) is None
        assert searcher.last_result.source == "none"

    def test_does_not_mutate(self, play):
        state = play("e2e4 e7e5 g1f3")
        key = zobrist_key(state)
        engine(max_depth=2).choose_move(state)
        assert zobrist_key(state) == key
        assert state.history_key() == "e2e4,e7e5,g1f3"
        assert state.current_player is Color.BLACK


class TestTranspositionTable:
    def test_shallow_entry_is_not_trusted_deeper(self, position):
        state = position(HANGING_QUEEN)
        capture = Move((7, 3), (3, 3), PieceType.ROOK, PieceType.QUEEN)
        child = child_state(state, capture)

        seeded = engine(max_depth=3, null_move=False)
        # A bogus depth-1 verdict: the capture loses for White.
        seeded.tt.store(zobrist_key(child), 1, score_to_tt(5_000, 1), Bound.EXACT)
        result = seeded.search(state)

        fresh = engine(max_depth=3, null_move=False).search(state)
        assert result.depth == 3
        assert result.move.uci == "d1d5"
        assert result.score == fresh.score

    def test_root_result_stored(self, position):
        state = position(HANGING_QUEEN)
        searcher = engine(max_depth=2)
        searcher.search(state)
        entry = searcher.tt.probe(zobrist_key(state))
        assert entry is not None
        assert entry.bound is Bound.EXACT
        assert entry.best_move == ((7, 3), (3, 3))

    def test_table_survives_between_moves(self, position):
        state = position(HANGING_QUEEN)
        searcher = engine(max_depth=2)
        searcher.choose_move(state)
        assert len(searcher.tt) > 0
        searcher.choose_move(state)
        assert len(searcher.tt) > 0


class TestDifficulty:
    def test_presets(self):
        searcher = Searcher(1)
        assert searcher.max_depth == 3
        assert searcher.time_limit_ms == 1_000
        searcher.set_difficulty(5)
        assert searcher.max_depth == 8
        assert searcher.difficulty == 5

    @pytest.mark.parametrize("level", [0, 6, -1, 42])
    def test_unknown_level_falls_back_to_default(self, level):
        searcher = Searcher(4)
        searcher.set_difficulty(level)
        assert searcher.difficulty == 2

    def test_overrides(self):
        searcher = Searcher(5, max_depth=2, time_limit_ms=300)
        assert searcher.max_depth == 2
        assert searcher.time_limit_ms == 300

    def test_master_is_deterministic(self, play):
        state = play(OFF_BOOK)
        first = engine(max_depth=2, rng=_NoRandom(), book=DEFAULT_BOOK).choose_move(state)
        second = engine(max_depth=2, rng=_NoRandom(), book=DEFAULT_BOOK).choose_move(state)
        assert first.uci == second.uci

    def test_weak_level_plays_top_ordered_move(self, play):
        state = play(OFF_BOOK)
        searcher = Searcher(1, rng=_AlwaysLow(5), book=None)
        move = searcher.choose_move(state)
        assert searcher.last_result.source == "random"
        top = MoveOrderer().order(generate_moves(state), 0)[:3]
        assert move.uci in {candidate.uci for candidate in top}

    def test_book_used_from_medium(self, game):
        searcher = Searcher(2, rng=random.Random(4))
        move = searcher.choose_move(game)
        assert searcher.last_result.source == "book"
        assert move.uci in {"e2e4", "d2d4", "c2c4"}

    def test_book_skipped_at_easy(self, game):
        searcher = Searcher(1, rng=random.Random(4), max_depth=1)
        searcher.choose_move(game)
        assert searcher.last_result.source != "book"

    def test_difficulty_change_clears_tables(self, play):
        searcher = engine(max_depth=2)
        searcher.choose_move(play("e2e4 e7e5"))
        assert len(searcher.tt) > 0
        searcher.orderer.history[((6, 4), (4, 4))] = 9
        searcher.orderer.killers[1].append(((7, 6), (5, 5)))
        searcher.set_difficulty(3)
        assert len(searcher.tt) == 0
        assert searcher.orderer.history == {}
        assert not any(searcher.orderer.killers)

    def test_master_book_replies_vary_within_book(self, game):
        # Book choices stay random at every level; search is what Master makes deterministic.
        expected = set(DEFAULT_BOOK.replies(""))
        seen = set()
        for seed in range(30):
            searcher = engine(max_depth=1, rng=random.Random(seed), book=DEFAULT_BOOK)
            seen.add(searcher.choose_move(game).uci)
            assert searcher.last_result.source == "book"
        assert seen <= expected
        assert len(seen) > 1


class TestTimeManagement:
    def test_zero_budget_still_moves(self, game):
        searcher = engine(time_limit_ms=0)
        move = searcher.choose_move(game)
        assert move is not None
        assert game.is_legal_move(move.from_square, move.to_square)
        assert searcher.last_result.depth == 0

    def test_short_budget_is_respected(self, play):
        state = play(OFF_BOOK)
        searcher = engine(time_limit_ms=200)
        start = time.monotonic()
        move = searcher.choose_move(state)
        assert move is not None
        assert time.monotonic() - start < 10
        assert searcher.last_result.nodes > 0

    def test_clock_checked_periodically(self):
        searcher = engine(time_limit_ms=0)
        searcher.search_state = SearchState(time_limit_ms=0)
        for _ in range(TIME_CHECK_NODES - 1):
            assert not searcher._tick()
        assert searcher._tick()


class TestCheckPolicy:
    def test_escape_random(self, play):
        state = play("e2e4 f7f6 d1h5")
        searcher = engine(check_policy=CheckPolicy.ESCAPE_RANDOM, rng=random.Random(0))
        move = searcher.choose_move(state)
        assert searcher.last_result.source == "escape"
        assert move.uci == "g7g6"

    def test_not_in_check_searches(self, play):
        state = play(OFF_BOOK)
        searcher = engine(check_policy=CheckPolicy.ESCAPE_RANDOM, max_depth=1)
        searcher.choose_move(state)
        assert searcher.last_result.source == "search"


class TestHint:
    def test_hint_for_side_not_to_move(self, play):
        state = play("e2e4")
        move = engine(max_depth=1).hint(state, Color.WHITE)
        piece = state.get_piece_at(*move.from_square)
        assert piece is not None and piece.color is Color.WHITE
        assert state.current_player is Color.BLACK
        assert state.en_passant_target == (5, 4)
        assert state.history_key() == "e2e4"

    def test_hint_for_side_to_move(self, play):
        state = play("e2e4")
        move = engine(max_depth=1).hint(state, Color.BLACK)
        assert state.get_piece_at(*move.from_square).color is Color.BLACK

    def test_no_hint_for_waiting_side_while_mover_in_check(self, play):
        state = play("e2e4 f7f6 d1h5")
        searcher = engine(max_depth=1)
        assert searcher.hint(state, Color.WHITE) is None
        assert searcher.last_result.source == "none"
        assert searcher.hint(state, Color.BLACK).uci == "g7g6"


class TestModuleInterface:
    def test_choose_move(self, game):
        move = choose_move(game, 2, random.Random(0))
        assert move.uci in {"e2e4", "d2d4", "c2c4"}

    def test_hint(self, game):
        move = hint(game, Color.WHITE, 2, random.Random(0))
        assert move.uci in {"e2e4", "d2d4", "c2c4"}
        assert game.move_history == []
