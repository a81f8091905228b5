"""Tests for Zobrist hashing and the transposition table."""

from chessbot.constants import CHECKMATE_SCORE
from chessbot.pieces import Color
from chessbot.transposition import (
    Bound,
    TranspositionTable,
    score_from_tt,
    score_to_tt,
    zobrist_key,
)


class TestZobrist:
    def test_stable(self, game):
        assert zobrist_key(game) == zobrist_key(game.clone())

    def test_transposition_has_same_key(self, play):
        first = play("g1f3 g8f6 b1c3 b8c6")
        second = play("b1c3 b8c6 g1f3 g8f6")
        assert zobrist_key(first) == zobrist_key(second)

    def test_side_to_move_changes_key(self, game):
        other = game.clone()
        other.current_player = Color.BLACK
        assert zobrist_key(game) != zobrist_key(other)

    def test_en_passant_changes_key(self, play):
        state = play("e2e4")
        without = state.clone()
        without.en_passant_target = None
        assert zobrist_key(state) != zobrist_key(without)

    def test_castling_rights_change_key(self, play):
        # Same placement and side to move; only the king's history differs.
        moved = play("e2e4 e7e5 e1e2 e8e7 e2e1 e7e8")
        fresh = play("e2e4 e7e5 g1f3 g8f6 f3g1 f6g8")
        assert [[c.type if c else None for c in row] for row in moved.board] == \
            [[c.type if c else None for c in row] for row in fresh.board]
        assert zobrist_key(moved) != zobrist_key(fresh)

    def test_different_positions_differ(self, play):
        assert zobrist_key(play("e2e4")) != zobrist_key(play("d2d4"))


class TestMateScores:
    def test_mate_scores_are_node_relative(self):
        stored = score_to_tt(CHECKMATE_SCORE - 5, 3)
        assert stored == CHECKMATE_SCORE - 2
        assert score_from_tt(stored, 3) == CHECKMATE_SCORE - 5
        assert score_from_tt(stored, 1) == CHECKMATE_SCORE - 3

    def test_negative_mate_scores(self):
        stored = score_to_tt(-(CHECKMATE_SCORE - 4), 2)
        assert stored == -(CHECKMATE_SCORE - 2)
        assert score_from_tt(stored, 2) == -(CHECKMATE_SCORE - 4)

    def test_ordinary_scores_unchanged(self):
        assert score_to_tt(150, 6) == 150
        assert score_from_tt(-320, 6) == -320


class TestTranspositionTable:
    def test_store_and_probe(self):
        table = TranspositionTable()
        table.store(42, 3, 120, Bound.EXACT, ((6, 4), (4, 4)))
        entry = table.probe(42)
        assert entry.depth == 3
        assert entry.score == 120
        assert entry.bound is Bound.EXACT
        assert entry.best_move == ((6, 4), (4, 4))
        assert table.probe(43) is None

    def test_shallower_result_does_not_replace(self):
        table = TranspositionTable()
        table.store(1, 5, 10, Bound.EXACT)
        table.store(1, 3, 99, Bound.LOWERBOUND)
        assert table.probe(1).score == 10
        table.store(1, 5, 20, Bound.UPPERBOUND)
        assert table.probe(1).score == 20
        assert table.probe(1).bound is Bound.UPPERBOUND

    def test_cleared_when_full(self):
        table = TranspositionTable(max_entries=2)
        table.store(1, 1, 0, Bound.EXACT)
        table.store(2, 1, 0, Bound.EXACT)
        assert len(table) == 2
        table.store(3, 1, 0, Bound.EXACT)
        assert len(table) == 1
        assert table.probe(1) is None
        assert table.probe(3) is not None

    def test_overwrite_when_full_keeps_entries(self):
        table = TranspositionTable(max_entries=2)
        table.store(1, 1, 0, Bound.EXACT)
        table.store(2, 1, 0, Bound.EXACT)
        table.store(2, 2, 5, Bound.EXACT)
        assert len(table) == 2

    def test_clear(self):
        table = TranspositionTable()
        table.store(1, 1, 0, Bound.EXACT)
        table.clear()
        assert len(table) == 0
