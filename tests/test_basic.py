"""Tests for the fixed-depth basic engine."""

import random

import pytest

from chessbot.basic import BasicSearcher, placement_key
from chessbot.constants import BASIC_CHECKMATE_SCORE
from chessbot.pieces import Color
from chessbot.search import CheckPolicy

BACK_RANK_MATE_IN_ONE = {
    "g1": "K", "f2": "P", "g2": "P", "h2": "P", "a1": "R",
    "g8": "k", "f7": "p", "g7": "p", "h7": "p",
}


class TestPlacementKey:
    def test_format(self, game):
        key = placement_key(game)
        assert len(key) == 129
        assert key.startswith("BRBNBBBQBK")
        assert key.endswith("W")

    def test_side_to_move(self, play):
        assert placement_key(play("e2e4")).endswith("B")


class TestDepths:
    @pytest.mark.parametrize("level, depth", [(1, 2), (2, 3), (3, 4), (4, 5), (9, 3)])
    def test_depth_by_level(self, level, depth):
        assert BasicSearcher(level).depth == depth

    def test_override(self):
        searcher = BasicSearcher(4, depth=1)
        assert searcher.depth == 1
        searcher.set_difficulty(1)
        assert searcher.depth == 1


class TestBasicSearch:
    def test_mate_in_one(self, position):
        state = position(BACK_RANK_MATE_IN_ONE)
        searcher = BasicSearcher(3, depth=2)
        move = searcher.choose_move(state)
        assert move.uci == "a1a8"
        assert searcher.last_result.score == BASIC_CHECKMATE_SCORE - 1

    def test_wins_hanging_queen(self, position):
        state = position({"a1": "K", "d1": "R", "d5": "q", "h8": "k"})
        assert BasicSearcher(3, depth=2).choose_move(state).uci == "d1d5"

    def test_escape_in_check(self, play):
        state = play("e2e4 f7f6 d1h5")
        searcher = BasicSearcher(rng=random.Random(1))
        assert searcher.choose_move(state).uci == "g7g6"
        assert searcher.last_result.source == "escape"

    def test_search_policy_in_check(self, play):
        state = play("e2e4 f7f6 d1h5")
        searcher = BasicSearcher(3, check_policy=CheckPolicy.SEARCH, depth=1)
        assert searcher.choose_move(state).uci == "g7g6"
        assert searcher.last_result.source == "search"

    def test_no_moves(self, fools_mate):
        searcher = BasicSearcher()
        assert searcher.choose_move(fools_mate) is None
        assert searcher.last_result.source == "none"

    def test_noisy_level_still_plays_legal_moves(self, game):
        searcher = BasicSearcher(1, rng=random.Random(3))
        move = searcher.choose_move(game)
        assert game.is_legal_move(move.from_square, move.to_square)
        assert searcher.last_result.nodes > 0

    def test_hint_leaves_state_alone(self, play):
        state = play("e2e4")
        move = BasicSearcher(3, depth=1).hint(state, Color.WHITE)
        assert state.get_piece_at(*move.from_square).color is Color.WHITE
        assert state.current_player is Color.BLACK

    def test_no_hint_for_waiting_side_while_mover_in_check(self, play):
        state = play("e2e4 f7f6 d1h5")
        searcher = BasicSearcher(3, depth=1)
        assert searcher.hint(state, Color.WHITE) is None
        assert searcher.last_result.source == "none"
        assert searcher.hint(state, Color.BLACK).uci == "g7g6"

    def test_difficulty_change_clears_memo(self, play):
        searcher = BasicSearcher(3, depth=2, check_policy=CheckPolicy.SEARCH)
        searcher.choose_move(play("e2e4 e7e5"))
        assert searcher.memo
        searcher.set_difficulty(4)
        assert searcher.memo == {}
        assert searcher.killers == {}
