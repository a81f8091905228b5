"""Tests for the opening book."""

import random

import pytest

from chessbot.game import game_from_moves
from chessbot.notation import parse_move
from chessbot.opening_book import _BOOK_ENTRIES, _OPENING_LINES, DEFAULT_BOOK, OpeningBook


class TestRepertoire:
    @pytest.mark.parametrize("line", _OPENING_LINES)
    def test_every_line_is_legal(self, line):
        game_from_moves(line.split())

    @pytest.mark.parametrize("key", sorted(_BOOK_ENTRIES))
    def test_every_entry_reply_is_legal(self, key):
        state = game_from_moves(key.split(","))
        for reply in _BOOK_ENTRIES[key]:
            from_square, to_square, _ = parse_move(reply)
            assert state.is_legal_move(from_square, to_square), reply

    def test_first_moves(self):
        assert set(DEFAULT_BOOK.replies("")) == {"e2e4", "d2d4", "c2c4"}

    def test_entries_and_lines_merge_without_duplicates(self):
        replies = DEFAULT_BOOK.replies("e2e4,c7c5")
        assert {"g1f3", "d2d4", "b1c3"} <= set(replies)
        assert len(replies) == len(set(replies))

    def test_contains(self):
        assert "e2e4,e7e5" in DEFAULT_BOOK
        assert "a2a3" not in DEFAULT_BOOK
        assert len(DEFAULT_BOOK) > len(_BOOK_ENTRIES)


class TestLookup:
    def test_start_position(self, game):
        assert DEFAULT_BOOK.lookup(game, random.Random(1)) in {"e2e4", "d2d4", "c2c4"}

    def test_known_reply(self, play):
        state = play("e2e4 c7c6")
        assert DEFAULT_BOOK.lookup(state, random.Random(3)) in {"d2d4", "b1c3", "g1f3"}

    def test_out_of_book(self, play):
        assert DEFAULT_BOOK.lookup(play("a2a3"), random.Random(0)) is None

    def test_seeded_choice_is_reproducible(self, game):
        first = DEFAULT_BOOK.lookup(game, random.Random(11))
        second = DEFAULT_BOOK.lookup(game, random.Random(11))
        assert first == second

    def test_ply_limit(self, play):
        book = OpeningBook(lines=["e2e4 e7e5 g1f3 b8c6"], max_ply=2)
        assert book.lookup(play("e2e4"), random.Random(0)) == "e7e5"
        assert book.lookup(play("e2e4 e7e5"), random.Random(0)) is None

    def test_illegal_replies_are_skipped(self, game):
        assert OpeningBook({"": ["e2e5", "zz"]}).lookup(game) is None
        book = OpeningBook({"": ["e2e5", "e2e4"]})
        assert {book.lookup(game, random.Random(seed)) for seed in range(10)} == {"e2e4"}

    def test_does_not_mutate(self, game):
        DEFAULT_BOOK.lookup(game, random.Random(0))
        assert game.move_history == []
        assert game.get_piece_at(6, 4) is not None

    def test_composed_position_falls_back(self, position):
        # Empty history, but none of the first-move replies are legal here.
        state = position({"e1": "K", "e8": "k", "a2": "P"})
        assert DEFAULT_BOOK.lookup(state, random.Random(0)) is None
