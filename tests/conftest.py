"""Shared fixtures and position builders for the chess bot tests."""

import pytest

from chessbot.game import GameState, game_from_moves
from chessbot.notation import parse_square
from chessbot.pieces import Color, PieceType


def build_position(layout: dict[str, str], turn: Color = Color.WHITE) -> GameState:
    """Compose a position from {"e1": "K", "e8": "k", ...}; upper case is White."""
    state = GameState.empty(turn)
    for name, letter in layout.items():
        color = Color.WHITE if letter.isupper() else Color.BLACK
        state.place(PieceType.from_letter(letter), color, parse_square(name))
    state.update_status()
    return state


@pytest.fixture
def game():
    """A fresh game in the standard starting position."""
    return GameState()


@pytest.fixture
def position():
    """Factory fixture: position(layout, turn=Color.WHITE) -> GameState."""
    return build_position


@pytest.fixture
def play():
    """Factory fixture: play("e2e4 e7e5 ...") -> GameState after those moves."""
    def _play(moves: str) -> GameState:
        return game_from_moves(moves.split())
    return _play


# Fool's mate: White is checkmated after four plies.
FOOLS_MATE = "f2f3 e7e5 g2g4 d8h4"


@pytest.fixture
def fools_mate(play):
    return play(FOOLS_MATE)
