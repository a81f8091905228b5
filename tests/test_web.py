"""Tests for the FastAPI adapter."""

import pytest
from fastapi.testclient import TestClient

from chessbot.game import game_from_moves
from chessbot.notation import parse_move
from chessbot.pieces import Color
from web.app import EngineRequest, app

FOOLS_MATE = "f2f3 e7e5 g2g4 d8h4"


@pytest.fixture
def client():
    return TestClient(app)


class TestState:
    def test_initial_position(self, client):
        response = client.post("/api/state", json={"moves": []})
        assert response.status_code == 200
        body = response.json()
        assert body["turn"] == "WHITE"
        assert body["status"] == "PLAYING"
        assert body["in_check"] is False
        assert body["board"][7][4]["type"] == "KING"
        assert body["board"][4][4] is None
        assert len(body["legal_moves"]) == 10
        assert sum(len(v) for v in body["legal_moves"].values()) == 20
        assert sorted(body["legal_moves"]["g1"]) == ["f3", "h3"]

    def test_history(self, client):
        body = client.post("/api/state", json={"moves": ["e2e4", "d7d5", "e4d5"]}).json()
        assert body["history"] == ["e4", "d5", "exd5"]
        assert body["turn"] == "BLACK"

    def test_checkmate(self, client):
        body = client.post("/api/state", json={"moves": FOOLS_MATE.split()}).json()
        assert body["status"] == "CHECKMATE"
        assert body["legal_moves"] == {}

    @pytest.mark.parametrize("moves", [["e2e5"], ["zz"], ["e2e4", "e2e4"]])
    def test_bad_moves(self, client, moves):
        response = client.post("/api/state", json={"moves": moves})
        assert response.status_code == 400


class TestMove:
    def test_book_reply(self, client):
        response = client.post("/api/move", json={"moves": [], "difficulty": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["move"] in {"e2e4", "d2d4", "c2c4"}
        assert body["source"] == "book"
        assert body["status"] == "PLAYING"
        assert body["notation"] in {"e4", "d4", "c4"}

    def test_difficulty_is_clamped(self, client):
        response = client.post("/api/move", json={"moves": [], "difficulty": 99})
        assert response.status_code == 200
        assert response.json()["source"] == "book"

    def test_game_over(self, client):
        response = client.post("/api/move", json={"moves": FOOLS_MATE.split()})
        assert response.status_code == 400
        assert "CHECKMATE" in response.json()["detail"]

    def test_illegal_history(self, client):
        response = client.post("/api/move", json={"moves": ["e2e4", "e7e4"]})
        assert response.status_code == 400

    def test_only_escape_is_found(self, client):
        response = client.post("/api/move", json={"moves": ["e2e4", "f7f6", "d1h5"], "difficulty": 1})
        assert response.status_code == 200
        assert response.json()["move"] == "g7g6"


class TestHint:
    def test_hint_for_side_to_move(self, client):
        response = client.post("/api/hint", json={"moves": [], "difficulty": 2})
        assert response.status_code == 200
        assert response.json()["move"] in {"e2e4", "d2d4", "c2c4"}

    def test_hint_for_other_colour(self, client):
        response = client.post("/api/hint", json={"moves": ["e2e4"], "difficulty": 1, "color": "WHITE"})
        assert response.status_code == 200
        from_square, _, _ = parse_move(response.json()["move"])
        piece = game_from_moves(["e2e4"]).get_piece_at(*from_square)
        assert piece is not None and piece.color is Color.WHITE

    def test_no_hint_for_waiting_side_while_mover_in_check(self, client):
        response = client.post("/api/hint", json={"moves": ["e2e4", "f7f6", "d1h5"], "color": "WHITE"})
        assert response.status_code == 400
        assert "check" in response.json()["detail"]

    def test_unknown_colour(self, client):
        response = client.post("/api/hint", json={"moves": [], "color": "GREEN"})
        assert response.status_code == 422


class TestEngineRequest:
    @pytest.mark.parametrize("given, expected", [(0, 1), (-3, 1), (3, 3), (5, 5), (12, 5)])
    def test_clamp(self, given, expected):
        assert EngineRequest(difficulty=given).difficulty == expected
