"""
FastAPI web application exposing the chess bot to a browser UI.

Three REST endpoints, all POST and all stateless: the client sends the full
list of moves played since the initial position (coordinate notation,
"e2e4", "e7e8q") and the server replays them on a fresh GameState.

    POST /api/state  board, side to move, status, legal moves, history
    POST /api/move   the engine's reply at a difficulty level 1..5
    POST /api/hint   a suggested move for either colour

Architecture notes:
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  so a long search never blocks the event loop.
- A fresh Searcher per request; no engine tables are kept between calls.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from chessbot.constants import MAX_DIFFICULTY, MIN_DIFFICULTY, DEFAULT_DIFFICULTY
from chessbot.game import GameState, game_from_moves
from chessbot.notation import square_name
from chessbot.pieces import Color
from chessbot.search import Searcher

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

app = FastAPI(title="Chess Bot", version="1.0.0")


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class GameRequest(BaseModel):
    """
    A game position, given as the moves that led to it.

    Fields:
        moves: Coordinate-notation moves from the initial position.
    """

    moves: list[str] = []


class EngineRequest(GameRequest):
    """
    Fields:
        difficulty: Engine level, clamped to [1, 5].
        color:      Colour to suggest a move for (hint only); defaults to
                    the side to move.
    """

    difficulty: int = DEFAULT_DIFFICULTY
    color: Optional[Color] = None

    @field_validator("difficulty")
    @classmethod
    def clamp_difficulty(cls, v: int) -> int:
        """Clamp difficulty to the supported levels."""
        return max(MIN_DIFFICULTY, min(v, MAX_DIFFICULTY))


class PieceOut(BaseModel):
    type: str
    color: str
    symbol: str


class StateResponse(BaseModel):
    """
    Fields:
        board:        8x8 grid, row 0 = rank 8, None for empty squares.
        turn:         "WHITE" or "BLACK".
        status:       PLAYING, CHECK, CHECKMATE, STALEMATE or DRAW.
        in_check:     Whether the side to move is in check.
        legal_moves:  Origin square name -> destination square names.
        history:      Short algebraic notation of every move played.
    """

    board: list[list[Optional[PieceOut]]]
    turn: str
    status: str
    in_check: bool
    legal_moves: dict[str, list[str]]
    history: list[str]


class MoveResponse(BaseModel):
    """
    Engine response after choosing a move.

    Fields:
        move:     Coordinate notation (e.g. "e2e4", "e7e8q").
        notation: Short algebraic notation of the move as played.
        status:   Game status after the move.
        score:    Centipawns from the engine's perspective (0 for book or
                  random moves).
        depth:    Deepest completed iteration.
        nodes:    Nodes searched.
        source:   search, book, random or escape.
    """

    move: str
    notation: str
    status: str
    score: int
    depth: int
    nodes: int
    source: str


class HintResponse(BaseModel):
    move: str
    score: int
    depth: int
    source: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _replay(moves: list[str]) -> GameState:
    try:
        return game_from_moves(moves)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _require_live(state: GameState) -> None:
    if state.is_terminal:
        raise HTTPException(status_code=400, detail=f"Game is already over: {state.status.value}")


def _run(searcher: Searcher, state: GameState, color: Optional[Color] = None):
    try:
        if color is None:
            return searcher.choose_move(state)
        return searcher.hint(state, color)
    except Exception as exc:
        _log.exception("Engine search failed after moves=%s", state.history_key())
        raise HTTPException(status_code=500, detail=f"Engine error: {exc}") from exc


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.post("/api/state", response_model=StateResponse)
def api_state(request: GameRequest) -> StateResponse:
    """
    Describe the position reached by the given moves.

    Raises:
        HTTPException 400: A move is malformed or illegal.
    """
    state = _replay(request.moves)

    board = [
        [None if piece is None else PieceOut(type=piece.type.value, color=piece.color.value, symbol=piece.symbol)
         for piece in row]
        for row in state.board
    ]
    legal: dict[str, list[str]] = {}
    for piece in state.pieces(state.current_player):
        destinations = state.legal_moves(piece)
        if destinations:
            legal[piece.square_name] = [square_name(to) for to in destinations]

    return StateResponse(
        board=board,
        turn=state.current_player.value,
        status=state.status.value,
        in_check=state.is_in_check(state.current_player),
        legal_moves=legal,
        history=[record.notation for record in state.move_history],
    )


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: EngineRequest) -> MoveResponse:
    """
    Compute and play the engine's reply.

    Raises:
        HTTPException 400: Malformed or illegal move list, or game already over.
        HTTPException 500: Engine failed or returned no move.
    """
    state = _replay(request.moves)
    _require_live(state)

    searcher = Searcher(request.difficulty)
    move = _run(searcher, state)
    if move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    result = searcher.last_result
    _log.info(
        "Move=%s score=%d depth=%d nodes=%d source=%s",
        move.uci, result.score, result.depth, result.nodes, result.source,
    )

    state.apply_move(move.from_square, move.to_square, move.promotion)
    return MoveResponse(
        move=move.uci,
        notation=state.last_move.notation,
        status=state.status.value,
        score=result.score,
        depth=result.depth,
        nodes=result.nodes,
        source=result.source,
    )


@app.post("/api/hint", response_model=HintResponse)
def api_hint(request: EngineRequest) -> HintResponse:
    """
    Suggest a move for request.color (default: the side to move).

    Raises:
        HTTPException 400: Malformed or illegal move list, game already over,
            or a hint asked for the side not to move while the side to move
            is in check.
        HTTPException 500: Engine failed or found no move for that colour.
    """
    state = _replay(request.moves)
    _require_live(state)

    color = request.color or state.current_player
    if color is not state.current_player and state.is_in_check(state.current_player):
        raise HTTPException(status_code=400, detail=f"{state.current_player.value} is in check and must move first")

    searcher = Searcher(request.difficulty)
    move = _run(searcher, state, color)
    if move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    result = searcher.last_result
    return HintResponse(move=move.uci, score=result.score, depth=result.depth, source=result.source)
