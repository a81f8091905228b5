"""
Engine constants: piece values, piece-square tables, search parameters,
and difficulty presets.

All numeric constants used throughout the engine are defined here so that
the rules, evaluation, and search modules never need to introduce magic
numbers of their own. Centralizing them keeps tuning in one place.

Piece values follow the standard centipawn convention (1 pawn = 100 cp).
Piece-square tables are written from White's point of view with row 0 at
the top of the table (rank 8), matching the board-array convention used by
the rules engine. Black pieces read the table mirrored vertically.
"""

from dataclasses import dataclass

from chessbot.pieces import PieceType

# ---------------------------------------------------------------------------
# Piece values (centipawns)
# ---------------------------------------------------------------------------
# Bishops are slightly stronger than knights (330 vs 320), reflecting the
# bishop-pair advantage on open boards.

PAWN_VALUE: int = 100
KNIGHT_VALUE: int = 320
BISHOP_VALUE: int = 330
ROOK_VALUE: int = 500
QUEEN_VALUE: int = 900
KING_VALUE: int = 20_000  # Counted on both sides, so it cancels out in material

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN:   PAWN_VALUE,
    PieceType.KNIGHT: KNIGHT_VALUE,
    PieceType.BISHOP: BISHOP_VALUE,
    PieceType.ROOK:   ROOK_VALUE,
    PieceType.QUEEN:  QUEEN_VALUE,
    PieceType.KING:   KING_VALUE,
}

# ---------------------------------------------------------------------------
# Piece-square tables
# ---------------------------------------------------------------------------
# table[row][col] for a White piece on (row, col); table[7 - row][col] for
# a Black piece. Row 0 is rank 8.

PAWN_TABLE: list[list[int]] = [
    [  0,   0,   0,   0,   0,   0,   0,   0],
    [ 50,  50,  50,  50,  50,  50,  50,  50],
    [ 10,  10,  20,  30,  30,  20,  10,  10],
    [  5,   5,  10,  25,  25,  10,   5,   5],
    [  0,   0,   0,  20,  20,   0,   0,   0],
    [  5,  -5, -10,   0,   0, -10,  -5,   5],
    [  5,  10,  10, -20, -20,  10,  10,   5],
    [  0,   0,   0,   0,   0,   0,   0,   0],
]

KNIGHT_TABLE: list[list[int]] = [
    [-50, -40, -30, -30, -30, -30, -40, -50],
    [-40, -20,   0,   0,   0,   0, -20, -40],
    [-30,   0,  10,  15,  15,  10,   0, -30],
    [-30,   5,  15,  20,  20,  15,   5, -30],
    [-30,   0,  15,  20,  20,  15,   0, -30],
    [-30,   5,  10,  15,  15,  10,   5, -30],
    [-40, -20,   0,   5,   5,   0, -20, -40],
    [-50, -40, -30, -30, -30, -30, -40, -50],
]

BISHOP_TABLE: list[list[int]] = [
    [-20, -10, -10, -10, -10, -10, -10, -20],
    [-10,   0,   0,   0,   0,   0,   0, -10],
    [-10,   0,   5,  10,  10,   5,   0, -10],
    [-10,   5,   5,  10,  10,   5,   5, -10],
    [-10,   0,  10,  10,  10,  10,   0, -10],
    [-10,  10,  10,  10,  10,  10,  10, -10],
    [-10,   5,   0,   0,   0,   0,   5, -10],
    [-20, -10, -10, -10, -10, -10, -10, -20],
]

ROOK_TABLE: list[list[int]] = [
    [  0,   0,   0,   0,   0,   0,   0,   0],
    [  5,  10,  10,  10,  10,  10,  10,   5],
    [ -5,   0,   0,   0,   0,   0,   0,  -5],
    [ -5,   0,   0,   0,   0,   0,   0,  -5],
    [ -5,   0,   0,   0,   0,   0,   0,  -5],
    [ -5,   0,   0,   0,   0,   0,   0,  -5],
    [ -5,   0,   0,   0,   0,   0,   0,  -5],
    [  0,   0,   0,   5,   5,   0,   0,   0],
]

QUEEN_TABLE: list[list[int]] = [
    [-20, -10, -10,  -5,  -5, -10, -10, -20],
    [-10,   0,   0,   0,   0,   0,   0, -10],
    [-10,   0,   5,   5,   5,   5,   0, -10],
    [ -5,   0,   5,   5,   5,   5,   0,  -5],
    [  0,   0,   5,   5,   5,   5,   0,  -5],
    [-10,   5,   5,   5,   5,   5,   0, -10],
    [-10,   0,   5,   0,   0,   0,   0, -10],
    [-20, -10, -10,  -5,  -5, -10, -10, -20],
]

KING_TABLE: list[list[int]] = [
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-30, -40, -40, -50, -50, -40, -40, -30],
    [-20, -30, -30, -40, -40, -30, -30, -20],
    [-10, -20, -20, -20, -20, -20, -20, -10],
    [ 20,  20,   0,   0,   0,   0,  20,  20],
    [ 20,  30,  10,   0,   0,  10,  30,  20],
]

# In the endgame the king should walk to the centre instead of hiding.
KING_ENDGAME_TABLE: list[list[int]] = [
    [-50, -40, -30, -20, -20, -30, -40, -50],
    [-30, -20, -10,   0,   0, -10, -20, -30],
    [-30, -10,  20,  30,  30,  20, -10, -30],
    [-30, -10,  30,  40,  40,  30, -10, -30],
    [-30, -10,  30,  40,  40,  30, -10, -30],
    [-30, -10,  20,  30,  30,  20, -10, -30],
    [-30, -30,   0,   0,   0,   0, -30, -30],
    [-50, -30, -30, -30, -30, -30, -30, -50],
]

PIECE_SQUARE_TABLES: dict[PieceType, list[list[int]]] = {
    PieceType.PAWN:   PAWN_TABLE,
    PieceType.KNIGHT: KNIGHT_TABLE,
    PieceType.BISHOP: BISHOP_TABLE,
    PieceType.ROOK:   ROOK_TABLE,
    PieceType.QUEEN:  QUEEN_TABLE,
    PieceType.KING:   KING_TABLE,
}

# ---------------------------------------------------------------------------
# Evaluation weights (centipawns)
# ---------------------------------------------------------------------------

# Pseudo-legal move count multiplier; minor pieces profit most from activity.
MOBILITY_WEIGHTS: dict[PieceType, int] = {
    PieceType.PAWN:   1,
    PieceType.KNIGHT: 4,
    PieceType.BISHOP: 3,
    PieceType.ROOK:   2,
    PieceType.QUEEN:  1,
    PieceType.KING:   1,
}

PAWN_CHAIN_BONUS: int = 15
PASSED_PAWN_BASE: int = 20
PASSED_PAWN_RANK_SQUARED: int = 5      # x rank * rank
DOUBLED_PAWN_PENALTY: int = 15         # per extra pawn on the file
ISOLATED_PAWN_PENALTY: int = 20
BACKWARD_PAWN_PENALTY: int = 15

SHIELD_NEAR_BONUS: int = 20            # own pawn one rank in front of the king
SHIELD_FAR_BONUS: int = 10             # own pawn two ranks in front
KING_ATTACKER_PENALTY: int = 30
KING_OPEN_FILE_PENALTY: int = 20
KING_SEMI_OPEN_FILE_PENALTY: int = 10
UNMOVED_KING_BONUS: int = 25
TROPISM_RANGE: int = 3                 # Manhattan distance
TROPISM_WEIGHT: int = 5

KING_CENTRALITY_WEIGHT: int = 15
KING_PASSER_PROXIMITY_WEIGHT: int = 5

CENTER_SQUARES: tuple[tuple[int, int], ...] = ((3, 3), (3, 4), (4, 3), (4, 4))
EXTENDED_CENTER_SQUARES: tuple[tuple[int, int], ...] = (
    (2, 2), (2, 3), (2, 4), (2, 5),
    (5, 2), (5, 3), (5, 4), (5, 5),
)
CENTER_CONTROL_WEIGHT: int = 10
EXTENDED_CENTER_CONTROL_WEIGHT: int = 5

KNIGHT_OUTPOST_BONUS: int = 30
BISHOP_OUTPOST_BONUS: int = 20

ROOK_OPEN_FILE_BONUS: int = 25
ROOK_SEMI_OPEN_FILE_BONUS: int = 15
CONNECTED_ROOKS_BONUS: int = 20
BISHOP_PAIR_BONUS: int = 30
KNIGHT_PAIR_PROTECTION_BONUS: int = 10
KNIGHT_BISHOP_PROXIMITY_BONUS: int = 5
KNIGHT_BISHOP_RANGE: int = 3

# Simple evaluator (basic variant).
SIMPLE_MOBILITY_WEIGHT: int = 2
SIMPLE_SAFE_PIECE_BONUS: int = 10
SIMPLE_KING_CENTER_DISTANCE_WEIGHT: int = 10
SIMPLE_KING_ATTACKER_PENALTY: int = 20
SIMPLE_SHIELD_BONUS: int = 15
SIMPLE_DOUBLED_PAWN_PENALTY: int = 10
SIMPLE_ISOLATED_PAWN_PENALTY: int = 15
SIMPLE_PASSED_PAWN_RANK_WEIGHT: int = 10
SIMPLE_CENTER_CONTROL_WEIGHT: int = 5
SIMPLE_NOISE_SCALE: int = 50
SIMPLE_NOISE_MAX_DIFFICULTY: int = 3   # noise below this level only

# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

# Half-moves without a pawn move or capture before the game is drawn.
FIFTY_MOVE_LIMIT: int = 100

# ---------------------------------------------------------------------------
# Special scores
# ---------------------------------------------------------------------------
# Integers (never floats) so they compare exactly in alpha-beta windows.
# Mate scores are CHECKMATE_SCORE - ply so faster mates score higher.

CHECKMATE_SCORE: int = 30_000
DRAW_SCORE: int = 0
INFINITY: int = CHECKMATE_SCORE + 1_000

# The basic variant keeps the smaller mate constant it was tuned with.
BASIC_CHECKMATE_SCORE: int = 20_000

# ---------------------------------------------------------------------------
# Search parameters
# ---------------------------------------------------------------------------

# Capture-only plies explored past the horizon by quiescence search.
QUIESCENCE_MAX_DEPTH: int = 4

# Null-move pruning: searched at depth - NULL_MOVE_REDUCTION, only when
# the remaining depth is at least NULL_MOVE_MIN_DEPTH.
NULL_MOVE_REDUCTION: int = 3
NULL_MOVE_MIN_DEPTH: int = 3

# Killer moves: KILLER_SLOTS per remaining depth, for depths < KILLER_DEPTHS.
KILLER_SLOTS: int = 2
KILLER_DEPTHS: int = 20

# History heuristic contribution to a move's ordering score is capped so it
# never outranks a killer move.
HISTORY_BONUS_CAP: int = 800

# Move-ordering bonuses (see move_ordering.score_move).
PV_MOVE_BONUS: int = 10_000
CAPTURE_BONUS: int = 1_000
KILLER_BONUS: int = 900
CASTLING_BONUS: int = 300
PAWN_ADVANCE_BONUS: int = 20
CENTRALITY_WEIGHT: int = 10

# The transposition table is cleared wholesale once it holds this many
# entries; there is no per-entry eviction.
TT_MAX_ENTRIES: int = 100_000

# How often (in nodes) the recursive search looks at the clock. The root
# move loop and each depth iteration check the clock unconditionally.
TIME_CHECK_NODES: int = 512

# ---------------------------------------------------------------------------
# Opening book / weak-play emulation
# ---------------------------------------------------------------------------

# The book is only consulted while the game history is shorter than this.
OPENING_BOOK_MAX_PLY: int = 20

# Weak difficulties sometimes play uniformly among the top-K ordered moves.
RANDOM_TOP_K: int = 3

# ---------------------------------------------------------------------------
# Difficulty presets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DifficultySettings:
    """
    Search configuration selected by a difficulty level.

    Attributes:
        level:            The 1..5 level these settings belong to.
        name:             Display name (Easy .. Master).
        max_depth:        Deepest iterative-deepening iteration.
        time_limit_ms:    Wall-clock budget for one move.
        move_randomness:  Probability of playing one of the top-K ordered
                          moves instead of searching.
        eval_noise:       Evaluation noise factor; informational for the
                          enhanced engine, which evaluates deterministically.
        use_opening_book: Whether the opening book is consulted.
    """

    level: int
    name: str
    max_depth: int
    time_limit_ms: int
    move_randomness: float
    eval_noise: float
    use_opening_book: bool


DIFFICULTY_PRESETS: dict[int, DifficultySettings] = {
    1: DifficultySettings(1, "Easy", 3, 1_000, 0.30, 0.25, False),
    2: DifficultySettings(2, "Medium", 4, 2_000, 0.15, 0.10, True),
    3: DifficultySettings(3, "Hard", 5, 3_000, 0.08, 0.05, True),
    4: DifficultySettings(4, "Expert", 6, 5_000, 0.03, 0.02, True),
    5: DifficultySettings(5, "Master", 8, 8_000, 0.0, 0.0, True),
}

DEFAULT_DIFFICULTY: int = 2
MIN_DIFFICULTY: int = 1
MAX_DIFFICULTY: int = 5

# Fixed search depth of the basic variant, by difficulty.
BASIC_DEPTHS: dict[int, int] = {1: 2, 2: 3, 3: 4, 4: 5}
BASIC_DEFAULT_DEPTH: int = 3


def difficulty_settings(level: int) -> DifficultySettings:
    """Return the preset for *level*, falling back to the default level."""
    return DIFFICULTY_PRESETS.get(level, DIFFICULTY_PRESETS[DEFAULT_DIFFICULTY])
