"""
Chess bot package: a complete rules engine plus an alpha-beta search engine.

The rules engine tracks board state, move legality (check, castling, en
passant, promotion) and game termination. The search engine picks moves for
an automated opponent with iterative deepening, principal variation search,
a transposition table, quiescence search and heuristic move ordering.

Modules:
    constants      Piece values, PST arrays, evaluation weights, search parameters, difficulty presets
    pieces         Colours, piece types, pseudo-legal move generation, attack detection
    notation       Square names, coordinate move keys, short algebraic notation
    game           GameState: legality, move execution, check/mate/stalemate/draw
    evaluate       Static evaluation (full and simple variants)
    transposition  Zobrist hashing and transposition table
    move_ordering  Search moves, MVV-LVA, killer moves, history heuristic
    opening_book   Move-history keyed opening book
    search         Iterative deepening PVS, null move, quiescence; choose_move / hint
    basic          Fixed-depth basic engine with the simple evaluator
"""
