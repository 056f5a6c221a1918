from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...engine.board import Board
from ...engine.game import Game
from ...engine.perft import perft as perft_nodes
from ...eval import evaluate
from ...search.service import SearchConfig, SearchService


logger = logging.getLogger(__name__)

# Search limits for HTTP callers; the library defaults are far deeper
HTTP_SEARCH_DEPTH = 2
HTTP_MAX_DEPTH = 6
HTTP_MAX_BREADTH = 16


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="FEN string")
    encoding: Optional[List[int]] = Field(
        default=None, min_length=64, max_length=64, description="64-cell board encoding"
    )
    white_to_move: bool = True


class MoveRequest(BaseModel):
    move: str = Field(..., min_length=2, description="Move string, e.g. e4, Nf3, O-O")


class SearchRequest(BaseModel):
    depth: int = Field(default=HTTP_SEARCH_DEPTH, ge=1, le=HTTP_MAX_DEPTH)
    breadth: Optional[int] = Field(default=None, ge=1, le=HTTP_MAX_BREADTH)


class SearchResponse(BaseModel):
    best_move: Optional[str]
    score: Optional[float]
    nodes: int
    depth: int
    breadth: Optional[int]
    time_ms: int


class EvaluateRequest(BaseModel):
    encoding: List[int] = Field(..., min_length=64, max_length=64)
    move_count: int = Field(default=0, ge=0)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=5)


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: str
    legal_moves: List[str]
    in_check: int
    game_over: bool
    stalemate: bool
    attacking_value: int
    move_history: List[str]


def create_app(config: Optional[SearchConfig] = None) -> FastAPI:
    app = FastAPI(title="chessai", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=logging.INFO)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    search_config = config or SearchConfig()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        game = _require_game(store, game_id)
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    # Sync handlers run in the threadpool, off the event loop. Each holds the
    # game lock while it reads or mutates that game.
    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        _require_game(store, game_id)
        with store.game_lock(game_id):
            return _state(game_id, _require_game(store, game_id))

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        _require_game(store, game_id)
        if (req.fen is None) == (req.encoding is None):
            raise HTTPException(status_code=400, detail="provide exactly one of fen or encoding")
        try:
            if req.fen is not None:
                game = Game.from_fen(req.fen)
            else:
                game = Game(Board.from_encoding(req.encoding or [], req.white_to_move))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with store.game_lock(game_id):
            store.replace(game_id, game)
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        _require_game(store, game_id)
        with store.game_lock(game_id):
            game = _require_game(store, game_id)
            if not game.apply_move(req.move):
                raise HTTPException(status_code=400, detail=f"illegal move: {req.move}")
            return _state(game_id, game)

    @app.post("/api/games/{game_id}/search", response_model=SearchResponse)
    def search(game_id: str, req: SearchRequest) -> SearchResponse:
        _require_game(store, game_id)
        # Search a snapshot so the lock is not held for the whole search
        with store.game_lock(game_id):
            snapshot = _require_game(store, game_id).copy()
        service = SearchService(search_config)
        # Full moves played stand in for the per-engine move counter
        res = service.search(
            snapshot,
            depth=req.depth,
            breadth=req.breadth,
            move_count=snapshot.board.fullmove_number - 1,
        )
        logger.info(
            "search",
            extra={"game_id": game_id, "nodes": res.nodes, "time_ms": res.time_ms},
        )
        return SearchResponse(
            best_move=res.best_move,
            score=res.score,
            nodes=res.nodes,
            depth=res.depth,
            breadth=res.breadth,
            time_ms=res.time_ms,
        )

    @app.post("/api/evaluate")
    async def evaluate_position(req: EvaluateRequest) -> Dict[str, float]:
        try:
            score = evaluate(req.encoding, req.move_count)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"score": score}

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        try:
            board = Board.from_fen(req.fen)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        return {"nodes": perft_nodes(board, req.depth)}

    return app


def _require_game(store: InMemorySessionStore, game_id: str) -> Game:
    game = store.get(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="game not found")
    return game


def _state(game_id: str, game: Game) -> GameState:
    return GameState(
        game_id=game_id,
        fen=game.to_fen(),
        side_to_move="w" if game.white_to_move else "b",
        legal_moves=sorted(game.legal_moves()),
        in_check=game.in_check(),
        game_over=game.game_over,
        stalemate=game.stalemate(),
        attacking_value=game.attacking_value(),
        move_history=list(game.move_history),
    )


# Default app for non-factory servers
app = create_app()
