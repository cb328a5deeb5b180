from __future__ import annotations

import logging
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterator, List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .error import (
    exception_handler,
    http_exception_handler,
    invariant_violation_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ... import __version__
from ...engine.board import Color, Piece, is_pawn
from ...engine.errors import InvariantViolation
from ...engine.game import Game, Rejection
from ...engine.move import parse_promotion, square_to_str, str_to_square


logger = logging.getLogger(__name__)

_REJECTION_STATUS = {
    Rejection.WRONG_SIDE: (409, "piece does not belong to the side to move"),
    Rejection.ILLEGAL_MOVE: (400, "illegal move"),
    Rejection.BAD_PROMOTION: (400, "missing or unexpected promotion piece"),
}


class SquareState(BaseModel):
    square: str
    piece: Optional[str]
    color: Optional[str]
    virgin: bool


class CreateGameResponse(BaseModel):
    game_id: str
    side_to_move: str


class MoveRequest(BaseModel):
    start: str = Field(..., description="Origin square, e.g. e2")
    target: str = Field(..., description="Target square, e.g. e4")
    promotion: Optional[str] = Field(
        default=None, description="Promotion piece letter (q, r, b or n)"
    )


class GameState(BaseModel):
    game_id: str
    side_to_move: str
    pieces: List[SquareState]
    check_square: Optional[str]
    result: str
    draw_claimable: bool
    en_passant: Optional[str]
    halfmove_clock: int
    last_move: Optional[str]


class MoveResponse(BaseModel):
    accepted: bool
    result: str
    move: str
    state: GameState


class LegalTargets(BaseModel):
    square: str
    targets: List[str]


class LegalityResponse(BaseModel):
    start: str
    target: str
    legal: bool
    promotion: bool


def create_app(log_level: Union[int, str] = logging.INFO) -> FastAPI:
    app = FastAPI(title="Chess Rules API", version=__version__)

    logging.basicConfig(level=log_level)

    app.add_middleware(RequestIDLoggingMiddleware)
    # routing 404/405 are raised as the starlette base class
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(InvariantViolation, invariant_violation_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    app.state.sessions = store

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, side_to_move=_color_name(Color.WHITE))

    @app.delete("/api/games/{game_id}")
    async def delete_game(game_id: str) -> Dict[str, str]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    async def get_state(game_id: str) -> GameState:
        with _checkout(store, game_id) as game:
            return _game_state(game_id, game)

    @app.get("/api/games/{game_id}/squares/{square}", response_model=SquareState)
    async def get_square(game_id: str, square: str) -> SquareState:
        idx = _parse_square(square)
        with _checkout(store, game_id) as game:
            return _square_state(game, idx)

    @app.get("/api/games/{game_id}/moves/{square}", response_model=LegalTargets)
    async def get_moves(game_id: str, square: str) -> LegalTargets:
        idx = _parse_square(square)
        with _checkout(store, game_id) as game:
            targets = [square_to_str(m.target) for m in game.legal_moves(idx)]
        return LegalTargets(square=square, targets=targets)

    @app.get("/api/games/{game_id}/legal", response_model=LegalityResponse)
    async def get_legality(game_id: str, start: str, target: str) -> LegalityResponse:
        start_idx = _parse_square(start)
        target_idx = _parse_square(target)
        with _checkout(store, game_id) as game:
            return LegalityResponse(
                start=start,
                target=target,
                legal=game.is_legal_move(start_idx, target_idx),
                promotion=game.is_promoting_move(start_idx, target_idx),
            )

    @app.post("/api/games/{game_id}/move", response_model=MoveResponse)
    async def make_move(game_id: str, req: MoveRequest) -> MoveResponse:
        start = _parse_square(req.start)
        target = _parse_square(req.target)
        try:
            promotion = parse_promotion(req.promotion)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        with _checkout(store, game_id) as game:
            outcome = game.try_move(start, target, promotion)
            if outcome.rejection is not None:
                status_code, detail = _REJECTION_STATUS[outcome.rejection]
                raise HTTPException(status_code=status_code, detail=detail)
            return MoveResponse(
                accepted=True,
                result=outcome.result.value,
                move=outcome.move.to_uci() if outcome.move else "",
                state=_game_state(game_id, game),
            )

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    async def undo(game_id: str) -> GameState:
        with _checkout(store, game_id) as game:
            try:
                game.undo_last_move()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _game_state(game_id, game)

    return app


@contextmanager
def _checkout(store: InMemorySessionStore, game_id: str) -> Iterator[Game]:
    with ExitStack() as stack:
        # only a missing session maps to 404, not KeyErrors from the body
        try:
            game = stack.enter_context(store.checkout(game_id))
        except KeyError:
            raise HTTPException(status_code=404, detail="game not found")
        yield game


def _parse_square(name: str) -> int:
    try:
        return str_to_square(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _color_name(color: Color) -> Optional[str]:
    return None if color is Color.NONE else color.name.lower()


def _piece_name(piece: Piece) -> Optional[str]:
    if piece is Piece.NONE:
        return None
    if is_pawn(piece):
        return "pawn"
    return piece.name.lower()


def _square_state(game: Game, idx: int) -> SquareState:
    piece, color = game.piece_at(idx)
    return SquareState(
        square=square_to_str(idx),
        piece=_piece_name(piece),
        color=_color_name(color),
        virgin=game.is_virgin(idx),
    )


def _game_state(game_id: str, game: Game) -> GameState:
    board = game.board
    check = game.check_square()
    return GameState(
        game_id=game_id,
        side_to_move=_color_name(game.side_to_move) or "",
        pieces=[_square_state(game, idx) for idx in board.occupied()],
        check_square=square_to_str(check) if check is not None else None,
        result=game.result.value,
        draw_claimable=game.draw_claimable,
        en_passant=square_to_str(board.ep_target) if board.ep_target is not None else None,
        halfmove_clock=board.halfmove_clock,
        last_move=game.last_move.to_uci() if game.last_move else None,
    )


# Default app for non-factory servers
app = create_app()
