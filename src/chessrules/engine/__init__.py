from .board import Board, Color, Piece
from .game import Game, MoveOutcome, MoveResult, Rejection
from .move import Move

__all__ = [
    "Board",
    "Color",
    "Piece",
    "Game",
    "Move",
    "MoveOutcome",
    "MoveResult",
    "Rejection",
]
