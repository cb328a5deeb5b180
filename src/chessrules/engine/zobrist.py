from __future__ import annotations

from typing import List, TYPE_CHECKING

from .board import Color, color_of, real_squares

if TYPE_CHECKING:  # pragma: no cover
    from .board import Board


MASK64 = 0xFFFFFFFFFFFFFFFF


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        z = z ^ (z >> 31)
        return z & MASK64


def piece_slot(value: int) -> int:
    """Table row for a packed square value: kind, offset by 8 for Black."""
    return (value & 0x07) + (8 if color_of(value) is Color.BLACK else 0)


class Zobrist:
    """Position hashing keys.

    Table layout:
    - piece_square[16][64]: rows from ``piece_slot`` (rows 0 and 8 unused),
      columns are on-board squares a1..h8
    - black_to_move: toggled in when Black is on move

    The virgin flag, en-passant target and clocks are not part of the key.
    """

    piece_square: List[List[int]]
    black_to_move: int

    def __init__(self, seed: int = 0xC0FFEE_F00D_DEAD) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = [[prng.next() for _ in range(64)] for _ in range(16)]
        self.black_to_move = prng.next()


ZOBRIST = Zobrist()

# 0x88 index -> 0..63 column in the key table
_SQUARE_COLUMN = {idx: i for i, idx in enumerate(real_squares())}


def hash_position(board: "Board") -> int:
    """Compute the 64-bit repetition key of the board and side to move."""
    h = 0
    squares = board.squares
    for idx, column in _SQUARE_COLUMN.items():
        value = squares[idx]
        if value:
            h ^= ZOBRIST.piece_square[piece_slot(value)][column]
    if board.side_to_move is Color.BLACK:
        h ^= ZOBRIST.black_to_move
    return h & MASK64
