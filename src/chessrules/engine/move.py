from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .board import Piece, is_off_board, piece_of


PROMOTION_PIECES = {
    "q": Piece.QUEEN,
    "r": Piece.ROOK,
    "b": Piece.BISHOP,
    "n": Piece.KNIGHT,
}
PROMOTION_KINDS = frozenset(PROMOTION_PIECES.values())


@dataclass(frozen=True)
class Move:
    """A generated move, carrying everything needed to undo it.

    Attributes:
        start (int): Origin 0x88 index.
        target (int): Destination 0x88 index.
        start_value (int): Packed square value at ``start`` before the move,
            virgin flag included.
        captured_value (int): Packed value removed by the move (0 if none).
        capture_square (int): Square the captured piece stood on; differs from
            ``target`` only for en passant.
        next_ep_target (Optional[int]): En-passant target created by this move
            (set only by a pawn double step).
    """

    start: int
    target: int
    start_value: int
    captured_value: int
    capture_square: int
    next_ep_target: Optional[int] = None

    @property
    def piece(self) -> Piece:
        return piece_of(self.start_value)

    @property
    def is_capture(self) -> bool:
        return self.captured_value != 0

    @property
    def is_en_passant(self) -> bool:
        return self.capture_square != self.target

    @property
    def is_castle(self) -> bool:
        return self.piece is Piece.KING and abs(self.target - self.start) == 2

    def to_uci(self) -> str:
        """Coordinate notation of the move, e.g. ``"e2e4"``."""
        return square_to_str(self.start) + square_to_str(self.target)


def parse_promotion(letter: Optional[str]) -> Optional[Piece]:
    """Map a promotion letter (``q r b n``, any case) to a piece kind.

    Raises:
        ValueError: If ``letter`` is not one of the four promotion letters.
    """
    if letter is None or letter == "":
        return None
    piece = PROMOTION_PIECES.get(letter.lower())
    if piece is None:
        raise ValueError(f"invalid promotion piece: {letter!r}")
    return piece


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0x88 index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: 0x88 index (``rank * 16 + file``).

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 16 + file


def square_to_str(idx: int) -> str:
    """Convert a 0x88 index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is not an on-board index.
    """
    if idx < 0 or is_off_board(idx):
        raise ValueError(f"invalid square index: {idx}")
    file = idx & 7
    rank = idx >> 4
    return chr(ord("a") + file) + str(rank + 1)
