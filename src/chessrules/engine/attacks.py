from __future__ import annotations

from typing import List, Tuple

from .board import EMPTY, Board, Color, Piece, color_of, is_off_board, piece_of
from .errors import InvariantViolation


KNIGHT_OFFSETS = (14, 18, -14, -18, 31, 33, -31, -33)
DIAGONAL_OFFSETS = (15, 17, -15, -17)
ORTHOGONAL_OFFSETS = (1, -1, 16, -16)
ALL_DIRECTIONS = ORTHOGONAL_OFFSETS + DIAGONAL_OFFSETS

MAX_DISTANCE = 7


def is_attacked(board: Board, square: int, defender: Color) -> bool:
    """Return True if a piece not of colour ``defender`` attacks ``square``.

    The test is geometric: whose turn it is and whether the attacking move
    would itself expose a king are ignored. ``square`` may be empty, which is
    how castling probes the squares the king passes over.
    """
    squares = board.squares

    # knights: probe backwards from the square
    for offset in KNIGHT_OFFSETS:
        idx = square + offset
        if is_off_board(idx):
            continue
        value = squares[idx]
        if piece_of(value) is Piece.KNIGHT and color_of(value) != defender:
            return True

    # everything else: slide outwards, the first piece met decides the ray
    for offset in ALL_DIRECTIONS:
        idx = square
        diagonal = offset in DIAGONAL_OFFSETS
        for distance in range(MAX_DISTANCE):
            idx += offset
            if is_off_board(idx):
                break
            value = squares[idx]
            if value == EMPTY:
                continue
            if color_of(value) == defender:
                break
            if _attacks_along(piece_of(value), offset, diagonal, distance == 0):
                return True
            break
    return False


def _attacks_along(piece: Piece, offset: int, diagonal: bool, adjacent: bool) -> bool:
    # ``offset`` points from the attacked square towards the attacker
    if piece is Piece.WHITE_PAWN:
        return adjacent and diagonal and offset < 0
    if piece is Piece.BLACK_PAWN:
        return adjacent and diagonal and offset > 0
    if piece is Piece.ROOK:
        return not diagonal
    if piece is Piece.BISHOP:
        return diagonal
    if piece is Piece.QUEEN:
        return True
    if piece is Piece.KING:
        return adjacent
    return False


def find_king(board: Board, color: Color) -> int:
    """Return the square of ``color``'s king.

    Raises:
        InvariantViolation: If there is not exactly one such king.
    """
    kings: List[int] = [
        idx for idx in board.occupied(color) if piece_of(board.squares[idx]) is Piece.KING
    ]
    if len(kings) != 1:
        raise InvariantViolation(f"expected one {color.name.lower()} king, found {len(kings)}")
    return kings[0]


def is_in_check(board: Board, color: Color) -> Tuple[bool, int]:
    """Return ``(in_check, king_square)`` for ``color``."""
    king = find_king(board, color)
    return is_attacked(board, king, color), king
