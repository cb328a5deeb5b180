from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from .attacks import (
    ALL_DIRECTIONS,
    DIAGONAL_OFFSETS,
    KNIGHT_OFFSETS,
    ORTHOGONAL_OFFSETS,
    find_king,
    is_attacked,
)
from .board import (
    EMPTY,
    Board,
    Color,
    Piece,
    color_of,
    is_off_board,
    is_pawn,
    piece_of,
    rank_of,
)
from .move import Move


OFFSETS: Dict[Piece, Tuple[int, ...]] = {
    Piece.WHITE_PAWN: (16, 32, 15, 17),
    Piece.BLACK_PAWN: (-16, -32, -15, -17),
    Piece.KNIGHT: KNIGHT_OFFSETS,
    Piece.BISHOP: DIAGONAL_OFFSETS,
    Piece.ROOK: ORTHOGONAL_OFFSETS,
    Piece.QUEEN: ALL_DIRECTIONS,
    Piece.KING: ALL_DIRECTIONS + (2, -2),
}
SLIDERS = frozenset((Piece.BISHOP, Piece.ROOK, Piece.QUEEN))
PAWN_HOME_RANK = {Color.WHITE: 1, Color.BLACK: 6}
PROMOTION_RANK = {Color.WHITE: 7, Color.BLACK: 0}

MAX_SLIDE = 7


def generate_moves(board: Board, start: int) -> Iterator[Move]:
    """Lazily yield the legal moves of the piece standing on ``start``.

    Every candidate, castling included, is applied, the mover's king is tested
    for check and the candidate is unapplied again before it is yielded, so
    the board is unchanged whenever the caller sees a move. The sequence is
    only valid for the board state it was started on.
    """
    piece, color = board.get(start)
    if piece is Piece.NONE:
        return

    squares = board.squares
    # the king only changes square when it is the piece moving
    own_king = None if piece is Piece.KING else find_king(board, color)
    max_steps = MAX_SLIDE if piece in SLIDERS else 1
    for offset in OFFSETS[piece]:
        target = start
        for _ in range(max_steps):
            target += offset
            if is_off_board(target):
                break
            value = squares[target]
            if value != EMPTY and color_of(value) == color:
                break

            capture_square = target
            next_ep: Optional[int] = None
            if piece is Piece.KING and offset in (2, -2):
                if not _can_castle(board, start, offset, color):
                    break
            elif is_pawn(piece):
                step = _pawn_step(board, color, start, offset)
                if step is None:
                    break
                capture_square, next_ep = step

            move = Move(
                start=start,
                target=target,
                start_value=squares[start],
                captured_value=squares[capture_square],
                capture_square=capture_square,
                next_ep_target=next_ep,
            )
            board.apply(move)
            in_check = is_attacked(board, target if own_king is None else own_king, color)
            board.unapply(move)
            if not in_check:
                yield move

            if move.is_capture:
                break


def _pawn_step(
    board: Board, color: Color, start: int, offset: int
) -> Optional[Tuple[int, Optional[int]]]:
    """Validate a pawn offset.

    Returns ``(capture_square, next_ep_target)`` for a valid step or None.
    """
    squares = board.squares
    target = start + offset
    target_empty = squares[target] == EMPTY

    if abs(offset) == 32:
        skipped = start + offset // 2
        if (
            rank_of(start) == PAWN_HOME_RANK[color]
            and target_empty
            and squares[skipped] == EMPTY
        ):
            return target, target
        return None

    diagonal = (offset & 1) == 1
    if not diagonal:
        return (target, None) if target_empty else None

    # own pieces were already excluded by the caller
    if not target_empty:
        return target, None

    ep = board.ep_target
    if ep is None:
        return None
    beside = target - (16 if offset > 0 else -16)
    ep_value = squares[ep]
    if beside == ep and is_pawn(piece_of(ep_value)) and color_of(ep_value) != color:
        return ep, None
    return None


def _can_castle(board: Board, start: int, offset: int, color: Color) -> bool:
    if not board.is_virgin(start):
        return False
    rook_square = start + 3 if offset > 0 else start - 4
    if is_off_board(rook_square):
        return False
    rook_value = board.squares[rook_square]
    if not (
        piece_of(rook_value) is Piece.ROOK
        and color_of(rook_value) == color
        and board.is_virgin(rook_square)
    ):
        return False
    low, high = min(start, rook_square), max(start, rook_square)
    if any(board.squares[idx] != EMPTY for idx in range(low + 1, high)):
        return False
    passed = start + offset // 2
    return not (
        is_attacked(board, start, color)
        or is_attacked(board, passed, color)
        or is_attacked(board, start + offset, color)
    )


def find_move(board: Board, start: int, target: int) -> Optional[Move]:
    """Return the legal move from ``start`` to ``target``, or None."""
    for move in generate_moves(board, start):
        if move.target == target:
            return move
    return None


def legal_targets(board: Board, start: int) -> List[int]:
    return [move.target for move in generate_moves(board, start)]


def has_any_legal_moves(board: Board, color: Color) -> bool:
    for idx in board.occupied(color):
        if next(generate_moves(board, idx), None) is not None:
            return True
    return False


def is_promotion_square(color: Color, target: int) -> bool:
    return rank_of(target) == PROMOTION_RANK.get(color, -1)
