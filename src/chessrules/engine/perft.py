from __future__ import annotations

from typing import List, Optional

from .board import Board, Piece, is_pawn
from .movegen import generate_moves, is_promotion_square


PERFT_PROMOTIONS = (Piece.KNIGHT, Piece.BISHOP, Piece.ROOK, Piece.QUEEN)


def perft(board: Board, depth: int) -> int:
    """Compute perft node count for ``board`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Each pawn move onto the last rank counts once per promotion piece. The
    board is walked with apply/unapply and is left as it was found.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    color = board.side_to_move
    saved_ep, saved_clock = board.ep_target, board.halfmove_clock
    nodes = 0
    for start in list(board.occupied(color)):
        # materialize: children mutate the board between generator steps
        for move in list(generate_moves(board, start)):
            promotions: List[Optional[Piece]] = [None]
            if is_pawn(move.piece) and is_promotion_square(color, move.target):
                promotions = list(PERFT_PROMOTIONS)
            for promotion in promotions:
                if depth == 1:
                    nodes += 1
                    continue
                board.apply(move, promotion)
                board.ep_target = move.next_ep_target
                board.side_to_move = color.opposite
                nodes += perft(board, depth - 1)
                board.unapply(move)
                board.side_to_move = color
                board.ep_target, board.halfmove_clock = saved_ep, saved_clock
    return nodes
