from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .attacks import is_in_check
from .board import Board, Color, Piece, index_to_coords, is_off_board, is_pawn
from .move import PROMOTION_KINDS, Move
from .movegen import find_move, generate_moves, has_any_legal_moves, is_promotion_square
from .zobrist import hash_position


logger = logging.getLogger(__name__)

FIFTY_MOVE_HALFMOVES = 100
REPETITION_LIMIT = 3


class MoveResult(str, Enum):
    NONE = "none"
    WHITE_CHECKMATED = "white_checkmated"
    BLACK_CHECKMATED = "black_checkmated"
    STALEMATE = "stalemate"


class Rejection(str, Enum):
    WRONG_SIDE = "wrong_side"
    ILLEGAL_MOVE = "illegal_move"
    BAD_PROMOTION = "bad_promotion"


@dataclass(frozen=True)
class MoveOutcome:
    """Result of ``Game.try_move``.

    Attributes:
        accepted (bool): Whether the move was played.
        result (MoveResult): Game-end classification after an accepted move.
        rejection (Optional[Rejection]): Why the move was refused, if it was.
        move (Optional[Move]): The move that was played.
    """

    accepted: bool
    result: MoveResult = MoveResult.NONE
    rejection: Optional[Rejection] = None
    move: Optional[Move] = None

    @classmethod
    def rejected(cls, reason: Rejection) -> "MoveOutcome":
        return cls(accepted=False, rejection=reason)


@dataclass
class Game:
    """One game: a board plus the draw bookkeeping around it.

    Responsibility: validate and play moves, classify the game state, and
    revert the single last move. Not safe for concurrent use; keep one
    instance per game and one call in flight at a time.
    """

    board: Board
    repetition: Dict[int, int] = field(default_factory=dict)
    last_move: Optional[Move] = None
    result: MoveResult = MoveResult.NONE
    draw_claimable: bool = False

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_ranks(cls, ranks: Sequence[str], side_to_move: Color = Color.WHITE) -> "Game":
        return cls(board=Board.from_ranks(ranks, side_to_move))

    def __post_init__(self) -> None:
        # Seed repetition with the starting position
        h = hash_position(self.board)
        self.repetition[h] = self.repetition.get(h, 0) + 1

    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    # --- Queries ---
    def piece_at(self, square: int) -> Tuple[Piece, Color]:
        return self.board.get(_require_square(square))

    def piece_at_coords(self, rank: int, file: int) -> Tuple[Piece, Color]:
        return self.board.get_coords(rank, file)

    def is_virgin(self, square: int) -> bool:
        return self.board.is_virgin(_require_square(square))

    def legal_moves(self, start: int) -> List[Move]:
        return list(generate_moves(self.board, _require_square(start)))

    def is_legal_move(self, start: int, target: int) -> bool:
        return find_move(self.board, _require_square(start), _require_square(target)) is not None

    def is_promoting_move(self, start: int, target: int) -> bool:
        piece, color = self.piece_at(start)
        return is_pawn(piece) and is_promotion_square(color, _require_square(target))

    def check_square(self) -> Optional[int]:
        """Square of the king currently in check (White looked at first)."""
        for color in (Color.WHITE, Color.BLACK):
            in_check, king = is_in_check(self.board, color)
            if in_check:
                return king
        return None

    def check_coords(self) -> Optional[Tuple[int, int]]:
        square = self.check_square()
        return None if square is None else index_to_coords(square)

    def in_check(self) -> bool:
        return is_in_check(self.board, self.board.side_to_move)[0]

    # --- Mutation ---
    def try_move(
        self, start: int, target: int, promotion: Optional[Piece] = None
    ) -> MoveOutcome:
        """Validate and play a move for the side to move.

        Args:
            start: 0x88 origin square.
            target: 0x88 destination square.
            promotion: Piece kind a pawn reaching its last rank becomes;
                required for such moves and refused for any other.

        Returns:
            MoveOutcome: Rejections leave the game untouched.
        """
        board = self.board
        piece, color = board.get(_require_square(start))
        _require_square(target)
        if promotion is Piece.NONE:
            promotion = None

        if piece is Piece.NONE:
            return self._reject(Rejection.ILLEGAL_MOVE, start, target)
        if color != board.side_to_move:
            return self._reject(Rejection.WRONG_SIDE, start, target)

        move = find_move(board, start, target)
        if move is None:
            return self._reject(Rejection.ILLEGAL_MOVE, start, target)

        promoting = is_pawn(piece) and is_promotion_square(color, target)
        if promoting and promotion not in PROMOTION_KINDS:
            return self._reject(Rejection.BAD_PROMOTION, start, target)
        if not promoting and promotion is not None:
            return self._reject(Rejection.BAD_PROMOTION, start, target)

        board.apply(move, promotion)
        if move.is_capture or is_pawn(piece):
            board.halfmove_clock = 0
        else:
            board.halfmove_clock += 1
        board.ep_target = move.next_ep_target
        board.side_to_move = color.opposite
        self.last_move = move

        h = hash_position(board)
        self.repetition[h] = self.repetition.get(h, 0) + 1

        self.result = self._classify(board.side_to_move)
        self.draw_claimable = self._draw_claimable(h)
        logger.debug(
            "move accepted",
            extra={"move": move.to_uci(), "result": self.result.value, "draw": self.draw_claimable},
        )
        if self.result is not MoveResult.NONE:
            logger.info("game over: %s", self.result.value)
        return MoveOutcome(accepted=True, result=self.result, move=move)

    def undo_last_move(self) -> Move:
        """Revert the last accepted move and hand it back.

        Only one level is kept. The en-passant target and half-move clock
        are not restored; this is meant for withdrawing a move that was just
        played, not for walking back through a game.

        Raises:
            ValueError: If there is no move to undo.
        """
        move = self.last_move
        if move is None:
            raise ValueError("no move to undo")
        board = self.board
        curr = hash_position(board)
        if curr in self.repetition:
            self.repetition[curr] -= 1
            if self.repetition[curr] <= 0:
                del self.repetition[curr]
        board.unapply(move)
        board.side_to_move = board.side_to_move.opposite
        self.last_move = None
        self.result = MoveResult.NONE
        self.draw_claimable = self._draw_claimable(hash_position(board))
        logger.debug("move undone", extra={"move": move.to_uci()})
        return move

    # --- Internals ---
    def _classify(self, color: Color) -> MoveResult:
        in_check, _ = is_in_check(self.board, color)
        if has_any_legal_moves(self.board, color):
            return MoveResult.NONE
        if in_check:
            return MoveResult.WHITE_CHECKMATED if color is Color.WHITE else MoveResult.BLACK_CHECKMATED
        return MoveResult.STALEMATE

    def _draw_claimable(self, h: int) -> bool:
        return (
            self.board.halfmove_clock >= FIFTY_MOVE_HALFMOVES
            or self.repetition.get(h, 0) >= REPETITION_LIMIT
        )

    def _reject(self, reason: Rejection, start: int, target: int) -> MoveOutcome:
        logger.debug("move rejected", extra={"reason": reason.value, "start": start, "target": target})
        return MoveOutcome.rejected(reason)


def _require_square(square: int) -> int:
    if not isinstance(square, int) or square < 0 or is_off_board(square):
        raise ValueError(f"invalid square index: {square!r}")
    return square
