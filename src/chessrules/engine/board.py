from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .move import Move


class Piece(IntEnum):
    """Piece kinds as stored in the low three bits of a square value.

    Pawns are colour-specific because they move in opposite directions.
    """

    NONE = 0
    WHITE_PAWN = 1
    BLACK_PAWN = 2
    KNIGHT = 3
    KING = 4
    BISHOP = 5
    ROOK = 6
    QUEEN = 7

    @property
    def letter(self) -> str:
        return _PIECE_TO_LETTER[self]


class Color(IntEnum):
    NONE = 0
    WHITE = 0x10
    BLACK = 0x20

    @property
    def opposite(self) -> "Color":
        if self is Color.WHITE:
            return Color.BLACK
        if self is Color.BLACK:
            return Color.WHITE
        return Color.NONE


EMPTY = 0
PIECE_MASK = 0x07
COLOR_MASK = Color.WHITE | Color.BLACK
VIRGIN = 0x40
BOARD_SIZE = 128

_PIECE_TO_LETTER = {
    Piece.NONE: ".",
    Piece.WHITE_PAWN: "p",
    Piece.BLACK_PAWN: "p",
    Piece.KNIGHT: "n",
    Piece.KING: "k",
    Piece.BISHOP: "b",
    Piece.ROOK: "r",
    Piece.QUEEN: "q",
}
_LETTER_TO_PIECE = {
    "n": Piece.KNIGHT,
    "b": Piece.BISHOP,
    "r": Piece.ROOK,
    "q": Piece.QUEEN,
    "k": Piece.KING,
}

STARTPOS_RANKS = (
    "rnbqkbnr",
    "pppppppp",
    "........",
    "........",
    "........",
    "........",
    "PPPPPPPP",
    "RNBQKBNR",
)


def is_off_board(idx: int) -> bool:
    return (idx & 0x88) != 0


def coords_to_index(rank: int, file: int) -> int:
    """Return the 0x88 index of ``(rank, file)``, both 0-based from a1."""
    if not (0 <= rank < 8 and 0 <= file < 8):
        raise ValueError(f"invalid coordinates: rank={rank} file={file}")
    return rank * 16 + file


def index_to_coords(idx: int) -> Tuple[int, int]:
    return idx >> 4, idx & 7


def rank_of(idx: int) -> int:
    return idx >> 4


def real_squares() -> Iterator[int]:
    """Yield the 64 on-board 0x88 indices, a1 first, h8 last."""
    idx = 0
    for _ in range(64):
        yield idx
        # skip the 8 off-board slots at the end of each rank
        idx = (idx + 9) & ~8


def piece_of(value: int) -> Piece:
    return Piece(value & PIECE_MASK)


def color_of(value: int) -> Color:
    if value == EMPTY:
        return Color.NONE
    return Color.WHITE if value & Color.WHITE else Color.BLACK


def is_pawn(piece: Piece) -> bool:
    return piece in (Piece.WHITE_PAWN, Piece.BLACK_PAWN)


def pawn_for(color: Color) -> Piece:
    return Piece.WHITE_PAWN if color is Color.WHITE else Piece.BLACK_PAWN


def encode(piece: Piece, color: Color, virgin: bool = False) -> int:
    if piece is Piece.NONE:
        return EMPTY
    return int(piece) | int(color) | (VIRGIN if virgin else 0)


def letter_to_piece(ch: str) -> Tuple[Piece, Color]:
    """Decode a layout letter; anything unknown is an empty square."""
    lower = ch.lower()
    color = Color.WHITE if ch.isupper() else Color.BLACK
    if lower == "p":
        return pawn_for(color), color
    piece = _LETTER_TO_PIECE.get(lower)
    if piece is None:
        return Piece.NONE, Color.NONE
    return piece, color


@dataclass
class Board:
    """Mutable 0x88 board plus the per-move state needed for move generation.

    Notes:
    - ``squares`` holds one packed value per 0x88 slot: piece kind in bits
      0-2, colour in bits 4-5, virgin (never moved) flag in bit 6.
    - Rank 0 is White's back rank, so a1 is index 0 and h8 is 0x77.
    - ``ep_target`` is the square of the pawn that just made a double step,
      i.e. the pawn that may be captured en passant on this move only.
    """

    squares: List[int] = field(default_factory=lambda: [EMPTY] * BOARD_SIZE)
    side_to_move: Color = Color.WHITE
    ep_target: Optional[int] = None
    halfmove_clock: int = 0

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board with the standard starting layout, White to move."""
        return cls.from_ranks(STARTPOS_RANKS)

    @classmethod
    def from_ranks(cls, ranks: Sequence[str], side_to_move: Color = Color.WHITE) -> "Board":
        """Build a board from eight layout strings.

        Args:
            ranks: Eight 8-character strings, rank 8 first (the order a
                diagram is read in). See ``set_rank`` for the letters.
            side_to_move: Colour on move.

        Raises:
            ValueError: If ``ranks`` does not hold exactly eight layouts.
        """
        if len(ranks) != 8:
            raise ValueError("layout must have 8 ranks")
        board = cls(side_to_move=side_to_move)
        for i, layout in enumerate(ranks):
            board.set_rank(7 - i, layout)
        return board

    def set_rank(self, rank: int, layout: str) -> None:
        """Seed one rank from an 8-character layout string.

        Upper case letters are White, lower case Black; ``p n b r q k`` are
        pawn, knight, bishop, rook, queen and king, any other character leaves
        the square empty. Kings and rooks are placed with the virgin flag.
        """
        if not 0 <= rank < 8:
            raise ValueError(f"invalid rank: {rank}")
        if len(layout) != 8:
            raise ValueError(f"rank layout must have 8 squares: {layout!r}")
        for file, ch in enumerate(layout):
            piece, color = letter_to_piece(ch)
            virgin = piece in (Piece.KING, Piece.ROOK)
            self.squares[rank * 16 + file] = encode(piece, color, virgin)

    # --- Square access ---
    def value(self, idx: int) -> int:
        return self.squares[idx]

    def get(self, idx: int) -> Tuple[Piece, Color]:
        value = self.squares[idx]
        return piece_of(value), color_of(value)

    def get_coords(self, rank: int, file: int) -> Tuple[Piece, Color]:
        return self.get(coords_to_index(rank, file))

    def set(self, idx: int, piece: Piece, color: Color, virgin: bool = False) -> None:
        self.squares[idx] = encode(piece, color, virgin)

    def is_virgin(self, idx: int) -> bool:
        return (self.squares[idx] & VIRGIN) == VIRGIN

    def occupied(self, color: Optional[Color] = None) -> Iterator[int]:
        """Yield occupied on-board squares, optionally only those of ``color``."""
        for idx in real_squares():
            value = self.squares[idx]
            if value == EMPTY:
                continue
            if color is None or color_of(value) == color:
                yield idx

    # --- Make / unmake ---
    def apply(self, move: "Move", promotion: Optional[Piece] = None) -> None:
        """Write ``move`` onto the board.

        Only the squares are touched; side to move, en-passant target and the
        half-move clock belong to the caller.
        """
        squares = self.squares
        squares[move.start] = EMPTY
        # en passant captures a pawn that is not on the target square
        squares[move.capture_square] = EMPTY
        if promotion is None or promotion is Piece.NONE:
            squares[move.target] = move.start_value & ~VIRGIN
        else:
            squares[move.target] = encode(promotion, color_of(move.start_value))

        if move.is_castle:
            color = color_of(move.start_value)
            rook_from, rook_to = _castle_rook_squares(move)
            squares[rook_from] = EMPTY
            squares[rook_to] = encode(Piece.ROOK, color)

    def unapply(self, move: "Move") -> None:
        """Restore the squares touched by the most recently applied ``move``."""
        squares = self.squares
        squares[move.start] = move.start_value
        squares[move.target] = EMPTY
        squares[move.capture_square] = move.captured_value

        if move.is_castle:
            color = color_of(move.start_value)
            rook_from, rook_to = _castle_rook_squares(move)
            squares[rook_from] = encode(Piece.ROOK, color, virgin=True)
            squares[rook_to] = EMPTY

    def ascii(self) -> str:
        """Diagram of the board, rank 8 first; White upper case."""
        rows = []
        for rank in range(7, -1, -1):
            row = []
            for file in range(8):
                piece, color = self.get(rank * 16 + file)
                ch = piece.letter
                row.append(ch.upper() if color is Color.WHITE else ch)
            rows.append("".join(row))
        return "\n".join(rows)


def _castle_rook_squares(move: "Move") -> Tuple[int, int]:
    if move.target > move.start:
        return move.start + 3, move.target - 1
    return move.start - 4, move.target + 1
