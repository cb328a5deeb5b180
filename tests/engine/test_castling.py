from __future__ import annotations

from chessrules.engine.board import Board, Color, Piece
from chessrules.engine.game import Game
from chessrules.engine.move import square_to_str, str_to_square as sq
from chessrules.engine.movegen import legal_targets


EMPTY = "........"


def _board(side: Color = Color.WHITE, **ranks: str) -> Board:
    layout = [ranks.get(f"r{n}", EMPTY) for n in range(8, 0, -1)]
    return Board.from_ranks(layout, side)


def _king_targets(b: Board, name: str = "e1") -> set[str]:
    return {square_to_str(t) for t in legal_targets(b, sq(name))}


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    b = _board(r8="r...k..r", r1="R...K..R")
    targets = _king_targets(b)
    assert "g1" in targets
    assert "c1" in targets


def test_castling_blocked_when_in_check() -> None:
    b = _board(r8="....r.k.", r1="R...K..R")
    targets = _king_targets(b)
    assert "g1" not in targets
    assert "c1" not in targets


def test_castling_blocked_by_piece_between_king_and_rook() -> None:
    b = _board(r8="....k...", r1="RN..K..R")
    targets = _king_targets(b)
    assert "c1" not in targets
    assert "g1" in targets


def test_castling_through_attacked_square_excluded() -> None:
    # f1 is covered by the rook on f8
    b = _board(r8=".....rk.", r1="R...K..R")
    targets = _king_targets(b)
    assert "g1" not in targets
    assert "c1" in targets


def test_castling_into_attacked_square_excluded() -> None:
    b = _board(r8="....k.r.", r1="R...K..R")
    targets = _king_targets(b)
    assert "g1" not in targets
    assert "c1" in targets


def test_attacked_b1_does_not_prevent_queenside() -> None:
    b = _board(r8=".r..k...", r1="R...K..R")
    assert "c1" in _king_targets(b)


def test_moved_king_cannot_castle() -> None:
    b = _board(r8="....k...", r1="R...K..R")
    b.set(sq("e1"), Piece.KING, Color.WHITE, virgin=False)
    targets = _king_targets(b)
    assert "g1" not in targets
    assert "c1" not in targets
    assert {"f1", "d1"} <= targets


def test_moved_rook_cannot_castle() -> None:
    b = _board(r8="....k...", r1="R...K..R")
    b.set(sq("h1"), Piece.ROOK, Color.WHITE, virgin=False)
    targets = _king_targets(b)
    assert "g1" not in targets
    assert "c1" in targets


def test_castling_relocates_rook_and_clears_virgin_flags() -> None:
    game = Game.from_ranks(["r...k..r", EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, "R...K..R"])
    outcome = game.try_move(sq("e1"), sq("g1"))
    assert outcome.accepted
    b = game.board
    assert b.get(sq("g1")) == (Piece.KING, Color.WHITE)
    assert b.get(sq("f1")) == (Piece.ROOK, Color.WHITE)
    assert b.get(sq("h1")) == (Piece.NONE, Color.NONE)
    assert b.get(sq("e1")) == (Piece.NONE, Color.NONE)
    assert not b.is_virgin(sq("g1"))
    assert not b.is_virgin(sq("f1"))
    # the other rook keeps its flag
    assert b.is_virgin(sq("a1"))


def test_black_queenside_castling() -> None:
    game = Game.from_ranks(
        ["r...k..r", EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, "R...K..R"], Color.BLACK
    )
    outcome = game.try_move(sq("e8"), sq("c8"))
    assert outcome.accepted
    b = game.board
    assert b.get(sq("c8")) == (Piece.KING, Color.BLACK)
    assert b.get(sq("d8")) == (Piece.ROOK, Color.BLACK)
    assert b.get(sq("a8")) == (Piece.NONE, Color.NONE)
    assert b.side_to_move is Color.WHITE


def test_castling_rights_lost_after_king_moves_back() -> None:
    game = Game.from_ranks(["r...k..r", EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, EMPTY, "R...K..R"])
    assert game.try_move(sq("e1"), sq("f1")).accepted
    assert game.try_move(sq("e8"), sq("f8")).accepted
    assert game.try_move(sq("f1"), sq("e1")).accepted
    assert game.try_move(sq("f8"), sq("e8")).accepted
    assert not game.is_legal_move(sq("e1"), sq("g1"))
    assert not game.is_legal_move(sq("e1"), sq("c1"))
