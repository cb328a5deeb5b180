from __future__ import annotations

from chessrules.engine.board import Board, Color, Piece
from chessrules.engine.game import Game
from chessrules.engine.move import square_to_str, str_to_square as sq
from chessrules.engine.movegen import find_move, legal_targets


def _play(game: Game, *moves: str) -> None:
    for uci in moves:
        outcome = game.try_move(sq(uci[:2]), sq(uci[2:4]))
        assert outcome.accepted, uci


def test_white_en_passant_right_after_double_step() -> None:
    game = Game.new()
    _play(game, "e2e4", "a7a6", "e4e5", "d7d5")
    assert game.board.ep_target == sq("d5")
    assert game.is_legal_move(sq("e5"), sq("d6"))

    outcome = game.try_move(sq("e5"), sq("d6"))
    assert outcome.accepted
    assert outcome.move is not None and outcome.move.is_en_passant
    b = game.board
    assert b.get(sq("d6")) == (Piece.WHITE_PAWN, Color.WHITE)
    assert b.get(sq("d5")) == (Piece.NONE, Color.NONE)
    assert b.get(sq("e5")) == (Piece.NONE, Color.NONE)
    assert b.halfmove_clock == 0
    assert b.ep_target is None


def test_en_passant_expires_after_one_move() -> None:
    game = Game.new()
    _play(game, "e2e4", "a7a6", "e4e5", "d7d5", "h2h3", "a6a5")
    assert game.board.ep_target is None
    assert not game.is_legal_move(sq("e5"), sq("d6"))


def test_black_en_passant() -> None:
    b = Board.from_ranks(
        ["....k...", "........", "........", "........", "...pP...", "........", "........", "....K..."],
        Color.BLACK,
    )
    b.ep_target = sq("e4")
    move = find_move(b, sq("d4"), sq("e3"))
    assert move is not None
    assert move.capture_square == sq("e4")
    assert move.captured_value != 0


def test_en_passant_needs_adjacent_double_stepped_pawn() -> None:
    game = Game.new()
    # the d-pawn arrives on d5 in two single steps: no en passant
    _play(game, "e2e4", "d7d6", "e4e5", "d6d5")
    assert game.board.ep_target is None
    assert not game.is_legal_move(sq("e5"), sq("d6"))


def test_en_passant_that_exposes_king_is_excluded() -> None:
    # capturing would clear both pawns from the fifth rank and open the rook's line
    b = Board.from_ranks(
        ["....k...", "........", "........", "KPp....r", "........", "........", "........", "........"]
    )
    b.ep_target = sq("c5")
    targets = {square_to_str(t) for t in legal_targets(b, sq("b5"))}
    assert "c6" not in targets
    assert "b6" in targets
