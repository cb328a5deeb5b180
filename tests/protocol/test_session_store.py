from __future__ import annotations

import pytest
from fastapi import HTTPException

from chessrules.engine.game import Game
from chessrules.engine.move import str_to_square as sq
from chessrules.protocol.http.app import _checkout
from chessrules.protocol.http.session import InMemorySessionStore


def test_create_checkout_delete() -> None:
    store = InMemorySessionStore()
    gid = store.create()
    assert store.exists(gid)
    assert len(store) == 1
    with store.checkout(gid) as game:
        assert isinstance(game, Game)
        assert game.try_move(sq("e2"), sq("e4")).accepted
    with store.checkout(gid) as game:
        assert game.last_move is not None
    assert store.delete(gid)
    assert not store.delete(gid)
    assert len(store) == 0


def test_checkout_unknown_game_raises() -> None:
    store = InMemorySessionStore()
    with pytest.raises(KeyError):
        with store.checkout("missing"):
            pass


def test_sessions_are_independent() -> None:
    store = InMemorySessionStore()
    a = store.create()
    b = store.create(Game.new())
    assert a != b
    with store.checkout(a) as game:
        game.try_move(sq("e2"), sq("e4"))
    with store.checkout(b) as game:
        assert game.last_move is None


def test_app_checkout_maps_missing_session_to_404() -> None:
    store = InMemorySessionStore()
    gid = store.create()
    # deleted after the route looked it up
    store.delete(gid)
    with pytest.raises(HTTPException) as excinfo:
        with _checkout(store, gid):
            pass
    assert excinfo.value.status_code == 404


def test_app_checkout_does_not_swallow_key_errors_from_body() -> None:
    store = InMemorySessionStore()
    gid = store.create()
    with pytest.raises(KeyError):
        with _checkout(store, gid):
            raise KeyError("inner")
