from __future__ import annotations

from fastapi.testclient import TestClient

from chessrules.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app())


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert "game_id" in body and isinstance(body["game_id"], str) and body["game_id"]
    assert body["side_to_move"] == "white"
    game_id = body["game_id"]

    r2 = client.get(f"/api/games/{game_id}/state")
    assert r2.status_code == 200
    state = r2.json()
    assert state["game_id"] == game_id
    assert state["side_to_move"] == "white"
    assert len(state["pieces"]) == 32
    assert state["check_square"] is None
    assert state["result"] == "none"
    assert state["draw_claimable"] is False
    assert state["en_passant"] is None
    assert state["halfmove_clock"] == 0
    assert state["last_move"] is None
    e1 = next(p for p in state["pieces"] if p["square"] == "e1")
    assert e1 == {"square": "e1", "piece": "king", "color": "white", "virgin": True}


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    body = r.json()
    assert "error" in body
    assert body["error"]["code"] == "not_found"


def test_delete_game() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    r = client.delete(f"/api/games/{game_id}")
    assert r.status_code == 200
    assert client.get(f"/api/games/{game_id}/state").status_code == 404
    assert client.delete(f"/api/games/{game_id}").status_code == 404


def test_square_query() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    r = client.get(f"/api/games/{game_id}/squares/e7")
    assert r.status_code == 200
    assert r.json() == {"square": "e7", "piece": "pawn", "color": "black", "virgin": False}

    empty = client.get(f"/api/games/{game_id}/squares/e4").json()
    assert empty["piece"] is None and empty["color"] is None

    bad = client.get(f"/api/games/{game_id}/squares/z9")
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "bad_request"


def test_moves_and_legality_queries() -> None:
    client = _client()
    game_id = client.post("/api/games").json()["game_id"]
    r = client.get(f"/api/games/{game_id}/moves/g1")
    assert r.status_code == 200
    assert sorted(r.json()["targets"]) == ["f3", "h3"]

    legal = client.get(f"/api/games/{game_id}/legal", params={"start": "e2", "target": "e4"})
    assert legal.json() == {"start": "e2", "target": "e4", "legal": True, "promotion": False}
    illegal = client.get(f"/api/games/{game_id}/legal", params={"start": "e2", "target": "e5"})
    assert illegal.json()["legal"] is False
