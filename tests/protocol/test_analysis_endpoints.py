from __future__ import annotations

from fastapi.testclient import TestClient

from chessai.engine.board import STARTPOS_FEN, Board
from chessai.protocol.http.app import create_app


def test_evaluate_start_position() -> None:
    client = TestClient(create_app())
    r = client.post("/api/evaluate", json={"encoding": Board.initial().to_encoding()})
    assert r.status_code == 200
    assert r.json() == {"score": 1.0}


def test_evaluate_rejects_unknown_code() -> None:
    client = TestClient(create_app())
    cells = [0] * 64
    cells[10] = 99
    r = client.post("/api/evaluate", json={"encoding": cells, "move_count": 3})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_perft_endpoint() -> None:
    client = TestClient(create_app())
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}


def test_perft_endpoint_rejects_bad_fen_and_depth() -> None:
    client = TestClient(create_app())
    r = client.post("/api/perft", json={"fen": "not a fen", "depth": 1})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "invalid FEN"

    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 9})
    assert r.status_code == 422
