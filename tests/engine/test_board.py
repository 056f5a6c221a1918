from __future__ import annotations

import pytest

from chessai.engine.board import STARTPOS_FEN, Board
from chessai.engine.move import CASTLE_KINGSIDE, DOUBLE_PUSH, Move, str_to_square


def test_initial_board_matches_startpos_fen() -> None:
    assert Board.initial().to_fen() == STARTPOS_FEN


@pytest.mark.parametrize(
    "fen",
    [
        "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1",
        "r3k2r/8/8/8/8/8/8/R3K2R b Kq - 4 17",
        "rnbqkbnr/1pp1pppp/p7/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
        "8/2p5/3p4/KP5r/1R2Pp1k/8/6P1/8 b - e3 0 1",
    ],
)
def test_fen_round_trip(fen: str) -> None:
    assert Board.from_fen(fen).to_fen() == fen


@pytest.mark.parametrize(
    "fen",
    [
        "",
        "8/8/8/8/8/8/8 w - - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkz - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e9 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - x 1",
    ],
)
def test_from_fen_rejects_malformed_input(fen: str) -> None:
    with pytest.raises(ValueError):
        Board.from_fen(fen)


def test_castling_rights_live_on_pieces() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w Kq - 0 1")
    king = b.piece_at(str_to_square("e1"))
    h1 = b.piece_at(str_to_square("h1"))
    a1 = b.piece_at(str_to_square("a1"))
    assert king is not None and king.castling_rights
    assert h1 is not None and h1.castling_rights
    assert a1 is not None and not a1.castling_rights
    assert b.can_castle(True, str_to_square("h1"))
    assert not b.can_castle(True, str_to_square("a1"))
    assert b.can_castle(False, str_to_square("a8"))


def test_double_push_without_neighbour_leaves_no_target() -> None:
    b = Board.initial()
    b.make_move(Move("P", str_to_square("e2"), str_to_square("e4"), special=DOUBLE_PUSH))
    assert b.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


def test_castling_relocates_rook() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    b.make_move(
        Move("K", str_to_square("e1"), str_to_square("g1"), special=CASTLE_KINGSIDE)
    )
    assert b.to_fen() == "r3k2r/8/8/8/8/8/8/R4RK1 b kq - 1 1"


def test_promotion_substitutes_piece() -> None:
    b = Board.from_fen("8/P7/8/8/8/8/8/k6K w - - 0 1")
    b.make_move(Move("P", str_to_square("a7"), str_to_square("a8"), promotion="N"))
    piece = b.piece_at(str_to_square("a8"))
    assert piece is not None and piece.kind == "N" and piece.white
    assert b.piece_at(str_to_square("a7")) is None


def test_copy_is_independent() -> None:
    b = Board.initial()
    clone = b.copy()
    clone.make_move(Move("N", str_to_square("g1"), str_to_square("f3")))
    assert b.to_fen() == STARTPOS_FEN
    assert clone.to_fen() != STARTPOS_FEN
    assert clone.squares[0] is not b.squares[0]


def test_start_encoding_codes() -> None:
    cells = Board.initial().to_encoding()
    assert len(cells) == 64
    assert cells[0] == 7  # white rook a1
    assert cells[4] == 11  # white king e1
    assert cells[8] == 1  # white pawn a2
    assert cells[48] == 2  # black pawn a7
    assert cells[59] == 10  # black queen d8
    assert cells[60] == 12  # black king e8
    assert cells[27] == 0


def test_from_encoding_round_trip_and_inferred_castling() -> None:
    start = Board.initial()
    b = Board.from_encoding(start.to_encoding(), white_to_move=True)
    assert b.to_encoding() == start.to_encoding()
    assert b.to_fen().split()[:3] == ["rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR", "w", "KQkq"]

    black = Board.from_encoding(start.to_encoding(), white_to_move=False)
    assert not black.white_to_move


def test_from_encoding_loses_en_passant() -> None:
    fen = "rnbqkbnr/1pp1pppp/p7/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3"
    b = Board.from_encoding(Board.from_fen(fen).to_encoding(), white_to_move=True)
    assert b.en_passant_target() is None


@pytest.mark.parametrize(
    "cells",
    [
        [0] * 63,
        [0] * 65,
        [13] + [0] * 63,
        [-1] + [0] * 63,
    ],
)
def test_from_encoding_rejects_bad_cells(cells: list[int]) -> None:
    with pytest.raises(ValueError):
        Board.from_encoding(cells, white_to_move=True)
