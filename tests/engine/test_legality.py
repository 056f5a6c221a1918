from __future__ import annotations

from chessai.engine.board import Board
from chessai.engine.game import Game
from chessai.engine.legality import analyze, attackers, is_square_safe, squares_between
from chessai.engine.move import str_to_square


def _play(game: Game, *moves: str) -> Game:
    for mv in moves:
        assert game.apply_move(mv), mv
    return game


def test_start_position_only_side_to_move_has_moves() -> None:
    pos = analyze(Board.initial())
    assert len(pos.white_moves) == 20
    assert pos.black_moves == {}
    assert not pos.white_in_check and not pos.black_in_check
    assert not pos.game_over


def test_after_e4_e5_nobody_in_check() -> None:
    g = _play(Game.new(), "e4", "e5")
    assert g.in_check() == 0
    assert not g.game_over
    assert len(g.white_moves()) > 0


def test_en_passant_available_for_one_reply() -> None:
    g = _play(Game.new(), "e4", "a6", "e5", "d5")
    assert "exd6" in g.white_moves()
    assert g.to_fen() == "rnbqkbnr/1pp1pppp/p7/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3"

    taken = g.child("exd6")
    assert taken.board.piece_at(str_to_square("d5")) is None
    pawn = taken.board.piece_at(str_to_square("d6"))
    assert pawn is not None and pawn.kind == "P" and pawn.white

    _play(g, "Nf3", "h6")
    assert "exd6" not in g.white_moves()


def test_en_passant_that_exposes_king_on_rank_is_illegal() -> None:
    g = Game.from_fen("8/2p5/3p4/KP5r/1R2Pp1k/8/6P1/8 b - e3 0 1")
    assert "fxe3" not in g.black_moves()
    assert g.black_moves()


def test_en_passant_can_capture_checking_pawn() -> None:
    g = _play(Game.from_fen("8/8/8/4k3/4p3/8/3P4/3K4 w - - 0 1"), "d4")
    assert g.in_check() == 1
    assert "exd3" in g.black_moves()


def test_castling_available_when_clear() -> None:
    g = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    assert {"O-O", "O-O-O"} <= g.white_moves()


def test_castling_lost_after_king_moves_and_returns() -> None:
    g = _play(Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"), "Kd1", "Kd8", "Ke1", "Ke8")
    assert "O-O" not in g.white_moves()
    assert "O-O-O" not in g.white_moves()
    assert g.to_fen().split()[2] == "-"


def test_castling_lost_on_one_side_after_rook_moves_and_returns() -> None:
    g = _play(Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"), "Rh2", "Rh7", "Rh1", "Rh8")
    assert "O-O" not in g.white_moves()
    assert "O-O-O" in g.white_moves()
    assert g.to_fen().split()[2] == "Qq"


def test_castling_through_attacked_square_removed() -> None:
    g = Game.from_fen("r3k2r/8/8/8/8/8/5r2/R3K2R w KQkq - 0 1")
    moves = g.white_moves()
    assert "O-O" not in moves
    assert "O-O-O" in moves


def test_castling_blocked_while_in_check() -> None:
    g = Game.from_fen("4rk2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert g.in_check() == -1
    assert "O-O" not in g.white_moves()
    assert "O-O-O" not in g.white_moves()


def test_pinned_knight_cannot_move() -> None:
    g = Game.from_fen("4r1k1/8/8/8/8/8/4N3/4K3 w - - 0 1")
    assert not any(m.startswith("N") for m in g.white_moves())
    assert g.position.notes.pinned[str_to_square("e2")]


def test_pinned_rook_moves_along_pin_line() -> None:
    g = Game.from_fen("4r1k1/8/8/8/8/8/4R3/4K3 w - - 0 1")
    moves = g.white_moves()
    assert {"Re3", "Re7", "Rxe8"} <= moves
    assert "Rd2" not in moves


def test_single_check_resolved_by_block_or_king_step() -> None:
    g = Game.from_fen("4k3/8/8/8/8/8/3B4/r3K3 w - - 0 1")
    assert g.in_check() == -1
    assert g.white_moves() == {"Bc1", "Ke2", "Kf2"}


def test_double_check_allows_only_king_moves() -> None:
    g = Game.from_fen("4k3/8/8/8/8/5n2/3B4/r3K3 w - - 0 1")
    assert sorted(g.position.checkers) == [str_to_square("a1"), str_to_square("f3")]
    assert g.white_moves() == {"Ke2", "Kf2"}


def test_king_may_take_undefended_checker() -> None:
    g = Game.from_fen("4k3/8/8/8/8/8/4q3/4K3 w - - 0 1")
    assert g.white_moves() == {"Kxe2"}


def test_king_cannot_take_defended_checker() -> None:
    g = Game.from_fen("4k3/8/8/8/8/3b4/4q3/4K3 w - - 0 1")
    assert g.white_moves() == set()
    assert g.game_over


def test_king_cannot_retreat_along_checking_ray() -> None:
    g = Game.from_fen("k7/8/8/8/8/8/4K3/4r3 w - - 0 1")
    moves = g.white_moves()
    assert "Ke3" not in moves
    assert "Kd3" in moves
    assert "Kxe1" in moves


def test_fools_mate_is_game_over() -> None:
    g = _play(Game.new(), "f3", "e5", "g4", "Qh4")
    assert g.in_check() == -1
    assert g.white_moves() == set()
    assert g.game_over
    assert not g.stalemate()


def test_stalemate_is_not_game_over() -> None:
    g = Game.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert g.black_moves() == set()
    assert g.in_check() == 0
    assert not g.game_over
    assert g.stalemate()


def test_same_file_knights_are_disambiguated() -> None:
    g = _play(Game.new(), "Nf3", "Nf6", "d4", "d5")
    moves = g.white_moves()
    assert {"Nbd2", "Nfd2"} <= moves
    assert "Nd2" not in moves


def test_disambiguation_by_file_and_by_rank() -> None:
    by_file = Game.from_fen("4k3/8/8/8/8/8/8/R4RK1 w - - 0 1").white_moves()
    assert {"Rad1", "Rfd1"} <= by_file
    assert "Rd1" not in by_file
    assert "Ra2" in by_file

    by_rank = Game.from_fen("4k3/8/8/R7/8/8/8/R5K1 w - - 0 1").white_moves()
    assert {"R1a3", "R5a3"} <= by_rank
    assert "Ra3" not in by_rank


def test_attackers_and_square_safety() -> None:
    b = Board.from_fen("4k3/8/8/8/8/5n2/3B4/r3K3 w - - 0 1")
    e1 = str_to_square("e1")
    assert sorted(attackers(b, e1, by_white=False)) == [str_to_square("a1"), str_to_square("f3")]
    assert not is_square_safe(b, str_to_square("f1"), True, vacated=e1)
    assert is_square_safe(b, str_to_square("e2"), True, vacated=e1)


def test_squares_between() -> None:
    assert squares_between(str_to_square("a1"), str_to_square("e1")) == [1, 2, 3]
    assert squares_between(str_to_square("h4"), str_to_square("e1")) == [
        str_to_square("g3"),
        str_to_square("f2"),
    ]
    assert squares_between(str_to_square("f3"), str_to_square("e1")) == []
