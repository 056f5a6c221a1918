"""Legal-move filter.

``analyze`` turns a board into a :class:`Position`: the legal moves of the
side to move keyed by move string, both sides' lines of sight, check flags
and the game-over flag. It is a pure function of the board; transient
``pinned``/``defended`` flags live in a fresh :class:`Annotations` per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .board import Board
from .move import CASTLE_KINGSIDE, CASTLES, EN_PASSANT, Move
from .movegen import (
    ALL_DIRECTIONS,
    DIAGONALS,
    KNIGHT_OFFSETS,
    ORTHOGONALS,
    Annotations,
    generate,
    king_moves,
)


@dataclass
class Position:
    """Derived, per-ply state of a board."""

    white_to_move: bool
    white_moves: Dict[str, Move]
    black_moves: Dict[str, Move]
    white_sight: List[bool]
    black_sight: List[bool]
    white_in_check: bool
    black_in_check: bool
    checkers: List[int] = field(default_factory=list)
    notes: Annotations = field(default_factory=Annotations)
    game_over: bool = False

    @property
    def legal_moves(self) -> Dict[str, Move]:
        return self.white_moves if self.white_to_move else self.black_moves

    @property
    def in_check(self) -> bool:
        return self.white_in_check if self.white_to_move else self.black_in_check

    @property
    def stalemate(self) -> bool:
        return not self.in_check and not self.legal_moves

    def sight(self, white: bool) -> List[bool]:
        return self.white_sight if white else self.black_sight


def analyze(board: Board) -> Position:
    """Compute legal moves, line of sight and check/checkmate state."""
    notes = Annotations()
    white_raw, black_raw = generate(board, notes)

    white_sight = line_of_sight(board, True)
    black_sight = line_of_sight(board, False)
    white_king = board.king_square(True)
    black_king = board.king_square(False)
    white_in_check = white_king is not None and black_sight[white_king]
    black_in_check = black_king is not None and white_sight[black_king]

    stm = board.white_to_move
    king_sq = white_king if stm else black_king
    in_check = white_in_check if stm else black_in_check
    enemy_sight = black_sight if stm else white_sight
    raw = white_raw if stm else black_raw

    checkers: List[int] = []
    if king_sq is not None and in_check:
        checkers = attackers(board, king_sq, not stm)

    moves = [m for m in raw if m.piece != "K"]
    if king_sq is not None:
        mark_pins(board, king_sq, notes)
        moves = [
            m for m in moves if not notes.pinned[m.from_sq] or _colinear(king_sq, m.from_sq, m.to_sq)
        ]
        if checkers:
            moves = _resolve_check(board, moves, king_sq, checkers)
        moves.extend(_legal_king_moves(board, king_sq, notes, enemy_sight, in_check))
    moves = [m for m in moves if m.special != EN_PASSANT or _en_passant_safe(board, m)]

    legal = index_moves(moves)
    return Position(
        white_to_move=stm,
        white_moves=legal if stm else {},
        black_moves={} if stm else legal,
        white_sight=white_sight,
        black_sight=black_sight,
        white_in_check=white_in_check,
        black_in_check=black_in_check,
        checkers=checkers,
        notes=notes,
        game_over=in_check and not legal,
    )


def line_of_sight(board: Board, white: bool) -> List[bool]:
    """Squares attacked by ``white``'s pieces (pins do not remove attacks)."""
    sight = [False] * 64
    for sq, p in enumerate(board.squares):
        if p is None or p.white != white:
            continue
        row, col = divmod(sq, 8)
        if p.kind == "P":
            r = row + (1 if white else -1)
            for c in (col - 1, col + 1):
                if 0 <= r < 8 and 0 <= c < 8:
                    sight[r * 8 + c] = True
        elif p.kind in ("N", "K"):
            offsets = KNIGHT_OFFSETS if p.kind == "N" else ALL_DIRECTIONS
            for dr, dc in offsets:
                r, c = row + dr, col + dc
                if 0 <= r < 8 and 0 <= c < 8:
                    sight[r * 8 + c] = True
        else:
            if p.kind == "B":
                dirs = DIAGONALS
            elif p.kind == "R":
                dirs = ORTHOGONALS
            else:
                dirs = ALL_DIRECTIONS
            for dr, dc in dirs:
                r, c = row + dr, col + dc
                while 0 <= r < 8 and 0 <= c < 8:
                    sight[r * 8 + c] = True
                    if board.squares[r * 8 + c] is not None:
                        break
                    r += dr
                    c += dc
    return sight


def attackers(board: Board, sq: int, by_white: bool, vacated: Optional[int] = None) -> List[int]:
    """Return squares of ``by_white`` pieces attacking ``sq``.

    Args:
        board (Board): Position to inspect.
        sq (int): Target square.
        by_white (bool): Colour of the attacking side.
        vacated (Optional[int]): Square treated as empty, used to take the
            moving king out of its own ray.
    """
    squares = board.squares
    found: List[int] = []
    row, col = divmod(sq, 8)

    def at(s: int):
        return None if s == vacated else squares[s]

    # Pawns attack from one rank behind, seen from their own side
    pr = row - 1 if by_white else row + 1
    if 0 <= pr < 8:
        for c in (col - 1, col + 1):
            if 0 <= c < 8:
                p = at(pr * 8 + c)
                if p is not None and p.white == by_white and p.kind == "P":
                    found.append(pr * 8 + c)

    for offsets, kind in ((KNIGHT_OFFSETS, "N"), (ALL_DIRECTIONS, "K")):
        for dr, dc in offsets:
            r, c = row + dr, col + dc
            if 0 <= r < 8 and 0 <= c < 8:
                p = at(r * 8 + c)
                if p is not None and p.white == by_white and p.kind == kind:
                    found.append(r * 8 + c)

    for dirs, kinds in ((DIAGONALS, ("B", "Q")), (ORTHOGONALS, ("R", "Q"))):
        for dr, dc in dirs:
            r, c = row + dr, col + dc
            while 0 <= r < 8 and 0 <= c < 8:
                p = at(r * 8 + c)
                if p is not None:
                    if p.white == by_white and p.kind in kinds:
                        found.append(r * 8 + c)
                    break
                r += dr
                c += dc
    return found


def is_square_safe(board: Board, sq: int, white: bool, vacated: Optional[int] = None) -> bool:
    """True when no enemy of ``white`` attacks ``sq``."""
    return not attackers(board, sq, not white, vacated)


def mark_pins(board: Board, king_sq: int, notes: Annotations) -> None:
    """Sweep the eight rays from a king and flag pinned friendly pieces."""
    king = board.squares[king_sq]
    if king is None:
        return
    row, col = divmod(king_sq, 8)
    for dr, dc in ALL_DIRECTIONS:
        diagonal = dr != 0 and dc != 0
        candidate: Optional[int] = None
        r, c = row + dr, col + dc
        while 0 <= r < 8 and 0 <= c < 8:
            s = r * 8 + c
            p = board.squares[s]
            if p is not None:
                if p.white == king.white:
                    if candidate is not None:
                        break
                    candidate = s
                else:
                    if candidate is not None and (
                        p.kind == "Q" or p.kind == ("B" if diagonal else "R")
                    ):
                        notes.pinned[candidate] = True
                    break
            r += dr
            c += dc


def squares_between(a: int, b: int) -> List[int]:
    """Squares strictly between ``a`` and ``b`` on a shared line, else empty."""
    ar, ac = divmod(a, 8)
    br, bc = divmod(b, 8)
    dr, dc = br - ar, bc - ac
    if not (dr == 0 or dc == 0 or abs(dr) == abs(dc)):
        return []
    step_r = (dr > 0) - (dr < 0)
    step_c = (dc > 0) - (dc < 0)
    out: List[int] = []
    r, c = ar + step_r, ac + step_c
    while (r, c) != (br, bc):
        out.append(r * 8 + c)
        r += step_r
        c += step_c
    return out


def _colinear(king_sq: int, from_sq: int, to_sq: int) -> bool:
    kx, ky = king_sq % 8, king_sq // 8
    fx, fy = from_sq % 8, from_sq // 8
    tx, ty = to_sq % 8, to_sq // 8
    return (fx - kx) * (ty - ky) == (fy - ky) * (tx - kx)


def _resolve_check(board: Board, moves: List[Move], king_sq: int, checkers: List[int]) -> List[Move]:
    if len(checkers) > 1:
        return []
    checker = checkers[0]
    piece = board.squares[checker]
    allowed: Set[int] = {checker}
    if piece is not None and piece.kind in ("B", "R", "Q"):
        allowed.update(squares_between(checker, king_sq))
    out: List[Move] = []
    for m in moves:
        if m.to_sq in allowed:
            out.append(m)
        elif m.special == EN_PASSANT and (m.from_sq // 8) * 8 + m.to_sq % 8 == checker:
            out.append(m)
    return out


def _legal_king_moves(
    board: Board, king_sq: int, notes: Annotations, enemy_sight: List[bool], in_check: bool
) -> List[Move]:
    # Regenerated once defended flags are complete for both colours
    king = board.squares[king_sq]
    if king is None:
        return []
    out: List[Move] = []
    for m in king_moves(board, king_sq, notes):
        if m.special in CASTLES:
            if in_check:
                continue
            row = king_sq // 8
            transit = (5, 6) if m.special == CASTLE_KINGSIDE else (3, 2)
            if any(enemy_sight[row * 8 + c] for c in transit):
                continue
        elif m.capture and notes.defended[m.to_sq]:
            continue
        elif not is_square_safe(board, m.to_sq, king.white, vacated=king_sq):
            continue
        out.append(m)
    return out


def _en_passant_safe(board: Board, move: Move) -> bool:
    # Both pawns leave the capture rank at once; check the real result
    white = board.white_to_move
    scratch = board.copy()
    scratch.make_move(move)
    king_sq = scratch.king_square(white)
    return king_sq is None or is_square_safe(scratch, king_sq, white)


def index_moves(moves: List[Move]) -> Dict[str, Move]:
    """Key moves by their string, disambiguating same-kind pieces.

    Two pieces of one kind reaching the same square get the origin file, the
    origin rank when files match, or both.
    """
    by_target: Dict[Tuple[str, int], List[Move]] = {}
    for m in moves:
        if m.piece not in ("P", "K"):
            by_target.setdefault((m.piece, m.to_sq), []).append(m)

    legal: Dict[str, Move] = {}
    for m in moves:
        disambiguation = ""
        rivals = [
            o.from_sq
            for o in by_target.get((m.piece, m.to_sq), [])
            if o.from_sq != m.from_sq
        ]
        if rivals:
            file_ch = chr(ord("a") + m.from_sq % 8)
            rank_ch = str(m.from_sq // 8 + 1)
            if all(r % 8 != m.from_sq % 8 for r in rivals):
                disambiguation = file_ch
            elif all(r // 8 != m.from_sq // 8 for r in rivals):
                disambiguation = rank_ch
            else:
                disambiguation = file_ch + rank_ch
        legal[m.to_str(disambiguation)] = m
    return legal
