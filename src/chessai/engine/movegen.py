"""Pseudo-legal move generation, one routine per piece kind.

Generators also record per-ply annotations while they scan: friendly pieces
they protect become ``defended`` and enemy pieces standing in front of their
own king on a slider ray become ``pinned``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from .board import Board
from .move import (
    CASTLE_KINGSIDE,
    CASTLE_QUEENSIDE,
    DOUBLE_PUSH,
    EN_PASSANT,
    PROMOTION_PIECES,
    Move,
)


KNIGHT_OFFSETS = ((2, 1), (2, -1), (-2, 1), (-2, -1), (1, 2), (-1, 2), (1, -2), (-1, -2))
DIAGONALS = ((1, 1), (1, -1), (-1, 1), (-1, -1))
ORTHOGONALS = ((1, 0), (-1, 0), (0, 1), (0, -1))
ALL_DIRECTIONS = ORTHOGONALS + DIAGONALS


@dataclass
class Annotations:
    """Transient per-ply flags, indexed by square."""

    pinned: List[bool] = field(default_factory=lambda: [False] * 64)
    defended: List[bool] = field(default_factory=lambda: [False] * 64)


Generator = Callable[[Board, int, Annotations], List[Move]]


def _on_board(row: int, col: int) -> bool:
    return 0 <= row < 8 and 0 <= col < 8


def pawn_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    pawn = board.squares[sq]
    if pawn is None:
        return []
    white = pawn.white
    row, col = divmod(sq, 8)
    step = 1 if white else -1
    start_row = 1 if white else 6
    last_row = 7 if white else 0
    moves: List[Move] = []

    r = row + step
    if not 0 <= r < 8:
        return moves

    # Pushes
    to_sq = r * 8 + col
    if board.squares[to_sq] is None:
        _add_pawn_move(moves, sq, to_sq, False, r == last_row)
        if row == start_row:
            to2 = (row + 2 * step) * 8 + col
            if board.squares[to2] is None:
                moves.append(Move("P", sq, to2, special=DOUBLE_PUSH))

    # Diagonal captures
    for c in (col - 1, col + 1):
        if not 0 <= c < 8:
            continue
        to_sq = r * 8 + c
        target = board.squares[to_sq]
        if target is None:
            continue
        if target.white != white:
            _add_pawn_move(moves, sq, to_sq, True, r == last_row)
        else:
            notes.defended[to_sq] = True

    # En passant, only for the ply right after the enemy double push
    if pawn.en_passant and pawn.capture_side is not None and row == (4 if white else 3):
        c = pawn.capture_side
        victim = board.squares[row * 8 + c]
        to_sq = r * 8 + c
        if (
            victim is not None
            and victim.kind == "P"
            and victim.white != white
            and board.squares[to_sq] is None
        ):
            moves.append(Move("P", sq, to_sq, capture=True, special=EN_PASSANT))
    return moves


def _add_pawn_move(
    moves: List[Move], from_sq: int, to_sq: int, capture: bool, promotes: bool
) -> None:
    if promotes:
        for promo in PROMOTION_PIECES:
            moves.append(Move("P", from_sq, to_sq, capture=capture, promotion=promo))
    else:
        moves.append(Move("P", from_sq, to_sq, capture=capture))


def knight_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    knight = board.squares[sq]
    if knight is None:
        return []
    row, col = divmod(sq, 8)
    moves: List[Move] = []
    for dr, dc in KNIGHT_OFFSETS:
        r, c = row + dr, col + dc
        if not _on_board(r, c):
            continue
        to_sq = r * 8 + c
        target = board.squares[to_sq]
        if target is None:
            moves.append(Move("N", sq, to_sq))
        elif target.white != knight.white:
            moves.append(Move("N", sq, to_sq, capture=True))
        else:
            notes.defended[to_sq] = True
    return moves


def _slide(
    board: Board, sq: int, notes: Annotations, directions: Tuple[Tuple[int, int], ...]
) -> List[Move]:
    slider = board.squares[sq]
    if slider is None:
        return []
    row, col = divmod(sq, 8)
    moves: List[Move] = []
    for dr, dc in directions:
        r, c = row + dr, col + dc
        while _on_board(r, c):
            to_sq = r * 8 + c
            target = board.squares[to_sq]
            if target is None:
                moves.append(Move(slider.kind, sq, to_sq))
                r += dr
                c += dc
                continue
            if target.white == slider.white:
                notes.defended[to_sq] = True
            else:
                moves.append(Move(slider.kind, sq, to_sq, capture=True))
                if _king_behind(board, r, c, dr, dc, target.white):
                    notes.pinned[to_sq] = True
            break
    return moves


def _king_behind(board: Board, row: int, col: int, dr: int, dc: int, white: bool) -> bool:
    # Next occupied square past (row, col) along the ray
    r, c = row + dr, col + dc
    while _on_board(r, c):
        p = board.squares[r * 8 + c]
        if p is not None:
            return p.kind == "K" and p.white == white
        r += dr
        c += dc
    return False


def bishop_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    return _slide(board, sq, notes, DIAGONALS)


def rook_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    return _slide(board, sq, notes, ORTHOGONALS)


def queen_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    return _slide(board, sq, notes, ALL_DIRECTIONS)


def king_moves(board: Board, sq: int, notes: Annotations) -> List[Move]:
    """King steps and castling candidates.

    Captures are offered only onto enemy pieces not yet marked ``defended``.
    Whether castling transit squares are attacked is left to the legality
    filter.
    """
    king = board.squares[sq]
    if king is None:
        return []
    row, col = divmod(sq, 8)
    moves: List[Move] = []
    for dr, dc in ALL_DIRECTIONS:
        r, c = row + dr, col + dc
        if not _on_board(r, c):
            continue
        to_sq = r * 8 + c
        target = board.squares[to_sq]
        if target is None:
            moves.append(Move("K", sq, to_sq))
        elif target.white == king.white:
            notes.defended[to_sq] = True
        elif not notes.defended[to_sq]:
            moves.append(Move("K", sq, to_sq, capture=True))

    if king.castling_rights:
        home = row * 8
        if board.can_castle(king.white, home + 7) and all(
            board.squares[home + c] is None for c in (5, 6)
        ):
            moves.append(Move("K", sq, home + 6, special=CASTLE_KINGSIDE))
        if board.can_castle(king.white, home) and all(
            board.squares[home + c] is None for c in (1, 2, 3)
        ):
            moves.append(Move("K", sq, home + 2, special=CASTLE_QUEENSIDE))
    return moves


GENERATORS: Dict[str, Generator] = {
    "P": pawn_moves,
    "N": knight_moves,
    "B": bishop_moves,
    "R": rook_moves,
    "Q": queen_moves,
    "K": king_moves,
}


def generate(board: Board, notes: Annotations) -> Tuple[List[Move], List[Move]]:
    """Generate pseudo-legal candidates for both colours in board scan order.

    Returns:
        Tuple[List[Move], List[Move]]: White candidates, black candidates.
    """
    white: List[Move] = []
    black: List[Move] = []
    for sq, p in enumerate(board.squares):
        if p is None:
            continue
        moves = GENERATORS[p.kind](board, sq, notes)
        (white if p.white else black).extend(moves)
    return white, black
