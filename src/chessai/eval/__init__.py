"""Evaluation heuristics over the flattened board encoding.

Pure, deterministic, and side-effect free. Scores are positive for White;
``evaluate_for`` flips the sign for the side being evaluated.
"""

from __future__ import annotations

from typing import Final, Iterable, Sequence, Tuple


# Codes of the flattened encoding
WP, BP, WN, BN, WB, BB, WR, BR, WQ, BQ, WK, BK = range(1, 13)

# Material by code, signed for colour (pawn units)
MATERIAL: Final = (0, 1, -1, 3, -3, 3, -3, 5, -5, 9, -9, 0, 0)

# Game-phase thresholds on the move counter
OPENING_MOVES: Final = 5
ENDGAME_MOVES: Final = 40

PAWN_CHAIN_BONUS: Final = 3

# Term weights
MATERIAL_WEIGHT: Final = 100
QUEEN_MOBILITY_WEIGHT: Final = 3
KING_TABLE_WEIGHT: Final = 100

DIAGONALS = ((1, 1), (1, -1), (-1, 1), (-1, -1))
ORTHOGONALS = ((1, 0), (-1, 0), (0, 1), (0, -1))

# Piece-square tables (white perspective, a1 first: one row per rank)
PAWN_OPENING_TABLE: Final = (
    0, 0, 0, 0, 0, 0, 0, 0,
    1, 1, 0, 0, 0, 0, 1, 1,
    -5, 2, 5, 10, 10, 5, 2, -5,
    0, 0, 2, 20, 20, 2, 0, 0,
    0, 0, 2, 20, 20, 2, 0, 0,
    -5, 2, 5, 10, 10, 5, 2, -5,
    1, 1, 0, 0, 0, 0, 1, 1,
    0, 0, 0, 0, 0, 0, 0, 0,
)  # fmt: skip

PAWN_ENDGAME_TABLE: Final = (
    0, 0, 0, 0, 0, 0, 0, 0,
    -1, -1, -1, -1, -1, -1, -1, -1,
    1, 1, 1, 1, 1, 1, 1, 1,
    2, 2, 2, 2, 2, 2, 2, 2,
    3, 3, 3, 3, 3, 3, 3, 3,
    4, 4, 4, 4, 4, 4, 4, 4,
    5, 5, 5, 5, 5, 5, 5, 5,
    0, 0, 0, 0, 0, 0, 0, 0,
)  # fmt: skip

KNIGHT_TABLE: Final = (
    -1, -3, -1, -1, -1, -1, -3, -1,
    -1, 5, 5, 5, 5, 5, 5, -1,
    -1, 5, 10, 10, 10, 10, 5, -1,
    -1, 5, 10, 20, 20, 10, 5, -1,
    -1, 5, 10, 20, 20, 10, 5, -1,
    -1, 5, 10, 10, 10, 10, 5, -1,
    -1, 5, 5, 5, 5, 5, 5, -1,
    -1, -3, -1, -1, -1, -1, -3, -1,
)  # fmt: skip

KING_TABLE: Final = (
    5, 5, 5, -4, -4, -4, 5, 5,
    -5, -5, -5, -5, -5, -5, -5, -5,
    -10, -10, -10, -10, -10, -10, -10, -10,
    -20, -20, -20, -20, -20, -20, -20, -20,
    -20, -20, -20, -20, -20, -20, -20, -20,
    -10, -10, -10, -10, -10, -10, -10, -10,
    -5, -5, -5, -5, -5, -5, -5, -5,
    5, 5, 5, -5, -5, -5, 5, 5,
)  # fmt: skip


def _mirror_sq(sq: int) -> int:
    # Flip vertically (rank mirror)
    f = sq % 8
    r = sq // 8
    return (7 - r) * 8 + f


def _at(cells: Sequence[int], row: int, col: int) -> int:
    if 0 <= row < 8 and 0 <= col < 8:
        return cells[row * 8 + col]
    return 0


def _table_term(cells: Sequence[int], table: Sequence[int], white_code: int, black_code: int) -> int:
    value = 0
    for sq, code in enumerate(cells):
        if code == white_code:
            value += table[sq]
        elif code == black_code:
            value -= table[_mirror_sq(sq)]
    return value


def _open_squares(cells: Sequence[int], sq: int, dirs: Iterable[Tuple[int, int]]) -> int:
    row, col = divmod(sq, 8)
    spaces = 0
    for dr, dc in dirs:
        r, c = row + dr, col + dc
        while 0 <= r < 8 and 0 <= c < 8 and cells[r * 8 + c] == 0:
            spaces += 1
            r += dr
            c += dc
    return spaces


def _mobility_term(
    cells: Sequence[int], white_code: int, black_code: int, dirs: Iterable[Tuple[int, int]]
) -> int:
    dirs = tuple(dirs)
    value = 0
    for sq, code in enumerate(cells):
        if code == white_code:
            value += _open_squares(cells, sq, dirs)
        elif code == black_code:
            value -= _open_squares(cells, sq, dirs)
    return value


def material(cells: Sequence[int]) -> int:
    """Material balance in pawn units (kings count zero)."""
    return sum(MATERIAL[code] for code in cells)


def pawn_structure(cells: Sequence[int], move_count: int) -> int:
    """Phase-dependent pawn term.

    Opening: placement table plus a bonus for each friendly pawn on the two
    forward diagonals and a penalty for each enemy pawn there. Endgame:
    advancement table. Otherwise: per pawn, the product of its backward chain
    lengths along both diagonals.
    """
    if move_count < OPENING_MOVES:
        value = _table_term(cells, PAWN_OPENING_TABLE, WP, BP)
        for sq, code in enumerate(cells):
            if code not in (WP, BP):
                continue
            row, col = divmod(sq, 8)
            ahead = row + 1 if code == WP else row - 1
            sign = 1 if code == WP else -1
            for c in (col - 1, col + 1):
                other = _at(cells, ahead, c)
                if other == code:
                    value += sign * PAWN_CHAIN_BONUS
                elif other in (WP, BP):
                    value -= sign * PAWN_CHAIN_BONUS
        return value

    if move_count > ENDGAME_MOVES:
        return _table_term(cells, PAWN_ENDGAME_TABLE, WP, BP)

    value = 0
    for sq, code in enumerate(cells):
        if code not in (WP, BP):
            continue
        row, col = divmod(sq, 8)
        behind = -1 if code == WP else 1
        chains = []
        for dc in (1, -1):
            length = 1
            r, c = row + behind, col + dc
            while _at(cells, r, c) == code:
                length += 1
                r += behind
                c += dc
            chains.append(length)
        product = chains[0] * chains[1]
        value += product if code == WP else -product
    return value


def knight_placement(cells: Sequence[int]) -> int:
    return _table_term(cells, KNIGHT_TABLE, WN, BN)


def king_placement(cells: Sequence[int]) -> int:
    return _table_term(cells, KING_TABLE, WK, BK)


def bishop_mobility(cells: Sequence[int]) -> int:
    return _mobility_term(cells, WB, BB, DIAGONALS)


def rook_mobility(cells: Sequence[int]) -> int:
    return _mobility_term(cells, WR, BR, ORTHOGONALS)


def queen_mobility(cells: Sequence[int]) -> int:
    return _mobility_term(cells, WQ, BQ, DIAGONALS + ORTHOGONALS)


def evaluate(cells: Sequence[int], move_count: int = 0) -> float:
    """Return the heuristic score of a position, positive for White.

    Args:
        cells (Sequence[int]): Flattened 64-cell board encoding.
        move_count (int): Moves played so far, used as a game-phase proxy.

    Raises:
        ValueError: If ``cells`` does not hold 64 codes in 0..12.
    """
    if len(cells) != 64:
        raise ValueError("encoding must have 64 cells")
    if any(code < 0 or code > 12 for code in cells):
        raise ValueError("encoding codes must be in 0..12")
    score = 1
    score += material(cells) * MATERIAL_WEIGHT
    score += pawn_structure(cells, move_count)
    score += knight_placement(cells)
    score += bishop_mobility(cells)
    score += rook_mobility(cells)
    score += queen_mobility(cells) * QUEEN_MOBILITY_WEIGHT
    score += king_placement(cells) * KING_TABLE_WEIGHT
    return float(score)


def evaluate_for(cells: Sequence[int], move_count: int, white: bool) -> float:
    """Score from the point of view of ``white`` (or black when False)."""
    score = evaluate(cells, move_count)
    return score if white else -score
