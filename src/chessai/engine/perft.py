from __future__ import annotations

from .board import Board
from .legality import analyze


def perft(board: Board, depth: int) -> int:
    """Compute perft node count for `board` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are built on cloned boards, so `board` is left untouched.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = analyze(board).legal_moves
    if depth == 1:
        return len(moves)

    nodes = 0
    for mv in moves.values():
        child = board.copy()
        child.make_move(mv)
        nodes += perft(child, depth - 1)
    return nodes
