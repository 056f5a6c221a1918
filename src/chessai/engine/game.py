from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Set

from .board import Board
from .legality import Position, analyze
from .move import EN_PASSANT


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: hold the board, keep its derived :class:`Position` in
    sync after every ply, expose legal moves, apply moves by string.
    """

    board: Board
    move_history: List[str] = field(default_factory=list)
    position: Position = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.position = analyze(self.board)

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.initial())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(board=Board.from_fen(fen))

    @classmethod
    def from_encoding(cls, cells: Sequence[int], white_to_move: bool) -> "Game":
        return cls(board=Board.from_encoding(cells, white_to_move))

    def to_fen(self) -> str:
        return self.board.to_fen()

    def encoding(self) -> List[int]:
        return self.board.to_encoding()

    def apply_move(self, move: str) -> bool:
        """Play ``move`` for the side to move.

        Returns:
            bool: ``False`` (and no change) when ``move`` is not one of the
                side to move's legal move strings.
        """
        mv = self.position.legal_moves.get(move)
        if mv is None:
            return False
        self.board.make_move(mv)
        self.move_history.append(move)
        self.position = analyze(self.board)
        return True

    def child(self, move: str) -> "Game":
        """Return a new game with ``move`` played on a cloned board.

        Raises:
            KeyError: If ``move`` is not legal here.
        """
        mv = self.position.legal_moves[move]
        board = self.board.copy()
        board.make_move(mv)
        return Game(board, self.move_history + [move])

    def copy(self) -> "Game":
        """Independent snapshot sharing no board state with this game."""
        return Game(self.board.copy(), list(self.move_history))

    # --- Queries ---
    @property
    def white_to_move(self) -> bool:
        return self.board.white_to_move

    @property
    def game_over(self) -> bool:
        return self.position.game_over

    def legal_moves(self) -> List[str]:
        return list(self.position.legal_moves)

    def white_moves(self) -> Set[str]:
        return set(self.position.white_moves)

    def black_moves(self) -> Set[str]:
        return set(self.position.black_moves)

    def in_check(self) -> int:
        """Signed check indicator: -1 white in check, 1 black in check, else 0."""
        if self.position.black_in_check:
            return 1
        if self.position.white_in_check:
            return -1
        return 0

    def stalemate(self) -> bool:
        return self.position.stalemate

    def attacking_value(self) -> int:
        """Material white can take with a legal capture minus what black can.

        Each threatened piece counts once per side, however many captures
        reach it. The side not on move is scored as if it had the turn, so its
        pins and the defended squares its king may not enter still apply.
        """
        value = 0
        for white in (True, False):
            for sq in self._capture_targets(white):
                p = self.board.squares[sq]
                if p is not None:
                    value += p.value if white else -p.value
        return value

    def _capture_targets(self, white: bool) -> Set[int]:
        if white == self.white_to_move:
            moves = self.position.legal_moves
        else:
            passed = self.board.copy()
            passed.white_to_move = white
            moves = analyze(passed).legal_moves
        targets: Set[int] = set()
        for m in moves.values():
            if m.special == EN_PASSANT:
                # Taken pawn stands beside the origin, on the destination file
                targets.add((m.from_sq // 8) * 8 + m.to_sq % 8)
            elif m.capture:
                targets.add(m.to_sq)
        return targets
