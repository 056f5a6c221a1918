from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .move import (
    CASTLE_KINGSIDE,
    CASTLE_QUEENSIDE,
    DOUBLE_PUSH,
    EN_PASSANT,
    PIECE_KINDS,
    Move,
    square_to_str,
    str_to_square,
)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Material values used by queries and the evaluator (pawn units)
PIECE_VALUES: Dict[str, int] = {"P": 1, "N": 3, "B": 3, "R": 5, "Q": 9, "K": 0}

# Flattened encoding: odd codes are white, even codes black, in P,N,B,R,Q,K order
PIECE_TO_CODE: Dict[Tuple[str, bool], int] = {}
for _i, _kind in enumerate(PIECE_KINDS):
    PIECE_TO_CODE[(_kind, True)] = 2 * _i + 1
    PIECE_TO_CODE[(_kind, False)] = 2 * _i + 2
CODE_TO_PIECE = {v: k for k, v in PIECE_TO_CODE.items()}

# Home squares relevant for castling
E1, E8 = 4, 60
A1, H1, A8, H8 = 0, 7, 56, 63
ROOK_HOMES = {True: (A1, H1), False: (A8, H8)}
KING_HOMES = {True: E1, False: E8}


@dataclass
class Piece:
    """A single chess piece.

    The square a piece stands on is the index of the board cell holding it.
    ``castling_rights`` is only meaningful for kings and rooks, and
    ``en_passant``/``capture_side`` only for pawns.
    """

    kind: str
    white: bool
    castling_rights: bool = False
    en_passant: bool = False
    capture_side: Optional[int] = None  # file of the pawn that may be taken

    @property
    def symbol(self) -> str:
        return self.kind if self.white else self.kind.lower()

    @property
    def value(self) -> int:
        return PIECE_VALUES[self.kind]

    @property
    def code(self) -> int:
        return PIECE_TO_CODE[(self.kind, self.white)]

    def copy(self) -> "Piece":
        return replace(self)


@dataclass
class Board:
    """Mailbox board of 64 optional pieces plus side to move and counters.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63); ``row = sq // 8`` is the rank index
      from white's side and ``col = sq % 8`` the file.
    - The board does not validate moves; legality lives in ``legality``.
    """

    squares: List[Optional[Piece]]
    white_to_move: bool = True
    halfmove_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def initial(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def empty(cls, white_to_move: bool = True) -> "Board":
        return cls(squares=[None] * 64, white_to_move=white_to_move)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board with castling rights stored on the king and rook
                pieces and en-passant eligibility stored on the pawns that
                may capture.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, castling rights, en passant
                square, or move counters.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        squares: List[Optional[Piece]] = [None] * 64
        for row, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            col = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    col += n
                    continue
                if ch.upper() not in PIECE_KINDS:
                    raise ValueError(f"invalid piece in FEN: {ch!r}")
                if col >= 8:
                    raise ValueError("too many squares in FEN rank")
                squares[row * 8 + col] = Piece(ch.upper(), ch.isupper())
                col += 1
            if col != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")
        board = cls(squares=squares, white_to_move=stm == "w")

        if castling != "-":
            for ch in castling:
                if ch not in "KQkq":
                    raise ValueError("invalid castling rights")
            for ch in castling:
                white = ch.isupper()
                rook_sq = ROOK_HOMES[white][1 if ch.upper() == "K" else 0]
                board._grant_castling(white, rook_sq)

        if ep != "-":
            try:
                target = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            if target // 8 != (5 if board.white_to_move else 2):
                raise ValueError("invalid en passant square rank")
            board._mark_en_passant(target)

        try:
            board.halfmove_clock = int(halfmove)
            board.fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if board.halfmove_clock < 0 or board.fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")
        return board

    @classmethod
    def from_encoding(cls, cells: Sequence[int], white_to_move: bool) -> "Board":
        """Rebuild a board from the flattened 64-integer encoding.

        Castling rights are inferred for kings and rooks standing on their
        home squares; en-passant eligibility cannot be recovered.

        Raises:
            ValueError: If ``cells`` is not 64 codes in the range 0..12.
        """
        if len(cells) != 64:
            raise ValueError("encoding must have 64 cells")
        board = cls.empty(white_to_move)
        for sq, code in enumerate(cells):
            if code == 0:
                continue
            if code not in CODE_TO_PIECE:
                raise ValueError(f"invalid piece code {code!r} at index {sq}")
            kind, white = CODE_TO_PIECE[code]
            board.squares[sq] = Piece(kind, white)
        for white in (True, False):
            for rook_sq in ROOK_HOMES[white]:
                board._grant_castling(white, rook_sq)
        return board

    def to_encoding(self) -> List[int]:
        """Return the flattened encoding (index = row * 8 + col)."""
        return [0 if p is None else p.code for p in self.squares]

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for row in range(7, -1, -1):
            run = 0
            out = []
            for col in range(8):
                p = self.squares[row * 8 + col]
                if p is None:
                    run += 1
                    continue
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(p.symbol)
            if run > 0:
                out.append(str(run))
            ranks_str.append("".join(out))
        placement = "/".join(ranks_str)

        stm = "w" if self.white_to_move else "b"
        castling = "".join(
            ch
            for ch, white, rook_sq in (("K", True, H1), ("Q", True, A1), ("k", False, H8), ("q", False, A8))
            if self.can_castle(white, rook_sq)
        )
        target = self.en_passant_target()
        ep = square_to_str(target) if target is not None else "-"
        return (
            f"{placement} {stm} {castling or '-'} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    def copy(self) -> "Board":
        """Return an independent clone; pieces are copied, not shared."""
        return Board(
            squares=[None if p is None else p.copy() for p in self.squares],
            white_to_move=self.white_to_move,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )

    def piece_at(self, sq: int) -> Optional[Piece]:
        return self.squares[sq]

    def king_square(self, white: bool) -> Optional[int]:
        for sq, p in enumerate(self.squares):
            if p is not None and p.kind == "K" and p.white == white:
                return sq
        return None

    def can_castle(self, white: bool, rook_sq: int) -> bool:
        king = self.squares[KING_HOMES[white]]
        rook = self.squares[rook_sq]
        return (
            king is not None
            and king.kind == "K"
            and king.white == white
            and king.castling_rights
            and rook is not None
            and rook.kind == "R"
            and rook.white == white
            and rook.castling_rights
        )

    def en_passant_target(self) -> Optional[int]:
        """Square behind a pawn that just advanced two squares, if capturable."""
        for sq, p in enumerate(self.squares):
            if p is not None and p.kind == "P" and p.en_passant and p.capture_side is not None:
                step = 1 if p.white else -1
                return (sq // 8 + step) * 8 + p.capture_side
        return None

    def make_move(self, move: Move) -> None:
        """Apply ``move`` in place and pass the turn.

        The move is trusted to come from the legal-move mapping. Handles
        castling, promotion, en passant removal and two-square pawn advances;
        en-passant eligibility from the previous ply is always cleared.
        """
        piece = self.squares[move.from_sq]
        if piece is None:
            raise ValueError(f"no piece on {square_to_str(move.from_sq)}")

        for p in self.squares:
            if p is not None and p.en_passant:
                p.en_passant = False
                p.capture_side = None

        captured = self.squares[move.to_sq] is not None
        self.squares[move.from_sq] = None
        row, col = divmod(move.to_sq, 8)

        if move.special == EN_PASSANT:
            # Taken pawn stands beside the origin, on the destination file
            self.squares[(move.from_sq // 8) * 8 + col] = None
            captured = True
        elif move.special == CASTLE_KINGSIDE:
            self._relocate(row * 8 + 7, row * 8 + 5)
        elif move.special == CASTLE_QUEENSIDE:
            self._relocate(row * 8 + 0, row * 8 + 3)

        if move.promotion:
            piece = Piece(move.promotion, piece.white)
        if piece.kind in ("K", "R"):
            piece.castling_rights = False
        self.squares[move.to_sq] = piece

        if move.special == DOUBLE_PUSH:
            for adj in (col - 1, col + 1):
                if 0 <= adj < 8:
                    other = self.squares[row * 8 + adj]
                    if other is not None and other.kind == "P" and other.white != piece.white:
                        other.en_passant = True
                        other.capture_side = col

        if piece.kind == "P" or captured:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if not self.white_to_move:
            self.fullmove_number += 1
        self.white_to_move = not self.white_to_move

    def _relocate(self, from_sq: int, to_sq: int) -> None:
        piece = self.squares[from_sq]
        self.squares[from_sq] = None
        if piece is not None and piece.kind in ("K", "R"):
            piece.castling_rights = False
        self.squares[to_sq] = piece

    def _grant_castling(self, white: bool, rook_sq: int) -> None:
        king = self.squares[KING_HOMES[white]]
        rook = self.squares[rook_sq]
        if king is None or rook is None:
            return
        if king.kind != "K" or king.white != white or rook.kind != "R" or rook.white != white:
            return
        king.castling_rights = True
        rook.castling_rights = True

    def _mark_en_passant(self, target: int) -> None:
        # The pushed pawn sits one rank past the target from the mover's view
        row, col = divmod(target, 8)
        pawn_row = row - 1 if self.white_to_move else row + 1
        for adj in (col - 1, col + 1):
            if 0 <= adj < 8:
                p = self.squares[pawn_row * 8 + adj]
                if p is not None and p.kind == "P" and p.white == self.white_to_move:
                    p.en_passant = True
                    p.capture_side = col

    def __str__(self) -> str:
        return self.to_fen()
