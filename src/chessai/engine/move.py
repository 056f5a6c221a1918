from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


PIECE_KINDS = ("P", "N", "B", "R", "Q", "K")
PROMOTION_PIECES = ("Q", "N", "R", "B")

# Special move tags
DOUBLE_PUSH = "double_push"
EN_PASSANT = "en_passant"
CASTLE_KINGSIDE = "castle_kingside"
CASTLE_QUEENSIDE = "castle_queenside"
CASTLES = (CASTLE_KINGSIDE, CASTLE_QUEENSIDE)


@dataclass(frozen=True)
class Move:
    """Engine-internal move record.

    Attributes:
        piece (str): Kind letter of the moving piece (``"P"``, ``"N"``, ...).
        from_sq (int): Origin square index (a1=0 .. h8=63).
        to_sq (int): Destination square index.
        capture (bool): Whether the move takes an enemy piece.
        promotion (Optional[str]): Uppercase promotion kind, if any.
        special (Optional[str]): One of the special move tags, if any.
    """

    piece: str
    from_sq: int
    to_sq: int
    capture: bool = False
    promotion: Optional[str] = None
    special: Optional[str] = None

    def to_str(self, disambiguation: str = "") -> str:
        """Render the move in the engine's algebraic notation.

        Args:
            disambiguation (str): Origin file and/or rank inserted after the
                piece letter when another piece of the same kind reaches the
                same square.

        Returns:
            str: Move string such as ``"e4"``, ``"exd5"``, ``"Nbd2"``,
                ``"e8Q"`` or ``"O-O"``.
        """
        if self.special == CASTLE_KINGSIDE:
            return "O-O"
        if self.special == CASTLE_QUEENSIDE:
            return "O-O-O"
        target = square_to_str(self.to_sq)
        if self.piece == "P":
            prefix = square_to_str(self.from_sq)[0] + "x" if self.capture else ""
            return prefix + target + (self.promotion or "")
        return self.piece + disambiguation + ("x" if self.capture else "") + target

    def __str__(self) -> str:
        return self.to_str()


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = int(s[1]) - 1
    return row * 8 + col


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    return chr(ord("a") + idx % 8) + str(idx // 8 + 1)
