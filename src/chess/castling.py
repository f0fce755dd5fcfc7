"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Self

from src.chess.pieces import Color
from src.chess.square import Square


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK

    @property
    def is_king_side(self) -> bool:
        return self.value.lower() == "k"


# Rights are revoked one direction at a time and never come back, so a frozenset is all the state we need.
CastlingRights = frozenset[CastlingDirection]

ALL_CASTLING_RIGHTS: CastlingRights = frozenset(CastlingDirection)
NO_CASTLING_RIGHTS: CastlingRights = frozenset()


def squares_between_on_rank(from_square: Square, to_square: Square) -> list[Square]:
    """
    Find the squares in between the two squares specified that are on the same rank

    Needed for checking if you can still castle (the Board will check which of those are empty etc.)
    """
    if from_square.rank != to_square.rank:
        raise ValueError(
            f"squares_between_on_rank requires both squares to lie on the same rank. \n from: {from_square}\n to:{to_square}"
        )

    step = 1 if to_square.file > from_square.file else -1
    return [
        Square(file, from_square.rank)
        for file in range(from_square.file + step, to_square.file, step)
    ]


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: If castling rights have not been revoked, we already know the king / rook are still at their starting squares.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)

    @property
    def empty_path(self) -> list[Square]:
        """Every square between king and rook must be empty (b1 included for the long castle)."""
        return squares_between_on_rank(self.king_from, self.rook_from)

    @property
    def king_path(self) -> list[Square]:
        """The king may not start on, pass over, or land on an attacked square."""
        return [self.king_from] + squares_between_on_rank(
            self.king_from, self.king_to
        ) + [self.king_to]


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}

# Moving away from (or being captured on) one of these squares revokes the listed rights for good.
RIGHTS_LOST_FROM_SQUARE: dict[Square, CastlingRights] = {
    Square.from_algebraic("e1"): frozenset(
        {CastlingDirection.WHITE_KING_SIDE, CastlingDirection.WHITE_QUEEN_SIDE}
    ),
    Square.from_algebraic("e8"): frozenset(
        {CastlingDirection.BLACK_KING_SIDE, CastlingDirection.BLACK_QUEEN_SIDE}
    ),
    Square.from_algebraic("h1"): frozenset({CastlingDirection.WHITE_KING_SIDE}),
    Square.from_algebraic("a1"): frozenset({CastlingDirection.WHITE_QUEEN_SIDE}),
    Square.from_algebraic("h8"): frozenset({CastlingDirection.BLACK_KING_SIDE}),
    Square.from_algebraic("a8"): frozenset({CastlingDirection.BLACK_QUEEN_SIDE}),
}


def castling_options(color: Color) -> list[CastlingDirection]:
    """The two directions belonging to one player."""
    return [direction for direction in CastlingDirection if direction.color == color]
