"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Chess board is always 8x8.
BOARD_DIMENSIONS = (8, 8)

FILE_NAMES = "abcdefgh"


@dataclass(frozen=True)
class Square:
    """
    Coordinate on the board: file 1-8 (a-h), rank 1-8.

    A Square can only be created inside the board. Stepping off the board with `offset()` gives None instead of a
    wrapped-around square.
    """

    file: int
    rank: int

    def __post_init__(self) -> None:
        if not (
            1 <= self.file <= BOARD_DIMENSIONS[0]
            and 1 <= self.rank <= BOARD_DIMENSIONS[1]
        ):
            raise ValueError(
                f"Square out of bounds: file={self.file}, rank={self.rank}"
            )

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (1,1) - (8,8)"""
        if len(sq) != 2 or sq[0] not in FILE_NAMES or not sq[1].isdigit():
            raise ValueError(f"Cannot interpret {sq!r} as a square.")
        return cls(FILE_NAMES.index(sq[0]) + 1, int(sq[1]))

    def to_algebraic(self) -> str:
        return f"{FILE_NAMES[self.file - 1]}{self.rank}"

    def offset(self, df: int, dr: int) -> Optional[Square]:
        """The square `df` files and `dr` ranks away, or None when that lies off the board."""
        return SQUARES.get((self.file + df, self.rank + dr))

    @property
    def is_light(self) -> bool:
        """a1 is a dark square."""
        return (self.file + self.rank) % 2 == 1

    def __str__(self) -> str:
        return self.to_algebraic()


# Every square gets created once. Movement rules look squares up here instead of building new ones.
SQUARES: dict[tuple[int, int], Square] = {
    (file, rank): Square(file, rank)
    for rank in range(1, BOARD_DIMENSIONS[1] + 1)
    for file in range(1, BOARD_DIMENSIONS[0] + 1)
}

ALL_SQUARES: tuple[Square, ...] = tuple(SQUARES.values())
