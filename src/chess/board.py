"""The Game board: mailbox storage of the pieces plus the bookkeeping fields of a position. No rules live here."""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from src.chess.castling import ALL_CASTLING_RIGHTS, CastlingRights
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square

# Placement, side to move, castling rights and en passant target: two positions with equal keys are "the same position"
PositionKey = tuple[tuple[Optional[Piece], ...], Color, CastlingRights, Optional[Square]]


@dataclass(frozen=True)
class BoardState:
    """The fields a move overwrites that cannot be recomputed when taking it back."""

    castling_rights: CastlingRights
    en_passant_square: Optional[Square]
    half_move_clock: int


@dataclass
class Board:
    squares: dict[Square, Optional[Piece]]
    color_to_move: Color = Color.WHITE
    castling_rights: CastlingRights = ALL_CASTLING_RIGHTS
    en_passant_square: Optional[Square] = None
    half_move_clock: int = 0
    full_move_number: int = 1
    _kings: dict[Color, Square] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        # one slot per square, always in the same order (position keys rely on it)
        self.squares = {square: self.squares.get(square) for square in ALL_SQUARES}
        self._kings = {
            piece.color: square
            for square, piece in self.squares.items()
            if piece is not None and piece.type == PieceType.KING
        }

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using a given FEN string.

        That is, we supply the first part of the FEN string that denotes the board position
        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces. Left-to-right reads a1-h1.

        NOTE: validation happens in src/chess/fen.py. This assumes a well formed string.
        """
        squares: dict[Square, Optional[Piece]] = {}
        for rank_idx, fen_one_rank in enumerate(fen_str.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 1
            for character in fen_one_rank:
                if character.isalpha():
                    squares[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
        return cls(squares)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(1, BOARD_DIMENSIONS[0] + 1):
            piece = self.piece(Square(file, rank))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- STORAGE ---
    def piece(self, square: Square) -> Optional[Piece]:
        return self.squares[square]

    def set(self, square: Square, piece: Optional[Piece]) -> None:
        """Put a piece on the square (or clear it with None). Keeps the king lookup in sync."""
        previous = self.squares[square]
        if (
            previous is not None
            and previous.type == PieceType.KING
            and self._kings.get(previous.color) == square
        ):
            del self._kings[previous.color]
        if piece is not None and piece.type == PieceType.KING:
            self._kings[piece.color] = square
        self.squares[square] = piece

    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]:
        """Move whatever stands on `from_square`; hands back the piece that was standing on `to_square`."""
        captured = self.squares[to_square]
        moving = self.squares[from_square]
        self.set(from_square, None)
        self.set(to_square, moving)
        return captured

    def king_square(self, color: Color) -> Square:
        if color not in self._kings:
            raise LookupError(f"No {color.name.lower()} king on the board")
        return self._kings[color]

    def is_empty(self, square: Square) -> bool:
        return self.squares[square] is None

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(self.squares[square] is not None for square in squares)

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square
            for square, piece in self.squares.items()
            if piece is not None and piece.color == color
        ]

    def locate_pieces(self, piece: Piece) -> list[Square]:
        return [square for square, found in self.squares.items() if found == piece]

    def pieces(self) -> Iterator[tuple[Square, Piece]]:
        """All occupied squares, a1 first."""
        for square, piece in self.squares.items():
            if piece is not None:
                yield square, piece

    # --- HISTORY BOOKKEEPING ---
    def snapshot(self) -> BoardState:
        return BoardState(
            castling_rights=self.castling_rights,
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
        )

    def restore(self, state: BoardState) -> None:
        self.castling_rights = state.castling_rights
        self.en_passant_square = state.en_passant_square
        self.half_move_clock = state.half_move_clock

    def position_key(self) -> PositionKey:
        return (
            tuple(self.squares.values()),
            self.color_to_move,
            self.castling_rights,
            self.en_passant_square,
        )
