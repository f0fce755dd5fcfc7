"""
Representation of a single position on the board. The part that can be encoded in a FEN string.
"""

from dataclasses import dataclass
from string import ascii_lowercase
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import CastlingDirection, CastlingRights
from src.chess.pieces import FEN_TO_PIECE, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
VALID_CASTLING_ENCODINGS = [
    "-",
    "K",
    "Q",
    "k",
    "q",
    "KQ",
    "Kk",
    "Kq",
    "Qk",
    "Qq",
    "kq",
    "KQk",
    "KQq",
    "Kkq",
    "Qkq",
    "KQkq",
]

CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)

# ASCII only: str.isdigit also accepts characters like "²" that int() cannot read
RANK_NAMES = "12345678"
EMPTY_SQUARE_COUNTS = set(RANK_NAMES)


def castling_from_fen(castle_fen: str) -> CastlingRights:
    """parse the part of the FEN string that encodes castling rights"""
    return frozenset(
        direction for direction in CastlingDirection if direction.value in castle_fen
    )


def castling_to_fen(castling_rights: CastlingRights) -> str:
    """create the part of the FEN string that encodes castling rights"""
    castling_chars = "".join(
        [direction.value for direction in CASTLING_ORDER if direction in castling_rights]
    )
    return castling_chars or "-"


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.

    The two move counters are optional (plenty of test suites leave them out), so 4 or 6 parts are accepted.
    """
    parts = fen.split(" ")
    if len(parts) not in (4, 6):
        return False

    position, color, castling, en_passant = parts[:4]
    if not is_valid_position(position):
        return False

    if not is_valid_color_code(color):
        return False

    if not is_valid_castling_rights(castling):
        return False

    if not is_valid_en_passant(en_passant):
        return False

    if len(parts) == 6:
        half_move_counter, full_move_counter = parts[4:]
        if not (
            is_valid_move_counter(half_move_counter)
            and is_valid_move_counter(full_move_counter)
        ):
            return False
    return True


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            # make sure every character is valid
            if character in EMPTY_SQUARE_COUNTS:
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                # immediately invalidate if the character is anything else
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. or a '-' if all rights have been revoked."""
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square encoding should be a square that exists on the board or a '-'"""
    return (en_passant == "-") or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_files, num_ranks = BOARD_DIMENSIONS

    if len(square) != 2:
        return False
    file_char, rank_char = square[0], square[1]
    allowed_file_names = ascii_lowercase[:num_files]
    if file_char not in allowed_file_names:
        return False

    if rank_char not in RANK_NAMES[:num_ranks]:
        return False

    return True


def is_valid_move_counter(counter: str) -> bool:
    return counter.isascii() and counter.isdigit()


def setup_errors(board: Board) -> list[str]:
    """
    A well formed FEN can still describe a position that cannot occur in a game.
    Returns what is wrong with it (empty list when nothing is).
    """
    errors: list[str] = []
    for color in Color:
        kings = board.locate_pieces(Piece(PieceType.KING, color))
        if len(kings) != 1:
            errors.append(f"expected one {color.name.lower()} king, found {len(kings)}")

    back_ranks = (1, BOARD_DIMENSIONS[1])
    if any(
        piece.type == PieceType.PAWN and square.rank in back_ranks
        for square, piece in board.pieces()
    ):
        errors.append("pawns cannot stand on the first or last rank")

    if board.en_passant_square is not None:
        # the square the opponent's pawn just skipped: rank 6 when white is to move, rank 3 when black is
        expected_rank = 6 if board.color_to_move == Color.WHITE else 3
        if board.en_passant_square.rank != expected_rank:
            errors.append(
                f"en passant square {board.en_passant_square} does not fit the side to move"
            )
    return errors


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    FEN, or Forsyth-Edwards Notation, is a standard notation for describing a particular board position of a chess game.
    The purpose of FEN is to provide all the necessary information to restart a game from a particular position.

    <board position string><active color><castling rights><en passant square><# half move clock><number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" or "b"
    * Castling rights are denoted as "k" for king-side or "q" for queen-side. Capital letters for the white pieces, small letters for the black pieces.
        In the starting position: KQkq (all rights available), and as rights get revoked a "-" is used instead of the designated letter.
    * The en passant square indicates the square a piece can move to / take on. If not available a "-" is used.
    * The half move clock count the number of moves made since the last pawn move or capture. (Used for the fifty-move draw rule)
    * The number of turns starts at 1 and increments after every move black makes.

    ex) The standard starting position has a FEN
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    i.e. it is white to move, all castling options available, no en passant square, no half moves and we are in the first turn.
    """

    position: str
    color_to_move: Color
    castling_rights: CastlingRights
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""

        # raise an exception if invalid FEN:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        # extract the different components. FEN is space separated, missing counters default to "0 1"
        parts = fen.split(" ")
        if len(parts) == 4:
            parts += ["0", "1"]
        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = parts

        color_to_move = Color.WHITE if active_color == "w" else Color.BLACK
        castling_rights = castling_from_fen(castling_str)
        en_passant_square = (
            Square.from_algebraic(en_passant_algebraic)
            if en_passant_algebraic != "-"
            else None
        )
        return cls(
            position,
            color_to_move,
            castling_rights,
            en_passant_square,
            int(half_move_clock),
            int(num_turns),
        )

    @classmethod
    def from_board(cls, board: Board) -> Self:
        return cls(
            position=board.to_fen(),
            color_to_move=board.color_to_move,
            castling_rights=board.castling_rights,
            en_passant_square=board.en_passant_square,
            half_move_clock=board.half_move_clock,
            num_turns=board.full_move_number,
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        castling_str = castling_to_fen(self.castling_rights)

        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else "-"
        )
        return f"{self.position} {active_color} {castling_str} {en_passant_algebraic} {self.half_move_clock} {self.num_turns}"

    def to_board(self) -> Board:
        """Build the Board, refusing positions that cannot occur in a game."""
        board = Board.from_fen(self.position)
        board.color_to_move = self.color_to_move
        board.castling_rights = self.castling_rights
        board.en_passant_square = self.en_passant_square
        board.half_move_clock = self.half_move_clock
        board.full_move_number = self.num_turns

        errors = setup_errors(board)
        if errors:
            raise InvalidFENError(f"Impossible position {self.to_fen()}: {'; '.join(errors)}")
        return board


def board_from_fen(fen: str) -> Board:
    return FENState.from_fen(fen).to_board()


def board_to_fen(board: Board) -> str:
    return FENState.from_board(board).to_fen()
