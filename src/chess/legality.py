"""
Legal moves: the candidate moves that do not put (or leave) your own king in check.

Every candidate move gets played on the board, the king is checked for attackers, and the move is taken back again.
"""

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES
from src.chess.history import make_move, unmake_move
from src.chess.moves import Move, generate_pseudo_legal_moves, is_square_attacked
from src.chess.pieces import Color
from src.chess.square import ALL_SQUARES, Square


def is_check(board: Board, color: Color) -> bool:
    """Is the king of the given color under attack?"""
    return is_square_attacked(board.king_square(color), color.opponent, board)


def attacked_squares(board: Board, by_color: Color) -> set[Square]:
    """All squares the given color attacks right now (occupied or not)."""
    return {
        square for square in ALL_SQUARES if is_square_attacked(square, by_color, board)
    }


def is_castling_allowed(board: Board, move: Move) -> bool:
    """
    Cannot castle out of check, through an attacked square or into check.
    """
    assert move.castling_direction is not None
    opponent = move.piece.color.opponent
    return not any(
        is_square_attacked(square, opponent, board)
        for square in CASTLING_RULES[move.castling_direction].king_path
    )


def is_putting_yourself_in_check(board: Board, move: Move) -> bool:
    """Return True if the move leaves the mover's king attacked. The board is back to how it was when this returns."""
    entry = make_move(board, move)
    try:
        return is_check(board, move.piece.color)
    finally:
        unmake_move(board, entry)


def legal_moves(board: Board) -> list[Move]:
    """
    List of legal moves for the player to move
    ----

    1. generate candidate moves, using the movement rules of all pieces (castling, en passant and promotions included)
    2. remove castling moves that pass through check
    3. remove moves that put you in check, or leave you in check
    """
    return [
        move
        for move in generate_pseudo_legal_moves(board)
        if not (move.is_castling and not is_castling_allowed(board, move))
        and not is_putting_yourself_in_check(board, move)
    ]

