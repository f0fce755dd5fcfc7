"""
Making and taking back moves on a Board.

A HistoryEntry is the move plus the handful of fields the move overwrites. That is all that is needed to take the move back,
so we never copy the board.
"""

from dataclasses import dataclass

from src.chess.board import Board, BoardState
from src.chess.castling import CASTLING_RULES, NO_CASTLING_RIGHTS, RIGHTS_LOST_FROM_SQUARE
from src.chess.moves import Move, MoveKind, pawn_direction
from src.chess.pieces import Color, PieceType


@dataclass(frozen=True)
class HistoryEntry:
    move: Move
    state: BoardState


def make_move(board: Board, move: Move) -> HistoryEntry:
    """
    Update the board with a (pseudo-)legal move
    -----

    1. move the piece (captures, en passant, promotion, and the rook when castling)
    2. revoke castling rights if king or rook left / got taken on their starting square
    3. set the en passant square (only right after a double pawn push)
    4. move counters
    5. hand the turn to the opponent
    """
    entry = HistoryEntry(move=move, state=board.snapshot())
    color = move.piece.color

    if move.kind == MoveKind.EN_PASSANT:
        board.set(move.capture_square, None)
    board.set(move.from_square, None)
    board.set(
        move.to_square,
        move.piece.promoted_to(move.promote_to) if move.promote_to else move.piece,
    )
    if move.is_castling:
        assert move.castling_direction is not None
        rule = CASTLING_RULES[move.castling_direction]
        board.move_piece(rule.rook_from, rule.rook_to)

    if board.castling_rights:
        board.castling_rights = (
            board.castling_rights
            - RIGHTS_LOST_FROM_SQUARE.get(move.from_square, NO_CASTLING_RIGHTS)
            - RIGHTS_LOST_FROM_SQUARE.get(move.to_square, NO_CASTLING_RIGHTS)
        )

    board.en_passant_square = (
        move.from_square.offset(0, pawn_direction(color))
        if move.kind == MoveKind.DOUBLE_PAWN_PUSH
        else None
    )

    if move.piece.type == PieceType.PAWN or move.is_capture:
        board.half_move_clock = 0
    else:
        board.half_move_clock += 1
    if color == Color.BLACK:
        board.full_move_number += 1

    board.color_to_move = color.opponent
    return entry


def unmake_move(board: Board, entry: HistoryEntry) -> None:
    """Exact inverse of `make_move()`."""
    move = entry.move
    color = move.piece.color

    board.color_to_move = color
    if color == Color.BLACK:
        board.full_move_number -= 1

    if move.is_castling:
        assert move.castling_direction is not None
        rule = CASTLING_RULES[move.castling_direction]
        board.move_piece(rule.rook_to, rule.rook_from)

    # promoted pieces turn back into the pawn, as the Move remembers the piece that moved
    board.set(move.to_square, None)
    board.set(move.from_square, move.piece)
    if move.captured is not None:
        board.set(move.capture_square, move.captured)

    board.restore(entry.state)
