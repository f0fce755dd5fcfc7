"""Unit tests for /src/chess/pieces.py"""

from dataclasses import FrozenInstanceError

import pytest

from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType


@pytest.mark.parametrize("char", [char.upper() for char in FEN_TO_PIECE.keys()])
def test_creating_white_piece_from_fen(char: str) -> None:
    """Capital letters are used for white pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.WHITE


@pytest.mark.parametrize("char", [char.lower() for char in FEN_TO_PIECE.keys()])
def test_creating_black_piece_from_fen(char: str) -> None:
    """Lower case letters are used for black pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.BLACK


@pytest.mark.parametrize("piece_type", [piece_type for piece_type in PieceType])
def test_white_pieces_to_fen(piece_type: PieceType) -> None:
    """Capital letters are used for the white pieces"""
    piece = Piece(piece_type, Color.WHITE)
    assert piece.to_fen() == PIECE_TO_FEN[piece_type].upper()


@pytest.mark.parametrize("piece_type", [piece_type for piece_type in PieceType])
def test_black_pieces_to_fen(piece_type: PieceType) -> None:
    """Lower case letters are used for the black pieces"""
    piece = Piece(piece_type, Color.BLACK)
    assert piece.to_fen() == PIECE_TO_FEN[piece_type].lower()


@pytest.mark.parametrize("color", [c for c in Color])
def test_promotion_to_queen(color: Color) -> None:
    """Promotion gives a new piece of the same color, the pawn itself stays a pawn."""
    pawn = Piece(PieceType.PAWN, color)
    queen = pawn.promoted_to(PieceType.QUEEN)
    assert queen == Piece(PieceType.QUEEN, color)
    assert pawn.type == PieceType.PAWN


def test_pieces_are_immutable() -> None:
    piece = Piece(PieceType.ROOK, Color.WHITE)
    with pytest.raises(FrozenInstanceError):
        piece.type = PieceType.QUEEN  # type: ignore[misc]


def test_opponent() -> None:
    assert Color.WHITE.opponent == Color.BLACK
    assert Color.BLACK.opponent == Color.WHITE
