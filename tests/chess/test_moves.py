"""Unit tests for /src/chess/moves.py"""

from typing import Optional
from unittest.mock import Mock, patch

import pytest

from src.chess.board import Board
from src.chess.castling import NO_CASTLING_RIGHTS, CastlingDirection
from src.chess.moves import (
    MOVEMENT_RULES,
    Move,
    MoveKind,
    build_uci,
    candidate_bishop_moves,
    candidate_castling_moves,
    candidate_king_moves,
    candidate_knight_moves,
    candidate_pawn_moves,
    candidate_queen_moves,
    candidate_rook_moves,
    generate_pseudo_legal_moves,
    is_square_attacked,
    parse_uci,
)
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def targets(moves: list[Move]) -> set[str]:
    return {move.to_square.to_algebraic() for move in moves}


def make_board(
    placement: str,
    color_to_move: Color = Color.WHITE,
    en_passant: Optional[str] = None,
    castling_rights: frozenset[CastlingDirection] = NO_CASTLING_RIGHTS,
) -> Board:
    board = Board.from_fen(placement)
    board.color_to_move = color_to_move
    board.en_passant_square = sq(en_passant) if en_passant else None
    board.castling_rights = castling_rights
    return board


# -- MOVE VALUE / UCI ---
def test_move_to_uci() -> None:
    pawn = Piece(PieceType.PAWN, Color.WHITE)
    assert Move(sq("e2"), sq("e4"), pawn, kind=MoveKind.DOUBLE_PAWN_PUSH).to_uci() == "e2e4"
    promotion = Move(
        sq("e7"), sq("e8"), pawn, kind=MoveKind.PROMOTION, promote_to=PieceType.QUEEN
    )
    assert promotion.to_uci() == "e7e8q"
    assert str(promotion) == "e7e8q"


def test_build_uci() -> None:
    assert build_uci("g1", "f3") == "g1f3"
    assert build_uci("b2", "a1", PieceType.KNIGHT) == "b2a1n"


@pytest.mark.parametrize(
    "uci, expected",
    [
        ("e2e4", (sq("e2"), sq("e4"), None)),
        ("e1g1", (sq("e1"), sq("g1"), None)),
        ("a7a8r", (sq("a7"), sq("a8"), PieceType.ROOK)),
    ],
)
def test_parse_uci(
    uci: str, expected: tuple[Square, Square, Optional[PieceType]]
) -> None:
    assert parse_uci(uci) == expected


@pytest.mark.parametrize("uci", ["", "e2", "e2e", "e2e9", "z1a1", "a7a8k", "a7a8p", "e2e4qq"])
def test_parse_invalid_uci(uci: str) -> None:
    with pytest.raises(ValueError):
        _ = parse_uci(uci)


def test_en_passant_capture_square() -> None:
    """The taken pawn is not on the square the capturing pawn lands on."""
    move = Move(
        sq("e5"),
        sq("d6"),
        Piece(PieceType.PAWN, Color.WHITE),
        Piece(PieceType.PAWN, Color.BLACK),
        kind=MoveKind.EN_PASSANT,
    )
    assert move.capture_square == sq("d5")
    assert move.is_capture


def test_moves_are_hashable_values() -> None:
    knight = Piece(PieceType.KNIGHT, Color.WHITE)
    assert Move(sq("g1"), sq("f3"), knight) == Move(sq("g1"), sq("f3"), knight)
    assert len({Move(sq("g1"), sq("f3"), knight), Move(sq("g1"), sq("f3"), knight)}) == 1


@pytest.mark.parametrize(
    "kind, color, direction",
    [
        (MoveKind.CASTLE_KING_SIDE, Color.WHITE, CastlingDirection.WHITE_KING_SIDE),
        (MoveKind.CASTLE_QUEEN_SIDE, Color.WHITE, CastlingDirection.WHITE_QUEEN_SIDE),
        (MoveKind.CASTLE_KING_SIDE, Color.BLACK, CastlingDirection.BLACK_KING_SIDE),
        (MoveKind.CASTLE_QUEEN_SIDE, Color.BLACK, CastlingDirection.BLACK_QUEEN_SIDE),
        (MoveKind.NORMAL, Color.WHITE, None),
    ],
)
def test_castling_direction(
    kind: MoveKind, color: Color, direction: Optional[CastlingDirection]
) -> None:
    rank = 1 if color == Color.WHITE else 8
    move = Move(Square(5, rank), Square(7, rank), Piece(PieceType.KING, color), kind=kind)
    assert move.castling_direction == direction
    assert move.is_castling == (direction is not None)


# -- MOVEMENT RULES ---
def test_knight_in_the_corner() -> None:
    board = make_board("8/8/8/8/8/8/8/N7")
    assert targets(candidate_knight_moves(sq("a1"), board)) == {"b3", "c2"}


def test_knight_in_the_center() -> None:
    board = make_board("8/8/8/8/3N4/8/8/8")
    assert targets(candidate_knight_moves(sq("d4"), board)) == {
        "b3", "b5", "c2", "c6", "e2", "e6", "f3", "f5",
    }


def test_knight_blocked_by_own_pieces_but_takes_opponents() -> None:
    board = make_board("8/8/8/8/8/1p6/2P5/N7")
    moves = candidate_knight_moves(sq("a1"), board)
    assert targets(moves) == {"b3"}
    assert moves[0].captured == Piece(PieceType.PAWN, Color.BLACK)


def test_bishop_rays_stop_at_pieces() -> None:
    board = make_board("8/8/5p2/8/3B4/8/1P6/8")
    assert targets(candidate_bishop_moves(sq("d4"), board)) == {
        "e5", "f6",  # stops after taking
        "c5", "b6", "a7",
        "e3", "f2", "g1",
        "c3",  # own pawn on b2
    }


def test_rook_on_empty_board() -> None:
    board = make_board("8/8/8/8/8/8/8/R7")
    assert len(candidate_rook_moves(sq("a1"), board)) == 14


def test_queen_combines_rook_and_bishop() -> None:
    board = make_board("8/8/8/8/3Q4/8/8/8")
    queen_targets = targets(candidate_queen_moves(sq("d4"), board))
    board_with_rook = make_board("8/8/8/8/3R4/8/8/8")
    board_with_bishop = make_board("8/8/8/8/3B4/8/8/8")
    assert queen_targets == targets(candidate_rook_moves(sq("d4"), board_with_rook)) | targets(
        candidate_bishop_moves(sq("d4"), board_with_bishop)
    )
    assert len(queen_targets) == 27


def test_king_steps() -> None:
    board = make_board("8/8/8/8/8/8/8/4K3")
    assert targets(candidate_king_moves(sq("e1"), board)) == {"d1", "d2", "e2", "f2", "f1"}


# -- PAWNS ---
def test_pawn_single_and_double_push() -> None:
    board = make_board(STARTING_POSITION_FEN)
    moves = candidate_pawn_moves(sq("e2"), board)
    assert targets(moves) == {"e3", "e4"}
    double_push = next(move for move in moves if move.to_square == sq("e4"))
    assert double_push.kind == MoveKind.DOUBLE_PAWN_PUSH


def test_black_pawn_moves_down() -> None:
    board = make_board(STARTING_POSITION_FEN, Color.BLACK)
    assert targets(candidate_pawn_moves(sq("d7"), board)) == {"d6", "d5"}


def test_pawn_blocked() -> None:
    """Blocked in front: no push at all, also not a double push jumping over the blocker."""
    board = make_board("8/8/8/8/8/4n3/4P3/8")
    assert candidate_pawn_moves(sq("e2"), board) == []


def test_double_push_blocked_on_second_square() -> None:
    board = make_board("8/8/8/8/4n3/8/4P3/8")
    assert targets(candidate_pawn_moves(sq("e2"), board)) == {"e3"}


def test_no_double_push_off_starting_rank() -> None:
    board = make_board("8/8/8/8/8/4P3/8/8")
    assert targets(candidate_pawn_moves(sq("e3"), board)) == {"e4"}


def test_pawn_captures_diagonally() -> None:
    board = make_board("8/8/8/3p1P2/4P3/8/8/8")
    moves = candidate_pawn_moves(sq("e4"), board)
    assert targets(moves) == {"e5", "d5"}


def test_pawn_en_passant() -> None:
    board = make_board("8/8/8/3pP3/8/8/8/8", en_passant="d6")
    moves = candidate_pawn_moves(sq("e5"), board)
    en_passant = [move for move in moves if move.kind == MoveKind.EN_PASSANT]
    assert len(en_passant) == 1
    assert en_passant[0].to_square == sq("d6")
    assert en_passant[0].captured == Piece(PieceType.PAWN, Color.BLACK)
    assert en_passant[0].capture_square == sq("d5")


def test_no_en_passant_without_the_pawn() -> None:
    """An en passant square with nothing to take next to it yields no move."""
    board = make_board("8/8/8/4P3/8/8/8/8", en_passant="d6")
    assert targets(candidate_pawn_moves(sq("e5"), board)) == {"e6"}


@pytest.mark.parametrize("color, start, target", [(Color.WHITE, "b7", "b8"), (Color.BLACK, "b2", "b1")])
def test_promotions(color: Color, start: str, target: str) -> None:
    placement = "8/1P6/8/8/8/8/8/8" if color == Color.WHITE else "8/8/8/8/8/8/1p6/8"
    board = make_board(placement, color)
    moves = candidate_pawn_moves(sq(start), board)
    assert len(moves) == 4
    assert all(move.kind == MoveKind.PROMOTION for move in moves)
    assert all(move.to_square == sq(target) for move in moves)
    assert {move.promote_to for move in moves} == {
        PieceType.KNIGHT,
        PieceType.BISHOP,
        PieceType.ROOK,
        PieceType.QUEEN,
    }


def test_capture_promotion_keeps_captured_piece() -> None:
    board = make_board("r7/1P6/8/8/8/8/8/8")
    moves = candidate_pawn_moves(sq("b7"), board)
    captures = [move for move in moves if move.to_square == sq("a8")]
    assert len(captures) == 4
    assert all(move.captured == Piece(PieceType.ROOK, Color.BLACK) for move in captures)
    assert len(moves) == 8


# -- ATTACKS ---
@pytest.mark.parametrize(
    "placement, square, by_color, expected",
    [
        ("8/8/8/8/8/8/8/R7", "a8", Color.WHITE, True),  # rook up the file
        ("8/8/8/8/8/p7/8/R7", "a8", Color.WHITE, False),  # blocked
        ("8/8/8/8/8/8/8/B7", "h8", Color.WHITE, True),  # long diagonal
        ("8/8/8/8/8/8/8/B7", "a8", Color.WHITE, False),
        ("8/8/8/8/8/8/8/Q7", "h8", Color.WHITE, True),
        ("8/8/8/8/8/8/8/Q7", "a5", Color.WHITE, True),
        ("8/8/8/8/8/8/8/N7", "b3", Color.WHITE, True),
        ("8/8/8/8/8/8/8/K7", "b2", Color.WHITE, True),
        ("8/8/8/8/8/8/8/K7", "c3", Color.WHITE, False),
        ("8/8/8/8/8/8/4P3/8", "d3", Color.WHITE, True),  # white pawns take upwards
        ("8/8/8/8/8/8/4P3/8", "e3", Color.WHITE, False),  # not straight ahead
        ("8/8/8/8/8/8/4P3/8", "d1", Color.WHITE, False),  # not backwards
        ("8/4p3/8/8/8/8/8/8", "f6", Color.BLACK, True),  # black pawns take downwards
        ("8/4p3/8/8/8/8/8/8", "f8", Color.BLACK, False),
        ("8/8/8/8/8/8/8/R7", "a8", Color.BLACK, False),  # wrong color
    ],
)
def test_is_square_attacked(
    placement: str, square: str, by_color: Color, expected: bool
) -> None:
    board = make_board(placement)
    assert is_square_attacked(sq(square), by_color, board) == expected


def test_rook_does_not_attack_diagonally() -> None:
    board = make_board("8/8/8/8/8/8/8/R7")
    assert not is_square_attacked(sq("b2"), Color.WHITE, board)


# -- CASTLING ---
CASTLING_PLACEMENT = "r3k2r/8/8/8/8/8/8/R3K2R"
ALL_RIGHTS = frozenset(CastlingDirection)


def test_castling_both_sides() -> None:
    board = make_board(CASTLING_PLACEMENT, castling_rights=ALL_RIGHTS)
    moves = candidate_castling_moves(board)
    assert {(move.to_uci(), move.kind) for move in moves} == {
        ("e1g1", MoveKind.CASTLE_KING_SIDE),
        ("e1c1", MoveKind.CASTLE_QUEEN_SIDE),
    }


def test_castling_for_black() -> None:
    board = make_board(CASTLING_PLACEMENT, Color.BLACK, castling_rights=ALL_RIGHTS)
    assert {move.to_uci() for move in candidate_castling_moves(board)} == {"e8g8", "e8c8"}


def test_no_castling_without_rights() -> None:
    board = make_board(
        CASTLING_PLACEMENT,
        castling_rights=frozenset({CastlingDirection.BLACK_KING_SIDE}),
    )
    assert candidate_castling_moves(board) == []


def test_no_castling_through_pieces() -> None:
    """b1 is not crossed by the king, but it still has to be empty."""
    board = make_board("r3k2r/8/8/8/8/8/8/RN2K1NR", castling_rights=ALL_RIGHTS)
    assert candidate_castling_moves(board) == []


@pytest.mark.parametrize(
    "placement, allowed",
    [
        ("r3k2r/8/8/8/8/8/8/R3K2R", {"e1g1", "e1c1"}),
        ("r3k2r/8/8/8/4r3/8/8/R3K2R", set()),  # in check: no castling at all
        ("r3k2r/8/8/8/5r2/8/8/R3K2R", {"e1c1"}),  # f1 attacked
        ("r3k2r/8/8/8/6r1/8/8/R3K2R", {"e1c1"}),  # g1 attacked
        ("r3k2r/8/8/8/3r4/8/8/R3K2R", {"e1g1"}),  # d1 attacked
        ("r3k2r/8/8/8/1r6/8/8/R3K2R", {"e1g1", "e1c1"}),  # b1 attacked is fine
        ("r3k2r/8/8/8/7r/8/8/R3K2R", {"e1g1", "e1c1"}),  # rook attacked is fine
    ],
)
def test_castling_through_check(placement: str, allowed: set[str]) -> None:
    board = make_board(placement, castling_rights=ALL_RIGHTS)
    assert {move.to_uci() for move in candidate_castling_moves(board)} == allowed


def test_no_castling_when_rook_is_gone() -> None:
    board = make_board("r3k2r/8/8/8/8/8/8/4K2R", castling_rights=ALL_RIGHTS)
    assert {move.to_uci() for move in candidate_castling_moves(board)} == {"e1g1"}


# -- ALL CANDIDATE MOVES ---
def test_starting_position_has_twenty_candidate_moves() -> None:
    board = make_board(STARTING_POSITION_FEN, castling_rights=ALL_RIGHTS)
    moves = generate_pseudo_legal_moves(board)
    assert len(moves) == 20
    assert len(set(moves)) == 20


def test_generation_is_deterministic() -> None:
    board = make_board(STARTING_POSITION_FEN, castling_rights=ALL_RIGHTS)
    assert generate_pseudo_legal_moves(board) == generate_pseudo_legal_moves(board)


def test_generator_dispatches_on_piece_type() -> None:
    """Every piece of the side to move gets its own movement rule called exactly once."""
    board = make_board("4k3/8/8/8/8/8/8/RN2K3")
    mock_rules = {piece_type: Mock(return_value=[]) for piece_type in PieceType}
    with patch.dict(MOVEMENT_RULES, mock_rules):
        _ = generate_pseudo_legal_moves(board)

    mock_rules[PieceType.ROOK].assert_called_once_with(sq("a1"), board)
    mock_rules[PieceType.KNIGHT].assert_called_once_with(sq("b1"), board)
    mock_rules[PieceType.KING].assert_called_once_with(sq("e1"), board)
    mock_rules[PieceType.PAWN].assert_not_called()
