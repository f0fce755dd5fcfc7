"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the pseudo-legal move sets for each piece type.
Pseudo-legal: the moves respect how pieces move and get blocked, but may still leave your own king in check.

Legality is checked later (src/chess/legality.py)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Protocol

from src.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    CastlingRights,
    castling_options,
)
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    color_to_move: Color
    castling_rights: CastlingRights
    en_passant_square: Optional[Square]

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...
    def is_any_occupied(self, squares: list[Square]) -> bool: ...
    def locate_color(self, color: Color) -> list[Square]: ...


Vector = tuple[int, int]


class MoveKind(Enum):
    NORMAL = auto()
    DOUBLE_PAWN_PUSH = auto()
    EN_PASSANT = auto()
    CASTLE_KING_SIDE = auto()
    CASTLE_QUEEN_SIDE = auto()
    PROMOTION = auto()


@dataclass(frozen=True)
class Move:
    """
    A move that carries everything needed to replay or take it back without looking at the board again:
    the piece that moves, the piece it captures (if any) and what is special about it.
    """

    from_square: Square
    to_square: Square
    piece: Piece
    captured: Optional[Piece] = None
    kind: MoveKind = MoveKind.NORMAL
    promote_to: Optional[PieceType] = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_castling(self) -> bool:
        return self.kind in (MoveKind.CASTLE_KING_SIDE, MoveKind.CASTLE_QUEEN_SIDE)

    @property
    def castling_direction(self) -> Optional[CastlingDirection]:
        if not self.is_castling:
            return None
        king_side = self.kind == MoveKind.CASTLE_KING_SIDE
        if self.piece.color == Color.WHITE:
            return (
                CastlingDirection.WHITE_KING_SIDE
                if king_side
                else CastlingDirection.WHITE_QUEEN_SIDE
            )
        return (
            CastlingDirection.BLACK_KING_SIDE
            if king_side
            else CastlingDirection.BLACK_QUEEN_SIDE
        )

    @property
    def capture_square(self) -> Square:
        """Where the captured piece stands. Only differs from `to_square` for en passant."""
        if self.kind == MoveKind.EN_PASSANT:
            return Square(self.to_square.file, self.from_square.rank)
        return self.to_square

    def to_uci(self) -> str:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves. This is the token that gets sent over the wire.

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side
        """
        return build_uci(
            self.from_square.to_algebraic(),
            self.to_square.to_algebraic(),
            self.promote_to,
        )

    def __str__(self) -> str:
        return self.to_uci()


def build_uci(
    from_square_alg: str, to_square_alg: str, promotion: Optional[PieceType] = None
) -> str:
    piece_char = PIECE_TO_FEN[promotion] if promotion else ""
    return f"{from_square_alg}{to_square_alg}{piece_char}"


def parse_uci(uci: str) -> tuple[Square, Square, Optional[PieceType]]:
    """Split a UCI token into its squares and the promotion choice. Raises ValueError on anything malformed."""
    if len(uci) not in (4, 5):
        raise ValueError(f"Cannot interpret {uci!r} as a UCI move.")
    from_square = Square.from_algebraic(uci[:2])
    to_square = Square.from_algebraic(uci[2:4])
    promote_to = None
    if len(uci) == 5:
        if uci[4] not in PROMOTION_CHARACTERS:
            raise ValueError(f"Cannot promote to {uci[4]!r} in {uci!r}.")
        promote_to = FEN_TO_PIECE[uci[4]]
    return from_square, to_square, promote_to


# --- GEOMETRY ---
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = STRAIGHTS + DIAGONALS


def _ray(square: Square, direction: Vector) -> tuple[Square, ...]:
    df, dr = direction
    squares: list[Square] = []
    target = square.offset(df, dr)
    while target is not None:
        squares.append(target)
        target = target.offset(df, dr)
    return tuple(squares)


def _steps(square: Square, deltas: list[Vector]) -> tuple[Square, ...]:
    targets = (square.offset(df, dr) for df, dr in deltas)
    return tuple(target for target in targets if target is not None)


# Lines of sight from every square, computed once. Bounds are settled here so the rules never check them again.
RAYS: dict[Square, dict[Vector, tuple[Square, ...]]] = {
    square: {direction: _ray(square, direction) for direction in KING_DELTAS}
    for square in ALL_SQUARES
}
KNIGHT_TARGETS: dict[Square, tuple[Square, ...]] = {
    square: _steps(square, KNIGHT_DELTAS) for square in ALL_SQUARES
}
KING_TARGETS: dict[Square, tuple[Square, ...]] = {
    square: _steps(square, KING_DELTAS) for square in ALL_SQUARES
}


def pawn_direction(color: Color) -> int:
    """White moves UP the board, black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_starting_rank(color: Color) -> int:
    return 2 if color == Color.WHITE else BOARD_DIMENSIONS[1] - 1


def promotion_rank(color: Color) -> int:
    return BOARD_DIMENSIONS[1] if color == Color.WHITE else 1


# Where a pawn of the given color has to stand to take on the square: one rank "behind" it, from that color's view.
PAWN_ATTACKER_SQUARES: dict[Color, dict[Square, tuple[Square, ...]]] = {
    color: {
        square: _steps(
            square, [(1, -pawn_direction(color)), (-1, -pawn_direction(color))]
        )
        for square in ALL_SQUARES
    }
    for color in Color
}


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Move]:
    """
    Raycasting algorithm
    -----

    The main trick we use to check the 'line of sight of a piece'.
    We move along each direction until we hit another piece or the edge of the board.
    A friendly piece blocks the square, an opponent's piece can be captured and then blocks the rest of the ray.
    """
    moving_piece = board.piece(square)
    assert moving_piece is not None

    moves: list[Move] = []
    for direction in directions:
        for target_square in RAYS[square][direction]:
            occupant = board.piece(target_square)
            if occupant is None:
                moves.append(Move(square, target_square, moving_piece))
                continue
            if occupant.color != moving_piece.color:
                moves.append(Move(square, target_square, moving_piece, occupant))
            break
    return moves


def single_step_move(
    square: Square, board: Board, targets: tuple[Square, ...]
) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that jump to a fixed set of squares"""
    moving_piece = board.piece(square)
    assert moving_piece is not None

    moves: list[Move] = []
    for target_square in targets:
        occupant = board.piece(target_square)
        if occupant is None or occupant.color != moving_piece.color:
            moves.append(Move(square, target_square, moving_piece, occupant))
    return moves


def candidate_pawn_moves(square: Square, board: Board) -> list[Move]:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting rank), if both squares are empty
    - takes diagonally, or en passant onto the square the opponent's pawn just skipped
    - promotes when it reaches the final rank
    """
    pawn = board.piece(square)
    assert pawn is not None
    direction = pawn_direction(pawn.color)

    moves: list[Move] = []
    one_step = square.offset(0, direction)
    if one_step is not None and board.is_empty(one_step):
        moves.extend(with_promotions(Move(square, one_step, pawn)))
        two_steps = one_step.offset(0, direction)
        if (
            square.rank == pawn_starting_rank(pawn.color)
            and two_steps is not None
            and board.is_empty(two_steps)
        ):
            moves.append(Move(square, two_steps, pawn, kind=MoveKind.DOUBLE_PAWN_PUSH))

    # pawns take diagonally:
    for df in (-1, 1):
        target_square = square.offset(df, direction)
        if target_square is None:
            continue
        occupant = board.piece(target_square)
        if occupant is not None:
            if occupant.color != pawn.color:
                moves.extend(with_promotions(Move(square, target_square, pawn, occupant)))
        elif target_square == board.en_passant_square:
            moves.extend(en_passant_moves(square, target_square, board))
    return moves


def candidate_knight_moves(square: Square, board: Board) -> list[Move]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_TARGETS[square])


def candidate_bishop_moves(square: Square, board: Board) -> list[Move]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Move]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Move]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(square, board, DIAGONALS + STRAIGHTS)


def candidate_king_moves(square: Square, board: Board) -> list[Move]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled separately).
    """
    return single_step_move(square, board, KING_TARGETS[square])


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_types: tuple[PieceType, ...],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Similar to raycasting moves.
    However, where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color that
    is allowed to move along the given direction?"_

    Only the first piece found along each direction matters.
    """
    for direction in directions:
        for target_square in RAYS[square][direction]:
            piece_found = board.piece(target_square)
            if piece_found is None:
                continue
            if piece_found.color == by_color and piece_found.type in by_piece_types:
                return True
            break
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    targets: tuple[Square, ...],
) -> bool:
    """
    The single step equivalent: is one of the given squares occupied by an attacker of the specified type and color?
    """
    attacker = Piece(by_piece_type, by_color)
    return any(board.piece(target_square) == attacker for target_square in targets)


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric, so to check IF a white pawn could take on your square -->
    Must look one rank DOWN the board.
    """
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, PAWN_ATTACKER_SQUARES[by_color][square]
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(
        square, by_color, PieceType.KNIGHT, board, KNIGHT_TARGETS[square]
    )


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(
        square, by_color, PieceType.KING, board, KING_TARGETS[square]
    )


def is_attacked_on_diagonal(square: Square, by_color: Color, board: Board) -> bool:
    """Bishops and the queen"""
    return raycasting_attack(
        square, by_color, (PieceType.BISHOP, PieceType.QUEEN), board, DIAGONALS
    )


def is_attacked_on_straight(square: Square, by_color: Color, board: Board) -> bool:
    """Rooks and the queen"""
    return raycasting_attack(
        square, by_color, (PieceType.ROOK, PieceType.QUEEN), board, STRAIGHTS
    )


# --- STRATEGY PATTERN: ATTACKING RULES ---
# The queen is covered by both sliding rules, so the rules are keyed by line of attack rather than piece type.
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: tuple[IsAttackedFn, ...] = (
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_by_king,
    is_attacked_on_diagonal,
    is_attacked_on_straight,
)


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    return any(rule(square, by_color, board) for rule in ATTACK_RULES)


# -- CASTLING MOVES ---
def candidate_castling_moves(board: Board) -> list[Move]:
    """
    Castling for the player to move
    ---

    **castling is generated if**
    * castling rights are not revoked (and king + rook still stand on their starting squares)
    * the squares in between king and rook are empty
    * the king is not in check, and does not pass over or land on an attacked square
    """
    color = board.color_to_move
    king = Piece(PieceType.KING, color)
    rook = Piece(PieceType.ROOK, color)

    moves: list[Move] = []
    for direction in castling_options(color):
        if direction not in board.castling_rights:
            continue
        rule = CASTLING_RULES[direction]
        if board.piece(rule.king_from) != king or board.piece(rule.rook_from) != rook:
            continue
        if board.is_any_occupied(rule.empty_path):
            continue
        if any(
            is_square_attacked(square, color.opponent, board)
            for square in rule.king_path
        ):
            continue
        kind = (
            MoveKind.CASTLE_KING_SIDE
            if direction.is_king_side
            else MoveKind.CASTLE_QUEEN_SIDE
        )
        moves.append(Move(rule.king_from, rule.king_to, king, kind=kind))
    return moves


# -- EN PASSANT MOVES ---
def en_passant_moves(square: Square, target_square: Square, board: Board) -> list[Move]:
    """
    The pawn moves diagonally onto the en passant square, and takes the opponent's pawn standing next to it
    (same file as the en passant square, same rank as the pawn that takes).
    """
    pawn = board.piece(square)
    assert pawn is not None
    taken_pawn = board.piece(Square(target_square.file, square.rank))
    if taken_pawn != Piece(PieceType.PAWN, pawn.color.opponent):
        return []
    return [Move(square, target_square, pawn, taken_pawn, kind=MoveKind.EN_PASSANT)]


# -- PAWN PROMOTION MOVES --
PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]
PROMOTION_CHARACTERS = {PIECE_TO_FEN[piece_type] for piece_type in PROMOTION_OPTIONS}


def with_promotions(pawn_move: Move) -> list[Move]:
    """A pawn move reaching the final rank turns into one move for every piece type the pawn can promote into."""
    if pawn_move.to_square.rank != promotion_rank(pawn_move.piece.color):
        return [pawn_move]
    return [
        Move(
            from_square=pawn_move.from_square,
            to_square=pawn_move.to_square,
            piece=pawn_move.piece,
            captured=pawn_move.captured,
            kind=MoveKind.PROMOTION,
            promote_to=piece_type,
        )
        for piece_type in PROMOTION_OPTIONS
    ]


# -- ALL CANDIDATE MOVES ---
def generate_pseudo_legal_moves(board: Board) -> list[Move]:
    """
    Candidate moves of the player to move, before knowing which of them leave the own king in check.
    Squares are visited a1 to h8, so the order is the same every time for the same board.
    """
    candidate_moves: list[Move] = []
    for starting_square in board.locate_color(board.color_to_move):
        piece = board.piece(starting_square)
        assert piece is not None
        movement_rule = MOVEMENT_RULES[piece.type]
        candidate_moves.extend(movement_rule(starting_square, board))
    candidate_moves.extend(candidate_castling_moves(board))
    return candidate_moves
