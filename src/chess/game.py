"""
The Game class is the entrypoint into the domain layer for the service layer (and for the perft harness).
It owns the Board and the history stack, applies / takes back moves and classifies the position after every change:
check, checkmate, stalemate or one of the draws.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Optional, Self

from src.chess.board import Board, PositionKey
from src.chess.fen import STARTING_FEN, FENState
from src.chess.history import HistoryEntry, make_move, unmake_move
from src.chess.legality import is_check as is_king_in_check
from src.chess.legality import legal_moves as generate_legal_moves
from src.chess.moves import Move, parse_uci
from src.chess.pieces import Color, PieceType
from src.chess.square import Square
from src.core.exceptions import (
    GameOverError,
    IllegalMoveError,
    InvalidFENError,
    NoHistoryError,
)

logger = logging.getLogger(__name__)


class GameState(Enum):
    IN_PROGRESS = auto()
    CHECK = auto()
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (GameState.CHECKMATE, GameState.STALEMATE, GameState.DRAW)


class DrawReason(Enum):
    FIFTY_MOVE_RULE = auto()
    REPETITION = auto()
    INSUFFICIENT_MATERIAL = auto()


@dataclass(frozen=True)
class DrawPolicy:
    """
    Which draw rules are adjudicated, and at what threshold.
    A limit of None switches that rule off.
    """

    fifty_move_limit: Optional[int] = 100  # half-moves without a pawn move or capture
    repetition_limit: Optional[int] = 3  # occurrences of the same position
    insufficient_material: bool = True


MINOR_PIECES = (PieceType.KNIGHT, PieceType.BISHOP)


def is_insufficient_material(board: Board) -> bool:
    """K vs K, K+B vs K, K+N vs K, K+B vs K+B (same-color bishops)."""
    non_kings = [
        (square, piece)
        for square, piece in board.pieces()
        if piece.type != PieceType.KING
    ]

    # K vs K
    if not non_kings:
        return True

    # K+minor vs K
    if len(non_kings) == 1:
        return non_kings[0][1].type in MINOR_PIECES

    # K+B vs K+B with same-colour bishops
    if len(non_kings) == 2:
        (square_a, piece_a), (square_b, piece_b) = non_kings
        return (
            piece_a.type == PieceType.BISHOP
            and piece_b.type == PieceType.BISHOP
            and piece_a.color != piece_b.color
            and square_a.is_light == square_b.is_light
        )
    return False


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    draw_policy: DrawPolicy = field(default_factory=DrawPolicy)
    starting_fen: str = STARTING_FEN
    history: list[HistoryEntry] = field(default_factory=list)
    position_keys: list[PositionKey] = field(default_factory=list)
    _legal_moves: Optional[tuple[Move, ...]] = field(default=None, init=False, repr=False)
    _state: Optional[GameState] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.position_keys:
            self.position_keys.append(self.board.position_key())

    @classmethod
    def new_game(cls, draw_policy: Optional[DrawPolicy] = None) -> Self:
        """Standard starting position, white to move."""
        return cls.from_fen(STARTING_FEN, draw_policy)

    @classmethod
    def from_fen(cls, fen: str, draw_policy: Optional[DrawPolicy] = None) -> Self:
        """
        Import a position. Raises InvalidFENError when the FEN is malformed or describes a position
        that cannot occur in a game (which includes the side that just moved still being in check).
        """
        board = FENState.from_fen(fen).to_board()
        if is_king_in_check(board, board.color_to_move.opponent):
            raise InvalidFENError(
                f"Impossible position {fen}: the side not to move is in check"
            )
        return cls(
            board=board,
            draw_policy=draw_policy or DrawPolicy(),
            starting_fen=FENState.from_board(board).to_fen(),
        )

    @classmethod
    def replay(
        cls,
        starting_fen: str,
        moves_uci: Iterable[str],
        draw_policy: Optional[DrawPolicy] = None,
    ) -> Self:
        """Rebuild a game from its starting position and the moves played since (how the service stores a match)."""
        game = cls.from_fen(starting_fen, draw_policy)
        for uci in moves_uci:
            game.apply_uci(uci)
        return game

    # --- QUERIES ---
    def legal_moves(self) -> list[Move]:
        """Legal moves of the side to move. Computed once per position, every call hands out a fresh list."""
        if self._legal_moves is None:
            self._legal_moves = tuple(generate_legal_moves(self.board))
        return list(self._legal_moves)

    def legal_moves_from(self, square: Square) -> list[Move]:
        """The moves of the piece on this square (used to highlight reachable squares)."""
        return [move for move in self.legal_moves() if move.from_square == square]

    @property
    def color_to_move(self) -> Color:
        return self.board.color_to_move

    @property
    def moves(self) -> list[Move]:
        """Moves applied so far, oldest first."""
        return [entry.move for entry in self.history]

    @property
    def is_check(self) -> bool:
        return is_king_in_check(self.board, self.board.color_to_move)

    @property
    def state(self) -> GameState:
        if self._state is None:
            self._state = self._classify()
        return self._state

    @property
    def is_over(self) -> bool:
        return self.state.is_terminal

    @property
    def winner(self) -> Optional[Color]:
        """Only a checkmate has a winner: the side that just delivered mate."""
        if self.state != GameState.CHECKMATE:
            return None
        return self.board.color_to_move.opponent

    @property
    def draw_reason(self) -> Optional[DrawReason]:
        if self.state != GameState.DRAW:
            return None
        return self._draw_reason()

    def to_fen(self) -> str:
        return FENState.from_board(self.board).to_fen()

    # --- MUTATIONS ---
    def apply(self, move: Move) -> None:
        """
        Play a move for the side to move
        -----

        1. refuse if the game has ended
        2. refuse if the move is not in the legal move set
        3. make the move and record it on the history stack
        4. reclassify the position

        Nothing is changed when an error is raised.
        """
        if self.is_over:
            raise GameOverError(
                f"Game is over ({self.state.name.lower()}). Cannot play {move}."
            )
        if move not in self.legal_moves():
            raise IllegalMoveError(f"Move not allowed: {move}")

        self.push(move)
        logger.debug("Applied %s, now %s", move, self.to_fen())
        if self.is_over:
            logger.info(
                "Game ended after %s: %s%s",
                move,
                self.state.name.lower(),
                f" ({self.draw_reason.name.lower()})" if self.draw_reason else "",
            )

    def apply_uci(self, uci: str) -> Move:
        """Resolve a UCI token against the legal moves and apply it. Hands back the resolved move."""
        if self.is_over:
            raise GameOverError(
                f"Game is over ({self.state.name.lower()}). Cannot play {uci}."
            )
        try:
            from_square, to_square, promote_to = parse_uci(uci)
        except ValueError as exc:
            raise IllegalMoveError(f"Move not allowed: {uci}. {exc}") from exc

        move = next(
            (
                candidate
                for candidate in self.legal_moves()
                if candidate.from_square == from_square
                and candidate.to_square == to_square
                and candidate.promote_to == promote_to
            ),
            None,
        )
        if move is None:
            raise IllegalMoveError(f"Move not allowed: {uci}")
        self.apply(move)
        return move

    def undo(self) -> Move:
        """Take back the last move, also out of a finished game. Hands back the move that got taken back."""
        if not self.history:
            raise NoHistoryError("There is no move to take back.")
        move = self.pop()
        logger.debug("Took back %s, now %s", move, self.to_fen())
        return move

    def push(self, move: Move) -> None:
        """
        Make a move without any checks (perft walks the move tree this way).
        The move must come from `legal_moves()`.
        """
        self.history.append(make_move(self.board, move))
        self.position_keys.append(self.board.position_key())
        self._invalidate()

    def pop(self) -> Move:
        entry = self.history.pop()
        self.position_keys.pop()
        unmake_move(self.board, entry)
        self._invalidate()
        return entry.move

    # -- PRIVATE HELPERS ---
    def _invalidate(self) -> None:
        self._legal_moves = None
        self._state = None

    def _classify(self) -> GameState:
        """No legal moves decides the game before any draw rule gets a say."""
        in_check = self.is_check
        if not self.legal_moves():
            return GameState.CHECKMATE if in_check else GameState.STALEMATE
        if self._draw_reason() is not None:
            return GameState.DRAW
        return GameState.CHECK if in_check else GameState.IN_PROGRESS

    def _draw_reason(self) -> Optional[DrawReason]:
        policy = self.draw_policy
        if (
            policy.fifty_move_limit is not None
            and self.board.half_move_clock >= policy.fifty_move_limit
        ):
            return DrawReason.FIFTY_MOVE_RULE
        if (
            policy.repetition_limit is not None
            and self.position_keys.count(self.position_keys[-1])
            >= policy.repetition_limit
        ):
            return DrawReason.REPETITION
        if policy.insufficient_material and is_insufficient_material(self.board):
            return DrawReason.INSUFFICIENT_MATERIAL
        return None


def new_game(draw_policy: Optional[DrawPolicy] = None) -> Game:
    return Game.new_game(draw_policy)
