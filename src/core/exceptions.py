"""
Exceptions raised by the domain, service and persistence layers.

Every error is recoverable: callers reject the request (or re-prompt the player) and carry on.
"""


class ChessError(Exception):
    """Base class for everything this package raises on purpose."""


# --- DOMAIN ---
class GameError(ChessError):
    """Something went wrong while playing a game."""


class IllegalMoveError(GameError):
    """The move is not part of the current set of legal moves."""


class GameOverError(GameError):
    """A move was submitted after checkmate, stalemate or a draw."""


class NoHistoryError(GameError):
    """Undo was requested before any move was made."""


class NotYourTurnError(GameError):
    """A player tried to act while it is the opponent's turn."""


class GameStateError(GameError):
    """The request does not fit the current state of the match (joining a full match, etc.)."""


class InvalidFENError(ChessError):
    """The position descriptor could not be imported: malformed FEN or an impossible position."""


# --- BOUNDARY / PERSISTENCE ---
class InvalidRequestError(ChessError):
    """Request data failed validation."""


class RepositoryError(ChessError):
    """Record could not be found or stored."""
