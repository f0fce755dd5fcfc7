"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, PieceType, Status

PieceColor = str
PlayerName = str


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False

    first_character = value[0]
    second_character = value[1]
    if not (first_character.isalpha() and second_character.isnumeric()):
        return False
    return True


# --- REQUEST MODELS ---
class CreateMatchRequest(BaseModel):
    player_name: str
    color: Color
    starting_fen: Optional[str] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        """Only the shape gets checked here: the chess rules decide whether the position itself is possible."""
        if value is None:
            return value

        parts = value.strip().split()
        if len(parts) not in (4, 6):
            raise InvalidRequestError(
                "FEN string must contain 4 or 6 space-separated parts."
            )
        return value.strip()


class JoinMatchRequest(BaseModel):
    match_id: UUID
    player_name: str


class LegalMovesRequest(BaseModel):
    match_id: UUID
    player_name: str
    square: Optional[str] = None  # only the moves of the piece on this square

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value


class MoveRequest(BaseModel):
    match_id: UUID
    player_name: str
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value


class TakeBackRequest(BaseModel):
    match_id: UUID
    player_name: str


class ResignRequest(BaseModel):
    match_id: UUID
    player_name: str


class GetMatchRequest(BaseModel):
    match_id: UUID


class DeleteMatchRequest(BaseModel):
    match_id: UUID


# --- RESPONSE MODELS ---
class MatchResponse(BaseModel):
    match_id: UUID
    players: dict[PieceColor, PlayerName]
    status: Status
    fen_state: str
    starting_state: str
    move_history: list[str]
    winner: Optional[PlayerName] = None


class LegalMovesResponse(BaseModel):
    match_id: UUID
    player_name: str
    color: Color
    legal_moves: list[str]


class MoveResponse(BaseModel):
    """
    Outcome of a move attempt, sent back to both players.
    A rejected move leaves the match untouched: `fen_state` is then the unchanged position.
    """

    match_id: UUID
    move: str
    accepted: bool
    reason: Optional[str] = None
    fen_state: str
    status: Status
    is_check: bool = False
    draw_reason: Optional[str] = None
    winner: Optional[PlayerName] = None
