"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass
from typing import Optional

# Type aliases to make MatchModel easier to read
PieceColor = str
PlayerName = str


@dataclass
class MatchModel:
    """
    Transport-safe representation of a match used between API, Service and DB layers.

    The moves are the record of truth: the domain Game gets rebuilt by replaying `moves_uci` from `starting_fen`.
    `current_fen` is stored alongside so readers do not need the chess rules to show the board.
    """

    starting_fen: str
    current_fen: str
    moves_uci: list[str]
    registered_players: dict[PieceColor, PlayerName]
    status: str
    winner: Optional[PlayerName] = None
