"""
Settings read from the environment.

CHESS_DATABASE_URL      SQLAlchemy URL of the match store (default: a local SQLite file)
CHESS_LOG_LEVEL         logging level name used by `configure_logging` (default: INFO)
CHESS_FIFTY_MOVE_LIMIT  half-moves without pawn move or capture that end the game in a draw (default: 100, "off" disables)
CHESS_REPETITION_LIMIT  occurrences of the same position that end the game in a draw (default: 3, "off" disables)
CHESS_INSUFFICIENT_MATERIAL  "true"/"false": adjudicate positions nobody can win as a draw (default: true)
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Self

DEFAULT_DATABASE_URL = "sqlite:///chess.db"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_DISABLED = {"off", "none", "0", ""}
_TRUTHY = {"1", "true", "yes", "on"}


def _optional_limit(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    if raw is None:
        return default
    if raw.strip().lower() in _DISABLED:
        return None
    limit = int(raw)
    if limit < 1:
        raise ValueError(f"Draw limits must be positive, got {limit}")
    return limit


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    fifty_move_limit: Optional[int] = 100
    repetition_limit: Optional[int] = 3
    insufficient_material: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> Self:
        insufficient_material = environ.get("CHESS_INSUFFICIENT_MATERIAL")
        return cls(
            database_url=environ.get("CHESS_DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=environ.get("CHESS_LOG_LEVEL", "INFO").upper(),
            fifty_move_limit=_optional_limit(
                environ.get("CHESS_FIFTY_MOVE_LIMIT"), cls.fifty_move_limit
            ),
            repetition_limit=_optional_limit(
                environ.get("CHESS_REPETITION_LIMIT"), cls.repetition_limit
            ),
            insufficient_material=(
                cls.insufficient_material
                if insufficient_material is None
                else insufficient_material.strip().lower() in _TRUTHY
            ),
        )


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Entry points call this once. Library modules only ever create their own `logging.getLogger(__name__)`."""
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
