"""Implementation of (Match)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import MatchModel
from src.db.schema import DBMatch


class SQLMatchRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_match(self, match_id: UUID) -> MatchModel | None:
        """Get match by ID, if record exists."""
        match_db = self._fetch_match(match_id)
        if match_db:
            return self._to_model(match_db)
        return None

    def create_match(self, match: MatchModel) -> tuple[MatchModel, UUID]:
        """Store new match and return the stored data + newly created match ID."""

        new_id = uuid4()
        match_db = DBMatch(
            id=new_id,
            starting_fen=match.starting_fen,
            current_fen=match.current_fen,
            moves_uci=list(match.moves_uci),
            registered_players=dict(match.registered_players),
            status=match.status,
            winner=match.winner,
        )
        self.db.add(match_db)
        self.db.commit()
        self.db.refresh(match_db)
        return self._to_model(match_db), new_id

    def update_match(self, match_id: UUID, match: MatchModel) -> MatchModel | None:
        """Add new info to existing record."""
        match_db = self._fetch_match(match_id)
        if not match_db:
            return None
        # assign fresh containers: JSON columns do not track in-place mutation
        match_db.starting_fen = match.starting_fen
        match_db.current_fen = match.current_fen
        match_db.moves_uci = list(match.moves_uci)
        match_db.registered_players = dict(match.registered_players)
        match_db.status = match.status
        match_db.winner = match.winner
        self.db.commit()
        self.db.refresh(match_db)
        return self._to_model(match_db)

    def delete_match(self, match_id: UUID) -> MatchModel | None:
        """Remove a match's record."""
        match_db = self._fetch_match(match_id)
        if not match_db:
            return None
        match_model = self._to_model(match_db)
        self.db.delete(match_db)
        self.db.commit()
        return match_model

    def _fetch_match(self, match_id: UUID) -> DBMatch | None:
        query = select(DBMatch).where(DBMatch.id == match_id)
        return self.db.scalar(query)

    def _to_model(self, match_db: DBMatch) -> MatchModel:
        """Convert SQLAlchemy model to data transfer model."""
        return MatchModel(
            starting_fen=match_db.starting_fen,
            current_fen=match_db.current_fen,
            moves_uci=list(match_db.moves_uci),
            registered_players=dict(match_db.registered_players),
            status=match_db.status,
            winner=match_db.winner,
        )
