"""Generate database session"""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.schema import Base


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Engine + session factory for the given URL. Ensures all tables are created."""
    engine: Engine = create_engine(database_url)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


SessionLocal: sessionmaker[Session] | None = None


def get_db(settings: Settings | None = None) -> Generator[Session]:
    """One session per request. The factory gets created lazily on first use."""
    global SessionLocal
    if SessionLocal is None:
        SessionLocal = create_session_factory((settings or Settings.from_env()).database_url)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
