"""Unit tests for src/db/database.py"""

from collections.abc import Generator

import pytest
from sqlalchemy import inspect

from src.core.config import Settings
from src.core.shared_types import Status
from src.db import database
from src.db.database import create_session_factory, get_db
from src.db.sql_repository import MatchModel, SQLMatchRepository


@pytest.fixture
def fresh_session_factory() -> Generator[None]:
    """`get_db` keeps its factory around: start every test without one."""
    database.SessionLocal = None
    try:
        yield
    finally:
        database.SessionLocal = None


def test_create_session_factory_creates_tables() -> None:
    session_factory = create_session_factory("sqlite:///:memory:")
    with session_factory() as session:
        assert "matches" in inspect(session.get_bind()).get_table_names()


def test_get_db_yields_a_working_session(fresh_session_factory: None) -> None:
    settings = Settings(database_url="sqlite:///:memory:")
    db_generator = get_db(settings)
    session = next(db_generator)

    repo = SQLMatchRepository(session)
    model = MatchModel(
        starting_fen="4k3/8/8/8/8/8/8/4K2R w K - 0 1",
        current_fen="4k3/8/8/8/8/8/8/4K2R w K - 0 1",
        moves_uci=[],
        registered_players={"white": "player_white"},
        status=Status.WAITING_FOR_PLAYERS,
    )
    _, match_id = repo.create_match(model)
    assert repo.get_match(match_id) == model

    # finishing the request closes the session
    db_generator.close()
    assert database.SessionLocal is not None
