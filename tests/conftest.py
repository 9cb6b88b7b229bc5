"""
Pytest configuration for the survey backend.

Every test gets its own SQLite database file seeded with a small option
catalog: three active options plus one retired option.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from survey.core.database import create_db_engine, get_db, init_db
from survey.models.vote_option import VoteOption

ACTIVE_OPTIONS = ["Red", "Blue", "Green"]


@pytest.fixture()
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(bind=engine, default_options=ACTIVE_OPTIONS)

    session = sessionmaker(bind=engine)()
    session.add(VoteOption(option_text="Retired", option_order=99, is_active=False, vote_count=0))
    session.commit()
    session.close()

    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory) -> Generator[TestClient, None, None]:
    """
    TestClient bound to the per-test database.

    Not used as a context manager so the app lifespan (which initializes the
    configured database) does not run.
    """
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def option_counts(session: Session) -> dict:
    """Current vote_count per option text, read fresh from the database."""
    session.expire_all()
    return {o.option_text: o.vote_count for o in session.query(VoteOption).all()}


@pytest.fixture()
def counts(db):
    return lambda: option_counts(db)
