"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hstrack.db.models import Base
from factories import (
    T0,
    FakeAuthorizer,
    add_name_change,
    add_player,
    add_record,
    add_snapshot,
)


@pytest.fixture
def test_engine():
    """
    Create a fresh SQLite in-memory database for each test.

    StaticPool keeps a single connection so the database survives commits
    and is visible from the threads FastAPI's TestClient runs handlers on.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def authorizer():
    return FakeAuthorizer()


@pytest.fixture
def bob_and_bobby(db_session):
    """
    The usual rename scenario.

    "bob" was last snapshotted at T0 with a weekly attack record of 100.
    "bobby" started being tracked after the rename: a weekly attack record
    of 150 at T0+1h and a snapshot at T0+2h. A pending request asks to
    rename Bob to Bobby.

    Returns ids rather than instances; tests re-query after commits.
    """
    bob = add_player(db_session, "bob")
    bobby = add_player(db_session, "bobby")

    add_snapshot(db_session, bob, T0 - timedelta(days=7), attack=500)
    add_snapshot(db_session, bob, T0, attack=1000)
    add_record(db_session, bob, 100, updated_at=T0 - timedelta(days=1))

    add_record(db_session, bobby, 150, updated_at=T0 + timedelta(hours=1))
    add_snapshot(db_session, bobby, T0 + timedelta(hours=2), attack=1200)

    name_change = add_name_change(db_session, bob, "Bob", "Bobby")
    db_session.commit()

    return {"bob": bob.id, "bobby": bobby.id, "name_change": name_change.id}
