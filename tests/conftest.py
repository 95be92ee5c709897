"""Pytest configuration and fixtures for BIMSched tests.

Provides room records and an in-memory document store.
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bimsched.config import reset_config
from bimsched.db.connection import close_db
from bimsched.db.models import Base, RecordModel
from bimsched.host.sql import SqlDocument
from bimsched.models import Record


def make_room(
    number: str,
    name: str,
    department: str | None,
    level: str = "Level 1",
    area: float = 10.0,
    comments: str | None = "",
) -> Record:
    return Record(
        category="Rooms",
        attributes={
            "Number": number,
            "Name": name,
            "Department": department,
            "Comments": comments,
            "Level": level,
            "Area": area,
        },
    )


def seed_records(session: Session, records: list[Record]) -> None:
    session.add_all(
        RecordModel(id=r.id, category=r.category, attributes=dict(r.attributes))
        for r in records
    )
    session.commit()


@pytest.fixture
def sample_rooms() -> list[Record]:
    """Five rooms: two in Sales, three in Eng, across two levels."""
    return [
        make_room("101", "Office", "Sales", level="Level 1", area=20.0),
        make_room("102", "Meeting", "Sales", level="Level 1", area=15.5),
        make_room("201", "Lab", "Eng", level="Level 2", area=40.0),
        make_room("103", "Workshop", "Eng", level="Level 1", area=35.0),
        make_room("202", "Archive", "Eng", level="Level 2", area=12.25),
    ]


@pytest.fixture
def db_session() -> Session:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def document(db_session: Session, sample_rooms: list[Record]) -> SqlDocument:
    """SQL-backed document seeded with the sample rooms."""
    seed_records(db_session, sample_rooms)
    return SqlDocument(db_session)


@pytest.fixture
def empty_document(db_session: Session) -> SqlDocument:
    return SqlDocument(db_session)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_config()
    yield
    close_db()
    reset_config()


@pytest.fixture
def room_factory():
    """Build a room record: room_factory(number, name, department, level=..., area=...)."""
    return make_room


@pytest.fixture
def seed(db_session: Session):
    """Persist records into the in-memory document store."""

    def _seed(records: list[Record]) -> None:
        seed_records(db_session, records)

    return _seed
