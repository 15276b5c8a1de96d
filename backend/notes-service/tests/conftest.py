"""Common test fixtures for the notes service."""

import os

# Must be set before utils.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from domain.services.feed_service import FeedService
from domain.services.group_service import GroupService
from domain.services.note_service import NoteService
from infrastructure.models.base import Base
from infrastructure.models.user_orm import UserORM
from infrastructure.repositories.sqlalchemy_feed_repository import SqlAlchemyFeedRepository
from infrastructure.repositories.sqlalchemy_grant_repository import SQLAlchemyGrantRepository
from infrastructure.repositories.sqlalchemy_group_repository import SqlAlchemyGroupRepository
from infrastructure.repositories.sqlalchemy_note_repository import SQLAlchemyNoteRepository
from infrastructure.repositories.sqlalchemy_user_repository import SqlAlchemyUserRepository
from main import app
from utils.dependencies import get_db, init_db
from utils.locks import NoteLockManager

USERS = [
    ("homer", "Homer Simpson"),
    ("marge", "Marge Simpson"),
    ("bart", "Bart Simpson"),
    ("lisa", "Lisa Simpson"),
    ("lenny", "Lenny Leonard"),
]


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection of a test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user_repository():
    return SqlAlchemyUserRepository()


@pytest.fixture
def users(db_session):
    """Seed the standard users and return their ids by username."""
    rows = [
        UserORM(
            username=username,
            real_name=real_name,
            email_address=f"{username}@springfield.example",
        )
        for username, real_name in USERS
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {row.username: row.id for row in rows}


@pytest.fixture
def note_service(user_repository):
    return NoteService(
        note_repository=SQLAlchemyNoteRepository(),
        grant_repository=SQLAlchemyGrantRepository(),
        user_repository=user_repository,
        lock_manager=NoteLockManager(timeout=2),
        max_attempts=3,
    )


@pytest.fixture
def group_service(user_repository):
    return GroupService(SqlAlchemyGroupRepository(), user_repository)


@pytest.fixture
def feed_service(user_repository):
    return FeedService(SqlAlchemyFeedRepository(), user_repository)


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the in-memory test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
