"""Database, identity and service dependencies for the Notes Service.

This module provides dependency injection functions for FastAPI,
including database session management, the identity of the caller and the
factories that wire repositories into domain services.

Functions:
    - get_db: Database session factory with automatic cleanup
    - init_db: Create the tables of every ORM model
    - get_current_username: Read the caller's username from request headers
    - get_optional_username: Same, for routes open to anonymous callers
    - get_*_service: Domain service factories

Architecture:
    These utilities are shared across all layers and provide clean dependency
    injection for database access and domain services.
"""

import logging
from typing import Generator, Optional

from domain.services.feed_service import FeedService
from domain.services.group_service import GroupService
from domain.services.note_service import NoteService
from domain.services.user_service import UserService
from fastapi import HTTPException, Request
from infrastructure.models.base import Base
from infrastructure.models.group_member_orm import GroupMemberORM  # noqa: F401
from infrastructure.models.group_orm import GroupORM  # noqa: F401
from infrastructure.models.note_grant_orm import NoteGrantORM  # noqa: F401
from infrastructure.models.note_orm import NoteORM  # noqa: F401
from infrastructure.models.user_orm import UserORM  # noqa: F401
from infrastructure.repositories.sqlalchemy_feed_repository import SqlAlchemyFeedRepository
from infrastructure.repositories.sqlalchemy_grant_repository import SQLAlchemyGrantRepository
from infrastructure.repositories.sqlalchemy_group_repository import SqlAlchemyGroupRepository
from infrastructure.repositories.sqlalchemy_note_repository import SQLAlchemyNoteRepository
from infrastructure.repositories.sqlalchemy_user_repository import SqlAlchemyUserRepository
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import (
    DATABASE_URL,
    GRANT_RECONCILE_MAX_ATTEMPTS,
    LOG_LEVEL,
    NOTE_LOCK_TIMEOUT_SECONDS,
    REDIS_URL,
)
from .locks import NoteLockManager

# Configure logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL))
logger = logging.getLogger(__name__)

USERNAME_HEADER = "X-Username"

# Database setup
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# One lock manager per process; Redis-backed when REDIS_URL is set
note_lock_manager = NoteLockManager(
    redis_url=REDIS_URL or None, timeout=NOTE_LOCK_TIMEOUT_SECONDS
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet.

    Args:
        bind (Optional[Engine]): Engine to create the tables on. Defaults to
            the engine built from ``DATABASE_URL``.
    """
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables are ready")


def get_db() -> Generator[Session, None, None]:
    """Get database session with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session that automatically closes after use.

    Example:
        >>> with get_db() as db:
        ...     notes = db.query(NoteORM).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_username(request: Request) -> Optional[str]:
    """Read the caller's username, if any, from request headers.

    Args:
        request (Request): FastAPI request object containing headers.

    Returns:
        Optional[str]: Username from the X-Username header, None when absent.
    """
    return request.headers.get(USERNAME_HEADER) or None


def get_current_username(request: Request) -> str:
    """Extract the caller's username from request headers.

    The gateway in front of this service authenticates the caller and sets
    the header; this service trusts it.

    Args:
        request (Request): FastAPI request object containing headers.

    Returns:
        str: Username extracted from the X-Username header.

    Raises:
        HTTPException: 401 if the X-Username header is missing.

    Example:
        >>> username = get_current_username(request)
        >>> print(username)
        "homer"
    """
    username = get_optional_username(request)
    if not username:
        raise HTTPException(status_code=401, detail="Username not found in headers")
    return username


def get_note_service() -> NoteService:
    """Create the note service with its repositories and the lock manager.

    The session is injected per-request in each endpoint method.

    Returns:
        NoteService: Configured domain service ready for use.
    """
    return NoteService(
        note_repository=SQLAlchemyNoteRepository(),
        grant_repository=SQLAlchemyGrantRepository(),
        user_repository=SqlAlchemyUserRepository(),
        lock_manager=note_lock_manager,
        max_attempts=GRANT_RECONCILE_MAX_ATTEMPTS,
    )


def get_group_service() -> GroupService:
    return GroupService(SqlAlchemyGroupRepository(), SqlAlchemyUserRepository())


def get_feed_service() -> FeedService:
    return FeedService(SqlAlchemyFeedRepository(), SqlAlchemyUserRepository())


def get_user_service() -> UserService:
    return UserService(SqlAlchemyUserRepository())
