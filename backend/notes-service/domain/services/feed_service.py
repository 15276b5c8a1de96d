"""Feed domain service.

Feeds show notes to users other than their owner. Entries are redacted: they
carry the note and its owner but never the audience of the note.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from domain.entities.note import FeedNote
from domain.entities.user import User
from domain.services.note_projection import project_feed_rows
from domain.services.user_service import UserNotFoundError

if TYPE_CHECKING:
    from domain.repositories.feed_repository import FeedRepository
    from domain.repositories.user_repository import UserRepository
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class FeedService:
    """Domain service for reading feeds.

    Example:
        >>> service = FeedService(feed_repository, user_repository)
        >>> notes = await service.feed(db, "marge")
    """

    def __init__(self, feed_repository: "FeedRepository", user_repository: "UserRepository"):
        self._feed_repository = feed_repository
        self._user_repository = user_repository

    async def _user(self, db_session: "Session", username: str) -> User:
        user = await self._user_repository.get_by_username(db_session, username)
        if not user:
            raise UserNotFoundError(f"User {username} does not exist")
        return user

    async def _viewer_id(self, db_session: "Session", username: Optional[str]) -> Optional[int]:
        if username is None:
            return None
        return (await self._user(db_session, username)).id

    async def public_feed(self, db_session: "Session") -> List[FeedNote]:
        """All public notes, newest first."""
        rows = await self._feed_repository.public_rows(db_session)
        return project_feed_rows(rows)

    async def feed(self, db_session: "Session", username: Optional[str] = None) -> List[FeedNote]:
        """Public notes plus notes shared with the viewer, excluding the viewer's own.

        Args:
            db_session (Session): Database session for this operation.
            username (Optional[str]): Viewer; None for an anonymous caller,
                who sees public notes only.

        Returns:
            List[FeedNote]: Redacted notes, newest first, each note once.

        Raises:
            UserNotFoundError: If the viewer does not exist.
        """
        viewer_id = await self._viewer_id(db_session, username)
        rows = await self._feed_repository.visible_rows(db_session, viewer_id)
        logger.info(f"Feed for {username or 'anonymous'}: {len(rows)} rows")
        return project_feed_rows(rows)

    async def feed_by_owner(
        self, db_session: "Session", owner: str, username: Optional[str] = None
    ) -> List[FeedNote]:
        """Notes of one owner that the viewer may read.

        Raises:
            UserNotFoundError: If the owner or the viewer does not exist.
        """
        owner_user = await self._user(db_session, owner)
        viewer_id = await self._viewer_id(db_session, username)
        rows = await self._feed_repository.owner_rows(db_session, owner_user.id, viewer_id)
        return project_feed_rows(rows)

    async def shared_with(self, db_session: "Session", username: str) -> List[FeedNote]:
        """Notes shared with the viewer, newest first.

        Raises:
            UserNotFoundError: If the viewer does not exist.
        """
        viewer = await self._user(db_session, username)
        rows = await self._feed_repository.shared_rows(db_session, viewer.id)
        return project_feed_rows(rows)
