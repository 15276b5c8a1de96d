"""SQLAlchemy implementation of the feed repository.

Feed queries join notes with their owners and, where access depends on
grants, with the grants of the viewer.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from domain.entities.note import FeedRow
from domain.entities.visibility import Visibility
from domain.repositories.feed_repository import FeedRepository
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.note_orm import NoteORM
from infrastructure.models.user_orm import UserORM
from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session, aliased

logger = logging.getLogger(__name__)


class SqlAlchemyFeedRepository(FeedRepository):
    """SQLAlchemy implementation of the feed repository."""

    def _base_query(self, db_session: Session) -> Query:
        owners = aliased(UserORM, name="owners")
        return db_session.query(
            NoteORM.id,
            NoteORM.body,
            owners.username.label("owner_username"),
            owners.real_name.label("owner_real_name"),
            NoteORM.created_at,
            NoteORM.updated_at,
        ).join(owners, owners.id == NoteORM.owner_id)

    def _viewer_grants(self, query: Query, viewer_id: Optional[int]) -> Query:
        # Only the viewer's own grants may add rows
        return query.outerjoin(
            NoteGrantORM,
            and_(NoteGrantORM.note_id == NoteORM.id, NoteGrantORM.user_id == viewer_id),
        )

    def _readable_by(self, viewer_id: Optional[int]):
        is_public = NoteORM.visibility == Visibility.PUBLIC.value
        if viewer_id is None:
            return is_public
        return or_(is_public, NoteGrantORM.user_id == viewer_id)

    def _rows(self, query: Query) -> List[FeedRow]:
        query = query.order_by(NoteORM.created_at.desc(), NoteORM.id.desc())
        return [FeedRow(**row._asdict()) for row in query.all()]

    async def public_rows(self, db_session: Session) -> List[FeedRow]:
        query = self._base_query(db_session).filter(
            NoteORM.visibility == Visibility.PUBLIC.value
        )
        return self._rows(query)

    async def shared_rows(self, db_session: Session, viewer_id: int) -> List[FeedRow]:
        query = (
            self._base_query(db_session)
            .join(NoteGrantORM, NoteGrantORM.note_id == NoteORM.id)
            .filter(NoteGrantORM.user_id == viewer_id)
        )
        return self._rows(query)

    async def visible_rows(self, db_session: Session, viewer_id: Optional[int]) -> List[FeedRow]:
        query = self._base_query(db_session)
        if viewer_id is None:
            return self._rows(query.filter(self._readable_by(None)))

        query = self._viewer_grants(query, viewer_id).filter(
            self._readable_by(viewer_id), NoteORM.owner_id != viewer_id
        )
        return self._rows(query)

    async def owner_rows(
        self, db_session: Session, owner_id: int, viewer_id: Optional[int]
    ) -> List[FeedRow]:
        query = self._base_query(db_session).filter(NoteORM.owner_id == owner_id)
        if viewer_id is not None:
            query = self._viewer_grants(query, viewer_id)
        return self._rows(query.filter(self._readable_by(viewer_id)))
