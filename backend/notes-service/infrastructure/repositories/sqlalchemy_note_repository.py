"""SQLAlchemy implementation of the note repository.

This module contains the concrete implementation of the NoteRepository
using SQLAlchemy for database operations.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from domain.entities.note import Note, NoteGrantRow
from domain.entities.visibility import Visibility
from domain.repositories.note_repository import NoteRepository
from infrastructure.models.base import utc_now
from infrastructure.models.group_orm import GroupORM
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.note_orm import NoteORM
from infrastructure.models.user_orm import UserORM
from sqlalchemy.orm import Session, aliased

logger = logging.getLogger(__name__)


class SQLAlchemyNoteRepository(NoteRepository):
    """SQLAlchemy implementation of the note repository.

    NOTE: This repository does not store the session internally and never
    commits. Each method receives the session of the caller's unit of work.
    """

    async def create_note(self, db_session: Session, note: Note) -> Note:
        """Insert a new note.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            note (Note): Domain Note entity to create

        Returns:
            Note: Created note with assigned ID and timestamps
        """
        try:
            db_note = NoteORM(
                body=note.body,
                owner_id=note.owner_id,
                visibility=note.visibility.value,
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
            db_session.add(db_note)
            db_session.flush()

            return self._orm_to_domain_entity(db_note)

        except Exception as e:
            logger.error(f"Failed to create note: {str(e)}")
            raise

    async def get_note(
        self, db_session: Session, note_id: int, for_update: bool = False
    ) -> Optional[Note]:
        """Get a note by ID.

        Args:
            db_session (Session): Database session.
            note_id (int): The ID of the note to retrieve.
            for_update (bool): Lock the row (``SELECT ... FOR UPDATE``) until
                the transaction ends. Dialects without row locks ignore it.

        Returns:
            Optional[Note]: The note if found, None otherwise.
        """
        query = db_session.query(NoteORM).filter(NoteORM.id == note_id)
        if for_update:
            query = query.with_for_update()

        note_orm = query.first()
        if not note_orm:
            logger.info(f"Note {note_id} not found")
            return None

        return self._orm_to_domain_entity(note_orm)

    async def update_note(self, db_session: Session, note: Note) -> Note:
        """Persist the body and visibility of an existing note.

        Args:
            db_session (Session): Database session.
            note (Note): The note entity with updated data.

        Returns:
            Note: The updated note entity.

        Raises:
            ValueError: If the note does not exist.
        """
        try:
            db_note = db_session.query(NoteORM).filter(NoteORM.id == note.id).first()

            if not db_note:
                logger.warning(f"Note {note.id} not found for update")
                raise ValueError(f"Note {note.id} not found")

            db_note.body = note.body
            db_note.visibility = note.visibility.value
            db_note.updated_at = utc_now()
            db_session.flush()

            return self._orm_to_domain_entity(db_note)

        except Exception as e:
            logger.error(f"Failed to update note {note.id}: {str(e)}")
            raise

    async def delete_note(self, db_session: Session, note_id: int) -> bool:
        """Delete a note; its grants go with it.

        Args:
            db_session (Session): Database session.
            note_id (int): The ID of the note to delete.

        Returns:
            bool: True if the note was deleted, False if not found.
        """
        try:
            db_note = db_session.query(NoteORM).filter(NoteORM.id == note_id).first()

            if not db_note:
                return False

            db_session.delete(db_note)
            db_session.flush()
            return True

        except Exception as e:
            logger.error(f"Failed to delete note {note_id}: {str(e)}")
            raise

    async def find_note_rows(
        self, db_session: Session, owner_id: int, note_id: Optional[int] = None
    ) -> List[NoteGrantRow]:
        """Get the flat note x grant rows of notes owned by a user.

        Args:
            db_session (Session): Database session.
            owner_id (int): Owner whose notes to read.
            note_id (Optional[int]): Restrict to a single note.

        Returns:
            List[NoteGrantRow]: Rows newest note first, grants in row order.
        """
        owners = aliased(UserORM, name="owners")
        grantees = aliased(UserORM, name="grantees")

        query = (
            db_session.query(
                NoteORM.id,
                NoteORM.body,
                NoteORM.visibility,
                owners.username.label("owner_username"),
                owners.real_name.label("owner_real_name"),
                NoteORM.created_at,
                NoteORM.updated_at,
                grantees.username.label("grant_username"),
                grantees.real_name.label("grant_real_name"),
                GroupORM.id.label("grant_group_id"),
                GroupORM.name.label("grant_group_name"),
            )
            .join(owners, owners.id == NoteORM.owner_id)
            .outerjoin(NoteGrantORM, NoteGrantORM.note_id == NoteORM.id)
            .outerjoin(grantees, grantees.id == NoteGrantORM.user_id)
            .outerjoin(GroupORM, GroupORM.id == NoteGrantORM.group_id)
            .filter(NoteORM.owner_id == owner_id)
        )

        if note_id is not None:
            query = query.filter(NoteORM.id == note_id)

        query = query.order_by(
            NoteORM.created_at.desc(), NoteORM.id.desc(), NoteGrantORM.id.asc()
        )

        return [NoteGrantRow(**row._asdict()) for row in query.all()]

    def _orm_to_domain_entity(self, note_orm: NoteORM) -> Note:
        """Convert SQLAlchemy model to domain entity.

        Args:
            note_orm (NoteORM): SQLAlchemy note model instance.

        Returns:
            Note: Corresponding domain entity.
        """
        return Note(
            id=note_orm.id,
            body=note_orm.body,
            owner_id=note_orm.owner_id,
            visibility=Visibility(note_orm.visibility),
            created_at=note_orm.created_at,
            updated_at=note_orm.updated_at,
        )
