"""Note repository interface for the shared notes application.

This module defines the repository interface for note operations
following Domain-Driven Design principles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from domain.entities.note import Note, NoteGrantRow
    from sqlalchemy.orm import Session


class NoteRepository(ABC):
    """Abstract repository interface for note operations.

    Implementations flush but never commit: the note service owns the
    transaction so that a note and its grants are written all-or-nothing.
    """

    @abstractmethod
    async def create_note(self, db_session: Session, note: Note) -> Note:
        """Insert a new note.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            note (Note): Domain Note entity to create

        Returns:
            Note: Created note with assigned ID and timestamps
        """
        pass

    @abstractmethod
    async def get_note(
        self, db_session: Session, note_id: int, for_update: bool = False
    ) -> Optional[Note]:
        """Get a note by ID regardless of who asks.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            note_id (int): ID of the note to retrieve
            for_update (bool): Lock the note row until the transaction ends

        Returns:
            Optional[Note]: Note if it exists, None otherwise
        """
        pass

    @abstractmethod
    async def update_note(self, db_session: Session, note: Note) -> Note:
        """Persist the body and visibility of an existing note.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            note (Note): The note entity with updated data

        Returns:
            Note: The updated note entity
        """
        pass

    @abstractmethod
    async def delete_note(self, db_session: Session, note_id: int) -> bool:
        """Delete a note and, by cascade, its grants.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            note_id (int): ID of the note to delete

        Returns:
            bool: True if a note was deleted, False if not found
        """
        pass

    @abstractmethod
    async def find_note_rows(
        self, db_session: Session, owner_id: int, note_id: Optional[int] = None
    ) -> List[NoteGrantRow]:
        """Get the flat note x grant rows of notes owned by a user.

        Rows are ordered newest note first; rows of one note are contiguous and
        in grant insertion order.

        Args:
            db_session (Session): SQLAlchemy database session for this operation
            owner_id (int): Owner whose notes to read
            note_id (Optional[int]): Restrict to a single note

        Returns:
            List[NoteGrantRow]: Flat rows ready for projection
        """
        pass
