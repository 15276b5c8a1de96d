"""Grant repository interface.

This module defines the storage contract for note grants: reading the
grants of a note, the lookups grant expansion consumes, and applying a
reconciliation diff.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from domain.entities.grant import GrantDiff, GrantRef
    from domain.services.grant_expansion import GrantLookups
    from sqlalchemy.orm import Session


class GrantRepository(ABC):
    """Abstract repository interface for grant operations."""

    @abstractmethod
    def lookups(self, db_session: Session) -> GrantLookups:
        """Return grant expansion lookups bound to this session.

        Args:
            db_session (Session): Session of the current unit of work.

        Returns:
            GrantLookups: Lookups reading through ``db_session``.
        """
        pass

    @abstractmethod
    async def get_note_grants(self, db_session: Session, note_id: int) -> List[GrantRef]:
        """Get every grant row stored for a note.

        Args:
            db_session (Session): SQLAlchemy database session for this operation.
            note_id (int): Note whose grants to read.

        Returns:
            List[GrantRef]: Stored grants in row id order.
        """
        pass

    @abstractmethod
    async def apply_grant_diff(self, db_session: Session, diff: GrantDiff) -> None:
        """Delete and insert grants as described by a diff.

        Args:
            db_session (Session): SQLAlchemy database session for this operation.
            diff (GrantDiff): Output of ``reconcile``.

        Raises:
            GrantConflictError: If rows to delete are already gone or an insert
                collides with a row written concurrently.
        """
        pass
