"""Feed repository interface.

The feed lists notes written by other users that a viewer may read.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from domain.entities.note import FeedRow
    from sqlalchemy.orm import Session


class FeedRepository(ABC):
    """Abstract interface for feed queries.

    Every method returns flat rows ordered newest note first. A note granted
    to the viewer more than once may appear on several rows.
    """

    @abstractmethod
    async def public_rows(self, db_session: Session) -> List[FeedRow]:
        """Rows of all public notes."""
        pass

    @abstractmethod
    async def shared_rows(self, db_session: Session, viewer_id: int) -> List[FeedRow]:
        """Rows of notes granted to the viewer."""
        pass

    @abstractmethod
    async def visible_rows(self, db_session: Session, viewer_id: Optional[int]) -> List[FeedRow]:
        """Rows of public notes plus notes granted to the viewer, excluding the viewer's own.

        An anonymous viewer (None) sees public notes only.
        """
        pass

    @abstractmethod
    async def owner_rows(
        self, db_session: Session, owner_id: int, viewer_id: Optional[int]
    ) -> List[FeedRow]:
        """Rows of one owner's notes that the viewer may read."""
        pass
