"""Group repository interface.

This module defines the abstract interface for group data access
operations, following the Repository pattern from DDD.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from domain.entities.group import GroupMemberRow
    from sqlalchemy.orm import Session


class GroupRepository(ABC):
    """Abstract interface for group repository operations.

    NOTE: All methods receive the session of the current unit of work and
    flush without committing.
    """

    @abstractmethod
    async def find_group_rows(
        self, db_session: Session, owner_id: int, group_id: Optional[int] = None
    ) -> List[GroupMemberRow]:
        """Get the flat group x member rows of groups owned by a user.

        Args:
            db_session (Session): Database session for this operation.
            owner_id (int): Owner whose groups to read.
            group_id (Optional[int]): Restrict to a single group.

        Returns:
            List[GroupMemberRow]: Rows ordered by group id, then membership.
        """
        pass

    @abstractmethod
    async def get_group_owner_id(self, db_session: Session, group_id: int) -> Optional[int]:
        """Get the owner of a group, or None if the group does not exist."""
        pass

    @abstractmethod
    async def name_taken(
        self,
        db_session: Session,
        owner_id: int,
        name: str,
        exclude_group_id: Optional[int] = None,
    ) -> bool:
        """Check whether the owner already has another group with this name."""
        pass

    @abstractmethod
    async def create_group(self, db_session: Session, owner_id: int, name: str) -> int:
        """Insert a group and return its id."""
        pass

    @abstractmethod
    async def rename_group(self, db_session: Session, group_id: int, name: str) -> None:
        pass

    @abstractmethod
    async def get_memberships(self, db_session: Session, group_id: int) -> List[Tuple[int, int]]:
        """Get ``(membership_row_id, user_id)`` pairs of a group in row order."""
        pass

    @abstractmethod
    async def apply_membership_diff(
        self,
        db_session: Session,
        group_id: int,
        to_delete: List[int],
        to_insert: List[int],
    ) -> None:
        """Delete membership rows by id and add members by user id."""
        pass

    @abstractmethod
    async def delete_group(self, db_session: Session, group_id: int) -> bool:
        """Delete a group, its memberships and the grants it mediates.

        Returns:
            bool: True if the group was deleted, False if not found.
        """
        pass
