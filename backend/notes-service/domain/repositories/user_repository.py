"""User repository interface.

This module defines the abstract interface for user data access.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from domain.entities.user import User
    from sqlalchemy.orm import Session


class UserRepository(ABC):
    """Abstract interface for user repository operations."""

    @abstractmethod
    async def get_by_username(self, db_session: Session, username: str) -> Optional[User]:
        """Retrieve a user by username.

        Args:
            db_session (Session): Database session for this operation.
            username (str): Username to look up.

        Returns:
            Optional[User]: The user if found, None otherwise.
        """
        pass

    @abstractmethod
    async def get_ids_by_usernames(self, db_session: Session, usernames: List[str]) -> Dict[str, int]:
        """Map the known usernames among ``usernames`` to their ids.

        Unknown usernames are simply absent from the result.
        """
        pass

    @abstractmethod
    async def create(self, db_session: Session, user: User) -> User:
        """Insert a user and return it with its id."""
        pass

    @abstractmethod
    async def update(self, db_session: Session, user: User) -> User:
        """Store the real name and email address of an existing user.

        Raises:
            ValueError: If the user does not exist.
        """
        pass

    @abstractmethod
    async def delete(self, db_session: Session, username: str) -> bool:
        """Delete a user with everything they own.

        Returns:
            bool: True if the user was deleted, False if not found.
        """
        pass
