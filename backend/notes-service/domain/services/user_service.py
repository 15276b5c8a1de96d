"""User domain service.

This module contains the UserService that maintains the small user directory
sharing depends on: usernames must resolve before notes or groups can name
them.
"""

import logging
from typing import Optional

from domain.entities.user import User, UserSummary
from domain.repositories.user_repository import UserRepository
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UserError(Exception):
    """Base exception for user-related errors."""

    pass


class UserNotFoundError(UserError):
    """Exception raised when a username does not exist."""

    pass


class UserAlreadyExistsError(UserError):
    """Exception raised when a username is already taken."""

    pass


class UserAccessDeniedError(UserError):
    """Exception raised when a caller changes an account other than their own."""

    pass


class UserService:
    """Domain service for user directory operations.

    Attributes:
        _user_repository (UserRepository): Repository for user data access.

    Example:
        >>> service = UserService(user_repository)
        >>> summary = await service.create_user(db, "marge", "Marge Simpson", "marge@example.com")
        >>> summary.username
        'marge'
    """

    def __init__(self, user_repository: UserRepository) -> None:
        self._user_repository = user_repository

    async def require_user(self, db_session: Session, username: str) -> User:
        """Load a user or fail.

        Args:
            db_session (Session): Database session for this operation.
            username (str): Username to load.

        Returns:
            User: The stored user.

        Raises:
            UserNotFoundError: If no user has this username.
        """
        user = await self._user_repository.get_by_username(db_session, username)
        if not user:
            raise UserNotFoundError(f"User {username} does not exist")
        return user

    async def get_user(self, db_session: Session, username: str) -> UserSummary:
        """Get the redacted view of a user.

        Raises:
            UserNotFoundError: If no user has this username.
        """
        user = await self.require_user(db_session, username)
        return user.summary()

    async def create_user(
        self, db_session: Session, username: str, real_name: str, email_address: str
    ) -> UserSummary:
        """Register a user.

        Args:
            db_session (Session): Database session for this operation.
            username (str): Unique handle, ``^[a-z0-9_]+$`` with 3 to 20 characters.
            real_name (str): Display name.
            email_address (str): Contact address.

        Returns:
            UserSummary: The created user, redacted.

        Raises:
            UserAlreadyExistsError: If the username is taken.
            ValueError: If the username or real name are invalid.
            UserError: If the user cannot be stored.
        """
        logger.info(f"Creating user {username}")

        # Validation happens in the entity constructor
        user = User(id=None, username=username, real_name=real_name, email_address=email_address)

        existing_user = await self._user_repository.get_by_username(db_session, username)
        if existing_user:
            raise UserAlreadyExistsError(f"User {username} already exists")

        try:
            created_user = await self._user_repository.create(db_session, user)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to create user {username}: {str(e)}")
            raise UserError(f"Failed to create user: {str(e)}") from e

        logger.info(f"Successfully created user {created_user.id}")
        return created_user.summary()

    def _check_self(self, username: str, current_username: str) -> None:
        if username != current_username:
            logger.warning(f"User {current_username} attempted to change account {username}")
            raise UserAccessDeniedError("Permission denied")

    async def update_user(
        self,
        db_session: Session,
        username: str,
        current_username: str,
        real_name: Optional[str] = None,
        email_address: Optional[str] = None,
    ) -> UserSummary:
        """Change the real name and/or email address of the caller's own account.

        Fields left as None keep their stored value.

        Args:
            db_session (Session): Database session for this operation.
            username (str): Account to change.
            current_username (str): Caller, only allowed to change their own account.
            real_name (Optional[str]): New display name.
            email_address (Optional[str]): New contact address.

        Returns:
            UserSummary: The updated user, redacted.

        Raises:
            UserAccessDeniedError: If the caller is not the user.
            UserNotFoundError: If no user has this username.
            ValueError: If the new real name is invalid.
            UserError: If the update cannot be stored.
        """
        logger.info(f"Updating user {username}")
        self._check_self(username, current_username)

        user = await self.require_user(db_session, username)
        updated = User(
            id=user.id,
            username=user.username,
            real_name=real_name if real_name is not None else user.real_name,
            email_address=email_address if email_address is not None else user.email_address,
        )

        try:
            stored = await self._user_repository.update(db_session, updated)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to update user {username}: {str(e)}")
            raise UserError(f"Failed to update user: {str(e)}") from e

        return stored.summary()

    async def replace_user(
        self,
        db_session: Session,
        username: str,
        current_username: str,
        real_name: str,
        email_address: str,
    ) -> UserSummary:
        """Replace every editable field of the caller's own account."""
        return await self.update_user(
            db_session,
            username,
            current_username,
            real_name=real_name,
            email_address=email_address,
        )

    async def delete_user(self, db_session: Session, username: str, current_username: str) -> None:
        """Delete a user along with their notes, groups, memberships and grants.

        Only the user themselves may delete their account.

        Raises:
            UserAccessDeniedError: If the caller is not the user.
            UserNotFoundError: If no user has this username.
            UserError: If deletion fails.
        """
        logger.info(f"Deleting user {username}")
        self._check_self(username, current_username)

        try:
            deleted = await self._user_repository.delete(db_session, username)
            if not deleted:
                raise UserNotFoundError(f"User {username} does not exist")
            db_session.commit()
        except UserNotFoundError:
            db_session.rollback()
            raise
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to delete user {username}: {str(e)}")
            raise UserError(f"Failed to delete user: {str(e)}") from e
