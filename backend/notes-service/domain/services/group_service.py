"""Group domain service.

This module contains the GroupService that manages the groups a user owns
and their membership. Membership changes never rewrite note grants: a note
shared with a group keeps the members the group had when the note was
written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

from domain.entities.group import Group, validate_group_name
from domain.entities.user import User
from domain.services.grant_expansion import UnresolvedReferenceError
from domain.services.note_projection import project_group_rows
from domain.services.user_service import UserNotFoundError

if TYPE_CHECKING:
    from domain.repositories.group_repository import GroupRepository
    from domain.repositories.user_repository import UserRepository
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class GroupError(Exception):
    """Base exception for group-related errors."""

    pass


class GroupNotFoundError(GroupError):
    """Exception raised when a group is not found."""

    pass


class GroupAccessDeniedError(GroupError):
    """Exception raised when a user tries to use a group they don't own."""

    pass


class GroupAlreadyExistsError(GroupError):
    """Exception raised when the owner already has a group with that name."""

    pass


_PASSTHROUGH_ERRORS = (GroupError, UserNotFoundError, UnresolvedReferenceError, ValueError)


def reconcile_members(
    existing: List[Tuple[int, int]], desired_user_ids: List[int]
) -> Tuple[List[int], List[int]]:
    """Diff stored memberships against the desired member ids.

    Args:
        existing (List[Tuple[int, int]]): ``(row_id, user_id)`` of stored memberships.
        desired_user_ids (List[int]): Members the group should have.

    Returns:
        Tuple[List[int], List[int]]: Row ids to delete and user ids to insert,
        each in input order, without duplicates.

    Example:
        >>> reconcile_members([(1, 10), (2, 11)], [11, 12])
        ([1], [12])
    """
    desired = list(dict.fromkeys(desired_user_ids))
    desired_set = set(desired)
    existing_users = {user_id for _, user_id in existing}

    to_delete = [row_id for row_id, user_id in existing if user_id not in desired_set]
    to_insert = [user_id for user_id in desired if user_id not in existing_users]
    return to_delete, to_insert


class GroupService:
    """Domain service for group operations.

    Example:
        >>> service = GroupService(group_repository, user_repository)
        >>> group_id = await service.create_group(db, "homer", "family", ["marge", "bart"])
    """

    def __init__(self, group_repository: "GroupRepository", user_repository: "UserRepository"):
        self._group_repository = group_repository
        self._user_repository = user_repository

    async def _current_user(self, db_session: "Session", username: str) -> User:
        user = await self._user_repository.get_by_username(db_session, username)
        if not user:
            raise UserNotFoundError(f"User {username} does not exist")
        return user

    async def _check_owner(self, db_session: "Session", group_id: int, user: User) -> None:
        owner_id = await self._group_repository.get_group_owner_id(db_session, group_id)
        if owner_id is None:
            raise GroupNotFoundError("groupID does not exist")
        if owner_id != user.id:
            logger.warning(f"User {user.username} denied access to group {group_id}")
            raise GroupAccessDeniedError("Permission denied")

    async def _resolve_members(self, db_session: "Session", usernames: List[str]) -> List[int]:
        usernames = list(dict.fromkeys(usernames))
        ids_by_name = await self._user_repository.get_ids_by_usernames(db_session, usernames)
        if len(ids_by_name) != len(usernames):
            missing = [name for name in usernames if name not in ids_by_name]
            logger.warning(f"Unresolved group members: {missing}")
            raise UnresolvedReferenceError("Nonexistent user(s) in payload.members")
        return [ids_by_name[name] for name in usernames]

    async def _set_members(self, db_session: "Session", group_id: int, usernames: List[str]) -> None:
        desired = await self._resolve_members(db_session, usernames)
        existing = await self._group_repository.get_memberships(db_session, group_id)
        to_delete, to_insert = reconcile_members(existing, desired)
        await self._group_repository.apply_membership_diff(db_session, group_id, to_delete, to_insert)

    async def _check_name(
        self,
        db_session: "Session",
        owner_id: int,
        name: str,
        exclude_group_id: Optional[int] = None,
    ) -> str:
        name = validate_group_name(name)
        if await self._group_repository.name_taken(db_session, owner_id, name, exclude_group_id):
            raise GroupAlreadyExistsError(f"Group with name '{name}' already exists")
        return name

    async def list_groups(self, db_session: "Session", username: str) -> List[Group]:
        """List the groups owned by a user with their members.

        Raises:
            UserNotFoundError: If the current user does not exist.
        """
        user = await self._current_user(db_session, username)
        rows = await self._group_repository.find_group_rows(db_session, user.id)
        return project_group_rows(rows)

    async def get_group(self, db_session: "Session", group_id: int, username: str) -> Group:
        """Get one owned group with its members.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupAccessDeniedError: If the current user does not own it.
        """
        user = await self._current_user(db_session, username)
        await self._check_owner(db_session, group_id, user)
        rows = await self._group_repository.find_group_rows(db_session, user.id, group_id=group_id)
        return project_group_rows(rows)[0]

    async def create_group(
        self, db_session: "Session", username: str, name: str, members: List[str]
    ) -> int:
        """Create a group owned by the current user.

        Args:
            db_session (Session): Database session for this operation.
            username (str): Current user, who becomes the owner.
            name (str): Group name, unique among the owner's groups.
            members (List[str]): Usernames of the members.

        Returns:
            int: Id of the new group.

        Raises:
            GroupAlreadyExistsError: If the owner has a group with that name.
            UnresolvedReferenceError: If a member does not exist.
            ValueError: If the name is invalid.
        """
        logger.info(f"Creating group {name!r} for user {username}")

        try:
            user = await self._current_user(db_session, username)
            name = await self._check_name(db_session, user.id, name)
            group_id = await self._group_repository.create_group(db_session, user.id, name)
            await self._set_members(db_session, group_id, members)
            db_session.commit()
        except _PASSTHROUGH_ERRORS:
            db_session.rollback()
            raise
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to create group: {str(e)}")
            raise GroupError(f"Failed to create group: {str(e)}") from e

        logger.info(f"Successfully created group {group_id}")
        return group_id

    async def update_group(
        self,
        db_session: "Session",
        group_id: int,
        username: str,
        name: Optional[str] = None,
        members: Optional[List[str]] = None,
    ) -> None:
        """Partially update a group: rename it, reset its members, or both.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupAccessDeniedError: If the current user does not own it.
            GroupAlreadyExistsError: If the new name is taken.
        """
        logger.info(f"Updating group {group_id} for user {username}")

        try:
            user = await self._current_user(db_session, username)
            await self._check_owner(db_session, group_id, user)

            if name is not None:
                name = await self._check_name(db_session, user.id, name, exclude_group_id=group_id)
                await self._group_repository.rename_group(db_session, group_id, name)
            if members is not None:
                await self._set_members(db_session, group_id, members)

            db_session.commit()
        except _PASSTHROUGH_ERRORS:
            db_session.rollback()
            raise
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to update group {group_id}: {str(e)}")
            raise GroupError(f"Failed to update group: {str(e)}") from e

    async def replace_group(
        self, db_session: "Session", group_id: int, username: str, name: str, members: List[str]
    ) -> None:
        """Replace the name and the members of a group."""
        await self.update_group(db_session, group_id, username, name=name, members=members)

    async def delete_group(self, db_session: "Session", group_id: int, username: str) -> None:
        """Delete a group, its memberships and the grants made through it.

        Raises:
            GroupNotFoundError: If the group does not exist.
            GroupAccessDeniedError: If the current user does not own it.
        """
        logger.info(f"Deleting group {group_id} for user {username}")

        try:
            user = await self._current_user(db_session, username)
            await self._check_owner(db_session, group_id, user)
            await self._group_repository.delete_group(db_session, group_id)
            db_session.commit()
        except _PASSTHROUGH_ERRORS:
            db_session.rollback()
            raise
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to delete group {group_id}: {str(e)}")
            raise GroupError(f"Failed to delete group: {str(e)}") from e
