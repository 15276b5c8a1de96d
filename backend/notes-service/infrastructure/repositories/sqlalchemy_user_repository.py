"""SQLAlchemy implementation of the user repository."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from domain.entities.user import User
from domain.repositories.user_repository import UserRepository
from infrastructure.models.group_member_orm import GroupMemberORM
from infrastructure.models.group_orm import GroupORM
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.note_orm import NoteORM
from infrastructure.models.user_orm import UserORM
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class SqlAlchemyUserRepository(UserRepository):
    """SQLAlchemy implementation of the user repository.

    NOTE: This repository does not store the session internally.
    """

    async def get_by_username(self, db_session: Session, username: str) -> Optional[User]:
        user_model = db_session.query(UserORM).filter(UserORM.username == username).first()
        return self._model_to_entity(user_model) if user_model else None

    async def get_ids_by_usernames(self, db_session: Session, usernames: List[str]) -> Dict[str, int]:
        if not usernames:
            return {}
        rows = (
            db_session.query(UserORM.username, UserORM.id)
            .filter(UserORM.username.in_(usernames))
            .all()
        )
        return {username: user_id for username, user_id in rows}

    async def create(self, db_session: Session, user: User) -> User:
        user_model = UserORM(
            username=user.username,
            real_name=user.real_name,
            email_address=user.email_address,
        )
        db_session.add(user_model)
        db_session.flush()  # Flush to get the generated ID
        return self._model_to_entity(user_model)

    async def update(self, db_session: Session, user: User) -> User:
        user_model = db_session.query(UserORM).filter(UserORM.id == user.id).first()
        if not user_model:
            logger.warning(f"User {user.username} not found for update")
            raise ValueError(f"User {user.username} not found")

        user_model.real_name = user.real_name
        user_model.email_address = user.email_address
        db_session.flush()
        return self._model_to_entity(user_model)

    async def delete(self, db_session: Session, username: str) -> bool:
        """Delete a user with their notes, groups, memberships and grants.

        Rows are removed explicitly, children first, so the result does not
        depend on the database enforcing ``ON DELETE CASCADE``.
        """
        user_model = db_session.query(UserORM).filter(UserORM.username == username).first()
        if not user_model:
            return False

        user_id = user_model.id
        owned_notes = select(NoteORM.id).where(NoteORM.owner_id == user_id)
        owned_groups = select(GroupORM.id).where(GroupORM.owner_id == user_id)

        db_session.query(NoteGrantORM).filter(
            or_(
                NoteGrantORM.user_id == user_id,
                NoteGrantORM.note_id.in_(owned_notes),
                NoteGrantORM.group_id.in_(owned_groups),
            )
        ).delete(synchronize_session=False)
        db_session.query(GroupMemberORM).filter(
            or_(
                GroupMemberORM.user_id == user_id,
                GroupMemberORM.group_id.in_(owned_groups),
            )
        ).delete(synchronize_session=False)
        db_session.query(NoteORM).filter(NoteORM.owner_id == user_id).delete(
            synchronize_session=False
        )
        db_session.query(GroupORM).filter(GroupORM.owner_id == user_id).delete(
            synchronize_session=False
        )
        db_session.delete(user_model)
        db_session.flush()

        logger.info(f"Deleted user {username} and everything they own")
        return True

    def _model_to_entity(self, user_model: UserORM) -> User:
        return User(
            id=user_model.id,
            username=user_model.username,
            real_name=user_model.real_name,
            email_address=user_model.email_address,
        )
