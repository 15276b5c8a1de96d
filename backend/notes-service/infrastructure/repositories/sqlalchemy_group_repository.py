"""SQLAlchemy implementation of the group repository.

This module contains the concrete implementation of GroupRepository
using SQLAlchemy for database operations.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from domain.entities.group import GroupMemberRow
from domain.repositories.group_repository import GroupRepository
from infrastructure.models.group_member_orm import GroupMemberORM
from infrastructure.models.group_orm import GroupORM
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.user_orm import UserORM
from sqlalchemy.orm import Session, aliased

logger = logging.getLogger(__name__)


class SqlAlchemyGroupRepository(GroupRepository):
    """SQLAlchemy implementation of the group repository.

    NOTE: This repository does not store the session internally.
    Each method receives the session of the caller's unit of work.
    """

    async def find_group_rows(
        self, db_session: Session, owner_id: int, group_id: Optional[int] = None
    ) -> List[GroupMemberRow]:
        members = aliased(UserORM, name="members")

        query = (
            db_session.query(
                GroupORM.id,
                GroupORM.name,
                members.username.label("member_username"),
                members.real_name.label("member_real_name"),
            )
            .outerjoin(GroupMemberORM, GroupMemberORM.group_id == GroupORM.id)
            .outerjoin(members, members.id == GroupMemberORM.user_id)
            .filter(GroupORM.owner_id == owner_id)
        )

        if group_id is not None:
            query = query.filter(GroupORM.id == group_id)

        query = query.order_by(GroupORM.id.asc(), GroupMemberORM.id.asc())
        return [GroupMemberRow(**row._asdict()) for row in query.all()]

    async def get_group_owner_id(self, db_session: Session, group_id: int) -> Optional[int]:
        row = db_session.query(GroupORM.owner_id).filter(GroupORM.id == group_id).first()
        return row.owner_id if row else None

    async def name_taken(
        self,
        db_session: Session,
        owner_id: int,
        name: str,
        exclude_group_id: Optional[int] = None,
    ) -> bool:
        query = db_session.query(GroupORM.id).filter(
            GroupORM.owner_id == owner_id, GroupORM.name == name
        )
        if exclude_group_id is not None:
            query = query.filter(GroupORM.id != exclude_group_id)
        return query.first() is not None

    async def create_group(self, db_session: Session, owner_id: int, name: str) -> int:
        group_model = GroupORM(name=name, owner_id=owner_id)
        db_session.add(group_model)
        db_session.flush()  # Flush to get the generated ID
        return group_model.id

    async def rename_group(self, db_session: Session, group_id: int, name: str) -> None:
        group_model = db_session.query(GroupORM).filter(GroupORM.id == group_id).first()
        if group_model:
            group_model.name = name
            db_session.flush()

    async def get_memberships(self, db_session: Session, group_id: int) -> List[Tuple[int, int]]:
        rows = (
            db_session.query(GroupMemberORM.id, GroupMemberORM.user_id)
            .filter(GroupMemberORM.group_id == group_id)
            .order_by(GroupMemberORM.id)
            .all()
        )
        return [(row.id, row.user_id) for row in rows]

    async def apply_membership_diff(
        self,
        db_session: Session,
        group_id: int,
        to_delete: List[int],
        to_insert: List[int],
    ) -> None:
        if to_delete:
            db_session.query(GroupMemberORM).filter(
                GroupMemberORM.id.in_(to_delete)
            ).delete(synchronize_session=False)

        if to_insert:
            db_session.add_all(
                [GroupMemberORM(group_id=group_id, user_id=user_id) for user_id in to_insert]
            )

        db_session.flush()
        logger.info(
            f"Group {group_id} membership: {len(to_delete)} removed, {len(to_insert)} added"
        )

    async def delete_group(self, db_session: Session, group_id: int) -> bool:
        group_model = db_session.query(GroupORM).filter(GroupORM.id == group_id).first()
        if not group_model:
            return False

        db_session.query(NoteGrantORM).filter(NoteGrantORM.group_id == group_id).delete(
            synchronize_session=False
        )
        db_session.delete(group_model)
        db_session.flush()
        return True
