"""SQLAlchemy implementation of the grant repository.

This module contains the grant lookups consumed by grant expansion and the
storage side of reconciliation: reading a note's grants and applying a diff.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from domain.entities.grant import GrantDiff, GrantRef
from domain.repositories.grant_repository import GrantRepository
from domain.services.grant_expansion import GrantLookups, UnresolvedReferenceError
from domain.services.grant_reconciler import GrantConflictError
from infrastructure.models.group_member_orm import GroupMemberORM
from infrastructure.models.group_orm import GroupORM
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.user_orm import UserORM
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class SQLAlchemyGrantLookups(GrantLookups):
    """Grant expansion lookups bound to one session.

    Instances live for a single unit of work; get one from
    ``SQLAlchemyGrantRepository.lookups``.
    """

    def __init__(self, db_session: Session) -> None:
        self._db_session = db_session

    async def resolve_user_ids(self, usernames: List[str]) -> List[int]:
        rows = (
            self._db_session.query(UserORM.username, UserORM.id)
            .filter(UserORM.username.in_(usernames))
            .all()
        )
        ids_by_name: Dict[str, int] = {username: user_id for username, user_id in rows}

        missing = [name for name in usernames if name not in ids_by_name]
        if missing:
            logger.warning(f"Unresolved usernames: {missing}")
            raise UnresolvedReferenceError("Nonexistent user(s) in payload.visibility.users")

        return [ids_by_name[name] for name in usernames]

    async def resolve_owned_group_ids(self, names: List[str], owner_id: int) -> List[int]:
        rows = (
            self._db_session.query(GroupORM.name, GroupORM.id)
            .filter(GroupORM.name.in_(names), GroupORM.owner_id == owner_id)
            .all()
        )
        ids_by_name: Dict[str, int] = {name: group_id for name, group_id in rows}

        missing = [name for name in names if name not in ids_by_name]
        if missing:
            logger.warning(f"Unresolved group names for owner {owner_id}: {missing}")
            raise UnresolvedReferenceError("Nonexistent group(s) in payload.visibility.groups")

        return [ids_by_name[name] for name in names]

    async def members_of(self, group_ids: List[int]) -> List[Tuple[int, int]]:
        if not group_ids:
            return []

        rows = (
            self._db_session.query(
                GroupMemberORM.id, GroupMemberORM.user_id, GroupMemberORM.group_id
            )
            .filter(GroupMemberORM.group_id.in_(group_ids))
            .all()
        )

        # Groups in the order asked for, members in membership order
        position = {group_id: index for index, group_id in enumerate(group_ids)}
        rows = sorted(rows, key=lambda row: (position[row.group_id], row.id))
        return [(row.user_id, row.group_id) for row in rows]


class SQLAlchemyGrantRepository(GrantRepository):
    """SQLAlchemy implementation of the grant repository.

    NOTE: This repository does not store the session internally and never
    commits; the caller applies a diff inside its own transaction.
    """

    def lookups(self, db_session: Session) -> SQLAlchemyGrantLookups:
        return SQLAlchemyGrantLookups(db_session)

    async def get_note_grants(self, db_session: Session, note_id: int) -> List[GrantRef]:
        """Get every grant row stored for a note.

        Args:
            db_session (Session): SQLAlchemy database session for this operation.
            note_id (int): Note whose grants to read.

        Returns:
            List[GrantRef]: Stored grants in row id order.
        """
        grant_models = (
            db_session.query(NoteGrantORM)
            .filter(NoteGrantORM.note_id == note_id)
            .order_by(NoteGrantORM.id)
            .all()
        )
        return [self._model_to_ref(model) for model in grant_models]

    async def apply_grant_diff(self, db_session: Session, diff: GrantDiff) -> None:
        """Delete and insert grants as described by a diff.

        Args:
            db_session (Session): SQLAlchemy database session for this operation.
            diff (GrantDiff): Output of ``reconcile``.

        Raises:
            GrantConflictError: If rows to delete are already gone or an insert
                collides with a row written concurrently.
        """
        if diff.is_empty():
            return

        if diff.to_delete:
            expected = len(set(diff.to_delete))
            deleted = (
                db_session.query(NoteGrantORM)
                .filter(NoteGrantORM.id.in_(diff.to_delete))
                .delete(synchronize_session=False)
            )
            if deleted != expected:
                logger.warning(f"Expected to delete {expected} grants, deleted {deleted}")
                raise GrantConflictError(
                    "Grants changed since they were read; retry the write"
                )

        if diff.to_insert:
            db_session.add_all(
                [
                    NoteGrantORM(note_id=spec.note_id, user_id=spec.user_id, group_id=spec.group_id)
                    for spec in diff.to_insert
                ]
            )
            try:
                db_session.flush()
            except IntegrityError as e:
                logger.warning(f"Grant insert collided with an existing row: {str(e)}")
                raise GrantConflictError(
                    "Grants changed since they were read; retry the write"
                ) from e

        logger.info(
            f"Applied grant diff: {len(diff.to_delete)} deleted, {len(diff.to_insert)} inserted"
        )

    def _model_to_ref(self, grant_model: NoteGrantORM) -> GrantRef:
        return GrantRef(
            id=grant_model.id,
            note_id=grant_model.note_id,
            user_id=grant_model.user_id,
            group_id=grant_model.group_id,
        )
