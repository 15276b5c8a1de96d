"""Note domain service for the shared notes application.

This module contains the NoteService that orchestrates note operations
following Domain-Driven Design principles. Every write that touches the
audience of a note runs expansion, reconciliation and the resulting grant
mutations inside one transaction, under the lock of that note.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional

from domain.entities.grant import GrantSpec
from domain.entities.note import Note, ProjectedNote
from domain.entities.user import User
from domain.entities.visibility import Visibility, classify_visibility
from domain.services.grant_expansion import (
    UnclassifiableVisibilityError,
    UnresolvedReferenceError,
    expand_grants,
)
from domain.services.grant_reconciler import GrantConflictError, reconcile
from domain.services.note_projection import project_note_rows
from domain.services.user_service import UserNotFoundError

if TYPE_CHECKING:
    from domain.repositories.grant_repository import GrantRepository
    from domain.repositories.note_repository import NoteRepository
    from domain.repositories.user_repository import UserRepository
    from sqlalchemy.orm import Session
    from utils.locks import NoteLockManager

logger = logging.getLogger(__name__)


class NoteError(Exception):
    """Base exception for note-related errors."""

    pass


class NoteNotFoundError(NoteError):
    """Exception raised when a note is not found."""

    pass


class NoteAccessDeniedError(NoteError):
    """Exception raised when user doesn't have access to a note."""

    pass


class NoteLockTimeoutError(NoteError):
    """Exception raised when another writer holds the note for too long."""

    pass


# Errors that reach the caller unchanged; anything else becomes a NoteError
_PASSTHROUGH_ERRORS = (
    NoteError,
    UserNotFoundError,
    UnresolvedReferenceError,
    UnclassifiableVisibilityError,
    GrantConflictError,
    ValueError,
)


class NoteService:
    """Domain service for handling note operations.

    This service encapsulates the business logic for note management:
    ownership checks, visibility classification, grant expansion and
    reconciliation, and projection of the stored rows for the owner.

    Transactions are owned here. Repositories only flush; the service commits
    once per operation and rolls back on any failure.
    """

    def __init__(
        self,
        note_repository: "NoteRepository",
        grant_repository: "GrantRepository",
        user_repository: "UserRepository",
        lock_manager: "NoteLockManager",
        max_attempts: int = 3,
    ):
        """Initialize the note service with dependencies.

        Args:
            note_repository: Repository for note rows
            grant_repository: Repository for grant rows and expansion lookups
            user_repository: Repository resolving the current user
            lock_manager: Provider of per-note write locks
            max_attempts: How many times a write is tried when grants conflict
        """
        self._note_repository = note_repository
        self._grant_repository = grant_repository
        self._user_repository = user_repository
        self._lock_manager = lock_manager
        self._max_attempts = max(1, max_attempts)

    async def _current_user(self, db_session: "Session", username: str) -> User:
        user = await self._user_repository.get_by_username(db_session, username)
        if not user:
            raise UserNotFoundError(f"User {username} does not exist")
        return user

    async def _owned_note(
        self, db_session: "Session", note_id: int, user: User, for_update: bool = False
    ) -> Note:
        note = await self._note_repository.get_note(db_session, note_id, for_update=for_update)
        if not note:
            raise NoteNotFoundError("noteID does not exist")
        if not note.is_owned_by(user.id):
            logger.warning(f"User {user.username} denied access to note {note_id}")
            raise NoteAccessDeniedError("Permission denied")
        return note

    @staticmethod
    def _classify(visibility: Any) -> Visibility:
        tag = classify_visibility(visibility)
        if tag is None:
            raise UnclassifiableVisibilityError(f"Unclassifiable visibility: {visibility!r}")
        return tag

    async def _reconcile_grants(self, db_session: "Session", note: Note, visibility: Any) -> None:
        """Bring the stored grants of a note in line with a visibility descriptor."""
        lookups = self._grant_repository.lookups(db_session)
        pairs = await expand_grants(visibility, note.owner_id, lookups)
        desired = GrantSpec.for_note(note.id, pairs)

        existing = await self._grant_repository.get_note_grants(db_session, note.id)
        diff = reconcile(existing, desired)

        logger.info(
            f"Reconciling note {note.id}: {len(existing)} stored, {len(desired)} desired, "
            f"{len(diff.to_delete)} to delete, {len(diff.to_insert)} to insert"
        )
        await self._grant_repository.apply_grant_diff(db_session, diff)

    async def _write(
        self,
        db_session: "Session",
        note_id: int,
        action: str,
        mutate: Callable[[], Awaitable[None]],
    ) -> None:
        """Run a note mutation under the note lock, committing once.

        A ``GrantConflictError`` rolls the whole attempt back and starts over
        from a fresh read, up to the configured number of attempts.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                async with self._lock_manager.lock(note_id):
                    await mutate()
                    db_session.commit()
                return

            except GrantConflictError:
                db_session.rollback()
                if attempt == self._max_attempts:
                    logger.error(
                        f"Giving up on {action} of note {note_id} after {attempt} conflicting attempts"
                    )
                    raise
                logger.warning(f"Grant conflict on {action} of note {note_id}, retrying ({attempt})")

            except _PASSTHROUGH_ERRORS:
                db_session.rollback()
                raise
            except Exception as e:
                db_session.rollback()
                logger.error(f"Failed to {action} note {note_id}: {str(e)}")
                raise NoteError(f"Failed to {action} note: {str(e)}") from e

    async def list_notes(self, db_session: "Session", username: str) -> List[ProjectedNote]:
        """List every note owned by a user, newest first.

        Args:
            db_session: Database session for this operation
            username: Current user

        Returns:
            List[ProjectedNote]: Owned notes with their full audience

        Raises:
            UserNotFoundError: If the current user does not exist
        """
        user = await self._current_user(db_session, username)
        rows = await self._note_repository.find_note_rows(db_session, user.id)
        return project_note_rows(rows)

    async def get_note(self, db_session: "Session", note_id: int, username: str) -> ProjectedNote:
        """Get one owned note with its full audience.

        Args:
            db_session: Database session for this operation
            note_id: Id of the note
            username: Current user

        Returns:
            ProjectedNote: The note

        Raises:
            NoteNotFoundError: If the note does not exist
            NoteAccessDeniedError: If the current user is not the owner
            UserNotFoundError: If the current user does not exist
        """
        logger.info(f"Getting note {note_id} for user {username}")

        user = await self._current_user(db_session, username)
        await self._owned_note(db_session, note_id, user)

        rows = await self._note_repository.find_note_rows(db_session, user.id, note_id=note_id)
        return project_note_rows(rows)[0]

    async def create_note(
        self, db_session: "Session", username: str, body: str, visibility: Any
    ) -> int:
        """Create a note and grant it to its audience.

        Args:
            db_session: Database session for this operation
            username: Current user, who becomes the owner
            body: Note text
            visibility: ``"public"``, ``"private"`` or a users/groups descriptor

        Returns:
            int: Id of the new note

        Raises:
            ValueError: If the body is invalid
            UnclassifiableVisibilityError: If the visibility has no known form
            UnresolvedReferenceError: If a user or group does not resolve
            UserNotFoundError: If the current user does not exist
            NoteError: If creation fails
        """
        logger.info(f"Creating note for user {username}")

        try:
            user = await self._current_user(db_session, username)
            note = Note.create_new(body=body, owner_id=user.id, visibility=self._classify(visibility))

            created_note = await self._note_repository.create_note(db_session, note)
            await self._reconcile_grants(db_session, created_note, visibility)
            db_session.commit()

        except _PASSTHROUGH_ERRORS as e:
            db_session.rollback()
            logger.warning(f"Rejected note for user {username}: {str(e)}")
            raise
        except Exception as e:
            db_session.rollback()
            logger.error(f"Failed to create note: {str(e)}")
            raise NoteError(f"Failed to create note: {str(e)}") from e

        logger.info(f"Successfully created note {created_note.id}")
        return created_note.id

    async def update_note(
        self,
        db_session: "Session",
        note_id: int,
        username: str,
        body: Optional[str] = None,
        visibility: Any = None,
    ) -> None:
        """Partially update a note.

        The body changes only if given. The visibility tag changes, and the
        grants are reconciled, only if a visibility is given.

        Raises:
            NoteNotFoundError: If the note does not exist
            NoteAccessDeniedError: If the current user is not the owner
            GrantConflictError: If grants kept changing underneath every attempt
        """
        logger.info(f"Updating note {note_id} for user {username}")

        async def mutate() -> None:
            user = await self._current_user(db_session, username)
            note = await self._owned_note(db_session, note_id, user, for_update=True)

            updated_note = Note(
                id=note.id,
                body=note.body if body is None else body,
                owner_id=note.owner_id,
                visibility=note.visibility if visibility is None else self._classify(visibility),
                created_at=note.created_at,
                updated_at=note.updated_at,
            )

            await self._note_repository.update_note(db_session, updated_note)
            if visibility is not None:
                await self._reconcile_grants(db_session, updated_note, visibility)

        await self._write(db_session, note_id, "update", mutate)
        logger.info(f"Successfully updated note {note_id}")

    async def replace_note(
        self, db_session: "Session", note_id: int, username: str, body: str, visibility: Any
    ) -> None:
        """Replace the body and the audience of a note.

        Raises:
            NoteNotFoundError: If the note does not exist
            NoteAccessDeniedError: If the current user is not the owner
            GrantConflictError: If grants kept changing underneath every attempt
        """
        logger.info(f"Replacing note {note_id} for user {username}")

        async def mutate() -> None:
            user = await self._current_user(db_session, username)
            note = await self._owned_note(db_session, note_id, user, for_update=True)

            replacement = Note(
                id=note.id,
                body=body,
                owner_id=note.owner_id,
                visibility=self._classify(visibility),
                created_at=note.created_at,
                updated_at=note.updated_at,
            )
            await self._note_repository.update_note(db_session, replacement)
            await self._reconcile_grants(db_session, replacement, visibility)

        await self._write(db_session, note_id, "replace", mutate)
        logger.info(f"Successfully replaced note {note_id}")

    async def delete_note(self, db_session: "Session", note_id: int, username: str) -> None:
        """Delete a note together with its grants.

        Raises:
            NoteNotFoundError: If the note does not exist
            NoteAccessDeniedError: If the current user is not the owner
        """
        logger.info(f"Deleting note {note_id} for user {username}")

        async def mutate() -> None:
            user = await self._current_user(db_session, username)
            await self._owned_note(db_session, note_id, user, for_update=True)
            await self._note_repository.delete_note(db_session, note_id)

        await self._write(db_session, note_id, "delete", mutate)
        logger.info(f"Successfully deleted note {note_id}")
