"""Note domain entities for the shared notes application.

This module contains the Note entity used on the write path, the flat row
shapes returned by the read queries, and the nested shapes the projector
builds from those rows.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional, Union

from domain.entities.user import UserSummary
from domain.entities.visibility import Visibility

MAX_BODY_LENGTH = 10000


@dataclass
class Note:
    """Domain entity representing a note in the shared notes system.

    Attributes:
        id (Optional[int]): Storage identifier, None until persisted.
        body (str): Text of the note.
        owner_id (int): Id of the user who owns the note. Never changes.
        visibility (Visibility): Canonical visibility tag.
        created_at (Optional[datetime]): Creation timestamp (UTC).
        updated_at (Optional[datetime]): Last modification timestamp (UTC).
    """

    id: Optional[int]
    body: str
    owner_id: int
    visibility: Visibility
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate note after initialization.

        Raises:
            ValueError: If the body is empty or too long.
        """
        self._validate_body(self.body)

    @staticmethod
    def _validate_body(body: str) -> None:
        if not body or not body.strip():
            raise ValueError("Note body cannot be empty")
        if len(body) > MAX_BODY_LENGTH:
            raise ValueError(f"Note body cannot exceed {MAX_BODY_LENGTH} characters")

    @classmethod
    def create_new(cls, body: str, owner_id: int, visibility: Visibility) -> "Note":
        """Factory method to create a note that is not persisted yet.

        Args:
            body (str): Text of the note.
            owner_id (int): Id of the owner.
            visibility (Visibility): Classified visibility tag.

        Returns:
            Note: New note instance with timestamps set to now.
        """
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        return cls(
            id=None,
            body=body,
            owner_id=owner_id,
            visibility=visibility,
            created_at=now,
            updated_at=now,
        )

    def is_owned_by(self, user_id: int) -> bool:
        """Check if the note is owned by the specified user.

        Args:
            user_id (int): Id of the user to check ownership for.

        Returns:
            bool: True if the user owns the note, False otherwise.
        """
        return self.owner_id == user_id


class NoteGrantRow(NamedTuple):
    """One row of the notes x grantees x groups outer join.

    ``grant_*`` columns are None when the note has no grant at all;
    ``grant_group_*`` columns are None for direct grants.
    """

    id: int
    body: str
    visibility: str
    owner_username: str
    owner_real_name: str
    created_at: datetime
    updated_at: datetime
    grant_username: Optional[str] = None
    grant_real_name: Optional[str] = None
    grant_group_id: Optional[int] = None
    grant_group_name: Optional[str] = None


class FeedRow(NamedTuple):
    """One row of a feed query: a note and its owner, without grants."""

    id: int
    body: str
    owner_username: str
    owner_real_name: str
    created_at: datetime
    updated_at: datetime


@dataclass
class GroupAudience:
    """A group through which a shared note was granted, with its grantees."""

    id: int
    name: str
    members: List[UserSummary] = field(default_factory=list)


@dataclass
class SharedAudience:
    """Everyone a shared note is granted to, split by grant path."""

    users: List[UserSummary] = field(default_factory=list)
    groups: List[GroupAudience] = field(default_factory=list)


@dataclass
class ProjectedNote:
    """Nested read model of a note as returned to its owner.

    ``visibility`` is the plain tag for public and private notes and a
    ``SharedAudience`` for shared ones.
    """

    id: int
    body: str
    owner: UserSummary
    visibility: Union[Visibility, SharedAudience]
    created_at: str
    updated_at: str


@dataclass
class FeedNote:
    """Redacted read model of a note seen by someone other than its owner."""

    id: int
    body: str
    owner: UserSummary
    created_at: str
    updated_at: str
