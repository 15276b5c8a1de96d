"""Note output schemas for API responses.

This module contains Pydantic models for note-related API responses: the
owner's view of a note, with its full audience, and the redacted feed view.
"""

from __future__ import annotations

from typing import List, Literal, Union

from application.rest.schemas.output.user_output import UserResponse
from pydantic import BaseModel


class GroupAudienceResponse(BaseModel):
    """A group a note was shared through, with the members who received it.

    Attributes:
        id (int): Group identifier.
        name (str): Group name.
        members (List[UserResponse]): Grantees through this group.
    """

    id: int
    name: str
    members: List[UserResponse]


class SharedVisibilityResponse(BaseModel):
    """Audience of a shared note, split by grant path."""

    users: List[UserResponse]
    groups: List[GroupAudienceResponse]


class NoteResponse(BaseModel):
    """Schema for a note as seen by its owner.

    Attributes:
        id (int): Identifier of the note.
        body (str): The text of the note.
        owner (UserResponse): The note owner.
        visibility: ``"public"``, ``"private"`` or the shared audience.
        created_at (str): Creation time, ``YYYY-MM-DDTHH:MM:SSZ``.
        updated_at (str): Last update time, ``YYYY-MM-DDTHH:MM:SSZ``.

    Example:
        >>> NoteResponse(
        ...     id=7,
        ...     body="Donuts in the break room",
        ...     owner=UserResponse(username="homer", real_name="Homer Simpson"),
        ...     visibility="public",
        ...     created_at="2017-03-01T09:30:05Z",
        ...     updated_at="2017-03-01T09:30:05Z",
        ... )
    """

    id: int
    body: str
    owner: UserResponse
    visibility: Union[Literal["public", "private"], SharedVisibilityResponse]
    created_at: str
    updated_at: str


class FeedNoteResponse(BaseModel):
    """Schema for a note as seen by someone other than its owner.

    Same as ``NoteResponse`` without the visibility block.
    """

    id: int
    body: str
    owner: UserResponse
    created_at: str
    updated_at: str
