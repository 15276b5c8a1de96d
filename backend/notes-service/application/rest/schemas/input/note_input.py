"""Note input schemas for API requests.

This module contains Pydantic models for note-related API requests,
including note creation, replacement and partial update.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class SharedVisibilityInput(BaseModel):
    """Schema for the audience of a shared note.

    Attributes:
        users (List[str]): Usernames granted access directly.
        groups (List[str]): Names of the owner's groups whose current members get access.

    Example:
        >>> SharedVisibilityInput(users=["marge"], groups=["family"])
    """

    users: List[str] = Field(default_factory=list, description="Usernames to share with")
    groups: List[str] = Field(default_factory=list, description="Group names to share with")

    @model_validator(mode="after")
    def check_not_empty(self):
        """Reject an audience that names nobody."""
        if not self.users and not self.groups:
            raise ValueError("A shared visibility must name at least one user or group")
        return self


VisibilityInput = Union[Literal["public", "private"], SharedVisibilityInput]


class NoteCreate(BaseModel):
    """Schema for creating a new note.

    Attributes:
        body (str): The text of the note.
        visibility: ``"public"``, ``"private"`` or a users/groups audience.

    Example:
        >>> note_data = NoteCreate(
        ...     body="Donuts in the break room",
        ...     visibility={"users": ["lenny", "carl"], "groups": []},
        ... )
    """

    body: str = Field(..., min_length=1, max_length=10000, description="Note text")
    visibility: VisibilityInput


class NoteReplace(NoteCreate):
    """Schema for replacing a note. Same fields as creation, all required."""

    pass


class NoteUpdate(BaseModel):
    """Schema for updating an existing note.

    All fields are optional for partial updates, but at least one must be given.

    Example:
        >>> update_data = NoteUpdate(visibility="private")
    """

    body: Optional[str] = Field(default=None, min_length=1, max_length=10000)
    visibility: Optional[VisibilityInput] = None

    @model_validator(mode="after")
    def check_any_field(self):
        """Reject an empty patch."""
        if self.body is None and self.visibility is None:
            raise ValueError("At least one of body or visibility is required")
        return self
