"""Note converters for transforming domain read models into API responses.

This module contains converter functions for transforming projected notes,
feed notes and groups from the domain layer into Pydantic output schemas.
"""

from typing import List

from domain.entities.group import Group
from domain.entities.note import FeedNote, GroupAudience, ProjectedNote, SharedAudience
from domain.entities.user import UserSummary

from application.rest.schemas.output.group_output import GroupResponse
from application.rest.schemas.output.note_output import (
    FeedNoteResponse,
    GroupAudienceResponse,
    NoteResponse,
    SharedVisibilityResponse,
)
from application.rest.schemas.output.user_output import UserResponse


class NoteConverter:
    """Converter class for note transformations between layers.

    Example:
        >>> notes = await note_service.list_notes(db, "homer")
        >>> responses = NoteConverter.notes_to_responses(notes)
    """

    @staticmethod
    def _users(users: List[UserSummary]) -> List[UserResponse]:
        return [UserResponse.from_entity(user) for user in users]

    @staticmethod
    def _group_audience(group: GroupAudience) -> GroupAudienceResponse:
        return GroupAudienceResponse(
            id=group.id, name=group.name, members=NoteConverter._users(group.members)
        )

    @staticmethod
    def note_to_response(note: ProjectedNote) -> NoteResponse:
        """Convert a projected note to the owner's NoteResponse.

        Args:
            note (ProjectedNote): Note folded from its grant rows.

        Returns:
            NoteResponse: Pydantic schema for API response. Public and private
            notes carry the plain tag; shared notes carry their audience.
        """
        if isinstance(note.visibility, SharedAudience):
            visibility = SharedVisibilityResponse(
                users=NoteConverter._users(note.visibility.users),
                groups=[NoteConverter._group_audience(g) for g in note.visibility.groups],
            )
        else:
            visibility = note.visibility.value

        return NoteResponse(
            id=note.id,
            body=note.body,
            owner=UserResponse.from_entity(note.owner),
            visibility=visibility,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )

    @staticmethod
    def notes_to_responses(notes: List[ProjectedNote]) -> List[NoteResponse]:
        return [NoteConverter.note_to_response(note) for note in notes]

    @staticmethod
    def feed_note_to_response(note: FeedNote) -> FeedNoteResponse:
        return FeedNoteResponse(
            id=note.id,
            body=note.body,
            owner=UserResponse.from_entity(note.owner),
            created_at=note.created_at,
            updated_at=note.updated_at,
        )

    @staticmethod
    def feed_notes_to_responses(notes: List[FeedNote]) -> List[FeedNoteResponse]:
        """Convert redacted feed notes to responses, keeping their order."""
        return [NoteConverter.feed_note_to_response(note) for note in notes]


class GroupConverter:
    """Converter class for group transformations between layers."""

    @staticmethod
    def group_to_response(group: Group) -> GroupResponse:
        return GroupResponse(
            id=group.id,
            name=group.name,
            members=[UserResponse.from_entity(member) for member in group.members],
        )

    @staticmethod
    def groups_to_responses(groups: List[Group]) -> List[GroupResponse]:
        return [GroupConverter.group_to_response(group) for group in groups]
