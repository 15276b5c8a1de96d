from typing import List, Optional

from application.converters.note_converter import NoteConverter
from application.rest.routers.errors import error_response, to_http_exception
from application.rest.schemas.output.note_output import FeedNoteResponse
from domain.services.feed_service import FeedService
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from utils.dependencies import (
    get_current_username,
    get_db,
    get_feed_service,
    get_optional_username,
)

router = APIRouter()

_USER_NOT_FOUND = error_response("User not found.", "User homer does not exist")
_SERVER_ERROR = error_response("Internal server error.", "Internal server error")


@router.get(
    path="/feed",
    description="Public notes plus notes shared with the caller, excluding the caller's own. Anonymous callers see public notes only.",
    response_model=List[FeedNoteResponse],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_404_NOT_FOUND: _USER_NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def get_feed(
    username: Optional[str] = Depends(get_optional_username),
    db: Session = Depends(get_db),
    feed_service: FeedService = Depends(get_feed_service),
) -> List[FeedNoteResponse]:
    """Get the feed of the caller.

    Args:
        username (Optional[str]): Caller, from the X-Username header if present.
        db (Session): Fresh database session for this request.
        feed_service (FeedService): Domain service with injected repositories.

    Returns:
        List[FeedNoteResponse]: Redacted notes, newest first.
    """
    try:
        notes = await feed_service.feed(db, username)
        return NoteConverter.feed_notes_to_responses(notes)
    except Exception as e:
        raise to_http_exception(e) from e


@router.get(
    path="/feed/public",
    description="All public notes, newest first.",
    response_model=List[FeedNoteResponse],
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR},
)
async def get_public_feed(
    db: Session = Depends(get_db),
    feed_service: FeedService = Depends(get_feed_service),
) -> List[FeedNoteResponse]:
    try:
        notes = await feed_service.public_feed(db)
        return NoteConverter.feed_notes_to_responses(notes)
    except Exception as e:
        raise to_http_exception(e) from e


@router.get(
    path="/feed/shared",
    description="Notes shared with the caller, newest first.",
    response_model=List[FeedNoteResponse],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: error_response(
            "Username header missing.", "Username not found in headers"
        ),
        status.HTTP_404_NOT_FOUND: _USER_NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def get_shared_feed(
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    feed_service: FeedService = Depends(get_feed_service),
) -> List[FeedNoteResponse]:
    try:
        notes = await feed_service.shared_with(db, username)
        return NoteConverter.feed_notes_to_responses(notes)
    except Exception as e:
        raise to_http_exception(e) from e


@router.get(
    path="/feed/{owner}",
    description="Notes of one user that the caller may read.",
    response_model=List[FeedNoteResponse],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_404_NOT_FOUND: _USER_NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def get_owner_feed(
    owner: str,
    username: Optional[str] = Depends(get_optional_username),
    db: Session = Depends(get_db),
    feed_service: FeedService = Depends(get_feed_service),
) -> List[FeedNoteResponse]:
    try:
        notes = await feed_service.feed_by_owner(db, owner, username)
        return NoteConverter.feed_notes_to_responses(notes)
    except Exception as e:
        raise to_http_exception(e) from e
