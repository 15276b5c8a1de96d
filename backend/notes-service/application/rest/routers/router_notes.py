import logging
from typing import List

from application.converters.note_converter import NoteConverter
from application.rest.routers.errors import error_response, to_http_exception
from application.rest.schemas.input.note_input import NoteCreate, NoteReplace, NoteUpdate
from application.rest.schemas.output.common_output import CreatedResponse
from application.rest.schemas.output.note_output import NoteResponse
from domain.services.note_service import NoteService
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from utils.dependencies import get_current_username, get_db, get_note_service

logger = logging.getLogger(__name__)
router = APIRouter()

_UNAUTHORIZED = error_response("Username header missing.", "Username not found in headers")
_FORBIDDEN = error_response("The note belongs to another user.", "Permission denied")
_NOT_FOUND = error_response("Note not found.", "noteID does not exist")
_BAD_AUDIENCE = error_response(
    "Visibility names a user or group that does not exist.",
    "Nonexistent user(s) in payload.visibility.users",
)
_CONFLICT = error_response(
    "Grants kept changing during the write.",
    "Grants changed since they were read; retry the write",
)
_SERVER_ERROR = error_response("Internal server error.", "Internal server error")


@router.get(
    path="/notes",
    description="Retrieve all notes owned by the current user, newest first, with their audience.",
    response_model=List[NoteResponse],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_404_NOT_FOUND: error_response("Current user not found.", "User homer does not exist"),
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def list_notes(
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> List[NoteResponse]:
    """Get all notes of the current user.

    Args:
        username (str): Caller, from the X-Username header.
        db (Session): Fresh database session for this request.
        note_service (NoteService): Domain service with injected repositories.

    Returns:
        List[NoteResponse]: Owned notes; shared ones list their users and groups.
    """
    try:
        notes = await note_service.list_notes(db, username)
        return NoteConverter.notes_to_responses(notes)
    except Exception as e:
        raise to_http_exception(e) from e


@router.post(
    path="/notes",
    description="Create a note. Shared notes are granted to the listed users and to the current members of the listed groups.",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_AUDIENCE,
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def create_note(
    note_create: NoteCreate,
    response: Response,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> CreatedResponse:
    """Create a note owned by the current user.

    Returns:
        CreatedResponse: Id of the new note; the Location header points to it.

    Raises:
        HTTPException: 400 if a user or group in the visibility does not exist.
        HTTPException: 500 if internal server errors occur.
    """
    try:
        note_id = await note_service.create_note(
            db, username, note_create.body, note_create.visibility
        )
    except Exception as e:
        raise to_http_exception(e) from e

    response.headers["Location"] = f"/notes/{note_id}"
    return CreatedResponse(id=note_id)


@router.get(
    path="/notes/{note_id}",
    description="Retrieve one note owned by the current user.",
    response_model=NoteResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def get_note(
    note_id: int,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    try:
        note = await note_service.get_note(db, note_id, username)
        return NoteConverter.note_to_response(note)
    except Exception as e:
        raise to_http_exception(e) from e


@router.put(
    path="/notes/{note_id}",
    description="Replace the body and visibility of a note and reconcile its grants.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_AUDIENCE,
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_409_CONFLICT: _CONFLICT,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def replace_note(
    note_id: int,
    note_replace: NoteReplace,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> Response:
    try:
        await note_service.replace_note(
            db, note_id, username, note_replace.body, note_replace.visibility
        )
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    path="/notes/{note_id}",
    description="Update the body and/or visibility of a note. Grants are reconciled only when visibility is given.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_AUDIENCE,
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_409_CONFLICT: _CONFLICT,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def update_note(
    note_id: int,
    note_update: NoteUpdate,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> Response:
    """Partially update a note.

    Raises:
        HTTPException: 403 if the note belongs to another user.
        HTTPException: 404 if the note does not exist.
        HTTPException: 409 if concurrent writers kept changing the grants.
    """
    try:
        await note_service.update_note(
            db,
            note_id,
            username,
            body=note_update.body,
            visibility=note_update.visibility,
        )
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    path="/notes/{note_id}",
    description="Delete a note and every grant on it.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def delete_note(
    note_id: int,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    note_service: NoteService = Depends(get_note_service),
) -> Response:
    try:
        await note_service.delete_note(db, note_id, username)
    except Exception as e:
        raise to_http_exception(e) from e

    logger.info(f"Note {note_id} deleted by {username}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
