"""Translation of domain errors into HTTP errors.

Every router funnels failures through ``to_http_exception`` so the same
domain error always maps to the same status code.
"""

import logging

from application.rest.schemas.output.common_output import ErrorResponse
from domain.services.grant_expansion import UnclassifiableVisibilityError, UnresolvedReferenceError
from domain.services.grant_reconciler import GrantConflictError
from domain.services.group_service import (
    GroupAccessDeniedError,
    GroupAlreadyExistsError,
    GroupNotFoundError,
)
from domain.services.note_service import (
    NoteAccessDeniedError,
    NoteLockTimeoutError,
    NoteNotFoundError,
)
from domain.services.user_service import (
    UserAccessDeniedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    ((NoteNotFoundError, GroupNotFoundError, UserNotFoundError), status.HTTP_404_NOT_FOUND),
    (
        (NoteAccessDeniedError, GroupAccessDeniedError, UserAccessDeniedError),
        status.HTTP_403_FORBIDDEN,
    ),
    ((UnresolvedReferenceError, UnclassifiableVisibilityError), status.HTTP_400_BAD_REQUEST),
    (
        (GroupAlreadyExistsError, UserAlreadyExistsError, GrantConflictError, NoteLockTimeoutError),
        status.HTTP_409_CONFLICT,
    ),
    ((ValueError,), status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(error: Exception) -> HTTPException:
    """Map a domain error to the HTTPException a route should raise.

    Args:
        error (Exception): Error raised by a domain service.

    Returns:
        HTTPException: The matching client error, or a generic 500.

    Example:
        >>> to_http_exception(NoteNotFoundError("noteID does not exist")).status_code
        404
    """
    if isinstance(error, HTTPException):
        return error

    for error_types, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_types):
            return HTTPException(status_code=status_code, detail=str(error))

    logger.error(f"Unhandled error: {type(error).__name__}: {str(error)}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


def error_response(description: str, example: str) -> dict:
    """Build an entry of a route's ``responses`` documentation."""
    return {
        "model": ErrorResponse,
        "description": description,
        "content": {"application/json": {"example": {"detail": example}}},
    }
