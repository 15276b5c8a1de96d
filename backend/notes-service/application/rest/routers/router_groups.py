from typing import List

from application.converters.note_converter import GroupConverter
from application.rest.routers.errors import error_response, to_http_exception
from application.rest.schemas.input.group_input import GroupCreate, GroupReplace, GroupUpdate
from application.rest.schemas.output.common_output import CreatedResponse
from application.rest.schemas.output.group_output import GroupResponse
from domain.services.group_service import GroupService
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from utils.dependencies import get_current_username, get_db, get_group_service

router = APIRouter()

_UNAUTHORIZED = error_response("Username header missing.", "Username not found in headers")
_FORBIDDEN = error_response("The group belongs to another user.", "Permission denied")
_NOT_FOUND = error_response("Group not found.", "groupID does not exist")
_BAD_MEMBERS = error_response(
    "A member does not exist.", "Nonexistent user(s) in payload.members"
)
_DUPLICATE = error_response(
    "The owner already has a group with this name.", "Group with name 'family' already exists"
)
_SERVER_ERROR = error_response("Internal server error.", "Internal server error")


@router.get(
    path="/groups",
    description="Retrieve the groups owned by the current user with their members.",
    response_model=List[GroupResponse],
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def list_groups(
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> List[GroupResponse]:
    try:
        groups = await group_service.list_groups(db, username)
        return GroupConverter.groups_to_responses(groups)
    except Exception as e:
        raise to_http_exception(e) from e


@router.post(
    path="/groups",
    description="Create a group. Names are unique per owner.",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_MEMBERS,
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_409_CONFLICT: _DUPLICATE,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def create_group(
    group_create: GroupCreate,
    response: Response,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> CreatedResponse:
    """Create a group owned by the current user.

    Args:
        group_create (GroupCreate): Name and member usernames.
        response (Response): Outgoing response, receives the Location header.
        username (str): Caller, from the X-Username header.
        db (Session): Fresh database session for this request.
        group_service (GroupService): Domain service with injected repositories.

    Returns:
        CreatedResponse: Id of the new group.
    """
    try:
        group_id = await group_service.create_group(
            db, username, group_create.name, group_create.members
        )
    except Exception as e:
        raise to_http_exception(e) from e

    response.headers["Location"] = f"/groups/{group_id}"
    return CreatedResponse(id=group_id)


@router.get(
    path="/groups/{group_id}",
    description="Retrieve one group owned by the current user.",
    response_model=GroupResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR: _SERVER_ERROR,
    },
)
async def get_group(
    group_id: int,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> GroupResponse:
    try:
        group = await group_service.get_group(db, group_id, username)
        return GroupConverter.group_to_response(group)
    except Exception as e:
        raise to_http_exception(e) from e


@router.put(
    path="/groups/{group_id}",
    description="Replace the name and members of a group. Existing note grants are not changed.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_MEMBERS,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_409_CONFLICT: _DUPLICATE,
    },
)
async def replace_group(
    group_id: int,
    group_replace: GroupReplace,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> Response:
    try:
        await group_service.replace_group(
            db, group_id, username, group_replace.name, group_replace.members
        )
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    path="/groups/{group_id}",
    description="Rename a group and/or reset its members.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_400_BAD_REQUEST: _BAD_MEMBERS,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
        status.HTTP_409_CONFLICT: _DUPLICATE,
    },
)
async def update_group(
    group_id: int,
    group_update: GroupUpdate,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> Response:
    try:
        await group_service.update_group(
            db, group_id, username, name=group_update.name, members=group_update.members
        )
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    path="/groups/{group_id}",
    description="Delete a group, its memberships and every grant made through it.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
    },
)
async def delete_group(
    group_id: int,
    username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    group_service: GroupService = Depends(get_group_service),
) -> Response:
    try:
        await group_service.delete_group(db, group_id, username)
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
