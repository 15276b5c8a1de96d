from application.rest.routers.errors import error_response, to_http_exception
from application.rest.schemas.input.user_input import UserCreate, UserReplace, UserUpdate
from application.rest.schemas.output.user_output import UserResponse
from domain.services.user_service import UserService
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from utils.dependencies import get_current_username, get_db, get_user_service

router = APIRouter()

_NOT_FOUND = error_response("User not found.", "User homer does not exist")
_UNAUTHORIZED = error_response("Username header missing.", "Username not found in headers")
_FORBIDDEN = error_response("The account belongs to another user.", "Permission denied")


@router.post(
    path="/users",
    description="Register a user so notes and groups can name them.",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_409_CONFLICT: error_response("Username taken.", "User homer already exists"),
        status.HTTP_500_INTERNAL_SERVER_ERROR: error_response(
            "Internal server error.", "Internal server error"
        ),
    },
)
async def create_user(
    user_create: UserCreate,
    response: Response,
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Register a user.

    Returns:
        UserResponse: The new user, without email address.

    Raises:
        HTTPException: 409 if the username is taken.
    """
    try:
        user = await user_service.create_user(
            db, user_create.username, user_create.real_name, user_create.email_address
        )
    except Exception as e:
        raise to_http_exception(e) from e

    response.headers["Location"] = f"/users/{user.username}"
    return UserResponse.from_entity(user)


@router.get(
    path="/users/{username}",
    description="Retrieve the public profile of a user.",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    responses={status.HTTP_404_NOT_FOUND: _NOT_FOUND},
)
async def get_user(
    username: str,
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await user_service.get_user(db, username)
        return UserResponse.from_entity(user)
    except Exception as e:
        raise to_http_exception(e) from e


@router.put(
    path="/users/{username}",
    description="Replace the real name and email address of the caller's own account.",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
    },
)
async def replace_user(
    username: str,
    user_replace: UserReplace,
    current_username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await user_service.replace_user(
            db, username, current_username, user_replace.real_name, user_replace.email_address
        )
        return UserResponse.from_entity(user)
    except Exception as e:
        raise to_http_exception(e) from e


@router.patch(
    path="/users/{username}",
    description="Update the real name and/or email address of the caller's own account.",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
    },
)
async def update_user(
    username: str,
    user_update: UserUpdate,
    current_username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Partially update an account.

    Raises:
        HTTPException: 403 if the account belongs to another user.
        HTTPException: 404 if the user does not exist.
    """
    try:
        user = await user_service.update_user(
            db,
            username,
            current_username,
            real_name=user_update.real_name,
            email_address=user_update.email_address,
        )
        return UserResponse.from_entity(user)
    except Exception as e:
        raise to_http_exception(e) from e


@router.delete(
    path="/users/{username}",
    description="Delete the caller's own account with their notes, groups, memberships and grants.",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        status.HTTP_401_UNAUTHORIZED: _UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: _FORBIDDEN,
        status.HTTP_404_NOT_FOUND: _NOT_FOUND,
    },
)
async def delete_user(
    username: str,
    current_username: str = Depends(get_current_username),
    db: Session = Depends(get_db),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    try:
        await user_service.delete_user(db, username, current_username)
    except Exception as e:
        raise to_http_exception(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
