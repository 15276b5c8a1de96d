"""Group output schemas for API responses."""

from typing import List

from application.rest.schemas.output.user_output import UserResponse
from pydantic import BaseModel


class GroupResponse(BaseModel):
    """Schema for a group as seen by its owner.

    Example:
        >>> GroupResponse(id=3, name="family", members=[])
    """

    id: int
    name: str
    members: List[UserResponse]
