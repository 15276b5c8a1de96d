"""User output schemas for API responses."""

from domain.entities.user import UserSummary
from pydantic import BaseModel


class UserResponse(BaseModel):
    """Redacted user: never includes the email address.

    Example:
        >>> UserResponse(username="homer", real_name="Homer Simpson")
    """

    username: str
    real_name: str

    @classmethod
    def from_entity(cls, user: UserSummary) -> "UserResponse":
        return cls(username=user.username, real_name=user.real_name)
