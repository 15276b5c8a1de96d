"""User input schemas for API requests."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class UserCreate(BaseModel):
    """Schema for registering a user.

    Attributes:
        username (str): Lowercase letters, digits and underscores, 3 to 20 characters.
        real_name (str): Display name.
        email_address (str): Contact address, never shown to other users.

    Example:
        >>> UserCreate(username="homer", real_name="Homer Simpson", email_address="homer@example.com")
    """

    username: str = Field(..., pattern=r"^[a-z0-9_]+$", min_length=3, max_length=20)
    real_name: str = Field(..., min_length=1, max_length=80)
    email_address: str = Field(..., min_length=3, max_length=80)


class UserReplace(BaseModel):
    """Schema for replacing the editable fields of an account."""

    real_name: str = Field(..., min_length=1, max_length=80)
    email_address: str = Field(..., min_length=3, max_length=80)


class UserUpdate(BaseModel):
    """Schema for a partial account update. At least one field is required."""

    real_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    email_address: Optional[str] = Field(default=None, min_length=3, max_length=80)

    @model_validator(mode="after")
    def check_any_field(self):
        if self.real_name is None and self.email_address is None:
            raise ValueError("At least one of real_name or email_address is required")
        return self
