"""Group input schemas for API requests."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class GroupCreate(BaseModel):
    """Schema for creating a new group.

    Attributes:
        name (str): Group name, unique among the owner's groups.
        members (List[str]): Usernames of the members.

    Example:
        >>> GroupCreate(name="family", members=["marge", "bart", "lisa"])
    """

    name: str = Field(..., min_length=1, max_length=80, description="Group name")
    members: List[str] = Field(default_factory=list, description="Member usernames")


class GroupReplace(BaseModel):
    """Schema for replacing a group's name and members."""

    name: str = Field(..., min_length=1, max_length=80)
    members: List[str]


class GroupUpdate(BaseModel):
    """Schema for a partial group update. At least one field is required."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    members: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_any_field(self):
        if self.name is None and self.members is None:
            raise ValueError("At least one of name or members is required")
        return self
