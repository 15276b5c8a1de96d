"""Group domain entities.

Groups are named sets of users owned by one user. An owner can share a note
with one of their groups, which grants access to its members at that moment.
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from domain.entities.user import UserSummary

MAX_GROUP_NAME_LENGTH = 80


def validate_group_name(name: str) -> str:
    """Validate and normalize a group name.

    Args:
        name (str): Candidate group name.

    Returns:
        str: The name stripped of surrounding whitespace.

    Raises:
        ValueError: If the name is empty or too long.
    """
    if not name or not name.strip():
        raise ValueError("Group name cannot be empty or whitespace")
    if len(name) > MAX_GROUP_NAME_LENGTH:
        raise ValueError(f"Group name cannot exceed {MAX_GROUP_NAME_LENGTH} characters")
    return name.strip()


@dataclass
class Group:
    """Read model of a group with its members in stored order."""

    id: int
    name: str
    members: List[UserSummary] = field(default_factory=list)


class GroupMemberRow(NamedTuple):
    """One row of the groups x members outer join.

    ``member_*`` columns are None for a group without members.
    """

    id: int
    name: str
    member_username: Optional[str] = None
    member_real_name: Optional[str] = None
