"""User domain entities.

This module contains the User entity and the redacted summary of a user that
is embedded in notes, groups and feeds.
"""

import re
from dataclasses import dataclass
from typing import Optional

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,20}$")


@dataclass(frozen=True)
class UserSummary:
    """Redacted view of a user, safe to expose to other users.

    Attributes:
        username (str): Unique handle of the user.
        real_name (str): Display name of the user.
    """

    username: str
    real_name: str


@dataclass
class User:
    """Domain entity representing a registered user.

    Attributes:
        id (Optional[int]): Storage identifier, None until persisted.
        username (str): Unique handle, lowercase letters, digits and underscores.
        real_name (str): Display name.
        email_address (str): Contact address, never shown to other users.

    Example:
        >>> user = User(id=None, username="homer", real_name="Homer Simpson",
        ...             email_address="homer@example.com")
        >>> user.summary().username
        'homer'
    """

    id: Optional[int]
    username: str
    real_name: str
    email_address: str

    def __post_init__(self):
        """Validate user after initialization.

        Raises:
            ValueError: If the username or real name are invalid.
        """
        if not USERNAME_PATTERN.match(self.username or ""):
            raise ValueError(f"Invalid username: {self.username!r}")
        if not self.real_name or not self.real_name.strip():
            raise ValueError("Real name cannot be empty")

    def summary(self) -> UserSummary:
        return UserSummary(username=self.username, real_name=self.real_name)
