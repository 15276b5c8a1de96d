"""Visibility domain entities and classifier.

This module contains the visibility tag of a note and the classifier that
derives it from a visibility descriptor supplied by callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class Visibility(str, Enum):
    """Canonical visibility tag persisted on every note."""

    PUBLIC = "public"
    PRIVATE = "private"
    SHARED = "shared"


@dataclass
class SharedVisibility:
    """Descriptor for a note shared with explicit users and groups.

    Attributes:
        users (List[str]): Usernames granted access directly.
        groups (List[str]): Names of groups (owned by the note owner) whose
            current members are granted access.

    Example:
        >>> SharedVisibility(users=["marge"], groups=["Stonecutters"])
    """

    users: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check whether the descriptor names nobody at all.

        Returns:
            bool: True if both users and groups are empty.
        """
        return not self.users and not self.groups


def _audience_collections(descriptor: Any):
    if isinstance(descriptor, dict):
        return descriptor.get("users"), descriptor.get("groups")
    return getattr(descriptor, "users", None), getattr(descriptor, "groups", None)


def classify_visibility(descriptor: Any) -> Optional[Visibility]:
    """Derive the visibility tag from a visibility descriptor.

    A descriptor that exposes both a ``users`` and a ``groups`` collection is
    ``shared`` even when one of them is empty; rejecting an audience with no
    entries at all is the request validator's job. The exact literals
    ``"public"`` and ``"private"`` map to their tags.

    Args:
        descriptor (Any): A visibility literal, a ``SharedVisibility``, a
            mapping or any object with ``users`` and ``groups`` attributes.

    Returns:
        Optional[Visibility]: The tag, or None when the descriptor matches none
        of the recognized forms.

    Example:
        >>> classify_visibility({"users": [], "groups": ["team"]})
        <Visibility.SHARED: 'shared'>
        >>> classify_visibility("everyone") is None
        True
    """
    if isinstance(descriptor, str):
        if descriptor == Visibility.PUBLIC.value:
            return Visibility.PUBLIC
        if descriptor == Visibility.PRIVATE.value:
            return Visibility.PRIVATE
        return None

    if descriptor is None:
        return None

    users, groups = _audience_collections(descriptor)
    if users is not None and groups is not None:
        return Visibility.SHARED

    return None
