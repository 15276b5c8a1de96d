"""Grant expansion.

Turns a desired visibility descriptor into the flat list of grants it stands
for. Groups are expanded to the members they have right now; the resulting
grants are a snapshot and are not updated when membership changes later.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple

from domain.entities.grant import GrantPair
from domain.entities.visibility import Visibility, classify_visibility

logger = logging.getLogger(__name__)


class UnresolvedReferenceError(Exception):
    """Raised when a username or group name in a descriptor does not resolve."""

    pass


class UnclassifiableVisibilityError(ValueError):
    """Raised when a visibility descriptor matches none of the known forms."""

    pass


class GrantLookups(ABC):
    """Lookups grant expansion needs from storage.

    Implementations must fail with ``UnresolvedReferenceError`` rather than
    return fewer ids than names asked for.
    """

    @abstractmethod
    async def resolve_user_ids(self, usernames: List[str]) -> List[int]:
        """Resolve usernames to user ids, in the order given.

        Raises:
            UnresolvedReferenceError: If any username is unknown.
        """
        pass

    @abstractmethod
    async def resolve_owned_group_ids(self, names: List[str], owner_id: int) -> List[int]:
        """Resolve group names owned by ``owner_id`` to group ids, in the order given.

        Raises:
            UnresolvedReferenceError: If any name is unknown or not owned by the user.
        """
        pass

    @abstractmethod
    async def members_of(self, group_ids: List[int]) -> List[Tuple[int, int]]:
        """Return one ``(user_id, group_id)`` pair per membership of the given groups."""
        pass


def _unique(names: Optional[Iterable[str]]) -> List[str]:
    return list(dict.fromkeys(names or []))


def _audience(descriptor: Any) -> Tuple[List[str], List[str]]:
    if isinstance(descriptor, dict):
        return _unique(descriptor.get("users")), _unique(descriptor.get("groups"))
    return _unique(getattr(descriptor, "users", None)), _unique(getattr(descriptor, "groups", None))


async def expand_grants(descriptor: Any, owner_id: int, lookups: GrantLookups) -> List[GrantPair]:
    """Expand a visibility descriptor into the desired grant pairs.

    Direct grants come first, one ``(user_id, None)`` per listed user, followed
    by one ``(member_id, group_id)`` per membership of each listed group. The
    result is a concatenation, not a set: a user reachable directly and through
    two groups yields three pairs, each with a different mediating group.

    Args:
        descriptor (Any): Visibility descriptor, already validated.
        owner_id (int): Owner of the note; group names are scoped to this user.
        lookups (GrantLookups): Storage lookups.

    Returns:
        List[GrantPair]: Desired ``(user_id, group_id)`` pairs. Empty for
        public and private notes.

    Raises:
        UnclassifiableVisibilityError: If the descriptor has no recognizable form.
        UnresolvedReferenceError: If a username or group name does not resolve.

    Example:
        >>> await expand_grants({"users": ["bart"], "groups": ["family"]}, 1, lookups)
        [(2, None), (2, 10), (3, 10)]
    """
    visibility = classify_visibility(descriptor)
    if visibility is None:
        raise UnclassifiableVisibilityError(f"Unclassifiable visibility: {descriptor!r}")
    if visibility is not Visibility.SHARED:
        return []

    usernames, group_names = _audience(descriptor)

    user_ids: List[int] = []
    if usernames:
        user_ids = await lookups.resolve_user_ids(usernames)
        if len(user_ids) != len(usernames):
            raise UnresolvedReferenceError("Nonexistent user(s) in payload.visibility.users")

    memberships: List[Tuple[int, int]] = []
    if group_names:
        group_ids = await lookups.resolve_owned_group_ids(group_names, owner_id)
        if len(group_ids) != len(group_names):
            raise UnresolvedReferenceError("Nonexistent group(s) in payload.visibility.groups")
        memberships = await lookups.members_of(group_ids)

    direct: List[GrantPair] = [(user_id, None) for user_id in user_ids]
    via_groups: List[GrantPair] = [(user_id, group_id) for user_id, group_id in memberships]

    logger.debug(
        f"Expanded visibility for owner {owner_id}: "
        f"{len(direct)} direct, {len(via_groups)} group-mediated grants"
    )
    return direct + via_groups
