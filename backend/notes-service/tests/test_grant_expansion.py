"""Tests for grant expansion."""

from typing import Dict, List, Tuple

import pytest

from domain.entities.visibility import SharedVisibility
from domain.services.grant_expansion import (
    GrantLookups,
    UnclassifiableVisibilityError,
    UnresolvedReferenceError,
    expand_grants,
)

pytestmark = pytest.mark.anyio


class FakeLookups(GrantLookups):
    """In-memory lookups over a fixed directory."""

    def __init__(
        self,
        users: Dict[str, int],
        groups: Dict[Tuple[int, str], int],
        members: Dict[int, List[int]],
    ):
        self.users = users
        self.groups = groups
        self.members = members
        self.calls = []

    async def resolve_user_ids(self, usernames):
        self.calls.append(("users", list(usernames)))
        missing = [name for name in usernames if name not in self.users]
        if missing:
            raise UnresolvedReferenceError("Nonexistent user(s) in payload.visibility.users")
        return [self.users[name] for name in usernames]

    async def resolve_owned_group_ids(self, names, owner_id):
        self.calls.append(("groups", list(names)))
        missing = [name for name in names if (owner_id, name) not in self.groups]
        if missing:
            raise UnresolvedReferenceError("Nonexistent group(s) in payload.visibility.groups")
        return [self.groups[(owner_id, name)] for name in names]

    async def members_of(self, group_ids):
        return [(user_id, group_id) for group_id in group_ids for user_id in self.members[group_id]]


class ShortLookups(FakeLookups):
    """Lookups that drop unknown names instead of failing."""

    async def resolve_user_ids(self, usernames):
        return [self.users[name] for name in usernames if name in self.users]

    async def resolve_owned_group_ids(self, names, owner_id):
        return [self.groups[(owner_id, n)] for n in names if (owner_id, n) in self.groups]


OWNER = 1


@pytest.fixture
def lookups():
    return FakeLookups(
        users={"homer": 1, "marge": 2, "bart": 3, "lisa": 4},
        groups={(OWNER, "family"): 10, (OWNER, "kids"): 11, (2, "book_club"): 20},
        members={10: [2, 3, 4], 11: [3, 4], 20: [4]},
    )


class TestExpandGrants:
    """Tests for expand_grants."""

    async def test_public_has_no_grants(self, lookups):
        assert await expand_grants("public", OWNER, lookups) == []
        assert lookups.calls == []

    async def test_private_has_no_grants(self, lookups):
        assert await expand_grants("private", OWNER, lookups) == []

    async def test_direct_users(self, lookups):
        pairs = await expand_grants({"users": ["marge", "bart"], "groups": []}, OWNER, lookups)
        assert pairs == [(2, None), (3, None)]

    async def test_group_members(self, lookups):
        pairs = await expand_grants({"users": [], "groups": ["kids"]}, OWNER, lookups)
        assert pairs == [(3, 11), (4, 11)]

    async def test_direct_before_groups(self, lookups):
        pairs = await expand_grants(
            SharedVisibility(users=["lisa"], groups=["family"]), OWNER, lookups
        )
        assert pairs == [(4, None), (2, 10), (3, 10), (4, 10)]

    async def test_user_reachable_several_ways(self, lookups):
        """One pair per path: directly, through family and through kids."""
        pairs = await expand_grants(
            {"users": ["bart"], "groups": ["family", "kids"]}, OWNER, lookups
        )
        assert [pair for pair in pairs if pair[0] == 3] == [(3, None), (3, 10), (3, 11)]

    async def test_repeated_names_expand_once(self, lookups):
        pairs = await expand_grants(
            {"users": ["marge", "marge"], "groups": ["kids", "kids"]}, OWNER, lookups
        )
        assert pairs == [(2, None), (3, 11), (4, 11)]

    async def test_unknown_user(self, lookups):
        with pytest.raises(UnresolvedReferenceError, match="payload.visibility.users"):
            await expand_grants({"users": ["moe"], "groups": []}, OWNER, lookups)

    async def test_group_of_another_owner(self, lookups):
        with pytest.raises(UnresolvedReferenceError, match="payload.visibility.groups"):
            await expand_grants({"users": [], "groups": ["book_club"]}, OWNER, lookups)

    async def test_short_lookup_is_detected(self, lookups):
        short = ShortLookups(lookups.users, lookups.groups, lookups.members)
        with pytest.raises(UnresolvedReferenceError, match="payload.visibility.users"):
            await expand_grants({"users": ["marge", "moe"], "groups": []}, OWNER, short)
        with pytest.raises(UnresolvedReferenceError, match="payload.visibility.groups"):
            await expand_grants({"users": [], "groups": ["nope"]}, OWNER, short)

    async def test_unclassifiable(self, lookups):
        with pytest.raises(UnclassifiableVisibilityError):
            await expand_grants("everyone", OWNER, lookups)

    async def test_empty_group(self, lookups):
        lookups.members[11] = []
        assert await expand_grants({"users": [], "groups": ["kids"]}, OWNER, lookups) == []
