"""Tests for GroupService and membership reconciliation."""

import pytest

from domain.services.grant_expansion import UnresolvedReferenceError
from domain.services.group_service import (
    GroupAccessDeniedError,
    GroupAlreadyExistsError,
    GroupNotFoundError,
    reconcile_members,
)
from infrastructure.models.group_member_orm import GroupMemberORM
from infrastructure.models.note_grant_orm import NoteGrantORM


class TestReconcileMembers:
    """Tests for reconcile_members."""

    def test_diff(self):
        assert reconcile_members([(1, 10), (2, 11)], [11, 12]) == ([1], [12])

    def test_no_change(self):
        assert reconcile_members([(1, 10), (2, 11)], [11, 10]) == ([], [])

    def test_duplicates_in_desired(self):
        assert reconcile_members([], [5, 5, 6]) == ([], [5, 6])


@pytest.mark.anyio
class TestGroupService:
    """Tests for GroupService against an in-memory database."""

    async def test_create_and_get(self, db_session, group_service, users):
        group_id = await group_service.create_group(db_session, "homer", "family", ["marge", "bart"])

        group = await group_service.get_group(db_session, group_id, "homer")

        assert group.name == "family"
        assert [m.username for m in group.members] == ["marge", "bart"]

    async def test_list_orders_by_id(self, db_session, group_service, users):
        first = await group_service.create_group(db_session, "homer", "zeta", [])
        second = await group_service.create_group(db_session, "homer", "alpha", ["lisa"])
        await group_service.create_group(db_session, "marge", "book_club", ["lisa"])

        groups = await group_service.list_groups(db_session, "homer")

        assert [(g.id, g.members) for g in groups][0] == (first, [])
        assert [g.id for g in groups] == [first, second]

    async def test_name_unique_per_owner(self, db_session, group_service, users):
        await group_service.create_group(db_session, "homer", "family", [])
        await group_service.create_group(db_session, "marge", "family", [])
        with pytest.raises(GroupAlreadyExistsError):
            await group_service.create_group(db_session, "homer", "family", ["bart"])

    async def test_unknown_member(self, db_session, group_service, users):
        with pytest.raises(UnresolvedReferenceError):
            await group_service.create_group(db_session, "homer", "family", ["moe"])
        assert await group_service.list_groups(db_session, "homer") == []

    async def test_update_members(self, db_session, group_service, users):
        group_id = await group_service.create_group(db_session, "homer", "family", ["marge", "bart"])
        [marge_row] = [
            row.id
            for row in db_session.query(GroupMemberORM.id).filter(
                GroupMemberORM.user_id == users["marge"]
            )
        ]

        await group_service.update_group(db_session, group_id, "homer", members=["marge", "lisa"])

        group = await group_service.get_group(db_session, group_id, "homer")
        assert [m.username for m in group.members] == ["marge", "lisa"]
        assert db_session.query(GroupMemberORM).filter(GroupMemberORM.id == marge_row).count() == 1

    async def test_rename(self, db_session, group_service, users):
        group_id = await group_service.create_group(db_session, "homer", "family", [])
        await group_service.create_group(db_session, "homer", "work", [])

        await group_service.update_group(db_session, group_id, "homer", name="simpsons")
        assert (await group_service.get_group(db_session, group_id, "homer")).name == "simpsons"

        with pytest.raises(GroupAlreadyExistsError):
            await group_service.replace_group(db_session, group_id, "homer", "work", [])

    async def test_other_owner(self, db_session, group_service, users):
        group_id = await group_service.create_group(db_session, "marge", "book_club", [])
        with pytest.raises(GroupAccessDeniedError):
            await group_service.get_group(db_session, group_id, "homer")
        with pytest.raises(GroupNotFoundError):
            await group_service.delete_group(db_session, 999, "homer")

    async def test_delete_removes_memberships_and_mediated_grants(
        self, db_session, group_service, note_service, users
    ):
        group_id = await group_service.create_group(db_session, "homer", "family", ["marge", "bart"])
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["lenny"], "groups": ["family"]}
        )

        await group_service.delete_group(db_session, group_id, "homer")

        assert db_session.query(GroupMemberORM).count() == 0
        remaining = db_session.query(NoteGrantORM.user_id, NoteGrantORM.group_id).filter(
            NoteGrantORM.note_id == note_id
        )
        assert [tuple(row) for row in remaining] == [(users["lenny"], None)]
