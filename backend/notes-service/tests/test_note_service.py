"""Tests for NoteService against an in-memory database."""

from datetime import datetime, timezone

import pytest

from domain.entities.grant import GrantDiff, GrantSpec
from domain.entities.note import Note, SharedAudience
from domain.entities.visibility import SharedVisibility, Visibility
from domain.services.grant_expansion import UnclassifiableVisibilityError, UnresolvedReferenceError
from domain.services.grant_reconciler import GrantConflictError
from domain.services.note_service import NoteAccessDeniedError, NoteNotFoundError
from domain.services.user_service import UserNotFoundError
from infrastructure.models.note_grant_orm import NoteGrantORM
from infrastructure.models.note_orm import NoteORM

pytestmark = pytest.mark.anyio


def grant_triples(db_session, note_id):
    rows = (
        db_session.query(NoteGrantORM.user_id, NoteGrantORM.group_id)
        .filter(NoteGrantORM.note_id == note_id)
        .order_by(NoteGrantORM.id)
        .all()
    )
    return [(user_id, group_id) for user_id, group_id in rows]


@pytest.fixture
async def family(db_session, group_service, users):
    return await group_service.create_group(db_session, "homer", "family", ["marge", "bart", "lisa"])


class TestCreateNote:
    """Tests for NoteService.create_note."""

    async def test_new_note_timestamps_are_naive_utc(self):
        before = datetime.now(timezone.utc).replace(tzinfo=None)
        note = Note.create_new("plan", owner_id=1, visibility=Visibility.PUBLIC)

        assert note.created_at.tzinfo is None
        assert before <= note.created_at == note.updated_at

    async def test_public_note(self, db_session, note_service, users):
        note_id = await note_service.create_note(db_session, "homer", "Donuts", "public")

        note = await note_service.get_note(db_session, note_id, "homer")

        assert note.visibility is Visibility.PUBLIC
        assert note.body == "Donuts"
        assert note.owner.username == "homer"
        assert grant_triples(db_session, note_id) == []

    async def test_shared_note_grants(self, db_session, note_service, users, family):
        note_id = await note_service.create_note(
            db_session, "homer", "Surprise party", {"users": ["lenny"], "groups": ["family"]}
        )

        assert grant_triples(db_session, note_id) == [
            (users["lenny"], None),
            (users["marge"], family),
            (users["bart"], family),
            (users["lisa"], family),
        ]

        note = await note_service.get_note(db_session, note_id, "homer")
        assert [u.username for u in note.visibility.users] == ["lenny"]
        assert [(g.name, [m.username for m in g.members]) for g in note.visibility.groups] == [
            ("family", ["marge", "bart", "lisa"])
        ]

    async def test_unknown_user_rolls_back(self, db_session, note_service, users):
        with pytest.raises(UnresolvedReferenceError):
            await note_service.create_note(
                db_session, "homer", "Hi", SharedVisibility(users=["moe"])
            )
        assert db_session.query(NoteORM).count() == 0

    async def test_group_of_another_user(self, db_session, note_service, group_service, users):
        await group_service.create_group(db_session, "marge", "book_club", ["lisa"])
        with pytest.raises(UnresolvedReferenceError, match="groups"):
            await note_service.create_note(
                db_session, "homer", "Hi", {"users": [], "groups": ["book_club"]}
            )

    async def test_unclassifiable_visibility(self, db_session, note_service, users):
        with pytest.raises(UnclassifiableVisibilityError):
            await note_service.create_note(db_session, "homer", "Hi", "everyone")

    async def test_empty_body(self, db_session, note_service, users):
        with pytest.raises(ValueError):
            await note_service.create_note(db_session, "homer", "   ", "public")

    async def test_unknown_owner(self, db_session, note_service, users):
        with pytest.raises(UserNotFoundError):
            await note_service.create_note(db_session, "moe", "Hi", "public")


class TestReadNotes:
    """Tests for listing and reading owned notes."""

    async def test_list_is_newest_first_and_owned_only(self, db_session, note_service, users):
        first = await note_service.create_note(db_session, "homer", "first", "public")
        second = await note_service.create_note(db_session, "homer", "second", "private")
        await note_service.create_note(db_session, "marge", "hers", "public")

        notes = await note_service.list_notes(db_session, "homer")

        assert [note.id for note in notes] == [second, first]

    async def test_missing_note(self, db_session, note_service, users):
        with pytest.raises(NoteNotFoundError, match="noteID does not exist"):
            await note_service.get_note(db_session, 999, "homer")

    async def test_note_of_another_user(self, db_session, note_service, users):
        note_id = await note_service.create_note(db_session, "marge", "hers", "private")
        with pytest.raises(NoteAccessDeniedError, match="Permission denied"):
            await note_service.get_note(db_session, note_id, "homer")


class TestWriteNotes:
    """Tests for replace, update and delete."""

    async def test_replace_reconciles_grants(self, db_session, note_service, users, family):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["lenny", "marge"], "groups": []}
        )
        kept_row = grant_triples(db_session, note_id)[1]

        await note_service.replace_note(
            db_session, note_id, "homer", "new plan", {"users": ["marge"], "groups": ["family"]}
        )

        triples = grant_triples(db_session, note_id)
        assert triples[0] == kept_row
        assert sorted(triples, key=str) == sorted(
            [
                (users["marge"], None),
                (users["marge"], family),
                (users["bart"], family),
                (users["lisa"], family),
            ],
            key=str,
        )
        note = await note_service.get_note(db_session, note_id, "homer")
        assert note.body == "new plan"

    async def test_replace_is_idempotent(self, db_session, note_service, users, family):
        visibility = {"users": ["lenny"], "groups": ["family"]}
        note_id = await note_service.create_note(db_session, "homer", "plan", visibility)
        ids_before = [
            row.id for row in db_session.query(NoteGrantORM.id).filter(NoteGrantORM.note_id == note_id)
        ]

        await note_service.replace_note(db_session, note_id, "homer", "plan", visibility)

        ids_after = [
            row.id for row in db_session.query(NoteGrantORM.id).filter(NoteGrantORM.note_id == note_id)
        ]
        assert ids_after == ids_before

    async def test_going_private_removes_grants(self, db_session, note_service, users, family):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": [], "groups": ["family"]}
        )

        await note_service.update_note(db_session, note_id, "homer", visibility="private")

        assert grant_triples(db_session, note_id) == []
        note = await note_service.get_note(db_session, note_id, "homer")
        assert note.visibility is Visibility.PRIVATE

    async def test_body_only_update_keeps_grants(self, db_session, note_service, users, family):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["lenny"], "groups": []}
        )
        before = grant_triples(db_session, note_id)

        await note_service.update_note(db_session, note_id, "homer", body="better plan")

        note = await note_service.get_note(db_session, note_id, "homer")
        assert note.body == "better plan"
        assert isinstance(note.visibility, SharedAudience)
        assert grant_triples(db_session, note_id) == before

    async def test_failed_update_changes_nothing(self, db_session, note_service, users):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["lenny"], "groups": []}
        )

        with pytest.raises(UnresolvedReferenceError):
            await note_service.replace_note(
                db_session, note_id, "homer", "changed", {"users": ["moe"], "groups": []}
            )

        note = await note_service.get_note(db_session, note_id, "homer")
        assert note.body == "plan"
        assert grant_triples(db_session, note_id) == [(users["lenny"], None)]

    async def test_only_owner_may_write(self, db_session, note_service, users):
        note_id = await note_service.create_note(db_session, "marge", "hers", "public")
        with pytest.raises(NoteAccessDeniedError):
            await note_service.update_note(db_session, note_id, "homer", body="mine now")
        with pytest.raises(NoteAccessDeniedError):
            await note_service.delete_note(db_session, note_id, "homer")

    async def test_delete_removes_grants(self, db_session, note_service, users):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["lenny", "bart"], "groups": []}
        )

        await note_service.delete_note(db_session, note_id, "homer")

        assert db_session.query(NoteORM).filter(NoteORM.id == note_id).count() == 0
        assert grant_triples(db_session, note_id) == []
        with pytest.raises(NoteNotFoundError):
            await note_service.delete_note(db_session, note_id, "homer")

    async def test_group_changes_do_not_touch_existing_grants(
        self, db_session, note_service, group_service, users, family
    ):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": [], "groups": ["family"]}
        )
        before = grant_triples(db_session, note_id)

        await group_service.update_group(db_session, family, "homer", members=["lenny"])

        assert grant_triples(db_session, note_id) == before


class TestConflictRetry:
    """Tests for the retry of conflicting grant writes."""

    async def test_conflict_is_retried(self, db_session, note_service, users, monkeypatch):
        note_id = await note_service.create_note(db_session, "homer", "plan", "public")
        grant_repository = note_service._grant_repository
        original = grant_repository.apply_grant_diff
        calls = []

        async def flaky_apply(session, diff):
            calls.append(diff)
            if len(calls) == 1:
                raise GrantConflictError("changed underneath")
            await original(session, diff)

        monkeypatch.setattr(grant_repository, "apply_grant_diff", flaky_apply)

        await note_service.replace_note(
            db_session, note_id, "homer", "plan", {"users": ["bart"], "groups": []}
        )

        assert len(calls) == 2
        assert grant_triples(db_session, note_id) == [(users["bart"], None)]

    async def test_gives_up_after_max_attempts(self, db_session, note_service, users, monkeypatch):
        note_id = await note_service.create_note(db_session, "homer", "plan", "public")
        calls = []

        async def always_conflict(session, diff):
            calls.append(diff)
            raise GrantConflictError("changed underneath")

        monkeypatch.setattr(note_service._grant_repository, "apply_grant_diff", always_conflict)

        with pytest.raises(GrantConflictError):
            await note_service.replace_note(
                db_session, note_id, "homer", "changed", {"users": ["bart"], "groups": []}
            )

        assert len(calls) == 3
        note = await note_service.get_note(db_session, note_id, "homer")
        assert note.body == "plan"

    async def test_stale_delete_is_a_conflict(self, db_session, note_service, users):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["bart"], "groups": []}
        )
        grant_repository = note_service._grant_repository
        [stale] = await grant_repository.get_note_grants(db_session, note_id)
        db_session.query(NoteGrantORM).filter(NoteGrantORM.id == stale.id).delete()
        db_session.commit()

        with pytest.raises(GrantConflictError):
            await grant_repository.apply_grant_diff(db_session, GrantDiff(to_delete=[stale.id]))
        db_session.rollback()

    async def test_duplicate_direct_grant_is_a_conflict(self, db_session, note_service, users):
        note_id = await note_service.create_note(
            db_session, "homer", "plan", {"users": ["marge"], "groups": []}
        )
        duplicate = GrantSpec(note_id=note_id, user_id=users["marge"], group_id=None)

        with pytest.raises(GrantConflictError):
            await note_service._grant_repository.apply_grant_diff(
                db_session, GrantDiff(to_insert=[duplicate])
            )
        db_session.rollback()

        assert grant_triples(db_session, note_id) == [(users["marge"], None)]
