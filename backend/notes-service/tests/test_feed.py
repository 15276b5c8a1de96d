"""Tests for FeedService and the feed queries."""

import pytest

from domain.services.user_service import UserNotFoundError

pytestmark = pytest.mark.anyio


@pytest.fixture
async def notes(db_session, note_service, group_service, users):
    """A small world of notes written by the Simpsons."""
    await group_service.create_group(db_session, "homer", "kids", ["bart", "lisa"])
    ids = {}
    ids["homer_public"] = await note_service.create_note(db_session, "homer", "Donuts", "public")
    ids["homer_private"] = await note_service.create_note(db_session, "homer", "Diary", "private")
    ids["homer_kids"] = await note_service.create_note(
        db_session, "homer", "Go to bed", {"users": ["bart"], "groups": ["kids"]}
    )
    ids["marge_public"] = await note_service.create_note(db_session, "marge", "Dinner at 6", "public")
    ids["marge_lisa"] = await note_service.create_note(
        db_session, "marge", "Sax lesson", {"users": ["lisa"], "groups": []}
    )
    return ids


class TestFeeds:
    """Tests for FeedService."""

    async def test_public_feed(self, db_session, feed_service, notes):
        feed = await feed_service.public_feed(db_session)
        assert [n.id for n in feed] == [notes["marge_public"], notes["homer_public"]]

    async def test_anonymous_feed_is_public_only(self, db_session, feed_service, notes):
        feed = await feed_service.feed(db_session, None)
        assert [n.id for n in feed] == [notes["marge_public"], notes["homer_public"]]

    async def test_feed_excludes_own_notes(self, db_session, feed_service, notes):
        feed = await feed_service.feed(db_session, "homer")
        assert [n.id for n in feed] == [notes["marge_public"]]

    async def test_note_granted_twice_appears_once(self, db_session, feed_service, notes):
        """Bart holds a direct grant and a grant through kids."""
        feed = await feed_service.feed(db_session, "bart")
        assert [n.id for n in feed] == [
            notes["marge_public"],
            notes["homer_kids"],
            notes["homer_public"],
        ]

    async def test_shared_with(self, db_session, feed_service, notes):
        feed = await feed_service.shared_with(db_session, "lisa")
        assert [n.id for n in feed] == [notes["marge_lisa"], notes["homer_kids"]]
        assert feed[0].owner.username == "marge"

    async def test_feed_by_owner(self, db_session, feed_service, notes):
        as_lisa = await feed_service.feed_by_owner(db_session, "homer", "lisa")
        as_lenny = await feed_service.feed_by_owner(db_session, "homer", "lenny")
        anonymous = await feed_service.feed_by_owner(db_session, "homer")

        assert [n.id for n in as_lisa] == [notes["homer_kids"], notes["homer_public"]]
        assert [n.id for n in as_lenny] == [notes["homer_public"]]
        assert [n.id for n in anonymous] == [notes["homer_public"]]

    async def test_unknown_owner(self, db_session, feed_service, notes):
        with pytest.raises(UserNotFoundError):
            await feed_service.feed_by_owner(db_session, "moe", "lisa")
