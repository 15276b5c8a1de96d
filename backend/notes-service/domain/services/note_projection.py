"""Projection of flat join rows into nested read models.

The read queries outer-join notes with their grantees and groups (and groups
with their members), producing one row per pairing. The functions here fold
those rows back into one object per note or group. Each fold builds an ordered
map keyed by identifier in a single pass, so output order is the order in
which identifiers first appear in the rows.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from domain.entities.group import Group, GroupMemberRow
from domain.entities.note import (
    FeedNote,
    FeedRow,
    GroupAudience,
    NoteGrantRow,
    ProjectedNote,
    SharedAudience,
)
from domain.entities.user import UserSummary
from domain.entities.visibility import Visibility

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC.

    Naive datetimes are taken to be UTC already.

    Args:
        value (datetime): Timestamp to render.

    Returns:
        str: Second-precision UTC timestamp.

    Example:
        >>> format_timestamp(datetime(2017, 3, 1, 9, 30, 5, 123456))
        '2017-03-01T09:30:05Z'
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def _owner(row) -> UserSummary:
    return UserSummary(username=row.owner_username, real_name=row.owner_real_name)


def project_note_rows(rows: Iterable[NoteGrantRow]) -> List[ProjectedNote]:
    """Fold note x grant rows into one projected note per note id.

    Public and private notes carry no grants and are emitted as they are met.
    For shared notes, a row without a group id is a direct grant and goes to
    ``visibility.users``; a row with one goes to the members of that group's
    entry in ``visibility.groups``, created on first sight. A shared note whose
    rows carry no grantee projects with empty ``users`` and ``groups``.

    Args:
        rows (Iterable[NoteGrantRow]): Flat join rows, in query order.

    Returns:
        List[ProjectedNote]: Notes in order of first appearance.
    """
    notes: Dict[int, ProjectedNote] = {}
    groups: Dict[int, Dict[int, GroupAudience]] = {}

    for row in rows:
        visibility = Visibility(row.visibility)

        if visibility is not Visibility.SHARED:
            notes.setdefault(
                row.id,
                ProjectedNote(
                    id=row.id,
                    body=row.body,
                    owner=_owner(row),
                    visibility=visibility,
                    created_at=format_timestamp(row.created_at),
                    updated_at=format_timestamp(row.updated_at),
                ),
            )
            continue

        note = notes.get(row.id)
        if note is None:
            note = ProjectedNote(
                id=row.id,
                body=row.body,
                owner=_owner(row),
                visibility=SharedAudience(),
                created_at=format_timestamp(row.created_at),
                updated_at=format_timestamp(row.updated_at),
            )
            notes[row.id] = note
            groups[row.id] = {}

        if row.grant_username is None:
            continue

        grantee = UserSummary(username=row.grant_username, real_name=row.grant_real_name)

        if row.grant_group_id is None:
            note.visibility.users.append(grantee)
            continue

        note_groups = groups[row.id]
        group = note_groups.get(row.grant_group_id)
        if group is None:
            group = GroupAudience(id=row.grant_group_id, name=row.grant_group_name)
            note_groups[row.grant_group_id] = group
            note.visibility.groups.append(group)
        group.members.append(grantee)

    return list(notes.values())


def project_group_rows(rows: Iterable[GroupMemberRow]) -> List[Group]:
    """Fold group x member rows into one group per group id.

    Args:
        rows (Iterable[GroupMemberRow]): Flat join rows, in query order.

    Returns:
        List[Group]: Groups in order of first appearance, members in row order.
    """
    groups: Dict[int, Group] = {}

    for row in rows:
        group = groups.get(row.id)
        if group is None:
            group = Group(id=row.id, name=row.name)
            groups[row.id] = group
        if row.member_username is not None:
            group.members.append(
                UserSummary(username=row.member_username, real_name=row.member_real_name)
            )

    return list(groups.values())


def project_feed_rows(rows: Iterable[FeedRow]) -> List[FeedNote]:
    """Collapse feed rows into redacted notes, one per note id.

    A note reachable through several grants appears once per grant in the
    join; only its first occurrence is kept.

    Args:
        rows (Iterable[FeedRow]): Flat feed rows, in query order.

    Returns:
        List[FeedNote]: Notes in order of first appearance.
    """
    notes: Dict[int, FeedNote] = {}
    for row in rows:
        if row.id in notes:
            continue
        notes[row.id] = FeedNote(
            id=row.id,
            body=row.body,
            owner=_owner(row),
            created_at=format_timestamp(row.created_at),
            updated_at=format_timestamp(row.updated_at),
        )
    return list(notes.values())
