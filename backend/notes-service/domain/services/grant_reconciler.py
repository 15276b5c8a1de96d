"""Grant set reconciliation.

Computes the minimal deletes and inserts that turn the grants stored for a
note into the desired grant set. Pure; applying the result is the caller's
job and must happen atomically.
"""

from typing import Iterable, List

from domain.entities.grant import GrantDiff, GrantRef, GrantSpec


class GrantConflictError(Exception):
    """Raised when stored grants changed between reading and applying a diff.

    The whole read-expand-reconcile-apply cycle has to be restarted; the
    diff must not be patched in place.
    """

    pass


def reconcile(existing: Iterable[GrantRef], desired: Iterable[GrantSpec]) -> GrantDiff:
    """Diff stored grants against the desired grant set.

    Two grants match when their ``(note_id, user_id, group_id)`` triples are
    equal. A stored row is kept when any desired grant matches it. A desired
    grant is inserted when no stored row matches it; duplicate desired grants
    without a stored match are each inserted, since stored grants are rows.

    Args:
        existing (Iterable[GrantRef]): Grants currently stored for the note.
        desired (Iterable[GrantSpec]): Expanded desired grants for the note.

    Returns:
        GrantDiff: Row ids to delete and grants to insert, each in input order.

    Example:
        >>> existing = [GrantRef(id=1, note_id=7, user_id=3, group_id=None)]
        >>> desired = [GrantSpec(7, 3, None), GrantSpec(7, 4, 10)]
        >>> reconcile(existing, desired)
        GrantDiff(to_delete=[], to_insert=[GrantSpec(note_id=7, user_id=4, group_id=10)])
    """
    existing = list(existing)
    desired = list(desired)

    desired_keys = set(desired)
    existing_keys = {ref.spec for ref in existing}

    to_delete: List[int] = [ref.id for ref in existing if ref.spec not in desired_keys]
    to_insert: List[GrantSpec] = [spec for spec in desired if spec not in existing_keys]

    return GrantDiff(to_delete=to_delete, to_insert=to_insert)
