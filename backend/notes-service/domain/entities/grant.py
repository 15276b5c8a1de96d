"""Grant domain entities.

A grant gives one user access to one note, optionally mediated by a group.
Desired grants are compared by value (``GrantSpec``) while persisted grants
also carry the row identifier the storage assigned to them (``GrantRef``).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# (user_id, group_id) as produced by grant expansion; group_id None = direct
GrantPair = Tuple[int, Optional[int]]


@dataclass(frozen=True)
class GrantSpec:
    """Value identity of a grant: the ``(note_id, user_id, group_id)`` triple.

    Attributes:
        note_id (int): Note the grant applies to.
        user_id (int): Grantee.
        group_id (Optional[int]): Mediating group, None for a direct grant.
    """

    note_id: int
    user_id: int
    group_id: Optional[int] = None

    @property
    def is_direct(self) -> bool:
        return self.group_id is None

    @classmethod
    def for_note(cls, note_id: int, pairs: List[GrantPair]) -> List["GrantSpec"]:
        """Tag expanded ``(user_id, group_id)`` pairs with a note id.

        Order and duplicates of ``pairs`` are preserved.

        Args:
            note_id (int): Note the desired grants belong to.
            pairs (List[GrantPair]): Output of grant expansion.

        Returns:
            List[GrantSpec]: One spec per pair.
        """
        return [cls(note_id=note_id, user_id=user_id, group_id=group_id) for user_id, group_id in pairs]


@dataclass(frozen=True)
class GrantRef:
    """A persisted grant row: storage id plus its triple."""

    id: int
    note_id: int
    user_id: int
    group_id: Optional[int] = None

    @property
    def spec(self) -> GrantSpec:
        """Return the value identity of this row.

        Returns:
            GrantSpec: The row's ``(note_id, user_id, group_id)`` triple.
        """
        return GrantSpec(note_id=self.note_id, user_id=self.user_id, group_id=self.group_id)


@dataclass
class GrantDiff:
    """Mutations that move a note's stored grants to a desired grant set.

    Attributes:
        to_delete (List[int]): Row ids of stored grants to remove.
        to_insert (List[GrantSpec]): Grants to add.
    """

    to_delete: List[int] = field(default_factory=list)
    to_insert: List[GrantSpec] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check whether applying the diff would change nothing.

        Returns:
            bool: True if there is nothing to delete or insert.
        """
        return not self.to_delete and not self.to_insert
