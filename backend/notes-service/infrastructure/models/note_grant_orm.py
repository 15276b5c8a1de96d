"""SQLAlchemy ORM model for note grants.

A grant gives one user access to one note, either directly (group_id is
NULL) or through a group the note was shared with.

Architecture:
    This ORM model is part of the Infrastructure layer and should only be used by
    SQLAlchemyGrantRepository and other infrastructure code. Domain code works
    with GrantRef and GrantSpec instead.
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, UniqueConstraint, text
from sqlalchemy.orm import relationship

from infrastructure.models.base import Base


class NoteGrantORM(Base):
    """SQLAlchemy ORM model for note grants.

    Attributes:
        id (int): Primary key, the storage identity of the grant.
        note_id (int): Foreign key to the note.
        user_id (int): Foreign key to the grantee.
        group_id (Optional[int]): Foreign key to the mediating group, NULL for
            direct grants.

    Table Schema:
        - Table name: 'note_grants'
        - Unique constraint: (note_id, user_id, group_id)
        - Partial unique index: (note_id, user_id) for direct grants
    """

    __tablename__ = "note_grants"
    __table_args__ = (
        UniqueConstraint("note_id", "user_id", "group_id", name="uq_note_grants_triple"),
        Index(
            "uq_note_grants_direct",
            "note_id",
            "user_id",
            unique=True,
            sqlite_where=text("group_id IS NULL"),
            postgresql_where=text("group_id IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    note_id = Column(
        Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True, index=True
    )

    note = relationship("NoteORM", back_populates="grants")

    def __repr__(self) -> str:
        return (
            f"<NoteGrantORM(id={self.id}, note_id={self.note_id}, "
            f"user_id={self.user_id}, group_id={self.group_id})>"
        )
