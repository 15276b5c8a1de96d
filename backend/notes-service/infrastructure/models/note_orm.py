"""SQLAlchemy ORM model for Note entity.

This module contains the NoteORM class that defines the database schema
for notes and handles note data persistence.

Classes:
    NoteORM: SQLAlchemy model for notes with body, visibility and grants.

Architecture:
    This ORM model is part of the Infrastructure layer and should only be used by:
    - SQLAlchemyNoteRepository implementation
    - Other infrastructure-specific code

    Domain code should use Note instead of this ORM model.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from infrastructure.models.base import Base, utc_now


class NoteORM(Base):
    """SQLAlchemy ORM model for notes.

    Attributes:
        id (int): Primary key.
        body (str): Note text.
        owner_id (int): Foreign key to the owning user.
        visibility (str): One of 'public', 'private', 'shared'.
        created_at (datetime): Timestamp when note was created.
        updated_at (datetime): Timestamp when note was last updated.
        grants (List[NoteGrantORM]): Grants of the note, deleted with it.

    Table Schema:
        - Table name: 'notes'
        - Check constraint: visibility in ('public', 'private', 'shared')
    """

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(
            "visibility IN ('public', 'private', 'shared')", name="ck_notes_visibility"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    body = Column(Text, nullable=False, comment="Note text, up to 10000 characters")

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who owns the note",
    )

    visibility = Column(String(10), nullable=False, comment="public, private or shared")

    # Timestamps
    created_at = Column(
        DateTime,
        default=utc_now,
        nullable=False,
        comment="Timestamp when note was created",
    )

    updated_at = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
        comment="Timestamp when note was last updated",
    )

    grants = relationship(
        "NoteGrantORM",
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def __repr__(self) -> str:
        return (
            f"<NoteORM(id={self.id}, visibility='{self.visibility}', owner_id={self.owner_id})>"
        )
