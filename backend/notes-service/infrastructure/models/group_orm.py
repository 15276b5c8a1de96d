"""SQLAlchemy ORM model for Group entity.

This module contains the GroupORM class that defines the database schema
for named groups of users owned by one user.

Architecture:
    This ORM model is part of the Infrastructure layer and should only be used by:
    - SqlAlchemyGroupRepository implementation
    - Other infrastructure-specific code

    Domain code should use Group instead of this ORM model.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from infrastructure.models.base import Base, utc_now


class GroupORM(Base):
    """SQLAlchemy ORM model for groups.

    Attributes:
        id (int): Primary key.
        name (str): Group name, max 80 characters, unique per owner.
        owner_id (int): Foreign key to the owning user.
        created_at (datetime): Timestamp when the group was created.
        members (List[GroupMemberORM]): Membership rows, deleted with the group.

    Table Schema:
        - Table name: 'groups'
        - Unique constraint: (owner_id, name)
    """

    __tablename__ = "groups"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_groups_owner_name"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(80), nullable=False, comment="Group name, unique per owner")

    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who owns the group",
    )

    created_at = Column(DateTime, default=utc_now, nullable=False)

    members = relationship(
        "GroupMemberORM",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMemberORM.id",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<GroupORM(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"

    def __str__(self) -> str:
        return self.name
