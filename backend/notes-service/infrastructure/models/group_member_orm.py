"""SQLAlchemy ORM model for group memberships.

Each row makes one user a member of one group. Membership is read when a
note is shared with the group; changing it later does not touch grants.
"""

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from infrastructure.models.base import Base


class GroupMemberORM(Base):
    """SQLAlchemy ORM model for group memberships.

    Table Schema:
        - Table name: 'group_members'
        - Unique constraint: (group_id, user_id)
    """

    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    group_id = Column(
        Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    group = relationship("GroupORM", back_populates="members")

    def __repr__(self) -> str:
        return f"<GroupMemberORM(id={self.id}, group_id={self.group_id}, user_id={self.user_id})>"
