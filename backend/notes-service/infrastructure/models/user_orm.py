"""SQLAlchemy ORM model for User entity.

This module contains the UserORM class that defines the database schema
for users referenced by notes, groups and grants.

Architecture:
    This ORM model is part of the Infrastructure layer and should only be used by
    repository implementations. Domain code should use User instead.
"""

from sqlalchemy import Column, DateTime, Integer, String

from infrastructure.models.base import Base, utc_now


class UserORM(Base):
    """SQLAlchemy ORM model for users.

    Table Schema:
        - Table name: 'users'
        - Primary key: id (integer)
        - Unique constraint: username
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    username = Column(
        String(20), unique=True, nullable=False, index=True, comment="Unique handle"
    )

    real_name = Column(String(80), nullable=False, comment="Display name")

    email_address = Column(String(80), nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<UserORM(id={self.id}, username='{self.username}')>"
