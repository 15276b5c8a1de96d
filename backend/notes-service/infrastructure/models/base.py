"""SQLAlchemy declarative base for all ORM models.

This module provides a shared declarative base that all ORM models inherit from.
Having a centralized base ensures metadata consistency across all models.

Usage:
    >>> from .base import Base
    >>>
    >>> class MyModel(Base):
    ...     __tablename__ = 'my_table'
    ...     # ... column definitions
"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

# Shared declarative base for all ORM models in the infrastructure layer
Base = declarative_base()


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
