"""
Declarative base for all ORM models.

Alembic imports `Base.metadata` from here to detect schema changes.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass
