"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the memo database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - TimestampMixin: created/updated columns in UTC
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone

# --- Third party ---
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Provides access to the metadata object for table creation and
    Alembic migrations.
    """

    pass


class TimestampMixin:
    """
    Mixin adding creation and last-update timestamps.

    Attributes:
        created: When the row was inserted
        updated: When the row last changed
    """

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
