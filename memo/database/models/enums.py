"""
Enumeration Types
------------------

Enum classes for the memo database models.

Enums:
    - Visibility: Who can read a memo
    - MemoStatus: Lifecycle state of a memo
    - RelationType: Kind of user-memo relation (like, favorite)
    - UserRole: Account role
    - CounterField: Denormalized counters stored on a memo
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class Visibility(str, Enum):
    """
    Memo visibility.
    - PUBLIC: Readable by everyone
    - PROTECT: Readable by logged-in users
    - PRIVATE: Readable by the owner only
    """

    PUBLIC = "PUBLIC"
    PROTECT = "PROTECT"
    PRIVATE = "PRIVATE"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available visibility choices."""
        return [visibility.value for visibility in cls]


class MemoStatus(str, Enum):
    """
    Memo lifecycle state.
    - NORMAL: Listed in timelines
    - ARCHIVED: Kept and counted, but hidden from timelines
    """

    NORMAL = "NORMAL"
    ARCHIVED = "ARCHIVED"

    @classmethod
    def choices(cls) -> List[str]:
        return [status.value for status in cls]


class RelationType(str, Enum):
    """
    Kind of relation a user holds with a memo.

    Only LIKE relations feed a memo counter.
    """

    LIKE = "LIKE"
    FAVORITE = "FAVORITE"

    @classmethod
    def choices(cls) -> List[str]:
        return [relation.value for relation in cls]

    @property
    def counter_field(self) -> "CounterField | None":
        """Memo counter maintained for this relation type, if any."""
        return CounterField.LIKE if self is RelationType.LIKE else None


class UserRole(str, Enum):
    """Account role."""

    ADMIN = "ADMIN"
    USER = "USER"


class CounterField(str, Enum):
    """
    Denormalized counters on a memo.

    Values are the short names used by callers; column_name gives the
    actual column.
    """

    COMMENT = "comment"
    LIKE = "like"
    VIEW = "view"

    @property
    def column_name(self) -> str:
        return f"{self.value}_count"
