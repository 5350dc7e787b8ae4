"""
Database Models Package
------------------------

SQLAlchemy ORM models for the memo database.

- base: Base class and timestamp mixin
- enums: Enumeration types
- core: User, Memo
- social: Comment, UserMemoRelation
- entities: Tag, SysConfig

Usage:
    from memo.database.models import Memo, Comment, Tag
"""
# Base classes
from .base import Base, TimestampMixin, utc_now

# Enumerations
from .enums import CounterField, MemoStatus, RelationType, UserRole, Visibility

# Core models
from .core import Memo, User

# Social models
from .social import ANONYMOUS_USER_ID, Comment, UserMemoRelation

# Entity models
from .entities import SysConfig, Tag

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utc_now",
    # Enums
    "CounterField",
    "MemoStatus",
    "RelationType",
    "UserRole",
    "Visibility",
    # Core
    "Memo",
    "User",
    # Social
    "ANONYMOUS_USER_ID",
    "Comment",
    "UserMemoRelation",
    # Entities
    "SysConfig",
    "Tag",
]
