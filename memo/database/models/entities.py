"""
Entity Models
--------------

Registry entities shared across memos.

Models:
    - Tag: Per-user tag with a denormalized memo count
    - SysConfig: Key/value runtime policy switches
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .core import User


class Tag(Base, TimestampMixin):
    """
    A tag owned by a user.

    Tag names are unique per owner and matched exactly (case-sensitive).
    Rows are never deleted automatically when memo_count drops to zero.

    Attributes:
        id: Primary key
        user_id: Owner
        name: Tag text
        memo_count: Number of the owner's memos whose tag list has this name
    """

    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tag_owner_name"),
        CheckConstraint("name != ''", name="ck_tag_non_empty_name"),
        CheckConstraint("memo_count >= 0", name="ck_tag_memo_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    memo_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    owner: Mapped["User"] = relationship("User", back_populates="tags")

    @property
    def is_empty(self) -> bool:
        """Tag kept for reuse but not attached to any memo."""
        return self.memo_count == 0

    def __repr__(self) -> str:
        return f"<Tag(user_id={self.user_id}, name='{self.name}', memo_count={self.memo_count})>"


class SysConfig(Base):
    """
    Runtime configuration entry.

    Attributes:
        key: Configuration key (e.g. OPEN_COMMENT)
        value: Explicit value; empty or None falls back to default_value
        default_value: Value used when none was set
        description: What the switch controls
    """

    __tablename__ = "sys_configs"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text)
    default_value: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)

    @property
    def effective_value(self) -> str:
        return self.value if self.value else (self.default_value or "")

    def __repr__(self) -> str:
        return f"<SysConfig(key='{self.key}', value='{self.effective_value}')>"
