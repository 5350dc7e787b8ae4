"""
Social Models
--------------

Models recording how users interact with memos.

Models:
    - Comment: A comment on a memo, possibly anonymous, with mentions
    - UserMemoRelation: LIKE / FAVORITE marks, one per (user, memo, type)
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, FrozenSet, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memo.utils.mentions import decode_mentions
from .base import Base, TimestampMixin, utc_now
from .enums import RelationType

if TYPE_CHECKING:
    from .core import Memo


ANONYMOUS_USER_ID = -1


class Comment(Base, TimestampMixin):
    """
    A comment on a memo.

    Attributes:
        id: Primary key
        memo_id: Parent memo
        content: Comment text
        user_id: Author id, or ANONYMOUS_USER_ID for anonymous authors
        user_name: Author display name at the time of writing
        email: Contact e-mail of an anonymous author
        link: Website of an anonymous author
        mentioned: Display names of mentioned users, comma joined
        mentioned_user_ids: Encoded mention field (``#3,#7,``); None when
            nobody is mentioned
        approved: Whether the comment passed moderation. Only approved
            comments count toward Memo.comment_count.
    """

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    memo_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("memos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, default=ANONYMOUS_USER_ID, nullable=False, index=True
    )
    user_name: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String(255))
    link: Mapped[Optional[str]] = mapped_column(String(255))
    mentioned: Mapped[Optional[str]] = mapped_column(Text)
    mentioned_user_ids: Mapped[Optional[str]] = mapped_column(Text)
    approved: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    memo: Mapped["Memo"] = relationship("Memo", back_populates="comments")

    @property
    def is_anonymous(self) -> bool:
        return self.user_id < 0

    @property
    def mentioned_ids(self) -> FrozenSet[int]:
        """Decoded set of mentioned user ids."""
        return decode_mentions(self.mentioned_user_ids)

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, memo_id={self.memo_id})>"


class UserMemoRelation(Base):
    """
    A user's typed mark on a memo.

    At most one row exists per (user_id, memo_id, fav_type).

    Attributes:
        id: Primary key
        memo_id: Marked memo
        user_id: Marking user
        fav_type: LIKE or FAVORITE
        created: When the mark was made
    """

    __tablename__ = "user_memo_relations"
    __table_args__ = (
        UniqueConstraint("user_id", "memo_id", "fav_type", name="uq_user_memo_relation"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    memo_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("memos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fav_type: Mapped[RelationType] = mapped_column(
        SQLEnum(RelationType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    memo: Mapped["Memo"] = relationship("Memo", back_populates="relations")

    def __repr__(self) -> str:
        return (
            f"<UserMemoRelation(user_id={self.user_id}, memo_id={self.memo_id}, "
            f"fav_type={self.fav_type.value})>"
        )
