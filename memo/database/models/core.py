"""
Core Models
------------

Central models for the memo database.

Models:
    - User: Account owning memos, tags and the mentions watermark
    - Memo: A short note with denormalized counters

Counter columns on Memo are only ever written through
CounterManager; the watermark on User only through UserManager.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memo.utils.tags import split_tags
from .base import Base, TimestampMixin
from .enums import MemoStatus, UserRole, Visibility

if TYPE_CHECKING:
    from .social import Comment, UserMemoRelation
    from .entities import Tag


# ----- User Model -----
class User(Base, TimestampMixin):
    """
    Account of a memo author, commenter or reader.

    Attributes:
        id: Primary key
        username: Login name (unique)
        display_name: Name shown to others and used for @mentions (unique)
        role: ADMIN or USER
        last_clicked_mentioned: Watermark; mentions created after it are
            unread. None means the user never read their mentions.

    Relationships:
        memos: One-to-many with Memo
        tags: One-to-many with Tag
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("username != ''", name="ck_user_non_empty_username"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, nullable=True, index=True
    )
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, values_callable=lambda x: [e.value for e in x]),
        default=UserRole.USER,
        nullable=False,
    )
    last_clicked_mentioned: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    memos: Mapped[List["Memo"]] = relationship("Memo", back_populates="owner")
    tags: Mapped[List["Tag"]] = relationship("Tag", back_populates="owner")

    @property
    def name(self) -> str:
        """Display name, falling back to the username."""
        return self.display_name or self.username

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


# ----- Memo Model -----
class Memo(Base, TimestampMixin):
    """
    A short note owned by a user.

    Attributes:
        id: Primary key
        user_id: Owner
        content: Memo body (tags removed from the first line)
        tags: Raw tag list, delimiter-joined with a trailing delimiter
        visibility: PUBLIC, PROTECT or PRIVATE
        status: NORMAL or ARCHIVED
        priority: Pin order; 0 means not pinned
        comment_count: Approved comments on this memo
        like_count: LIKE relations on this memo
        view_count: Number of views, no deduplication
        enable_comment: Whether new comments are accepted
        source: Client that created the memo

    Relationships:
        owner: Many-to-one with User
        comments: One-to-many with Comment
        relations: One-to-many with UserMemoRelation
    """

    __tablename__ = "memos"
    __table_args__ = (
        CheckConstraint("comment_count >= 0", name="ck_memo_comment_count_non_negative"),
        CheckConstraint("like_count >= 0", name="ck_memo_like_count_non_negative"),
        CheckConstraint("view_count >= 0", name="ck_memo_view_count_non_negative"),
    )

    # ---- Primary fields ----
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[str] = mapped_column(Text, default="", nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        SQLEnum(Visibility, values_callable=lambda x: [e.value for e in x]),
        default=Visibility.PUBLIC,
        nullable=False,
    )
    status: Mapped[MemoStatus] = mapped_column(
        SQLEnum(MemoStatus, values_callable=lambda x: [e.value for e in x]),
        default=MemoStatus.NORMAL,
        nullable=False,
    )
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(64))
    enable_comment: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ---- Denormalized counters ----
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ---- Relationships ----
    owner: Mapped["User"] = relationship("User", back_populates="memos")
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="memo", cascade="all, delete-orphan"
    )
    relations: Mapped[List["UserMemoRelation"]] = relationship(
        "UserMemoRelation", back_populates="memo", cascade="all, delete-orphan"
    )

    @property
    def tag_list(self) -> List[str]:
        """Tag names parsed from the raw tag list."""
        return split_tags(self.tags)

    @property
    def is_pinned(self) -> bool:
        return self.priority > 0

    def __repr__(self) -> str:
        return f"<Memo(id={self.id}, user_id={self.user_id})>"
