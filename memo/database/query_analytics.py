#!/usr/bin/env python3
"""
query_analytics.py
------------------
Read-only aggregates over the memo database.

Statistics are computed fresh from the database on every call; nothing
is cached between calls.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import MemoLogger
from memo.core.validators import DataValidator
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.managers import CommentManager, RelationManager, UserManager
from memo.database.models import Memo, RelationType, Tag, User, utc_now

ACTIVITY_WINDOW_DAYS = 50


@dataclass(frozen=True)
class StatisticsSnapshot:
    """
    Per-user statistics.

    Attributes:
        user_id: User the statistics describe
        total_memos: Memos owned by the user (archived included)
        liked_count: LIKE relations the user holds
        mentioned_count: Comments mentioning the user, across all memos
        commented_count: Comments written by the user
        unread_mentioned_count: Mentioning comments created after the
            user's watermark; equal to mentioned_count without one
        watermark: The user's watermark, None if never set
    """

    user_id: int
    total_memos: int
    liked_count: int
    mentioned_count: int
    commented_count: int
    unread_mentioned_count: int
    watermark: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["watermark"] = self.watermark.isoformat() if self.watermark else None
        return data


class QueryAnalytics:
    """
    Handles aggregate queries for dashboards and reports.
    """

    def __init__(self, logger: Optional[MemoLogger] = None) -> None:
        """
        Initialize query analytics.

        Args:
            logger: Optional logger for query operations
        """
        self.logger = logger

    @handle_db_errors
    @log_database_operation("get_user_statistics")
    def get_user_statistics(self, session: Session, user_id: int) -> StatisticsSnapshot:
        """
        Compute the statistics snapshot of one user.

        Args:
            session: SQLAlchemy session
            user_id: User to describe

        Returns:
            StatisticsSnapshot

        Raises:
            ValidationError: If the user does not exist
        """
        users = UserManager(session, self.logger)
        comments = CommentManager(session, self.logger)
        relations = RelationManager(session, self.logger)

        watermark = users.get_watermark(user_id)

        total_memos = session.query(func.count(Memo.id)).filter(Memo.user_id == user_id).scalar()
        liked_count = relations.count_by_user(user_id, RelationType.LIKE)
        mentioned_count = comments.count_mentioning(user_id)
        commented_count = comments.count_by_author(user_id)

        if watermark is None:
            unread_mentioned_count = mentioned_count
        else:
            unread_mentioned_count = comments.count_mentioning(user_id, since=watermark)

        return StatisticsSnapshot(
            user_id=user_id,
            total_memos=total_memos or 0,
            liked_count=liked_count,
            mentioned_count=mentioned_count,
            commented_count=commented_count,
            unread_mentioned_count=unread_mentioned_count,
            watermark=watermark,
        )

    @handle_db_errors
    @log_database_operation("get_memo_activity")
    def get_memo_activity(
        self,
        session: Session,
        user_id: Optional[int] = None,
        begin: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Memo activity report of a user.

        Args:
            session: SQLAlchemy session
            user_id: User to report on; the first administrator when None
            begin: Window start (default: 50 days ago)
            end: Window end (default: tomorrow)

        Returns:
            Dictionary with total_memos, total_days (whole days since the
            account was created), total_tags and items, a list of
            {"date": "YYYY-MM-DD", "total": n} for days with memos in the
            window, newest first

        Raises:
            ValidationError: If end is before begin, or no user is found
        """
        now = utc_now()
        begin = DataValidator.normalize_datetime(begin) or now - timedelta(days=ACTIVITY_WINDOW_DAYS)
        end = DataValidator.normalize_datetime(end) or now + timedelta(days=1)
        if end < begin:
            raise ValidationError("Activity window ends before it begins")

        if user_id is None:
            user = UserManager(session, self.logger).get_admin()
            if user is None:
                raise ValidationError("No administrator account found")
        else:
            user = session.get(User, user_id)
            if user is None:
                raise ValidationError(f"User not found: {user_id}")

        created = DataValidator.normalize_datetime(user.created)
        total_days = (now - created).days if created else 0

        day = func.date(Memo.created)
        rows = (
            session.query(day.label("day"), func.count(Memo.id).label("total"))
            .filter(Memo.user_id == user.id, Memo.created.between(begin, end))
            .group_by(day)
            .order_by(day.desc())
            .all()
        )
        items: List[Dict[str, Any]] = [
            {"date": str(row.day), "total": row.total} for row in rows
        ]

        return {
            "user_id": user.id,
            "total_memos": session.query(func.count(Memo.id))
            .filter(Memo.user_id == user.id)
            .scalar()
            or 0,
            "total_days": total_days,
            "total_tags": session.query(func.count(Tag.id))
            .filter(Tag.user_id == user.id)
            .scalar()
            or 0,
            "items": items,
        }
