#!/usr/bin/env python3
"""
comment_manager.py
--------------------
Manages comments: creation with mentions, moderation and deletion.

Every write keeps Memo.comment_count correct through CounterManager in
the same session, so the comment row and the counter commit together.

Mentions are stored on the comment in the encoded ``#<id>,`` form
produced by memo.utils.mentions. They come either from explicit ids in
the metadata or from @display-name tokens in the content that resolve
to existing users.

Usage:
    comment_mgr = CommentManager(session, logger)
    comment = comment_mgr.create({"memo_id": 3, "user_id": 7, "content": "hi @bob "})
    comment_mgr.approve(comment.id)
    comment_mgr.delete(comment.id)
    comment_mgr.count_mentioning(user_id=7, since=watermark)
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import MemoLogger, safe_logger
from memo.core.validators import DataValidator
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.models import ANONYMOUS_USER_ID, Comment, Memo, User
from memo.utils.mentions import encode_mentions, mention_pattern, parse_mention_names
from .base_manager import BaseManager
from .counter_manager import CounterManager
from .sys_config_manager import (
    ANONYMOUS_COMMENT,
    COMMENT_APPROVED,
    OPEN_COMMENT,
    SysConfigManager,
)
from .user_manager import UserManager


class CommentManager(BaseManager):
    """Comment lifecycle and mention queries."""

    def __init__(self, session: Session, logger: Optional[MemoLogger] = None):
        super().__init__(session, logger)
        self.counters = CounterManager(session, logger)
        self.users = UserManager(session, logger)
        self.config = SysConfigManager(session, logger)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def _mentioned_users(self, content: str) -> List[User]:
        return self.users.resolve_display_names(parse_mention_names(content))

    @handle_db_errors
    @log_database_operation("create_comment")
    def create(self, metadata: Dict[str, Any]) -> Comment:
        """
        Create a comment and count it on its memo when approved.

        Args:
            metadata: Dictionary with keys:
                - memo_id (required)
                - content (required)
                - user_id: Author; omitted for anonymous comments
                - username, email, link: Anonymous author details
                - mentioned_user_ids: Explicit mentioned ids; when absent,
                  @names in the content are resolved to users
                - created: Creation time (defaults to now)

        Returns:
            The new comment

        Raises:
            ValidationError: If the memo is missing, comments are closed,
                anonymous comments are off, the author is unknown or not
                an integer, or a mention id is malformed. Nothing is written in that case.
        """
        DataValidator.validate_required_fields(metadata, ["memo_id", "content"])
        memo = self.session.get(Memo, metadata["memo_id"])
        if memo is None:
            raise ValidationError(f"Memo not found: {metadata['memo_id']}")
        if not self.config.get_boolean(OPEN_COMMENT) or not memo.enable_comment:
            raise ValidationError(f"Comments are closed on memo {memo.id}")

        content = metadata["content"]
        raw_user_id = metadata.get("user_id")
        user_id = DataValidator.normalize_int(raw_user_id)
        if user_id is None and raw_user_id not in (None, ""):
            raise ValidationError(f"Invalid user_id: {raw_user_id!r}")

        if user_id is not None and user_id > 0:
            author = self._resolve_object(user_id, User)
            user_name = author.name
            approved = True
        else:
            if not self.config.get_boolean(ANONYMOUS_COMMENT):
                raise ValidationError("Anonymous comments are not allowed")
            user_id = ANONYMOUS_USER_ID
            user_name = DataValidator.normalize_string(metadata.get("username")) or ""
            approved = not self.config.get_boolean(COMMENT_APPROVED)

        if "mentioned_user_ids" in metadata:
            mentioned_ids = list(metadata["mentioned_user_ids"] or [])
            encoded = encode_mentions(mentioned_ids)
            mentioned_names = None
        else:
            mentioned = self._mentioned_users(content)
            encoded = encode_mentions(user.id for user in mentioned)
            mentioned_names = ",".join(user.name for user in mentioned) or None

        comment = Comment(
            memo_id=memo.id,
            content=content,
            user_id=user_id,
            user_name=user_name,
            email=None if user_id > 0 else metadata.get("email"),
            link=None if user_id > 0 else metadata.get("link"),
            mentioned=mentioned_names,
            mentioned_user_ids=encoded,
            approved=approved,
        )
        created = DataValidator.normalize_datetime(metadata.get("created"))
        if created is not None:
            comment.created = created
            comment.updated = created

        self.session.add(comment)
        self.session.flush()
        self.counters.on_comment_created(comment)
        return comment

    # -------------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("approve_comment")
    def approve(self, comment_id: int) -> bool:
        """
        Approve one pending comment.

        Returns:
            True if the comment moved from pending to approved; False if
            it was already approved or does not exist
        """
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            return False
        changed = (
            self.session.query(Comment)
            .filter(Comment.id == comment_id, Comment.approved.is_(False))
            .update({Comment.approved: True}, synchronize_session="fetch")
        )
        if changed:
            self.counters.on_comment_approved(comment.memo_id, changed)
        return bool(changed)

    @handle_db_errors
    @log_database_operation("approve_memo_comments")
    def approve_memo(self, memo_id: int) -> int:
        """
        Approve every pending comment of a memo.

        Returns:
            Number of comments approved
        """
        changed = (
            self.session.query(Comment)
            .filter(Comment.memo_id == memo_id, Comment.approved.is_(False))
            .update({Comment.approved: True}, synchronize_session="fetch")
        )
        if changed:
            self.counters.on_comment_approved(memo_id, changed)
        return changed

    # -------------------------------------------------------------------------
    # Deletion
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("delete_comment")
    def delete(self, comment_id: int) -> bool:
        """
        Delete a comment and uncount it if it was approved.

        Deleting an already deleted comment is a no-op.

        Returns:
            True if a row was deleted
        """
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            safe_logger(self.logger).log_debug(
                "Comment already deleted", {"comment_id": comment_id}
            )
            return False
        memo_id, approved = comment.memo_id, comment.approved

        deleted = (
            self.session.query(Comment)
            .filter(Comment.id == comment_id)
            .delete(synchronize_session="fetch")
        )
        if deleted:
            self.counters.on_comment_deleted(memo_id, approved)
        return bool(deleted)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get_by_id(self, comment_id: int) -> Optional[Comment]:
        return self._get_by_id(Comment, comment_id)

    @handle_db_errors
    def get_for_memo(self, memo_id: int, include_pending: bool = False) -> List[Comment]:
        """Comments of a memo in creation order."""
        query = self.session.query(Comment).filter(Comment.memo_id == memo_id)
        if not include_pending:
            query = query.filter(Comment.approved.is_(True))
        return query.order_by(Comment.created, Comment.id).all()

    @handle_db_errors
    def count_mentioning(self, user_id: int, since: Optional[datetime] = None) -> int:
        """
        Count comments mentioning a user, across all memos.

        Args:
            user_id: Mentioned user
            since: When given, only comments created strictly after it

        Returns:
            Number of matching comments
        """
        query = self.session.query(func.count(Comment.id)).filter(
            Comment.mentioned_user_ids.like(mention_pattern(user_id))
        )
        since = DataValidator.normalize_datetime(since)
        if since is not None:
            query = query.filter(Comment.created > since)
        return query.scalar() or 0

    @handle_db_errors
    def count_by_author(self, user_id: int) -> int:
        """Count comments written by a user (by id, not display name)."""
        return (
            self.session.query(func.count(Comment.id))
            .filter(Comment.user_id == user_id)
            .scalar()
            or 0
        )
