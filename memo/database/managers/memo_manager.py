#!/usr/bin/env python3
"""
memo_manager.py
--------------------
Manages the memo lifecycle and its side effects on tags and counters.

Creating, editing and deleting a memo keep Tag.memo_count in step with
the memo's raw tag list through TagManager.sync(). Views go through
CounterManager. All of it runs in the caller's session.

Key Features:
    - Tags parsed from the first line of content when none are given
    - Diff-based tag count maintenance on update
    - Delete that releases tags and removes comments and relations
    - Pinning by priority and archiving
    - Viewer-aware paged listing with tag, search, date and
      liked/commented/mentioned filters

Usage:
    memo_mgr = MemoManager(session, logger)

    memo = memo_mgr.create({"user_id": 1, "content": "#work #idea\\nCall Bob"})
    memo_mgr.update(memo, {"tags": ["idea", "urgent"]})
    memo_mgr.view(memo.id)
    memos, total = memo_mgr.list(viewer_id=2, tag="work", page=1, size=20)
    memo_mgr.delete(memo)
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import MemoLogger
from memo.core.validators import DataValidator
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.models import (
    Comment,
    Memo,
    MemoStatus,
    RelationType,
    User,
    UserMemoRelation,
    Visibility,
    utc_now,
)
from memo.utils.mentions import mention_pattern
from memo.utils.tags import (
    LIKE_ESCAPE,
    escape_like,
    format_tags,
    parse_tags,
    split_tags,
    strip_tags,
    tag_patterns,
)
from .base_manager import BaseManager
from .counter_manager import CounterManager
from .tag_manager import TagManager, TagSyncResult


class MemoManager(BaseManager):
    """
    Memo CRUD with tag and counter side effects.

    Counter columns are never set here directly; they start at zero and
    change through CounterManager only.
    """

    def __init__(self, session: Session, logger: Optional[MemoLogger] = None):
        super().__init__(session, logger)
        self.tags = TagManager(session, logger)
        self.counters = CounterManager(session, logger)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce_visibility(value: Any) -> Visibility:
        try:
            return Visibility(value)
        except ValueError as e:
            raise ValidationError(
                f"Invalid visibility '{value}'. Must be one of: {Visibility.choices()}"
            ) from e

    @staticmethod
    def _resolve_tags(metadata: Dict[str, Any], content: Optional[str]) -> tuple:
        """
        Work out (content, tag names) for a create or update.

        Explicit tags win; otherwise #tags on the first line of content
        are used and removed from it.
        """
        if "tags" in metadata:
            tags = metadata["tags"]
            if isinstance(tags, str):
                tags = split_tags(tags)
            names = [name for name in (tags or []) if name]
            for name in names:
                DataValidator.validate_tag_name(name)
            return content, names

        names = parse_tags(content)
        for name in names:
            DataValidator.validate_tag_name(name)
        if names:
            content = strip_tags(content, names)
        return content, names

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get_by_id(self, memo_id: int) -> Optional[Memo]:
        return self._get_by_id(Memo, memo_id)

    @handle_db_errors
    def get_for_user(
        self, user_id: int, status: Optional[MemoStatus] = MemoStatus.NORMAL
    ) -> List[Memo]:
        """A user's memos, pinned first, then newest first."""
        query = self.session.query(Memo).filter(Memo.user_id == user_id)
        if status is not None:
            query = query.filter(Memo.status == status)
        return query.order_by(Memo.priority.desc(), Memo.created.desc(), Memo.id.desc()).all()

    @handle_db_errors
    def list(
        self,
        viewer_id: Optional[int] = None,
        user_id: Optional[int] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
        visibility: Optional[Union[Visibility, str]] = None,
        begin: Optional[datetime] = None,
        end: Optional[datetime] = None,
        liked: bool = False,
        commented: bool = False,
        mentioned: bool = False,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Memo], int]:
        """
        Page through NORMAL memos as a viewer sees them.

        Signed-out viewers (viewer_id None) see PUBLIC memos only.
        Signed-in viewers see PUBLIC and PROTECT memos plus their own
        PRIVATE ones. The liked, commented and mentioned filters are
        relative to the viewer and ignored without one.

        Args:
            viewer_id: User browsing the list
            user_id: Only memos owned by this user
            tag: Only memos whose tag list holds exactly this name
            search: Substring of the content
            visibility: Only memos with this visibility
            begin: Only memos created at or after this time
            end: Only memos created at or before this time
            liked: Only memos the viewer likes
            commented: Only memos the viewer commented on
            mentioned: Only memos with a comment mentioning the viewer
            page: 1-based page number
            size: Memos per page

        Returns:
            (memos on the page, total number of matching memos). Pinned
            memos come first unless a liked, commented or mentioned
            filter is active; then newest first.
        """
        page = max(DataValidator.normalize_int(page) or 1, 1)
        size = max(DataValidator.normalize_int(size) or 20, 1)

        query = self.session.query(Memo).filter(Memo.status == MemoStatus.NORMAL)

        if viewer_id is None:
            query = query.filter(Memo.visibility == Visibility.PUBLIC)
        else:
            query = query.filter(
                or_(
                    Memo.visibility.in_([Visibility.PUBLIC, Visibility.PROTECT]),
                    and_(Memo.visibility == Visibility.PRIVATE, Memo.user_id == viewer_id),
                )
            )
            if liked:
                query = query.filter(
                    Memo.relations.any(
                        and_(
                            UserMemoRelation.user_id == viewer_id,
                            UserMemoRelation.fav_type == RelationType.LIKE,
                        )
                    )
                )
            if commented:
                query = query.filter(Memo.comments.any(Comment.user_id == viewer_id))
            if mentioned:
                query = query.filter(
                    Memo.comments.any(
                        Comment.mentioned_user_ids.like(mention_pattern(viewer_id))
                    )
                )

        if user_id:
            query = query.filter(Memo.user_id == user_id)
        if tag and tag.strip():
            at_start, after_delimiter = tag_patterns(tag.strip())
            query = query.filter(
                or_(
                    Memo.tags.like(at_start, escape=LIKE_ESCAPE),
                    Memo.tags.like(after_delimiter, escape=LIKE_ESCAPE),
                )
            )
        if search:
            query = query.filter(
                Memo.content.like(f"%{escape_like(search)}%", escape=LIKE_ESCAPE)
            )
        if visibility:
            query = query.filter(Memo.visibility == self._coerce_visibility(visibility))

        begin = DataValidator.normalize_datetime(begin)
        end = DataValidator.normalize_datetime(end)
        if begin is not None:
            query = query.filter(Memo.created >= begin)
        if end is not None:
            query = query.filter(Memo.created <= end)

        total = query.count()

        ordering = [Memo.created.desc(), Memo.id.desc()]
        if not (liked or commented or mentioned):
            ordering.insert(0, Memo.priority.desc())
        memos = query.order_by(*ordering).offset((page - 1) * size).limit(size).all()
        return memos, total

    # -------------------------------------------------------------------------
    # Create / update / delete
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_memo")
    def create(self, metadata: Dict[str, Any]) -> Memo:
        """
        Create a memo and count its tags.

        Args:
            metadata: Dictionary with keys:
                - user_id (required): Owner
                - content: Memo text
                - tags: Explicit tag names (list or raw ``"a,b,"`` string)
                - visibility: PUBLIC (default), PROTECT or PRIVATE
                - enable_comment: Accept comments (default True)
                - source: Client name
                - created: Creation time (defaults to now)

        Returns:
            The new memo

        Raises:
            ValidationError: If the owner is unknown, a tag name is
                invalid, or the memo is empty
        """
        DataValidator.validate_required_fields(metadata, ["user_id"])
        owner = self._resolve_object(metadata["user_id"], User)
        content, tag_names = self._resolve_tags(metadata, metadata.get("content"))
        if not content and not tag_names:
            raise ValidationError("Memo has neither content nor tags")

        enable_comment = DataValidator.normalize_bool(metadata.get("enable_comment"))
        memo = Memo(
            user_id=owner.id,
            content=content,
            tags=format_tags(tag_names),
            visibility=self._coerce_visibility(metadata.get("visibility", Visibility.PUBLIC)),
            status=MemoStatus.NORMAL,
            priority=0,
            enable_comment=True if enable_comment is None else enable_comment,
            source=DataValidator.normalize_string(metadata.get("source")),
        )
        created = DataValidator.normalize_datetime(metadata.get("created"))
        if created is not None:
            memo.created = created
            memo.updated = created

        self.session.add(memo)
        self.session.flush()
        self.tags.sync(memo.id, owner.id, [], tag_names)
        return memo

    @handle_db_errors
    @log_database_operation("update_memo")
    def update(self, memo: Union[Memo, int], metadata: Dict[str, Any]) -> TagSyncResult:
        """
        Edit a memo and re-sync its tags.

        Only keys present in metadata change. Passing content without
        tags re-parses the tags from the new content.

        Returns:
            TagSyncResult of the tag diff
        """
        db_memo = self._resolve_object(memo, Memo)
        old_tags = db_memo.tag_list
        new_tags = old_tags

        if "content" in metadata or "tags" in metadata:
            content = metadata.get("content", db_memo.content)
            content, new_tags = self._resolve_tags(metadata, content)
            db_memo.content = content
            db_memo.tags = format_tags(new_tags)

        if "visibility" in metadata:
            db_memo.visibility = self._coerce_visibility(metadata["visibility"])
        if "enable_comment" in metadata:
            db_memo.enable_comment = bool(
                DataValidator.normalize_bool(metadata["enable_comment"])
            )
        if "source" in metadata:
            db_memo.source = DataValidator.normalize_string(metadata["source"])

        db_memo.updated = utc_now()
        self.session.flush()
        return self.tags.sync(db_memo.id, db_memo.user_id, old_tags, new_tags)

    @handle_db_errors
    @log_database_operation("delete_memo")
    def delete(self, memo: Union[Memo, int]) -> None:
        """
        Delete a memo with its comments and relations, releasing its tags.

        Tag rows stay in place with their count decremented.
        """
        db_memo = self._resolve_object(memo, Memo)
        memo_id = db_memo.id
        self.tags.sync(memo_id, db_memo.user_id, db_memo.tag_list, [])

        self.session.query(Comment).filter(Comment.memo_id == memo_id).delete(
            synchronize_session="fetch"
        )
        self.session.query(UserMemoRelation).filter(
            UserMemoRelation.memo_id == memo_id
        ).delete(synchronize_session="fetch")
        self.session.delete(db_memo)
        self.session.flush()

    # -------------------------------------------------------------------------
    # Reading and ordering
    # -------------------------------------------------------------------------

    @handle_db_errors
    def view(self, memo_id: int) -> Optional[Memo]:
        """Return a memo and count the view; None when it does not exist."""
        memo = self.session.get(Memo, memo_id)
        if memo is None:
            return None
        self.counters.record_view(memo_id)
        return memo

    @handle_db_errors
    @log_database_operation("set_memo_priority")
    def set_priority(self, memo_id: int, pinned: bool) -> Memo:
        """
        Pin or unpin a memo.

        A pinned memo gets a priority above every other memo of its owner,
        so the most recently pinned memo sorts first.
        """
        memo = self._resolve_object(memo_id, Memo)
        if pinned:
            highest = (
                self.session.query(func.max(Memo.priority))
                .filter(Memo.user_id == memo.user_id)
                .scalar()
            )
            memo.priority = (highest or 0) + 1
        else:
            memo.priority = 0
        self.session.flush()
        return memo

    @handle_db_errors
    @log_database_operation("archive_memo")
    def archive(self, memo_id: int, archived: bool = True) -> Memo:
        """Archive or restore a memo. Archiving does not change any count."""
        memo = self._resolve_object(memo_id, Memo)
        memo.status = MemoStatus.ARCHIVED if archived else MemoStatus.NORMAL
        self.session.flush()
        return memo
