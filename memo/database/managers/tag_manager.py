#!/usr/bin/env python3
"""
tag_manager.py
--------------------
Manages Tag rows and keeps Tag.memo_count in step with memo tag lists.

Tags are scoped to their owner and matched by exact, case-sensitive
name. When a memo's tag list changes, sync() diffs the old and new
lists: added names are created on demand and incremented, removed names
are decremented (never below zero), and names present in both lists are
left alone. Tag rows are never deleted automatically; empty tags stay
available for reuse.

Key Features:
    - Diff-based synchronization of memo tag lists
    - Get-or-create per (owner, name) that survives insert races
    - Atomic memo_count adjustments floored at zero
    - Listing, top tags, rename and removal of empty tags
    - Reconciliation of memo_count from memo tag lists

Usage:
    tag_mgr = TagManager(session, logger)

    result = tag_mgr.sync(memo.id, owner_id, ["work", "idea"], ["idea", "urgent"])
    result.added      # ['urgent']
    result.removed    # ['work']

    popular = tag_mgr.top(owner_id, limit=10)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import safe_logger
from memo.core.validators import DataValidator
from memo.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)
from memo.database.models import Memo, Tag, utc_now
from memo.utils.tags import TAG_DELIMITER, format_tags, split_tags
from .base_manager import BaseManager


@dataclass
class TagSyncResult:
    """
    Outcome of a tag synchronization.

    Attributes:
        added: Names newly attached to the memo (count +1 each)
        removed: Names detached from the memo (count -1 each, floored)
        created: Subset of added names whose Tag row was created
    """

    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def _unique(names: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


class TagManager(BaseManager):
    """
    Sole writer of Tag.memo_count.
    """

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get(self, owner_id: int, name: str) -> Optional[Tag]:
        """Get a tag by owner and exact name."""
        return self.session.query(Tag).filter_by(user_id=owner_id, name=name).first()

    @handle_db_errors
    def get_by_id(self, tag_id: int) -> Optional[Tag]:
        return self._get_by_id(Tag, tag_id)

    @handle_db_errors
    def get_all(self, owner_id: int) -> List[Tag]:
        """All tags of an owner, ordered by name."""
        return (
            self.session.query(Tag)
            .filter(Tag.user_id == owner_id)
            .order_by(Tag.name)
            .all()
        )

    @handle_db_errors
    def top(self, owner_id: int, limit: int = 10) -> List[Tag]:
        """Most used tags of an owner, by memo_count descending."""
        return (
            self.session.query(Tag)
            .filter(Tag.user_id == owner_id)
            .order_by(Tag.memo_count.desc(), Tag.name)
            .limit(limit)
            .all()
        )

    @handle_db_errors
    def get_or_create(self, owner_id: int, name: str) -> Tag:
        """
        Get the owner's tag with this name, creating it with memo_count=0.

        A lost insert race is retried once with fresh reads.

        Raises:
            ValidationError: If the name is invalid
            ConcurrencyConflictError: If the race is lost twice
        """
        DataValidator.validate_tag_name(name)
        return self._retry_on_conflict(
            lambda: self._get_or_create(
                Tag, {"user_id": owner_id, "name": name}, {"memo_count": 0}
            )
        )

    # -------------------------------------------------------------------------
    # Counter primitive
    # -------------------------------------------------------------------------

    @handle_db_errors
    def adjust_memo_count(self, tag_id: int, delta: int) -> bool:
        """
        Atomically add delta to a tag's memo_count, floored at zero.

        Returns:
            True if the row changed; False for a vanished tag or a
            decrement that would go below zero.
        """
        changed = self._adjust_column(Tag, "memo_count", delta, Tag.id == tag_id)
        if not changed and delta != 0:
            safe_logger(self.logger).log_debug(
                "Tag count adjustment skipped", {"tag_id": tag_id, "delta": delta}
            )
        return bool(changed)

    # -------------------------------------------------------------------------
    # Synchronization
    # -------------------------------------------------------------------------

    def sync(
        self,
        memo_id: int,
        owner_id: int,
        old_tags: Sequence[str],
        new_tags: Sequence[str],
    ) -> TagSyncResult:
        """
        Reconcile tag counts after a memo's tag list changed.

        All names are validated before any row is touched.

        Args:
            memo_id: Memo whose tags changed (for logging)
            owner_id: Memo owner; tags are scoped to this user
            old_tags: Tag list before the change (empty for a new memo)
            new_tags: Tag list after the change (empty for a deleted memo)

        Returns:
            TagSyncResult describing the applied diff

        Raises:
            ValidationError: If any name is invalid
        """
        old_names = _unique(old_tags)
        new_names = _unique(new_tags)
        for name in old_names + new_names:
            DataValidator.validate_tag_name(name)

        result = TagSyncResult(
            added=[name for name in new_names if name not in old_names],
            removed=[name for name in old_names if name not in new_names],
        )
        if not result.changed:
            return result

        with DatabaseOperation(
            self.logger,
            "sync_tags",
            {"memo_id": memo_id, "owner_id": owner_id},
        ):
            for name in result.added:
                tag = self.get(owner_id, name)
                if tag is None:
                    tag = self.get_or_create(owner_id, name)
                    result.created.append(name)
                self.adjust_memo_count(tag.id, 1)

            for name in result.removed:
                tag = self.get(owner_id, name)
                if tag is not None:
                    self.adjust_memo_count(tag.id, -1)

        safe_logger(self.logger).log_debug(
            "Tags synchronized",
            {
                "memo_id": memo_id,
                "added": result.added,
                "removed": result.removed,
                "created": result.created,
            },
        )
        return result

    # -------------------------------------------------------------------------
    # Registry maintenance
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("remove_tag")
    def remove(self, owner_id: int, tag_id: int) -> bool:
        """
        Delete a tag, but only if it belongs to owner_id and is unused.

        Returns:
            True if the tag was deleted
        """
        deleted = (
            self.session.query(Tag)
            .filter(Tag.id == tag_id, Tag.user_id == owner_id, Tag.memo_count == 0)
            .delete(synchronize_session="fetch")
        )
        return bool(deleted)

    @handle_db_errors
    @log_database_operation("rename_tag")
    def rename(self, owner_id: int, tag_id: int, new_name: str) -> Tag:
        """
        Rename a tag and rewrite the tag lists of the owner's memos.

        The tag keeps its memo_count: the same memos carry it under the
        new name.

        Raises:
            ValidationError: If the tag is unknown, not owned by owner_id,
                the new name is invalid, or already used by the owner
        """
        DataValidator.validate_tag_name(new_name)
        tag = self._resolve_object(tag_id, Tag)
        if tag.user_id != owner_id:
            raise ValidationError(f"Tag {tag_id} does not belong to user {owner_id}")
        if tag.name == new_name:
            return tag
        if self.get(owner_id, new_name) is not None:
            raise ValidationError(f"Tag '{new_name}' already exists for user {owner_id}")

        old_name = tag.name
        memos = (
            self.session.query(Memo)
            .filter(
                Memo.user_id == owner_id,
                Memo.tags.contains(f"{old_name}{TAG_DELIMITER}", autoescape=True),
            )
            .all()
        )
        for memo in memos:
            names = split_tags(memo.tags)
            if old_name in names:
                memo.tags = format_tags(new_name if n == old_name else n for n in names)
                memo.updated = utc_now()

        tag.name = new_name
        self.session.flush()
        return tag

    @handle_db_errors
    @log_database_operation("reconcile_tags")
    def reconcile(self, owner_id: int, fix: bool = True) -> Dict[str, tuple]:
        """
        Recompute memo_count for all of an owner's tags from memo tag lists.

        Tags referenced by memos but missing from the registry are created.

        Args:
            owner_id: Owner whose tags are checked
            fix: Write corrected counts (False only reports)

        Returns:
            Mapping of tag name -> (stored, actual) for drifted tags
        """
        actual: Dict[str, int] = {}
        for (raw,) in self.session.query(Memo.tags).filter(Memo.user_id == owner_id):
            for name in set(split_tags(raw)):
                actual[name] = actual.get(name, 0) + 1

        drift: Dict[str, tuple] = {}
        for tag in self.get_all(owner_id):
            expected = actual.pop(tag.name, 0)
            if tag.memo_count != expected:
                drift[tag.name] = (tag.memo_count, expected)
                if fix:
                    tag.memo_count = expected

        for name, expected in actual.items():
            drift[name] = (None, expected)
            if fix:
                tag = self.get_or_create(owner_id, name)
                tag.memo_count = expected

        if fix and drift:
            self.session.flush()
        return drift
