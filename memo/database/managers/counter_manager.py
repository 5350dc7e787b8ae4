#!/usr/bin/env python3
"""
counter_manager.py
--------------------
Maintains the denormalized counters stored on memos.

Memo.comment_count, Memo.like_count and Memo.view_count are owned by
this manager: every change goes through adjust_memo_counter(), a single
atomic UPDATE that never takes a counter below zero. Concurrent
adjustments on the same memo are therefore linearized by the database.

Callers invoke the on_* hooks only when the triggering row actually
changed (inserted, deleted with rowcount > 0, approved with
rowcount > 0), so retrying a delete or an approval never applies twice.

Key Features:
    - Atomic increment/decrement floored at zero
    - Silent no-op when the parent memo vanished
    - Approved-only comment counting
    - LIKE-only relation counting
    - Explicit reconciliation from child rows

Usage:
    counters = CounterManager(session, logger)
    counters.on_comment_created(comment)
    counters.record_view(memo_id)
    counters.reconcile_memo(memo_id)
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from sqlalchemy import func

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import safe_logger
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.models import (
    Comment,
    CounterField,
    Memo,
    RelationType,
    UserMemoRelation,
)
from .base_manager import BaseManager


class CounterManager(BaseManager):
    """
    Sole writer of Memo counter columns.
    """

    @staticmethod
    def _coerce_field(field: Union[CounterField, str]) -> CounterField:
        try:
            return CounterField(field)
        except ValueError as e:
            raise ValidationError(
                f"Unknown memo counter '{field}'. Expected one of "
                f"{[f.value for f in CounterField]}"
            ) from e

    # -------------------------------------------------------------------------
    # Primitive
    # -------------------------------------------------------------------------

    @handle_db_errors
    def adjust_memo_counter(
        self, memo_id: int, field: Union[CounterField, str], delta: int
    ) -> bool:
        """
        Atomically add delta to one counter of a memo.

        Args:
            memo_id: Target memo
            field: 'comment', 'like' or 'view'
            delta: Amount to add; negative amounts are floored at zero

        Returns:
            True if the counter changed. False when the memo no longer
            exists, when delta is 0, or when a decrement would go below
            zero.

        Raises:
            ValidationError: If field is not a known counter
        """
        counter = self._coerce_field(field)
        changed = self._adjust_column(
            Memo, counter.column_name, delta, Memo.id == memo_id
        )

        if not changed and delta != 0:
            safe_logger(self.logger).log_debug(
                "Counter adjustment skipped",
                {"memo_id": memo_id, "field": counter.value, "delta": delta},
            )
        return bool(changed)

    # -------------------------------------------------------------------------
    # Comment hooks
    # -------------------------------------------------------------------------

    def on_comment_created(self, comment: Comment) -> bool:
        """Count a new comment if it is already approved."""
        if not comment.approved:
            return False
        return self.adjust_memo_counter(comment.memo_id, CounterField.COMMENT, 1)

    def on_comment_approved(self, memo_id: int, approved_count: int = 1) -> bool:
        """Count comments that just moved from pending to approved."""
        if approved_count <= 0:
            return False
        return self.adjust_memo_counter(memo_id, CounterField.COMMENT, approved_count)

    def on_comment_deleted(self, memo_id: int, approved: bool) -> bool:
        """Uncount a deleted comment if it had been counted."""
        if not approved:
            return False
        return self.adjust_memo_counter(memo_id, CounterField.COMMENT, -1)

    # -------------------------------------------------------------------------
    # Relation hooks
    # -------------------------------------------------------------------------

    def on_relation_added(self, relation: UserMemoRelation) -> bool:
        """Count a new relation when its type feeds a counter."""
        counter = RelationType(relation.fav_type).counter_field
        if counter is None:
            return False
        return self.adjust_memo_counter(relation.memo_id, counter, 1)

    def on_relation_removed(
        self, memo_id: int, fav_type: Union[RelationType, str]
    ) -> bool:
        """Uncount a removed relation when its type feeds a counter."""
        counter = RelationType(fav_type).counter_field
        if counter is None:
            return False
        return self.adjust_memo_counter(memo_id, counter, -1)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def record_view(self, memo_id: int) -> bool:
        """Count a view. Every view counts; there is no deduplication."""
        return self.adjust_memo_counter(memo_id, CounterField.VIEW, 1)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def count_actual(self, memo_id: int) -> Dict[str, int]:
        """
        Count the child rows the comment and like counters summarize.

        view_count has no child rows and is not included.
        """
        comments = (
            self.session.query(func.count(Comment.id))
            .filter(Comment.memo_id == memo_id, Comment.approved.is_(True))
            .scalar()
        )
        likes = (
            self.session.query(func.count(UserMemoRelation.id))
            .filter(
                UserMemoRelation.memo_id == memo_id,
                UserMemoRelation.fav_type == RelationType.LIKE,
            )
            .scalar()
        )
        return {"comment_count": comments or 0, "like_count": likes or 0}

    @handle_db_errors
    @log_database_operation("reconcile_memo_counters")
    def reconcile_memo(self, memo_id: int) -> Optional[Dict[str, Any]]:
        """
        Recompute comment_count and like_count from child rows.

        Returns:
            Mapping of corrected column -> (old, new); empty when nothing
            drifted. None if the memo does not exist.
        """
        memo = self.session.get(Memo, memo_id)
        if memo is None:
            return None

        corrections: Dict[str, Any] = {}
        for column, actual in self.count_actual(memo_id).items():
            stored = getattr(memo, column)
            if stored != actual:
                corrections[column] = (stored, actual)
                setattr(memo, column, actual)

        if corrections:
            self.session.flush()
            safe_logger(self.logger).log_warning(
                "Memo counters repaired", {"memo_id": memo_id, "corrections": corrections}
            )
        return corrections
