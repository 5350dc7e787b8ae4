#!/usr/bin/env python3
"""
relation_manager.py
--------------------
Manages likes and favorites (UserMemoRelation rows).

A user holds at most one relation of each type per memo. Adding a
relation that already exists changes nothing, and removing one that is
absent changes nothing, so neither can double-count like_count.

Usage:
    relation_mgr = RelationManager(session, logger)
    relation, created = relation_mgr.add(user_id, memo_id, RelationType.LIKE)
    relation_mgr.remove(user_id, memo_id, "LIKE")
"""
from __future__ import annotations

from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import MemoLogger, safe_logger
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.models import Memo, RelationType, User, UserMemoRelation
from .base_manager import BaseManager
from .counter_manager import CounterManager
from .sys_config_manager import OPEN_LIKE, SysConfigManager


class RelationManager(BaseManager):
    """Adds and removes user-memo relations."""

    def __init__(self, session: Session, logger: Optional[MemoLogger] = None):
        super().__init__(session, logger)
        self.counters = CounterManager(session, logger)
        self.config = SysConfigManager(session, logger)

    @staticmethod
    def _coerce_type(fav_type: Union[RelationType, str]) -> RelationType:
        try:
            return RelationType(fav_type)
        except ValueError as e:
            raise ValidationError(
                f"Invalid relation type '{fav_type}'. "
                f"Must be one of: {RelationType.choices()}"
            ) from e

    @handle_db_errors
    def get(
        self, user_id: int, memo_id: int, fav_type: Union[RelationType, str]
    ) -> Optional[UserMemoRelation]:
        return (
            self.session.query(UserMemoRelation)
            .filter_by(
                user_id=user_id, memo_id=memo_id, fav_type=self._coerce_type(fav_type)
            )
            .first()
        )

    @handle_db_errors
    @log_database_operation("add_relation")
    def add(
        self, user_id: int, memo_id: int, fav_type: Union[RelationType, str]
    ) -> Tuple[UserMemoRelation, bool]:
        """
        Mark a memo for a user.

        Args:
            user_id: Marking user
            memo_id: Marked memo
            fav_type: LIKE or FAVORITE

        Returns:
            (relation, created). created is False when the relation
            already existed; counters are then left untouched.

        Raises:
            ValidationError: If likes are closed, the type is unknown, or
                the user or memo does not exist
        """
        relation_type = self._coerce_type(fav_type)
        if not self.config.get_boolean(OPEN_LIKE):
            raise ValidationError("Likes are closed")
        self._resolve_object(user_id, User)
        if self.session.get(Memo, memo_id) is None:
            raise ValidationError(f"Memo not found: {memo_id}")

        existing = self.get(user_id, memo_id, relation_type)
        if existing is not None:
            return existing, False

        try:
            with self.session.begin_nested():
                relation = UserMemoRelation(
                    user_id=user_id, memo_id=memo_id, fav_type=relation_type
                )
                self.session.add(relation)
        except IntegrityError:
            existing = self.get(user_id, memo_id, relation_type)
            if existing is None:
                raise
            safe_logger(self.logger).log_debug(
                "Relation added concurrently",
                {"user_id": user_id, "memo_id": memo_id, "type": relation_type.value},
            )
            return existing, False

        self.counters.on_relation_added(relation)
        return relation, True

    @handle_db_errors
    @log_database_operation("remove_relation")
    def remove(
        self, user_id: int, memo_id: int, fav_type: Union[RelationType, str]
    ) -> bool:
        """
        Unmark a memo for a user.

        Returns:
            True if a relation was deleted
        """
        relation_type = self._coerce_type(fav_type)
        deleted = (
            self.session.query(UserMemoRelation)
            .filter(
                UserMemoRelation.user_id == user_id,
                UserMemoRelation.memo_id == memo_id,
                UserMemoRelation.fav_type == relation_type,
            )
            .delete(synchronize_session="fetch")
        )
        if deleted:
            self.counters.on_relation_removed(memo_id, relation_type)
        return bool(deleted)

    @handle_db_errors
    def count_by_user(
        self, user_id: int, fav_type: Union[RelationType, str] = RelationType.LIKE
    ) -> int:
        """Number of relations of one type the user holds."""
        return self._count(
            UserMemoRelation, user_id=user_id, fav_type=self._coerce_type(fav_type)
        )

    @handle_db_errors
    def memos_for_user(
        self, user_id: int, fav_type: Union[RelationType, str] = RelationType.LIKE
    ) -> List[Memo]:
        """Memos the user marked, most recent mark first."""
        return (
            self.session.query(Memo)
            .join(UserMemoRelation, UserMemoRelation.memo_id == Memo.id)
            .filter(
                UserMemoRelation.user_id == user_id,
                UserMemoRelation.fav_type == self._coerce_type(fav_type),
            )
            .order_by(UserMemoRelation.created.desc(), UserMemoRelation.id.desc())
            .all()
        )
