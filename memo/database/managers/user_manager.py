#!/usr/bin/env python3
"""
user_manager.py
--------------------
Manages users and the per-user mentions watermark.

The watermark (User.last_clicked_mentioned) separates read mentions
from unread ones. It only moves forward: mark_read() with a timestamp
earlier than the stored one is ignored.

Usage:
    user_mgr = UserManager(session, logger)
    user = user_mgr.create({"username": "alice", "display_name": "Alice"})
    user_mgr.mark_read(user.id)
    user_mgr.get_watermark(user.id)
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from memo.core.exceptions import ValidationError
from memo.core.logging_manager import safe_logger
from memo.core.validators import DataValidator
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.models import User, UserRole, utc_now
from .base_manager import BaseManager


class UserManager(BaseManager):
    """Users and their watermark."""

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_user")
    def create(self, metadata: Dict[str, Any]) -> User:
        """
        Create a user.

        Args:
            metadata: username (required), display_name, role

        Raises:
            ValidationError: If username is missing or already taken
        """
        DataValidator.validate_required_fields(metadata, ["username"])
        username = DataValidator.normalize_string(metadata["username"])
        if username is None:
            raise ValidationError("Required field 'username' missing or empty")
        if self.session.query(User).filter_by(username=username).first():
            raise ValidationError(f"Username already taken: {username}")

        user = User(
            username=username,
            display_name=DataValidator.normalize_string(metadata.get("display_name")),
            role=UserRole(metadata.get("role", UserRole.USER)),
        )
        self.session.add(user)
        self.session.flush()
        return user

    @handle_db_errors
    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_by_id(User, user_id)

    @handle_db_errors
    def get_by_display_name(self, display_name: str) -> Optional[User]:
        return self.session.query(User).filter_by(display_name=display_name).first()

    @handle_db_errors
    def resolve_display_names(self, names: Iterable[str]) -> List[User]:
        """
        Look up users by display name, in the given order.

        Names without a matching user are skipped.
        """
        users: List[User] = []
        for name in names:
            user = self.get_by_display_name(name)
            if user is not None and user not in users:
                users.append(user)
        return users

    @handle_db_errors
    def get_admin(self) -> Optional[User]:
        """First administrator account, used for anonymous dashboards."""
        return (
            self.session.query(User)
            .filter(User.role == UserRole.ADMIN)
            .order_by(User.id)
            .first()
        )

    # -------------------------------------------------------------------------
    # Watermark
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get_watermark(self, user_id: int) -> Optional[datetime]:
        """
        Return the user's mentions watermark as an aware UTC datetime.

        Raises:
            ValidationError: If the user does not exist
        """
        user = self._resolve_object(user_id, User)
        return DataValidator.normalize_datetime(user.last_clicked_mentioned)

    @handle_db_errors
    @log_database_operation("mark_mentions_read")
    def mark_read(self, user_id: int, at: Optional[datetime] = None) -> bool:
        """
        Move the user's watermark forward to `at` (now when omitted).

        Args:
            user_id: User whose mentions were read
            at: Time the mentions were read

        Returns:
            True if the watermark moved; False if `at` is not later than
            the stored watermark

        Raises:
            ValidationError: If the user does not exist
        """
        user = self._resolve_object(user_id, User)
        target = DataValidator.normalize_datetime(at) or utc_now()
        current = DataValidator.normalize_datetime(user.last_clicked_mentioned)

        if current is not None and target <= current:
            if target < current:
                safe_logger(self.logger).log_warning(
                    "Ignoring watermark moving backward",
                    {"user_id": user_id, "current": current, "requested": target},
                )
            return False

        user.last_clicked_mentioned = target
        self.session.flush()
        return True
