#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing shared session utilities for entity managers.

Key Features:
    - Retry on SQLite lock contention with exponential backoff
    - Single retry on concurrency conflicts with fresh reads
    - Savepoint-protected get-or-create that survives insert races
    - Object resolution from instances or ids
    - Atomic column increments as one UPDATE statement

Usage:
    class TagManager(BaseManager):
        def get_or_create(self, owner_id: int, name: str) -> Tag:
            return self._retry_on_conflict(
                lambda: self._get_or_create(Tag, {"user_id": owner_id, "name": name})
            )
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Dict, Optional, Protocol, Type, TypeVar, Union

# --- Third party imports ---
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from memo.core.exceptions import ConcurrencyConflictError, DatabaseError, ValidationError
from memo.core.logging_manager import MemoLogger, safe_logger


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[int]


T = TypeVar("T", bound=HasId)


class BaseManager(ABC):
    """
    Abstract base for entity managers.

    Managers share one session per unit of work, so every write a
    manager makes commits or rolls back together with the triggering
    operation in MemoDB.session_scope().

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[MemoLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Retry helpers
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable[[], Any],
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute a database operation, retrying while SQLite is locked.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of attempts
            retry_delay: Base delay between attempts (exponential backoff)

        Raises:
            OperationalError: If the error is not a lock or attempts ran out
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()
                if ("locked" in error_msg or "busy" in error_msg) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)
                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )
                    time.sleep(wait_time)
                    continue
                raise

        raise DatabaseError("Retry loop completed without success")

    def _retry_on_conflict(self, operation: Callable[[], Any]) -> Any:
        """
        Run an operation, retrying it exactly once on ConcurrencyConflictError.

        The second failure is surfaced to the caller, who may retry the
        whole triggering operation.
        """
        try:
            return operation()
        except ConcurrencyConflictError as e:
            safe_logger(self.logger).log_warning(
                "Concurrency conflict, retrying once", {"error": str(e)}
            )
            return operation()

    # -------------------------------------------------------------------------
    # Lookup helpers
    # -------------------------------------------------------------------------

    def _find_by(self, model_class: Type[T], lookup_fields: Dict[str, Any]) -> Optional[T]:
        """First row matching lookup_fields, None when absent."""
        return self.session.query(model_class).filter_by(**lookup_fields).first()

    def _get_or_create(
        self,
        model_class: Type[T],
        lookup_fields: Dict[str, Any],
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> T:
        """
        Get a row matching lookup_fields or create it.

        The insert runs inside a SAVEPOINT, so losing a race against
        another writer only rolls back the insert, not the caller's
        transaction.

        Args:
            model_class: ORM model class to query or create
            lookup_fields: Column values identifying the row
            extra_fields: Additional column values for a new row only

        Raises:
            ConcurrencyConflictError: If the insert conflicted but the
                winning row cannot be read back
        """
        obj = self._find_by(model_class, lookup_fields)
        if obj is not None:
            return obj

        fields = dict(lookup_fields)
        if extra_fields:
            fields.update(extra_fields)

        try:
            with self.session.begin_nested():
                obj = model_class(**fields)
                self.session.add(obj)
            return obj
        except IntegrityError:
            obj = self._find_by(model_class, lookup_fields)
            if obj is not None:
                return obj
            raise ConcurrencyConflictError(
                f"Could not create {model_class.__name__} {lookup_fields}: "
                "insert conflicted but no row was found"
            )

    def _resolve_object(self, item: Union[T, int], model_class: Type[T]) -> T:
        """
        Resolve an ORM instance or id to a persisted ORM instance.

        Raises:
            ValidationError: If the id does not exist or the instance is
                not persisted
            TypeError: If item is neither an instance nor an int
        """
        if isinstance(item, model_class):
            if item.id is None:
                raise ValidationError(f"{model_class.__name__} instance must be persisted")
            return item
        if isinstance(item, int) and not isinstance(item, bool):
            obj = self.session.get(model_class, item)
            if obj is None:
                raise ValidationError(f"No {model_class.__name__} found with id: {item}")
            return obj
        raise TypeError(
            f"Expected {model_class.__name__} instance or int, got {type(item)}"
        )

    def _get_by_id(self, model_class: Type[T], entity_id: int) -> Optional[T]:
        """Get entity by primary key, None when absent."""
        return self.session.get(model_class, entity_id)

    def _count(self, model_class: Type[T], **filters: Any) -> int:
        """Count rows of a model with optional equality filters."""
        query = self.session.query(model_class)
        if filters:
            query = query.filter_by(**filters)
        return query.count()

    # -------------------------------------------------------------------------
    # Atomic adjustments
    # -------------------------------------------------------------------------

    def _adjust_column(
        self,
        model_class: Type[T],
        column_name: str,
        delta: int,
        *criteria: Any,
    ) -> int:
        """
        Add delta to a counter column in a single UPDATE statement.

        Negative deltas only apply where the counter is at least abs(delta),
        so counters never go below zero. In-memory instances are refreshed
        through synchronize_session="fetch".

        Args:
            model_class: ORM model owning the column
            column_name: Counter column name
            delta: Amount to add (may be negative)
            *criteria: WHERE clauses selecting the row(s)

        Returns:
            Number of rows changed
        """
        if delta == 0:
            return 0

        column = getattr(model_class, column_name)
        conditions = list(criteria)
        if delta < 0:
            conditions.append(column >= -delta)

        statement = (
            update(model_class)
            .where(*conditions)
            .values({column_name: column + delta})
            .execution_options(synchronize_session="fetch")
        )
        result = self._execute_with_retry(lambda: self.session.execute(statement))
        return result.rowcount or 0
