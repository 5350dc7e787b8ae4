#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators and context managers for database operations.

- log_database_operation: time a manager method and log the outcome
- handle_db_errors: translate SQLAlchemy errors into DatabaseError
- DatabaseOperation: the same logging and translation as a with-block
"""
from __future__ import annotations

from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from memo.core.exceptions import DatabaseError
from memo.core.logging_manager import MemoLogger, safe_logger


def _elapsed(start_time: datetime) -> float:
    return (datetime.now() - start_time).total_seconds()


def log_database_operation(operation_name: str):
    """
    Decorator to log a manager method with timing and context.

    The decorated object is expected to carry a ``logger`` attribute
    (None is allowed).

    Args:
        operation_name: Name of the operation being logged
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            logger = safe_logger(getattr(self, "logger", None))
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"

            logger.log_debug(
                f"Starting {operation_name}",
                {
                    "operation_id": operation_id,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": _elapsed(start_time),
                    },
                )
                raise

            logger.log_operation(
                f"{operation_name}_completed",
                {
                    "operation_id": operation_id,
                    "duration_seconds": _elapsed(start_time),
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator converting SQLAlchemy failures into DatabaseError.

    Any other exception (ValidationError included) propagates unchanged.
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Data integrity violation: {e}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation failed: {e}") from e

    return wrapper


class DatabaseOperation:
    """
    Context manager giving a block the logging and error translation of
    log_database_operation + handle_db_errors.

    Usage:
        with DatabaseOperation(self.logger, "sync_tags", {"memo_id": memo_id}):
            ...
    """

    def __init__(
        self,
        logger: Optional[MemoLogger],
        operation_name: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.context = context or {}
        self.start_time: Optional[datetime] = None

    def __enter__(self) -> "DatabaseOperation":
        self.start_time = datetime.now()
        self.logger.log_debug(f"Starting {self.operation_name}", self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration = _elapsed(self.start_time)

        if exc_val is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {**self.context, "duration_seconds": duration, "success": True},
            )
            return False

        self.logger.log_error(
            exc_val,
            {**self.context, "operation": self.operation_name, "duration_seconds": duration},
        )
        if isinstance(exc_val, IntegrityError):
            raise DatabaseError(f"Data integrity violation: {exc_val}") from exc_val
        if isinstance(exc_val, SQLAlchemyError):
            raise DatabaseError(f"Database operation failed: {exc_val}") from exc_val
        return False
