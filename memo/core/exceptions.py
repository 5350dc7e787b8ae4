#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the memo engine.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all storage-related errors
    │   ├── ConcurrencyConflictError - Lost update that survived a retry
    │   └── HealthCheckError - Counter reconciliation failures
    └── ValidationError - Input rejected before any mutation

Vanished parent rows during a counter adjustment are not exceptions at
all: the adjustment is a logged no-op.

Usage:
    from memo.core.exceptions import DatabaseError, ValidationError

    try:
        db.comments.create({...})
    except ValidationError as e:
        logger.error(f"Invalid data: {e}")
    except DatabaseError as e:
        logger.error(f"Database operation failed: {e}")
"""


class DatabaseError(Exception):
    """
    Base exception for database-related errors.

    Raised when storage operations fail due to connection issues,
    query errors, integrity violations, or other database problems.
    These always propagate to the caller.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Data integrity violation: duplicate tag")
    """

    pass


class ConcurrencyConflictError(DatabaseError):
    """
    Exception for lost updates detected on counter or tag adjustments.

    Raised when a concurrent writer keeps winning a race (for example
    a tag row that can neither be inserted nor read back). Managers
    retry once with fresh reads before raising this; callers may retry
    the whole triggering operation.

    Examples:
        >>> raise ConcurrencyConflictError("Tag 'work' for user 3 kept conflicting")
    """

    pass


class HealthCheckError(DatabaseError):
    """
    Exception for counter reconciliation failures.

    Examples:
        >>> raise HealthCheckError("Could not repair like_count on memo 12")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks, always before any
    row is written:
    - Malformed mention ids
    - Invalid tag names
    - Unknown counter fields
    - Policy refusals (comments or likes disabled)

    Examples:
        >>> raise ValidationError("Mention id must be a positive integer: 'abc'")
        >>> raise ValidationError("Tag name cannot contain whitespace: 'a b'")
    """

    pass
