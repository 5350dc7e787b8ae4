#!/usr/bin/env python3
"""
Memo Database Package
---------------------
Storage layer of the memo engine.

- Core database operations (MemoDB)
- Entity managers keeping denormalized counters consistent
- Query analytics (user statistics, memo activity)
- Health monitoring and counter reconciliation
"""

from .manager import MemoDB
from memo.core.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    HealthCheckError,
    ValidationError,
)
from .health_monitor import HealthMonitor
from .query_analytics import QueryAnalytics, StatisticsSnapshot
from .decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)

__all__ = [
    # Main manager
    "MemoDB",
    # Exceptions
    "ConcurrencyConflictError",
    "DatabaseError",
    "HealthCheckError",
    "ValidationError",
    # Core modules
    "HealthMonitor",
    "QueryAnalytics",
    "StatisticsSnapshot",
    # Decorators
    "DatabaseOperation",
    "handle_db_errors",
    "log_database_operation",
]
