#!/usr/bin/env python3
"""
health_monitor.py
-----------------
Consistency checks for the denormalized counters.

Memo.comment_count, Memo.like_count and Tag.memo_count are maintained
incrementally. This module recomputes them from the rows they summarize
and reports (or repairs) any drift. It is the only place that scans;
normal writes never do.

Health Checks Performed:
    1. **Connectivity**: Basic query execution
    2. **Memo counters**: comment_count vs approved comments,
       like_count vs LIKE relations
    3. **Tag counts**: memo_count vs memos whose tag list names the tag

Usage:
    from memo.database.health_monitor import HealthMonitor
    from memo.database.manager import MemoDB

    db = MemoDB(db_path, alembic_dir)
    monitor = HealthMonitor(logger=db.logger)

    with db.session_scope() as session:
        report = monitor.health_check(session)
        if report["status"] != "healthy":
            monitor.reconcile(session, fix=True)

Health Report Structure:
    {
        "status": "healthy" | "warning",
        "issues": [{"severity": "medium", "category": "counters", "message": "..."}],
        "metrics": {
            "memo_counters": {"checked": 12, "drifted": {...}},
            "tag_counts": {"checked_owners": 3, "drifted": {...}},
        },
        "recommendations": ["Run: memodb reconcile --fix"],
    }
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from memo.core.exceptions import HealthCheckError
from memo.core.logging_manager import MemoLogger, safe_logger
from memo.database.decorators import handle_db_errors, log_database_operation
from memo.database.managers import CounterManager, TagManager
from memo.database.models import Memo, Tag, User


class HealthMonitor:
    """
    Counter drift detection and repair.
    """

    def __init__(self, logger: Optional[MemoLogger] = None) -> None:
        """
        Initialize health monitor.

        Args:
            logger: Optional logger for health operations
        """
        self.logger = logger

    def check_memo_counters(self, session: Session, fix: bool = False) -> Dict[str, Any]:
        """
        Compare stored memo counters with the child rows they summarize.

        Returns:
            {"checked": n, "drifted": {memo_id: {column: (stored, actual)}}}
        """
        counters = CounterManager(session, self.logger)
        drifted: Dict[int, Dict[str, tuple]] = {}
        memos = session.query(Memo).order_by(Memo.id).all()

        for memo in memos:
            actual = counters.count_actual(memo.id)
            diff = {
                column: (getattr(memo, column), value)
                for column, value in actual.items()
                if getattr(memo, column) != value
            }
            if diff:
                drifted[memo.id] = diff
                if fix:
                    counters.reconcile_memo(memo.id)

        return {"checked": len(memos), "drifted": drifted}

    def check_tag_counts(self, session: Session, fix: bool = False) -> Dict[str, Any]:
        """
        Compare Tag.memo_count with memo tag lists, per owner.

        Returns:
            {"checked_owners": n, "drifted": {owner_id: {name: (stored, actual)}}}
        """
        tags = TagManager(session, self.logger)
        owner_ids = {
            owner_id
            for (owner_id,) in session.query(Tag.user_id).distinct()
        } | {
            owner_id
            for (owner_id,) in session.query(Memo.user_id).distinct()
        }

        drifted: Dict[int, Dict[str, tuple]] = {}
        for owner_id in sorted(owner_ids):
            drift = tags.reconcile(owner_id, fix=fix)
            if drift:
                drifted[owner_id] = drift

        return {"checked_owners": len(owner_ids), "drifted": drifted}

    @handle_db_errors
    @log_database_operation("health_check")
    def health_check(self, session: Session) -> Dict[str, Any]:
        """
        Run every check without modifying anything.

        Raises:
            HealthCheckError: If the database cannot be queried
        """
        health: Dict[str, Any] = {
            "status": "healthy",
            "issues": [],
            "metrics": {},
            "recommendations": [],
        }

        try:
            session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise HealthCheckError(f"Health check failed: {e}") from e

        health["metrics"]["users"] = session.query(User).count()

        memo_counters = self.check_memo_counters(session)
        health["metrics"]["memo_counters"] = memo_counters
        if memo_counters["drifted"]:
            health["issues"].append(
                {
                    "severity": "medium",
                    "category": "counters",
                    "message": f"{len(memo_counters['drifted'])} memos have drifted counters",
                }
            )

        tag_counts = self.check_tag_counts(session)
        health["metrics"]["tag_counts"] = tag_counts
        if tag_counts["drifted"]:
            drifted_tags = sum(len(d) for d in tag_counts["drifted"].values())
            health["issues"].append(
                {
                    "severity": "medium",
                    "category": "tags",
                    "message": f"{drifted_tags} tags have drifted memo counts",
                }
            )

        if health["issues"]:
            health["status"] = "warning"
            health["recommendations"].append("Run: memodb reconcile --fix")

        return health

    @handle_db_errors
    @log_database_operation("reconcile_counters")
    def reconcile(self, session: Session, fix: bool = True) -> Dict[str, Any]:
        """
        Recompute all counters, writing corrections when fix is True.

        Returns:
            {"memo_counters": {...}, "tag_counts": {...}, "fixed": bool}
        """
        result = {
            "memo_counters": self.check_memo_counters(session, fix=fix),
            "tag_counts": self.check_tag_counts(session, fix=fix),
            "fixed": fix,
        }
        if fix and (result["memo_counters"]["drifted"] or result["tag_counts"]["drifted"]):
            safe_logger(self.logger).log_info(
                "Counters reconciled",
                {
                    "memos": len(result["memo_counters"]["drifted"]),
                    "owners": len(result["tag_counts"]["drifted"]),
                },
            )
        return result
