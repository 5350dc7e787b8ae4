"""
test_health_monitor.py
----------------------
Unit tests for HealthMonitor drift detection and repair.
"""
import pytest

from memo.database.health_monitor import HealthMonitor
from memo.database.models import Memo


@pytest.fixture
def monitor():
    return HealthMonitor()


@pytest.fixture
def busy_memo(memo_manager, comment_manager, relation_manager, alice, bob):
    """A tagged memo with one comment and one like."""
    memo = memo_manager.create({"user_id": alice.id, "content": "x", "tags": ["work"]})
    comment_manager.create({"memo_id": memo.id, "user_id": bob.id, "content": "hi"})
    relation_manager.add(bob.id, memo.id, "LIKE")
    return memo


class TestHealthCheck:
    def test_consistent_database_is_healthy(self, monitor, db_session, busy_memo):
        report = monitor.health_check(db_session)

        assert report["status"] == "healthy"
        assert report["issues"] == []
        assert report["metrics"]["memo_counters"]["checked"] == 1
        assert report["metrics"]["users"] == 2

    def test_drift_is_reported_not_fixed(self, monitor, db_session, busy_memo, tag_manager, alice):
        busy_memo.like_count = 7
        tag_manager.get(alice.id, "work").memo_count = 4
        db_session.flush()

        report = monitor.health_check(db_session)

        assert report["status"] == "warning"
        assert {issue["category"] for issue in report["issues"]} == {"counters", "tags"}
        assert report["recommendations"] == ["Run: memodb reconcile --fix"]
        assert busy_memo.like_count == 7


class TestReconcile:
    def test_dry_run_leaves_values(self, monitor, db_session, busy_memo):
        busy_memo.comment_count = 0
        db_session.flush()

        result = monitor.reconcile(db_session, fix=False)

        assert result["fixed"] is False
        assert result["memo_counters"]["drifted"] == {busy_memo.id: {"comment_count": (0, 1)}}
        assert busy_memo.comment_count == 0

    def test_fix_repairs_memo_counters(self, monitor, db_session, busy_memo):
        busy_memo.comment_count = 5
        busy_memo.like_count = 0
        db_session.flush()

        monitor.reconcile(db_session)

        refreshed = db_session.get(Memo, busy_memo.id)
        assert refreshed.comment_count == 1
        assert refreshed.like_count == 1

    def test_fix_repairs_tag_counts(self, monitor, db_session, busy_memo, tag_manager, alice):
        tag_manager.get(alice.id, "work").memo_count = 0
        db_session.flush()

        result = monitor.reconcile(db_session)

        assert result["tag_counts"]["drifted"] == {alice.id: {"work": (0, 1)}}
        assert tag_manager.get(alice.id, "work").memo_count == 1
        assert monitor.reconcile(db_session, fix=False)["tag_counts"]["drifted"] == {}

    def test_pending_comments_are_not_drift(
        self, monitor, db_session, memo, comment_manager, config_manager
    ):
        config_manager.set_value("ANONYMOUS_COMMENT", "true")
        comment_manager.create({"memo_id": memo.id, "content": "pending", "username": "guest"})

        result = monitor.reconcile(db_session, fix=False)
        assert result["memo_counters"]["drifted"] == {}
