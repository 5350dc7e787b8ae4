"""
test_query_analytics.py
-----------------------
Unit tests for QueryAnalytics: user statistics and memo activity.
"""
from datetime import timedelta

import pytest

from memo.core.exceptions import ValidationError
from memo.database.query_analytics import QueryAnalytics


@pytest.fixture
def analytics():
    return QueryAnalytics()


class TestUserStatistics:
    """Test QueryAnalytics.get_user_statistics()."""

    def test_empty_user(self, analytics, db_session, alice):
        snapshot = analytics.get_user_statistics(db_session, alice.id)

        assert snapshot.total_memos == 0
        assert snapshot.liked_count == 0
        assert snapshot.mentioned_count == 0
        assert snapshot.commented_count == 0
        assert snapshot.unread_mentioned_count == 0
        assert snapshot.watermark is None

    def test_unknown_user(self, analytics, db_session):
        with pytest.raises(ValidationError):
            analytics.get_user_statistics(db_session, 999)

    def test_mentions_then_mark_read(
        self, analytics, db_session, comment_manager, user_manager, memo, alice, bob, carol, later
    ):
        """Two comments mention Bob, one does not; reading clears the unread count."""
        comment_manager.create(
            {"memo_id": memo.id, "user_id": alice.id, "content": "hi @Bob", "created": later(0)}
        )
        comment_manager.create(
            {"memo_id": memo.id, "user_id": carol.id, "content": "@Bob look", "created": later(5)}
        )
        comment_manager.create(
            {"memo_id": memo.id, "user_id": carol.id, "content": "no one", "created": later(6)}
        )

        snapshot = analytics.get_user_statistics(db_session, bob.id)
        assert snapshot.mentioned_count == 2
        assert snapshot.unread_mentioned_count == 2

        user_manager.mark_read(bob.id, later(10))
        snapshot = analytics.get_user_statistics(db_session, bob.id)
        assert snapshot.mentioned_count == 2
        assert snapshot.unread_mentioned_count == 0

    def test_only_mentions_after_watermark_are_unread(
        self, analytics, db_session, comment_manager, user_manager, memo, alice, bob, later
    ):
        user_manager.mark_read(bob.id, later(10))
        comment_manager.create(
            {"memo_id": memo.id, "user_id": alice.id, "content": "@Bob old", "created": later(5)}
        )
        comment_manager.create(
            {"memo_id": memo.id, "user_id": alice.id, "content": "@Bob new", "created": later(15)}
        )

        snapshot = analytics.get_user_statistics(db_session, bob.id)
        assert snapshot.mentioned_count == 2
        assert snapshot.unread_mentioned_count == 1
        assert snapshot.watermark == later(10)

    def test_mention_at_watermark_is_read(
        self, analytics, db_session, comment_manager, user_manager, memo, alice, bob, later
    ):
        user_manager.mark_read(bob.id, later(10))
        comment_manager.create(
            {"memo_id": memo.id, "user_id": alice.id, "content": "@Bob tie", "created": later(10)}
        )
        assert analytics.get_user_statistics(db_session, bob.id).unread_mentioned_count == 0

    def test_full_snapshot(
        self, analytics, db_session, memo_manager, comment_manager, relation_manager, alice, bob
    ):
        first = memo_manager.create({"user_id": alice.id, "content": "one"})
        second = memo_manager.create({"user_id": alice.id, "content": "two"})
        memo_manager.archive(second.id)
        relation_manager.add(alice.id, first.id, "LIKE")
        relation_manager.add(alice.id, first.id, "FAVORITE")
        comment_manager.create({"memo_id": first.id, "user_id": alice.id, "content": "mine"})
        comment_manager.create({"memo_id": first.id, "user_id": bob.id, "content": "@Alice hey"})

        snapshot = analytics.get_user_statistics(db_session, alice.id)

        assert snapshot.total_memos == 2
        assert snapshot.liked_count == 1
        assert snapshot.commented_count == 1
        assert snapshot.mentioned_count == 1
        assert snapshot.unread_mentioned_count == 1

        data = snapshot.as_dict()
        assert data["user_id"] == alice.id
        assert data["watermark"] is None

    def test_mentions_count_across_memos(
        self, analytics, db_session, memo_manager, comment_manager, alice, bob, carol
    ):
        other = memo_manager.create({"user_id": carol.id, "content": "carol's memo"})
        own = memo_manager.create({"user_id": alice.id, "content": "alice's memo"})
        comment_manager.create({"memo_id": other.id, "user_id": bob.id, "content": "@Alice a"})
        comment_manager.create({"memo_id": own.id, "user_id": bob.id, "content": "@Alice b"})

        assert analytics.get_user_statistics(db_session, alice.id).mentioned_count == 2


class TestMemoActivity:
    """Test QueryAnalytics.get_memo_activity()."""

    def test_per_day_counts(self, analytics, db_session, memo_manager, tag_manager, alice, base_time):
        for offset in (0, 0, 1):
            memo_manager.create(
                {
                    "user_id": alice.id,
                    "content": "x",
                    "tags": ["daily"],
                    "created": base_time + timedelta(days=offset),
                }
            )

        report = analytics.get_memo_activity(
            db_session,
            alice.id,
            begin=base_time - timedelta(days=1),
            end=base_time + timedelta(days=2),
        )

        assert report["total_memos"] == 3
        assert report["total_tags"] == 1
        assert report["items"] == [
            {"date": "2024-01-16", "total": 1},
            {"date": "2024-01-15", "total": 2},
        ]

    def test_window_excludes_outside(self, analytics, db_session, memo_manager, alice, base_time):
        memo_manager.create({"user_id": alice.id, "content": "old", "created": base_time})
        report = analytics.get_memo_activity(
            db_session,
            alice.id,
            begin=base_time + timedelta(days=1),
            end=base_time + timedelta(days=2),
        )
        assert report["total_memos"] == 1
        assert report["items"] == []

    def test_default_window_includes_today(self, analytics, db_session, memo_manager, alice):
        memo_manager.create({"user_id": alice.id, "content": "now"})
        report = analytics.get_memo_activity(db_session, alice.id)
        assert sum(item["total"] for item in report["items"]) == 1
        assert report["total_days"] == 0

    def test_end_before_begin(self, analytics, db_session, alice, base_time):
        with pytest.raises(ValidationError):
            analytics.get_memo_activity(db_session, alice.id, begin=base_time, end=base_time - timedelta(days=1))

    def test_defaults_to_admin(self, analytics, db_session, user_manager, alice):
        with pytest.raises(ValidationError, match="administrator"):
            analytics.get_memo_activity(db_session)

        admin = user_manager.create({"username": "root", "role": "ADMIN"})
        assert analytics.get_memo_activity(db_session)["user_id"] == admin.id
