"""
test_counter_manager.py
-----------------------
Unit tests for CounterManager.

Covers atomic adjustments, the zero floor, vanished memos and
reconciliation from child rows.
"""
import pytest

from memo.core.exceptions import ValidationError
from memo.database.models import Comment, CounterField, Memo, RelationType, UserMemoRelation


class TestAdjustMemoCounter:
    """Test CounterManager.adjust_memo_counter()."""

    def test_increment(self, counter_manager, memo):
        assert counter_manager.adjust_memo_counter(memo.id, CounterField.VIEW, 1) is True
        assert memo.view_count == 1

    def test_accepts_string_field(self, counter_manager, memo):
        counter_manager.adjust_memo_counter(memo.id, "like", 2)
        assert memo.like_count == 2

    def test_decrement_never_below_zero(self, counter_manager, memo):
        counter_manager.adjust_memo_counter(memo.id, "comment", 1)
        assert counter_manager.adjust_memo_counter(memo.id, "comment", -1) is True
        assert counter_manager.adjust_memo_counter(memo.id, "comment", -1) is False
        assert memo.comment_count == 0

    def test_missing_memo_is_silent_no_op(self, counter_manager):
        assert counter_manager.adjust_memo_counter(9999, "view", 1) is False

    def test_zero_delta(self, counter_manager, memo):
        assert counter_manager.adjust_memo_counter(memo.id, "view", 0) is False

    def test_unknown_field_rejected(self, counter_manager, memo):
        with pytest.raises(ValidationError, match="Unknown memo counter"):
            counter_manager.adjust_memo_counter(memo.id, "share", 1)


class TestHooks:
    """Test the on_* hooks."""

    def test_pending_comment_not_counted(self, counter_manager, memo):
        comment = Comment(memo_id=memo.id, content="x", approved=False)
        assert counter_manager.on_comment_created(comment) is False
        assert memo.comment_count == 0

    def test_approval_counts(self, counter_manager, memo):
        assert counter_manager.on_comment_approved(memo.id, 3) is True
        assert memo.comment_count == 3
        assert counter_manager.on_comment_approved(memo.id, 0) is False

    def test_favorite_does_not_touch_like_count(self, counter_manager, memo):
        relation = UserMemoRelation(memo_id=memo.id, user_id=1, fav_type=RelationType.FAVORITE)
        assert counter_manager.on_relation_added(relation) is False
        assert memo.like_count == 0

    def test_relation_removed_by_type(self, counter_manager, memo):
        counter_manager.adjust_memo_counter(memo.id, "like", 1)
        assert counter_manager.on_relation_removed(memo.id, "FAVORITE") is False
        assert counter_manager.on_relation_removed(memo.id, RelationType.LIKE) is True
        assert memo.like_count == 0

    def test_record_view(self, counter_manager, memo):
        counter_manager.record_view(memo.id)
        counter_manager.record_view(memo.id)
        assert memo.view_count == 2


class TestReconcileMemo:
    """Test CounterManager.reconcile_memo()."""

    def test_repairs_drift(self, counter_manager, db_session, memo, bob):
        db_session.add_all(
            [
                Comment(memo_id=memo.id, content="a", user_id=bob.id, approved=True),
                Comment(memo_id=memo.id, content="b", user_id=bob.id, approved=False),
                UserMemoRelation(memo_id=memo.id, user_id=bob.id, fav_type=RelationType.LIKE),
            ]
        )
        db_session.flush()
        memo.like_count = 5
        db_session.flush()

        corrections = counter_manager.reconcile_memo(memo.id)

        assert corrections == {"comment_count": (0, 1), "like_count": (5, 1)}
        refreshed = db_session.get(Memo, memo.id)
        assert refreshed.comment_count == 1
        assert refreshed.like_count == 1

    def test_nothing_to_fix(self, counter_manager, memo):
        assert counter_manager.reconcile_memo(memo.id) == {}

    def test_missing_memo(self, counter_manager):
        assert counter_manager.reconcile_memo(4242) is None
