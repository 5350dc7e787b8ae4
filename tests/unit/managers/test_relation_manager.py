"""
test_relation_manager.py
------------------------
Unit tests for RelationManager (likes and favorites).
"""
import pytest

from memo.core.exceptions import ValidationError
from memo.database.models import RelationType, UserMemoRelation


class TestAddRelation:
    """Test RelationManager.add()."""

    def test_like_increments(self, relation_manager, memo, bob):
        relation, created = relation_manager.add(bob.id, memo.id, RelationType.LIKE)
        assert created is True
        assert relation.id is not None
        assert memo.like_count == 1

    def test_duplicate_like_counts_once(self, relation_manager, db_session, memo, bob):
        first, _ = relation_manager.add(bob.id, memo.id, "LIKE")
        second, created = relation_manager.add(bob.id, memo.id, "LIKE")

        assert created is False
        assert second.id == first.id
        assert memo.like_count == 1
        assert db_session.query(UserMemoRelation).count() == 1

    def test_favorite_does_not_count(self, relation_manager, memo, bob):
        _, created = relation_manager.add(bob.id, memo.id, RelationType.FAVORITE)
        assert created is True
        assert memo.like_count == 0

    def test_like_and_favorite_coexist(self, relation_manager, memo, bob):
        relation_manager.add(bob.id, memo.id, "LIKE")
        _, created = relation_manager.add(bob.id, memo.id, "FAVORITE")
        assert created is True
        assert memo.like_count == 1

    def test_likes_from_different_users(self, relation_manager, memo, bob, carol):
        relation_manager.add(bob.id, memo.id, "LIKE")
        relation_manager.add(carol.id, memo.id, "LIKE")
        assert memo.like_count == 2

    def test_likes_closed(self, relation_manager, config_manager, memo, bob):
        config_manager.set_value("OPEN_LIKE", "false")
        with pytest.raises(ValidationError, match="closed"):
            relation_manager.add(bob.id, memo.id, "LIKE")
        assert memo.like_count == 0

    def test_unknown_type(self, relation_manager, memo, bob):
        with pytest.raises(ValidationError, match="Invalid relation type"):
            relation_manager.add(bob.id, memo.id, "STAR")

    def test_missing_memo(self, relation_manager, bob):
        with pytest.raises(ValidationError, match="Memo not found"):
            relation_manager.add(bob.id, 999, "LIKE")


class TestRemoveRelation:
    """Test RelationManager.remove()."""

    def test_remove_decrements(self, relation_manager, memo, bob):
        relation_manager.add(bob.id, memo.id, "LIKE")
        assert relation_manager.remove(bob.id, memo.id, "LIKE") is True
        assert memo.like_count == 0

    def test_remove_absent_is_no_op(self, relation_manager, memo, bob, carol):
        relation_manager.add(carol.id, memo.id, "LIKE")
        assert relation_manager.remove(bob.id, memo.id, "LIKE") is False
        assert memo.like_count == 1

    def test_remove_twice(self, relation_manager, memo, bob):
        relation_manager.add(bob.id, memo.id, "LIKE")
        relation_manager.remove(bob.id, memo.id, "LIKE")
        assert relation_manager.remove(bob.id, memo.id, "LIKE") is False
        assert memo.like_count == 0

    def test_remove_favorite_keeps_like_count(self, relation_manager, memo, bob):
        relation_manager.add(bob.id, memo.id, "LIKE")
        relation_manager.add(bob.id, memo.id, "FAVORITE")
        relation_manager.remove(bob.id, memo.id, "FAVORITE")
        assert memo.like_count == 1


class TestRelationQueries:
    def test_count_and_list(self, relation_manager, memo_manager, alice, bob):
        first = memo_manager.create({"user_id": alice.id, "content": "one"})
        second = memo_manager.create({"user_id": alice.id, "content": "two"})
        relation_manager.add(bob.id, first.id, "LIKE")
        relation_manager.add(bob.id, second.id, "LIKE")
        relation_manager.add(bob.id, second.id, "FAVORITE")

        assert relation_manager.count_by_user(bob.id) == 2
        assert relation_manager.count_by_user(bob.id, "FAVORITE") == 1
        assert {m.id for m in relation_manager.memos_for_user(bob.id)} == {first.id, second.id}


class TestConcurrentAdd:
    """add() when another writer inserted the same relation first."""

    def test_lost_insert_race_returns_existing(self, relation_manager, db_session, memo, bob, monkeypatch):
        first, _ = relation_manager.add(bob.id, memo.id, "LIKE")
        real_get = relation_manager.get
        calls = []

        def stale_get(*args):
            calls.append(args)
            return None if len(calls) == 1 else real_get(*args)

        monkeypatch.setattr(relation_manager, "get", stale_get)
        relation, created = relation_manager.add(bob.id, memo.id, "LIKE")

        assert created is False
        assert relation.id == first.id
        assert len(calls) == 2
        assert memo.like_count == 1
        assert db_session.query(UserMemoRelation).count() == 1
