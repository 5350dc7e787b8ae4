"""
test_memo_manager.py
--------------------
Unit tests for MemoManager: lifecycle and its tag/counter side effects.
"""
import pytest

from memo.core.exceptions import ValidationError
from memo.database.models import Comment, Memo, MemoStatus, UserMemoRelation, Visibility


class TestCreateMemo:
    """Test MemoManager.create()."""

    def test_tags_parsed_from_first_line(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "#work #idea\nCall Bob"})

        assert memo.content == "Call Bob"
        assert memo.tags == "#work,#idea,"
        assert memo.tag_list == ["#work", "#idea"]
        assert tag_manager.get(alice.id, "#work").memo_count == 1

    def test_prefix_tags_leave_content_intact(self, memo_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "#work #workshop call Bob\nbody"})

        assert memo.content == "call Bob\nbody"
        assert memo.tags == "#work,#workshop,"

    def test_explicit_tags(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "#not-a-tag here", "tags": ["work"]})

        assert memo.content == "#not-a-tag here"
        assert memo.tags == "work,"
        assert tag_manager.get(alice.id, "#not-a-tag") is None

    def test_counters_start_at_zero(self, memo_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "x"})
        assert (memo.comment_count, memo.like_count, memo.view_count) == (0, 0, 0)
        assert memo.visibility == Visibility.PUBLIC
        assert memo.status == MemoStatus.NORMAL

    def test_unknown_owner(self, memo_manager):
        with pytest.raises(ValidationError):
            memo_manager.create({"user_id": 999, "content": "x"})

    def test_empty_memo(self, memo_manager, alice):
        with pytest.raises(ValidationError):
            memo_manager.create({"user_id": alice.id, "content": ""})

    def test_invalid_visibility(self, memo_manager, alice):
        with pytest.raises(ValidationError, match="visibility"):
            memo_manager.create({"user_id": alice.id, "content": "x", "visibility": "SECRET"})


class TestUpdateMemo:
    """Test MemoManager.update()."""

    def test_tag_diff(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "x", "tags": ["work", "idea"]})

        result = memo_manager.update(memo, {"tags": ["idea", "urgent"]})

        assert result.added == ["urgent"]
        assert result.removed == ["work"]
        assert memo.tags == "idea,urgent,"
        assert tag_manager.get(alice.id, "work").memo_count == 0
        assert tag_manager.get(alice.id, "idea").memo_count == 1
        assert tag_manager.get(alice.id, "urgent").memo_count == 1

    def test_content_reparses_tags(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "#a\nbody"})
        memo_manager.update(memo.id, {"content": "#b\nnew body"})

        assert memo.content == "new body"
        assert memo.tag_list == ["#b"]
        assert tag_manager.get(alice.id, "#a").memo_count == 0
        assert tag_manager.get(alice.id, "#b").memo_count == 1

    def test_other_fields_leave_tags_alone(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "x", "tags": ["work"]})
        result = memo_manager.update(memo, {"visibility": "PRIVATE"})

        assert result.changed is False
        assert memo.visibility == Visibility.PRIVATE
        assert tag_manager.get(alice.id, "work").memo_count == 1


class TestDeleteMemo:
    """Test MemoManager.delete()."""

    def test_delete_releases_tags_and_children(
        self, memo_manager, tag_manager, comment_manager, relation_manager, db_session, alice, bob
    ):
        memo = memo_manager.create({"user_id": alice.id, "content": "x", "tags": ["work"]})
        comment_manager.create({"memo_id": memo.id, "user_id": bob.id, "content": "hi"})
        relation_manager.add(bob.id, memo.id, "LIKE")
        memo_id = memo.id

        memo_manager.delete(memo)

        assert db_session.get(Memo, memo_id) is None
        assert db_session.query(Comment).filter_by(memo_id=memo_id).count() == 0
        assert db_session.query(UserMemoRelation).filter_by(memo_id=memo_id).count() == 0
        tag = tag_manager.get(alice.id, "work")
        assert tag is not None
        assert tag.memo_count == 0

    def test_counter_adjustment_after_delete_is_no_op(self, memo_manager, counter_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "x"})
        memo_id = memo.id
        memo_manager.delete(memo_id)
        assert counter_manager.record_view(memo_id) is False


class TestViewPinArchive:
    """Test view(), set_priority() and archive()."""

    def test_view_counts(self, memo_manager, memo):
        memo_manager.view(memo.id)
        memo_manager.view(memo.id)
        assert memo.view_count == 2

    def test_view_missing(self, memo_manager):
        assert memo_manager.view(999) is None

    def test_pin_orders_latest_first(self, memo_manager, alice):
        first = memo_manager.create({"user_id": alice.id, "content": "first"})
        second = memo_manager.create({"user_id": alice.id, "content": "second"})

        memo_manager.set_priority(first.id, True)
        memo_manager.set_priority(second.id, True)

        assert second.priority > first.priority > 0
        assert memo_manager.get_for_user(alice.id)[0].id == second.id

        memo_manager.set_priority(second.id, False)
        assert second.priority == 0
        assert not second.is_pinned

    def test_archive_keeps_counts(self, memo_manager, tag_manager, alice):
        memo = memo_manager.create({"user_id": alice.id, "content": "x", "tags": ["work"]})
        memo_manager.archive(memo.id)

        assert memo.status == MemoStatus.ARCHIVED
        assert tag_manager.get(alice.id, "work").memo_count == 1
        assert memo_manager.get_for_user(alice.id) == []
        assert len(memo_manager.get_for_user(alice.id, status=None)) == 1

        memo_manager.archive(memo.id, archived=False)
        assert memo.status == MemoStatus.NORMAL


class TestListMemos:
    """Test MemoManager.list()."""

    @pytest.fixture
    def feed(self, memo_manager, alice, bob):
        """One memo per visibility for alice, a public one for bob."""
        return {
            "public": memo_manager.create({"user_id": alice.id, "content": "pub", "tags": ["work"]}),
            "protect": memo_manager.create({"user_id": alice.id, "content": "pro", "visibility": "PROTECT"}),
            "private": memo_manager.create({"user_id": alice.id, "content": "pri", "visibility": "PRIVATE"}),
            "bob": memo_manager.create({"user_id": bob.id, "content": "bob's", "tags": ["homework"]}),
        }

    @staticmethod
    def _ids(result):
        memos, _ = result
        return {memo.id for memo in memos}

    def test_signed_out_sees_public_only(self, memo_manager, feed):
        assert self._ids(memo_manager.list()) == {feed["public"].id, feed["bob"].id}

    def test_private_only_for_owner(self, memo_manager, feed, alice, bob):
        assert feed["private"].id in self._ids(memo_manager.list(viewer_id=alice.id))

        seen_by_bob = self._ids(memo_manager.list(viewer_id=bob.id))
        assert feed["protect"].id in seen_by_bob
        assert feed["private"].id not in seen_by_bob

    def test_archived_hidden(self, memo_manager, feed, alice):
        memo_manager.archive(feed["public"].id)
        assert feed["public"].id not in self._ids(memo_manager.list(viewer_id=alice.id))

    def test_tag_matches_whole_name(self, memo_manager, feed, alice):
        assert self._ids(memo_manager.list(viewer_id=alice.id, tag="work")) == {feed["public"].id}
        assert self._ids(memo_manager.list(viewer_id=alice.id, tag="homework")) == {feed["bob"].id}

    def test_owner_and_search_filters(self, memo_manager, feed, alice, bob):
        assert self._ids(memo_manager.list(viewer_id=alice.id, user_id=bob.id)) == {feed["bob"].id}
        assert self._ids(memo_manager.list(viewer_id=alice.id, search="pr")) == {
            feed["protect"].id,
            feed["private"].id,
        }

    def test_search_treats_wildcards_literally(self, memo_manager, feed, alice):
        assert self._ids(memo_manager.list(viewer_id=alice.id, search="%")) == set()

    def test_visibility_filter(self, memo_manager, feed, alice):
        memos, total = memo_manager.list(viewer_id=alice.id, visibility="PROTECT")
        assert total == 1
        assert memos[0].id == feed["protect"].id

    def test_liked_filter(self, memo_manager, relation_manager, feed, alice, bob):
        relation_manager.add(bob.id, feed["public"].id, "LIKE")
        relation_manager.add(bob.id, feed["protect"].id, "FAVORITE")

        assert self._ids(memo_manager.list(viewer_id=bob.id, liked=True)) == {feed["public"].id}
        assert self._ids(memo_manager.list(liked=True)) == {feed["public"].id, feed["bob"].id}

    def test_commented_and_mentioned_filters(
        self, memo_manager, comment_manager, feed, alice, bob, carol
    ):
        comment_manager.create({"memo_id": feed["public"].id, "user_id": bob.id, "content": "one"})
        comment_manager.create({"memo_id": feed["public"].id, "user_id": bob.id, "content": "two"})
        comment_manager.create({"memo_id": feed["protect"].id, "user_id": alice.id, "content": "@Carol look"})

        memos, total = memo_manager.list(viewer_id=bob.id, commented=True)
        assert total == 1
        assert [memo.id for memo in memos] == [feed["public"].id]

        assert self._ids(memo_manager.list(viewer_id=carol.id, mentioned=True)) == {feed["protect"].id}
        assert self._ids(memo_manager.list(viewer_id=bob.id, mentioned=True)) == set()

    def test_date_window(self, memo_manager, alice, base_time, later):
        memo_manager.create({"user_id": alice.id, "content": "early", "created": later(0)})
        inside = memo_manager.create({"user_id": alice.id, "content": "mid", "created": later(60)})
        memo_manager.create({"user_id": alice.id, "content": "late", "created": later(120)})

        result = memo_manager.list(viewer_id=alice.id, begin=later(30), end=later(90))
        assert self._ids(result) == {inside.id}

    def test_pagination_and_pinning(self, memo_manager, alice, later):
        memos = [
            memo_manager.create({"user_id": alice.id, "content": f"m{i}", "created": later(i)})
            for i in range(5)
        ]
        memo_manager.set_priority(memos[0].id, True)

        first_page, total = memo_manager.list(viewer_id=alice.id, page=1, size=2)
        second_page, _ = memo_manager.list(viewer_id=alice.id, page=2, size=2)

        assert total == 5
        assert [m.id for m in first_page] == [memos[0].id, memos[4].id]
        assert [m.id for m in second_page] == [memos[3].id, memos[2].id]

    def test_page_below_one_is_first_page(self, memo_manager, feed, alice):
        assert memo_manager.list(viewer_id=alice.id, page=0, size=1)[0] == memo_manager.list(
            viewer_id=alice.id, page=1, size=1
        )[0]
