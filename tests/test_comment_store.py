"""
Tests for the Comment Thread Store
==================================
Verifies:
  - Root comments need an anchor rectangle; replies inherit a copy.
  - Parents must exist in the same project.
  - Approval toggles and text edits.
  - Subtree delete removes every transitive reply and nothing else.
  - Reply trees are assembled root-first, oldest first.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from conftest import RECT
from pdfreview.core.errors import (
    CommentNotFound,
    InvalidParent,
    MissingAnchor,
    ProjectNotFound,
    ValidationError,
)
from pdfreview.models.comment import Comment, Rect
from pdfreview.services.comment_store import CommentStore, build_reply_tree
from pdfreview.services.project_registry import ProjectRegistry


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store(db):
    return CommentStore(db)


@pytest.fixture
def project_id(db):
    project = ProjectRegistry(db).create("Q1", "a.pdf", "a.pdf")
    db.commit()
    return project.id


@pytest.fixture
def other_project_id(db):
    project = ProjectRegistry(db).create("Q2", "b.pdf", "b.pdf")
    db.commit()
    return project.id


def _root(store, project_id, **overrides):
    kwargs = {"text": "root", "color": "#ff0", "rect": RECT}
    kwargs.update(overrides)
    return store.create(project_id, **kwargs)


# ===========================================================================
# 1. Creation & anchor rules
# ===========================================================================


class TestCreate:
    def test_root_comment_defaults(self, store, project_id):
        comment = _root(store, project_id)
        assert comment.id is not None
        assert comment.rect == Rect(10, 20, 30, 40)
        assert comment.approved is False
        assert comment.status == "pending"
        assert comment.page == 1
        assert comment.parent_id is None

    def test_server_defaults_fill_raw_inserts(self, store, project_id, db):
        db.execute(
            text(
                "INSERT INTO comments (project_id, text, rect_x, rect_y, rect_width, rect_height, color) "
                "VALUES (:pid, 'raw', 1, 1, 1, 1, 'c')"
            ),
            {"pid": project_id},
        )
        (comment,) = store.list_by_project(project_id)
        assert comment.approved is False
        assert comment.page == 1
        assert comment.created_at is not None

    def test_root_without_rect_is_missing_anchor(self, store, project_id):
        with pytest.raises(MissingAnchor):
            store.create(project_id, text="t", color="c")

    def test_reply_inherits_parent_rect(self, store, project_id):
        root = _root(store, project_id)
        reply = store.create(project_id, text="reply", color="#0f0", parent_id=root.id)
        assert reply.rect == Rect(10, 20, 30, 40)
        assert reply.parent_id == root.id

    def test_inherited_rect_is_a_copy(self, store, project_id, db):
        root = _root(store, project_id)
        reply = store.create(project_id, text="reply", color="#0f0", parent_id=root.id)
        root.rect_x = 999
        db.flush()
        db.refresh(reply)
        assert reply.rect_x == 10

    def test_reply_with_own_rect_keeps_it(self, store, project_id):
        root = _root(store, project_id)
        reply = store.create(
            project_id,
            text="reply",
            color="#0f0",
            parent_id=root.id,
            rect={"x": 1, "y": 2, "width": 3, "height": 4},
        )
        assert reply.rect == Rect(1, 2, 3, 4)

    def test_nested_reply_inherits_from_immediate_parent(self, store, project_id):
        root = _root(store, project_id)
        mid = store.create(
            project_id, text="mid", color="c", parent_id=root.id, rect={"x": 5, "y": 5, "width": 5, "height": 5}
        )
        leaf = store.create(project_id, text="leaf", color="c", parent_id=mid.id)
        assert leaf.rect == Rect(5, 5, 5, 5)

    def test_unknown_parent_rejected(self, store, project_id):
        with pytest.raises(InvalidParent):
            store.create(project_id, text="t", color="c", parent_id=4242)

    def test_parent_in_other_project_rejected(self, store, project_id, other_project_id):
        foreign = _root(store, other_project_id)
        with pytest.raises(InvalidParent):
            store.create(project_id, text="t", color="c", parent_id=foreign.id)

    def test_unknown_project_rejected(self, store):
        with pytest.raises(ProjectNotFound):
            _root(store, 4242)

    def test_out_of_range_parent_rejected(self, store, project_id):
        with pytest.raises(InvalidParent):
            store.create(project_id, text="t", color="c", parent_id=2**70)

    def test_non_foreign_key_integrity_error_propagates(self, store, project_id, db, monkeypatch):
        def fail_flush(*args, **kwargs):
            raise IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: comments.rect_x"))

        monkeypatch.setattr(db, "flush", fail_flush)
        with pytest.raises(IntegrityError):
            _root(store, project_id)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"text": ""},
            {"text": "   "},
            {"color": ""},
            {"page": 0},
            {"page": "2"},
            {"rect": {"x": 1, "y": 1, "width": 0, "height": 1}},
            {"rect": {"x": 1, "y": 1, "width": -5, "height": 1}},
            {"rect": {"x": 1, "y": 1, "width": 1}},
            {"rect": {"x": "a", "y": 1, "width": 1, "height": 1}},
            {"rect": {"x": float("nan"), "y": 1, "width": 1, "height": 1}},
            {"rect": {"x": 1, "y": float("inf"), "width": 1, "height": 1}},
            {"rect": {"x": 1, "y": 1, "width": 10**400, "height": 1}},
            {"page": 2**70},
        ],
    )
    def test_invalid_input_rejected(self, store, project_id, overrides):
        with pytest.raises(ValidationError):
            _root(store, project_id, **overrides)

    def test_page_is_stored(self, store, project_id):
        assert _root(store, project_id, page=3).page == 3


# ===========================================================================
# 2. Reads
# ===========================================================================


class TestRead:
    def test_list_empty_project(self, store, project_id):
        assert store.list_by_project(project_id) == []

    def test_list_oldest_first_and_scoped(self, store, project_id, other_project_id):
        a = _root(store, project_id, text="a")
        _root(store, other_project_id, text="elsewhere")
        b = store.create(project_id, text="b", color="c", parent_id=a.id)
        c = _root(store, project_id, text="c")
        assert [x.id for x in store.list_by_project(project_id)] == [a.id, b.id, c.id]

    def test_get_unknown_raises(self, store):
        with pytest.raises(CommentNotFound):
            store.get(4242)

    @pytest.mark.parametrize("comment_id", [0, -1, 2**63, 2**70])
    def test_get_out_of_range_id_is_not_found(self, store, comment_id):
        with pytest.raises(CommentNotFound):
            store.get(comment_id)


# ===========================================================================
# 3. Mutations
# ===========================================================================


class TestMutate:
    def test_approval_toggles(self, store, project_id):
        comment = _root(store, project_id)
        assert store.set_approval(comment.id, True).status == "approved"
        assert store.set_approval(comment.id, False).status == "pending"
        assert store.set_approval(comment.id, False).approved is False

    def test_approval_unknown_comment(self, store):
        with pytest.raises(CommentNotFound):
            store.set_approval(4242, True)

    def test_approval_out_of_range_id(self, store):
        with pytest.raises(CommentNotFound):
            store.set_approval(2**70, True)

    def test_update_text(self, store, project_id):
        comment = _root(store, project_id)
        updated = store.update_text(comment.id, "edited")
        assert updated.text == "edited"
        assert updated.rect == Rect(10, 20, 30, 40)

    def test_update_text_rejects_empty(self, store, project_id):
        comment = _root(store, project_id)
        with pytest.raises(ValidationError):
            store.update_text(comment.id, "")

    def test_update_text_unknown_comment(self, store):
        with pytest.raises(CommentNotFound):
            store.update_text(4242, "x")


# ===========================================================================
# 4. Subtree delete
# ===========================================================================


class TestDelete:
    def test_deletes_whole_subtree(self, store, project_id, db):
        root = _root(store, project_id)
        r1 = store.create(project_id, text="r1", color="c", parent_id=root.id)
        r2 = store.create(project_id, text="r2", color="c", parent_id=r1.id)
        r3 = store.create(project_id, text="r3", color="c", parent_id=root.id)
        other = _root(store, project_id, text="unrelated")
        db.commit()

        ids = store.delete(root.id)
        db.commit()

        assert sorted(ids) == sorted([root.id, r1.id, r2.id, r3.id])
        assert [c.id for c in store.list_by_project(project_id)] == [other.id]
        with pytest.raises(CommentNotFound):
            store.get(r2.id)

    def test_deleting_a_leaf_keeps_ancestors(self, store, project_id, db):
        root = _root(store, project_id)
        leaf = store.create(project_id, text="leaf", color="c", parent_id=root.id)
        db.commit()

        assert store.delete(leaf.id) == [leaf.id]
        assert store.get(root.id).id == root.id

    def test_subtree_ids_includes_self(self, store, project_id):
        root = _root(store, project_id)
        assert store.subtree_ids(root.id) == [root.id]

    def test_delete_unknown_raises(self, store):
        with pytest.raises(CommentNotFound):
            store.delete(4242)

    def test_delete_for_project(self, store, project_id, other_project_id, db):
        root = _root(store, project_id)
        store.create(project_id, text="r", color="c", parent_id=root.id)
        kept = _root(store, other_project_id)
        db.commit()

        assert store.delete_for_project(project_id) == 2
        db.commit()
        assert store.list_by_project(project_id) == []
        assert store.get(kept.id).id == kept.id
        with pytest.raises(CommentNotFound):
            store.get(root.id)


# ===========================================================================
# 5. Reply trees
# ===========================================================================


class TestReplyTree:
    def test_tree_shape(self, store, project_id):
        a = _root(store, project_id, text="a")
        a1 = store.create(project_id, text="a1", color="c", parent_id=a.id)
        a1x = store.create(project_id, text="a1x", color="c", parent_id=a1.id)
        b = _root(store, project_id, text="b")
        a2 = store.create(project_id, text="a2", color="c", parent_id=a.id)

        roots = build_reply_tree(store.list_by_project(project_id))

        assert [n.comment.id for n in roots] == [a.id, b.id]
        assert [n.comment.id for n in roots[0].replies] == [a1.id, a2.id]
        assert [n.comment.id for n in roots[0].replies[0].replies] == [a1x.id]
        assert roots[1].replies == []

    def test_orphan_becomes_root(self):
        orphan = Comment(id=7, parent_id=99, text="t", color="c")
        roots = build_reply_tree([orphan])
        assert [n.comment.id for n in roots] == [7]
