"""
Comment Thread Store
====================
Comments are an arena keyed by numeric id. ``parent_id`` links turn the
arena into reply trees of any depth; this store returns flat lists and
leaves tree building to ``build_reply_tree``.

Rules enforced here:
  - A root comment carries its own anchor rectangle.
  - A reply without a rectangle copies its parent's rectangle at creation.
  - A parent must live in the same project.
  - Deleting a comment deletes its whole reply subtree in one statement.

Methods flush but never commit; the caller owns the transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union

from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from pdfreview.core.database import MAX_ROW_ID, is_row_id
from pdfreview.core.errors import (
    CommentNotFound,
    InvalidParent,
    MissingAnchor,
    ProjectNotFound,
    ValidationError,
)
from pdfreview.models.comment import Comment, Rect
from pdfreview.models.project import utcnow

logger = logging.getLogger(__name__)

RectLike = Union[Rect, Mapping[str, Any], None]


@dataclass
class ThreadNode:
    """One comment and its direct replies, oldest first."""

    comment: Comment
    replies: list["ThreadNode"] = field(default_factory=list)


def build_reply_tree(comments: Iterable[Comment]) -> list[ThreadNode]:
    """Group a created-ascending flat list into root-first reply trees."""
    nodes: dict[int, ThreadNode] = {}
    ordered: list[ThreadNode] = []
    for comment in comments:
        node = ThreadNode(comment)
        nodes[comment.id] = node
        ordered.append(node)

    roots: list[ThreadNode] = []
    for node in ordered:
        parent = nodes.get(node.comment.parent_id) if node.comment.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


class CommentStore:
    """Owns comment rows, anchor inheritance and approval state."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        project_id: int,
        *,
        text: str,
        color: str,
        rect: RectLike = None,
        parent_id: Optional[int] = None,
        page: Optional[int] = 1,
    ) -> Comment:
        """
        Create a root comment or a reply.

        Raises
        ------
        ValidationError
            Empty text or color, malformed rectangle, page below 1.
        MissingAnchor
            Neither ``rect`` nor ``parent_id`` given.
        InvalidParent
            Parent missing or in another project.
        """
        if not text or not str(text).strip():
            raise ValidationError("Comment text is required")
        if not color or not str(color).strip():
            raise ValidationError("Comment color is required")

        page = 1 if page is None else page
        if isinstance(page, bool) or not isinstance(page, int) or not 1 <= page <= MAX_ROW_ID:
            raise ValidationError("Page must be a positive integer")

        anchor = rect if isinstance(rect, Rect) or rect is None else Rect.from_mapping(rect)

        if not is_row_id(project_id):
            raise ProjectNotFound(f"Project id={project_id} not found")

        if parent_id is None:
            if anchor is None:
                raise MissingAnchor("A rectangle is required for top-level comments")
        else:
            parent = self.session.get(Comment, parent_id) if is_row_id(parent_id) else None
            if parent is None or parent.project_id != project_id:
                raise InvalidParent(f"Parent comment {parent_id} not found in this project")
            if anchor is None:
                # Copy, so the reply keeps its own values
                anchor = Rect(parent.rect_x, parent.rect_y, parent.rect_width, parent.rect_height)

        now = utcnow()
        comment = Comment(
            project_id=project_id,
            parent_id=parent_id,
            text=text,
            rect_x=anchor.x,
            rect_y=anchor.y,
            rect_width=anchor.width,
            rect_height=anchor.height,
            color=color,
            approved=False,
            page=page,
            created_at=now,
            updated_at=now,
        )
        self.session.add(comment)
        try:
            self.session.flush()
        except IntegrityError as exc:
            if not _is_foreign_key_violation(exc):
                raise
            # The parent (or project) vanished since the check
            if parent_id is not None:
                raise InvalidParent(f"Parent comment {parent_id} no longer exists") from exc
            raise ProjectNotFound(f"Project id={project_id} no longer exists") from exc

        logger.info(
            "Comment created id=%d project=%d parent=%s page=%d",
            comment.id,
            project_id,
            parent_id,
            page,
        )
        return comment

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, comment_id: int) -> Comment:
        comment = self.session.get(Comment, comment_id) if is_row_id(comment_id) else None
        if comment is None:
            raise CommentNotFound(f"Comment {comment_id} not found")
        return comment

    def list_by_project(self, project_id: int) -> list[Comment]:
        """Flat list, oldest first. Not guaranteed root-first."""
        return list(
            self.session.scalars(
                select(Comment)
                .where(Comment.project_id == project_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            )
        )

    # ------------------------------------------------------------------
    # Mutate
    # ------------------------------------------------------------------

    def update_text(self, comment_id: int, new_text: str) -> Comment:
        if not new_text or not str(new_text).strip():
            raise ValidationError("Comment text is required")
        comment = self.get(comment_id)
        comment.text = new_text
        comment.updated_at = utcnow()
        self.session.flush()
        return comment

    def set_approval(self, comment_id: int, approved: bool) -> Comment:
        comment = self.get(comment_id)
        comment.approved = bool(approved)
        comment.updated_at = utcnow()
        self.session.flush()
        logger.info("Comment %d is now %s", comment_id, comment.status)
        return comment

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def subtree_ids(self, comment_id: int) -> list[int]:
        """Ids of ``comment_id`` and every transitive reply."""
        subtree = (
            select(Comment.id)
            .where(Comment.id == comment_id)
            .cte(name="subtree", recursive=True)
        )
        reply = aliased(Comment)
        subtree = subtree.union_all(
            select(reply.id).where(reply.parent_id == subtree.c.id)
        )
        return list(self.session.scalars(select(subtree.c.id)))

    def delete(self, comment_id: int) -> list[int]:
        """Delete a comment and its reply subtree. Returns the deleted ids."""
        self.get(comment_id)
        ids = self.subtree_ids(comment_id)
        self.session.execute(
            delete(Comment)
            .where(Comment.id.in_(ids))
            .execution_options(synchronize_session="fetch")
        )
        self.session.flush()
        self._evict(ids)
        logger.info("Comment %d deleted with %d replies", comment_id, len(ids) - 1)
        return ids

    def delete_for_project(self, project_id: int) -> int:
        """Delete every comment of a project. Returns how many were removed."""
        ids = list(self.session.scalars(select(Comment.id).where(Comment.project_id == project_id)))
        if ids:
            self.session.execute(
                delete(Comment)
                .where(Comment.id.in_(ids))
                .execution_options(synchronize_session="fetch")
            )
            self.session.flush()
            self._evict(ids)
        return len(ids)

    def _evict(self, ids: Iterable[int]) -> None:
        # Rows removed by the FK cascade are never reported back to the ORM
        doomed = set(ids)
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, Comment) and inspect(obj).identity[0] in doomed:
                self.session.expunge(obj)


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    return "foreign key" in str(exc.orig).lower()
