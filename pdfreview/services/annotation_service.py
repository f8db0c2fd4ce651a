"""
Annotation Service
==================
The only component that spans both resources: the asset store (files)
and the database (projects, comments). Neither supports a shared
transaction, so consistency rests on explicit ordering and compensation.

  create_project  store bytes → insert row → commit;
                  any failure after the store discards the bytes again.
  delete_project  look up → discard bytes (best effort) →
                  delete comments + row in one transaction.

All database work for one call happens inside ``_transaction``: commit on
success, rollback on any error. Stores below never commit.

Usage:
    service = AnnotationService(session, asset_store)
    project = service.create_project("Q1 review", pdf_bytes, "application/pdf", "q1.pdf")
    root = service.create_comment(project.uuid, text="Typo", color="#ff0",
                                  rect={"x": 10, "y": 20, "width": 30, "height": 40})
    reply = service.create_comment(project.uuid, text="Fixed", color="#0f0",
                                   parent_id=root.id)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pdfreview.core.errors import ConflictError
from pdfreview.models.comment import Comment
from pdfreview.models.project import Project
from pdfreview.services.asset_store import AssetStore
from pdfreview.services.comment_store import (
    CommentStore,
    RectLike,
    ThreadNode,
    build_reply_tree,
)
from pdfreview.services.project_registry import ProjectRegistry

logger = logging.getLogger(__name__)


class AnnotationService:
    """Coordinates projects, comments and their stored PDF."""

    def __init__(
        self,
        session: Session,
        assets: AssetStore,
        *,
        projects: Optional[ProjectRegistry] = None,
        comments: Optional[CommentStore] = None,
    ):
        self.session = session
        self.assets = assets
        self.projects = projects or ProjectRegistry(session)
        self.comments = comments or CommentStore(session)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(f"Constraint violated: {exc.orig}") from exc
        except BaseException:
            self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(
        self,
        name: str,
        asset_bytes: bytes,
        mime_type: Optional[str],
        original_filename: str,
    ) -> Project:
        """
        Store the PDF, then register the project.

        Raises
        ------
        InvalidAsset
            Wrong MIME type, empty or oversize payload. Nothing is written.
        ValidationError, ConflictError
            Registration failed; the stored bytes have been discarded.
        """
        with self.assets.stored(asset_bytes, mime_type) as stored_name:
            with self._transaction():
                project = self.projects.create(name, stored_name, original_filename)

        logger.info(
            "Project created uuid=%s name=%r asset=%s original=%r",
            project.uuid,
            project.name,
            stored_name,
            original_filename,
        )
        return project

    def get_project(self, project_uuid: str) -> Project:
        return self.projects.find_by_external_id(project_uuid)

    def list_projects(self) -> list[tuple[Project, int]]:
        """Projects newest first, each with its comment count."""
        return self.projects.list_with_comment_counts()

    def open_asset(self, stored_name: str) -> BinaryIO:
        return self.assets.retrieve(stored_name)

    def delete_project(self, project_uuid: str) -> Project:
        project = self.projects.find_by_external_id(project_uuid)

        # Bytes first: a leftover row is cheaper than a leftover blob
        self.assets.discard(project.asset_filename)

        with self._transaction():
            removed = self.comments.delete_for_project(project.id)
            self.projects.delete(project_uuid)

        logger.info(
            "Project deleted uuid=%s comments_removed=%d asset=%s",
            project_uuid,
            removed,
            project.asset_filename,
        )
        return project

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def list_comments(self, project_uuid: str) -> list[Comment]:
        project = self.projects.find_by_external_id(project_uuid)
        return self.comments.list_by_project(project.id)

    def list_comment_threads(self, project_uuid: str) -> list[ThreadNode]:
        return build_reply_tree(self.list_comments(project_uuid))

    def get_comment(self, comment_id: int) -> Comment:
        return self.comments.get(comment_id)

    def create_comment(
        self,
        project_uuid: str,
        *,
        text: str,
        color: str,
        rect: RectLike = None,
        parent_id: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Comment:
        project = self.projects.find_by_external_id(project_uuid)
        with self._transaction():
            comment = self.comments.create(
                project.id,
                text=text,
                color=color,
                rect=rect,
                parent_id=parent_id,
                page=1 if page is None else page,
            )
            self.projects.touch(project.id)
        return comment

    def update_comment_text(self, comment_id: int, text: str) -> Comment:
        with self._transaction():
            comment = self.comments.update_text(comment_id, text)
            self.projects.touch(comment.project_id)
        return comment

    def set_approval(self, comment_id: int, approved: bool) -> Comment:
        with self._transaction():
            comment = self.comments.set_approval(comment_id, approved)
            self.projects.touch(comment.project_id)
        return comment

    def delete_comment(self, comment_id: int) -> list[int]:
        with self._transaction():
            project_id = self.comments.get(comment_id).project_id
            ids = self.comments.delete(comment_id)
            self.projects.touch(project_id)
        return ids
