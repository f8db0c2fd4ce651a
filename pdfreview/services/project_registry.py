"""Project registry — name + external UUID bound to exactly one stored asset."""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pdfreview.core.errors import ConflictError, ProjectNotFound, ValidationError
from pdfreview.models.comment import Comment
from pdfreview.models.project import Project, utcnow

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """
    Row-level project lifecycle.

    Methods flush but never commit; the caller owns the transaction.
    Deleting a row does not touch its comments.
    """

    def __init__(self, session: Session, *, uuid_factory: Callable[[], uuid.UUID] = uuid.uuid4):
        self.session = session
        self._uuid_factory = uuid_factory

    def create(self, name: str, stored_asset_name: str, original_asset_name: str) -> Project:
        if not name or not name.strip():
            raise ValidationError("Project name is required")
        if not stored_asset_name:
            raise ValidationError("Stored asset name is required")
        if not original_asset_name:
            raise ValidationError("Original filename is required")

        now = utcnow()
        project = Project(
            name=name.strip(),
            uuid=str(self._uuid_factory()),
            asset_filename=stored_asset_name,
            original_filename=original_asset_name,
            created_at=now,
            updated_at=now,
        )
        self.session.add(project)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise ConflictError(f"Project could not be registered: {exc.orig}") from exc

        logger.info("Project registered id=%d uuid=%s asset=%s", project.id, project.uuid, stored_asset_name)
        return project

    def find_by_external_id(self, project_uuid: str) -> Project:
        project = self.session.scalars(
            select(Project).where(Project.uuid == str(project_uuid))
        ).first()
        if project is None:
            raise ProjectNotFound(f"Project {project_uuid} not found")
        return project

    def list_all(self) -> list[Project]:
        """Return all projects, newest first."""
        return list(
            self.session.scalars(
                select(Project).order_by(Project.created_at.desc(), Project.id.desc())
            )
        )

    def list_with_comment_counts(self) -> list[tuple[Project, int]]:
        stmt = (
            select(Project, func.count(Comment.id))
            .outerjoin(Comment, Comment.project_id == Project.id)
            .group_by(Project.id)
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        return [(project, count) for project, count in self.session.execute(stmt)]

    def touch(self, project_id: int) -> None:
        self.session.execute(
            update(Project).where(Project.id == project_id).values(updated_at=utcnow())
        )

    def delete(self, project_uuid: str) -> str:
        """Remove the row and return the stored asset name it pointed at."""
        project = self.find_by_external_id(project_uuid)
        asset_filename = project.asset_filename
        self.session.delete(project)
        self.session.flush()
        logger.info("Project row deleted uuid=%s", project_uuid)
        return asset_filename
