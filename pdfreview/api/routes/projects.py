"""Projects API — PDF upload, listing, lookup, deletion and project comments."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from pdfreview.api.deps import get_service
from pdfreview.api.schemas import (
    CommentCreate,
    CommentEnvelope,
    CommentListEnvelope,
    CommentOut,
    MessageOut,
    ProjectEnvelope,
    ProjectListEnvelope,
    ProjectOut,
)
from pdfreview.core.errors import ValidationError
from pdfreview.services.annotation_service import AnnotationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.post("", response_model=ProjectEnvelope, status_code=201)
def create_project(
    name: str | None = Form(default=None),
    pdf: UploadFile | None = File(default=None),
    service: AnnotationService = Depends(get_service),
):
    if not name or pdf is None:
        raise ValidationError("Project name and PDF file are required")

    # Read one byte past the ceiling so oversize uploads are still detected
    data = pdf.file.read(service.assets.max_bytes + 1)
    project = service.create_project(
        name,
        data,
        pdf.content_type,
        pdf.filename or "document.pdf",
    )
    return ProjectEnvelope(project=ProjectOut.from_project(project, comment_count=0))


@router.get("", response_model=ProjectListEnvelope)
def list_projects(service: AnnotationService = Depends(get_service)):
    return ProjectListEnvelope(
        projects=[
            ProjectOut.from_project(project, comment_count=count)
            for project, count in service.list_projects()
        ]
    )


@router.get("/{project_uuid}", response_model=ProjectEnvelope)
def get_project(project_uuid: str, service: AnnotationService = Depends(get_service)):
    return ProjectEnvelope(project=ProjectOut.from_project(service.get_project(project_uuid)))


@router.delete("/{project_uuid}", response_model=MessageOut)
def delete_project(project_uuid: str, service: AnnotationService = Depends(get_service)):
    service.delete_project(project_uuid)
    return MessageOut(message="Project deleted")


# ── Comments on a project ────────────────────────────────────────────


@router.get("/{project_uuid}/comments", response_model=CommentListEnvelope)
def list_comments(
    project_uuid: str,
    tree: bool = False,
    service: AnnotationService = Depends(get_service),
):
    if tree:
        comments = [CommentOut.from_thread(node) for node in service.list_comment_threads(project_uuid)]
    else:
        comments = [CommentOut.from_comment(c) for c in service.list_comments(project_uuid)]
    return CommentListEnvelope(comments=comments)


@router.post("/{project_uuid}/comments", response_model=CommentEnvelope, status_code=201)
def create_comment(
    project_uuid: str,
    body: CommentCreate,
    service: AnnotationService = Depends(get_service),
):
    comment = service.create_comment(
        project_uuid,
        text=body.text,
        color=body.color,
        rect=body.rect.model_dump() if body.rect is not None else None,
        parent_id=body.parent_id,
        page=body.page,
    )
    return CommentEnvelope(comment=CommentOut.from_comment(comment))
