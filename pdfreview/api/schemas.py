"""Pydantic request / response schemas for the API layer."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from pdfreview.models.comment import Comment
from pdfreview.models.project import Project
from pdfreview.services.comment_store import ThreadNode


# ── Projects ─────────────────────────────────────────────────────────


class ProjectOut(BaseModel):
    id: int
    name: str
    uuid: str
    url: str
    pdf_url: str
    pdf_original_name: str
    created_at: datetime
    updated_at: datetime
    comment_count: int | None = None

    @classmethod
    def from_project(cls, project: Project, comment_count: int | None = None) -> "ProjectOut":
        return cls(
            id=project.id,
            name=project.name,
            uuid=project.uuid,
            url=project.url,
            pdf_url=project.pdf_url,
            pdf_original_name=project.original_filename,
            created_at=project.created_at,
            updated_at=project.updated_at,
            comment_count=comment_count,
        )


class ProjectEnvelope(BaseModel):
    success: bool = True
    project: ProjectOut


class ProjectListEnvelope(BaseModel):
    success: bool = True
    projects: list[ProjectOut]


# ── Comments ─────────────────────────────────────────────────────────


class RectIn(BaseModel):
    x: float
    y: float
    width: float
    height: float


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1)
    color: str = Field(..., min_length=1, max_length=64)
    rect: RectIn | None = None
    page: int | None = Field(default=None, ge=1)
    parent_id: int | None = None


class CommentUpdate(BaseModel):
    text: str = Field(..., min_length=1)


class CommentApproval(BaseModel):
    approved: bool


class CommentOut(BaseModel):
    id: int
    text: str
    rect: RectIn
    color: str
    approved: bool
    status: str
    page: int
    parent_id: int | None
    created_at: datetime
    updated_at: datetime
    replies: list["CommentOut"] | None = None

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentOut":
        return cls(
            id=comment.id,
            text=comment.text,
            rect=RectIn(**comment.rect.to_dict()),
            color=comment.color,
            approved=comment.approved,
            status=comment.status,
            page=comment.page,
            parent_id=comment.parent_id,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )

    @classmethod
    def from_thread(cls, node: ThreadNode) -> "CommentOut":
        out = cls.from_comment(node.comment)
        out.replies = [cls.from_thread(child) for child in node.replies]
        return out


class CommentEnvelope(BaseModel):
    success: bool = True
    comment: CommentOut


class CommentListEnvelope(BaseModel):
    success: bool = True
    comments: list[CommentOut]


# ── Generic ──────────────────────────────────────────────────────────


class MessageOut(BaseModel):
    success: bool = True
    message: str


class ErrorOut(BaseModel):
    error: str


CommentOut.model_rebuild()
