"""Comment API — edit text, toggle approval, delete with replies."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pdfreview.api.deps import get_service
from pdfreview.api.schemas import CommentApproval, CommentUpdate, MessageOut
from pdfreview.services.annotation_service import AnnotationService

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.put("/{comment_id}", response_model=MessageOut)
def update_comment(
    comment_id: int,
    body: CommentUpdate,
    service: AnnotationService = Depends(get_service),
):
    service.update_comment_text(comment_id, body.text)
    return MessageOut(message="Comment updated")


@router.put("/{comment_id}/approve", response_model=MessageOut)
def approve_comment(
    comment_id: int,
    body: CommentApproval,
    service: AnnotationService = Depends(get_service),
):
    comment = service.set_approval(comment_id, body.approved)
    return MessageOut(message="Comment approved" if comment.approved else "Approval removed")


@router.delete("/{comment_id}", response_model=MessageOut)
def delete_comment(comment_id: int, service: AnnotationService = Depends(get_service)):
    ids = service.delete_comment(comment_id)
    return MessageOut(message=f"Comment deleted ({len(ids) - 1} replies removed)")
