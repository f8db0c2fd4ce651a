"""Stored PDF download — serves the bytes behind a project's ``pdf_url``."""

from __future__ import annotations

from typing import BinaryIO, Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from pdfreview.api.deps import get_service
from pdfreview.services.annotation_service import AnnotationService

router = APIRouter(prefix="/uploads", tags=["uploads"])

_CHUNK_SIZE = 1 << 16  # 64 KiB


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    with stream:
        while True:
            chunk = stream.read(_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk


@router.get("/{stored_name}")
def download_asset(stored_name: str, service: AnnotationService = Depends(get_service)):
    stream = service.open_asset(stored_name)
    headers = {}
    size = service.assets.size(stored_name)
    if size is not None:
        headers["Content-Length"] = str(size)
    return StreamingResponse(
        _iter_stream(stream),
        media_type=service.assets.accepted_mime_type,
        headers=headers,
    )
