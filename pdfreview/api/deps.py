"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pdfreview.core.database import get_db
from pdfreview.services.annotation_service import AnnotationService
from pdfreview.services.asset_store import AssetStore


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.assets


def get_service(
    db: Session = Depends(get_db),
    assets: AssetStore = Depends(get_asset_store),
) -> AnnotationService:
    return AnnotationService(db, assets)
