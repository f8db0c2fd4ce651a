"""pdfreview — FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdfreview import __version__
from pdfreview.api.routes import (
    comments_router,
    health_router,
    projects_router,
    uploads_router,
)
from pdfreview.core.config import Settings, settings as default_settings
from pdfreview.core.database import Database
from pdfreview.core.errors import AnnotationError
from pdfreview.core.structured_logging import init_logging
from pdfreview.services.asset_store import create_asset_store

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def run_migrations(database_url: str) -> None:
    """Apply pending Alembic migrations."""
    from alembic import command
    from alembic.config import Config as AlembicConfig

    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")
    logger.info("Alembic migrations applied.")


def bootstrap_schema(database: Database, mode: str) -> None:
    if mode == "migrate":
        run_migrations(database.url)
    elif mode == "create_all":
        database.create_all()
    elif mode != "none":
        raise ValueError(f"Unknown SCHEMA_BOOTSTRAP mode: {mode}")


# ── Error mapping ────────────────────────────────────────────────────


async def _annotation_error_handler(request: Request, exc: AnnotationError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return JSONResponse({"error": details or "Invalid request"}, status_code=400)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


async def _unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# ── Application factory ──────────────────────────────────────────────


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    cfg = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        """Startup / shutdown lifecycle hook."""
        database: Database = application.state.database
        database.open()
        bootstrap_schema(database, cfg.schema_bootstrap)
        logger.info("pdfreview %s ready (env=%s)", __version__, cfg.app_env)
        try:
            yield
        finally:
            database.close()

    application = FastAPI(title="pdfreview", version=__version__, lifespan=lifespan)
    application.state.settings = cfg
    application.state.database = Database(cfg.database_url)
    application.state.assets = create_asset_store(cfg)

    init_logging(application, config=cfg)

    # ── CORS ─────────────────────────────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Range"],
        expose_headers=["Accept-Ranges", "Content-Length", "Content-Range", "X-Request-ID"],
    )

    # ── Errors ───────────────────────────────────────────────────────
    application.add_exception_handler(AnnotationError, _annotation_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(Exception, _unexpected_error_handler)

    # ── Routers ──────────────────────────────────────────────────────
    application.include_router(projects_router)
    application.include_router(comments_router)
    application.include_router(uploads_router)
    application.include_router(health_router)

    return application
