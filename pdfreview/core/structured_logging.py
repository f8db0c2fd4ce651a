"""
Structured Logging
==================
Configures Python's logging to emit JSON-structured log lines in
production and a human-readable format everywhere else.

Usage:
    from pdfreview.core.structured_logging import init_logging
    init_logging(app)          # FastAPI app: also installs request middleware
    init_logging()             # CLI: handlers only

Each JSON line contains:
  - timestamp (ISO-8601 UTC)
  - level
  - logger (module name)
  - message
  - request_id / method / path (inside an HTTP request)

Uses stdlib ``logging`` with a custom ``Formatter``.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request

from pdfreview.core.config import Settings, settings

_request_ctx: ContextVar[Optional[dict]] = ContextVar("pdfreview_request", default=None)


class _JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = _request_ctx.get()
        if ctx:
            payload.update(ctx)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def current_request_id() -> Optional[str]:
    ctx = _request_ctx.get()
    return ctx["request_id"] if ctx else None


async def _request_logging_middleware(request: Request, call_next):
    """Assign a request id, log start/end, echo the id in X-Request-ID."""
    logger = logging.getLogger("pdfreview.http")
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = _request_ctx.set(
        {"request_id": request_id, "method": request.method, "path": request.url.path}
    )
    try:
        logger.info("request_start %s %s", request.method, request.url.path)
        response = await call_next(request)
        logger.info(
            "request_end %s %s status=%d",
            request.method,
            request.url.path,
            response.status_code,
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        _request_ctx.reset(token)


def init_logging(
    app: Optional[FastAPI] = None,
    *,
    level: Optional[str] = None,
    config: Optional[Settings] = None,
) -> None:
    """
    Configure root logging and, when given an app, the request middleware.

    Parameters
    ----------
    app : FastAPI, optional
        Application that should get request_id / access logging.
    level : str, optional
        Override log level (DEBUG, INFO, WARNING, ERROR).
        Defaults to ``config.log_level``.
    config : Settings, optional
        Settings deciding JSON output (``app_env == "production"``).
        Defaults to the module-level ``settings``.
    """
    config = config or settings
    is_production = config.app_env == "production"
    level = (level or config.log_level).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Remove existing handlers to avoid duplicate output
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if is_production:
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root.addHandler(handler)

    if app is not None:
        app.middleware("http")(_request_logging_middleware)

    logging.getLogger("pdfreview").info(
        "Structured logging initialised (level=%s, json=%s)",
        level,
        is_production,
    )
