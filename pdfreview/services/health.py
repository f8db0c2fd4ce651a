"""
Health Checks
=============
Shared by the ``/health`` routes and ``pdfreview healthcheck``.

  database    — a trivial query plus the project count.
  filesystem  — upload directory is writable; number of stored PDFs.

Each check returns ``{"status": "healthy"|"unhealthy", "message": ..., "data": ...}``.
"""

from __future__ import annotations

import logging
import platform
import sys
import time
from datetime import datetime, timezone

from sqlalchemy import func, select

from pdfreview import __version__
from pdfreview.core.database import Database
from pdfreview.core.errors import AssetError
from pdfreview.models.project import Project
from pdfreview.services.asset_store import AssetStore

logger = logging.getLogger(__name__)

_BOOT_TIME = time.monotonic()


def check_database(database: Database) -> dict:
    try:
        database.ping()
        with database.session() as session:
            count = session.scalar(select(func.count(Project.id)))
    except Exception as exc:  # noqa: BLE001
        logger.warning("Database health check failed: %s", exc)
        return {"status": "unhealthy", "message": f"Database error: {exc}"}
    return {
        "status": "healthy",
        "message": "Database accessible",
        "data": {"project_count": count},
    }


def check_filesystem(assets: AssetStore) -> dict:
    try:
        probe = getattr(assets, "probe_writable", None)
        if probe is not None:
            probe()
        names = assets.list_names()
    except (AssetError, OSError) as exc:
        logger.warning("Filesystem health check failed: %s", exc)
        return {"status": "unhealthy", "message": str(exc)}
    return {
        "status": "healthy",
        "message": "File system accessible",
        "data": {"upload_dir": str(getattr(assets, "root", "")), "pdf_count": len(names)},
    }


def uptime_seconds() -> float:
    return round(time.monotonic() - _BOOT_TIME, 1)


def run_health_checks(database: Database, assets: AssetStore) -> dict:
    checks = {
        "database": check_database(database),
        "filesystem": check_filesystem(assets),
    }
    healthy = all(c["status"] == "healthy" for c in checks.values())
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "checks": checks,
        "system": {
            "uptime_seconds": uptime_seconds(),
            "python_version": sys.version.split()[0],
            "platform": platform.system().lower(),
        },
    }
