"""
Health-Check Endpoints
======================
Unauthenticated endpoints for load-balancer probes and monitoring.

  /health/live   — Liveness: process is running and can serve HTTP.
  /health/ready  — Readiness: database and upload directory are usable.
  /health/info   — Build metadata (version, environment).
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pdfreview import __version__
from pdfreview.services.health import run_health_checks, uptime_seconds

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def liveness():
    """Liveness probe — confirms the process is running."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ready")
def readiness(request: Request):
    """Readiness probe — database connectivity and a writable upload dir."""
    report = run_health_checks(request.app.state.database, request.app.state.assets)
    ok = report["status"] == "healthy"
    payload = {
        "status": "ok" if ok else "degraded",
        "checks": report["checks"],
        "timestamp": report["timestamp"],
    }
    return JSONResponse(payload, status_code=200 if ok else 503)


@router.get("/info")
def info(request: Request):
    """Build / runtime metadata — safe for external monitoring dashboards."""
    return {
        "version": __version__,
        "environment": request.app.state.settings.app_env,
        "uptime_seconds": uptime_seconds(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
