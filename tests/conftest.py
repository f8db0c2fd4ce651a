"""Pytest configuration — in-memory SQLite database, temp upload dir & FastAPI TestClient."""

from __future__ import annotations

import logging
import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Override env BEFORE importing app modules so Settings picks up test values.
os.environ.update(
    {
        "APP_ENV": "test",
        "LOG_LEVEL": "INFO",
        "DATABASE_URL": "sqlite://",
        "SCHEMA_BOOTSTRAP": "create_all",
    }
)

from pdfreview.core.config import Settings  # noqa: E402
from pdfreview.core.database import Database  # noqa: E402
from pdfreview.main import create_app  # noqa: E402
from pdfreview.services.annotation_service import AnnotationService  # noqa: E402
from pdfreview.services.asset_store import LocalAssetStore  # noqa: E402

# Smallest payload that looks like a PDF to a human reader
PDF_BYTES = b"%PDF-1.4\n1 0 obj<</Type/Catalog>>endobj\ntrailer<</Root 1 0 R>>\n%%EOF\n"

RECT = {"x": 10, "y": 20, "width": 30, "height": 40}


@pytest.fixture(autouse=True)
def _reset_root_logging():
    """Drop handlers installed by init_logging() so none outlive the test's stdout capture."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


# ── Persistence ────────────────────────────────────────────────────


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database with all tables, per test."""
    db = Database("sqlite://").open()
    db.create_all()
    yield db
    db.drop_all()
    db.close()


@pytest.fixture
def db(database) -> Generator[Session, None, None]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def assets(tmp_path) -> LocalAssetStore:
    """Asset store rooted in a temporary directory, 1 KiB ceiling."""
    return LocalAssetStore(root=str(tmp_path / "uploads"), max_bytes=1024)


@pytest.fixture
def service(db, assets) -> AnnotationService:
    return AnnotationService(db, assets)


@pytest.fixture
def project(service):
    return service.create_project("Q1 review", PDF_BYTES, "application/pdf", "q1.pdf")


# ── HTTP ───────────────────────────────────────────────────────────


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        app_env="test",
        database_url="sqlite://",
        schema_bootstrap="create_all",
        upload_dir=str(tmp_path / "http-uploads"),
        max_upload_bytes=1024,
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running, so the database is open."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def upload(client):
    """Upload a PDF through the API and return the project payload."""

    def _upload(name: str = "Q1 review", data: bytes = PDF_BYTES, filename: str = "q1.pdf"):
        resp = client.post(
            "/api/projects",
            data={"name": name},
            files={"pdf": (filename, data, "application/pdf")},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["project"]

    return _upload
