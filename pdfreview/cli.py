#!/usr/bin/env python
"""
pdfreview CLI
=============
Provisioning and maintenance commands.

Usage:
    python -m pdfreview.cli init-db [--sample-data] [--yes]
    python -m pdfreview.cli projects list
    python -m pdfreview.cli projects create "Q1 review" ./docs/report.pdf
    python -m pdfreview.cli projects delete <uuid>
    python -m pdfreview.cli healthcheck [--json]
    python -m pdfreview.cli serve [--host 0.0.0.0] [--port 3001]

Every command uses the same settings, database and upload directory as
the HTTP server. Exit code 0 on success, 1 on failure.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote

from sqlalchemy import text

from pdfreview.core.config import Settings, get_settings
from pdfreview.core.database import Database
from pdfreview.core.errors import AnnotationError
from pdfreview.core.structured_logging import init_logging
from pdfreview.services.annotation_service import AnnotationService
from pdfreview.services.asset_store import PDF_MIME_TYPE, create_asset_store
from pdfreview.services.health import run_health_checks

logger = logging.getLogger(__name__)

# Smallest document most viewers will open; used only for --sample-data
SAMPLE_PDF = (
    b"%PDF-1.4\n"
    b"1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[3 0 R]/Count 1>>endobj\n"
    b"3 0 obj<</Type/Page/Parent 2 0 R/MediaBox[0 0 612 792]>>endobj\n"
    b"trailer<</Root 1 0 R>>\n"
    b"%%EOF\n"
)


@contextmanager
def _service(cfg: Settings) -> Iterator[AnnotationService]:
    with Database(cfg.database_url) as database:
        session = database.session()
        try:
            yield AnnotationService(session, create_asset_store(cfg))
        finally:
            session.close()


def _project_link(cfg: Settings, project) -> str:
    return f"{cfg.public_base_url.rstrip('/')}/{quote(project.name)}/{project.uuid}"


# ---------------------------------------------------------------------------
# init-db
# ---------------------------------------------------------------------------


def cmd_init_db(args, cfg: Settings) -> int:
    """Drop and recreate the schema, optionally with sample data."""
    from pdfreview.main import bootstrap_schema

    if not args.yes:
        print("  WARNING: this drops every project and comment in the database.")
        answer = input("  Continue? (y/N) ").strip().lower()
        if answer not in ("y", "yes"):
            print("  Cancelled.")
            return 0

    Path(cfg.upload_dir).mkdir(parents=True, exist_ok=True)

    with Database(cfg.database_url) as database:
        database.drop_all()
        with database.engine.begin() as conn:
            conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        mode = cfg.schema_bootstrap if cfg.schema_bootstrap != "none" else "create_all"
        bootstrap_schema(database, mode)
    print(f"  Database initialised: {cfg.database_url}")

    if args.sample_data:
        with _service(cfg) as service:
            project = service.create_project(
                "Sample project", SAMPLE_PDF, PDF_MIME_TYPE, "Sample document.pdf"
            )
            service.create_comment(
                project.uuid,
                text="This is a sample comment",
                color="#4CAF50",
                rect={"x": 100, "y": 150, "width": 200, "height": 100},
            )
        print(f"  Sample project created: {_project_link(cfg, project)}")

    return 0


# ---------------------------------------------------------------------------
# projects
# ---------------------------------------------------------------------------


def cmd_projects_list(args, cfg: Settings) -> int:
    with _service(cfg) as service:
        rows = service.list_projects()

    if not rows:
        print("  No projects yet.")
        return 0

    print(f"\n  Projects ({len(rows)}):\n")
    for index, (project, count) in enumerate(rows, start=1):
        print(f"  {index}. {project.name}")
        print(f"     URL:      {_project_link(cfg, project)}")
        print(f"     PDF:      {project.original_filename}")
        print(f"     Comments: {count}")
        print(f"     Created:  {project.created_at:%Y-%m-%d %H:%M:%S}")
        print()
    return 0


def cmd_projects_create(args, cfg: Settings) -> int:
    pdf_path = Path(args.pdf_path).expanduser()
    if not pdf_path.is_file():
        print(f"  Error: PDF file does not exist: {pdf_path}")
        return 1
    if pdf_path.suffix.lower() != ".pdf":
        print("  Error: the file must be a PDF")
        return 1

    with _service(cfg) as service:
        project = service.create_project(
            args.name, pdf_path.read_bytes(), PDF_MIME_TYPE, pdf_path.name
        )

    print("  Project created:")
    print(f"    Name: {project.name}")
    print(f"    URL:  {_project_link(cfg, project)}")
    print(f"    PDF:  {project.original_filename}")
    print(f"    UUID: {project.uuid}")
    return 0


def cmd_projects_delete(args, cfg: Settings) -> int:
    with _service(cfg) as service:
        project = service.delete_project(args.uuid)
    print(f"  Project deleted: {project.name} ({project.uuid})")
    return 0


# ---------------------------------------------------------------------------
# healthcheck / serve
# ---------------------------------------------------------------------------


def cmd_healthcheck(args, cfg: Settings) -> int:
    with Database(cfg.database_url) as database:
        report = run_health_checks(database, create_asset_store(cfg))

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(f"\n  Health check at {report['timestamp']}")
        print(f"  Version: {report['version']}")
        print(f"  Overall: {report['status'].upper()}\n")
        for name, check in report["checks"].items():
            print(f"  {name.upper()}: {check['status']}")
            print(f"     {check['message']}")
            if check.get("data"):
                print(f"     {json.dumps(check['data'])}")
        print()

    return 0 if report["status"] == "healthy" else 1


def cmd_serve(args, cfg: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "pdfreview.main:create_app",
        factory=True,
        host=args.host or cfg.host,
        port=args.port or cfg.port,
    )
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pdfreview", description="pdfreview maintenance commands")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Drop and recreate the database schema")
    p_init.add_argument("--sample-data", action="store_true", help="Add a sample project")
    p_init.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p_init.set_defaults(func=cmd_init_db)

    p_projects = sub.add_parser("projects", help="Manage projects")
    projects_sub = p_projects.add_subparsers(dest="action", required=True)

    p_list = projects_sub.add_parser("list", help="List projects, newest first")
    p_list.set_defaults(func=cmd_projects_list)

    p_create = projects_sub.add_parser("create", help="Create a project from a PDF")
    p_create.add_argument("name")
    p_create.add_argument("pdf_path")
    p_create.set_defaults(func=cmd_projects_create)

    p_delete = projects_sub.add_parser("delete", help="Delete a project, its comments and PDF")
    p_delete.add_argument("uuid")
    p_delete.set_defaults(func=cmd_projects_delete)

    p_health = sub.add_parser("healthcheck", help="Check database and upload directory")
    p_health.add_argument("--json", action="store_true", help="Print the report as JSON")
    p_health.set_defaults(func=cmd_healthcheck)

    p_serve = sub.add_parser("serve", help="Run the HTTP API")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None, cfg: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = cfg or get_settings()
    init_logging(level="WARNING" if args.command != "serve" else None, config=cfg)

    try:
        return args.func(args, cfg)
    except AnnotationError as exc:
        print(f"  Error: {exc.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
