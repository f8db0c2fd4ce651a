"""SQLAlchemy engine & session factory wrapped in an explicit lifecycle handle."""

from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Largest value a signed 64-bit INTEGER primary key can hold
MAX_ROW_ID = 2**63 - 1


def is_row_id(value) -> bool:
    """True if ``value`` could be a stored primary key."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_ROW_ID


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite doesn't enforce FK by default
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Persistence handle injected into every store.

    ``open()`` builds the engine and session factory; ``close()`` disposes the
    connection pool. One instance lives for the whole process (application
    lifespan or a single CLI invocation).
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker[Session] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self

        kwargs: dict = {"echo": self.echo}
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every checkout sees an empty DB
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(self.url, **kwargs)
        if self.is_sqlite:
            event.listen(engine, "connect", enable_sqlite_foreign_keys)

        self._engine = engine
        self._sessionmaker = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
        logger.info("Database opened: %s", engine.url.render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database closed")

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not open")
        return self._sessionmaker()

    def create_all(self) -> None:
        import pdfreview.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import pdfreview.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> None:
        """Raise if the database cannot answer a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency — yields a per-request DB session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
