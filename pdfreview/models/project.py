"""Project model — one PDF document plus the comments placed on it."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pdfreview.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "projects"
    # AUTOINCREMENT: numeric ids are never handed out twice on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)
    asset_filename: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    original_filename: Mapped[str] = mapped_column(String(1024), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships: rows are removed by the FK cascade or the explicit fan-out,
    # never loaded just to be deleted.
    comments = relationship(
        "Comment",
        back_populates="project",
        passive_deletes=True,
        lazy="raise",
    )

    @property
    def url(self) -> str:
        return f"/{self.name}/{self.uuid}"

    @property
    def pdf_url(self) -> str:
        return f"/uploads/{self.asset_filename}"

    def __repr__(self) -> str:
        return f"<Project id={self.id} uuid={self.uuid} name={self.name!r}>"
