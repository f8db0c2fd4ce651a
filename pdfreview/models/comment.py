"""Comment model — a rectangle-anchored, threaded, moderated annotation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pdfreview.core.database import Base
from pdfreview.core.errors import ValidationError
from pdfreview.models.project import utcnow


@dataclass(frozen=True)
class Rect:
    """Anchor rectangle in document-page coordinates. Opaque to the core."""

    x: float
    y: float
    width: float
    height: float

    FIELDS = ("x", "y", "width", "height")

    def __post_init__(self) -> None:
        for name in self.FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"Rectangle field '{name}' must be a number")
            try:
                value = float(value)
            except OverflowError as exc:
                raise ValidationError(f"Rectangle field '{name}' is out of range") from exc
            if not math.isfinite(value) or value <= 0:
                raise ValidationError("Rectangle must have positive x, y, width and height")
            object.__setattr__(self, name, value)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["Rect"]:
        if data is None:
            return None
        missing = [name for name in cls.FIELDS if data.get(name) is None]
        if missing:
            raise ValidationError(f"Rectangle is missing {', '.join(missing)}")
        return cls(**{name: data[name] for name in cls.FIELDS})

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    rect_x: Mapped[float] = mapped_column(Float, nullable=False)
    rect_y: Mapped[float] = mapped_column(Float, nullable=False)
    rect_width: Mapped[float] = mapped_column(Float, nullable=False)
    rect_height: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(String(64), nullable=False)
    approved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    page: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=sa.text("1"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=sa.text("CURRENT_TIMESTAMP"),
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="comments")

    @property
    def rect(self) -> Rect:
        return Rect(self.rect_x, self.rect_y, self.rect_width, self.rect_height)

    @property
    def status(self) -> str:
        return "approved" if self.approved else "pending"

    def __repr__(self) -> str:
        return (
            f"<Comment id={self.id} project={self.project_id} "
            f"parent={self.parent_id} [{self.status}]>"
        )
