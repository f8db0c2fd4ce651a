"""ORM models package — re-exports all models for Alembic auto-detection."""

from pdfreview.models.project import Project  # noqa: F401
from pdfreview.models.comment import Comment, Rect  # noqa: F401
