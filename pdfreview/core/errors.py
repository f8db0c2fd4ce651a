"""
Error taxonomy
==============
Every component raises one of these; the HTTP layer maps them to status
codes and the CLI prints them.

  ValidationError  — missing / malformed input             → 400
  NotFound         — referenced project / comment / asset  → 404
  AssetError       — blob storage I/O failure              → 500
  ConflictError    — unique constraint violated            → 409
"""

from __future__ import annotations


class AnnotationError(Exception):
    """Base class for domain errors."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)
        self.message = str(self.args[0])


class ValidationError(AnnotationError):
    """Invalid or missing field."""

    status_code = 400


class MissingAnchor(ValidationError):
    """A root comment requires an anchor rectangle."""


class InvalidParent(ValidationError):
    """Parent comment not found in this project."""


class InvalidAsset(ValidationError):
    """Only PDF files are accepted."""


class NotFound(AnnotationError):
    """Resource not found."""

    status_code = 404


class ProjectNotFound(NotFound):
    """Project not found."""


class CommentNotFound(NotFound):
    """Comment not found."""


class AssetError(AnnotationError):
    """Asset storage failure."""

    status_code = 500


class AssetNotFound(NotFound, AssetError):
    """Stored asset not found."""

    status_code = 404


class ConflictError(AnnotationError):
    """Unique constraint violated."""

    status_code = 409
