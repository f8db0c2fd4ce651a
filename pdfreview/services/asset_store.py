"""
Asset Store
===========
Owns the PDF bytes behind every project. Callers address an asset only by
the name the store generated for it.

Backends:
  - LocalAssetStore: local filesystem directory (the only backend).

Design principles:
  - Stored names are generated, never supplied by the client.
  - A name is never overwritten or handed out twice.
  - Writes land in a temp file and are renamed into place.
  - ``discard`` is the best-effort counterpart of ``store``: it never raises.
"""

from __future__ import annotations

import abc
import logging
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from pdfreview.core.errors import AssetError, AssetNotFound, InvalidAsset

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MiB
_NAME_ATTEMPTS = 5


def generate_asset_name(suffix: str = ".pdf") -> str:
    """``<epoch-millis>-<128-bit random hex><suffix>``."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{suffix}"


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------


class AssetStore(abc.ABC):
    """
    Uniform interface for project asset storage.

    ``store`` validates the declared MIME type and the size ceiling before
    anything is written.
    """

    def __init__(self, *, accepted_mime_type: str = PDF_MIME_TYPE, max_bytes: int = DEFAULT_MAX_BYTES):
        self.accepted_mime_type = accepted_mime_type
        self.max_bytes = max_bytes

    def validate(self, data: bytes, mime_type: Optional[str]) -> None:
        if mime_type != self.accepted_mime_type:
            raise InvalidAsset("Only PDF files are accepted")
        if not data:
            raise InvalidAsset("The uploaded file is empty")
        if len(data) > self.max_bytes:
            raise InvalidAsset(
                f"The file is too large. Maximum {self.max_bytes // (1024 * 1024)}MB."
            )

    @abc.abstractmethod
    def store(self, data: bytes, mime_type: Optional[str]) -> str:
        """Persist ``data`` under a freshly generated name and return it."""

    @abc.abstractmethod
    def retrieve(self, name: str) -> BinaryIO:
        """Return a readable binary stream. Raises AssetNotFound."""

    @abc.abstractmethod
    def delete(self, name: str) -> None:
        """Remove the asset. Raises AssetNotFound, AssetError."""

    @abc.abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if the asset exists."""

    @abc.abstractmethod
    def size(self, name: str) -> Optional[int]:
        """Return the size in bytes, or None if the asset does not exist."""

    @abc.abstractmethod
    def list_names(self) -> list[str]:
        """Return every stored name, sorted."""

    # -- compensation --------------------------------------------------------

    def discard(self, name: str) -> bool:
        """
        Best-effort delete. Returns True if the bytes were removed.

        A missing asset is logged at INFO, any other storage failure at
        WARNING; neither propagates.
        """
        try:
            self.delete(name)
        except AssetNotFound:
            logger.info("Asset already gone, nothing to discard: %s", name)
            return False
        except AssetError as exc:
            logger.warning("Could not discard asset %s: %s", name, exc)
            return False
        logger.info("Asset discarded: %s", name)
        return True

    @contextmanager
    def stored(self, data: bytes, mime_type: Optional[str]) -> Iterator[str]:
        """
        Store ``data`` and yield its name; discard it again if the enclosed
        block raises.
        """
        name = self.store(data, mime_type)
        try:
            yield name
        except BaseException:
            logger.warning("Rolling back stored asset %s", name)
            self.discard(name)
            raise


# ---------------------------------------------------------------------------
# LocalAssetStore
# ---------------------------------------------------------------------------


class LocalAssetStore(AssetStore):
    """
    Filesystem-backed storage.

    Root directory is created on init. All names are resolved relative to root.
    """

    def __init__(self, root: str = "uploads", **kwargs):
        super().__init__(**kwargs)
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("LocalAssetStore initialized at %s", self.root)

    def _resolve(self, name: str) -> Path:
        # Prevent directory traversal
        resolved = (self.root / name).resolve()
        if resolved.parent != self.root:
            raise AssetNotFound(f"Not found: {name}")
        return resolved

    def path_for(self, name: str) -> Path:
        path = self._resolve(name)
        if not path.is_file():
            raise AssetNotFound(f"Not found: {name}")
        return path

    def store(self, data: bytes, mime_type: Optional[str]) -> str:
        self.validate(data, mime_type)

        for _ in range(_NAME_ATTEMPTS):
            name = generate_asset_name()
            path = self._resolve(name)
            if not path.exists():
                break
        else:
            raise AssetError("Could not allocate a unique asset name")

        tmp = path.with_suffix(".tmp")
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            tmp.rename(path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise AssetError(f"Could not write asset {name}: {exc}") from exc

        logger.info("Asset stored: %s (%d bytes)", name, len(data))
        return name

    def retrieve(self, name: str) -> BinaryIO:
        path = self.path_for(name)
        try:
            return open(path, "rb")
        except FileNotFoundError as exc:
            raise AssetNotFound(f"Not found: {name}") from exc
        except OSError as exc:
            raise AssetError(f"Could not read asset {name}: {exc}") from exc

    def delete(self, name: str) -> None:
        path = self._resolve(name)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise AssetNotFound(f"Not found: {name}") from exc
        except OSError as exc:
            raise AssetError(f"Could not delete asset {name}: {exc}") from exc

    def exists(self, name: str) -> bool:
        try:
            return self._resolve(name).is_file()
        except AssetNotFound:
            return False

    def size(self, name: str) -> Optional[int]:
        try:
            return self.path_for(name).stat().st_size
        except AssetNotFound:
            return None

    def list_names(self) -> list[str]:
        return sorted(p.name for p in self.root.iterdir() if p.is_file() and p.suffix == ".pdf")

    def probe_writable(self) -> None:
        """Write and remove a marker file. Raises AssetError."""
        marker = self.root / f".healthcheck-{uuid.uuid4().hex}"
        try:
            marker.write_bytes(b"healthcheck")
            marker.unlink()
        except OSError as exc:
            raise AssetError(f"Upload directory not writable: {exc}") from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_asset_store(config=None) -> AssetStore:
    """
    Create the asset store from settings.

    Uses ``upload_dir``, ``accepted_mime_type`` and ``max_upload_bytes``.
    """
    if config is None:
        from pdfreview.core.config import settings as config

    return LocalAssetStore(
        root=config.upload_dir,
        accepted_mime_type=config.accepted_mime_type,
        max_bytes=config.max_upload_bytes,
    )
