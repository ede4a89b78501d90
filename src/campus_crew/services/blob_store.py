"""Object storage used for chat media."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from campus_crew.core.settings import settings

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Durable storage for uploaded files."""

    def put(self, data: bytes, path: str) -> str:
        """Store ``data`` under ``path`` and return a durable URL."""

    def delete(self, url: str) -> None:
        """Remove the object behind ``url``; missing objects are ignored."""


class LocalBlobStore:
    """Blob store backed by a directory served under ``base_url``."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise ValueError(f"Invalid blob path: {path}")
        return self.root.joinpath(*relative.parts)

    def put(self, data: bytes, path: str) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Stored %d bytes at %s", len(data), target)
        return f"{self.base_url}/{PurePosixPath(path)}"

    def delete(self, url: str) -> None:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            return
        target = self._resolve(url[len(prefix):])
        target.unlink(missing_ok=True)


def get_blob_store() -> BlobStore:
    """Return the configured blob store."""
    return LocalBlobStore(settings.media_root, settings.media_base_url)
