"""
Blob store for uploaded vendor documents.

All document bytes go through this module. Services never touch the
filesystem directly; they keep only the opaque reference returned by
``put``.

Interface:
    put(content, filename) -> reference
    get(reference)         -> bytes
    delete(reference)      -> None
    exists(reference)      -> bool

Every I/O failure is raised as ``StorageError`` so callers can decide whether
it is fatal (upload, download) or not (document delete).

Testability: ``init_blob_store(app)`` registers the instance under
``app.extensions["blob_store"]``; tests swap it for a mock to simulate
failures.
"""

from __future__ import annotations

import logging
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from flask import Flask, current_app

from vendor_platform.core.exceptions import StorageError

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "blob_store"


class BlobStore(ABC):
    """Abstract interface for blob storage backends."""

    @abstractmethod
    def put(self, content: bytes, filename: str) -> str:
        """Store bytes and return a reference."""

    @abstractmethod
    def get(self, reference: str) -> bytes:
        """Return the bytes behind a reference."""

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Remove a stored blob. Missing blobs are not an error."""

    @abstractmethod
    def exists(self, reference: str) -> bool:
        """Check whether a reference resolves to stored bytes."""


class LocalBlobStore(BlobStore):
    """
    Local filesystem storage.

    Blobs are written flat under ``base_path`` as ``<uuid4><ext>``, keeping
    the original extension as a content-type hint. The reference is the
    file name relative to ``base_path``.
    """

    def __init__(self, base_path: str | Path) -> None:
        self.base_path = Path(base_path)

    def _resolve(self, reference: str) -> Path:
        path = (self.base_path / reference).resolve()
        if self.base_path.resolve() not in path.parents:
            raise StorageError("Blob reference escapes the storage root", reference=reference)
        return path

    def put(self, content: bytes, filename: str) -> str:
        ext = Path(filename or "").suffix.lower()
        reference = f"{uuid.uuid4().hex}{ext}"
        target = self.base_path / reference
        temp_path = target.with_name(target.name + ".tmp")
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            temp_path.write_bytes(content)
            os.replace(temp_path, target)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            logger.error("Blob write failed ref=%s: %s", reference, exc)
            raise StorageError(f"Failed to store file: {exc.strerror or exc}", reference=reference) from exc
        logger.debug("Blob stored ref=%s size=%d", reference, len(content))
        return reference

    def get(self, reference: str) -> bytes:
        path = self._resolve(reference)
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.error("Blob read failed ref=%s: %s", reference, exc)
            raise StorageError("File not found or not readable", reference=reference) from exc

    def delete(self, reference: str) -> None:
        path = self._resolve(reference)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete file: {exc.strerror or exc}", reference=reference) from exc

    def exists(self, reference: str) -> bool:
        try:
            return self._resolve(reference).is_file()
        except StorageError:
            return False


def init_blob_store(app: Flask, store: BlobStore | None = None) -> BlobStore:
    """Attach a blob store to the app (LocalBlobStore from config by default)."""
    if store is None:
        store = LocalBlobStore(app.config["BLOB_STORAGE_PATH"])
    app.extensions[_EXTENSION_KEY] = store
    return store


def get_blob_store() -> BlobStore:
    """Return the blob store registered on the current app."""
    store = current_app.extensions.get(_EXTENSION_KEY)
    if store is None:
        store = init_blob_store(current_app)
    return store
