"""Blob store backends: atomic files or a diskcache directory.

The cache and history only need two operations from durable storage --
read a whole blob by key and overwrite a whole blob by key. Reads never
raise: a missing or unreadable blob is reported as ``None`` so callers can
fall back to an empty state. Writes raise
:class:`~smartai.exceptions.PersistenceError` and leave it to the caller to
decide whether the failure matters.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import diskcache

from smartai.config import atomic_write
from smartai.exceptions import PersistenceError
from smartai.models import StorageConfig

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Key/value store for opaque byte blobs."""

    @abstractmethod
    def read_blob(self, key: str) -> Optional[bytes]:
        """Return the blob stored under *key*, or ``None`` if absent or unreadable."""

    @abstractmethod
    def write_blob(self, key: str, data: bytes) -> None:
        """Overwrite the blob stored under *key*.

        Raises:
            PersistenceError: If the blob could not be written.
        """

    def close(self) -> None:
        """Release any resources held by the backend."""


class FileBlobStore(BlobStore):
    """Stores each blob as ``<directory>/<key>``.

    Writes go through :func:`~smartai.config.atomic_write`, so a reader sees
    either the previous blob or the new one, never a partial file (on POSIX
    filesystems).

    Args:
        directory: Directory holding the blob files. Created on first write.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise PersistenceError(f"Invalid blob key: {key!r}")
        return self._directory / key

    def read_blob(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            return None

    def write_blob(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            atomic_write(path, data)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc


class DiskCacheBlobStore(BlobStore):
    """Stores blobs in a :class:`diskcache.Cache` under ``<directory>/blobs``.

    Useful on filesystems where many small atomic renames are slow; diskcache
    keeps its own SQLite index and handles concurrent writers.

    Args:
        directory: Root directory for the diskcache database.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) / "blobs"
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def read_blob(self, key: str) -> Optional[bytes]:
        if self._cache is None:
            return None
        try:
            value = self._cache.get(key)
        except (OSError, sqlite3.Error) as exc:
            logger.warning("Cannot read blob '%s' from %s: %s", key, self._directory, exc)
            return None
        if value is None or not isinstance(value, bytes):
            return None
        return value

    def write_blob(self, key: str, data: bytes) -> None:
        if self._cache is None:
            raise PersistenceError(f"Blob store at {self._directory} is closed")
        try:
            self._cache.set(key, data)
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(
                f"Cannot write blob '{key}' to {self._directory}: {exc}"
            ) from exc

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None


def create_blob_store(config: StorageConfig, directory: str | Path) -> BlobStore:
    """Build the blob backend selected by *config* rooted at *directory*."""
    if config.backend == "diskcache":
        return DiskCacheBlobStore(directory)
    return FileBlobStore(directory)
