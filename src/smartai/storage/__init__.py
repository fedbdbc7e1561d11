"""Durable blob persistence for the response cache and query history.

Both stores serialise their whole state into a single blob and overwrite it
on every mutation. This package provides the key/value contract they write
through and two backends:

* :class:`FileBlobStore` -- one file per key, written atomically with
  :func:`smartai.config.atomic_write`.
* :class:`DiskCacheBlobStore` -- blobs kept in a :mod:`diskcache` directory.

:func:`create_blob_store` selects a backend from
:class:`~smartai.models.StorageConfig`.
"""

from smartai.storage.blob import (
    BlobStore,
    DiskCacheBlobStore,
    FileBlobStore,
    create_blob_store,
)

__all__ = ["BlobStore", "DiskCacheBlobStore", "FileBlobStore", "create_blob_store"]
