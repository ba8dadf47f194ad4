"""Blob storage interface.

Keys are opaque strings chosen by the caller.  Implementations raise
``BlobStoreError`` for every backend failure so callers never depend on
a vendor SDK's exception hierarchy.
"""

from __future__ import annotations

from typing import Protocol


class BlobStoreError(Exception):
    """A blob backend operation failed (network, credentials, missing bucket)."""

    def __init__(self, operation: str, key: str, detail: str) -> None:
        self.operation = operation
        self.key = key
        self.detail = detail
        super().__init__(f"Blob {operation} failed for key '{key}': {detail}")


class IBlobStore(Protocol):
    """Object storage contract used for product images."""

    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def signed_read_url(self, key: str, ttl: int) -> str: ...

    def ping(self) -> None: ...
