"""Blob store implementations.

- ``S3BlobStore``: S3-compatible bucket via ``boto3`` (AWS, MinIO).
- ``InMemoryBlobStore``: process-local dictionary, for development and tests.

``get_blob_store()`` returns the process-wide instance selected by
``settings.BLOB_STORE["BACKEND"]``.
"""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import Dict, Optional, Tuple

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from shared.domain.storage import BlobStoreError, IBlobStore

logger = structlog.get_logger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3BlobStore(IBlobStore):
    """Store blobs in an S3-compatible bucket.

    The boto3 client is created lazily and reused; boto3 clients are
    thread-safe, so one instance serves every request worker.
    """

    def __init__(
        self,
        bucket: str,
        region_name: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
    ) -> None:
        self.bucket = bucket
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._aws_access_key_id = aws_access_key_id
        self._aws_secret_access_key = aws_secret_access_key
        self._client = None
        self._client_lock = threading.Lock()

    def _get_client(self):
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    kwargs = {"region_name": self._region_name}
                    if self._endpoint_url:
                        kwargs["endpoint_url"] = self._endpoint_url
                    if self._aws_access_key_id:
                        kwargs["aws_access_key_id"] = self._aws_access_key_id
                    if self._aws_secret_access_key:
                        kwargs["aws_secret_access_key"] = self._aws_secret_access_key
                    self._client = boto3.client("s3", **kwargs)
        return self._client

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self._get_client().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError("put", key, str(exc)) from exc
        logger.info("blob.stored", bucket=self.bucket, key=key, size=len(data))

    def delete(self, key: str) -> None:
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError("delete", key, str(exc)) from exc
        logger.info("blob.deleted", bucket=self.bucket, key=key)

    def exists(self, key: str) -> bool:
        try:
            self._get_client().head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise BlobStoreError("head", key, str(exc)) from exc
        except BotoCoreError as exc:
            raise BlobStoreError("head", key, str(exc)) from exc
        return True

    def signed_read_url(self, key: str, ttl: int) -> str:
        try:
            return self._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError("sign", key, str(exc)) from exc

    def ping(self) -> None:
        try:
            self._get_client().head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            raise BlobStoreError("head_bucket", self.bucket, str(exc)) from exc


class InMemoryBlobStore(IBlobStore):
    """Dictionary-backed blob store.

    Signed URLs use a ``memory://`` scheme; they are well-formed but not
    fetchable.
    """

    def __init__(self, bucket: str = "memory") -> None:
        self.bucket = bucket
        self._objects: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: str) -> None:
        with self._lock:
            self._objects[key] = (bytes(data), content_type)
        logger.info("blob.stored", bucket=self.bucket, key=key, size=len(data))

    def delete(self, key: str) -> None:
        with self._lock:
            self._objects.pop(key, None)
        logger.info("blob.deleted", bucket=self.bucket, key=key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._objects

    def signed_read_url(self, key: str, ttl: int) -> str:
        return f"memory://{self.bucket}/{key}?expires={ttl}"

    def ping(self) -> None:
        return None

    def get(self, key: str) -> Optional[Tuple[bytes, str]]:
        with self._lock:
            return self._objects.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)

    def clear(self) -> None:
        with self._lock:
            self._objects.clear()


@lru_cache(maxsize=1)
def get_blob_store() -> IBlobStore:
    """Build the configured blob store once per process."""
    conf = settings.BLOB_STORE
    backend = conf.get("BACKEND", "s3")
    if backend == "memory":
        return InMemoryBlobStore(bucket=conf.get("BUCKET_NAME") or "memory")
    if backend == "s3":
        return S3BlobStore(
            bucket=conf["BUCKET_NAME"],
            region_name=conf.get("REGION") or "us-east-1",
            endpoint_url=conf.get("ENDPOINT_URL") or None,
            aws_access_key_id=conf.get("ACCESS_KEY") or None,
            aws_secret_access_key=conf.get("SECRET_ACCESS_KEY") or None,
        )
    raise ValueError(f"Unknown BLOB_STORE backend: {backend!r}")
