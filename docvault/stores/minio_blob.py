"""Blob store backed by a MinIO / S3-compatible bucket."""

import io
from datetime import timedelta
from typing import Optional, Sequence

from fastapi.concurrency import run_in_threadpool
from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from docvault.core.config import settings
from docvault.core.exceptions import ConflictError, NotFoundError, TransportError
from docvault.core.logging import get_logger
from docvault.stores.base import BlobStoreBase

logger = get_logger("stores.blob")

MISSING_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}

# Library errors that mean "the storage service failed"
STORAGE_ERRORS = (MinioException, Urllib3HTTPError, OSError)


def build_client() -> Minio:
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )


class MinioBlobStore(BlobStoreBase):
    """Put/remove/sign against one bucket. The blocking client runs in the threadpool."""

    def __init__(self, client: Optional[Minio] = None, bucket: Optional[str] = None):
        self.client = client or build_client()
        self.bucket = bucket or settings.MINIO_BUCKET

    def ensure_bucket(self) -> None:
        """Create the bucket if it doesn't exist."""
        try:
            if not self.client.bucket_exists(bucket_name=self.bucket):
                self.client.make_bucket(bucket_name=self.bucket)
        except STORAGE_ERRORS as e:
            raise TransportError(f"Bucket check failed: {e}") from e

    def _exists(self, path: str) -> bool:
        try:
            self.client.stat_object(bucket_name=self.bucket, object_name=path)
            return True
        except S3Error as e:
            if e.code in MISSING_CODES:
                return False
            raise

    def _put(self, path: str, data: bytes, content_type: str) -> None:
        if self._exists(path):
            raise ConflictError(f"Object already exists: {path}")
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=path,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type or "application/octet-stream",
        )

    def _remove(self, paths: Sequence[str]) -> None:
        for path in paths:
            try:
                self.client.remove_object(bucket_name=self.bucket, object_name=path)
            except S3Error as e:
                if e.code not in MISSING_CODES:
                    raise
                logger.debug("remove(%s): already gone", path)

    def _sign(self, path: str, ttl_seconds: int) -> str:
        if not self._exists(path):
            raise NotFoundError(f"No object at {path}")
        return self.client.presigned_get_object(
            bucket_name=self.bucket,
            object_name=path,
            expires=timedelta(seconds=ttl_seconds),
        )

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await run_in_threadpool(self._put, path, data, content_type)
        except STORAGE_ERRORS as e:
            raise TransportError(f"Failed to upload {path}: {e}") from e

    async def remove(self, paths: Sequence[str]) -> None:
        try:
            await run_in_threadpool(self._remove, list(paths))
        except STORAGE_ERRORS as e:
            raise TransportError(f"Failed to remove {list(paths)}: {e}") from e

    async def sign(self, path: str, ttl_seconds: int) -> str:
        try:
            return await run_in_threadpool(self._sign, path, ttl_seconds)
        except STORAGE_ERRORS as e:
            raise TransportError(f"Failed to sign {path}: {e}") from e
