# app/services/storage.py
"""
Object storage: one directory per bucket under settings.STORAGE_ROOT.
Objects are served back through settings.STORAGE_PUBLIC_URL, so the public
URL of bucket/path is {STORAGE_PUBLIC_URL}/{bucket}/{path}.

Buckets are created by scripts/setup/init_db.py or at startup when
STORAGE_AUTO_CREATE_BUCKETS is on. Uploading into a bucket that does not
exist raises BucketNotFoundError.
"""

import os
from typing import Iterable

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)


class StorageError(Exception):
    """Any failure writing to or removing from object storage."""


class BucketNotFoundError(StorageError):
    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Bucket not found: {bucket}")


class LocalObjectStorage:
    def __init__(self, root: str, public_url: str):
        self.root = os.path.abspath(root)
        self.public_url = public_url.rstrip("/")

    # ── Buckets ──────────────────────────────────────────────────────────
    def _bucket_dir(self, bucket: str) -> str:
        if not bucket or "/" in bucket or bucket in (".", ".."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        return os.path.join(self.root, bucket)

    def bucket_exists(self, bucket: str) -> bool:
        return os.path.isdir(self._bucket_dir(bucket))

    def create_bucket(self, bucket: str) -> None:
        os.makedirs(self._bucket_dir(bucket), exist_ok=True)
        logger.info(f"[STORAGE] Bucket ready: {bucket}")

    def ensure_buckets(self, buckets: Iterable[str]) -> None:
        for bucket in buckets:
            if not self.bucket_exists(bucket):
                self.create_bucket(bucket)

    # ── Objects ──────────────────────────────────────────────────────────
    def _object_path(self, bucket: str, path: str) -> str:
        bucket_dir = self._bucket_dir(bucket)
        full = os.path.abspath(os.path.join(bucket_dir, path))
        if not full.startswith(bucket_dir + os.sep):
            raise StorageError(f"Object path escapes bucket: {path}")
        return full

    def upload(self, bucket: str, path: str, data: bytes,
               content_type: str = "application/octet-stream", upsert: bool = False) -> str:
        """Write an object and return its storage path."""
        if not self.bucket_exists(bucket):
            raise BucketNotFoundError(bucket)

        full = self._object_path(bucket, path)
        if os.path.exists(full) and not upsert:
            raise StorageError(f"Object already exists: {bucket}/{path}")

        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Could not write {bucket}/{path}: {e}") from e

        logger.info(f"[STORAGE] Saved {bucket}/{path} ({len(data)} bytes, {content_type})")
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_url}/{bucket}/{path.lstrip('/')}"

    def exists(self, bucket: str, path: str) -> bool:
        return os.path.isfile(self._object_path(bucket, path))

    def remove(self, bucket: str, paths: Iterable[str]) -> int:
        """Delete objects; missing ones are ignored. Returns how many were removed."""
        removed = 0
        for path in paths:
            full = self._object_path(bucket, path)
            try:
                os.remove(full)
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageError(f"Could not remove {bucket}/{path}: {e}") from e
        if removed:
            logger.info(f"[STORAGE] Removed {removed} object(s) from {bucket}")
        return removed


_storage = LocalObjectStorage(settings.STORAGE_ROOT, settings.STORAGE_PUBLIC_URL)


def get_storage() -> LocalObjectStorage:
    """FastAPI dependency: the shared storage client (stateless, nothing to close)."""
    return _storage
