"""Blob storage for item documents and images.

Two backends share one interface: ``upload`` returns the stored document
record, ``delete`` removes one object by path and ``delete_all`` removes
everything under a key prefix. ``S3BlobStore`` talks to S3 (or an S3
compatible service such as R2 through ``S3_ENDPOINT_URL``); ``LocalBlobStore``
keeps files under ``BLOB_DIR`` and is served at ``/files``.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import BinaryIO
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.clock import utcnow
from ..core.config import settings
from ..core.enums import DocumentType
from ..core.errors import StoreIOError
from ..schemas.item import ItemDocument

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/files"


def item_prefix(item_id: str) -> str:
    return f"items/{item_id}"


def _stored_name(filename: str) -> str:
    suffix = PurePosixPath(filename).suffix.lower()
    return f"{uuid4().hex}{suffix}"


def _join(prefix: str, name: str) -> str:
    return f"{prefix.strip('/')}/{name}"


class BlobStore:
    def upload(
        self,
        filename: str,
        content_type: str | None,
        stream: BinaryIO,
        key_prefix: str,
        *,
        now: datetime | None = None,
    ) -> ItemDocument:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def delete_all(self, key_prefix: str) -> int:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    def __init__(self, root: Path, url_prefix: str = LOCAL_URL_PREFIX) -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"path {path!r} escapes the blob directory")
        return target

    def upload(self, filename, content_type, stream, key_prefix, *, now=None):
        name = _stored_name(filename)
        path = _join(key_prefix, name)
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as handle:
                shutil.copyfileobj(stream, handle)
            size = target.stat().st_size
        except OSError as exc:
            raise StoreIOError(f"could not store {filename!r}", operation="blob_upload") from exc
        logger.info("blob.uploaded", extra={"extra_data": {"path": path, "size": size}})
        return ItemDocument(
            id=name,
            name=filename,
            url=f"{self.url_prefix}/{path}",
            path=path,
            type=DocumentType.from_content_type(content_type),
            size=size,
            upload_date=now or utcnow(),
        )

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreIOError(f"could not delete {path!r}", operation="blob_delete") from exc
        logger.info("blob.deleted", extra={"extra_data": {"path": path}})

    def delete_all(self, key_prefix: str) -> int:
        folder = self._resolve(key_prefix)
        if not folder.is_dir():
            return 0
        count = sum(1 for entry in folder.rglob("*") if entry.is_file())
        try:
            shutil.rmtree(folder)
        except OSError as exc:
            raise StoreIOError(f"could not delete {key_prefix!r}", operation="blob_delete_all") from exc
        logger.info("blob.prefix_deleted", extra={"extra_data": {"prefix": key_prefix, "count": count}})
        return count


class S3BlobStore(BlobStore):
    def __init__(self, bucket: str, client=None, public_url: str | None = None) -> None:
        self.bucket = bucket
        self.client = client or boto3.client(
            "s3",
            region_name=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
        )
        self.public_url = (public_url or "").rstrip("/") or None

    def _url(self, path: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{path}"
        if settings.S3_ENDPOINT_URL:
            return f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.amazonaws.com/{path}"

    def upload(self, filename, content_type, stream, key_prefix, *, now=None):
        name = _stored_name(filename)
        path = _join(key_prefix, name)
        body = stream.read()
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=body,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("blob.upload_failed", extra={"extra_data": {"bucket": self.bucket, "path": path}})
            raise StoreIOError(f"could not upload {filename!r}", operation="blob_upload") from exc
        logger.info("blob.uploaded", extra={"extra_data": {"bucket": self.bucket, "path": path, "size": len(body)}})
        return ItemDocument(
            id=name,
            name=filename,
            url=self._url(path),
            path=path,
            type=DocumentType.from_content_type(content_type),
            size=len(body),
            upload_date=now or utcnow(),
        )

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as exc:
            raise StoreIOError(f"could not delete {path!r}", operation="blob_delete") from exc
        logger.info("blob.deleted", extra={"extra_data": {"bucket": self.bucket, "path": path}})

    def delete_all(self, key_prefix: str) -> int:
        prefix = key_prefix.strip("/") + "/"
        deleted = 0
        token: str | None = None
        try:
            while True:
                kwargs = {"Bucket": self.bucket, "Prefix": prefix}
                if token:
                    kwargs["ContinuationToken"] = token
                page = self.client.list_objects_v2(**kwargs)
                keys = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
                if keys:
                    self.client.delete_objects(Bucket=self.bucket, Delete={"Objects": keys, "Quiet": True})
                    deleted += len(keys)
                if not page.get("IsTruncated"):
                    break
                token = page.get("NextContinuationToken")
        except (BotoCoreError, ClientError) as exc:
            raise StoreIOError(f"could not delete {key_prefix!r}", operation="blob_delete_all") from exc
        logger.info("blob.prefix_deleted", extra={"extra_data": {"prefix": prefix, "count": deleted}})
        return deleted


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    if settings.BLOB_BACKEND == "s3":
        bucket = settings.s3_bucket_name
        if not bucket:
            raise RuntimeError("BLOB_BACKEND=s3 requires S3_BUCKET or R2_BUCKET")
        return S3BlobStore(bucket, public_url=settings.S3_PUBLIC_URL)
    return LocalBlobStore(settings.blob_dir)
