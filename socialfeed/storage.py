"""
Storage abstraction for S3-compatible object stores (MinIO, AWS) and in-memory testing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from socialfeed.errors import StorageError

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectNotFound(Exception):
    """Raised when the requested object does not exist in the bucket."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(path)


@dataclass
class StoredObject:
    body: bytes
    content_type: Optional[str] = None


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def ensure_bucket(self) -> None:
        ...

    def upload_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        ...

    def get_object(self, path: str) -> StoredObject:
        ...

    def delete_object(self, path: str) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    stored_objects: dict = field(default_factory=dict)
    cache_controls: dict = field(default_factory=dict)

    def ensure_bucket(self) -> None:
        return None

    def upload_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        self.stored_objects[path] = StoredObject(body=bytes(data), content_type=content_type)
        self.cache_controls[path] = cache_control

    def get_object(self, path: str) -> StoredObject:
        stored = self.stored_objects.get(path)
        if stored is None:
            raise ObjectNotFound(path)
        return stored

    def delete_object(self, path: str) -> None:
        # S3 deletes are idempotent; mirror that.
        self.stored_objects.pop(path, None)
        self.cache_controls.pop(path, None)


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client. Uses path-style addressing so MinIO
    endpoints without per-bucket DNS work.
    """

    bucket: str
    endpoint: str
    region: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "path"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            logger.info("Bucket '%s' already exists", self.bucket)
            return
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code not in _MISSING_OBJECT_CODES and code != "NoSuchBucket":
                raise StorageError("Storage configuration error") from exc
        except BotoCoreError as exc:
            raise StorageError("Storage configuration error") from exc

        try:
            if self.region and self.region != "us-east-1":
                self._client.create_bucket(
                    Bucket=self.bucket,
                    CreateBucketConfiguration={"LocationConstraint": self.region},
                )
            else:
                self._client.create_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Storage configuration error") from exc
        logger.info("Bucket '%s' created", self.bucket)

    def upload_bytes(
        self,
        path: str,
        data: bytes,
        *,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        params = {
            "Bucket": self.bucket,
            "Key": path,
            "Body": data,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to upload image") from exc

    def get_object(self, path: str) -> StoredObject:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=path)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in _MISSING_OBJECT_CODES:
                raise ObjectNotFound(path) from exc
            raise StorageError("Failed to read image") from exc
        except BotoCoreError as exc:
            raise StorageError("Failed to read image") from exc
        return StoredObject(
            body=response["Body"].read(),
            content_type=response.get("ContentType"),
        )

    def delete_object(self, path: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=path)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to delete image") from exc
