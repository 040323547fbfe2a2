"""
Object storage gateway for guest uploads and event backgrounds.

Supports AWS S3 and any S3-compatible store (R2, MinIO) through boto3, with
a mock mode for local development.

This module is the only place that talks to durable binary storage. It
offers three operations:
- put_object: stream content under a key, optionally public-read
- list_by_prefix: enumerate objects under a key prefix
- signed_retrieval_url: time-limited read URL for a private object

Mock mode stores objects in memory, enabling API testing without
provisioning a bucket.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Optional, Protocol
from urllib.parse import quote

from ...core.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    `endpoint_url` is left unset for AWS itself. `public_base_url`
    overrides how public object URLs are built (e.g. a CDN in front of
    the bucket).
    """
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    public_base_url: Optional[str] = None

    @property
    def object_base_url(self) -> str:
        """Base URL that object keys are appended to for public links."""
        if self.public_base_url:
            return self.public_base_url.rstrip("/")
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com"


@dataclass(frozen=True)
class StoredObject:
    """One entry from a prefix listing."""
    key: str
    size: int
    last_modified: datetime


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and we can
    swap storage backends without changing dependent code.
    """

    async def put_object(
        self,
        key: str,
        body: BinaryIO,
        content_type: str,
        public: bool = False,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """Stream content to the store and return its location URL."""
        ...

    async def list_by_prefix(self, prefix: str) -> list[StoredObject]:
        """List every object whose key starts with prefix."""
        ...

    async def signed_retrieval_url(
        self,
        key: str,
        ttl_seconds: int = 3600,
    ) -> str:
        """Generate a temporary download URL."""
        ...


def _object_url(base_url: str, key: str) -> str:
    return f"{base_url}/{quote(key, safe='/')}"


class S3StorageClient:
    """
    S3 object storage client.

    boto3 is synchronous, so every call runs in a worker thread via
    asyncio.to_thread. That keeps the event loop free while a large
    upload streams out, and lets callers simply await the result.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize the boto3 client.

        boto3 is imported here (not at module level) so mock mode does
        not need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for S3 storage. Install with: pip install boto3"
            )

        self._config = config

        boto_config = Config(signature_version="s3v4")

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id or None,
            aws_secret_access_key=config.secret_access_key or None,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url or "aws",
            }
        )

    async def put_object(
        self,
        key: str,
        body: BinaryIO,
        content_type: str,
        public: bool = False,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """
        Stream a file object to the bucket.

        upload_fileobj reads the body in chunks (switching to a multipart
        upload for large files), so the content is never held in memory.
        Public objects get a public-read ACL; everything else stays
        private and is only reachable through signed URLs.
        """
        extra_args: dict = {"ContentType": content_type}
        if public:
            extra_args["ACL"] = "public-read"
        if metadata:
            extra_args["Metadata"] = metadata

        try:
            await asyncio.to_thread(
                self._s3_client.upload_fileobj,
                body,
                self._config.bucket_name,
                key,
                ExtraArgs=extra_args,
            )
        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Upload failed: {e}", cause=e)

        logger.debug(
            "Uploaded object",
            extra={"key": key, "content_type": content_type, "public": public}
        )

        return _object_url(self._config.object_base_url, key)

    async def list_by_prefix(self, prefix: str) -> list[StoredObject]:
        """
        List all objects under a prefix.

        list_objects_v2 returns at most 1000 keys per call, so we follow
        the paginator to the end.
        """
        try:
            return await asyncio.to_thread(self._list_all, prefix)
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"Listing failed: {e}", cause=e)

    def _list_all(self, prefix: str) -> list[StoredObject]:
        paginator = self._s3_client.get_paginator("list_objects_v2")
        objects: list[StoredObject] = []

        for page in paginator.paginate(Bucket=self._config.bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                objects.append(StoredObject(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    last_modified=obj.get("LastModified"),
                ))

        return objects

    async def signed_retrieval_url(
        self,
        key: str,
        ttl_seconds: int = 3600,
    ) -> str:
        """
        Generate a presigned GET URL.

        Expiry is enforced by the store. The object's ACL is untouched.
        """
        try:
            return await asyncio.to_thread(
                self._s3_client.generate_presigned_url,
                "get_object",
                Params={
                    "Bucket": self._config.bucket_name,
                    "Key": key,
                },
                ExpiresIn=ttl_seconds,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": key, "error": str(e)}
            )
            raise StorageError(f"Presigned URL generation failed: {e}", cause=e)


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

MOCK_URL_PREFIX = "mock://storage/"


@dataclass
class _MockObject:
    data: bytes
    content_type: str
    public: bool
    metadata: dict[str, str] = field(default_factory=dict)
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class MockStorageClient:
    """
    In-memory storage for local development.

    Objects are kept in a dict keyed by object key. Listings are returned
    in key order, the same way S3 orders them. "URLs" are mock URIs that
    read_url() can resolve back to bytes.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self) -> None:
        self._objects: dict[str, _MockObject] = {}
        logger.info("Initialized mock storage client (in-memory)")

    async def put_object(
        self,
        key: str,
        body: BinaryIO,
        content_type: str,
        public: bool = False,
        metadata: Optional[dict[str, str]] = None,
    ) -> str:
        """Store object in memory."""
        data = body.read()
        self._objects[key] = _MockObject(
            data=data,
            content_type=content_type,
            public=public,
            metadata=dict(metadata or {}),
        )

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": len(data), "public": public}
        )

        return f"{MOCK_URL_PREFIX}{key}"

    async def list_by_prefix(self, prefix: str) -> list[StoredObject]:
        return [
            StoredObject(key=key, size=len(obj.data), last_modified=obj.last_modified)
            for key, obj in sorted(self._objects.items())
            if key.startswith(prefix)
        ]

    async def signed_retrieval_url(
        self,
        key: str,
        ttl_seconds: int = 3600,
    ) -> str:
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")

        return f"{MOCK_URL_PREFIX}{key}?expires={ttl_seconds}"

    def read_url(self, url: str) -> bytes:
        """Resolve a URL issued by this client back to the stored bytes."""
        if not url.startswith(MOCK_URL_PREFIX):
            raise StorageError(f"Not a mock storage URL: {url}")

        key = url[len(MOCK_URL_PREFIX):].split("?", 1)[0]
        if key not in self._objects:
            raise StorageError(f"Object not found: {key}")

        return self._objects[key].data

    def get_metadata(self, key: str) -> dict[str, str]:
        return dict(self._objects[key].metadata)

    def is_public(self, key: str) -> bool:
        return self._objects[key].public


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
