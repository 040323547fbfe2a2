"""
Object storage integration for guest uploads and event backgrounds.

Supports AWS S3 and S3-compatible stores via the S3 API.
Includes mock mode for local development without credentials.
"""

from ...core.errors import StorageError
from .client import (
    MockStorageClient,
    S3StorageClient,
    StorageClient,
    StorageConfig,
    StoredObject,
    create_storage_client,
)

__all__ = [
    "MockStorageClient",
    "S3StorageClient",
    "StorageClient",
    "StorageConfig",
    "StorageError",
    "StoredObject",
    "create_storage_client",
]
