"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests via app.dependency_overrides
- Configuration is centralized

Each dependency is a function that FastAPI calls when needed.
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.errors import AuthError
from ..core.uploads.handler import UploadHandler
from ..core.uploads.links import LinkService
from ..infrastructure.registry.json_registry import JsonEventRegistry
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)

# Header alternative to the password form field
admin_password_header = APIKeyHeader(name="X-Admin-Password", auto_error=False)

# One storage client per process (mock objects must outlive a request)
_storage_client: Optional[StorageClient] = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def check_admin_password(settings: Settings, *candidates: Optional[str]) -> None:
    """
    Validate the admin secret.

    The first non-empty candidate is compared (constant time) against the
    configured secret. Raises AuthError (403) if the secret is missing,
    wrong, or not configured at all.
    """
    supplied = next((candidate for candidate in candidates if candidate), None)

    if not settings.admin_password:
        logger.error("Admin request rejected: ADMIN_PASSWORD is not configured")
        raise AuthError("Admin access is not configured.")

    if not supplied or not secrets.compare_digest(
        supplied.encode("utf-8"), settings.admin_password.encode("utf-8")
    ):
        logger.warning("Invalid admin password attempt")
        raise AuthError("Wrong password.")


async def get_admin_header(
    password: Optional[str] = Security(admin_password_header),
) -> Optional[str]:
    return password


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_event_registry(
    settings: Annotated[Settings, Depends(get_settings)],
) -> JsonEventRegistry:
    """
    Provide the JSON event registry.

    Instances are cheap; writers on the same file share one lock
    regardless of which instance they go through.
    """
    return JsonEventRegistry(settings.events_file)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for uploads and listings.

    Returns either the S3 client or the mock client based on settings.
    """
    global _storage_client

    if _storage_client is None:
        if settings.storage_mock_mode:
            _storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client")
        else:
            config = StorageConfig(
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
                bucket_name=settings.s3_bucket_name,
                region=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
                public_base_url=settings.s3_public_base_url,
            )
            _storage_client = create_storage_client(config=config)
            logger.info("Created S3 storage client")

    return _storage_client


def reset_storage_client() -> None:
    """Drop the shared storage client (tests, config reloads)."""
    global _storage_client
    _storage_client = None


def get_upload_handler(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    registry: Annotated[JsonEventRegistry, Depends(get_event_registry)],
) -> UploadHandler:
    return UploadHandler(
        storage=storage,
        events=registry,
        staging_dir=settings.staging_dir,
        max_size_bytes=settings.max_upload_size_bytes,
        require_existing_event=settings.upload_requires_existing_event,
    )


def get_link_service(
    storage: Annotated[StorageClient, Depends(get_storage_client)],
) -> LinkService:
    return LinkService(storage)


def get_public_base_url(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Base URL for guest links: configured value, else where we were reached."""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
EventRegistryDep = Annotated[JsonEventRegistry, Depends(get_event_registry)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
UploadHandlerDep = Annotated[UploadHandler, Depends(get_upload_handler)]
LinkServiceDep = Annotated[LinkService, Depends(get_link_service)]
PublicBaseUrlDep = Annotated[str, Depends(get_public_base_url)]
AdminHeaderDep = Annotated[Optional[str], Depends(get_admin_header)]
