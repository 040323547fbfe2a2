"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock mode enables local development without a bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    app_title: str = "EventDrop API"
    app_version: str = "0.1.0"
    port: int = Field(
        default=3000,
        description="Listen port when run directly with python -m eventdrop.main"
    )
    public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for guest links. Falls back to the request's base URL."
    )

    # Admin
    admin_password: str = Field(
        default="",
        description="Shared secret for the admin console. Required."
    )

    # S3 Storage Configuration
    s3_access_key_id: str = Field(
        default="",
        description="Access key ID"
    )
    s3_secret_access_key: str = Field(
        default="",
        description="Secret access key"
    )
    s3_region: str = Field(
        default="us-east-1",
        description="Bucket region"
    )
    s3_bucket_name: str = Field(
        default="eventdrop-uploads",
        description="Bucket for guest uploads and event backgrounds"
    )
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint for S3-compatible stores (R2, MinIO). Leave unset for AWS."
    )
    s3_public_base_url: Optional[str] = Field(
        default=None,
        description="Override for public object URLs, e.g. a CDN in front of the bucket."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of a real bucket. Enables local dev without storage."
    )

    # Event registry
    events_file: str = Field(
        default="events.json",
        description="Path of the JSON document holding all events"
    )

    # Upload behavior
    staging_dir: Optional[str] = Field(
        default=None,
        description="Directory for upload staging files. System temp dir if unset."
    )
    signed_url_ttl_seconds: int = Field(
        default=3600,
        description="Lifetime of retrieval links shown in the admin photo list"
    )
    max_upload_size_mb: int = Field(
        default=200,
        description="Maximum size of a single guest upload in MB"
    )
    upload_requires_existing_event: bool = Field(
        default=True,
        description="Reject uploads for event ids that are not in the registry"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.admin_password:
            missing.append("ADMIN_PASSWORD")

        # S3 credentials only required if not in mock mode
        if not self.storage_mock_mode:
            if not self.s3_access_key_id:
                missing.append("S3_ACCESS_KEY_ID")
            if not self.s3_secret_access_key:
                missing.append("S3_SECRET_ACCESS_KEY")
            if not self.s3_bucket_name:
                missing.append("S3_BUCKET_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
