"""
Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to, so the API layer can translate
any of them with a single exception handler instead of scattering
HTTPException calls through the core.
"""

from typing import Optional


class EventDropError(Exception):
    """Base class for all expected, request-scoped failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EventDropError):
    """A required field or file is missing or malformed."""
    status_code = 400


class UploadTooLargeError(ValidationError):
    """The incoming upload exceeded the configured size cap."""
    status_code = 413


class AuthError(EventDropError):
    """The admin secret was missing or wrong."""
    status_code = 403


class NotFoundError(EventDropError):
    """The requested event does not exist."""
    status_code = 404


class StorageError(EventDropError):
    """
    Raised when an object store operation fails.

    The underlying exception is kept on `cause` so callers can surface
    its text without re-parsing the message.
    """
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class PersistenceError(EventDropError):
    """The event registry document could not be read or written."""
    status_code = 500
