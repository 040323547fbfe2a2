"""
Guest upload flow and the admin browse view.

Contains the upload handler (stage, forward, clean up) and the link service
that turns stored uploads into signed retrieval URLs.
"""

from .handler import (
    UploadHandler,
    UploadReceipt,
    UploadState,
    build_upload_key,
    safe_filename,
    upload_prefix,
)
from .links import LinkService, UploadLink, guest_link

__all__ = [
    "UploadHandler",
    "UploadReceipt",
    "UploadState",
    "build_upload_key",
    "safe_filename",
    "upload_prefix",
    "LinkService",
    "UploadLink",
    "guest_link",
]
