"""
Guest links and the admin browse view.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from .handler import upload_prefix

logger = logging.getLogger(__name__)


class ListedObject(Protocol):
    key: str
    size: int
    last_modified: Optional[datetime]


class ObjectBrowser(Protocol):
    async def list_by_prefix(self, prefix: str) -> list[ListedObject]: ...

    async def signed_retrieval_url(self, key: str, ttl_seconds: int = 3600) -> str: ...


@dataclass(frozen=True)
class UploadLink:
    """A stored upload as shown to the admin."""
    display_name: str
    signed_url: str
    size: int
    last_modified: Optional[datetime]


def guest_link(base_url: str, event_id: str) -> str:
    """Public URL guests open to upload for an event."""
    return f"{base_url.rstrip('/')}/event/{event_id}"


class LinkService:
    """Lists an event's uploads with time-limited retrieval links."""

    def __init__(self, storage: ObjectBrowser) -> None:
        self._storage = storage

    async def list_uploads(self, event_id: str, ttl_seconds: int = 3600) -> list[UploadLink]:
        """
        Sign every object under the event's upload prefix.

        Order follows the store's listing order. No uploads yields an
        empty list. StorageError from either call propagates.
        """
        objects = await self._storage.list_by_prefix(upload_prefix(event_id))

        links = []
        for obj in objects:
            url = await self._storage.signed_retrieval_url(obj.key, ttl_seconds)
            links.append(UploadLink(
                display_name=obj.key.rsplit("/", 1)[-1],
                signed_url=url,
                size=obj.size,
                last_modified=obj.last_modified,
            ))

        logger.debug(
            "Listed uploads",
            extra={"event_id": event_id, "count": len(links)},
        )

        return links
