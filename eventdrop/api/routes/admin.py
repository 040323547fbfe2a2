"""
Admin console endpoints.

Every action except the static console page requires the shared admin
secret, sent either as the `password` form/query field or in the
X-Admin-Password header.

Creating an event uploads its background image as a public object (guest
pages link to it directly), records the event, and returns the guest link
with a QR code for printing.
"""

import asyncio
import logging
import time
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import HTMLResponse

from ...core.errors import ValidationError
from ...core.events.models import is_valid_event_id
from ...core.uploads.handler import DEFAULT_CONTENT_TYPE, safe_filename
from ...core.uploads.links import guest_link
from ...infrastructure.qr import qr_data_uri
from ..dependencies import (
    AdminHeaderDep,
    EventRegistryDep,
    LinkServiceDep,
    PublicBaseUrlDep,
    SettingsDep,
    StorageClientDep,
    check_admin_password,
)
from ..pages import (
    admin_console_page,
    event_created_page,
    event_list_page,
    photo_list_page,
)

logger = logging.getLogger(__name__)

router = APIRouter()

BACKGROUNDS_ROOT = "backgrounds"


def background_key(filename: Optional[str], timestamp_ms: int) -> str:
    return f"{BACKGROUNDS_ROOT}/{timestamp_ms}_{safe_filename(filename)}"


@router.get(
    "",
    response_class=HTMLResponse,
    summary="Admin console",
)
async def admin_console() -> HTMLResponse:
    return HTMLResponse(admin_console_page())


@router.post(
    "/create",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
    summary="Create an event",
)
async def create_event(
    settings: SettingsDep,
    registry: EventRegistryDep,
    storage: StorageClientDep,
    base_url: PublicBaseUrlDep,
    header_password: AdminHeaderDep,
    event_name: Annotated[Optional[str], Form(alias="eventName")] = None,
    event_date: Annotated[Optional[str], Form(alias="eventDate")] = None,
    event_place: Annotated[Optional[str], Form(alias="eventPlace")] = None,
    password: Annotated[Optional[str], Form()] = None,
    bg_photo: Annotated[Optional[UploadFile], File(alias="bgPhoto")] = None,
) -> HTMLResponse:
    """
    Create an event with a branded background.

    The background goes to storage first so the registry never points at
    an image that failed to upload. Registry write failures surface as 500.
    """
    check_admin_password(settings, password, header_password)

    missing = [
        field_name
        for field_name, value in (
            ("eventName", event_name),
            ("eventDate", event_date),
            ("eventPlace", event_place),
        )
        if not value or not value.strip()
    ]
    if bg_photo is None or not bg_photo.filename:
        missing.append("bgPhoto")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    try:
        background_url = await storage.put_object(
            background_key(bg_photo.filename, int(time.time() * 1000)),
            bg_photo.file,
            bg_photo.content_type or DEFAULT_CONTENT_TYPE,
            public=True,
        )
    finally:
        await bg_photo.close()

    # Blocks on the registry lock; keep it off the event loop.
    event = await asyncio.to_thread(
        registry.create,
        event_name.strip(),
        event_date.strip(),
        event_place.strip(),
        background_url,
    )

    link = guest_link(base_url, event.id)

    logger.info(
        "Event created via admin console",
        extra={"event_id": event.id, "guest_link": link},
    )

    return HTMLResponse(event_created_page(event, link, qr_data_uri(link)))


@router.post(
    "/events",
    response_class=HTMLResponse,
    summary="List all events",
)
async def list_events(
    settings: SettingsDep,
    registry: EventRegistryDep,
    base_url: PublicBaseUrlDep,
    header_password: AdminHeaderDep,
    password: Annotated[Optional[str], Form()] = None,
) -> HTMLResponse:
    check_admin_password(settings, password, header_password)

    entries = [(event, guest_link(base_url, event.id)) for event in registry.list_all()]

    # Photo links carry the form password, not the header one.
    return HTMLResponse(event_list_page(entries, password))


@router.get(
    "/photos/{event_id}",
    response_class=HTMLResponse,
    summary="List an event's uploads",
)
async def list_photos(
    event_id: str,
    settings: SettingsDep,
    registry: EventRegistryDep,
    links: LinkServiceDep,
    header_password: AdminHeaderDep,
    password: Annotated[Optional[str], Query()] = None,
) -> HTMLResponse:
    """Signed, time-limited links to everything guests uploaded for an event."""
    check_admin_password(settings, password, header_password)
    if not is_valid_event_id(event_id):
        raise ValidationError(f"Malformed event id: {event_id!r}")

    uploads = await links.list_uploads(event_id, settings.signed_url_ttl_seconds)

    return HTMLResponse(photo_list_page(registry.find_by_id(event_id), event_id, uploads))
