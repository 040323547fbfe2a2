"""
Guest-facing endpoints.

Guests are unauthenticated: anyone holding an event link can open the upload
page and send photos or videos for that event.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, UploadFile, status
from fastapi.responses import HTMLResponse

from ...core.errors import NotFoundError, ValidationError
from ..dependencies import EventRegistryDep, UploadHandlerDep
from ..pages import guest_upload_page, upload_done_page

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/{event_id}",
    response_class=HTMLResponse,
    summary="Guest upload page",
)
async def event_page(event_id: str, registry: EventRegistryDep) -> HTMLResponse:
    """Render the branded upload form, or 404 for an unknown event."""
    event = registry.find_by_id(event_id)
    if event is None:
        raise NotFoundError("Event not found.")

    return HTMLResponse(guest_upload_page(event))


@router.post(
    "/{event_id}/upload",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload a photo or video for an event",
)
async def upload_for_event(
    event_id: str,
    handler: UploadHandlerDep,
    file: Annotated[Optional[UploadFile], File(description="Photo or video")] = None,
) -> HTMLResponse:
    """
    Stage the guest's file and forward it to object storage.

    Browsers send an empty part with no filename when the file input is
    left blank, so that counts as "no file" too.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded.")

    logger.info(
        "Guest upload started",
        extra={
            "event_id": event_id,
            "upload_filename": file.filename,
            "content_type": file.content_type,
        }
    )

    try:
        await handler.handle_upload(
            event_id=event_id,
            file_stream=file,
            original_filename=file.filename,
            content_type=file.content_type,
        )
    finally:
        await file.close()

    return HTMLResponse(upload_done_page(event_id))
