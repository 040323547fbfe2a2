r"""
Guest upload hand-off.

One call moves one guest file from the incoming request into durable storage:

    RECEIVED -> STAGED -> FORWARDED -> CLEANED
         \         \          \
          +---------+----------+--> FAILED -> CLEANED

The request body is first copied to a local staging file (named by us, never
by the guest), then streamed to the object store under
`uploads/{event_id}/{timestamp_ms}_{filename}`. The staging file is removed
in a `finally` block, so it never outlives the call whatever happens.
"""

import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Optional, Protocol
from urllib.parse import quote

from ..errors import (
    EventDropError,
    NotFoundError,
    StorageError,
    UploadTooLargeError,
    ValidationError,
)
from ..events.models import Event, is_valid_event_id

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"
UPLOADS_ROOT = "uploads"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class UploadState(Enum):
    """Where a single upload request is in its lifecycle."""
    RECEIVED = "received"
    STAGED = "staged"
    FORWARDED = "forwarded"
    FAILED = "failed"
    CLEANED = "cleaned"


class IncomingFile(Protocol):
    """Anything with an async chunked read, e.g. Starlette's UploadFile."""

    async def read(self, size: int = -1) -> bytes: ...


class EventLookup(Protocol):
    def find_by_id(self, event_id: str) -> Optional[Event]: ...


class ObjectWriter(Protocol):
    async def put_object(
        self,
        key: str,
        body: BinaryIO,
        content_type: str,
        public: bool = False,
        metadata: Optional[dict[str, str]] = None,
    ) -> str: ...


@dataclass(frozen=True)
class UploadReceipt:
    """What a successful upload produced."""
    event_id: str
    key: str
    size_bytes: int
    content_type: str
    location: str

    @property
    def display_name(self) -> str:
        return self.key.rsplit("/", 1)[-1]


def upload_prefix(event_id: str) -> str:
    """Key prefix under which all uploads for an event live."""
    return f"{UPLOADS_ROOT}/{event_id}/"


def safe_filename(filename: Optional[str]) -> str:
    """
    Reduce a guest-supplied filename to a single safe key segment.

    Directory parts are dropped (both separators), anything outside
    [A-Za-z0-9._-] becomes '_', and leading dots are stripped so the
    segment can never be '.' or '..'.
    """
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).lstrip(".")
    return name or "upload"


def build_upload_key(event_id: str, filename: Optional[str], timestamp_ms: int) -> str:
    return f"{upload_prefix(event_id)}{timestamp_ms}_{safe_filename(filename)}"


class UploadHandler:
    """
    Stages a guest upload on local disk and forwards it to object storage.

    Handlers hold no per-request state, so one instance serves any number
    of concurrent uploads; each call owns its own staging file.

    Args:
        storage: Object store to forward uploads to.
        events: Registry used for the existence check.
        staging_dir: Directory for staging files (system temp if None).
        max_size_bytes: Reject uploads larger than this (no cap if None).
        require_existing_event: Refuse uploads for ids that are well-formed
            but not in the registry.
        clock: Seconds since the epoch; injectable for tests.
    """

    def __init__(
        self,
        storage: ObjectWriter,
        events: Optional[EventLookup] = None,
        staging_dir: Optional[str] = None,
        max_size_bytes: Optional[int] = None,
        require_existing_event: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if require_existing_event and events is None:
            raise ValueError("events is required when require_existing_event is set")

        self._storage = storage
        self._events = events
        self._staging_dir = staging_dir
        self._max_size_bytes = max_size_bytes
        self._require_existing_event = require_existing_event
        self._clock = clock

    async def handle_upload(
        self,
        event_id: str,
        file_stream: IncomingFile,
        original_filename: Optional[str],
        content_type: Optional[str],
    ) -> UploadReceipt:
        """
        Run one upload through stage, forward and cleanup.

        Raises:
            ValidationError: malformed event id
            NotFoundError: unknown event (when the existence policy is on)
            UploadTooLargeError: body exceeded max_size_bytes
            StorageError: staging or forwarding failed; `cause` holds the
                underlying exception
        """
        self._check_event(event_id)

        content_type = content_type or DEFAULT_CONTENT_TYPE
        state = UploadState.RECEIVED
        staging_path: Optional[str] = None
        self._log_state(event_id, state)

        try:
            if self._staging_dir:
                os.makedirs(self._staging_dir, exist_ok=True)
            fd, staging_path = tempfile.mkstemp(
                dir=self._staging_dir,
                prefix="upload-",
                suffix=".part",
            )
            with os.fdopen(fd, "wb") as staged:
                size_bytes = await self._copy_to_stage(file_stream, staged)
            state = UploadState.STAGED
            self._log_state(event_id, state, staging_path=staging_path, size_bytes=size_bytes)

            key = build_upload_key(event_id, original_filename, int(self._clock() * 1000))
            metadata = {"original-filename": quote(original_filename or "")}

            with open(staging_path, "rb") as staged:
                location = await self._storage.put_object(
                    key,
                    staged,
                    content_type,
                    public=False,
                    metadata=metadata,
                )
            state = UploadState.FORWARDED
            self._log_state(event_id, state, key=key)

        except EventDropError:
            state = UploadState.FAILED
            self._log_state(event_id, state)
            raise
        except Exception as e:
            state = UploadState.FAILED
            self._log_state(event_id, state)
            logger.error(
                "Upload failed before reaching storage",
                extra={"event_id": event_id, "error": str(e)},
            )
            raise StorageError(f"Upload failed: {e}", cause=e) from e
        finally:
            self._discard_stage(staging_path)
            self._log_state(event_id, UploadState.CLEANED)

        logger.info(
            "Guest upload stored",
            extra={
                "event_id": event_id,
                "key": key,
                "size_bytes": size_bytes,
                "content_type": content_type,
            },
        )

        return UploadReceipt(
            event_id=event_id,
            key=key,
            size_bytes=size_bytes,
            content_type=content_type,
            location=location,
        )

    def _check_event(self, event_id: str) -> None:
        if not is_valid_event_id(event_id):
            raise ValidationError(f"Malformed event id: {event_id!r}")

        if self._require_existing_event and self._events.find_by_id(event_id) is None:
            raise NotFoundError("Event not found.")

    async def _copy_to_stage(self, source: IncomingFile, target: BinaryIO) -> int:
        total = 0
        while True:
            chunk = await source.read(CHUNK_SIZE)
            if not chunk:
                return total
            total += len(chunk)
            if self._max_size_bytes is not None and total > self._max_size_bytes:
                raise UploadTooLargeError(
                    f"Upload too large. Maximum size: {self._max_size_bytes} bytes"
                )
            target.write(chunk)

    def _discard_stage(self, staging_path: Optional[str]) -> None:
        # A leftover staging file is a disk leak, not a failed upload.
        if staging_path is None:
            return
        try:
            os.unlink(staging_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                "Could not remove staging file",
                extra={"staging_path": staging_path, "error": str(e)},
            )

    def _log_state(self, event_id: str, state: UploadState, **context) -> None:
        logger.debug(
            "Upload state changed",
            extra={"event_id": event_id, "state": state.value, **context},
        )
