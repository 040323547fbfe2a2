"""
JSON-file event registry.

All events live in one JSON document (an array, in creation order). The
registry is small and written rarely, so a whole-document read/modify/write
is fine as long as writers are serialized:

- Every create holds a lock shared by all registries on the same file path
  within this process, and an OS-level lock on `<file>.lock` shared with
  other worker processes.
- The new document is written to a temp file next to the target and moved
  into place with os.replace, so readers never see a half-written file.

Reads degrade: a missing, unreadable or corrupt document is logged and
treated as empty, which keeps the guest pages up. Writes never degrade: a
create against a corrupt document raises instead of overwriting it.
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from filelock import FileLock, Timeout

from ...core.errors import PersistenceError
from ...core.events.models import Event, new_event_id

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 10

# One lock per registry file, shared across instances.
_file_locks: dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _file_locks_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _file_locks[key] = lock
        return lock


class JsonEventRegistry:
    """
    Event registry persisted as a single JSON document.

    Implements the create / find_by_id / list_all contract used by the
    API layer and the upload handler.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._lock = _lock_for(self._path)
        self._process_lock = FileLock(f"{self._path}.lock", timeout=LOCK_TIMEOUT_SECONDS)

    @property
    def path(self) -> Path:
        return self._path

    def create(self, name: str, date: str, place: str, background_url: str) -> Event:
        """
        Allocate a new id, append the event and persist the collection.

        Raises PersistenceError if the document cannot be read strictly
        or written back.
        """
        with self._exclusive():
            events = self._load(strict=True)
            existing_ids = {event.id for event in events}

            event_id = new_event_id()
            while event_id in existing_ids:
                event_id = new_event_id()

            event = Event(
                id=event_id,
                name=name,
                date=date,
                place=place,
                bg=background_url,
            )
            events.append(event)
            self._save(events)

        logger.info(
            "Created event",
            extra={"event_id": event.id, "event_name": event.name},
        )
        return event

    def find_by_id(self, event_id: str) -> Optional[Event]:
        """Return the event with this id, or None."""
        for event in self._load(strict=False):
            if event.id == event_id:
                return event
        return None

    def list_all(self) -> list[Event]:
        """All events in creation order."""
        return self._load(strict=False)

    def is_readable(self) -> bool:
        """True if the document is absent or parses cleanly."""
        try:
            self._load(strict=True)
        except PersistenceError:
            return False
        return True

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold both the in-process lock and the cross-process file lock."""
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._process_lock.acquire()
            except (Timeout, OSError) as e:
                raise PersistenceError(f"Could not lock event registry: {e}") from e
            try:
                yield
            finally:
                self._process_lock.release()

    def _load(self, strict: bool) -> list[Event]:
        if not self._path.exists():
            return []

        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError("registry document is not a JSON array")
            return [Event.from_dict(record) for record in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            if strict:
                raise PersistenceError(f"Event registry is unreadable: {e}") from e
            logger.warning(
                "Event registry unreadable, treating as empty",
                extra={"path": str(self._path), "error": str(e)},
            )
            return []

    def _save(self, events: list[Event]) -> None:
        directory = self._path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([event.to_dict() for event in events], f, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(
                "Failed to write event registry",
                extra={"path": str(self._path), "error": str(e)},
            )
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Could not write event registry: {e}") from e
