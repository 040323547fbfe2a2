"""
Domain model for events.

An event is created once by an organizer and never changes afterwards, so it
is modelled as a frozen dataclass. The registry document stores exactly the
fields below, keyed the same way.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any
from uuid import uuid4

# Accepts generated ids (32 hex chars) and any legacy token of the same shape.
EVENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def new_event_id() -> str:
    """Generate a fresh random event id."""
    return uuid4().hex


def is_valid_event_id(event_id: str) -> bool:
    return bool(event_id) and EVENT_ID_PATTERN.match(event_id) is not None


@dataclass(frozen=True)
class Event:
    """
    An organizer-created upload campaign.

    `bg` is the public URL of the background image shown on the guest page.
    """
    id: str
    name: str
    date: str
    place: str
    bg: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """Build an event from a registry record, tolerating missing fields."""
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            date=str(data.get("date", "")),
            place=str(data.get("place", "")),
            bg=str(data.get("bg", "")),
        )
