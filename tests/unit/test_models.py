"""
Unit tests for the event model and upload key construction.

These are pure functions and value objects: no storage, no file system.
"""

import pytest

from eventdrop.core.events.models import Event, is_valid_event_id, new_event_id
from eventdrop.core.uploads.handler import build_upload_key, safe_filename, upload_prefix


# ---------------------------------------------------------------------------
# Event Tests
# ---------------------------------------------------------------------------

class TestEvent:
    """Tests for the Event value object."""

    def test_round_trips_through_registry_record(self):
        """to_dict/from_dict should preserve every field."""
        event = Event(id="abc123", name="Launch", date="2024-01-01", place="HQ", bg="https://cdn/bg.jpg")

        assert Event.from_dict(event.to_dict()) == event

    def test_record_uses_registry_field_names(self):
        """The persisted record has exactly id, name, date, place, bg."""
        event = Event(id="abc123", name="Launch", date="2024-01-01", place="HQ", bg="u")

        assert set(event.to_dict()) == {"id", "name", "date", "place", "bg"}

    def test_from_dict_tolerates_missing_optional_fields(self):
        """Older records without a background still load."""
        event = Event.from_dict({"id": "abc123", "name": "Launch"})

        assert event.bg == ""
        assert event.place == ""

    def test_events_are_immutable(self):
        """Events never change after creation."""
        event = Event(id="abc123", name="Launch", date="2024-01-01", place="HQ", bg="u")

        with pytest.raises(AttributeError):
            event.name = "Renamed"


class TestEventIds:
    """Tests for id generation and validation."""

    def test_generated_ids_are_valid(self):
        assert is_valid_event_id(new_event_id())

    def test_generated_ids_are_unique(self):
        ids = {new_event_id() for _ in range(1000)}
        assert len(ids) == 1000

    @pytest.mark.parametrize("event_id", ["abc123", "1712345678901", "a-b_c"])
    def test_accepts_token_shaped_ids(self, event_id):
        assert is_valid_event_id(event_id)

    @pytest.mark.parametrize("event_id", ["", "../etc", "a/b", "has space", "x" * 65])
    def test_rejects_malformed_ids(self, event_id):
        assert not is_valid_event_id(event_id)


# ---------------------------------------------------------------------------
# Upload Key Tests
# ---------------------------------------------------------------------------

class TestUploadKeys:
    """Tests for how guest uploads are named in storage."""

    def test_key_is_namespaced_by_event_and_timestamp(self):
        key = build_upload_key("abc123", "photo.jpg", 1704067200000)

        assert key == "uploads/abc123/1704067200000_photo.jpg"

    def test_key_starts_with_event_prefix(self):
        key = build_upload_key("abc123", "photo.jpg", 1)

        assert key.startswith(upload_prefix("abc123"))

    def test_path_components_are_dropped(self):
        """A guest cannot steer the key outside the event's prefix."""
        assert safe_filename("../../etc/passwd") == "passwd"
        assert safe_filename("C:\\Users\\me\\photo.jpg") == "photo.jpg"

    def test_unsafe_characters_are_replaced(self):
        assert safe_filename("my photo (1).jpg") == "my_photo__1_.jpg"

    def test_dot_only_names_fall_back(self):
        """'.' and '..' must never become a key segment."""
        assert safe_filename("..") == "upload"
        assert safe_filename(".hidden") == "hidden"

    def test_missing_filename_falls_back(self):
        assert safe_filename(None) == "upload"
        assert safe_filename("") == "upload"
