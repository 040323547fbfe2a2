"""
End-to-end tests over the HTTP surface.

The whole app runs in-process with TestClient, backed by the in-memory
storage mock and a registry file in tmp_path.
"""

import asyncio
import os

import pytest

from eventdrop.api.dependencies import get_storage_client
from eventdrop.infrastructure.registry.json_registry import JsonEventRegistry

ADMIN_PASSWORD = "letmein"


def create_event(client, password=ADMIN_PASSWORD, **overrides):
    data = {
        "eventName": "Launch",
        "eventDate": "2024-01-01",
        "eventPlace": "HQ",
        "password": password,
    }
    data.update(overrides)
    files = {"bgPhoto": ("bg.jpg", b"background bytes", "image/jpeg")}
    return client.post("/admin/create", data=data, files=files)


@pytest.fixture
def registry(settings) -> JsonEventRegistry:
    return JsonEventRegistry(settings.events_file)


@pytest.fixture
def event(client, registry):
    response = create_event(client)
    assert response.status_code == 200
    return registry.list_all()[-1]


# ---------------------------------------------------------------------------
# Event creation
# ---------------------------------------------------------------------------

class TestCreateEvent:
    """POST /admin/create"""

    def test_returns_guest_link_and_qr(self, client, registry):
        response = create_event(client)

        assert response.status_code == 200
        [event] = registry.list_all()
        assert f"http://testserver/event/{event.id}" in response.text
        assert "data:image/svg+xml;base64," in response.text

    def test_records_event_fields(self, client, registry):
        create_event(client)

        [event] = registry.list_all()
        assert (event.name, event.date, event.place) == ("Launch", "2024-01-01", "HQ")
        assert event.bg

    def test_background_is_public(self, client, storage, registry):
        create_event(client)

        [event] = registry.list_all()
        [background] = asyncio.run(storage.list_by_prefix("backgrounds/"))
        assert event.bg.endswith(background.key)
        assert storage.is_public(background.key)

    def test_guest_page_shows_event(self, client, event):
        """The created event's page embeds its name and background."""
        response = client.get(f"/event/{event.id}")

        assert response.status_code == 200
        assert "Launch" in response.text
        assert event.bg in response.text
        assert f'action="/event/{event.id}/upload"' in response.text

    def test_wrong_password_is_forbidden(self, client, registry, storage):
        response = create_event(client, password="guess")

        assert response.status_code == 403
        assert registry.list_all() == []
        assert asyncio.run(storage.list_by_prefix("")) == []

    def test_header_credential_is_accepted(self, client, registry):
        response = client.post(
            "/admin/create",
            data={"eventName": "Launch", "eventDate": "2024-01-01", "eventPlace": "HQ"},
            files={"bgPhoto": ("bg.jpg", b"bg", "image/jpeg")},
            headers={"X-Admin-Password": ADMIN_PASSWORD},
        )

        assert response.status_code == 200
        assert len(registry.list_all()) == 1

    def test_missing_field_is_bad_request(self, client, registry):
        response = create_event(client, eventPlace="")

        assert response.status_code == 400
        assert "eventPlace" in response.json()["detail"]
        assert registry.list_all() == []

    def test_missing_background_is_bad_request(self, client, registry):
        response = client.post(
            "/admin/create",
            data={
                "eventName": "Launch",
                "eventDate": "2024-01-01",
                "eventPlace": "HQ",
                "password": ADMIN_PASSWORD,
            },
        )

        assert response.status_code == 400
        assert "bgPhoto" in response.json()["detail"]

    def test_text_background_is_bad_request(self, client, registry):
        response = client.post(
            "/admin/create",
            data={
                "eventName": "Launch",
                "eventDate": "2024-01-01",
                "eventPlace": "HQ",
                "password": ADMIN_PASSWORD,
                "bgPhoto": "not a file",
            },
        )

        assert response.status_code == 400
        assert "bgPhoto" in response.json()["detail"]
        assert registry.list_all() == []

    def test_registry_write_failure_is_surfaced(self, client, settings):
        with open(settings.events_file, "w", encoding="utf-8") as f:
            f.write("not json")

        response = create_event(client)

        assert response.status_code == 500
        assert "registry" in response.json()["detail"]


# ---------------------------------------------------------------------------
# Guest pages and uploads
# ---------------------------------------------------------------------------

class TestGuestPage:
    """GET /event/{event_id}"""

    def test_unknown_event_is_not_found(self, client):
        response = client.get("/event/doesnotexist")

        assert response.status_code == 404

    def test_corrupt_registry_degrades_to_not_found(self, client, settings):
        with open(settings.events_file, "w", encoding="utf-8") as f:
            f.write("{ broken")

        assert client.get("/event/abc123").status_code == 404


class TestGuestUpload:
    """POST /event/{event_id}/upload"""

    def test_upload_is_stored(self, client, storage, event, staging_dir):
        response = client.post(
            f"/event/{event.id}/upload",
            files={"file": ("photo.jpg", b"jpeg bytes", "image/jpeg")},
        )

        assert response.status_code == 200
        [stored] = asyncio.run(storage.list_by_prefix(f"uploads/{event.id}/"))
        assert stored.key.endswith("_photo.jpg")
        assert stored.size == len(b"jpeg bytes")
        assert os.listdir(staging_dir) == []

    def test_missing_file_is_bad_request(self, client, storage, event):
        response = client.post(f"/event/{event.id}/upload", data={"note": "no file here"})

        assert response.status_code == 400
        assert asyncio.run(storage.list_by_prefix("uploads/")) == []

    def test_text_part_instead_of_file_is_bad_request(self, client, storage, settings):
        settings.upload_requires_existing_event = False

        response = client.post("/event/abc123/upload", data={"file": "not a file"})

        assert response.status_code == 400
        assert "file" in response.json()["detail"]
        assert asyncio.run(storage.list_by_prefix("uploads/")) == []

    def test_unknown_event_is_not_found(self, client, storage):
        response = client.post(
            "/event/abc123/upload",
            files={"file": ("photo.jpg", b"jpeg bytes", "image/jpeg")},
        )

        assert response.status_code == 404
        assert asyncio.run(storage.list_by_prefix("uploads/")) == []

    def test_unknown_event_accepted_when_policy_off(self, client, storage, settings):
        settings.upload_requires_existing_event = False

        response = client.post(
            "/event/abc123/upload",
            files={"file": ("photo.jpg", b"jpeg bytes", "image/jpeg")},
        )

        assert response.status_code == 200
        assert len(asyncio.run(storage.list_by_prefix("uploads/abc123/"))) == 1

    def test_oversized_upload_is_rejected(self, client, storage, event, staging_dir):
        too_big = b"x" * (1024 * 1024 + 1)

        response = client.post(
            f"/event/{event.id}/upload",
            files={"file": ("clip.mp4", too_big, "video/mp4")},
        )

        assert response.status_code == 413
        assert asyncio.run(storage.list_by_prefix("uploads/")) == []
        assert os.listdir(staging_dir) == []

    def test_storage_outage_is_server_error(self, app, client, event, staging_dir, unreachable_storage):
        """Storage down: 500 with cause, no staging file, nothing listed."""
        app.dependency_overrides[get_storage_client] = lambda: unreachable_storage

        response = client.post(
            f"/event/{event.id}/upload",
            files={"file": ("photo.jpg", b"jpeg bytes", "image/jpeg")},
        )

        assert response.status_code == 500
        assert "Could not connect" in response.json()["detail"]
        assert os.listdir(staging_dir) == []
        assert asyncio.run(unreachable_storage.list_by_prefix(f"uploads/{event.id}/")) == []


# ---------------------------------------------------------------------------
# Admin browse
# ---------------------------------------------------------------------------

class TestAdminBrowse:
    """POST /admin/events and GET /admin/photos/{event_id}"""

    def test_console_is_public(self, client):
        response = client.get("/admin")

        assert response.status_code == 200
        assert 'action="/admin/create"' in response.text

    def test_event_list_requires_password(self, client, event):
        assert client.post("/admin/events", data={"password": "guess"}).status_code == 403

    def test_event_list_shows_links(self, client, event):
        response = client.post("/admin/events", data={"password": ADMIN_PASSWORD})

        assert response.status_code == 200
        assert "Launch" in response.text
        assert f"http://testserver/event/{event.id}" in response.text
        assert f"/admin/photos/{event.id}?password={ADMIN_PASSWORD}" in response.text

    def test_photos_lists_signed_urls(self, client, event):
        client.post(f"/event/{event.id}/upload", files={"file": ("a.jpg", b"a", "image/jpeg")})

        response = client.get(f"/admin/photos/{event.id}", params={"password": ADMIN_PASSWORD})

        assert response.status_code == 200
        assert f"mock://storage/uploads/{event.id}/" in response.text
        assert "?expires=3600" in response.text
        assert "_a.jpg" in response.text

    def test_photos_without_uploads_is_empty(self, client, event):
        response = client.get(f"/admin/photos/{event.id}", params={"password": ADMIN_PASSWORD})

        assert response.status_code == 200
        assert "No uploads yet." in response.text

    def test_photos_requires_password(self, client, event):
        response = client.get(f"/admin/photos/{event.id}")

        assert response.status_code == 403

    def test_photos_accepts_header_credential(self, client, event):
        response = client.get(
            f"/admin/photos/{event.id}",
            headers={"X-Admin-Password": ADMIN_PASSWORD},
        )

        assert response.status_code == 200


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready_with_complete_config(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_with_corrupt_registry(self, client, settings):
        with open(settings.events_file, "w", encoding="utf-8") as f:
            f.write("{ broken")

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
