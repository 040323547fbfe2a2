"""
Shared fixtures.

Everything runs against the in-memory storage mock and a registry file in
pytest's tmp_path, so no test touches the network or the working directory.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from eventdrop.api.dependencies import get_settings, get_storage_client
from eventdrop.config.settings import Settings
from eventdrop.core.errors import StorageError
from eventdrop.infrastructure.registry.json_registry import JsonEventRegistry
from eventdrop.infrastructure.storage.client import MockStorageClient
from eventdrop.main import create_app

ADMIN_PASSWORD = "letmein"


class ChunkedBody:
    """
    Minimal async-readable upload body.

    Optionally raises after handing out `fail_after` bytes, which is how a
    client disconnecting mid-upload looks to the handler.
    """

    def __init__(self, data: bytes, fail_after: Optional[int] = None) -> None:
        self._data = data
        self._pos = 0
        self._fail_after = fail_after

    async def read(self, size: int = -1) -> bytes:
        if self._fail_after is not None and self._pos >= self._fail_after:
            raise ConnectionResetError("client disconnected")
        if size < 0:
            size = len(self._data) - self._pos
        if self._fail_after is not None:
            size = min(size, self._fail_after - self._pos)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk


class UnreachableStorage(MockStorageClient):
    """Mock store whose writes always fail, like a bucket we cannot reach."""

    async def put_object(self, key, body, content_type, public=False, metadata=None):
        raise StorageError(
            "Upload failed: Could not connect to the endpoint URL",
            cause=ConnectionError("Could not connect to the endpoint URL"),
        )


@pytest.fixture
def registry(tmp_path) -> JsonEventRegistry:
    return JsonEventRegistry(tmp_path / "events.json")


@pytest.fixture
def storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture
def staging_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def settings(tmp_path, staging_dir) -> Settings:
    return Settings(
        _env_file=None,
        admin_password=ADMIN_PASSWORD,
        storage_mock_mode=True,
        events_file=str(tmp_path / "events.json"),
        staging_dir=str(staging_dir),
        public_base_url="http://testserver",
        max_upload_size_mb=1,
    )


@pytest.fixture
def app(settings, storage):
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_storage_client] = lambda: storage
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def body_factory():
    return ChunkedBody


@pytest.fixture
def unreachable_storage() -> UnreachableStorage:
    return UnreachableStorage()
