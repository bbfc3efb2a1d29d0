import time

import pytest

from fastapi.testclient import TestClient

from app.core.config import Settings, get_settings
from app.core.notifier import ChangeNotifier, get_notifier
from app.core.storage import StorageDirectory, get_storage
from app.main import app

# Small enough to exercise the size limit without building large payloads
TEST_MAX_FILE_SIZE = 64 * 1024

# -----------------------------
# Fixtures
# -----------------------------

@pytest.fixture
def storage_root(tmp_path):
    """Storage root under the test's temporary directory; never the real desktop folder."""
    return tmp_path / "shared"


@pytest.fixture
def storage(storage_root):
    storage = StorageDirectory(storage_root)
    storage.ensure_directory()
    return storage


@pytest.fixture
def notifier(storage):
    return ChangeNotifier(storage)


@pytest.fixture
def test_settings(storage_root):
    return Settings(storage_dir=storage_root, max_upload_files=30, max_file_size=TEST_MAX_FILE_SIZE)


@pytest.fixture(scope="function")
def client(storage, notifier, test_settings):
    """
    FastAPI TestClient fixture for sending HTTP requests and opening websockets.
    Overrides the storage, notifier and settings dependencies so every test
    gets its own empty storage root.
    """
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_settings] = lambda: test_settings

    try:
        with TestClient(app) as c:
            yield c
    finally:
        # Remove the overrides after the test
        app.dependency_overrides.clear()


@pytest.fixture
def upload(client):
    """POST (name, content) pairs to /upload as the multipart field `files`."""
    def _upload(*files):
        return client.post(
            "/upload",
            files=[("files", (name, content, "application/octet-stream")) for name, content in files],
        )
    return _upload


@pytest.fixture
def wait_until():
    """Poll a condition that the server side settles shortly after a websocket closes."""
    def _wait_until(condition, timeout=2.0):
        deadline = time.monotonic() + timeout
        while not condition():
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True
    return _wait_until
