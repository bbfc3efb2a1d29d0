import pytest

from app import server
from app.core import network
from app.core.config import Settings
from app.core.errors import StartupError


def test_settings_defaults(monkeypatch):
    for name in ("STORAGE_DIR", "HTTP_PORT", "WS_PORT", "CORS_ORIGINS", "MAX_UPLOAD_FILES", "MAX_FILE_SIZE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.storage_dir.parts[-2:] == ("Desktop", "shared")
    assert settings.http_port == 5000
    assert settings.ws_port == 5001
    assert settings.max_upload_files == 30
    assert settings.max_file_size == 10 * 1024 * 1024
    assert settings.cors_origins == ["http://localhost:3000"]


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "files"))
    monkeypatch.setenv("HTTP_PORT", "8080")
    monkeypatch.setenv("CORS_ORIGINS", '["http://example.lan:3000"]')

    settings = Settings(_env_file=None)

    assert settings.storage_dir == tmp_path / "files"
    assert settings.http_port == 8080
    assert settings.cors_origins == ["http://example.lan:3000"]


def test_local_ip_prefers_lan_address(monkeypatch):
    class FakeSocket:
        def __init__(self, *args):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *args):
            return False

        def connect(self, address):
            pass

        def getsockname(self):
            return ("192.168.1.42", 50000)

    monkeypatch.setattr(network.socket, "socket", FakeSocket)

    assert network.get_local_ip() == "192.168.1.42"


def test_local_ip_falls_back_to_loopback(monkeypatch):
    def no_network(*args):
        raise OSError("network unreachable")

    monkeypatch.setattr(network.socket, "socket", no_network)
    monkeypatch.setattr(network.socket, "gethostbyname_ex", lambda host: (host, [], ["127.0.1.1"]))

    assert network.get_local_ip() == "127.0.0.1"


def test_local_ip_uses_hostname_addresses(monkeypatch):
    def no_network(*args):
        raise OSError("network unreachable")

    monkeypatch.setattr(network.socket, "socket", no_network)
    monkeypatch.setattr(
        network.socket, "gethostbyname_ex",
        lambda host: (host, [], ["127.0.1.1", "169.254.3.4", "10.0.0.7"]),
    )

    assert network.get_local_ip() == "10.0.0.7"


def test_startup_aborts_when_storage_cannot_be_created(monkeypatch, tmp_path):
    blocker = tmp_path / "shared"
    blocker.write_text("in the way")

    class BrokenStorage:
        def ensure_directory(self):
            raise StartupError(f"Cannot create storage directory {blocker}")

    monkeypatch.setattr(server, "get_storage", lambda: BrokenStorage())
    monkeypatch.setattr(server, "serve", pytest.fail)

    with pytest.raises(SystemExit) as exc_info:
        server.main()

    assert exc_info.value.code == 1
