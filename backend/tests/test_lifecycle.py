"""Tests for application lifespan and server shutdown supervision."""

import os
import signal
import socket
import subprocess
import sys
import threading
import time
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from app import server as server_module
from app.config import Settings, get_settings
from app.main import create_app
from app.services import CacheClient, DatabaseClient, DisposableDomainChecker, ExternalStores


class RecordingDatabase(DatabaseClient):
    def __init__(self, events):
        super().__init__()
        self.events = events

    async def connect(self):
        self.events.append("database.connect")
        await super().connect()

    async def close(self):
        self.events.append("database.close")
        await super().close()


class RecordingCache(CacheClient):
    def __init__(self, events):
        super().__init__()
        self.events = events

    async def connect(self):
        self.events.append("cache.connect")
        await super().connect()

    async def close(self):
        self.events.append("cache.close")
        await super().close()


class RecordingChecker(DisposableDomainChecker):
    def __init__(self, events):
        super().__init__()
        self.events = events

    async def load(self):
        self.events.append("disposable.load")
        await super().load()


class FailingDatabase(DatabaseClient):
    async def connect(self):
        raise ConnectionError("database unreachable")


class BrokenCache(CacheClient):
    async def close(self):
        raise RuntimeError("cache close failed")


@pytest.fixture
def events():
    return []


@pytest.fixture
def stores(events):
    return ExternalStores(
        database=RecordingDatabase(events),
        cache=RecordingCache(events),
        disposable=RecordingChecker(events),
    )


class TestLifespan:
    """Test store initialization and release."""

    def test_startup_order(self, stores, events):
        """Test stores are opened in order before serving."""
        with TestClient(create_app(Settings(), stores=stores)) as client:
            assert events == ["database.connect", "cache.connect", "disposable.load"]
            assert client.get("/health/ready").json() == {"ready": True}

    def test_shutdown_closes_stores(self, stores, events):
        """Test stores are closed when the app shuts down."""
        with TestClient(create_app(Settings(), stores=stores)):
            pass

        assert events[-2:] == ["cache.close", "database.close"]
        assert stores.database.connected is False
        assert stores.cache.connected is False

    def test_stores_exposed_on_state(self, stores):
        """Test injected stores are reachable from the app."""
        app = create_app(Settings(), stores=stores)
        assert app.state.stores is stores

    def test_startup_failure_raises(self):
        """Test a failing store aborts startup."""
        app = create_app(Settings(), stores=ExternalStores(database=FailingDatabase()))

        with pytest.raises(ConnectionError):
            with TestClient(app):
                pass

    def test_database_closed_when_cache_close_fails(self, events):
        """Test the database is released even if closing the cache fails."""
        database = RecordingDatabase(events)
        app = create_app(Settings(), stores=ExternalStores(database=database, cache=BrokenCache()))

        with pytest.raises(RuntimeError):
            with TestClient(app):
                pass

        assert "database.close" in events

    def test_health_independent_of_stores(self):
        """Test health probes do not depend on store state."""
        client = TestClient(create_app(Settings()))
        assert client.get("/health").json()["status"] == "healthy"


@pytest.fixture
def fired(monkeypatch):
    """Replace the forced exit with an event."""
    event = threading.Event()
    monkeypatch.setattr(server_module, "force_exit", event.set)
    return event


@pytest.fixture
def server():
    settings = Settings(shutdown_timeout_seconds=0.05, port=0)
    srv = server_module.build_server(settings, create_app(settings))
    yield srv
    srv.cancel_watchdog()


class TestShutdownSupervision:
    """Test the bounded shutdown behaviour of the server."""

    def test_config_from_settings(self):
        settings = Settings(host="127.0.0.1", port=8081, trust_proxy=True, shutdown_timeout_seconds=30)
        srv = server_module.build_server(settings, create_app(settings))

        assert srv.config.host == "127.0.0.1"
        assert srv.config.port == 8081
        assert srv.config.proxy_headers is True
        assert srv.config.timeout_graceful_shutdown == 30
        assert srv.shutdown_timeout == 30

    def test_signal_starts_graceful_shutdown(self, server, fired):
        """Test a termination signal requests exit and arms the watchdog."""
        server.handle_exit(signal.SIGTERM, None)

        assert server.should_exit is True
        assert fired.wait(2.0)

    def test_watchdog_cancelled_after_clean_shutdown(self, server, fired):
        """Test no forced exit happens once shutdown completed."""
        server.shutdown_timeout = 0.2
        server.handle_exit(signal.SIGTERM, None)
        server.cancel_watchdog()

        assert not fired.wait(0.4)

    def test_repeated_signals_arm_one_watchdog(self, server, fired):
        server.handle_exit(signal.SIGTERM, None)
        first = server._watchdog
        server.handle_exit(signal.SIGTERM, None)

        assert server._watchdog is first

    def test_unhandled_loop_error_triggers_shutdown(self, server, fired):
        """Test an unhandled background error drives shutdown with status 1."""
        server.handle_loop_exception(None, {
            "message": "Task exception was never retrieved",
            "exception": RuntimeError("background failure"),
        })

        assert server.should_exit is True
        assert server.exit_code == 1
        assert fired.wait(2.0)

    def test_force_exit_status(self, monkeypatch):
        """Test forced exit terminates with a non-zero status."""
        codes = []
        monkeypatch.setattr(os, "_exit", codes.append)

        server_module.force_exit()

        assert codes == [1]

    def test_startup_failure_exit_status(self):
        """Test run returns 1 when startup fails."""
        settings = Settings(port=0)
        app = create_app(settings, stores=ExternalStores(database=FailingDatabase()))

        assert server_module.run(settings, app) == 1


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


BACKEND_DIR = Path(__file__).resolve().parents[1]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals required")
class TestProcessShutdown:
    """Run the server in a subprocess and stop it with a signal."""

    @pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
    def test_signal_exits_cleanly(self, sig):
        """Test a termination signal drains, closes stores and exits 0."""
        port = _free_port()
        env = dict(os.environ)
        env.update({
            "HOST": "127.0.0.1",
            "PORT": str(port),
            "LOG_LEVEL": "INFO",
            "PYTHONPATH": os.pathsep.join(filter(None, [str(BACKEND_DIR), env.get("PYTHONPATH")])),
        })
        proc = subprocess.Popen(
            [sys.executable, "-m", "app.server"],
            cwd=BACKEND_DIR,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
        try:
            deadline = time.monotonic() + 20
            while True:
                assert proc.poll() is None, proc.stdout.read()
                try:
                    if httpx.get(f"http://127.0.0.1:{port}/health/live", timeout=0.5).status_code == 200:
                        break
                except httpx.TransportError:
                    pass
                assert time.monotonic() < deadline, "server did not start"
                time.sleep(0.1)

            proc.send_signal(sig)
            output, _ = proc.communicate(timeout=20)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()

        assert proc.returncode == 0, output
        assert f"{sig.name} received, starting graceful shutdown" in output
        assert "External stores closed" in output
        assert "Graceful shutdown completed" in output


class TestSettings:
    """Test configuration loading."""

    def test_defaults(self, monkeypatch):
        for name in ("PORT", "HOST", "ENVIRONMENT", "API_BASE_PATH", "API_VERSION", "MAX_BODY_SIZE_MB"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.port == 3000
        assert settings.host == "0.0.0.0"
        assert settings.is_development is True
        assert settings.api_prefix == "/api/v1"
        assert settings.max_body_size_bytes == 10 * 1024 * 1024
        assert settings.shutdown_timeout_seconds == 30

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("TRUST_PROXY", "true")
        monkeypatch.setenv("API_BASE_PATH", "/svc/")
        monkeypatch.setenv("API_VERSION", "v3")
        settings = Settings(_env_file=None)

        assert settings.port == 8080
        assert settings.is_development is False
        assert settings.trust_proxy is True
        assert settings.api_prefix == "/svc/v3"

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
