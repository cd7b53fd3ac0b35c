import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import AuthSettings, Config, LimitsSettings
from helpers import RecordingLogger


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def make_config():
    def _make(requests_per_minute: int = 30, **auth) -> Config:
        auth.setdefault("username", "alice")
        auth.setdefault("password", "s3cret")
        return Config(
            auth=AuthSettings(**auth),
            limits=LimitsSettings(requests_per_minute=requests_per_minute),
        )

    return _make


@pytest.fixture
def proxy_client(recording_logger, make_config):
    """Build a TestClient whose upstream calls go to an httpx MockTransport."""
    clients = []

    def _build(handler, config: Config | None = None, limiter=None) -> TestClient:
        app = create_app(
            config or make_config(),
            recording_logger,
            transport=httpx.MockTransport(handler),
            limiter=limiter,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _build

    for client in clients:
        client.__exit__(None, None, None)
