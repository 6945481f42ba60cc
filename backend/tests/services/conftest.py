"""Service test fixtures — mocked vendor upstream + FastAPI test client.

Invariants:
    - Every test gets a fresh MockUpstream (call counter starts at 0)
    - get_http_client dependency overridden to route through the mock transport
    - app_factory builds either SMS variant from the isolated test settings

Design Decisions:
    - ASGITransport skips the lifespan, so the shared client is injected via
      dependency override rather than app.state
"""

import pytest
from httpx import ASGITransport, AsyncClient

from rsproxy.core.domain_types import SmsRelayMode
from rsproxy.infrastructure.http_client import build_async_client, get_http_client
from rsproxy.main import create_app

from tests.services.mock_upstream import MockUpstream


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
async def upstream_client(settings, upstream):
    client = build_async_client(settings, transport=upstream.transport)
    yield client
    await client.aclose()


@pytest.fixture
def app_factory(settings, upstream_client):
    """Build an app in the requested SMS mode wired to the mock upstream."""
    def _build(mode: SmsRelayMode = SmsRelayMode.PASSTHROUGH, **overrides):
        app_settings = settings.model_copy(
            update={"sms_relay_mode": mode, **overrides},
        )
        app = create_app(app_settings)
        app.dependency_overrides[get_http_client] = lambda: upstream_client
        return app
    return _build


@pytest.fixture
async def client(app_factory):
    """Test client for the default (passthrough) deployment."""
    async with AsyncClient(
        transport=ASGITransport(app=app_factory()), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
async def portal_client(app_factory):
    """Test client for the SMS portal deployment variant."""
    async with AsyncClient(
        transport=ASGITransport(app=app_factory(SmsRelayMode.PORTAL)),
        base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def sms_credentials(monkeypatch):
    monkeypatch.setenv("SMS_CLIENT_ID", "client-id")
    monkeypatch.setenv("SMS_CLIENT_SECRET", "client-secret")


@pytest.fixture
def mie_password(monkeypatch):
    monkeypatch.setenv("MIE_PASSWORD", "s3cret-pw")
