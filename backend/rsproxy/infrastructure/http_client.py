"""Outbound HTTP — shared httpx client and the per-request relay context.

Invariants:
    - One AsyncClient per process, created/closed by the app lifespan
    - RelayContext is built per request; it carries no state between requests
    - No retries: every upstream call is one-shot

Design Decisions:
    - get_http_client is a FastAPI dependency so tests swap in an
      httpx.MockTransport client via app.dependency_overrides
"""

from dataclasses import dataclass

import httpx
from fastapi import Depends, Request

from rsproxy.config import Settings, get_settings
from rsproxy.infrastructure.secret_resolver import SecretResolver


def build_async_client(
    settings: Settings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient with the configured timeout and User-Agent."""
    settings = settings or get_settings()
    headers: dict[str, str] = {"User-Agent": settings.user_agent}
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.upstream_timeout_seconds),
        headers=headers,
        transport=transport,
    )


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


@dataclass
class RelayContext:
    """Everything one relay call needs, scoped to a single inbound request."""
    settings: Settings
    secrets: SecretResolver
    client: httpx.AsyncClient


def get_relay_context(
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> RelayContext:
    return RelayContext(
        settings=settings,
        secrets=SecretResolver.from_settings(settings),
        client=client,
    )
