"""rs-proxy API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RelayError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - The shared httpx client lives on app.state, opened/closed by the lifespan
    - Exactly one SMS router is mounted, chosen by settings.sms_relay_mode

Design Decisions:
    - create_app(settings) factory so tests build either SMS variant;
      module-level `app` is the default build for uvicorn
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rsproxy.api.error_handlers import register_error_handlers
from rsproxy.api.routes import health, mie, sms
from rsproxy.config import Settings, get_settings
from rsproxy.core.domain_types import SmsRelayMode
from rsproxy.infrastructure.http_client import build_async_client
from rsproxy.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    portal = settings.sms_relay_mode == SmsRelayMode.PORTAL

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        app.state.http_client = build_async_client(settings)
        logger.info(
            f"rs-proxy started (sms relay: {settings.sms_relay_mode.value})",
        )
        yield
        await app.state.http_client.aclose()
        logger.info("rs-proxy shutting down")

    app = FastAPI(title="rs-proxy", version="1.0.0", lifespan=lifespan)
    app.state.portal = portal
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(mie.router)
    if portal:
        app.include_router(sms.portal_router)
    else:
        app.include_router(sms.passthrough_router)

    register_error_handlers(app)
    return app


app = create_app()


def run() -> None:
    """Console entry point: bind per RENDER/PORT and serve."""
    settings = get_settings()
    host = settings.bind_host
    logger.info(
        f"listening on http://{host}:{settings.port} "
        f"({'Render.com' if settings.render else 'Local'})",
    )
    uvicorn.run(app, host=host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
