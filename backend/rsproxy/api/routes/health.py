"""Health Probe — liveness plus credential-presence report.

Invariants:
    - GET /health always returns 200 if the process is up
    - Reports only whether secrets exist, never their values
    - Secrets file is re-read on every call (no cached detection)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status

from rsproxy.config import Settings, get_settings
from rsproxy.infrastructure.secret_resolver import SecretResolver

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

SERVICE_NAME = "rs-proxy"


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(settings: Settings = Depends(get_settings)):
    """Basic liveness probe. Returns 200 if the process is up."""
    presence = SecretResolver.from_settings(settings).describe()
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "port": settings.port,
        "time": datetime.now(timezone.utc).isoformat(),
        "smsRelayMode": settings.sms_relay_mode.value,
        **presence,
    }
