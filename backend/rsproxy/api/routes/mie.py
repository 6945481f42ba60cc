"""Background-Check Relay Route — POST /api/mie.

Invariants:
    - Thin route: all relay stages live in MieRelayDispatcher
    - Errors propagate as RelayError to the global handler
    - A missing body is treated as an empty request (fails VALIDATE)
"""

from fastapi import APIRouter, Depends

from rsproxy.infrastructure.http_client import RelayContext, get_relay_context
from rsproxy.schemas.mie import MieRelayRequest
from rsproxy.services.mie_relay import MieRelayDispatcher

router = APIRouter(prefix="/api/mie", tags=["mie"])


@router.post("")
async def relay_mie(
    body: MieRelayRequest | None = None,
    ctx: RelayContext = Depends(get_relay_context),
):
    """Forward one background-check SOAP call with credentials injected."""
    reply = await MieRelayDispatcher(ctx).handle(body or MieRelayRequest())
    return reply.model_dump(by_alias=True)
