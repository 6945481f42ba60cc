"""SMS Relay Routes — passthrough and portal variants of /api/sms.

Invariants:
    - Exactly one of the two routers is mounted (settings.sms_relay_mode)
    - Passthrough mirrors upstream status, content type and body
    - Portal endpoints always answer with a {success, ...} JSON body
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from rsproxy.infrastructure.http_client import RelayContext, get_relay_context
from rsproxy.schemas.sms import SmsSendRequest
from rsproxy.services.sms_relay import (
    HISTORY_PARAMS,
    PortalReply,
    SmsPassthroughRelay,
    SmsPortalService,
)

logger = logging.getLogger(__name__)

passthrough_router = APIRouter(prefix="/api/sms", tags=["sms"])
portal_router = APIRouter(tags=["sms"])

FORWARDED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ─── Passthrough ─────────────────────────────────────────────────

@passthrough_router.api_route("/{path:path}", methods=FORWARDED_METHODS)
async def relay_sms(
    path: str, request: Request, ctx: RelayContext = Depends(get_relay_context),
):
    """Forward any /api/sms/* call to the SMS vendor with Basic auth."""
    reply = await SmsPassthroughRelay(ctx).forward(
        request.method, path, request.url.query, await request.body(),
    )
    if reply.is_json:
        try:
            return JSONResponse(
                status_code=reply.status_code, content=json.loads(reply.content),
            )
        except ValueError:
            logger.warning("Upstream declared JSON but sent something else")
    return Response(
        content=reply.content,
        status_code=reply.status_code,
        media_type=reply.content_type or "text/plain",
    )


# ─── Portal ──────────────────────────────────────────────────────

def _to_response(reply: PortalReply) -> JSONResponse:
    return JSONResponse(status_code=reply.status_code, content=reply.body)


@portal_router.get("/", response_class=PlainTextResponse)
async def root():
    return "SMS Proxy OK"


@portal_router.get("/api/sms/balance")
async def sms_balance(ctx: RelayContext = Depends(get_relay_context)):
    return _to_response(await SmsPortalService(ctx).balance())


@portal_router.get("/api/sms/history")
async def sms_history(
    request: Request, ctx: RelayContext = Depends(get_relay_context),
):
    filters = {
        k: request.query_params[k]
        for k in HISTORY_PARAMS if k in request.query_params
    }
    return _to_response(await SmsPortalService(ctx).history(filters))


@portal_router.post("/api/sms/send")
async def sms_send(
    body: SmsSendRequest | None = None,
    ctx: RelayContext = Depends(get_relay_context),
):
    return _to_response(
        await SmsPortalService(ctx).send(body or SmsSendRequest()),
    )


@portal_router.get("/api/sms/test")
async def sms_test(ctx: RelayContext = Depends(get_relay_context)):
    return _to_response(await SmsPortalService(ctx).test_connection())
