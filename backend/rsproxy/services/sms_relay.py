"""SMS Relay — Basic-Auth passthrough and the portal convenience endpoints.

Invariants:
    - Missing SMS_CLIENT_ID/SMS_CLIENT_SECRET raises ConfigurationError before
      any network call
    - Passthrough preserves the upstream status code and content type exactly
    - Portal history/test failures degrade to empty success results unless
      settings.sms_tolerant_reads is off
    - Portal errors use the "success" envelope key; passthrough errors use "ok"

Design Decisions:
    - Two classes sharing _SmsUpstream: the passthrough never interprets
      bodies, the portal service always does
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from rsproxy.core.domain_types import SMS_CLIENT_ID, SMS_CLIENT_SECRET, RelayStage
from rsproxy.core.errors import (
    ConfigurationError,
    ErrorContext,
    RelayValidationError,
    UpstreamTransportError,
)
from rsproxy.core.sms_payload import (
    basic_auth_header,
    build_bulk_messages,
    build_single_message,
    normalize_phone_number,
    segment_count,
)
from rsproxy.infrastructure.http_client import RelayContext
from rsproxy.schemas.sms import SmsSendRequest

logger = logging.getLogger(__name__)

_BODYLESS_METHODS = frozenset({"GET", "HEAD"})
HISTORY_PARAMS = ("limit", "offset", "fromDate", "toDate")


@dataclass(frozen=True)
class UpstreamReply:
    """Upstream status, content type and body, unmodified."""
    status_code: int
    content_type: str | None
    content: bytes

    @property
    def is_json(self) -> bool:
        return bool(self.content_type) and "application/json" in self.content_type


class _SmsUpstream:
    """Credential lookup and the single outbound call shared by both variants."""

    envelope_key = "ok"

    def __init__(self, ctx: RelayContext):
        self.ctx = ctx
        self.base_url = ctx.settings.sms_base_url

    def _auth_header(self) -> str:
        client_id = self.ctx.secrets.resolve(SMS_CLIENT_ID)
        client_secret = self.ctx.secrets.resolve(SMS_CLIENT_SECRET)
        if not client_id or not client_secret:
            missing = SMS_CLIENT_ID if not client_id else SMS_CLIENT_SECRET
            raise ConfigurationError(
                "Missing SMS credentials", missing,
                hint=(
                    "Set SMS_CLIENT_ID and SMS_CLIENT_SECRET as environment "
                    "variables OR add them to secrets.local.json"
                ),
                context=ErrorContext(stage=RelayStage.RESOLVE_SECRETS.value),
                envelope_key=self.envelope_key,
            )
        return basic_auth_header(client_id, client_secret)

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        content: bytes | None = None,
        json_body: Any = None,
        accept: str | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": self._auth_header()}
        if content is not None or json_body is not None:
            headers["Content-Type"] = "application/json"
        if accept:
            headers["Accept"] = accept
        url = f"{self.base_url}{path}"
        logger.info(
            f"SMS relay {method} {path}",
            extra={"stage": RelayStage.DISPATCH_UPSTREAM.value,
                   "upstream": self.base_url, "method": method},
        )
        try:
            return await self.ctx.client.request(
                method, url, params=params, content=content,
                json=json_body, headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"SMS upstream unreachable: {type(e).__name__}",
                extra={"upstream": self.base_url, "method": method},
            )
            raise UpstreamTransportError(
                f"SMS upstream request failed: {type(e).__name__}",
                details={"type": "proxy_error"},
                context=ErrorContext(
                    stage=RelayStage.DISPATCH_UPSTREAM.value,
                    upstream=self.base_url,
                ),
                envelope_key=self.envelope_key,
            ) from e


class SmsPassthroughRelay(_SmsUpstream):
    """ALL /api/sms/{path}: forward verbatim with Basic auth injected."""

    async def forward(
        self, method: str, path: str, query: str, body: bytes,
    ) -> UpstreamReply:
        method = method.upper()
        suffix = "/" + path.lstrip("/") if path else ""
        if query:
            suffix = f"{suffix}?{query}"
        content = None
        if method not in _BODYLESS_METHODS:
            content = body or b"{}"
        resp = await self._call(method, suffix, content=content)
        return UpstreamReply(
            status_code=resp.status_code,
            content_type=resp.headers.get("content-type"),
            content=resp.content,
        )


def _safe_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {}


def _error_message(data: Any, default: str) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return default


@dataclass(frozen=True)
class PortalReply:
    """HTTP status plus the {success, ...} body for a portal endpoint."""
    status_code: int
    body: dict[str, Any]


class SmsPortalService(_SmsUpstream):
    """Convenience endpoints that wrap the vendor in {success, ...} envelopes."""

    envelope_key = "success"

    @property
    def tolerant(self) -> bool:
        return self.ctx.settings.sms_tolerant_reads

    async def balance(self) -> PortalReply:
        resp = await self._call("GET", "/balance", accept="application/json")
        data = _safe_json(resp)
        if resp.is_success:
            return PortalReply(200, {
                "success": True,
                "balance": _balance_of(data),
                "currency": _field(data, "currency") or "Credits",
                "data": data,
            })
        logger.error(
            "Balance fetch failed", extra={"http_status": resp.status_code},
        )
        return PortalReply(resp.status_code, {
            "success": False,
            "error": _error_message(data, "Failed to fetch balance"),
            "data": data,
        })

    async def history(self, filters: dict[str, str]) -> PortalReply:
        params = {k: v for k, v in filters.items() if k in HISTORY_PARAMS and v}
        try:
            resp = await self._call(
                "GET", "/Messages", params=params, accept="application/json",
            )
        except UpstreamTransportError as e:
            return self._degrade_history(e.message, e.message, None)
        if not resp.is_success:
            return self._degrade_history(
                _safe_json(resp), f"HTTP {resp.status_code}", resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError:
            return self._degrade_history(
                "invalid JSON", "invalid JSON", resp.status_code,
            )

        data = data if isinstance(data, dict) else {"messages": data}
        messages = data.get("messages") or data.get("results") or []
        return PortalReply(200, {
            "success": True,
            "messages": messages,
            "totalCount": data.get("totalCount") or len(messages),
            "data": data,
        })

    def _degrade_history(
        self, error: Any, reason: str, upstream_status: int | None,
    ) -> PortalReply:
        if not self.tolerant:
            raise UpstreamTransportError(
                f"SMS history unavailable: {reason}",
                upstream_status=upstream_status,
                envelope_key=self.envelope_key,
            )
        logger.warning(f"History fetch failed ({reason}), returning empty results")
        return PortalReply(200, {
            "success": True,
            "messages": [],
            "totalCount": 0,
            "data": {"error": error},
        })

    async def send(self, req: SmsSendRequest) -> PortalReply:
        message = (req.message or "").strip()
        if not message:
            raise RelayValidationError(
                "Message cannot be empty", "message",
                envelope_key=self.envelope_key,
            )
        if not req.recipients and not req.destination:
            raise RelayValidationError(
                "No recipients specified", "recipients",
                envelope_key=self.envelope_key,
            )
        sender_id = self.ctx.settings.sms_sender_id

        if req.recipients:
            destinations = [normalize_phone_number(r.number) for r in req.recipients]
            path = "/BulkMessages"
            body = build_bulk_messages(
                message, destinations,
                send_time=req.options.scheduled_for,
                reference=req.options.reference,
                test_mode=req.options.test_mode,
                sender_id=sender_id,
            )
        else:
            destinations = [normalize_phone_number(req.destination)]
            path = "/Messages"
            body = build_single_message(destinations[0], message, sender_id)

        logger.info(f"Sending {len(destinations)} message(s)")
        resp = await self._call("POST", path, json_body=body)
        data = _safe_json(resp)
        if not resp.is_success:
            logger.error(
                "SMS send failed", extra={"http_status": resp.status_code},
            )
            return PortalReply(resp.status_code, {
                "success": False,
                "error": _error_message(data, "SMS send failed"),
                "data": data,
            })

        results = data.get("results") if isinstance(data, dict) else None
        first = results[0] if isinstance(results, list) and results else {}
        return PortalReply(200, {
            "success": True,
            "messageId": first.get("messageId") if isinstance(first, dict) else None,
            "results": results,
            "cost": data.get("cost") if isinstance(data, dict) else None,
            "recipientCount": len(destinations),
            "segmentsPerMessage": segment_count(message),
            "data": data,
        })

    async def test_connection(self) -> PortalReply:
        try:
            resp = await self._call("GET", "/balance", accept="application/json")
        except UpstreamTransportError as e:
            return self._degrade_test(e.message, e.message, None)
        if not resp.is_success:
            data = _safe_json(resp)
            return self._degrade_test(
                data, _error_message(data, f"HTTP {resp.status_code}"),
                resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError:
            return self._degrade_test(
                "invalid JSON", "invalid JSON", resp.status_code,
            )

        return PortalReply(200, {
            "success": True,
            "status": "connected",
            "message": "SMS Portal API connection successful",
            "balance": _balance_of(data),
            "data": data,
        })

    def _degrade_test(
        self, error: Any, reason: str, upstream_status: int | None,
    ) -> PortalReply:
        if not self.tolerant:
            raise UpstreamTransportError(
                f"SMS Portal connection test failed: {reason}",
                upstream_status=upstream_status,
                envelope_key=self.envelope_key,
            )
        logger.warning(f"Connection test failed ({reason}), reporting degraded")
        return PortalReply(200, {
            "success": True,
            "status": "degraded",
            "message": f"SMS Portal API unreachable: {reason}",
            "balance": 0,
            "data": {"error": error},
        })


def _balance_of(data: Any) -> Any:
    if not isinstance(data, dict):
        return 0
    return data.get("balance") or data.get("credits") or 0


def _field(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, dict) else None
