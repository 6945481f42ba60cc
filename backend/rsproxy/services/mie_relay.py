"""MIE Relay Dispatcher — JSON request → SOAP call → normalized JSON reply.

Invariants:
    - Stages run in RelayStage order; VALIDATE and RESOLVE_SECRETS failures
      raise before any network call
    - Transport failures and non-2xx statuses raise UpstreamTransportError (502)
      with a snippet bounded by settings.response_snippet_max_chars
    - PARSE_RESPONSE never fails: misses surface as None fields
    - The raw SOAP body is returned untruncated on success
    - Passwords never reach logs or error payloads

Design Decisions:
    - One dispatcher instance per request, built from RelayContext
    - The wire reply is derived from RelayResponse, the transport-neutral
      outcome, so ok and the key fields have one source
"""

import logging
from urllib.parse import urlsplit

import httpx

from rsproxy.core.domain_types import (
    MIE_PASSWORD,
    MIE_USERNAME,
    RelayResponse,
    RelayStage,
)
from rsproxy.core.errors import (
    ConfigurationError,
    ErrorContext,
    RelayValidationError,
    UpstreamTransportError,
)
from rsproxy.core.extract_response import extract_request_key, extract_tag_text
from rsproxy.core.soap_envelope import (
    build_logon_xml,
    build_request_xml,
    build_soap_envelope,
    is_valid_method_name,
    soap_action_for,
)
from rsproxy.infrastructure.http_client import RelayContext
from rsproxy.schemas.mie import MiePayload, MieRelayRequest, MieRelayResponse

logger = logging.getLogger(__name__)

PASSWORD_HINT = (
    "Set MIE_PASSWORD as an environment variable OR add secrets.local.json "
    'with { "MIE_PASSWORD": "..." }'
)


def _upstream_host(url: str) -> str:
    return urlsplit(url).netloc or url


class MieRelayDispatcher:
    """Runs the relay state machine for one POST /api/mie call."""

    def __init__(self, ctx: RelayContext):
        self.ctx = ctx
        self.settings = ctx.settings

    async def handle(self, req: MieRelayRequest) -> MieRelayResponse:
        self._validate(req)
        method, soap_url = req.method, req.soap_url
        upstream = _upstream_host(soap_url)

        self._log(RelayStage.RESOLVE_SECRETS, method, upstream)
        password = self.ctx.secrets.resolve(MIE_PASSWORD, body_value=req.password)
        if not password:
            raise ConfigurationError(
                "Missing MIE password", MIE_PASSWORD, hint=PASSWORD_HINT,
                context=ErrorContext(stage=RelayStage.RESOLVE_SECRETS.value),
            )
        username = self.ctx.secrets.resolve(MIE_USERNAME, body_value=req.username)

        self._log(RelayStage.BUILD_ENVELOPE, method, upstream)
        envelope = self._build_envelope(req, username, password)
        soap_action = soap_action_for(method, self.settings.mie_namespace)

        self._log(RelayStage.DISPATCH_UPSTREAM, method, upstream)
        status_code, body = await self._dispatch(
            soap_url, soap_action, envelope, method,
        )

        self._log(RelayStage.PARSE_RESPONSE, method, upstream, status_code)
        result_text = extract_tag_text(body, f"{method}Result")
        request_key = extract_request_key(result_text)
        if request_key is None:
            logger.info(
                "No request key in SOAP result",
                extra={"method": method, "upstream": upstream},
            )

        self._log(RelayStage.RESPOND, method, upstream, status_code)
        outcome = RelayResponse.from_upstream(
            status_code, body, result_text=result_text, reference_key=request_key,
        )
        return MieRelayResponse.from_outcome(
            outcome, method=method, soap_action=soap_action,
        )

    def _validate(self, req: MieRelayRequest) -> None:
        context = ErrorContext(stage=RelayStage.VALIDATE.value)
        if not req.method:
            raise RelayValidationError("Missing method", "method", context)
        if not req.soap_url:
            raise RelayValidationError("Missing soapUrl", "soapUrl", context)
        if not is_valid_method_name(req.method):
            raise RelayValidationError(
                f"Invalid method name: {req.method!r}", "method", context,
            )

    def _build_envelope(
        self, req: MieRelayRequest, username: str | None, password: str,
    ) -> str:
        payload = req.payload or MiePayload()
        logon_xml = req.a_logon_xml or build_logon_xml(
            client_key=req.client_key,
            agent_key=req.agent_key,
            username=username,
            password=password,
            source=req.source,
        )
        argument_xml = req.a_argument or build_request_xml(
            client_key=req.client_key,
            agent_key=req.agent_key,
            remote_key=payload.remote_key,
            first_name=payload.first_name,
            last_name=payload.last_name,
            id_number=payload.id_number,
            date_of_birth=payload.date_of_birth,
            phone=payload.phone,
            email=payload.email,
            source=payload.source or req.source,
            check_types=payload.check_types,
            indemnity_acknowledged=payload.indemnity_acknowledged,
        )
        logger.debug(
            f"Built envelope with {len(payload.check_types)} check item(s), "
            f"indemnity={payload.indemnity_acknowledged}",
            extra={"method": req.method},
        )
        return build_soap_envelope(
            req.method, logon_xml, argument_xml, self.settings.mie_namespace,
        )

    async def _dispatch(
        self, soap_url: str, soap_action: str, envelope: str, method: str,
    ) -> tuple[int, str]:
        details = {"soapAction": soap_action, "soapUrl": soap_url}
        context = ErrorContext(
            stage=RelayStage.DISPATCH_UPSTREAM.value,
            upstream=_upstream_host(soap_url),
        )
        try:
            resp = await self.ctx.client.post(
                soap_url,
                content=envelope.encode("utf-8"),
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": soap_action,
                    "Accept": "text/xml",
                },
            )
        except httpx.HTTPError as e:
            raise UpstreamTransportError(
                f"MIE SOAP request failed: {type(e).__name__}",
                details=details, context=context,
            ) from e

        body = resp.text
        if not resp.is_success:
            logger.warning(
                f"MIE SOAP HTTP {resp.status_code}",
                extra={"method": method, "http_status": resp.status_code,
                       "upstream": context.upstream},
            )
            raise UpstreamTransportError(
                f"MIE SOAP HTTP {resp.status_code}",
                upstream_status=resp.status_code,
                details={
                    **details,
                    "responseSnippet": body[: self.settings.response_snippet_max_chars],
                },
                context=context,
            )
        return resp.status_code, body

    def _log(
        self,
        stage: RelayStage,
        method: str,
        upstream: str,
        http_status: int | None = None,
    ) -> None:
        logger.debug(
            f"MIE relay {stage.value}",
            extra={"stage": stage.value, "method": method,
                   "upstream": upstream, "http_status": http_status},
        )
