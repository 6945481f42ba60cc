"""Domain Types — request-scoped value types shared by the relay layers.

Invariants:
    - RelayResponse.ok is False whenever http_status is outside 2xx
    - Nothing here is persisted or cached; every instance lives for one call
    - All relay stages encoded as an Enum — no raw string matching
"""

from dataclasses import dataclass
from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class RelayStage(str, Enum):
    """Per-request relay state machine, in execution order."""
    VALIDATE = "validate"
    RESOLVE_SECRETS = "resolve_secrets"
    BUILD_ENVELOPE = "build_envelope"
    DISPATCH_UPSTREAM = "dispatch_upstream"
    PARSE_RESPONSE = "parse_response"
    RESPOND = "respond"


class SmsRelayMode(str, Enum):
    """SMS deployment variants — selects which /api/sms routes are mounted."""
    PASSTHROUGH = "passthrough"
    PORTAL = "portal"


# ─── Constants ───────────────────────────────────────────────────

# Background-check methods that carry an aArgument payload (lower-cased).
WRITE_METHODS = frozenset({
    "ksoputrequest",
    "ksoputbranch",
    "ksoputrequestredirect",
})

MIE_PASSWORD = "MIE_PASSWORD"
MIE_USERNAME = "MIE_USERNAME"
SMS_CLIENT_ID = "SMS_CLIENT_ID"
SMS_CLIENT_SECRET = "SMS_CLIENT_SECRET"

KNOWN_SECRETS = (MIE_PASSWORD, MIE_USERNAME, SMS_CLIENT_ID, SMS_CLIENT_SECRET)


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class RelayResponse:
    """Normalized outcome of one relay call."""
    ok: bool
    http_status: int
    raw_body: str
    result_text: str | None = None
    reference_key: str | None = None

    @classmethod
    def from_upstream(
        cls,
        http_status: int,
        raw_body: str,
        result_text: str | None = None,
        reference_key: str | None = None,
    ) -> "RelayResponse":
        return cls(
            ok=200 <= http_status < 300,
            http_status=http_status,
            raw_body=raw_body,
            result_text=result_text,
            reference_key=reference_key,
        )
