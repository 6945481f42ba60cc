"""Background-Check Relay Schemas — Pydantic models for the /api/mie boundary.

Invariants:
    - Wire names are camelCase (alias_generator); Python attributes are snake_case
    - Every field is optional at the schema level: method/soapUrl presence is
      checked by the dispatcher so the error text matches the relay contract
    - Numeric keys (clientKey: 20408) are accepted and carried as strings
    - checkTypes: null and indemnityAcknowledged: null read as [] and false
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rsproxy.core.domain_types import RelayResponse


def _scalar_to_str(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


Text = Annotated[str | None, BeforeValidator(_scalar_to_str)]


def _none_as(default: Any):
    """null reads the same as an omitted field."""
    def _coerce(v: Any) -> Any:
        return default() if v is None else v
    return BeforeValidator(_coerce)


CheckTypes = Annotated[list[str], _none_as(list)]
Flag = Annotated[bool, _none_as(bool)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )


class MiePayload(CamelModel):
    """Subject identity and requested checks."""
    check_types: CheckTypes = Field(default_factory=list)
    id_number: Text = None
    first_name: Text = None
    last_name: Text = None
    date_of_birth: Text = None
    email: Text = None
    phone: Text = None
    source: Text = None
    remote_key: Text = None
    indemnity_acknowledged: Flag = False


class MieRelayRequest(CamelModel):
    """Inbound POST /api/mie body."""
    method: Text = None
    soap_url: Text = None
    username: Text = None
    password: Text = None
    client_key: Text = None
    agent_key: Text = None
    source: Text = None
    payload: MiePayload | None = None
    a_logon_xml: Text = None
    a_argument: Text = None


class MieRelayResponse(CamelModel):
    """Wire reply derived from a RelayResponse (serialised by alias)."""
    ok: bool = True
    method: str
    soap_action: str
    request_key: str | None = None
    reference: str | None = None
    result: str | None = None
    raw_soap_response: str

    @classmethod
    def from_outcome(
        cls, outcome: RelayResponse, *, method: str, soap_action: str,
    ) -> "MieRelayResponse":
        return cls(
            ok=outcome.ok,
            method=method,
            soap_action=soap_action,
            request_key=outcome.reference_key,
            reference=outcome.reference_key,
            result=outcome.result_text or None,
            raw_soap_response=outcome.raw_body,
        )
