"""SOAP Envelope Builder — JSON request fields → background-check vendor wire format.

Invariants:
    - Any ']]>' inside a CDATA payload is split across two adjacent sections
    - aArgument is emitted only for WRITE_METHODS (case-insensitive match)
    - Method name case is preserved in the body element and the SOAPAction
    - Absent fields become empty elements; building never fails on missing data

Design Decisions:
    - String assembly over an XML library: the vendor expects an exact element
      order and CDATA-wrapped fragments that ElementTree cannot emit
    - Field values are interpolated raw; the whole fragment is CDATA-wrapped
      in the envelope, so the vendor receives the fragment text unchanged
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Iterable

from rsproxy.core.domain_types import WRITE_METHODS

DEFAULT_NAMESPACE = "http://www.kroll.co.za/"

_CDATA_END = "]]>"
_CDATA_SPLIT = "]]]]><![CDATA[>"

_METHOD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")

_ENVELOPE_OPEN = (
    '<?xml version="1.0" encoding="utf-8"?>\n'
    '<soap:Envelope'
    ' xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
    ' xmlns:xsd="http://www.w3.org/2001/XMLSchema"'
    ' xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
    '<soap:Body>'
)
_ENVELOPE_CLOSE = "</soap:Body></soap:Envelope>"


def cdata_wrap(value: Any) -> str:
    """Wrap value in a CDATA section, splitting any embedded terminator."""
    text = "" if value is None else str(value)
    return f"<![CDATA[{text.replace(_CDATA_END, _CDATA_SPLIT)}]]>"


def is_valid_method_name(method: str) -> bool:
    return bool(_METHOD_NAME.match(method or ""))


def method_takes_argument(method: str) -> bool:
    """True for write methods, which must carry an aArgument element."""
    return str(method).lower() in WRITE_METHODS


def soap_action_for(method: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}{method}"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _element(tag: str, value: Any = None) -> str:
    return f"<{tag}>{_text(value)}</{tag}>"


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(
        timespec="milliseconds",
    ).replace("+00:00", "Z")


def default_remote_key() -> str:
    return f"RS_{int(time.time() * 1000)}"


def build_logon_xml(
    client_key: Any = None,
    agent_key: Any = None,
    username: Any = None,
    password: Any = None,
    source: Any = None,
) -> str:
    """Build the aLogonXml token fragment."""
    return (
        "<xml><Token>"
        + _element("ClientKey", client_key)
        + _element("AgentKey", agent_key)
        + _element("UserName", username)
        + _element("Password", password)
        + _element("Source", source)
        + "</Token></xml>"
    )


def _build_item(check_type: str, indemnity: bool) -> str:
    return (
        "<Item>"
        + _element("RemoteItemKey")
        + _element("ItemTypeCode", str(check_type).upper())
        + _element("Indemnity", "true" if indemnity else "false")
        + _element("ItemInputGroupList")
        + "</Item>"
    )


def build_request_xml(
    *,
    client_key: Any = None,
    agent_key: Any = None,
    remote_key: str | None = None,
    first_name: Any = None,
    last_name: Any = None,
    id_number: Any = None,
    date_of_birth: Any = None,
    phone: Any = None,
    email: Any = None,
    source: Any = None,
    check_types: Iterable[str] = (),
    indemnity_acknowledged: bool = False,
    now: datetime | None = None,
) -> str:
    """Build the aArgument request fragment: subject identity plus one Item per check."""
    stamp = iso_timestamp(now)
    items = "".join(
        _build_item(t, indemnity_acknowledged) for t in check_types
    )
    return (
        "<xml><Request>"
        + _element("ClientKey", client_key)
        + _element("AgentClient", client_key)
        + _element("AgentKey", agent_key)
        + _element("RemoteRequest", remote_key or default_remote_key())
        + _element("OrderNumber")
        + _element("RequestReason")
        + _element("Note")
        + _element("FirstNames", first_name)
        + _element("Surname", last_name)
        + _element("MaidenName")
        + _element("IdNumber", id_number)
        + _element("Passport")
        + _element("DateOfBirth", date_of_birth)
        + _element("ContactNumber", phone)
        + _element("PersonEmail", email)
        + _element("AlternateEmail")
        + _element("Source", source)
        + _element("EntityKind", "P")
        + _element("RemoteCaptureDate", stamp)
        + _element("RemoteSendDate", stamp)
        + _element("RemoteGroup")
        + _element("PrerequisiteGroupList")
        + _element("PrerequisiteImageList")
        + f"<ItemList>{items}</ItemList>"
        + "</Request></xml>"
    )


def build_soap_envelope(
    method: str,
    logon_xml: str,
    argument_xml: str | None = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> str:
    """Wrap the fragments in a SOAP 1.1 envelope whose body element is `method`."""
    argument = ""
    if method_takes_argument(method):
        argument = f"<aArgument>{cdata_wrap(argument_xml)}</aArgument>"
    return (
        _ENVELOPE_OPEN
        + f'<{method} xmlns="{namespace}">'
        + f"<aLogonXml>{cdata_wrap(logon_xml)}</aLogonXml>"
        + argument
        + f"</{method}>"
        + _ENVELOPE_CLOSE
    )
