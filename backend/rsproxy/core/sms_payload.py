"""SMS Payload Builder — auth header, phone normalisation, and message bodies.

Invariants:
    - Phone numbers come out in South African E.164 form (+27...) or as ""
    - Optional message fields are omitted from JSON, never sent as null
    - Bulk messages keep the caller's recipient order
"""

import base64
import math
import re
from typing import Any, Iterable

SMS_SEGMENT_LENGTH = 160
COUNTRY_CODE = "27"

_NON_DIGITS = re.compile(r"\D")


def basic_auth_header(client_id: str, client_secret: str) -> str:
    token = base64.b64encode(
        f"{client_id}:{client_secret}".encode("utf-8"),
    ).decode("ascii")
    return f"Basic {token}"


def normalize_phone_number(raw: Any) -> str:
    """Normalise a local or international SA number to +27XXXXXXXXX.

    0821234567  -> +27821234567
    27821234567 -> +27821234567
    821234567   -> +27821234567
    """
    if raw is None or raw == "":
        return ""
    digits = _NON_DIGITS.sub("", str(raw))
    if not digits:
        return ""
    if digits.startswith(COUNTRY_CODE):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+{COUNTRY_CODE}{digits[1:]}"
    if len(digits) >= 9:
        return f"+{COUNTRY_CODE}{digits}"
    return f"+{digits}"


def segment_count(content: str) -> int:
    """Number of 160-character SMS segments one message consumes."""
    if not content:
        return 0
    return math.ceil(len(content) / SMS_SEGMENT_LENGTH)


def build_single_message(
    destination: str, content: str, sender: str | None = None,
) -> dict[str, Any]:
    message: dict[str, Any] = {
        "destination": destination,
        "content": content,
    }
    if sender:
        message["sender"] = sender
    return message


def build_bulk_messages(
    content: str,
    destinations: Iterable[str],
    *,
    send_time: str | None = None,
    reference: str | None = None,
    test_mode: bool = False,
    sender_id: str | None = None,
) -> dict[str, Any]:
    """Bulk send body: one message per destination, shared schedule/reference."""
    messages = []
    for destination in destinations:
        message: dict[str, Any] = {
            "content": content,
            "destination": destination,
        }
        if send_time:
            message["sendTime"] = send_time
        if reference:
            message["reference"] = reference
        messages.append(message)
    body: dict[str, Any] = {"messages": messages, "testMode": test_mode}
    if sender_id:
        body["senderId"] = sender_id
    return body
