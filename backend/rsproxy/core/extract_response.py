"""Response Extractor — tolerant lookups over vendor SOAP response text.

Invariants:
    - Never raises on malformed or empty input
    - A miss returns None ("no reference issued"), never an error
    - extract_request_key tries its patterns in a fixed priority order
"""

import html
import re

_REQUEST_KEY_PATTERNS = (
    re.compile(r"<RequestKey>([^<]+)</RequestKey>", re.IGNORECASE),
    re.compile(r'RequestKey\s*=\s*"([^"]+)"', re.IGNORECASE),
    re.compile(r"RequestKey\s*:\s*([A-Za-z0-9_-]+)", re.IGNORECASE),
)


def extract_tag_text(xml: str | None, tag_name: str) -> str | None:
    """Inner text of the first <tag_name ...>...</tag_name>, case-insensitive."""
    if not xml or not tag_name:
        return None
    tag = re.escape(tag_name)
    match = re.search(
        rf"<{tag}(?:\s[^>]*)?>([\s\S]*?)</{tag}>", xml, re.IGNORECASE,
    )
    return match.group(1) if match else None


def _first_key(text: str) -> str | None:
    for pattern in _REQUEST_KEY_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_request_key(text: str | None) -> str | None:
    """Vendor request key from result text; retries once on entity-unescaped text."""
    if not text:
        return None
    text = str(text)
    key = _first_key(text)
    if key is None:
        unescaped = html.unescape(text)
        if unescaped != text:
            key = _first_key(unescaped)
    return key
