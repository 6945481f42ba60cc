"""SMS Payload tests — auth header, phone normalisation, message bodies.

Tests cover:
    - South African number normalisation (0..., 27..., 9-digit, formatted input)
    - Basic auth header encoding
    - Single and bulk message shapes; optional fields omitted, not null
    - 160-character segment counting
"""

import base64

import pytest

from rsproxy.core.sms_payload import (
    basic_auth_header,
    build_bulk_messages,
    build_single_message,
    normalize_phone_number,
    segment_count,
)


# --- Phone normalisation ------------------------------------------------------

@pytest.mark.parametrize("raw,expected", [
    ("0821234567", "+27821234567"),
    ("27821234567", "+27821234567"),
    ("821234567", "+27821234567"),
    ("+27 82 123 4567", "+27821234567"),
    ("082-123-4567", "+27821234567"),
    (821234567, "+27821234567"),
    ("12345", "+12345"),
    ("4412345678901", "+274412345678901"),
])
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "()- "])
def test_normalize_empty_input(raw):
    assert normalize_phone_number(raw) == ""


# --- Auth header --------------------------------------------------------------

def test_basic_auth_header():
    header = basic_auth_header("id", "sec/ret")
    assert header.startswith("Basic ")
    assert base64.b64decode(header[6:]) == b"id:sec/ret"


# --- Message bodies ---------------------------------------------------------------

def test_single_message_shape():
    assert build_single_message("+27821234567", "Hi", "Shop") == {
        "destination": "+27821234567", "content": "Hi", "sender": "Shop",
    }


def test_single_message_omits_missing_sender():
    assert "sender" not in build_single_message("+27821234567", "Hi")


def test_bulk_messages_keep_order_and_omit_optional_fields():
    body = build_bulk_messages("Hi", ["+27821111111", "+27822222222"])
    assert body == {
        "messages": [
            {"content": "Hi", "destination": "+27821111111"},
            {"content": "Hi", "destination": "+27822222222"},
        ],
        "testMode": False,
    }


def test_bulk_messages_with_schedule_reference_and_sender():
    body = build_bulk_messages(
        "Hi", ["+27821111111"], send_time="2025-01-01T09:00:00Z",
        reference="REF", test_mode=True, sender_id="RetailSolutions",
    )
    assert body["messages"][0]["sendTime"] == "2025-01-01T09:00:00Z"
    assert body["messages"][0]["reference"] == "REF"
    assert body["testMode"] is True
    assert body["senderId"] == "RetailSolutions"


@pytest.mark.parametrize("length,segments", [(0, 0), (1, 1), (160, 1), (161, 2), (480, 3)])
def test_segment_count(length, segments):
    assert segment_count("x" * length) == segments
