"""Response Extractor tests — tolerant tag and request-key lookups.

Tests cover:
    - Tag text: case-insensitive, attributes allowed, first match, misses → None
    - Request key: three patterns in priority order, whitespace stripped
    - Entity-escaped SOAP results still yield a key
    - Malformed / empty input never raises
"""

import pytest

from rsproxy.core.extract_response import extract_request_key, extract_tag_text


# --- extract_tag_text -----------------------------------------------------------

def test_tag_text_basic():
    xml = "<a><ksoPutRequestResult>inner</ksoPutRequestResult></a>"
    assert extract_tag_text(xml, "ksoPutRequestResult") == "inner"


def test_tag_text_case_insensitive_with_attributes():
    xml = '<KSOLOGINRESULT xsi:type="string">ok</KSOLOGINRESULT>'
    assert extract_tag_text(xml, "ksoLoginResult") == "ok"


def test_tag_text_non_greedy_first_match():
    xml = "<R>one</R><R>two</R>"
    assert extract_tag_text(xml, "R") == "one"


def test_tag_text_spans_lines():
    assert extract_tag_text("<R>\nline\n</R>", "R") == "\nline\n"


def test_tag_text_does_not_match_longer_tag_name():
    assert extract_tag_text("<ResultX>no</ResultX>", "Result") is None


@pytest.mark.parametrize("xml", [None, "", "<open>no close", "plain text"])
def test_tag_text_miss_returns_none(xml):
    assert extract_tag_text(xml, "open") is None


# --- extract_request_key ----------------------------------------------------------

def test_key_from_element():
    assert extract_request_key("<RequestKey>XYZ</RequestKey>") == "XYZ"


def test_key_from_attribute_form_only():
    assert extract_request_key('<Result RequestKey="ABC123"/>') == "ABC123"


def test_key_from_label_form():
    assert extract_request_key("Saved. RequestKey: RK_99-a") == "RK_99-a"


def test_element_form_wins_over_attribute_form():
    text = 'RequestKey="ATTR" <RequestKey>ELEM</RequestKey>'
    assert extract_request_key(text) == "ELEM"


def test_attribute_form_wins_over_label_form():
    text = 'RequestKey: LABEL RequestKey="ATTR"'
    assert extract_request_key(text) == "ATTR"


def test_key_is_stripped():
    assert extract_request_key("<RequestKey>  K1 </RequestKey>") == "K1"


def test_key_case_insensitive():
    assert extract_request_key("<requestkey>k</requestkey>") == "k"


def test_key_from_entity_escaped_result():
    assert extract_request_key("&lt;RequestKey&gt;E1&lt;/RequestKey&gt;") == "E1"


@pytest.mark.parametrize("text", [
    None, "", "no key here", "<RequestKey></RequestKey>", "RequestKey=",
    "<<<>>>&&&;", 'RequestKey=""',
])
def test_no_recognisable_key_returns_none(text):
    assert extract_request_key(text) is None
