"""Settings tests — environment-driven configuration.

Tests cover:
    - RENDER selects the 0.0.0.0 bind host
    - PORT and SMS relay mode read from the environment
    - Trailing slash stripped from the SMS base URL
    - Default secrets-file candidates: cwd first
"""

from pathlib import Path

from rsproxy.config import SECRETS_FILE_NAME, Settings
from rsproxy.core.domain_types import SmsRelayMode


def test_bind_host_local_by_default(monkeypatch):
    monkeypatch.delenv("RENDER", raising=False)
    assert Settings(_env_file=None).bind_host == "127.0.0.1"


def test_bind_host_render(monkeypatch):
    monkeypatch.setenv("RENDER", "true")
    assert Settings(_env_file=None).bind_host == "0.0.0.0"


def test_port_and_mode_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "10000")
    monkeypatch.setenv("SMS_RELAY_MODE", "portal")
    s = Settings(_env_file=None)
    assert s.port == 10000
    assert s.sms_relay_mode == SmsRelayMode.PORTAL


def test_sms_base_url_trailing_slash_stripped():
    s = Settings(_env_file=None, sms_base_url="https://rest.smsportal.com/")
    assert s.sms_base_url == "https://rest.smsportal.com"


def test_default_secrets_candidates_start_with_cwd():
    candidates = Settings(_env_file=None).secrets_file_candidates()
    assert candidates[0] == Path.cwd() / SECRETS_FILE_NAME
    assert all(p.name == SECRETS_FILE_NAME for p in candidates)


def test_explicit_secrets_paths(tmp_path):
    s = Settings(_env_file=None, secrets_file_paths=[str(tmp_path / "a.json")])
    assert s.secrets_file_candidates() == [tmp_path / "a.json"]
