"""Root conftest — shared test configuration.

Invariants:
    - No test sees real vendor credentials from the developer's environment
    - No test reads a real secrets.local.json (secrets_file_paths points at tmp)
"""

import os

import pytest

from rsproxy.config import Settings
from rsproxy.core.domain_types import KNOWN_SECRETS

# Keep the default app quiet and loopback-bound during collection
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.pop("RENDER", None)


@pytest.fixture(autouse=True)
def clean_secret_env(monkeypatch):
    """Strip vendor credentials inherited from the shell."""
    for name in KNOWN_SECRETS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def secrets_file(tmp_path):
    """Path of a (not yet created) secrets.local.json in a temp dir."""
    return tmp_path / "secrets.local.json"


@pytest.fixture
def settings(secrets_file):
    """Passthrough-mode settings isolated from any real secrets file."""
    return Settings(
        _env_file=None,
        secrets_file_paths=[str(secrets_file)],
        sms_base_url="https://sms.upstream.test",
        log_format="text",
    )
