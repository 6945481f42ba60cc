"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - No credentials live here; they are resolved per request by SecretResolver
    - get_settings() is cached (lru_cache) — single instance per process
    - Routes receive settings through Depends(get_settings), so tests override it

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: a bare `rs-proxy` starts against the live vendors
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rsproxy.core.domain_types import SmsRelayMode
from rsproxy.core.soap_envelope import DEFAULT_NAMESPACE

SECRETS_FILE_NAME = "secrets.local.json"
_BACKEND_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Server
    port: int = 3000
    render: str | None = None

    # SMS vendor
    sms_base_url: str = "https://rest.smsportal.com"
    sms_sender_id: str = "RetailSolutions"
    sms_relay_mode: SmsRelayMode = SmsRelayMode.PASSTHROUGH
    # history/test failures degrade to empty success results
    sms_tolerant_reads: bool = True

    @field_validator("sms_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Background-check vendor
    mie_namespace: str = DEFAULT_NAMESPACE

    # Upstream calls
    upstream_timeout_seconds: float = 30.0
    response_snippet_max_chars: int = 2000
    user_agent: str = "RetailSolutions-SMSProxy/1.0"

    # Secrets
    allow_body_secrets: bool = True
    secrets_file_paths: list[str] | None = None

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def bind_host(self) -> str:
        """0.0.0.0 on Render (RENDER set), loopback otherwise."""
        return "0.0.0.0" if self.render else "127.0.0.1"

    def secrets_file_candidates(self) -> list[Path]:
        if self.secrets_file_paths is not None:
            return [Path(p) for p in self.secrets_file_paths]
        return [
            Path.cwd() / SECRETS_FILE_NAME,
            _BACKEND_DIR / SECRETS_FILE_NAME,
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
