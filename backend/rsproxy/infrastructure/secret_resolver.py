"""Secret Resolver — ordered lookup chain for vendor credentials.

Invariants:
    - Precedence: request body (when allowed) → environment → secrets file → None
    - The secrets file is read once per resolver, and one resolver is built per
      request; nothing is cached across requests
    - Secret values are never logged; only names and presence are reported
    - A secrets file counts as detected once it parses to a JSON object, even {}

Design Decisions:
    - Explicit source chain instead of nested fallbacks: each source answers
      lookup(name) and the resolver walks them in order
    - File keys match exactly or by lower-case alias (MIE_PASSWORD / mie_password)
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from rsproxy.config import Settings
from rsproxy.core.domain_types import KNOWN_SECRETS

logger = logging.getLogger(__name__)


class SecretSource(Protocol):
    """One link in the resolver chain."""

    def lookup(self, name: str) -> str | None:
        ...


class EnvironmentSource:
    """Process environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def lookup(self, name: str) -> str | None:
        return self.environ.get(name) or None


class SecretsFileSource:
    """First existing JSON secrets file among the candidate paths."""

    def __init__(self, candidates: list[Path]):
        self.path: Path | None = next(
            (p for p in candidates if p.is_file()), None,
        )
        loaded = self._load() if self.path else None
        self.detected: bool = loaded is not None
        self.values: dict = loaded or {}

    def _load(self) -> dict | None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                f"Ignoring unreadable secrets file {self.path}: {type(e).__name__}",
            )
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring secrets file {self.path}: not a JSON object")
            return None
        return data

    def lookup(self, name: str) -> str | None:
        for key in (name, name.lower()):
            value = self.values.get(key)
            if value:
                return str(value)
        return None


class SecretResolver:
    """Walks the source chain and returns the first non-empty value."""

    def __init__(
        self,
        env: EnvironmentSource,
        secrets_file: SecretsFileSource,
        allow_body_secrets: bool = True,
    ):
        self.env = env
        self.secrets_file = secrets_file
        self.allow_body_secrets = allow_body_secrets

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecretResolver":
        return cls(
            EnvironmentSource(),
            SecretsFileSource(settings.secrets_file_candidates()),
            allow_body_secrets=settings.allow_body_secrets,
        )

    def resolve(self, name: str, *, body_value: str | None = None) -> str | None:
        if body_value and self.allow_body_secrets:
            return body_value
        for source in (self.env, self.secrets_file):
            value = source.lookup(name)
            if value:
                return value
        return None

    def describe(self) -> dict:
        """Presence-only summary for the health endpoint."""
        return {
            "secretsFileDetected": self.secrets_file.detected,
            "envVariablesDetected": {
                name: self.env.lookup(name) is not None for name in KNOWN_SECRETS
            },
        }
