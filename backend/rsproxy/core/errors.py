"""Error Hierarchy — typed, categorized exceptions for every relay failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation/configuration errors are 400-level; upstream errors are 502
    - to_response() produces the flat {ok|success: false, error, ...} envelope
    - Secrets never appear in messages, details, or hints

Design Decisions:
    - Single hierarchy with RelayError base: one FastAPI handler catches all
    - envelope_key per instance: the portal SMS endpoints answer with "success",
      everything else with "ok"
    - A parse miss is NOT an error — extractors return None instead of raising
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    stage: str | None = None
    upstream: str | None = None
    debug_info: dict[str, Any] | None = None


class RelayError(Exception):
    """Base exception for all relay errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
        envelope_key: str = "ok",
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.hint = hint
        self.details = details or {}
        self.envelope_key = envelope_key

    def to_response(self) -> dict:
        """Convert to the flat JSON error envelope."""
        body: dict[str, Any] = {
            self.envelope_key: False,
            "error": self.message,
            "code": self.code,
        }
        if self.hint:
            body["hint"] = self.hint
        body.update(self.details)
        return body


# ─── Caller Errors (400-level) ──────────────────────────────────

class RelayValidationError(RelayError):
    """A required request field is missing or malformed."""
    def __init__(
        self,
        message: str,
        field: str,
        context: ErrorContext | None = None,
        envelope_key: str = "ok",
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400, envelope_key=envelope_key,
        )
        self.field = field


class ConfigurationError(RelayError):
    """A required credential could not be resolved."""
    def __init__(
        self,
        message: str,
        secret_name: str,
        hint: str | None = None,
        context: ErrorContext | None = None,
        envelope_key: str = "ok",
    ):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.ERROR, context, 400, hint=hint,
            envelope_key=envelope_key,
        )
        self.secret_name = secret_name


# ─── Upstream Errors (502) ──────────────────────────────────────

class UpstreamTransportError(RelayError):
    """Upstream call failed: network error, non-2xx status, or unreadable body."""
    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
        http_status: int = 502,
        envelope_key: str = "ok",
    ):
        super().__init__(
            message, "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, http_status,
            details=details, envelope_key=envelope_key,
        )
        self.upstream_status = upstream_status
