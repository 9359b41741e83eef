"""Typed failures raised by the gateway.

Every error is scoped to one request or resource. ``status_code`` and
``code`` let an HTTP collaborator map them without importing httpx or
knowing about the provider.
"""

from __future__ import annotations

import re


class GatewayError(RuntimeError):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"


class QuotaExceeded(GatewayError):
    """Admission was blocked by the quota tracker; the caller must wait."""

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        reason: str | None = None,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.bucket = bucket
        self.reason = reason
        self.retry_after_seconds = retry_after_seconds


class ProviderStructuralError(GatewayError):
    """A structurally required response field was missing. Quota-neutral."""

    status_code = 502
    code = "PROVIDER_ERROR"


class ProviderUnavailable(GatewayError):
    """Network failure, timeout, throttle or 5xx from the provider."""

    status_code = 502
    code = "PROVIDER_UNAVAILABLE"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        is_timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.is_timeout = is_timeout


class ValidationRejected(GatewayError):
    """The persistence guard declined a write. Never user-visible."""

    status_code = 422
    code = "VALIDATION_REJECTED"

    def __init__(self, message: str, *, game_id: str | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.game_id = game_id
        self.reason = reason


class NotFound(GatewayError):
    status_code = 404
    code = "NOT_FOUND"


_PROVIDER_NAME_RE = re.compile(r"\bespn\b", re.IGNORECASE)


def sanitize_error_message(message: str) -> str:
    """Strip upstream provider names from a message shown to end users."""
    cleaned = _PROVIDER_NAME_RE.sub("provider", message)
    return re.sub(r"\s{2,}", " ", cleaned).strip()
