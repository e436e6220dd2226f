"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Provider errors (permission, timeout, network, malformed payload) are raised
by the upstream adapters and absorbed by the location resolver and the rate
cache; they never reach a caller of those services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    provider: str
    http_status: int
    timeout_s: float
    retry_after: int
    currency: str
    action: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class NotFoundAppError(AppError):
    """Raised when a request names something that is not registered."""


class ProviderError(AppError):
    """Base class for failures of an upstream provider call."""


class PermissionDeniedError(ProviderError):
    """The position sensor refused access (or no sensor exists)."""


class ProviderTimeoutError(ProviderError):
    """An upstream call or sensor read exceeded its time budget."""


class NetworkUnavailableError(ProviderError):
    """Transport failure or non-2xx response from an upstream."""


class MalformedResponseError(ProviderError):
    """An upstream answered with a payload we cannot interpret."""


class StalePositionError(ProviderError):
    """The sensor only had a position older than the accepted age."""


class UnsupportedCurrencyError(AppError):
    """Raised when a caller asks for a currency outside the registry."""


class RateLimitedError(AppError):
    """Raised at the HTTP edge when a throttled action is denied."""

    def __init__(
        self,
        code: str,
        message: str,
        details: ErrorDetails | None = None,
        *,
        retry_after_seconds: int = 0,
    ) -> None:
        super().__init__(code=code, message=message, details=details)
        self.retry_after_seconds = retry_after_seconds
