"""Throttle enforcement for FastAPI routes.

This module wires the throttle guard into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- Swap-friendly: the guard sits behind an abstract interface.
- Explicit identity first: API key, session id and client IP are preferred;
  the client fingerprint is a labelled last resort.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated

from fastapi import Depends, Header, Request

from resolution_core.adapters.rate_limit.base import AbstractThrottleGuard
from resolution_core.api.dependencies import get_throttle_guard
from resolution_core.core.config import settings
from resolution_core.core.errors import RateLimitedError
from resolution_core.core.identity import resolve_client_identity
from resolution_core.core.logging import hash_for_log
from resolution_core.schemas.throttle import ThrottleCheckResponse

logger = logging.getLogger(__name__)


def retry_message(retry_after_seconds: int) -> str:
    """User-facing text for a denied action, in whole minutes."""
    minutes = max(1, math.ceil(retry_after_seconds / 60))
    unit = "minute" if minutes == 1 else "minutes"
    return f"Too many attempts. Please try again in {minutes} {unit}."


async def enforce_action_throttle(
    action: str,
    request: Request,
    guard: Annotated[AbstractThrottleGuard, Depends(get_throttle_guard)],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> ThrottleCheckResponse:
    """FastAPI dependency counting one attempt at ``action``.

    Args:
        action: Action name from the path.
        request: FastAPI request.
        guard: Throttle guard owned by the app.
        x_api_key: API key from the X-API-Key header.

    Returns:
        ThrottleCheckResponse describing the allowed attempt.

    Raises:
        RateLimitedError: When the caller is blocked for this action.
    """

    identity = resolve_client_identity(request, x_api_key)

    if not settings.app.throttle_enabled:
        return ThrottleCheckResponse(
            action=action,
            allowed=True,
            identity_source=identity.source.value,
            low_confidence_identity=identity.low_confidence,
        )

    decision = guard.is_allowed(identity.value, action)
    if decision.allowed:
        logger.info(
            "throttle.allowed",
            extra={
                "action": action,
                "key_type": identity.source.value,
                "key_hash": hash_for_log(identity.value),
                "remaining": decision.remaining,
            },
        )
        return ThrottleCheckResponse(
            action=action,
            allowed=True,
            remaining=decision.remaining,
            identity_source=identity.source.value,
            low_confidence_identity=identity.low_confidence,
        )

    retry_after = decision.retry_after_seconds or 0
    raise RateLimitedError(
        code="rate_limited",
        message=retry_message(retry_after),
        details={"action": action, "retry_after": retry_after},
        retry_after_seconds=retry_after,
    )
