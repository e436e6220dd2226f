from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, Response, status

from resolution_core.adapters.rate_limit.base import AbstractThrottleGuard
from resolution_core.api.dependencies import get_throttle_guard
from resolution_core.core.auth import verify_api_key
from resolution_core.core.errors import NotFoundAppError
from resolution_core.core.identity import resolve_client_identity
from resolution_core.core.rate_limit import enforce_action_throttle
from resolution_core.schemas.throttle import ThrottleCheckResponse, ThrottleStatusResponse

router = APIRouter(prefix="/throttle", tags=["Throttle"], dependencies=[Depends(verify_api_key)])


@router.post("/{action}/check", response_model=ThrottleCheckResponse)
async def check_action(
    result: Annotated[ThrottleCheckResponse, Depends(enforce_action_throttle)],
) -> ThrottleCheckResponse:
    """Count one attempt at ``action`` for the caller.

    UI handlers call this before submitting a sensitive form. A denied
    attempt is answered with 429, a ``Retry-After`` header and a
    "try again in N minutes" message.
    """

    return result


@router.get("/{action}/status", response_model=ThrottleStatusResponse)
async def action_status(
    action: str,
    request: Request,
    guard: Annotated[AbstractThrottleGuard, Depends(get_throttle_guard)],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> ThrottleStatusResponse:
    """Report the caller's usage of ``action`` without counting an attempt."""

    identity = resolve_client_identity(request, x_api_key)
    snapshot = guard.get_status(identity.value, action)
    if snapshot is None:
        raise NotFoundAppError(
            code="unknown_action",
            message=f"Action '{action}' is not throttled.",
            details={"action": action},
        )
    return ThrottleStatusResponse(
        action=action,
        count=snapshot.count,
        remaining=snapshot.remaining,
        reset_time=snapshot.reset_time,
    )


@router.delete("/{action}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_action(
    action: str,
    request: Request,
    guard: Annotated[AbstractThrottleGuard, Depends(get_throttle_guard)],
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> Response:
    """Clear the caller's counter, e.g. after a completed registration."""

    identity = resolve_client_identity(request, x_api_key)
    guard.reset(identity.value, action)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
