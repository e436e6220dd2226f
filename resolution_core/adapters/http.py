"""Shared helper for the plain HTTPS GET/JSON upstreams.

Every transport, status and decoding problem is converted into one of the
provider errors so callers handle a single exception family.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from resolution_core.core.errors import (
    MalformedResponseError,
    NetworkUnavailableError,
    ProviderTimeoutError,
)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    timeout_seconds: float,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Args:
        client: Shared async HTTP client.
        url: Endpoint to call.
        provider: Provider name used in error details.
        timeout_seconds: Budget for the whole request.
        params: Optional query parameters.

    Returns:
        The decoded JSON document.

    Raises:
        ProviderTimeoutError: If the request exceeded ``timeout_seconds``.
        NetworkUnavailableError: On transport errors or a non-2xx status.
        MalformedResponseError: If the body is not valid JSON.
    """
    try:
        response = await client.get(url, params=params, timeout=timeout_seconds)
    except httpx.TimeoutException as exc:
        raise ProviderTimeoutError(
            code="provider_timeout",
            message=f"{provider} did not answer within {timeout_seconds}s",
            details={"provider": provider, "timeout_s": timeout_seconds},
        ) from exc
    except httpx.HTTPError as exc:
        raise NetworkUnavailableError(
            code="provider_unreachable",
            message=f"{provider} is unreachable: {type(exc).__name__}",
            details={"provider": provider},
        ) from exc

    if not response.is_success:
        raise NetworkUnavailableError(
            code="provider_bad_status",
            message=f"{provider} answered with HTTP {response.status_code}",
            details={"provider": provider, "http_status": response.status_code},
        )

    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponseError(
            code="provider_invalid_json",
            message=f"{provider} returned a body that is not JSON",
            details={"provider": provider},
        ) from exc


def require_mapping(payload: Any, *, provider: str) -> dict[str, Any]:
    """Ensure a decoded payload is a JSON object."""
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            code="provider_unexpected_shape",
            message=f"{provider} returned {type(payload).__name__}, expected an object",
            details={"provider": provider},
        )
    return payload
