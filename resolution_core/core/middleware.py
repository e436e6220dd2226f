"""HTTP middleware for request correlation and access logging.

Every request gets a correlation id: a well-formed incoming id header is
kept, anything else is replaced by a fresh UUID. The id lives in contextvars
while the request runs, so throttle, location and FX log events carry it, and
it is echoed back with the request duration.

One ``http.request`` event is logged per request. It names the identity the
throttle guard would key the caller on by source and hash only, never the raw
address or session id.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from fastapi import Request, Response

from resolution_core.core.config import settings
from resolution_core.core.identity import resolve_client_identity
from resolution_core.core.logging import clear_request_id, hash_for_log, set_request_id

logger = logging.getLogger(__name__)

DURATION_HEADER = "X-Request-Duration-ms"

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_request_id(request: Request, header_name: str) -> str:
    incoming = (request.headers.get(header_name) or "").strip()
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


def _log_request(request: Request, status_code: int, duration_ms: float) -> None:
    identity = resolve_client_identity(request)
    level = logging.WARNING if status_code >= 500 else logging.INFO
    logger.log(
        level,
        "http.request",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "identity_source": identity.source.value,
            "client_key_hash": hash_for_log(identity.value),
        },
    )


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id to the request, its logs and its response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response with request-id and duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = _incoming_request_id(request, header_name)
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception:
            _log_request(request, 500, (time.perf_counter() - start) * 1000)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        _log_request(request, response.status_code, duration_ms)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(DURATION_HEADER, f"{duration_ms:.2f}")
    return response
