"""Who is making a request, for throttling purposes.

An explicit identity always wins: an API key, then a session id, then the
client IP the server observes. Only when none of those exist is a fingerprint
of client-observable signals used (user agent, language, screen size,
timezone offset). The fingerprint is low-entropy and trivially spoofed: it
deters casual abuse and is not a security boundary.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum

from fastapi import Request

from resolution_core.core.config import settings

SESSION_HEADER = "X-Session-ID"
SCREEN_HEADER = "X-Screen-Size"
TIMEZONE_OFFSET_HEADER = "X-Timezone-Offset"


class IdentitySource(str, Enum):
    API_KEY = "api_key"
    SESSION = "session"
    IP = "ip"
    FINGERPRINT = "fingerprint"


@dataclass(frozen=True)
class ClientIdentity:
    """Throttle key for a caller.

    Attributes:
        value: Namespaced identifier, e.g. ``session:abc``.
        source: Which signal produced it.
    """

    value: str
    source: IdentitySource

    @property
    def low_confidence(self) -> bool:
        return self.source is IdentitySource.FINGERPRINT


def client_fingerprint(
    user_agent: str | None,
    language: str | None,
    screen_size: str | None,
    timezone_offset: str | None,
) -> str:
    """Hash client-observable signals into a short pseudo-identifier.

    Best-effort only: every input is controlled by the client.
    """
    raw = "|".join(part or "" for part in (user_agent, language, screen_size, timezone_offset))
    return hashlib.sha256(raw.encode("utf-8", errors="ignore")).hexdigest()[:16]


def client_ip(request: Request) -> str | None:
    """Return the client address, honoring X-Forwarded-For when it is trusted."""
    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else None


def resolve_client_identity(request: Request, api_key: str | None = None) -> ClientIdentity:
    """Pick the strongest identity available for ``request``.

    Args:
        request: Incoming request.
        api_key: Authenticated API key, if any.

    Returns:
        ClientIdentity: Namespaced identifier and its source.
    """
    if api_key:
        digest = hashlib.sha256(api_key.encode()).hexdigest()[:32]
        return ClientIdentity(value=f"api_key:{digest}", source=IdentitySource.API_KEY)

    session_id = (request.headers.get(SESSION_HEADER) or "").strip()
    if session_id:
        return ClientIdentity(value=f"session:{session_id}", source=IdentitySource.SESSION)

    address = client_ip(request)
    if address:
        return ClientIdentity(value=f"ip:{address}", source=IdentitySource.IP)

    fingerprint = client_fingerprint(
        request.headers.get("User-Agent"),
        request.headers.get("Accept-Language"),
        request.headers.get(SCREEN_HEADER),
        request.headers.get(TIMEZONE_OFFSET_HEADER),
    )
    return ClientIdentity(value=f"fp:{fingerprint}", source=IdentitySource.FINGERPRINT)
