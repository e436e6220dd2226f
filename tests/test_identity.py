"""Tests for throttle identity resolution."""

from __future__ import annotations

import pytest
from starlette.requests import Request

from resolution_core.core import identity
from resolution_core.core.identity import (
    IdentitySource,
    client_fingerprint,
    resolve_client_identity,
)


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/v1/throttle/registration/check",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_api_key_wins_over_everything() -> None:
    request = _request({"X-Session-ID": "s-1"}, client=("10.0.0.1", 1234))

    result = resolve_client_identity(request, api_key="secret")

    assert result.source is IdentitySource.API_KEY
    assert result.value.startswith("api_key:")
    assert "secret" not in result.value
    assert result.low_confidence is False


def test_session_header_beats_ip() -> None:
    request = _request({"X-Session-ID": " s-1 "}, client=("10.0.0.1", 1234))

    result = resolve_client_identity(request)

    assert result.value == "session:s-1"
    assert result.source is IdentitySource.SESSION


def test_client_ip_is_used_without_session() -> None:
    result = resolve_client_identity(_request(client=("10.0.0.1", 1234)))

    assert result.value == "ip:10.0.0.1"
    assert result.source is IdentitySource.IP


def test_forwarded_for_ignored_unless_trusted(monkeypatch: pytest.MonkeyPatch) -> None:
    request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"}, client=("10.0.0.1", 1234))

    monkeypatch.setattr(identity.settings.app, "trust_forwarded_for", False)
    assert resolve_client_identity(request).value == "ip:10.0.0.1"

    monkeypatch.setattr(identity.settings.app, "trust_forwarded_for", True)
    assert resolve_client_identity(request).value == "ip:203.0.113.9"


def test_fingerprint_is_last_resort_and_low_confidence() -> None:
    headers = {
        "User-Agent": "Mozilla/5.0",
        "Accept-Language": "en-NZ",
        "X-Screen-Size": "1920x1080",
        "X-Timezone-Offset": "-720",
    }

    result = resolve_client_identity(_request(headers))

    assert result.source is IdentitySource.FINGERPRINT
    assert result.low_confidence is True
    assert result.value == "fp:" + client_fingerprint("Mozilla/5.0", "en-NZ", "1920x1080", "-720")


def test_fingerprint_is_stable_and_sensitive_to_inputs() -> None:
    first = client_fingerprint("ua", "en", "800x600", "0")

    assert first == client_fingerprint("ua", "en", "800x600", "0")
    assert first != client_fingerprint("ua", "fr", "800x600", "0")
    assert len(first) == 16
