from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from resolution_core.core.logging import hash_for_log
from resolution_core.main import app


client = TestClient(app)


def _request_events(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.getMessage() == "http.request"]


def test_preserves_incoming_request_id_header():
    incoming_id = "waitlist-req-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_and_duration_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


@pytest.mark.parametrize("incoming", ["x" * 129, "req id with spaces", "<script>"])
def test_malformed_incoming_request_id_is_replaced(incoming: str):
    resp = client.get("/health", headers={"X-Request-ID": incoming})

    echoed = resp.headers.get("X-Request-ID")
    assert echoed
    assert echoed != incoming


def test_error_body_carries_the_request_id():
    resp = client.get("/v1/throttle/newsletter/status", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.headers.get("X-Request-ID") == "req-404"
    assert resp.json()["error"]["request_id"] == "req-404"


def test_each_request_is_logged_with_hashed_throttle_key(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="resolution_core.core.middleware"):
        client.get("/v1/throttle/newsletter/status", headers={"X-Session-ID": "visitor-42"})

    [event] = _request_events(caplog)
    assert event.method == "GET"
    assert event.path == "/v1/throttle/newsletter/status"
    assert event.status_code == 404
    assert event.duration_ms >= 0
    assert event.identity_source == "session"
    assert event.client_key_hash == hash_for_log("session:visitor-42")
    assert "visitor-42" not in str(event.__dict__.values())


def test_request_without_session_is_logged_by_ip_source(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.INFO, logger="resolution_core.core.middleware"):
        client.get("/health")

    [event] = _request_events(caplog)
    assert event.status_code == 200
    assert event.identity_source == "ip"
    assert event.client_key_hash == hash_for_log("ip:testclient")
