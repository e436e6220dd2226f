"""FastAPI dependencies exposing the objects owned by the composition root.

``create_app`` stores one instance of each service on ``app.state``; routes
receive them through these functions so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from resolution_core.adapters.rate_limit.in_memory import InMemoryThrottleGuard
from resolution_core.core.identity import client_ip
from resolution_core.services.localization_service import LocalizationService
from resolution_core.services.location_resolver import LocationResolver
from resolution_core.services.rate_cache import RateCache


def get_throttle_guard(request: Request) -> InMemoryThrottleGuard:
    return request.app.state.throttle_guard


def get_location_resolver(request: Request) -> LocationResolver:
    return request.app.state.location_resolver


def get_rate_cache(request: Request) -> RateCache:
    return request.app.state.rate_cache


def get_localization_service(request: Request) -> LocalizationService:
    return request.app.state.localization_service


def get_client_ip(request: Request) -> str | None:
    return client_ip(request)
