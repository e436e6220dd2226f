"""Application factory for the FastAPI app.

Centralizes app construction (shared collaborators, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from resolution_core.adapters.fx import create_rates_client
from resolution_core.adapters.geo import create_address_locator, create_location_providers
from resolution_core.adapters.rate_limit import InMemoryThrottleGuard, configure_default_policies
from resolution_core.api.routes import (
    currency_router,
    health_router,
    location_router,
    pricing_router,
    throttle_router,
)
from resolution_core.core.config import settings
from resolution_core.core.exception_handlers import setup_exception_handlers
from resolution_core.core.logging import configure_logging
from resolution_core.core.middleware import request_id_middleware
from resolution_core.core.openapi import TAGS_METADATA, apply_openapi_customizations
from resolution_core.services.localization_service import LocalizationService
from resolution_core.services.location_resolver import LocationResolver
from resolution_core.services.rate_cache import RateCache
from resolution_core.utils.value_cache import KeyedValueCache, ValueCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    guard: InMemoryThrottleGuard = app.state.throttle_guard
    await guard.start_sweeper()
    logger.info("app.started", extra={"actions": guard.actions})
    try:
        yield
    finally:
        await guard.stop_sweeper()
        await app.state.http_client.aclose()
        logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Each call builds its own throttle guard, location memo and rate cache
    and stores them on ``app.state``, so two apps never share state.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Resolution Core API",
        description=(
            "Shared services for the waitlist front-end: per-action abuse "
            "throttling, best-effort caller location, cached exchange rates "
            "and localized pricing labels."
        ),
        version="0.1.0",
        openapi_tags=TAGS_METADATA,
        lifespan=_lifespan,
    )

    http_client = httpx.AsyncClient(timeout=settings.providers.http_timeout_seconds)

    guard = InMemoryThrottleGuard(
        sweep_interval_seconds=settings.cache.throttle_sweep_interval_seconds
    )
    configure_default_policies(guard)

    location_resolver = LocationResolver(
        create_location_providers(http_client),
        ValueCache("location"),
        address_locator=create_address_locator(http_client),
        address_cache=KeyedValueCache(
            "caller_location",
            ttl_seconds=settings.cache.caller_location_ttl_seconds,
            max_entries=settings.cache.caller_location_max_entries,
        ),
    )
    rate_cache = RateCache(
        create_rates_client(http_client),
        ttl_seconds=settings.cache.fx_ttl_seconds,
    )

    app.state.http_client = http_client
    app.state.throttle_guard = guard
    app.state.location_resolver = location_resolver
    app.state.rate_cache = rate_cache
    app.state.localization_service = LocalizationService(rate_cache, location_resolver)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(throttle_router, prefix="/v1")
    app.include_router(location_router, prefix="/v1")
    app.include_router(currency_router, prefix="/v1")
    app.include_router(pricing_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, exemptions)
    apply_openapi_customizations(app)

    return app
