from __future__ import annotations

from resolution_core.api.routes.currency import router as currency_router
from resolution_core.api.routes.health import router as health_router
from resolution_core.api.routes.location import router as location_router
from resolution_core.api.routes.pricing import router as pricing_router
from resolution_core.api.routes.throttle import router as throttle_router

__all__ = [
    "currency_router",
    "health_router",
    "location_router",
    "pricing_router",
    "throttle_router",
]
