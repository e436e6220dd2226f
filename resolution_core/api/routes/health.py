from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Does not touch any upstream: the location and rate providers degrade
    to defaults on their own, so their availability is not a health signal.
    """

    return {"status": "ok"}
