from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from resolution_core.api.dependencies import get_client_ip, get_location_resolver
from resolution_core.core.auth import verify_api_key
from resolution_core.schemas.location import LocationRecord
from resolution_core.services.location_resolver import LocationResolver

router = APIRouter(prefix="/location", tags=["Location"], dependencies=[Depends(verify_api_key)])


@router.get("", response_model=LocationRecord)
async def get_location(
    resolver: Annotated[LocationResolver, Depends(get_location_resolver)],
    client_ip: Annotated[str | None, Depends(get_client_ip)],
) -> LocationRecord:
    """Resolved location of the caller, from their client address.

    Never fails: when the lookup is down the record is ``Unknown``/``XX``
    with provenance ``default``.
    """

    return await resolver.resolve_for_address(client_ip)


@router.get("/service", response_model=LocationRecord)
async def get_service_location(
    resolver: Annotated[LocationResolver, Depends(get_location_resolver)],
) -> LocationRecord:
    """Resolved location of this service, memoized until invalidated."""

    return await resolver.resolve()


@router.post("/invalidate", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_location(
    resolver: Annotated[LocationResolver, Depends(get_location_resolver)],
) -> Response:
    """Forget memoized locations so the next lookups re-resolve."""

    resolver.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
