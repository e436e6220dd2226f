from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from resolution_core.api.dependencies import get_client_ip, get_localization_service
from resolution_core.core.auth import verify_api_key
from resolution_core.schemas.currency import BucketLabels, LocalizedPricing
from resolution_core.services.localization_service import LocalizationService

router = APIRouter(prefix="/pricing", tags=["Pricing"], dependencies=[Depends(verify_api_key)])

CountryCode = Annotated[
    str | None,
    Query(description="ISO-3166 alpha-2 code; the caller's location is used when omitted."),
]
ClientIp = Annotated[str | None, Depends(get_client_ip)]


@router.get("/budget-ranges", response_model=BucketLabels)
async def budget_ranges(
    service: Annotated[LocalizationService, Depends(get_localization_service)],
    client_ip: ClientIp,
    country_code: CountryCode = None,
) -> BucketLabels:
    """Budget-per-stay bucket labels in the region's currency."""

    return await service.get_localized_budget_ranges(country_code, client_ip=client_ip)


@router.get("/marketing-ranges", response_model=BucketLabels)
async def marketing_ranges(
    service: Annotated[LocalizationService, Depends(get_localization_service)],
    client_ip: ClientIp,
    country_code: CountryCode = None,
) -> BucketLabels:
    """Monthly marketing-spend bucket labels in the region's currency."""

    return await service.get_localized_marketing_ranges(country_code, client_ip=client_ip)


@router.get("/{segment}/{tier}", response_model=LocalizedPricing)
async def localized_pricing(
    segment: str,
    tier: str,
    service: Annotated[LocalizationService, Depends(get_localization_service)],
    client_ip: ClientIp,
    country_code: CountryCode = None,
) -> LocalizedPricing:
    """A pricing tier converted and formatted for the caller's region.

    Raises:
        ValidationAppError: Unknown segment or tier (rendered as 400).
    """

    return await service.get_localized_pricing(segment, tier, country_code, client_ip=client_ip)
