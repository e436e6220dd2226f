from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from resolution_core.api.dependencies import get_client_ip, get_localization_service, get_rate_cache
from resolution_core.core.auth import verify_api_key
from resolution_core.schemas.currency import (
    ConversionResponse,
    CurrencyInfo,
    CurrencyResponse,
    ExchangeRatesResponse,
)
from resolution_core.services.localization_service import LocalizationService
from resolution_core.services.rate_cache import RateCache

router = APIRouter(prefix="/currency", tags=["Currency"], dependencies=[Depends(verify_api_key)])


@router.get("", response_model=CurrencyResponse)
async def get_currency(
    service: Annotated[LocalizationService, Depends(get_localization_service)],
    client_ip: Annotated[str | None, Depends(get_client_ip)],
    country_code: Annotated[
        str | None,
        Query(description="ISO-3166 alpha-2 code; the caller's location is used when omitted."),
    ] = None,
) -> CurrencyResponse:
    """Currency used for a country (USD when the country has no mapping)."""

    code, currency = await service.currency_for(country_code, client_ip=client_ip)
    return CurrencyResponse(
        country_code=code,
        supported=RateCache.is_currency_supported(code),
        display_name=RateCache.get_currency_display_name(code),
        currency=currency,
    )


@router.get("/supported", response_model=list[CurrencyInfo])
async def supported_currencies() -> list[CurrencyInfo]:
    """Regional currencies offered besides the USD default."""

    return RateCache.get_supported_currencies()


@router.get("/convert", response_model=ConversionResponse)
async def convert(
    rate_cache: Annotated[RateCache, Depends(get_rate_cache)],
    amount: Annotated[float, Query(ge=0, description="Amount in USD.")],
    to: Annotated[str, Query(min_length=3, max_length=3, description="ISO-4217 target code.")],
) -> ConversionResponse:
    """Convert a USD amount at the current rate.

    Raises:
        UnsupportedCurrencyError: Unknown target code (rendered as 400).
    """

    currency = RateCache.get_currency(to)
    converted = await rate_cache.convert_from_usd(amount, currency.code)
    return ConversionResponse(
        amount_usd=amount,
        amount=converted,
        formatted=RateCache.format_price(converted, currency),
        currency=currency,
    )


@router.get("/rates", response_model=ExchangeRatesResponse)
async def get_rates(
    rate_cache: Annotated[RateCache, Depends(get_rate_cache)],
) -> ExchangeRatesResponse:
    """Exchange rates per USD, live when available and static otherwise."""

    entry = await rate_cache.get_rate_entry()
    return ExchangeRatesResponse(
        rates=dict(entry.rates),
        source=entry.source,
        fetched_at=(
            datetime.fromtimestamp(entry.fetched_at, tz=timezone.utc)
            if entry.fetched_at is not None
            else None
        ),
    )
