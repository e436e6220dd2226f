"""Pydantic schemas for currencies, exchange rates and localized prices."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class CurrencyInfo(BaseModel):
    """Static description of a supported currency."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="ISO-4217 currency code.")
    symbol: str = Field(..., description="Display symbol, e.g. 'NZ$'.")
    name: str = Field(..., description="English currency name.")
    rate: float = Field(..., description="Static seed rate: units of this currency per USD.")


class RateSource(str, Enum):
    LIVE = "live"
    STATIC = "static"


class ExchangeRatesResponse(BaseModel):
    """Rates currently served by the rate cache."""

    base: str = Field("USD", description="Rates are expressed per one unit of this currency.")
    rates: Dict[str, float] = Field(..., description="Currency code to rate.")
    source: RateSource = Field(..., description="'live' when served from a fresh fetch.")
    fetched_at: datetime | None = Field(
        None,
        description="When the live rates were fetched (absent for static rates).",
    )


class CurrencyResponse(BaseModel):
    """Currency chosen for a country."""

    country_code: str
    supported: bool = Field(..., description="Whether the country has a dedicated currency.")
    display_name: str = Field(..., description="e.g. 'Euro (EUR)'.")
    currency: CurrencyInfo


class LocalizedPricing(BaseModel):
    """A pricing tier rendered in the caller's currency."""

    segment: str
    tier: str
    monthly: str = Field(..., description="Formatted monthly price.")
    annual: str = Field(..., description="Formatted annual price.")
    savings: str = Field(..., description="Formatted yearly saving of annual over monthly billing.")
    currency: CurrencyInfo


class BucketLabels(BaseModel):
    """Budget or marketing-spend bucket labels for a region."""

    country_code: str
    currency: CurrencyInfo
    labels: List[str]


class ConversionResponse(BaseModel):
    """A USD amount converted into a supported currency."""

    amount_usd: float = Field(..., description="Amount that was converted.")
    amount: float = Field(..., description="Converted amount, rounded to cents.")
    formatted: str = Field(..., description="Converted amount formatted in whole units.")
    currency: CurrencyInfo
