"""Localized prices and region-specific bucket labels.

This service answers "what should this USD price look like for this caller".
It resolves the caller's country from their client address through
:class:`LocationResolver` when the caller did not state one, picks the
currency, converts with the rate cache and formats the result.

Budget and marketing-spend labels come from static per-currency tables and
never from live rates, so the copy does not move with currency swings.
"""

from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from resolution_core.core.errors import ValidationAppError
from resolution_core.schemas.currency import BucketLabels, CurrencyInfo, LocalizedPricing
from resolution_core.services.currency_data import (
    BUDGET_BUCKETS,
    MARKETING_BUCKETS,
    PRICING_TIERS,
    USD_BUDGET_BUCKETS,
    USD_MARKETING_BUCKETS,
)
from resolution_core.services.location_resolver import LocationResolver
from resolution_core.services.rate_cache import RateCache, round_money

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _normalize_segment(segment: str) -> str:
    """Accept ``cat_parent``, ``cat-parent`` and ``catParent`` alike."""
    return _CAMEL_BOUNDARY.sub("_", segment.strip()).replace("-", "_").lower()


def _local_edges(
    table: dict[str, tuple[int, ...]],
    usd_edges: Sequence[int],
    currency: CurrencyInfo,
) -> tuple[int, ...]:
    edges = table.get(currency.code)
    if edges is not None:
        return edges
    # No hand-picked row: scale the USD edges by the static seed rate
    return tuple(
        int((Decimal(edge) * Decimal(str(currency.rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        for edge in usd_edges
    )


def _range_labels(edges: Sequence[int], currency: CurrencyInfo) -> list[str]:
    fmt = RateCache.format_price
    labels = [f"Under {fmt(edges[0], currency)}"]
    labels.extend(
        f"{fmt(low, currency)}-{fmt(high, currency)}" for low, high in zip(edges, edges[1:])
    )
    labels.append(f"Over {fmt(edges[-1], currency)}")
    return labels


class LocalizationService:
    """Facade over the location resolver and the rate cache.

    Attributes:
        rate_cache: Currency lookup, rates and formatting.
        location_resolver: Used only when a call does not name a country.
    """

    def __init__(self, rate_cache: RateCache, location_resolver: LocationResolver) -> None:
        self.rate_cache = rate_cache
        self.location_resolver = location_resolver

    async def _country_code(self, country_code: str | None, client_ip: str | None) -> str:
        if country_code and country_code.strip():
            return country_code.strip().upper()
        if client_ip is not None:
            return (await self.location_resolver.resolve_for_address(client_ip)).country_code
        return (await self.location_resolver.resolve()).country_code

    async def currency_for(
        self,
        country_code: str | None = None,
        *,
        client_ip: str | None = None,
    ) -> tuple[str, CurrencyInfo]:
        """Country code actually used and its currency.

        An explicit ``country_code`` wins; otherwise the caller at ``client_ip``
        is located, and without an address the service's own location is used.
        """
        code = await self._country_code(country_code, client_ip)
        return code, self.rate_cache.get_currency_for_country(code)

    async def get_localized_pricing(
        self,
        segment: str,
        tier: str,
        country_code: str | None = None,
        *,
        client_ip: str | None = None,
    ) -> LocalizedPricing:
        """Render a pricing tier in the caller's currency.

        Args:
            segment: Customer segment, e.g. ``cat_parent`` or ``cattery_owner``.
            tier: Tier name within the segment, e.g. ``pepper``.
            country_code: ISO-3166 alpha-2 code; resolved from the caller's
                location when omitted.
            client_ip: Client address of the request, used to locate the caller.

        Returns:
            Formatted monthly, annual and savings amounts plus the currency.

        Raises:
            ValidationAppError: If the segment or tier does not exist.
        """
        segment_key = _normalize_segment(segment)
        tier_key = tier.strip().lower()
        usd_prices = PRICING_TIERS.get(segment_key, {}).get(tier_key)
        if usd_prices is None:
            raise ValidationAppError(
                code="invalid_pricing_tier",
                message=f"Invalid pricing tier: {tier} for segment: {segment}",
                details={
                    "hint": "Known segments: "
                    + ", ".join(f"{s} ({', '.join(t)})" for s, t in PRICING_TIERS.items()),
                },
            )

        _, currency = await self.currency_for(country_code, client_ip=client_ip)
        usd_monthly, usd_annual = usd_prices

        rates = await self.rate_cache.get_exchange_rates() if currency.code != "USD" else {}
        monthly = RateCache.convert_with_rates(usd_monthly, currency.code, rates)
        annual = RateCache.convert_with_rates(usd_annual, currency.code, rates)
        savings = round_money(Decimal(str(monthly)) * 12 - Decimal(str(annual)))

        logger.debug(
            "pricing.localized",
            extra={"segment": segment_key, "tier": tier_key, "currency": currency.code},
        )
        return LocalizedPricing(
            segment=segment_key,
            tier=tier_key,
            monthly=RateCache.format_price(monthly, currency),
            annual=RateCache.format_price(annual, currency),
            savings=RateCache.format_price(savings, currency),
            currency=currency,
        )

    async def get_localized_budget_ranges(
        self, country_code: str | None = None, *, client_ip: str | None = None
    ) -> BucketLabels:
        """Budget-per-stay labels, e.g. ``["Under £40", "£40-£80", ...]``."""
        code, currency = await self.currency_for(country_code, client_ip=client_ip)
        edges = _local_edges(BUDGET_BUCKETS, USD_BUDGET_BUCKETS, currency)
        return BucketLabels(country_code=code, currency=currency, labels=_range_labels(edges, currency))

    async def get_localized_marketing_ranges(
        self, country_code: str | None = None, *, client_ip: str | None = None
    ) -> BucketLabels:
        """Monthly marketing-spend labels, starting with ``"Nothing"``."""
        code, currency = await self.currency_for(country_code, client_ip=client_ip)
        edges = _local_edges(MARKETING_BUCKETS, USD_MARKETING_BUCKETS, currency)
        return BucketLabels(
            country_code=code,
            currency=currency,
            labels=["Nothing", *_range_labels(edges, currency)],
        )
