"""Currency lookup, exchange rates with TTL cache, conversion and formatting.

Rates are cached for ``ttl_seconds`` after a successful live fetch. A failed
fetch answers with the static seed table and leaves the cache entry alone, so
the next call tries the upstream again instead of waiting out the TTL.
Concurrent callers that find the cache stale share one in-flight fetch.

All methods run on the event loop; the entry is only ever replaced as a whole.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Callable, Mapping

from resolution_core.adapters.fx.base import AbstractRatesClient
from resolution_core.core.errors import ProviderError, UnsupportedCurrencyError
from resolution_core.schemas.currency import CurrencyInfo, RateSource
from resolution_core.services.currency_data import (
    COUNTRY_CURRENCY,
    CURRENCIES,
    SUFFIX_SYMBOL_CURRENCIES,
    USD,
)
from resolution_core.utils.fallback import classify_failure

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60

_CENT = Decimal("0.01")
_UNIT = Decimal("1")


@dataclass(frozen=True)
class RateCacheEntry:
    """Immutable snapshot of rates.

    Attributes:
        rates: Currency code to units per USD (read-only).
        fetched_at: UNIX epoch seconds of the live fetch; None for static rates.
        source: Whether the rates came from the upstream or the seed table.
    """

    rates: Mapping[str, float]
    fetched_at: float | None
    source: RateSource


def static_rates() -> dict[str, float]:
    """Seed rates for every registered currency."""
    return {code: info.rate for code, info in CURRENCIES.items()}


_STATIC_ENTRY = RateCacheEntry(
    rates=MappingProxyType(static_rates()),
    fetched_at=None,
    source=RateSource.STATIC,
)


def get_currency_for_country(country_code: str | None) -> CurrencyInfo:
    """Currency used in a country; USD for anything unmapped."""
    code = COUNTRY_CURRENCY.get((country_code or "").strip().upper())
    if code is None:
        return USD
    return CURRENCIES[code]


def round_money(amount: float | Decimal) -> float:
    """Round half-up to two decimal places."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return float(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def format_price(amount: float, currency: CurrencyInfo) -> str:
    """Render ``amount`` in whole display units with the currency's symbol.

    Cents are dropped on purpose: marketing copy shows whole units only.
    """
    whole = int(Decimal(str(amount)).quantize(_UNIT, rounding=ROUND_HALF_UP))
    if currency.code in SUFFIX_SYMBOL_CURRENCIES:
        return f"{whole}{currency.symbol}"
    return f"{currency.symbol}{whole}"


class RateCache:
    """TTL cache in front of an exchange-rate upstream.

    Attributes:
        ttl_seconds: How long a live fetch is served before refreshing.
    """

    def __init__(
        self,
        rates_client: AbstractRatesClient | None = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            rates_client: Upstream client; without one only static rates are served.
            ttl_seconds: Lifetime of a live fetch.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._client = rates_client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: RateCacheEntry | None = None
        self._inflight: asyncio.Future[RateCacheEntry] | None = None

    # ── Currency registry ──────────────────────────────────────────────

    get_currency_for_country = staticmethod(get_currency_for_country)
    format_price = staticmethod(format_price)

    @staticmethod
    def get_currency(code: str) -> CurrencyInfo:
        """Look up a registered currency by ISO-4217 code.

        Raises:
            UnsupportedCurrencyError: If the code is not registered.
        """
        info = CURRENCIES.get((code or "").strip().upper())
        if info is None:
            raise UnsupportedCurrencyError(
                code="unsupported_currency",
                message=f"Currency '{code}' is not supported",
                details={"currency": code, "hint": f"Supported: {', '.join(sorted(CURRENCIES))}"},
            )
        return info

    @staticmethod
    def get_supported_currencies() -> list[CurrencyInfo]:
        """Regional currencies offered besides the USD default."""
        return [info for code, info in sorted(CURRENCIES.items()) if code != USD.code]

    @staticmethod
    def is_currency_supported(country_code: str) -> bool:
        return (country_code or "").strip().upper() in COUNTRY_CURRENCY

    @staticmethod
    def get_currency_display_name(country_code: str) -> str:
        currency = get_currency_for_country(country_code)
        return f"{currency.name} ({currency.code})"

    # ── Rates ──────────────────────────────────────────────────────────

    @property
    def entry(self) -> RateCacheEntry | None:
        """Last successful live fetch, fresh or not."""
        return self._entry

    def _is_fresh(self, entry: RateCacheEntry | None) -> bool:
        return (
            entry is not None
            and entry.fetched_at is not None
            and self._clock() - entry.fetched_at < self.ttl_seconds
        )

    async def get_exchange_rates(self) -> dict[str, float]:
        """Rates per USD for every registered currency."""
        return dict((await self.get_rate_entry()).rates)

    async def get_rate_entry(self) -> RateCacheEntry:
        """Fresh cached entry, a new live entry, or the static fallback."""
        entry = self._entry
        if self._is_fresh(entry):
            logger.debug("fx.cache_hit", extra={"age_s": self._clock() - entry.fetched_at})
            return entry

        inflight = self._inflight
        if inflight is None:
            inflight = asyncio.ensure_future(self._refresh())
            self._inflight = inflight
            inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(inflight)

    def _clear_inflight(self, future: asyncio.Future[RateCacheEntry]) -> None:
        if self._inflight is future:
            self._inflight = None

    async def _refresh(self) -> RateCacheEntry:
        if self._client is None:
            return _STATIC_ENTRY

        try:
            live = await self._client.fetch_rates()
        except ProviderError as exc:
            logger.warning(
                "fx.refresh_failed",
                extra={"reason": classify_failure(exc).value, "error_code": exc.code},
            )
            return _STATIC_ENTRY
        except Exception:
            logger.exception("fx.refresh_failed", extra={"reason": "unexpected"})
            return _STATIC_ENTRY

        merged = static_rates()
        ignored = 0
        for code, rate in live.items():
            if code in merged:
                merged[code] = rate
            else:
                ignored += 1
        merged[USD.code] = 1.0

        entry = RateCacheEntry(
            rates=MappingProxyType(merged),
            fetched_at=self._clock(),
            source=RateSource.LIVE,
        )
        self._entry = entry
        logger.info(
            "fx.refreshed",
            extra={"currencies": len(merged), "ignored_codes": ignored},
        )
        return entry

    def invalidate(self) -> None:
        """Drop the cached entry so the next read refetches."""
        self._entry = None

    # ── Conversion ─────────────────────────────────────────────────────

    @staticmethod
    def convert_with_rates(usd_amount: float, code: str, rates: Mapping[str, float]) -> float:
        """Convert using an already resolved rates mapping."""
        code = (code or "").strip().upper()
        if code == USD.code:
            return usd_amount

        rate = rates.get(code)
        if rate is None:
            logger.warning("fx.unknown_currency", extra={"currency": code})
            rate = 1.0
        return round_money(Decimal(str(usd_amount)) * Decimal(str(rate)))

    async def convert_from_usd(self, usd_amount: float, code: str) -> float:
        """Convert a USD amount, rounded to cents; identity for USD."""
        if (code or "").strip().upper() == USD.code:
            return usd_amount
        rates = await self.get_exchange_rates()
        return self.convert_with_rates(usd_amount, code, rates)
