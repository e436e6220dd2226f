"""Tests for RateCache: TTL, failure handling, single-flight and formatting."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import httpx
import pytest

from resolution_core.adapters.fx import AbstractRatesClient, ExchangeRateApiClient
from resolution_core.core.errors import (
    MalformedResponseError,
    NetworkUnavailableError,
    UnsupportedCurrencyError,
)
from resolution_core.schemas.currency import RateSource
from resolution_core.services.currency_data import CURRENCIES
from resolution_core.services.rate_cache import RateCache, format_price, round_money


class FakeRatesClient(AbstractRatesClient):
    """Scripted upstream that counts fetches."""

    def __init__(self, *results: dict[str, float] | Exception, delay: float = 0.0) -> None:
        self._results = list(results)
        self._delay = delay
        self.calls = 0

    async def fetch_rates(self) -> dict[str, float]:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._results[min(self.calls, len(self._results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


def _unreachable() -> NetworkUnavailableError:
    return NetworkUnavailableError(code="provider_unreachable", message="down")


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0.0, 0.1, 3.99, 59.0, 123456.789])
async def test_usd_conversion_is_identity(amount: float) -> None:
    client = FakeRatesClient({"EUR": 0.9})
    cache = RateCache(client)

    assert await cache.convert_from_usd(amount, "USD") == amount
    assert client.calls == 0


@pytest.mark.asyncio
async def test_second_read_within_ttl_hits_cache() -> None:
    clock = Mock(return_value=1000.0)
    client = FakeRatesClient({"EUR": 0.9})
    cache = RateCache(client, ttl_seconds=3600, clock=clock)

    await cache.get_exchange_rates()
    clock.return_value = 1000.0 + 3599
    await cache.get_exchange_rates()

    assert client.calls == 1


@pytest.mark.asyncio
async def test_expired_entry_is_refetched() -> None:
    clock = Mock(return_value=1000.0)
    client = FakeRatesClient({"EUR": 0.9}, {"EUR": 0.95})
    cache = RateCache(client, ttl_seconds=3600, clock=clock)

    await cache.get_exchange_rates()
    clock.return_value = 1000.0 + 3600
    rates = await cache.get_exchange_rates()

    assert client.calls == 2
    assert rates["EUR"] == 0.95


@pytest.mark.asyncio
async def test_failed_fetch_does_not_poison_cache() -> None:
    client = FakeRatesClient(_unreachable(), {"EUR": 0.9})
    cache = RateCache(client)

    fallback = await cache.get_rate_entry()
    assert fallback.source is RateSource.STATIC
    assert cache.entry is None

    live = await cache.get_rate_entry()
    assert client.calls == 2
    assert live.source is RateSource.LIVE
    assert live.rates["EUR"] == 0.9


@pytest.mark.asyncio
async def test_live_rate_used_after_refresh_and_static_when_unreachable() -> None:
    clock = Mock(return_value=1000.0)
    client = FakeRatesClient({"EUR": 0.90}, _unreachable())
    cache = RateCache(client, ttl_seconds=3600, clock=clock)

    assert await cache.convert_from_usd(100, "EUR") == 90.00

    clock.return_value = 1000.0 + 3601
    assert await cache.convert_from_usd(100, "EUR") == 92.00


@pytest.mark.asyncio
async def test_unexpected_client_error_falls_back_to_static() -> None:
    cache = RateCache(FakeRatesClient(RuntimeError("bug")))

    rates = await cache.get_exchange_rates()

    assert rates == {code: info.rate for code, info in CURRENCIES.items()}


@pytest.mark.asyncio
async def test_without_client_only_static_rates_are_served() -> None:
    entry = await RateCache().get_rate_entry()

    assert entry.source is RateSource.STATIC
    assert entry.fetched_at is None


@pytest.mark.asyncio
async def test_live_rates_are_limited_to_registry_and_pin_usd() -> None:
    cache = RateCache(FakeRatesClient({"EUR": 0.9, "CHF": 0.88, "USD": 1.2}))

    rates = await cache.get_exchange_rates()

    assert set(rates) == set(CURRENCIES)
    assert rates["USD"] == 1.0
    assert rates["GBP"] == CURRENCIES["GBP"].rate


@pytest.mark.asyncio
async def test_concurrent_stale_reads_trigger_one_fetch() -> None:
    client = FakeRatesClient({"EUR": 0.9}, delay=0.01)
    cache = RateCache(client)

    results = await asyncio.gather(*(cache.get_exchange_rates() for _ in range(10)))

    assert client.calls == 1
    assert all(r["EUR"] == 0.9 for r in results)


@pytest.mark.asyncio
async def test_invalidate_forces_refetch() -> None:
    client = FakeRatesClient({"EUR": 0.9})
    cache = RateCache(client)

    await cache.get_exchange_rates()
    cache.invalidate()
    await cache.get_exchange_rates()

    assert client.calls == 2


def test_unknown_currency_converts_at_parity() -> None:
    assert RateCache.convert_with_rates(10.0, "XYZ", {"EUR": 0.9}) == 10.0


def test_conversion_rounds_half_up_to_cents() -> None:
    assert RateCache.convert_with_rates(3.99, "NZD", {"NZD": 1.65}) == 6.58
    assert round_money(0.125) == 0.13


def test_currency_for_country() -> None:
    assert RateCache.get_currency_for_country("nz").code == "NZD"
    assert RateCache.get_currency_for_country("FR").code == "EUR"
    assert RateCache.get_currency_for_country("BR").code == "USD"
    assert RateCache.get_currency_for_country(None).code == "USD"


def test_currency_registry_helpers() -> None:
    assert RateCache.get_currency("eur").symbol == "€"
    assert RateCache.get_currency_display_name("DE") == "Euro (EUR)"
    assert RateCache.is_currency_supported("GB") is True
    assert RateCache.is_currency_supported("BR") is False
    assert "USD" not in {c.code for c in RateCache.get_supported_currencies()}

    with pytest.raises(UnsupportedCurrencyError):
        RateCache.get_currency("CHF")


def test_format_price_places_symbols() -> None:
    assert format_price(90.0, CURRENCIES["EUR"]) == "90€"
    assert format_price(6.58, CURRENCIES["NZD"]) == "NZ$7"
    assert format_price(29.0, CURRENCIES["USD"]) == "$29"
    assert format_price(4350.0, CURRENCIES["JPY"]) == "¥4350"


def test_invalid_ttl() -> None:
    with pytest.raises(ValueError):
        RateCache(ttl_seconds=0)


@pytest.mark.asyncio
async def test_exchange_rate_api_client_filters_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"base": "USD", "rates": {"eur": 0.9, "GBP": "0.8", "JPY": -1, "NZD": True}},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        rates = await ExchangeRateApiClient(http, "https://fx.test/latest/USD").fetch_rates()

    assert rates == {"EUR": 0.9}


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"base": "USD"}, {"rates": {"EUR": "n/a"}}])
async def test_exchange_rate_api_client_rejects_unusable_payloads(payload: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(MalformedResponseError):
            await ExchangeRateApiClient(http, "https://fx.test/latest/USD").fetch_rates()
