"""Tests for LocationResolver fallback, memoization and invalidation."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from resolution_core.adapters.geo import (
    HttpReverseGeocoder,
    IpLookupProvider,
    SensorLocationProvider,
    StaticPositionSensor,
    UnavailablePositionSensor,
)
from resolution_core.adapters.geo.base import AbstractAddressLocator, AbstractLocationProvider
from resolution_core.core.errors import NetworkUnavailableError
from resolution_core.schemas.location import LocationRecord, Provenance
from resolution_core.services.location_resolver import LocationResolver
from resolution_core.utils.fallback import FailureReason
from resolution_core.utils.value_cache import ValueCache


class _FakeProvider(AbstractLocationProvider):
    def __init__(self, name: str, result: LocationRecord | Exception, delay: float = 0.0) -> None:
        self.name = name
        self._result = result
        self._delay = delay
        self.calls = 0

    async def locate(self) -> LocationRecord:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


def _down(name: str) -> _FakeProvider:
    return _FakeProvider(name, NetworkUnavailableError(code="down", message=f"{name} down"))


@pytest.mark.asyncio
async def test_all_providers_failing_yields_default_record() -> None:
    resolver = LocationResolver([_down("sensor"), _down("ip_lookup")])

    resolution = await resolver.resolve_with_diagnostics()

    assert resolution.record.country_code == "XX"
    assert resolution.record.country == "Unknown"
    assert resolution.record.provenance is Provenance.DEFAULT
    assert [f.step for f in resolution.failures] == ["sensor", "ip_lookup"]
    assert all(f.reason is FailureReason.NETWORK_UNAVAILABLE for f in resolution.failures)


@pytest.mark.asyncio
async def test_default_record_is_not_memoized() -> None:
    ip = _down("ip_lookup")
    resolver = LocationResolver([ip])

    await resolver.resolve()
    await resolver.resolve()

    assert ip.calls == 2


@pytest.mark.asyncio
async def test_sensor_denied_falls_through_to_ip_lookup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"country_name": "France", "country_code": "FR"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        resolver = LocationResolver(
            [
                SensorLocationProvider(
                    UnavailablePositionSensor(),
                    HttpReverseGeocoder(client, "https://geo.test/reverse"),
                ),
                IpLookupProvider(client, "https://ip.test/json/"),
            ]
        )
        resolution = await resolver.resolve_with_diagnostics()

    assert resolution.record.country_code == "FR"
    assert resolution.record.country == "France"
    assert resolution.record.provenance is Provenance.NETWORK
    assert resolution.failures[0].reason is FailureReason.PERMISSION_DENIED


@pytest.mark.asyncio
async def test_reverse_geocode_failure_falls_through_to_ip_lookup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "geo.test":
            return httpx.Response(500)
        return httpx.Response(200, json={"country_name": "Australia", "country_code": "AU"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        resolver = LocationResolver(
            [
                SensorLocationProvider(
                    StaticPositionSensor(-33.86, 151.2),
                    HttpReverseGeocoder(client, "https://geo.test/reverse"),
                ),
                IpLookupProvider(client, "https://ip.test/json/"),
            ]
        )
        record = await resolver.resolve()

    assert record.country_code == "AU"


@pytest.mark.asyncio
async def test_sensor_tier_wins_when_it_succeeds() -> None:
    sensor = _FakeProvider(
        "sensor", LocationRecord(country="New Zealand", country_code="NZ", provenance=Provenance.SENSOR)
    )
    ip = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"))
    resolver = LocationResolver([sensor, ip])

    record = await resolver.resolve()

    assert record.country_code == "NZ"
    assert record.provenance is Provenance.SENSOR
    assert ip.calls == 0


@pytest.mark.asyncio
async def test_provider_without_provenance_is_tagged_by_tier() -> None:
    ip = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"))

    record = await LocationResolver([ip]).resolve()

    assert record.provenance is Provenance.NETWORK


@pytest.mark.asyncio
async def test_result_is_memoized_until_invalidated() -> None:
    ip = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"))
    cache: ValueCache[LocationRecord] = ValueCache("location")
    resolver = LocationResolver([ip], cache)

    first = await resolver.resolve_with_diagnostics()
    second = await resolver.resolve_with_diagnostics()

    assert first.cached is False
    assert second.cached is True
    assert second.record == first.record
    assert ip.calls == 1

    assert resolver.invalidate() is True
    await resolver.resolve()
    assert ip.calls == 2


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_provider_run() -> None:
    ip = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"), delay=0.01)
    resolver = LocationResolver([ip])

    records = await asyncio.gather(*(resolver.resolve() for _ in range(5)))

    assert {r.country_code for r in records} == {"FR"}
    assert ip.calls == 1


@pytest.mark.asyncio
async def test_unexpected_provider_exception_is_absorbed() -> None:
    broken = _FakeProvider("sensor", RuntimeError("bug"))
    ip = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"))

    resolution = await LocationResolver([broken, ip]).resolve_with_diagnostics()

    assert resolution.record.country_code == "FR"
    assert resolution.failures[0].reason is FailureReason.UNEXPECTED


class _FakeLocator(AbstractAddressLocator):
    def __init__(self, answers: dict[str, LocationRecord]) -> None:
        self._answers = answers
        self.seen: list[str] = []

    async def locate_address(self, address: str) -> LocationRecord:
        self.seen.append(address)
        record = self._answers.get(address)
        if record is None:
            raise NetworkUnavailableError(code="down", message="lookup down")
        return record


def _caller_resolver(locator: _FakeLocator) -> tuple[LocationResolver, _FakeProvider]:
    own = _FakeProvider("ip_lookup", LocationRecord(country="New Zealand", country_code="NZ"))
    return LocationResolver([own], address_locator=locator), own


@pytest.mark.asyncio
async def test_each_address_is_located_separately() -> None:
    locator = _FakeLocator(
        {
            "81.2.69.160": LocationRecord(country="United Kingdom", country_code="GB"),
            "1.1.1.1": LocationRecord(country="Australia", country_code="AU"),
        }
    )
    resolver, own = _caller_resolver(locator)

    gb = await resolver.resolve_for_address("81.2.69.160")
    au = await resolver.resolve_for_address("1.1.1.1")
    again = await resolver.resolve_for_address(" 81.2.69.160 ")

    assert (gb.country_code, au.country_code, again.country_code) == ("GB", "AU", "GB")
    assert gb.provenance is Provenance.NETWORK
    assert locator.seen == ["81.2.69.160", "1.1.1.1"]
    assert own.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("address", [None, "", "testclient", "127.0.0.1", "10.0.0.7", "::1"])
async def test_unroutable_address_uses_service_location(address: str | None) -> None:
    locator = _FakeLocator({})
    resolver, own = _caller_resolver(locator)

    record = await resolver.resolve_for_address(address)

    assert record.country_code == "NZ"
    assert locator.seen == []
    assert own.calls == 1


@pytest.mark.asyncio
async def test_failed_address_lookup_defaults_and_is_retried() -> None:
    locator = _FakeLocator({})
    resolver, own = _caller_resolver(locator)

    first = await resolver.resolve_for_address("8.8.8.8")
    await resolver.resolve_for_address("8.8.8.8")

    assert first.country_code == "XX"
    assert first.provenance is Provenance.DEFAULT
    assert locator.seen == ["8.8.8.8", "8.8.8.8"]
    assert own.calls == 0


@pytest.mark.asyncio
async def test_without_address_locator_callers_share_service_location() -> None:
    own = _FakeProvider("ip_lookup", LocationRecord(country="France", country_code="FR"))

    record = await LocationResolver([own]).resolve_for_address("81.2.69.160")

    assert record.country_code == "FR"


@pytest.mark.asyncio
async def test_invalidate_also_forgets_caller_locations() -> None:
    locator = _FakeLocator({"1.1.1.1": LocationRecord(country="Australia", country_code="AU")})
    resolver, _ = _caller_resolver(locator)

    await resolver.resolve_for_address("1.1.1.1")
    resolver.invalidate()
    await resolver.resolve_for_address("1.1.1.1")

    assert locator.seen == ["1.1.1.1", "1.1.1.1"]
