"""Best-effort location with graceful degradation.

Two questions are answered here:

* where is this service? ``resolve()`` walks an ordered list of providers
  (sensor, then network) and falls back to a fixed ``Unknown``/``XX`` record.
  The first successful record is memoized in a :class:`ValueCache` owned by
  the composition root and is never refreshed on its own, at the cost of
  staleness until ``invalidate()`` is called or the process restarts.
* where is this caller? ``resolve_for_address()`` geolocates the client
  address of a request and memoizes the answer per address.

Neither method raises, and the default record is never memoized, so a later
call retries the providers.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Sequence

from resolution_core.adapters.geo.base import AbstractAddressLocator, AbstractLocationProvider
from resolution_core.core.logging import hash_for_log
from resolution_core.schemas.location import LocationRecord, Provenance, default_location
from resolution_core.utils.fallback import Step, StepFailure, classify_failure, first_success
from resolution_core.utils.value_cache import KeyedValueCache, ValueCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """A resolved record plus what happened on the way.

    Attributes:
        record: The record handed to callers.
        cached: True if served from the memo without running providers.
        failures: Provider failures seen during this run, in chain order.
    """

    record: LocationRecord
    cached: bool = False
    failures: list[StepFailure] = field(default_factory=list)


def _provenance_for(provider: AbstractLocationProvider, record: LocationRecord) -> LocationRecord:
    # Providers set their own provenance; guard against one that forgot.
    if record.provenance is Provenance.DEFAULT:
        tier = Provenance.SENSOR if provider.name == "sensor" else Provenance.NETWORK
        return record.model_copy(update={"provenance": tier})
    return record


def _routable(address: str | None) -> str | None:
    """Return the canonical form of a public IP address, else None."""
    if not address:
        return None
    try:
        parsed = ipaddress.ip_address(address.strip())
    except ValueError:
        return None
    return str(parsed) if parsed.is_global else None


class LocationResolver:
    """Resolve locations once and keep the answers.

    Attributes:
        providers: Tiers tried in order for the service's own location.
        cache: Memo shared with whoever owns invalidation.
        address_locator: Geolocates caller addresses; None disables per-caller lookup.
        address_cache: Per-address memo of caller locations.
    """

    def __init__(
        self,
        providers: Sequence[AbstractLocationProvider],
        cache: ValueCache[LocationRecord] | None = None,
        *,
        address_locator: AbstractAddressLocator | None = None,
        address_cache: KeyedValueCache[LocationRecord] | None = None,
    ) -> None:
        self.providers = list(providers)
        self.cache: ValueCache[LocationRecord] = cache or ValueCache("location")
        self.address_locator = address_locator
        self.address_cache: KeyedValueCache[LocationRecord] = (
            address_cache if address_cache is not None else KeyedValueCache("caller_location")
        )
        self._lock = asyncio.Lock()

    def _steps(self) -> list[Step[LocationRecord]]:
        return [Step(name=provider.name, run=provider.locate) for provider in self.providers]

    async def resolve(self) -> LocationRecord:
        """Return the service's location, degrading to ``Unknown``/``XX``."""
        return (await self.resolve_with_diagnostics()).record

    async def resolve_with_diagnostics(self) -> Resolution:
        """Like :meth:`resolve`, also reporting cache use and tier failures."""
        cached = self.cache.get()
        if cached is not None:
            return Resolution(record=cached, cached=True)

        # Concurrent callers share one provider run
        async with self._lock:
            cached = self.cache.get()
            if cached is not None:
                return Resolution(record=cached, cached=True)

            outcome = await first_success(self._steps())

            if not outcome.succeeded or outcome.value is None:
                logger.warning(
                    "location.defaulted",
                    extra={
                        "failures": [
                            {"step": f.step, "reason": f.reason.value} for f in outcome.failures
                        ],
                    },
                )
                return Resolution(record=default_location(), failures=outcome.failures)

            provider = next(p for p in self.providers if p.name == outcome.step)
            record = _provenance_for(provider, outcome.value)
            self.cache.set(record)
            logger.info(
                "location.resolved",
                extra={
                    "provenance": record.provenance.value,
                    "country_code": record.country_code,
                    "failed_steps": [f.step for f in outcome.failures],
                },
            )
            return Resolution(record=record, failures=outcome.failures)

    async def resolve_for_address(self, address: str | None) -> LocationRecord:
        """Return the location of the caller at ``address``.

        Without an address locator, or for an address that is not a public IP
        (loopback, private ranges, a test client), the caller shares the
        service's network, so the service's own location is returned. A failed
        lookup yields the default record and is not memoized.

        Args:
            address: Client address of the request, as seen by the HTTP layer.

        Returns:
            The caller's location, never raising.
        """
        if self.address_locator is None:
            return await self.resolve()

        canonical = _routable(address)
        if canonical is None:
            logger.debug("location.caller_not_routable")
            return await self.resolve()

        cached = self.address_cache.get(canonical)
        if cached is not None:
            return cached

        try:
            record = await self.address_locator.locate_address(canonical)
        except Exception as exc:
            logger.warning(
                "location.caller_defaulted",
                extra={
                    "client_ip_hash": hash_for_log(canonical),
                    "reason": classify_failure(exc).value,
                    "error_type": type(exc).__name__,
                },
            )
            return default_location()

        if record.provenance is Provenance.DEFAULT:
            record = record.model_copy(update={"provenance": Provenance.NETWORK})
        self.address_cache.set(canonical, record)
        logger.info(
            "location.caller_resolved",
            extra={
                "client_ip_hash": hash_for_log(canonical),
                "country_code": record.country_code,
            },
        )
        return record

    def invalidate(self) -> bool:
        """Forget memoized records so the next calls re-resolve.

        Returns:
            True if the service's own record was dropped.
        """
        self.address_cache.invalidate()
        return self.cache.invalidate()
