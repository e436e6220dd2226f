"""IP-based geolocation over an ipapi.co compatible endpoint."""

from __future__ import annotations

from typing import Any

import httpx

from resolution_core.adapters.geo.base import AbstractAddressLocator, AbstractLocationProvider
from resolution_core.adapters.http import get_json, require_mapping
from resolution_core.core.errors import MalformedResponseError
from resolution_core.schemas.location import LocationRecord, Provenance


class IpLookupProvider(AbstractLocationProvider, AbstractAddressLocator):
    """Network tier: locate an address from the ipapi.co JSON shape.

    ``locate()`` asks for the address the upstream sees, which is this
    process's own. ``locate_address()`` asks for a given address through
    ``address_url``, a template containing ``{address}``.

    Expects ``country_name``, ``country_code``, ``region``, ``city``,
    ``latitude``, ``longitude`` and ``timezone``. Missing fields are accepted;
    a payload with neither a country name nor a country code is not a usable
    answer.
    """

    name = "ip_lookup"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        address_url: str | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self._url = url
        self._address_url = address_url
        self._timeout = timeout_seconds

    async def locate(self) -> LocationRecord:
        return await self._lookup(self._url)

    async def locate_address(self, address: str) -> LocationRecord:
        if not self._address_url:
            raise MalformedResponseError(
                code="ip_lookup_no_address_url",
                message="ip lookup has no per-address endpoint configured",
                details={"provider": self.name},
            )
        return await self._lookup(self._address_url.format(address=address))

    async def _lookup(self, url: str) -> LocationRecord:
        payload = require_mapping(
            await get_json(self._client, url, provider=self.name, timeout_seconds=self._timeout),
            provider=self.name,
        )

        # ipapi.co reports quota and reserved-range problems with a 200 body
        if payload.get("error"):
            raise MalformedResponseError(
                code="ip_lookup_error_body",
                message=f"ip lookup refused the request: {payload.get('reason') or 'unknown reason'}",
                details={"provider": self.name},
            )

        return _record_from_payload(payload, provider=self.name)


def _record_from_payload(payload: dict[str, Any], *, provider: str) -> LocationRecord:
    if not payload.get("country_code") and not payload.get("country_name"):
        raise MalformedResponseError(
            code="ip_lookup_no_country",
            message="ip lookup response carries no country",
            details={"provider": provider},
        )

    return LocationRecord(
        country=payload.get("country_name"),
        region=payload.get("region"),
        city=payload.get("city"),
        country_code=payload.get("country_code"),
        latitude=payload.get("latitude"),
        longitude=payload.get("longitude"),
        timezone=payload.get("timezone"),
        provenance=Provenance.NETWORK,
    )
