"""Reverse geocoding against the BigDataCloud client endpoint."""

from __future__ import annotations

import httpx

from resolution_core.adapters.geo.base import AbstractReverseGeocoder
from resolution_core.adapters.http import get_json, require_mapping
from resolution_core.core.errors import MalformedResponseError
from resolution_core.schemas.location import LocationRecord, Provenance


class HttpReverseGeocoder(AbstractReverseGeocoder):
    """Describe coordinates using ``countryName`` / ``principalSubdivision`` /
    ``city`` (or ``locality``) / ``countryCode`` from the upstream."""

    name = "reverse_geocode"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        timeout_seconds: float = 5.0,
        language: str = "en",
    ) -> None:
        self._client = client
        self._url = url
        self._timeout = timeout_seconds
        self._language = language

    async def reverse(self, latitude: float, longitude: float) -> LocationRecord:
        payload = require_mapping(
            await get_json(
                self._client,
                self._url,
                provider=self.name,
                timeout_seconds=self._timeout,
                params={
                    "latitude": latitude,
                    "longitude": longitude,
                    "localityLanguage": self._language,
                },
            ),
            provider=self.name,
        )

        if not payload.get("countryCode") and not payload.get("countryName"):
            raise MalformedResponseError(
                code="reverse_geocode_no_country",
                message="reverse geocoding found no country for the coordinates",
                details={"provider": self.name},
            )

        return LocationRecord(
            country=payload.get("countryName"),
            region=payload.get("principalSubdivision"),
            city=payload.get("city") or payload.get("locality"),
            country_code=payload.get("countryCode"),
            latitude=latitude,
            longitude=longitude,
            provenance=Provenance.SENSOR,
        )
