"""Factory for the ordered location provider chain."""

from __future__ import annotations

import httpx

from resolution_core.adapters.geo.base import (
    AbstractAddressLocator,
    AbstractLocationProvider,
    AbstractPositionSensor,
)
from resolution_core.adapters.geo.ip_lookup import IpLookupProvider
from resolution_core.adapters.geo.reverse_geocoder import HttpReverseGeocoder
from resolution_core.adapters.geo.sensor import SensorLocationProvider, UnavailablePositionSensor
from resolution_core.core.config import ProviderSettings, settings


def create_location_providers(
    client: httpx.AsyncClient,
    *,
    sensor: AbstractPositionSensor | None = None,
    provider_settings: ProviderSettings | None = None,
) -> list[AbstractLocationProvider]:
    """Build the sensor → network tiers in resolution order.

    Reads endpoints and timeouts from ``settings.providers`` unless explicit
    settings are given. The default record is not a provider; the resolver
    supplies it when every tier fails.

    Args:
        client: Shared HTTP client for every upstream.
        sensor: Position source; defaults to one that always denies.
        provider_settings: Optional override of the global provider settings.

    Returns:
        Providers in the order they must be tried.
    """
    cfg = provider_settings or settings.providers

    geocoder = HttpReverseGeocoder(
        client,
        cfg.reverse_geocode_url,
        timeout_seconds=cfg.http_timeout_seconds,
    )
    return [
        SensorLocationProvider(
            sensor or UnavailablePositionSensor(),
            geocoder,
            timeout_seconds=cfg.sensor_timeout_seconds,
            max_age_seconds=cfg.sensor_max_age_seconds,
        ),
        IpLookupProvider(
            client,
            cfg.ip_lookup_url,
            timeout_seconds=cfg.http_timeout_seconds,
        ),
    ]


def create_address_locator(
    client: httpx.AsyncClient,
    provider_settings: ProviderSettings | None = None,
) -> AbstractAddressLocator:
    """Build the locator used for request clients' addresses.

    Args:
        client: Shared HTTP client.
        provider_settings: Optional override of the global provider settings.

    Returns:
        AbstractAddressLocator: Lookup against ``ip_lookup_address_url``.
    """
    cfg = provider_settings or settings.providers
    return IpLookupProvider(
        client,
        cfg.ip_lookup_url,
        address_url=cfg.ip_lookup_address_url,
        timeout_seconds=cfg.http_timeout_seconds,
    )
