"""Factory for the exchange-rate upstream client."""

import httpx

from resolution_core.adapters.fx.base import AbstractRatesClient
from resolution_core.adapters.fx.exchange_rate_api import ExchangeRateApiClient
from resolution_core.core.config import ProviderSettings, settings


def create_rates_client(
    client: httpx.AsyncClient,
    provider_settings: ProviderSettings | None = None,
) -> AbstractRatesClient:
    """Build the rates client from ``settings.providers``.

    Args:
        client: Shared HTTP client.
        provider_settings: Optional override of the global provider settings.

    Returns:
        AbstractRatesClient: Configured rates client.
    """
    cfg = provider_settings or settings.providers
    return ExchangeRateApiClient(
        client,
        cfg.fx_rates_url,
        timeout_seconds=cfg.http_timeout_seconds,
    )
