"""Exchange-rate adapter layer - abstracts over the FX upstream."""

from resolution_core.adapters.fx.base import AbstractRatesClient
from resolution_core.adapters.fx.exchange_rate_api import ExchangeRateApiClient
from resolution_core.adapters.fx.factory import create_rates_client

__all__ = [
    "AbstractRatesClient",
    "ExchangeRateApiClient",
    "create_rates_client",
]
