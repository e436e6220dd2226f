"""Exchange-rate client for exchangerate-api.com style endpoints."""

from typing import Any

import httpx

from resolution_core.adapters.fx.base import AbstractRatesClient
from resolution_core.adapters.http import get_json, require_mapping
from resolution_core.core.errors import MalformedResponseError


class ExchangeRateApiClient(AbstractRatesClient):
    """Fetch ``{"rates": {"EUR": 0.92, ...}}`` documents based on USD.

    Non-numeric and non-positive rates are dropped; an empty result is a
    malformed response.
    """

    name = "fx_rates"

    def __init__(self, client: httpx.AsyncClient, url: str, *, timeout_seconds: float = 5.0) -> None:
        """Initialize the client.

        Args:
            client: Shared async HTTP client.
            url: Endpoint returning rates relative to USD.
            timeout_seconds: Timeout for the request in seconds.
        """
        self._client = client
        self._url = url
        self._timeout = timeout_seconds

    async def fetch_rates(self) -> dict[str, float]:
        payload = require_mapping(
            await get_json(self._client, self._url, provider=self.name, timeout_seconds=self._timeout),
            provider=self.name,
        )

        raw_rates: Any = payload.get("rates")
        if not isinstance(raw_rates, dict):
            raise MalformedResponseError(
                code="fx_missing_rates",
                message="exchange-rate response has no 'rates' object",
                details={"provider": self.name},
            )

        rates = {
            str(code).upper(): float(value)
            for code, value in raw_rates.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
        }
        if not rates:
            raise MalformedResponseError(
                code="fx_no_usable_rates",
                message="exchange-rate response contains no usable rates",
                details={"provider": self.name},
            )
        return rates
