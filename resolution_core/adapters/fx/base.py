from abc import ABC, abstractmethod


class AbstractRatesClient(ABC):
	"""Interface for upstreams that publish exchange rates per USD."""

	@abstractmethod
	async def fetch_rates(self) -> dict[str, float]:
		"""Fetch the latest rates.

		Returns:
			dict[str, float]: Currency code to units of that currency per USD.

		Raises:
			ProviderError: If the upstream is unreachable or the payload is unusable.
		"""
		...
