"""Location provider interfaces.

A provider either returns a usable :class:`LocationRecord` or raises a
:class:`~resolution_core.core.errors.ProviderError`; the resolver decides what
happens next.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from resolution_core.schemas.location import LocationRecord


@dataclass(frozen=True)
class Position:
    """A coordinate reading from a position sensor.

    Attributes:
        latitude: Degrees north.
        longitude: Degrees east.
        captured_at: UNIX epoch seconds when the reading was taken.
        accuracy_m: Reported accuracy radius in metres, when known.
    """

    latitude: float
    longitude: float
    captured_at: float
    accuracy_m: float | None = None


class AbstractLocationProvider(ABC):
    """One tier of the location fallback chain."""

    name: str = "provider"

    @abstractmethod
    async def locate(self) -> LocationRecord:
        """Resolve the caller's location.

        Raises:
            ProviderError: Any failure of this tier.
        """
        ...


class AbstractPositionSensor(ABC):
    """Source of raw coordinates, typically a permission-gated device API."""

    @abstractmethod
    async def read_position(self, *, max_age_seconds: float, high_accuracy: bool = False) -> Position:
        """Return a position no older than ``max_age_seconds`` if possible.

        Raises:
            PermissionDeniedError: If access was refused or no sensor exists.
        """
        ...


class AbstractReverseGeocoder(ABC):
    """Turns coordinates into a place description."""

    @abstractmethod
    async def reverse(self, latitude: float, longitude: float) -> LocationRecord:
        """Describe the place at the given coordinates.

        Raises:
            ProviderError: If the lookup failed or returned nothing usable.
        """
        ...


class AbstractAddressLocator(ABC):
    """Locates an arbitrary network address, e.g. the client of a request."""

    name: str = "address_locator"

    @abstractmethod
    async def locate_address(self, address: str) -> LocationRecord:
        """Resolve where ``address`` is.

        Raises:
            ProviderError: Any failure of the lookup.
        """
        ...
