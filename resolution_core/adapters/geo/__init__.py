"""Location providers - the tiers of the location fallback chain."""

from resolution_core.adapters.geo.base import (
    AbstractAddressLocator,
    AbstractLocationProvider,
    AbstractPositionSensor,
    AbstractReverseGeocoder,
    Position,
)
from resolution_core.adapters.geo.factory import create_address_locator, create_location_providers
from resolution_core.adapters.geo.ip_lookup import IpLookupProvider
from resolution_core.adapters.geo.reverse_geocoder import HttpReverseGeocoder
from resolution_core.adapters.geo.sensor import (
    SensorLocationProvider,
    StaticPositionSensor,
    UnavailablePositionSensor,
)

__all__ = [
    "AbstractAddressLocator",
    "AbstractLocationProvider",
    "AbstractPositionSensor",
    "AbstractReverseGeocoder",
    "HttpReverseGeocoder",
    "IpLookupProvider",
    "Position",
    "SensorLocationProvider",
    "StaticPositionSensor",
    "UnavailablePositionSensor",
    "create_address_locator",
    "create_location_providers",
]
