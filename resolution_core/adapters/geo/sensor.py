"""Sensor tier: device coordinates plus reverse geocoding.

A server process has no device sensor of its own. The default sensor refuses
access so the chain moves straight to the network tier; a caller that already
holds coordinates (e.g. a browser that granted permission) can supply them
through :class:`StaticPositionSensor`.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from resolution_core.adapters.geo.base import (
    AbstractLocationProvider,
    AbstractPositionSensor,
    AbstractReverseGeocoder,
    Position,
)
from resolution_core.core.errors import (
    PermissionDeniedError,
    ProviderTimeoutError,
    StalePositionError,
)
from resolution_core.schemas.location import LocationRecord

DEFAULT_SENSOR_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_POSITION_AGE_SECONDS = 5 * 60


class UnavailablePositionSensor(AbstractPositionSensor):
    """Sensor for environments without one; always denies."""

    async def read_position(self, *, max_age_seconds: float, high_accuracy: bool = False) -> Position:
        raise PermissionDeniedError(
            code="sensor_unavailable",
            message="no position sensor is available in this process",
            details={"provider": "sensor"},
        )


class StaticPositionSensor(AbstractPositionSensor):
    """Sensor that replays coordinates obtained elsewhere."""

    def __init__(
        self,
        latitude: float,
        longitude: float,
        *,
        captured_at: float | None = None,
        accuracy_m: float | None = None,
    ) -> None:
        self._position = Position(
            latitude=latitude,
            longitude=longitude,
            captured_at=time.time() if captured_at is None else captured_at,
            accuracy_m=accuracy_m,
        )

    async def read_position(self, *, max_age_seconds: float, high_accuracy: bool = False) -> Position:
        return self._position


class SensorLocationProvider(AbstractLocationProvider):
    """Read a low-accuracy position under a hard timeout, then reverse geocode.

    A reverse-geocoding failure fails this tier; the resolver then falls
    through to the next one.
    """

    name = "sensor"

    def __init__(
        self,
        sensor: AbstractPositionSensor,
        geocoder: AbstractReverseGeocoder,
        *,
        timeout_seconds: float = DEFAULT_SENSOR_TIMEOUT_SECONDS,
        max_age_seconds: float = DEFAULT_MAX_POSITION_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sensor = sensor
        self._geocoder = geocoder
        self._timeout = timeout_seconds
        self._max_age = max_age_seconds
        self._clock = clock

    async def locate(self) -> LocationRecord:
        try:
            position = await asyncio.wait_for(
                self._sensor.read_position(max_age_seconds=self._max_age, high_accuracy=False),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                code="sensor_timeout",
                message=f"position sensor did not answer within {self._timeout}s",
                details={"provider": self.name, "timeout_s": self._timeout},
            ) from exc

        age = self._clock() - position.captured_at
        if age > self._max_age:
            raise StalePositionError(
                code="sensor_stale_position",
                message=f"position is {age:.0f}s old, limit is {self._max_age:.0f}s",
                details={"provider": self.name},
            )

        return await self._geocoder.reverse(position.latitude, position.longitude)
