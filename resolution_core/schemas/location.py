"""Pydantic schemas for resolved caller locations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN = "Unknown"
UNKNOWN_COUNTRY_CODE = "XX"


class Provenance(str, Enum):
    """Which tier of the resolver produced a record."""

    SENSOR = "sensor"
    NETWORK = "network"
    DEFAULT = "default"


class LocationRecord(BaseModel):
    """Best-effort location of the caller.

    Text fields are never empty: missing values become ``"Unknown"`` and a
    missing country code becomes ``"XX"``, so a record is always usable.
    """

    model_config = ConfigDict(frozen=True)

    country: str = Field(UNKNOWN, description="Country name in English.")
    region: str = Field(UNKNOWN, description="Principal subdivision (state, region).")
    city: str = Field(UNKNOWN, description="City or locality.")
    country_code: str = Field(
        UNKNOWN_COUNTRY_CODE,
        description="ISO-3166 alpha-2 code, 'XX' when unresolved.",
    )
    latitude: float | None = Field(None, description="Approximate latitude.")
    longitude: float | None = Field(None, description="Approximate longitude.")
    timezone: str | None = Field(None, description="IANA timezone name, when known.")
    provenance: Provenance = Field(
        Provenance.DEFAULT,
        description="Resolver tier that produced the record (diagnostics only).",
    )

    @field_validator("country", "region", "city", mode="before")
    @classmethod
    def _unknown_when_blank(cls, value: object) -> str:
        if value is None:
            return UNKNOWN
        text = str(value).strip()
        return text or UNKNOWN

    @field_validator("country_code", mode="before")
    @classmethod
    def _normalize_country_code(cls, value: object) -> str:
        if value is None:
            return UNKNOWN_COUNTRY_CODE
        code = str(value).strip().upper()
        if len(code) != 2 or not code.isalpha():
            return UNKNOWN_COUNTRY_CODE
        return code

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _drop_non_numeric(cls, value: object) -> float | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return None
        return None

    @field_validator("timezone", mode="before")
    @classmethod
    def _blank_timezone_is_none(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def is_resolved(self) -> bool:
        return self.country_code != UNKNOWN_COUNTRY_CODE


def default_location() -> LocationRecord:
    """The record returned when every provider has failed."""
    return LocationRecord(provenance=Provenance.DEFAULT)
