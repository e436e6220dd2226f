"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


def _build_provider_settings() -> "ProviderSettings":
    return ProviderSettings()  # type: ignore[call-arg]


def _build_cache_settings() -> "CacheSettings":
    return CacheSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        False,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    throttle_enabled: bool = Field(
        True,
        description="Enforce action throttling; when false every check is allowed",
    )
    throttle_include_headers: bool = Field(
        True,
        description="Include Retry-After and X-RateLimit-* headers when throttling",
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For hop as the client IP (behind a proxy)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class ProviderSettings(BaseSettings):
    """Upstream location and exchange-rate providers."""

    ip_lookup_url: str = Field(
        "https://ipapi.co/json/",
        description="IP geolocation of this process's own address (GET, JSON)",
    )
    ip_lookup_address_url: str = Field(
        "https://ipapi.co/{address}/json/",
        description="IP geolocation of a given address; '{address}' is replaced",
    )
    reverse_geocode_url: str = Field(
        "https://api.bigdatacloud.net/data/reverse-geocode-client",
        description="Reverse geocoding endpoint (GET, JSON)",
    )
    fx_rates_url: str = Field(
        "https://api.exchangerate-api.com/v4/latest/USD",
        description="Exchange-rate endpoint returning rates per USD (GET, JSON)",
    )
    http_timeout_seconds: float = Field(
        5.0,
        description="Timeout applied to every outbound HTTP call",
        gt=0,
    )
    sensor_timeout_seconds: float = Field(
        10.0,
        description="Hard timeout for a position sensor read",
        gt=0,
    )
    sensor_max_age_seconds: float = Field(
        300.0,
        description="Oldest cached sensor position accepted",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="PROVIDER_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Cache lifetimes and housekeeping intervals."""

    fx_ttl_seconds: float = Field(
        3600.0,
        description="Exchange rates are refreshed after this many seconds",
        gt=0,
    )
    throttle_sweep_interval_seconds: float = Field(
        300.0,
        description="How often idle throttle entries are swept",
        gt=0,
    )
    caller_location_ttl_seconds: float = Field(
        3600.0,
        description="How long a caller's address-based location is reused",
        gt=0,
    )
    caller_location_max_entries: int = Field(
        10_000,
        description="Caller locations kept before the least recently used is evicted",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    providers: ProviderSettings = Field(default_factory=_build_provider_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
