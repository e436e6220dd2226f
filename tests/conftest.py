"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It ensures that the TESTING environment variable is set to prevent
loading the .env file during tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents Pydantic from loading the .env file in tests
os.environ["TESTING"] = "true"

# Set default env vars that all tests might need
os.environ.setdefault("APP_API_KEY_REQUIRED", "false")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# Nothing listens here; any test that forgets to stub an upstream fails fast
os.environ.setdefault("PROVIDER_IP_LOOKUP_URL", "http://127.0.0.1:9/ip")
os.environ.setdefault("PROVIDER_IP_LOOKUP_ADDRESS_URL", "http://127.0.0.1:9/ip/{address}")
os.environ.setdefault("PROVIDER_REVERSE_GEOCODE_URL", "http://127.0.0.1:9/reverse")
os.environ.setdefault("PROVIDER_FX_RATES_URL", "http://127.0.0.1:9/fx")
