"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with tag descriptions and, when API key
authentication is enabled, the ``X-API-Key`` security scheme (health stays
exempt).
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from resolution_core.core.config import settings

TAGS_METADATA = [
    {"name": "Throttle", "description": "Abuse protection for sensitive waitlist actions."},
    {"name": "Location", "description": "Best-effort caller location with fallbacks."},
    {"name": "Currency", "description": "Currency lookup and cached exchange rates."},
    {"name": "Pricing", "description": "Localized prices and budget bucket labels."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(t for t in TAGS_METADATA if t["name"] not in existing_tag_names)

        if settings.app.api_key_required:
            components = schema.setdefault("components", {})
            components.setdefault("securitySchemes", {})["ApiKeyAuth"] = {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            }
            schema.setdefault("security", [{"ApiKeyAuth": []}])
            for path, methods in schema.get("paths", {}).items():
                if path.endswith("/health"):
                    for method_obj in methods.values():
                        if isinstance(method_obj, dict):
                            method_obj["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
