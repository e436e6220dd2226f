"""Pydantic schemas for throttle checks exposed over HTTP."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ThrottleCheckResponse(BaseModel):
    """Outcome of counting one attempt at an action."""

    action: str
    allowed: bool
    remaining: int | None = Field(
        None,
        description="Attempts left in the current window (absent for unthrottled actions).",
    )
    retry_after_seconds: int | None = Field(
        None,
        description="Seconds to wait before retrying (denied attempts only).",
    )
    identity_source: str = Field(
        ...,
        description="How the caller was identified: api_key, session, ip or fingerprint.",
    )
    low_confidence_identity: bool = Field(
        False,
        description="True when the caller was identified by a spoofable fingerprint.",
    )


class ThrottleStatusResponse(BaseModel):
    """Read-only usage snapshot for the caller and action."""

    action: str
    count: int
    remaining: int
    reset_time: float = Field(..., description="UNIX epoch seconds when the window resets.")
