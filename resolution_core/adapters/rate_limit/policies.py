"""Default throttling policies for the waitlist's sensitive actions."""

from __future__ import annotations

from resolution_core.adapters.rate_limit.base import AbstractThrottleGuard, ActionPolicy

MINUTE = 60
HOUR = 60 * MINUTE

DEFAULT_ACTION_POLICIES: dict[str, ActionPolicy] = {
    "registration": ActionPolicy(
        max_requests=3,
        window_seconds=15 * MINUTE,
        block_duration_seconds=30 * MINUTE,
    ),
    "email_verification": ActionPolicy(
        max_requests=5,
        window_seconds=10 * MINUTE,
        block_duration_seconds=15 * MINUTE,
    ),
    "quiz_submission": ActionPolicy(
        max_requests=2,
        window_seconds=HOUR,
        block_duration_seconds=2 * HOUR,
    ),
    "contact_form": ActionPolicy(
        max_requests=5,
        window_seconds=HOUR,
        block_duration_seconds=HOUR,
    ),
}


def configure_default_policies(guard: AbstractThrottleGuard) -> None:
    for action, policy in DEFAULT_ACTION_POLICIES.items():
        guard.configure(action, policy)
