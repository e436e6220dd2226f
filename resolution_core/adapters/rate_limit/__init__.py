"""Throttling adapters.

This package provides a small abstraction layer so the service can start with
an in-memory guard and later migrate to a shared store without changing the
API layer.
"""

from resolution_core.adapters.rate_limit.base import (
    AbstractThrottleGuard,
    ActionPolicy,
    ThrottleDecision,
    ThrottleStatus,
)
from resolution_core.adapters.rate_limit.in_memory import InMemoryThrottleGuard
from resolution_core.adapters.rate_limit.policies import (
    DEFAULT_ACTION_POLICIES,
    configure_default_policies,
)

__all__ = [
    "AbstractThrottleGuard",
    "ActionPolicy",
    "DEFAULT_ACTION_POLICIES",
    "InMemoryThrottleGuard",
    "ThrottleDecision",
    "ThrottleStatus",
    "configure_default_policies",
]
