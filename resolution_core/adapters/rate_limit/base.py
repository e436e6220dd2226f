"""Throttle guard interfaces and value types.

Callers (HTTP routes, background jobs) depend on this abstraction rather than
on the in-memory implementation so the storage can change later without
touching them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ActionPolicy:
    """Throttling policy registered for one action name.

    Attributes:
        max_requests: Requests allowed per window.
        window_seconds: Length of the fixed window.
        block_duration_seconds: How long a key stays blocked after reaching
            the limit, measured from its last allowed request. ``None`` means
            the window length.
    """

    max_requests: int
    window_seconds: float
    block_duration_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if self.block_duration_seconds is not None and self.block_duration_seconds <= 0:
            raise ValueError("block_duration_seconds must be > 0")

    @property
    def effective_block_seconds(self) -> float:
        if self.block_duration_seconds is None:
            return self.window_seconds
        return self.block_duration_seconds


@dataclass(frozen=True)
class ThrottleDecision:
    """Result of a throttle check.

    Attributes:
        allowed: Whether the action may proceed.
        retry_after_seconds: Seconds until the key is unblocked (denials only).
        remaining: Requests left in the current window (allowed checks on a
            configured action only).
    """

    allowed: bool
    retry_after_seconds: int | None = None
    remaining: int | None = None


@dataclass(frozen=True)
class ThrottleStatus:
    """Read-only snapshot of a key's usage.

    Attributes:
        count: Requests counted in the current window.
        remaining: Requests left before the limit.
        reset_time: UNIX epoch seconds when the current window ends.
    """

    count: int
    remaining: int
    reset_time: float


class AbstractThrottleGuard(ABC):
    """Interface for per-(identifier, action) throttles."""

    @abstractmethod
    def configure(self, action: str, policy: ActionPolicy) -> None:
        """Register or overwrite the policy for ``action``."""
        raise NotImplementedError

    @abstractmethod
    def is_allowed(self, identifier: str, action: str) -> ThrottleDecision:
        """Count a request for the key and decide whether it may proceed.

        Never raises for a configured or unknown action; ``allowed=False`` is
        the only denial signal.
        """
        raise NotImplementedError

    @abstractmethod
    def get_status(self, identifier: str, action: str) -> ThrottleStatus | None:
        """Report usage for the key without changing it."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, identifier: str, action: str) -> None:
        """Forget the key, e.g. after a legitimately completed flow."""
        raise NotImplementedError
