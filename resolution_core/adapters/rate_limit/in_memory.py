"""In-memory fixed-window throttle with block escalation.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock guards the whole entry table, so the
  read-check-update sequence for a key is atomic.
- Hybrid algorithm: a fixed window per key plus a block that starts at the
  key's last allowed request once the limit is reached. Bursts of up to twice
  the limit are possible across adjacent windows, and the window check runs
  before the block check, so a block never outlives the window it started in.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from resolution_core.adapters.rate_limit.base import (
    AbstractThrottleGuard,
    ActionPolicy,
    ThrottleDecision,
    ThrottleStatus,
)
from resolution_core.core.logging import hash_for_log

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass
class _ThrottleEntry:
    count: int
    window_start: float
    last_request_at: float


class InMemoryThrottleGuard(AbstractThrottleGuard):
    """Throttle keyed by ``(identifier, action)``.

    Actions must be registered with :meth:`configure`; checks against an
    unknown action are allowed and leave no state behind.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the guard.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Period of the background idle sweep.

        Raises:
            ValueError: If sweep_interval_seconds is not positive.
        """
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.RLock()
        self._policies: dict[str, ActionPolicy] = {}
        self._entries: dict[tuple[str, str], _ThrottleEntry] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryThrottleGuard(actions={sorted(self._policies)}, "
            f"entries={len(self._entries)})"
        )

    # ── Policies ──────────────────────────────────────────────────────

    def configure(self, action: str, policy: ActionPolicy) -> None:
        if not action:
            raise ValueError("action must be a non-empty string")
        with self._lock:
            self._policies[action] = policy
        logger.debug(
            "throttle.configured",
            extra={
                "action": action,
                "max_requests": policy.max_requests,
                "window_s": policy.window_seconds,
                "block_s": policy.effective_block_seconds,
            },
        )

    def policy_for(self, action: str) -> ActionPolicy | None:
        with self._lock:
            return self._policies.get(action)

    @property
    def actions(self) -> list[str]:
        with self._lock:
            return sorted(self._policies)

    # ── Checks ────────────────────────────────────────────────────────

    def _start_window(self, key: tuple[str, str], now: float) -> _ThrottleEntry:
        entry = _ThrottleEntry(count=1, window_start=now, last_request_at=now)
        self._entries[key] = entry
        return entry

    def is_allowed(self, identifier: str, action: str) -> ThrottleDecision:
        with self._lock:
            policy = self._policies.get(action)
            if policy is None:
                return ThrottleDecision(allowed=True)

            key = (identifier, action)
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or now - entry.window_start >= policy.window_seconds:
                self._start_window(key, now)
                return ThrottleDecision(allowed=True, remaining=policy.max_requests - 1)

            if entry.count >= policy.max_requests:
                blocked_until = entry.last_request_at + policy.effective_block_seconds
                if now < blocked_until:
                    retry_after = max(1, int(math.ceil(blocked_until - now)))
                    logger.warning(
                        "throttle.denied",
                        extra={
                            "action": action,
                            "key_hash": hash_for_log(identifier),
                            "limit": policy.max_requests,
                            "retry_after_s": retry_after,
                        },
                    )
                    return ThrottleDecision(allowed=False, retry_after_seconds=retry_after)

                self._start_window(key, now)
                logger.info(
                    "throttle.block_expired",
                    extra={"action": action, "key_hash": hash_for_log(identifier)},
                )
                return ThrottleDecision(allowed=True, remaining=policy.max_requests - 1)

            entry.count += 1
            entry.last_request_at = now
            return ThrottleDecision(allowed=True, remaining=policy.max_requests - entry.count)

    def get_status(self, identifier: str, action: str) -> ThrottleStatus | None:
        with self._lock:
            policy = self._policies.get(action)
            if policy is None:
                return None

            entry = self._entries.get((identifier, action))
            if entry is None:
                return ThrottleStatus(
                    count=0,
                    remaining=policy.max_requests,
                    reset_time=self._clock() + policy.window_seconds,
                )

            return ThrottleStatus(
                count=entry.count,
                remaining=max(0, policy.max_requests - entry.count),
                reset_time=entry.window_start + policy.window_seconds,
            )

    def reset(self, identifier: str, action: str) -> None:
        with self._lock:
            self._entries.pop((identifier, action), None)

    # ── Housekeeping ──────────────────────────────────────────────────

    def sweep(self) -> int:
        """Evict entries idle for more than twice their action's window.

        Returns:
            Number of evicted entries.
        """
        now = self._clock()
        with self._lock:
            stale = [
                key
                for key, entry in self._entries.items()
                if key[1] not in self._policies
                or now - entry.last_request_at > 2 * self._policies[key[1]].window_seconds
            ]
            for key in stale:
                del self._entries[key]
            remaining = len(self._entries)

        if stale:
            logger.debug("throttle.swept", extra={"evicted": len(stale), "entries": remaining})
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def start_sweeper(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweep_task is not None:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="throttle-sweep")
        logger.info(
            "throttle.sweeper_started",
            extra={"interval_s": self._sweep_interval},
        )

    async def stop_sweeper(self) -> None:
        """Cancel the periodic sweep."""
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        try:
            await self._sweep_task
        except asyncio.CancelledError:
            pass
        self._sweep_task = None
        logger.info("throttle.sweeper_stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception:
                logger.exception("throttle.sweep_failed")
