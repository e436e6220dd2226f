"""Try fallible steps in order and stop at the first success.

Each failure is kept as a :class:`StepFailure` tagged with a
:class:`FailureReason`, so callers can report what went wrong at every tier
instead of collapsing all problems into one shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from resolution_core.core.errors import (
    MalformedResponseError,
    NetworkUnavailableError,
    PermissionDeniedError,
    ProviderError,
    ProviderTimeoutError,
    StalePositionError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureReason(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
    NETWORK_UNAVAILABLE = "network_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    STALE_POSITION = "stale_position"
    UNEXPECTED = "unexpected"


_REASON_BY_ERROR: tuple[tuple[type[ProviderError], FailureReason], ...] = (
    (PermissionDeniedError, FailureReason.PERMISSION_DENIED),
    (ProviderTimeoutError, FailureReason.TIMEOUT),
    (NetworkUnavailableError, FailureReason.NETWORK_UNAVAILABLE),
    (MalformedResponseError, FailureReason.MALFORMED_RESPONSE),
    (StalePositionError, FailureReason.STALE_POSITION),
)


def classify_failure(exc: BaseException) -> FailureReason:
    for error_type, reason in _REASON_BY_ERROR:
        if isinstance(exc, error_type):
            return reason
    return FailureReason.UNEXPECTED


@dataclass(frozen=True)
class StepFailure:
    """Why one step did not produce a value."""

    step: str
    reason: FailureReason
    detail: str


@dataclass(frozen=True)
class Step(Generic[T]):
    """A named, fallible producer of ``T``."""

    name: str
    run: Callable[[], Awaitable[T]]


@dataclass
class FallbackOutcome(Generic[T]):
    """Result of :func:`first_success`.

    Attributes:
        value: Value of the first successful step, or None if all failed.
        step: Name of the step that produced ``value``.
        failures: Failures of the steps tried before it, in order.
    """

    value: T | None = None
    step: str | None = None
    failures: list[StepFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.step is not None


async def first_success(steps: Sequence[Step[T]]) -> FallbackOutcome[T]:
    """Run ``steps`` in order until one returns without raising.

    Provider errors and unexpected exceptions are both recorded and the next
    step is tried; nothing propagates. Cancellation still propagates.
    """
    outcome: FallbackOutcome[T] = FallbackOutcome()

    for step in steps:
        try:
            value = await step.run()
        except Exception as exc:
            reason = classify_failure(exc)
            outcome.failures.append(StepFailure(step=step.name, reason=reason, detail=str(exc)))
            log = logger.exception if reason is FailureReason.UNEXPECTED else logger.info
            log(
                "fallback.step_failed",
                extra={"step": step.name, "reason": reason.value, "error_type": type(exc).__name__},
            )
            continue

        outcome.value = value
        outcome.step = step.name
        return outcome

    return outcome
