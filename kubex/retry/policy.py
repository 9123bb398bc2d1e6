"""Retry policy and the default error classifier.

A :class:`RetryPolicy` is an immutable, validated value.  Build it once and
share it freely: the executor keeps all per-call state (attempt counter,
current back-off) in local variables, so concurrent calls never interfere.

Back-off is exponential and capped::

    initial=0.2s, multiplier=2.0, max=5s  ->  0.2, 0.4, 0.8, 1.6, 3.2, 5.0, 5.0, ...
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Callable
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_MAX_ATTEMPTS: int = 5
_DEFAULT_INITIAL_BACKOFF_S: float = 0.2
_DEFAULT_MAX_BACKOFF_S: float = 5.0
_DEFAULT_MULTIPLIER: float = 2.0

# Status codes worth another attempt: request timeout, throttling, and every 5xx.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({408, 429})


def status_of(error: BaseException) -> int | None:
    """Extract an HTTP-like status code from *error*, if it carries one.

    ``kubernetes_asyncio``'s ``ApiException`` exposes ``status``; plain HTTP
    client errors often expose ``status_code``.
    """
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def default_retryable_error(error: BaseException) -> bool:
    """Default retry condition.

    Status-coded errors retry only on 408, 429 and 5xx.  Errors without a
    status (transport, serialization, ...) are retried unless they declare
    themselves non-retryable through a ``retryable = False`` attribute.
    """
    status = status_of(error)
    if status is not None:
        return status in _RETRYABLE_STATUSES or 500 <= status <= 599
    return getattr(error, "retryable", None) is not False


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration.

    Attributes:
        max_attempts:       Attempts including the first call.  ``None``
                            retries without a cap.
        initial_backoff:    Delay in seconds before the first retry.
        max_backoff:        Upper bound in seconds for any single delay.
        backoff_multiplier: Growth factor per retry; clamped to >= 1.0.
        is_retryable:       Classifier deciding whether an error is transient.
    """

    max_attempts: int | None = _DEFAULT_MAX_ATTEMPTS
    initial_backoff: float = _DEFAULT_INITIAL_BACKOFF_S
    max_backoff: float = _DEFAULT_MAX_BACKOFF_S
    backoff_multiplier: float = _DEFAULT_MULTIPLIER
    is_retryable: Callable[[BaseException], bool] = default_retryable_error

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be a positive integer or None, got {self.max_attempts}")
        if math.isnan(self.initial_backoff) or math.isnan(self.max_backoff):
            raise ValueError("backoff durations must be numbers")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff durations must not be negative")
        multiplier = float(self.backoff_multiplier)
        if not math.isfinite(multiplier):
            raise ValueError(f"backoff_multiplier must be finite, got {self.backoff_multiplier}")
        object.__setattr__(self, "backoff_multiplier", max(multiplier, 1.0))

    @property
    def unlimited(self) -> bool:
        return self.max_attempts is None

    # ------------------------------------------------------------------
    # Derived policies
    # ------------------------------------------------------------------

    def with_max_attempts(self, max_attempts: int) -> RetryPolicy:
        return dataclasses.replace(self, max_attempts=max_attempts)

    def with_unlimited_attempts(self) -> RetryPolicy:
        return dataclasses.replace(self, max_attempts=None)

    def with_backoff(
        self,
        initial: float | None = None,
        maximum: float | None = None,
        multiplier: float | None = None,
    ) -> RetryPolicy:
        return dataclasses.replace(
            self,
            initial_backoff=self.initial_backoff if initial is None else initial,
            max_backoff=self.max_backoff if maximum is None else maximum,
            backoff_multiplier=self.backoff_multiplier if multiplier is None else multiplier,
        )

    def with_retryable(self, is_retryable: Callable[[BaseException], bool]) -> RetryPolicy:
        return dataclasses.replace(self, is_retryable=is_retryable)


DEFAULT_POLICY = RetryPolicy()


def initial_delay(policy: RetryPolicy) -> float:
    """First delay the executor sleeps, already capped at ``max_backoff``."""
    return min(policy.initial_backoff, policy.max_backoff)


def next_backoff(current: float, policy: RetryPolicy) -> float:
    """Return the delay following *current*: grown by the multiplier, capped."""
    return min(current * policy.backoff_multiplier, policy.max_backoff)


def backoff_schedule(policy: RetryPolicy, count: int) -> list[float]:
    """Return the first *count* delays the executor would sleep."""
    delays: list[float] = []
    delay = initial_delay(policy)
    for _ in range(count):
        delays.append(delay)
        delay = next_backoff(delay, policy)
    return delays
