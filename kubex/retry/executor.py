"""Retry loop for asynchronous remote operations.

The operand is a zero-argument callable that returns a *fresh* awaitable on
every call: a coroutine object can only be awaited once, and remote calls are
not naturally replayable, so the executor asks for a new one per attempt::

    pods = await retry_with_policy(policy, lambda: core_v1.list_namespaced_pod("default"))

The final error is re-raised exactly as the operation raised it, so callers
can still branch on ``exc.status``.  Cancellation is left to the caller
(``asyncio.timeout`` or task cancellation); nothing here needs cleanup.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from kubex.observability.logging import get_logger
from kubex.observability.metrics import retry_attempts_total, retry_backoff_seconds
from kubex.retry.policy import DEFAULT_POLICY, RetryPolicy, initial_delay, next_backoff

T = TypeVar("T")

_log = get_logger("retry")


async def retry_with_policy(
    policy: RetryPolicy | None,
    operation: Callable[[], Awaitable[T]],
    *,
    name: str = "operation",
) -> T:
    """Await ``operation()`` until it succeeds or the policy gives up.

    Args:
        policy:    Retry policy; ``None`` uses :data:`DEFAULT_POLICY`.
        operation: Factory producing a new awaitable per attempt.
        name:      Label used in log lines.

    Returns:
        The value of the first successful attempt.

    Raises:
        Exception: The last error raised by ``operation``, unchanged, once
            attempts are exhausted or the error is classified as fatal.
    """
    policy = policy or DEFAULT_POLICY
    backoff = initial_delay(policy)
    attempts = 0

    while True:
        attempts += 1
        try:
            result = await operation()
        except Exception as exc:
            exhausted = policy.max_attempts is not None and attempts >= policy.max_attempts
            if exhausted:
                retry_attempts_total.labels(outcome="exhausted").inc()
                _log.debug("retry_exhausted", operation=name, attempts=attempts, error=str(exc))
                raise
            if not policy.is_retryable(exc):
                retry_attempts_total.labels(outcome="fatal").inc()
                _log.debug("retry_fatal", operation=name, attempts=attempts, error=str(exc))
                raise

            retry_attempts_total.labels(outcome="retried").inc()
            retry_backoff_seconds.observe(backoff)
            _log.debug(
                "retry_scheduled",
                operation=name,
                attempt=attempts,
                max_attempts="unlimited" if policy.unlimited else policy.max_attempts,
                delay_s=backoff,
                error=str(exc),
            )
            await asyncio.sleep(backoff)
            backoff = next_backoff(backoff, policy)
            continue

        retry_attempts_total.labels(outcome="success").inc()
        return result
