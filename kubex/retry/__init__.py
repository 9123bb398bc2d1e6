"""Retry engine for remote Kubernetes operations.

Submodules:
    policy    -- Immutable RetryPolicy, back-off arithmetic, default classifier.
    executor  -- retry_with_policy(): the retry loop itself.
    api       -- ApiRetry: retrying adapter over DynamicResourceApi.
"""

from kubex.retry.executor import retry_with_policy
from kubex.retry.policy import (
    DEFAULT_POLICY,
    RetryPolicy,
    backoff_schedule,
    default_retryable_error,
    next_backoff,
    status_of,
)

__all__ = [
    "DEFAULT_POLICY",
    "RetryPolicy",
    "backoff_schedule",
    "default_retryable_error",
    "next_backoff",
    "retry_with_policy",
    "status_of",
]
