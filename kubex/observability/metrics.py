"""Prometheus metrics for kubex."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# Retry metrics
retry_attempts_total = Counter(
    "kubex_retry_attempts_total",
    "Total remote operation attempts made under a retry policy",
    ["outcome"],
)

retry_backoff_seconds = Histogram(
    "kubex_retry_backoff_seconds",
    "Back-off delay slept between retry attempts",
    buckets=(0.05, 0.1, 0.2, 0.4, 0.8, 1.6, 3.2, 5.0, 10.0, 30.0, 60.0),
)

# Discovery metrics
discovery_cache_lookups_total = Counter(
    "kubex_discovery_cache_lookups_total",
    "Discovery cache lookups by result",
    ["result"],
)

discovery_cache_write_failures_total = Counter(
    "kubex_discovery_cache_write_failures_total",
    "Total failed writes of the discovery cache",
)

discovery_live_requests_total = Counter(
    "kubex_discovery_live_requests_total",
    "Total live discovery calls against the cluster",
    ["success"],
)

discovery_group_failures_total = Counter(
    "kubex_discovery_group_failures_total",
    "Group versions skipped during discovery because they failed to list",
)
