"""Configuration data structures.

Populated from ``KUBEX_*`` environment variables by :func:`kubex.config.load_config`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from kubex.retry.policy import RetryPolicy


@dataclass(frozen=True)
class LogConfig:
    level: str = "warning"


@dataclass(frozen=True)
class DiscoveryConfig:
    """Where and for how long discovery snapshots are kept."""

    cache_ttl_seconds: int = 600
    config_dir: Path | None = None
    app_name: str = "kubex"

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(seconds=self.cache_ttl_seconds)


@dataclass(frozen=True)
class RetryConfig:
    """Retry knobs; ``max_attempts == 0`` means retry without a cap."""

    max_attempts: int = 5
    initial_backoff_ms: int = 200
    max_backoff_ms: int = 5_000
    backoff_multiplier: float = 2.0

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts or None,
            initial_backoff=self.initial_backoff_ms / 1000.0,
            max_backoff=self.max_backoff_ms / 1000.0,
            backoff_multiplier=self.backoff_multiplier,
        )


@dataclass(frozen=True)
class KubexConfig:
    log: LogConfig = field(default_factory=LogConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
