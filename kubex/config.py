"""Load kubex configuration from ``KUBEX_*`` environment variables.

Numeric values are clamped into their supported range; values that cannot
be parsed at all raise ``ValueError`` naming the offending variable.
"""

from __future__ import annotations

import math
import os
from pathlib import Path

from kubex.models.config import DiscoveryConfig, KubexConfig, LogConfig, RetryConfig
from kubex.observability.logging import is_valid_level

_PREFIX = "KUBEX_"

_TTL_MAX_S = 86_400
_MAX_ATTEMPTS_CAP = 100
_BACKOFF_MS_CAP = 600_000


def _env(name: str) -> str | None:
    value = os.environ.get(_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_int(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{_PREFIX}{name} must be an integer, got {raw!r}") from None
    return max(minimum, min(value, maximum))


def _env_float(name: str, default: float, minimum: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{_PREFIX}{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"{_PREFIX}{name} must be a finite number, got {raw!r}")
    return max(minimum, value)


def load_config() -> KubexConfig:
    """Build a :class:`KubexConfig` from the current environment."""
    level = (_env("LOG_LEVEL") or "warning").lower()
    if not is_valid_level(level):
        raise ValueError(f"{_PREFIX}LOG_LEVEL must be one of debug, info, warning, error, critical; got {level!r}")

    config_dir = _env("CONFIG_DIR")

    initial_ms = _env_int("RETRY_INITIAL_BACKOFF_MS", 200, 0, _BACKOFF_MS_CAP)
    max_ms = _env_int("RETRY_MAX_BACKOFF_MS", 5_000, 0, _BACKOFF_MS_CAP)

    return KubexConfig(
        log=LogConfig(level=level),
        discovery=DiscoveryConfig(
            cache_ttl_seconds=_env_int("DISCOVERY_CACHE_TTL", 600, 0, _TTL_MAX_S),
            config_dir=Path(config_dir).expanduser() if config_dir else None,
        ),
        retry=RetryConfig(
            max_attempts=_env_int("RETRY_MAX_ATTEMPTS", 5, 0, _MAX_ATTEMPTS_CAP),
            initial_backoff_ms=initial_ms,
            max_backoff_ms=max_ms,
            backoff_multiplier=_env_float("RETRY_BACKOFF_MULTIPLIER", 2.0, 1.0),
        ),
    )
