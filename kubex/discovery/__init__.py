"""Discovery cache and resource name resolution.

Submodules:
    schemas       -- Pydantic models of the on-disk snapshot.
    cache         -- Tolerant/strict load and atomic save of snapshots.
    resolver      -- Token matching and AllOf/AnyOf/AllResources resolution.
    client        -- Live discovery against the cluster.
    orchestrator  -- Cache-first resolution with stale-cache fallback.
"""

from kubex.discovery.cache import LoadedCache, cache_path_for, load_cache, load_cache_strict, save_cache
from kubex.discovery.client import DiscoveryClient
from kubex.discovery.orchestrator import (
    DEFAULT_TTL,
    resolve_from_cache_only,
    resolve_requested_resources,
    resolve_target_spec,
)
from kubex.discovery.resolver import matches, resolve_all, resolve_one

__all__ = [
    "DEFAULT_TTL",
    "DiscoveryClient",
    "LoadedCache",
    "cache_path_for",
    "load_cache",
    "load_cache_strict",
    "matches",
    "resolve_all",
    "resolve_from_cache_only",
    "resolve_one",
    "resolve_requested_resources",
    "resolve_target_spec",
    "save_cache",
]
