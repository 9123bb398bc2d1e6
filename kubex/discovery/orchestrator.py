"""Cache-first resource resolution.

:func:`resolve_target_spec` (and its token-list form
:func:`resolve_requested_resources`) answers from a fresh snapshot when it
can, falls back to live discovery otherwise, and degrades to a stale
snapshot when the cluster cannot be reached::

    fresh cache + targets resolve     -> return, no network
    live discovery succeeds           -> save snapshot (best effort), resolve
    live discovery fails, cache known -> resolve against the stale snapshot
    live discovery fails, no rescue   -> DiscoveryFailed (chained)

:func:`resolve_from_cache_only` never touches the network and never hides a
problem with the cache; it exists for latency-sensitive callers such as
shell completion.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta
from pathlib import Path

from kubex.discovery.cache import cache_age, cache_path_for, load_cache, load_cache_strict, save_cache
from kubex.discovery.resolver import resolve_all
from kubex.errors import CacheExpired, DiscoveryFailed, KubexError, PersistenceFailure
from kubex.models.resources import AllOf, APIResourceDescriptor, ResourceTargetSpec
from kubex.observability.logging import get_logger
from kubex.observability.metrics import discovery_cache_lookups_total, discovery_cache_write_failures_total

_log = get_logger("discovery")

DEFAULT_TTL: timedelta = timedelta(minutes=10)

LiveDiscoverFn = Callable[[], Awaitable[list[APIResourceDescriptor]]]


async def resolve_requested_resources(
    targets: Sequence[str],
    context: str,
    live_discover: LiveDiscoverFn,
    *,
    cache_path: Path | None = None,
    config_dir: Path | None = None,
    ttl: timedelta | None = DEFAULT_TTL,
    now: datetime | None = None,
) -> list[APIResourceDescriptor]:
    """Resolve every token in *targets* for the cluster behind *context*.

    Args:
        targets:       Resource tokens; all of them must resolve.
        context:       Kubeconfig context name, used to locate the cache.
        live_discover: Coroutine factory returning the cluster's descriptors.
        cache_path:    Explicit cache file; overrides *context*/*config_dir*.
        config_dir:    Directory for per-context cache files.
        ttl:           Maximum age of a snapshot served without discovery.
        now:           Clock override for freshness checks.

    Raises:
        UnresolvedResources: A token matched nothing in the freshly
            discovered list.
        DiscoveryFailed: Live discovery failed and no cached snapshot could
            resolve the targets.  ``__cause__`` holds the discovery error.
    """
    if not targets:
        return []
    return await resolve_target_spec(
        AllOf(targets),
        context,
        live_discover,
        cache_path=cache_path,
        config_dir=config_dir,
        ttl=ttl,
        now=now,
    )


async def resolve_target_spec(
    spec: ResourceTargetSpec,
    context: str,
    live_discover: LiveDiscoverFn,
    *,
    cache_path: Path | None = None,
    config_dir: Path | None = None,
    ttl: timedelta | None = DEFAULT_TTL,
    now: datetime | None = None,
    refresh: bool = False,
) -> list[APIResourceDescriptor]:
    """Resolve any target specification with the cache-first rules above.

    With *refresh* a fresh snapshot is not served, but it still rescues the
    call when live discovery fails.
    """
    path = cache_path if cache_path is not None else cache_path_for(context, config_dir)
    cached = load_cache(path, ttl=ttl, now=now)

    if cached is None:
        discovery_cache_lookups_total.labels(result="miss").inc()
    elif cached.is_fresh and not refresh:
        try:
            resolved = resolve_all(spec, cached.resources)
        except KubexError as exc:
            # The cluster may have gained the resource since the snapshot.
            _log.debug("cache_resolution_failed", path=str(path), error=str(exc))
        else:
            discovery_cache_lookups_total.labels(result="fresh_hit").inc()
            return resolved
    else:
        discovery_cache_lookups_total.labels(result="stale").inc()

    try:
        descriptors = await live_discover()
    except Exception as exc:
        if cached is not None:
            try:
                resolved = resolve_all(spec, cached.resources)
            except KubexError as fallback_exc:
                _log.debug("stale_cache_resolution_failed", path=str(path), error=str(fallback_exc))
            else:
                discovery_cache_lookups_total.labels(result="degraded_hit").inc()
                _log.warning(
                    "discovery_degraded_to_stale_cache",
                    context=context,
                    path=str(path),
                    age_s=cached.age.total_seconds(),
                    error=str(exc),
                )
                return resolved
        raise DiscoveryFailed(context) from exc

    try:
        save_cache(path, descriptors, now=now)
    except PersistenceFailure as exc:
        discovery_cache_write_failures_total.inc()
        _log.warning("cache_write_failed", path=str(path), error=str(exc))

    return resolve_all(spec, descriptors)


def resolve_from_cache_only(
    spec: ResourceTargetSpec,
    cache_path: Path,
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> list[APIResourceDescriptor]:
    """Resolve *spec* against the snapshot at *cache_path* without any network I/O.

    Raises:
        CacheUnreadable: The cache is missing or corrupt.
        CacheExpired: *ttl* is set and the snapshot is older than it.
        UnresolvedResources / NoResourcesResolved: Resolution failed.
    """
    cache = load_cache_strict(cache_path)
    if ttl is not None:
        age = cache_age(cache, now)
        if age > ttl:
            raise CacheExpired(cache_path, age, ttl)
    return resolve_all(spec, cache.descriptors())
