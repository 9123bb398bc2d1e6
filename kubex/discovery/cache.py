"""Filesystem store for discovery snapshots.

One JSON file per kubeconfig context, by default under the platform's user
config directory (``~/.config/kubex/<context>.json`` on Linux).

Two load entry points with different result shapes:

``load_cache``
    Tolerant.  Returns ``None`` on any read or parse failure, so callers on
    the opportunistic path treat a broken file exactly like a missing one.
``load_cache_strict``
    Strict.  Raises :class:`~kubex.errors.CacheUnreadable` so cache-only
    callers can report what went wrong.

Writes go to a temporary file in the target directory and are moved into
place with ``os.replace``, so readers never observe a partial snapshot.
There is no locking between writers: every write is a complete snapshot,
so whichever writer renames last wins and the file is still valid.
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

import platformdirs
from pydantic import ValidationError

from kubex.discovery.schemas import DiscoveryCacheFile
from kubex.errors import CacheUnreadable, PersistenceFailure
from kubex.models.resources import APIResourceDescriptor
from kubex.observability.logging import get_logger

_log = get_logger("discovery.cache")

_DEFAULT_APP: str = "kubex"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_context(context: str) -> str:
    """Replace every character other than ASCII letters, digits, ``-`` and ``_``."""
    return _UNSAFE_CHARS.sub("_", context)


def default_config_dir(app: str = _DEFAULT_APP) -> Path:
    return Path(platformdirs.user_config_dir()) / app


def cache_path_for(context: str, config_dir: Path | None = None, app: str = _DEFAULT_APP) -> Path:
    """Return the cache file path for *context*.

    Args:
        context:    Kubeconfig context name (sanitized before use).
        config_dir: Directory holding cache files; defaults to
                    ``<user config dir>/<app>``.
        app:        Application directory name under the user config dir.
    """
    base = config_dir if config_dir is not None else default_config_dir(app)
    return base / f"{sanitize_context(context)}.json"


@dataclass(frozen=True)
class LoadedCache:
    """Result of a tolerant load: the snapshot plus its freshness verdict."""

    resources: list[APIResourceDescriptor]
    updated_at: datetime
    age: timedelta
    is_fresh: bool


def _age(updated_at: datetime, now: datetime | None) -> timedelta:
    current = now or datetime.now(tz=UTC)
    # A timestamp from the future (clock skew) counts as age zero.
    return max(current - updated_at, timedelta(0))


def _read(path: Path) -> DiscoveryCacheFile:
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CacheUnreadable(path, "file does not exist") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise CacheUnreadable(path, f"read failed: {exc}") from exc
    try:
        return DiscoveryCacheFile.model_validate_json(data)
    except ValidationError as exc:
        raise CacheUnreadable(path, f"invalid content: {exc.error_count()} validation error(s)") from exc


def load_cache_strict(path: Path) -> DiscoveryCacheFile:
    """Load the cache at *path* or raise :class:`CacheUnreadable`."""
    return _read(path)


def load_cache(path: Path, ttl: timedelta | None = None, now: datetime | None = None) -> LoadedCache | None:
    """Load the cache at *path*, returning ``None`` if it is missing or broken.

    Freshness is ``age <= ttl``; without a ttl the snapshot is always fresh.
    """
    try:
        cache = _read(path)
    except CacheUnreadable as exc:
        _log.debug("cache_load_skipped", path=str(path), reason=exc.reason)
        return None

    age = _age(cache.updated_at, now)
    return LoadedCache(
        resources=cache.descriptors(),
        updated_at=cache.updated_at,
        age=age,
        is_fresh=ttl is None or age <= ttl,
    )


def cache_age(cache: DiscoveryCacheFile, now: datetime | None = None) -> timedelta:
    return _age(cache.updated_at, now)


def save_cache(path: Path, descriptors: list[APIResourceDescriptor], now: datetime | None = None) -> None:
    """Atomically replace the cache at *path* with a fresh snapshot.

    Raises:
        PersistenceFailure: The directory or file could not be written.
    """
    payload = DiscoveryCacheFile.snapshot(descriptors, now=now).to_json()
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise PersistenceFailure(path, str(exc)) from exc

    _log.debug("cache_saved", path=str(path), resources=len(descriptors))
