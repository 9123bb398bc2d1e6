"""Tests for kubex.discovery.cache: paths, tolerant/strict loads and atomic saves."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from kubex.discovery.cache import (
    cache_age,
    cache_path_for,
    default_config_dir,
    load_cache,
    load_cache_strict,
    sanitize_context,
    save_cache,
)
from kubex.errors import CacheUnreadable, PersistenceFailure
from kubex.models.resources import APIResourceDescriptor

_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=UTC)
_TTL = timedelta(minutes=10)

_PODS = APIResourceDescriptor(
    group="core",
    version="v1",
    kind="Pod",
    name="pods",
    singular_name="pod",
    short_names=("po",),
    namespaced=True,
    verbs=("get", "list", "watch"),
)
_DEPLOYMENTS = APIResourceDescriptor(
    group="apps", version="v1", kind="Deployment", name="deployments", singular_name="deployment", namespaced=True
)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPaths:
    @pytest.mark.parametrize(
        ("context", "expected"),
        [
            ("kind-dev", "kind-dev"),
            ("my_cluster", "my_cluster"),
            ("arn:aws:eks:us-east-1:123:cluster/prod", "arn_aws_eks_us-east-1_123_cluster_prod"),
            ("user@cluster.local", "user_cluster_local"),
            ("../../etc", "______etc"),
        ],
    )
    def test_sanitize_context(self, context: str, expected: str) -> None:
        assert sanitize_context(context) == expected

    def test_cache_path_in_explicit_dir(self, tmp_path: Path) -> None:
        assert cache_path_for("kind-dev", tmp_path) == tmp_path / "kind-dev.json"

    def test_cache_path_defaults_to_user_config_dir(self, tmp_path: Path) -> None:
        with patch("kubex.discovery.cache.platformdirs.user_config_dir", return_value=str(tmp_path)):
            assert default_config_dir() == tmp_path / "kubex"
            assert cache_path_for("a/b") == tmp_path / "kubex" / "a_b.json"


# ---------------------------------------------------------------------------
# Save
# ---------------------------------------------------------------------------


class TestSaveCache:
    def test_writes_wire_field_names(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert datetime.fromisoformat(data["updated_at"].replace("Z", "+00:00")) == _NOW
        entry = data["resources"][0]
        assert entry["singularName"] == "pod"
        assert entry["shortNames"] == ["po"]
        assert entry["namespaced"] is True

    def test_omits_empty_optional_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_DEPLOYMENTS], now=_NOW)
        entry = json.loads(path.read_text(encoding="utf-8"))["resources"][0]
        assert "shortNames" not in entry
        assert "verbs" not in entry

    def test_creates_missing_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        assert path.exists()

    def test_leaves_no_temporary_files(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        save_cache(path, [_DEPLOYMENTS], now=_NOW)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ctx.json"]

    def test_overwrites_previous_snapshot(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        save_cache(path, [_DEPLOYMENTS], now=_NOW + timedelta(minutes=1))
        loaded = load_cache_strict(path)
        assert loaded.descriptors() == [_DEPLOYMENTS]
        assert loaded.updated_at == _NOW + timedelta(minutes=1)

    def test_unwritable_parent_raises_persistence_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(PersistenceFailure) as exc_info:
            save_cache(blocker / "ctx.json", [_PODS], now=_NOW)
        assert exc_info.value.path == blocker / "ctx.json"

    def test_failed_rename_cleans_up(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        with patch("kubex.discovery.cache.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceFailure, match="disk full"):
                save_cache(path, [_PODS], now=_NOW)
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


class TestLoadCache:
    def test_round_trip_preserves_descriptors(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS, _DEPLOYMENTS], now=_NOW)
        loaded = load_cache(path, ttl=_TTL, now=_NOW)
        assert loaded is not None
        assert loaded.resources == [_PODS, _DEPLOYMENTS]
        assert loaded.updated_at == _NOW

    def test_fresh_within_ttl(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        loaded = load_cache(path, ttl=_TTL, now=_NOW + timedelta(minutes=5))
        assert loaded is not None
        assert loaded.is_fresh is True
        assert loaded.age == timedelta(minutes=5)

    def test_exactly_ttl_is_fresh(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        loaded = load_cache(path, ttl=_TTL, now=_NOW + _TTL)
        assert loaded is not None
        assert loaded.is_fresh is True

    def test_stale_after_ttl(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        loaded = load_cache(path, ttl=_TTL, now=_NOW + timedelta(minutes=11))
        assert loaded is not None
        assert loaded.is_fresh is False
        assert loaded.resources == [_PODS]

    def test_no_ttl_is_always_fresh(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        loaded = load_cache(path, now=_NOW + timedelta(days=30))
        assert loaded is not None
        assert loaded.is_fresh is True

    def test_future_timestamp_counts_as_age_zero(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW + timedelta(hours=1))
        loaded = load_cache(path, ttl=_TTL, now=_NOW)
        assert loaded is not None
        assert loaded.age == timedelta(0)
        assert loaded.is_fresh is True

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert load_cache(tmp_path / "absent.json", ttl=_TTL) is None

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "{not json",
            '{"resources": []}',
            '{"updated_at": "yesterday", "resources": []}',
            '{"updated_at": "2026-01-15T10:30:00Z", "resources": [{"name": "pods"}]}',
        ],
    )
    def test_corrupt_file_returns_none(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "ctx.json"
        path.write_text(content, encoding="utf-8")
        assert load_cache(path, ttl=_TTL) is None

    def test_naive_timestamp_is_read_as_utc(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        path.write_text('{"updated_at": "2026-01-15T10:30:00", "resources": []}', encoding="utf-8")
        assert load_cache_strict(path).updated_at == _NOW

    def test_reads_hand_written_wire_format(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        path.write_text(
            json.dumps(
                {
                    "updated_at": "2026-01-15T10:30:00Z",
                    "resources": [
                        {
                            "group": "core",
                            "version": "v1",
                            "kind": "Pod",
                            "name": "pods",
                            "singularName": "pod",
                            "shortNames": ["po"],
                            "namespaced": True,
                            "verbs": ["get", "list", "watch"],
                        }
                    ],
                }
            ),
            encoding="utf-8",
        )
        loaded = load_cache(path, ttl=_TTL, now=_NOW)
        assert loaded is not None
        assert loaded.resources == [_PODS]


class TestLoadCacheStrict:
    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "absent.json"
        with pytest.raises(CacheUnreadable) as exc_info:
            load_cache_strict(path)
        assert exc_info.value.path == path
        assert "does not exist" in exc_info.value.reason

    def test_invalid_content(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(CacheUnreadable, match="invalid content"):
            load_cache_strict(path)

    def test_directory_instead_of_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        path.mkdir()
        with pytest.raises(CacheUnreadable, match="read failed"):
            load_cache_strict(path)

    def test_cache_age(self, tmp_path: Path) -> None:
        path = tmp_path / "ctx.json"
        save_cache(path, [_PODS], now=_NOW)
        assert cache_age(load_cache_strict(path), now=_NOW + timedelta(seconds=90)) == timedelta(seconds=90)
