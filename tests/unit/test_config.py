"""Tests for kubex.config: environment variable loading and validation.

Covers:
  - Default values when no KUBEX_* env vars are set
  - Each config field read from its corresponding KUBEX_* env var
  - Numeric clamping (min/max bounds for int fields)
  - Invalid values raise ValueError naming the variable
  - Conversion of retry settings into a RetryPolicy
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from kubex.config import load_config
from kubex.models.config import KubexConfig, RetryConfig

_VARS = (
    "KUBEX_LOG_LEVEL",
    "KUBEX_CONFIG_DIR",
    "KUBEX_DISCOVERY_CACHE_TTL",
    "KUBEX_RETRY_MAX_ATTEMPTS",
    "KUBEX_RETRY_INITIAL_BACKOFF_MS",
    "KUBEX_RETRY_MAX_BACKOFF_MS",
    "KUBEX_RETRY_BACKOFF_MULTIPLIER",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestConfigDefaults:
    def test_returns_kubex_config_type(self) -> None:
        assert isinstance(load_config(), KubexConfig)

    def test_log_level_default(self) -> None:
        assert load_config().log.level == "warning"

    def test_cache_ttl_default(self) -> None:
        config = load_config()
        assert config.discovery.cache_ttl_seconds == 600
        assert config.discovery.cache_ttl == timedelta(minutes=10)

    def test_config_dir_default(self) -> None:
        assert load_config().discovery.config_dir is None

    def test_retry_defaults(self) -> None:
        retry = load_config().retry
        assert retry == RetryConfig(max_attempts=5, initial_backoff_ms=200, max_backoff_ms=5000, backoff_multiplier=2.0)


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestConfigOverrides:
    def test_log_level_is_lowercased(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_LOG_LEVEL", "DEBUG")
        assert load_config().log.level == "debug"

    def test_config_dir(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("KUBEX_CONFIG_DIR", str(tmp_path))
        assert load_config().discovery.config_dir == tmp_path

    def test_config_dir_expands_user(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("KUBEX_CONFIG_DIR", "~/kubex")
        assert load_config().discovery.config_dir == tmp_path / "kubex"

    def test_cache_ttl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_DISCOVERY_CACHE_TTL", "60")
        assert load_config().discovery.cache_ttl == timedelta(minutes=1)

    def test_retry_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_RETRY_MAX_ATTEMPTS", "8")
        monkeypatch.setenv("KUBEX_RETRY_INITIAL_BACKOFF_MS", "50")
        monkeypatch.setenv("KUBEX_RETRY_MAX_BACKOFF_MS", "1000")
        monkeypatch.setenv("KUBEX_RETRY_BACKOFF_MULTIPLIER", "1.5")
        retry = load_config().retry
        assert retry.max_attempts == 8
        assert retry.initial_backoff_ms == 50
        assert retry.max_backoff_ms == 1000
        assert retry.backoff_multiplier == pytest.approx(1.5)

    def test_blank_value_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_RETRY_MAX_ATTEMPTS", "   ")
        assert load_config().retry.max_attempts == 5


# ---------------------------------------------------------------------------
# Clamping and validation
# ---------------------------------------------------------------------------


class TestConfigValidation:
    @pytest.mark.parametrize(
        ("name", "raw", "attr", "expected"),
        [
            ("KUBEX_DISCOVERY_CACHE_TTL", "-5", "cache_ttl_seconds", 0),
            ("KUBEX_DISCOVERY_CACHE_TTL", "999999", "cache_ttl_seconds", 86_400),
        ],
    )
    def test_ttl_clamped(self, monkeypatch: pytest.MonkeyPatch, name: str, raw: str, attr: str, expected: int) -> None:
        monkeypatch.setenv(name, raw)
        assert getattr(load_config().discovery, attr) == expected

    @pytest.mark.parametrize(
        ("name", "raw", "attr", "expected"),
        [
            ("KUBEX_RETRY_MAX_ATTEMPTS", "-1", "max_attempts", 0),
            ("KUBEX_RETRY_MAX_ATTEMPTS", "5000", "max_attempts", 100),
            ("KUBEX_RETRY_INITIAL_BACKOFF_MS", "-10", "initial_backoff_ms", 0),
            ("KUBEX_RETRY_MAX_BACKOFF_MS", "99999999", "max_backoff_ms", 600_000),
            ("KUBEX_RETRY_BACKOFF_MULTIPLIER", "0.5", "backoff_multiplier", 1.0),
        ],
    )
    def test_retry_clamped(
        self,
        monkeypatch: pytest.MonkeyPatch,
        name: str,
        raw: str,
        attr: str,
        expected: float,
    ) -> None:
        monkeypatch.setenv(name, raw)
        assert getattr(load_config().retry, attr) == expected

    def test_non_integer_names_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_DISCOVERY_CACHE_TTL", "ten minutes")
        with pytest.raises(ValueError, match="KUBEX_DISCOVERY_CACHE_TTL"):
            load_config()

    def test_non_numeric_multiplier(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_RETRY_BACKOFF_MULTIPLIER", "double")
        with pytest.raises(ValueError, match="KUBEX_RETRY_BACKOFF_MULTIPLIER"):
            load_config()

    @pytest.mark.parametrize("raw", ["nan", "inf"])
    def test_non_finite_multiplier(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("KUBEX_RETRY_BACKOFF_MULTIPLIER", raw)
        with pytest.raises(ValueError, match="finite"):
            load_config()

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="KUBEX_LOG_LEVEL"):
            load_config()


# ---------------------------------------------------------------------------
# RetryConfig.to_policy
# ---------------------------------------------------------------------------


class TestRetryConfigToPolicy:
    def test_converts_milliseconds(self) -> None:
        policy = RetryConfig(max_attempts=3, initial_backoff_ms=250, max_backoff_ms=2000).to_policy()
        assert policy.max_attempts == 3
        assert policy.initial_backoff == pytest.approx(0.25)
        assert policy.max_backoff == pytest.approx(2.0)

    def test_zero_attempts_is_unlimited(self) -> None:
        assert RetryConfig(max_attempts=0).to_policy().unlimited is True

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEX_RETRY_MAX_ATTEMPTS", "0")
        assert load_config().retry.to_policy().max_attempts is None
