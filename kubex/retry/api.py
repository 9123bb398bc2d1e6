"""Retrying adapter over :class:`~kubex.dynamic.DynamicResourceApi`.

Each ``*_with_retry`` method hands the executor a lambda that issues a brand
new request per attempt.  Watches are retried while the stream is being
established only; once :class:`~kubex.dynamic.WatchStream` is returned,
errors raised while iterating it reach the caller directly.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from kubex.dynamic import DynamicResourceApi, WatchStream
from kubex.retry.executor import retry_with_policy
from kubex.retry.policy import DEFAULT_POLICY, RetryPolicy, status_of

T = TypeVar("T")


class ApiRetry:
    """Run resource operations through a shared :class:`RetryPolicy`."""

    def __init__(self, api: DynamicResourceApi, policy: RetryPolicy | None = None) -> None:
        self.api = api
        self.policy = policy or DEFAULT_POLICY

    def _label(self, verb: str) -> str:
        return f"{verb} {self.api.resource.name}"

    async def retry(
        self,
        operation: Callable[[DynamicResourceApi], Awaitable[T]],
        name: str = "custom",
    ) -> T:
        """Retry an arbitrary operation that receives the wrapped api."""
        return await retry_with_policy(self.policy, lambda: operation(self.api), name=self._label(name))

    async def list_with_retry(
        self,
        label_selector: str | None = None,
        field_selector: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        return await retry_with_policy(
            self.policy,
            lambda: self.api.list(label_selector=label_selector, field_selector=field_selector, limit=limit),
            name=self._label("list"),
        )

    async def get_with_retry(self, name: str) -> dict[str, Any]:
        return await retry_with_policy(self.policy, lambda: self.api.get(name), name=self._label("get"))

    async def get_opt_with_retry(self, name: str) -> dict[str, Any] | None:
        """Like :meth:`get_with_retry` but returns ``None`` when the object does not exist."""
        try:
            return await self.get_with_retry(name)
        except Exception as exc:
            if status_of(exc) == 404:
                return None
            raise

    async def create_with_retry(self, body: dict[str, Any]) -> dict[str, Any]:
        return await retry_with_policy(self.policy, lambda: self.api.create(body), name=self._label("create"))

    async def replace_with_retry(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        return await retry_with_policy(
            self.policy, lambda: self.api.replace(name, body), name=self._label("replace")
        )

    async def patch_with_retry(self, name: str, body: Any, patch_type: str = "merge") -> dict[str, Any]:
        return await retry_with_policy(
            self.policy,
            lambda: self.api.patch(name, body, patch_type=patch_type),
            name=self._label("patch"),
        )

    async def watch_with_retry(
        self,
        resource_version: str = "",
        timeout_seconds: int | None = None,
    ) -> WatchStream:
        return await retry_with_policy(
            self.policy,
            lambda: self.api.watch(resource_version=resource_version, timeout_seconds=timeout_seconds),
            name=self._label("watch"),
        )
