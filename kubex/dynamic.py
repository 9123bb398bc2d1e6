"""Descriptor-driven access to arbitrary Kubernetes resources.

The generated ``kubernetes_asyncio`` API classes only cover built-in types
and address them by Python method name.  A resolved
:class:`~kubex.models.resources.APIResourceDescriptor` already knows the
group, version, plural name and scope of a resource, which is all that is
needed to build its REST path, so this module talks to the cluster through
``ApiClient.call_api`` directly.  Objects are plain dicts.

Every coroutine method performs exactly one request and may be re-invoked
freely, which is what :class:`kubex.retry.api.ApiRetry` relies on.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import AsyncIterator
from typing import Any

from kubex.models.resources import APIResourceDescriptor
from kubex.observability.logging import get_logger

_log = get_logger("dynamic")

_PATCH_CONTENT_TYPES: dict[str, str] = {
    "merge": "application/merge-patch+json",
    "strategic": "application/strategic-merge-patch+json",
    "json": "application/json-patch+json",
    "apply": "application/apply-patch+yaml",
}

_RESPONSE_TYPES: dict[int, str] = {200: "object", 201: "object"}


def resource_base_path(resource: APIResourceDescriptor) -> str:
    """Return ``/api/<v>`` for the core group, ``/apis/<group>/<v>`` otherwise."""
    if resource.is_core:
        return f"/api/{resource.version or 'v1'}"
    return f"/apis/{resource.group}/{resource.version}"


def collection_path(resource: APIResourceDescriptor, namespace: str | None = None) -> str:
    """Return the REST path of the resource collection.

    Namespaced resources without a namespace address the cluster-wide
    collection (``/api/v1/pods``), which is only valid for list and watch.
    """
    base = resource_base_path(resource)
    if resource.namespaced and namespace:
        return f"{base}/namespaces/{namespace}/{resource.name}"
    return f"{base}/{resource.name}"


class WatchStream:
    """Async iterator over decoded watch events of an established watch.

    Yields dicts with ``type`` and ``object`` keys.  Errors raised while
    reading belong to the caller; the stream is not re-established here.
    """

    def __init__(self, response: Any) -> None:
        self._response = response

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        try:
            async for line in self._response.content:
                line = line.strip()
                if not line:
                    continue
                yield json.loads(line)
        finally:
            await self.close()

    async def close(self) -> None:
        release = getattr(self._response, "release", None)
        if release is not None:
            result = release()
            if inspect.isawaitable(result):
                await result


class DynamicResourceApi:
    """REST operations for one resource type, optionally scoped to a namespace.

    Example::

        api = DynamicResourceApi(api_client, deployments, namespace="prod")
        obj = await api.get("web")
    """

    def __init__(
        self,
        api_client: Any,
        resource: APIResourceDescriptor,
        namespace: str | None = None,
    ) -> None:
        self._api_client = api_client
        self.resource = resource
        self.namespace = namespace if resource.namespaced else None

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def collection_path(self) -> str:
        return collection_path(self.resource, self.namespace)

    def object_path(self, name: str) -> str:
        if not name:
            raise ValueError("object name must not be empty")
        return f"{self.collection_path}/{name}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get(self, name: str) -> dict[str, Any]:
        return await self._call("GET", self.object_path(name))

    async def list(
        self,
        label_selector: str | None = None,
        field_selector: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if label_selector:
            query["labelSelector"] = label_selector
        if field_selector:
            query["fieldSelector"] = field_selector
        if limit:
            query["limit"] = limit
        return await self._call("GET", self.collection_path, query=query)

    async def create(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("POST", self.collection_path, body=body)

    async def replace(self, name: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("PUT", self.object_path(name), body=body)

    async def patch(self, name: str, body: Any, patch_type: str = "merge") -> dict[str, Any]:
        try:
            content_type = _PATCH_CONTENT_TYPES[patch_type]
        except KeyError:
            raise ValueError(
                f"unknown patch type {patch_type!r}; expected one of {', '.join(_PATCH_CONTENT_TYPES)}"
            ) from None
        return await self._call("PATCH", self.object_path(name), body=body, content_type=content_type)

    async def watch(self, resource_version: str = "", timeout_seconds: int | None = None) -> WatchStream:
        """Establish a watch and return the event stream."""
        query: dict[str, Any] = {"watch": "true", "allowWatchBookmarks": "true"}
        if resource_version:
            query["resourceVersion"] = resource_version
        if timeout_seconds is not None:
            query["timeoutSeconds"] = timeout_seconds
        response = await self._call("GET", self.collection_path, query=query, preload=False)
        _log.debug("watch_established", path=self.collection_path, resource_version=resource_version)
        return WatchStream(response)

    async def _call(
        self,
        method: str,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        body: Any = None,
        content_type: str = "application/json",
        preload: bool = True,
    ) -> Any:
        return await self._api_client.call_api(
            path,
            method,
            query_params=list((query or {}).items()),
            header_params={"Accept": "application/json", "Content-Type": content_type},
            body=body,
            auth_settings=["BearerToken"],
            response_types_map=_RESPONSE_TYPES,
            _return_http_data_only=True,
            _preload_content=preload,
        )
