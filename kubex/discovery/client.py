"""Live API discovery against a cluster.

Walks the discovery endpoints the same way ``kubectl api-resources`` does:

- ``GET /api``  -> core versions, then ``GET /api/<version>`` for each;
- ``GET /apis`` -> API groups, then ``GET /apis/<group>/<preferred>`` for
  each group's preferred version.

Subresources (``pods/log``, ``deployments/scale``) are dropped.  A group
version that fails to list (an unavailable aggregated API is the usual
culprit) is logged and skipped so one broken APIService does not hide the
rest of the cluster.
"""

from __future__ import annotations

from typing import Any

from kubex.models.resources import APIResourceDescriptor
from kubex.observability.logging import get_logger
from kubex.observability.metrics import discovery_group_failures_total, discovery_live_requests_total

_log = get_logger("discovery.client")

_CORE_GROUP: str = "core"


def _descriptors_from_listing(listing: dict[str, Any], group: str, version: str) -> list[APIResourceDescriptor]:
    descriptors: list[APIResourceDescriptor] = []
    for entry in listing.get("resources") or []:
        name = str(entry.get("name", ""))
        if not name or "/" in name:
            continue
        descriptors.append(
            APIResourceDescriptor(
                group=group,
                version=version,
                kind=str(entry.get("kind", "")),
                name=name,
                singular_name=str(entry.get("singularName") or ""),
                short_names=tuple(entry.get("shortNames") or ()),
                namespaced=bool(entry.get("namespaced", False)),
                verbs=tuple(entry.get("verbs") or ()),
            )
        )
    return descriptors


def _preferred_version(group: dict[str, Any]) -> str | None:
    preferred = group.get("preferredVersion") or {}
    if preferred.get("version"):
        return str(preferred["version"])
    versions = group.get("versions") or []
    if versions and versions[0].get("version"):
        return str(versions[0]["version"])
    return None


class DiscoveryClient:
    """List every API resource type a cluster serves.

    Args:
        api_client: A ``kubernetes_asyncio.client.ApiClient`` (or any object
            with a compatible ``call_api`` coroutine).
    """

    def __init__(self, api_client: Any) -> None:
        self._api_client = api_client

    async def list_api_resources(self) -> list[APIResourceDescriptor]:
        """Return descriptors for the core group followed by every named group.

        Raises:
            Exception: The root listings (``/api`` or ``/apis``) failed, or
                every group version failed and nothing was discovered.
        """
        try:
            resources = await self._discover()
        except Exception:
            discovery_live_requests_total.labels(success="false").inc()
            raise
        discovery_live_requests_total.labels(success="true").inc()
        _log.debug("discovery_complete", resources=len(resources))
        return resources

    async def _discover(self) -> list[APIResourceDescriptor]:
        resources: list[APIResourceDescriptor] = []
        last_error: Exception | None = None

        core = await self._get("/api")
        targets: list[tuple[str, str, str]] = [
            (f"/api/{version}", _CORE_GROUP, str(version)) for version in core.get("versions") or []
        ]

        groups = await self._get("/apis")
        for group in groups.get("groups") or []:
            name = group.get("name")
            version = _preferred_version(group)
            if not name or version is None:
                continue
            targets.append((f"/apis/{name}/{version}", str(name), version))

        for path, group_name, version in targets:
            try:
                listing = await self._get(path)
            except Exception as exc:
                last_error = exc
                discovery_group_failures_total.inc()
                _log.warning("discovery_group_failed", path=path, error=str(exc))
                continue
            resources.extend(_descriptors_from_listing(listing, group_name, version))

        if not resources and last_error is not None:
            raise last_error
        return resources

    async def _get(self, path: str) -> dict[str, Any]:
        result = await self._api_client.call_api(
            path,
            "GET",
            header_params={"Accept": "application/json"},
            auth_settings=["BearerToken"],
            response_types_map={200: "object"},
            _return_http_data_only=True,
        )
        return result or {}
