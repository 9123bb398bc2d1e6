"""Pydantic models for the on-disk discovery cache.

File layout::

    {
      "updated_at": "2026-01-15T10:30:00Z",
      "resources": [
        {"group": "apps", "version": "v1", "kind": "Deployment",
         "name": "deployments", "singularName": "deployment",
         "shortNames": ["deploy"], "namespaced": true,
         "verbs": ["get", "list", "watch"]}
      ]
    }

Field names follow the Kubernetes ``APIResource`` wire format so a cache
file reads like ``kubectl api-resources -o json`` output.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kubex.models.resources import APIResourceDescriptor


class CachedResource(BaseModel):
    """One descriptor as stored in the cache file."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    group: str | None = None
    version: str | None = None
    kind: str
    name: str
    singular_name: str = Field(default="", alias="singularName")
    short_names: list[str] | None = Field(default=None, alias="shortNames")
    namespaced: bool
    verbs: list[str] | None = None

    @classmethod
    def from_descriptor(cls, descriptor: APIResourceDescriptor) -> CachedResource:
        return cls(
            group=descriptor.group,
            version=descriptor.version,
            kind=descriptor.kind,
            name=descriptor.name,
            singular_name=descriptor.singular_name,
            short_names=list(descriptor.short_names) or None,
            namespaced=descriptor.namespaced,
            verbs=list(descriptor.verbs) or None,
        )

    def to_descriptor(self) -> APIResourceDescriptor:
        return APIResourceDescriptor(
            group=self.group,
            version=self.version,
            kind=self.kind,
            name=self.name,
            singular_name=self.singular_name,
            short_names=tuple(self.short_names or ()),
            namespaced=self.namespaced,
            verbs=tuple(self.verbs or ()),
        )


class DiscoveryCacheFile(BaseModel):
    """Timestamped snapshot of every API resource a cluster serves."""

    updated_at: datetime
    resources: list[CachedResource] = Field(default_factory=list)

    @field_validator("updated_at")
    @classmethod
    def ensure_timezone(cls, value: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @classmethod
    def snapshot(cls, descriptors: list[APIResourceDescriptor], now: datetime | None = None) -> DiscoveryCacheFile:
        return cls(
            updated_at=now or datetime.now(tz=UTC),
            resources=[CachedResource.from_descriptor(d) for d in descriptors],
        )

    def descriptors(self) -> list[APIResourceDescriptor]:
        return [r.to_descriptor() for r in self.resources]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
