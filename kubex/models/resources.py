"""API resource descriptors and resource target specifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# Group names that denote the legacy core API served under /api.
CORE_GROUPS: frozenset[str] = frozenset({"", "core"})


@dataclass(frozen=True)
class APIResourceDescriptor:
    """Canonical record of one API resource type served by the cluster.

    Mirrors the fields of a Kubernetes ``APIResource`` entry that matter for
    name resolution.  ``name`` is the plural resource name (``pods``).
    Discovery fills in ``group`` and ``version``; the core group is stored
    as ``"core"``.
    """

    kind: str
    name: str
    singular_name: str = ""
    namespaced: bool = False
    group: str | None = None
    version: str | None = None
    short_names: tuple[str, ...] = ()
    verbs: tuple[str, ...] = ()

    @property
    def is_core(self) -> bool:
        return self.group is None or self.group in CORE_GROUPS

    @property
    def api_version(self) -> str:
        """Return the ``apiVersion`` string objects of this type carry.

        The core group is omitted (``v1``); every other group is prefixed
        (``apps/v1``).
        """
        version = self.version or "v1"
        if self.is_core:
            return version
        return f"{self.group}/{version}"

    @property
    def qualified_name(self) -> str:
        """``<plural>.<group>`` when a group is known, else the plural name."""
        if self.group:
            return f"{self.name}.{self.group}"
        return self.name

    @property
    def identity(self) -> tuple[str, str | None, str | None]:
        """Composite key (name, group, version) used for de-duplication."""
        return (self.name, self.group, self.version)

    def supports(self, verb: str) -> bool:
        """Return True if the resource advertises *verb*.

        Descriptors without verb information are assumed to support everything.
        """
        return not self.verbs or verb in self.verbs


# ---------------------------------------------------------------------------
# Target specifications
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AllResources:
    """Select every discovered resource, no filtering."""


@dataclass(frozen=True)
class AllOf:
    """Every token must resolve to a resource."""

    tokens: Sequence[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tuple(self.tokens))


@dataclass(frozen=True)
class AnyOf:
    """At least one token must resolve to a resource."""

    tokens: Sequence[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", tuple(self.tokens))


ResourceTargetSpec = AllResources | AllOf | AnyOf
