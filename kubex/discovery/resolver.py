"""Map user-supplied resource tokens onto API resource descriptors.

A token matches a descriptor when it equals the plural name (``pods``), the
singular name (``pod``), any short name (``po``), or the group-qualified
plural (``deployments.apps``).  The first match in descriptor order wins,
which mirrors how discovery lists preferred group versions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from kubex.errors import NoResourcesResolved, UnresolvedResources
from kubex.models.resources import AllOf, AllResources, AnyOf, APIResourceDescriptor, ResourceTargetSpec


def matches(token: str, descriptor: APIResourceDescriptor) -> bool:
    """Return True if *token* names *descriptor*."""
    return (
        token == descriptor.name
        or token == descriptor.singular_name
        or token in descriptor.short_names
        or (bool(descriptor.group) and token == f"{descriptor.name}.{descriptor.group}")
    )


def resolve_one(token: str, descriptors: Iterable[APIResourceDescriptor]) -> APIResourceDescriptor | None:
    """Return the first descriptor matching *token*, or ``None``."""
    for descriptor in descriptors:
        if matches(token, descriptor):
            return descriptor
    return None


def _resolve_all_of(tokens: Sequence[str], descriptors: Sequence[APIResourceDescriptor]) -> list[APIResourceDescriptor]:
    resolved: dict[str, APIResourceDescriptor] = {}
    unresolved: set[str] = set()

    for token in tokens:
        descriptor = resolve_one(token, descriptors)
        if descriptor is None:
            unresolved.add(token)
            continue
        # Keyed by plural name; dict insertion order keeps first-token order.
        resolved.setdefault(descriptor.name, descriptor)

    if unresolved:
        raise UnresolvedResources(sorted(unresolved))
    return list(resolved.values())


def _resolve_any_of(tokens: Sequence[str], descriptors: Sequence[APIResourceDescriptor]) -> list[APIResourceDescriptor]:
    resolved: dict[tuple[str, str | None, str | None], APIResourceDescriptor] = {}

    for token in tokens:
        descriptor = resolve_one(token, descriptors)
        if descriptor is not None:
            resolved.setdefault(descriptor.identity, descriptor)

    if not resolved:
        raise NoResourcesResolved(list(tokens))
    return list(resolved.values())


def resolve_all(spec: ResourceTargetSpec, descriptors: Sequence[APIResourceDescriptor]) -> list[APIResourceDescriptor]:
    """Resolve a target specification against *descriptors*.

    Raises:
        UnresolvedResources: ``AllOf`` with at least one unknown token; lists
            every unknown token, sorted.
        NoResourcesResolved: ``AnyOf`` where no token matched; lists every
            token tried.
    """
    if isinstance(spec, AllResources):
        return list(descriptors)
    if isinstance(spec, AllOf):
        return _resolve_all_of(spec.tokens, descriptors)
    if isinstance(spec, AnyOf):
        return _resolve_any_of(spec.tokens, descriptors)
    raise TypeError(f"unsupported resource target spec: {spec!r}")
