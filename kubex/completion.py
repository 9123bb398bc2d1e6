"""Shell completion callbacks for click options and arguments.

Completion runs on every <TAB>, so these callbacks read only local files
(kubeconfig and the discovery cache) and never raise: any problem yields no
candidates rather than a traceback in the user's shell.

Usage::

    @click.option("--context", shell_complete=complete_context)
    @click.argument("resource", shell_complete=complete_resource)
"""

from __future__ import annotations

from typing import Any

import click
from click.shell_completion import CompletionItem

from kubex.config import load_config
from kubex.discovery.cache import cache_path_for
from kubex.discovery.orchestrator import resolve_from_cache_only
from kubex.kubeconfig import determine_context, list_contexts
from kubex.models.resources import AllResources, APIResourceDescriptor
from kubex.observability.logging import get_logger

_log = get_logger("completion")


def complete_context(ctx: click.Context, param: click.Parameter, incomplete: str) -> list[CompletionItem]:
    """Complete kubeconfig context names, current context first."""
    prefix = incomplete.strip()
    items: list[CompletionItem] = []

    for entry in list_contexts():
        if prefix and not entry.name.startswith(prefix):
            continue
        details: list[str] = []
        if entry.cluster:
            details.append(f"cluster={entry.cluster}")
        if entry.namespace:
            details.append(f"namespace={entry.namespace}")
        if entry.is_current:
            details.insert(0, "[current]")
        item = CompletionItem(entry.name, help=" ".join(details) or None)
        if entry.is_current:
            items.insert(0, item)
        else:
            items.append(item)
    return items


def resource_candidates(descriptors: list[APIResourceDescriptor], prefix: str) -> list[CompletionItem]:
    """Every name a descriptor answers to that starts with *prefix*, first occurrence wins."""
    seen: set[str] = set()
    items: list[CompletionItem] = []
    for descriptor in descriptors:
        names = [descriptor.name, descriptor.singular_name, *descriptor.short_names]
        if descriptor.group:
            names.append(descriptor.qualified_name)
        for name in names:
            if not name or name in seen or not name.startswith(prefix):
                continue
            seen.add(name)
            items.append(CompletionItem(name, help=descriptor.kind))
    return items


def complete_resource(ctx: click.Context, param: click.Parameter, incomplete: str) -> list[CompletionItem]:
    """Complete resource tokens from the cached discovery snapshot of the selected context."""
    try:
        config = load_config()
        context = determine_context(_lookup_param(ctx, "context"))
        path = cache_path_for(context, config.discovery.config_dir, config.discovery.app_name)
        # No ttl: completion accepts stale snapshots.
        descriptors = resolve_from_cache_only(AllResources(), path)
    except Exception as exc:  # noqa: BLE001
        _log.debug("resource_completion_unavailable", error=str(exc))
        return []
    return resource_candidates(descriptors, incomplete.strip())


def _lookup_param(ctx: click.Context | None, name: str) -> Any:
    # Options given to a parent group live on the parent context.
    while ctx is not None:
        value = ctx.params.get(name)
        if value:
            return value
        ctx = ctx.parent
    return None
