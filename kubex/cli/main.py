"""kubex command-line interface.

Commands:
    kubex version                                  Print version and exit.
    kubex context [-n NS]                          Show the resolved context and namespace.
    kubex api-resources [--refresh] [--json]       List API resources (cache first).
    kubex resolve TOKEN... [--any] [--cache-only]  Resolve resource tokens to API resources.
    kubex get RESOURCE [NAME] [-n NS | -A]         Get or list objects, retrying transient errors.

The target context comes from ``--context`` (or ``KUBEX_CONTEXT``), falling
back to the kubeconfig's current context.  Discovery snapshots are cached per
context; see ``KUBEX_DISCOVERY_CACHE_TTL`` and ``KUBEX_CONFIG_DIR``.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator, Iterator, Sequence
from pathlib import Path
from typing import Any

import aiohttp
import click
from kubernetes_asyncio import client as k8s_client
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException

from kubex import __version__
from kubex.completion import complete_context, complete_resource
from kubex.config import load_config
from kubex.discovery.cache import cache_path_for
from kubex.discovery.client import DiscoveryClient
from kubex.discovery.orchestrator import resolve_from_cache_only, resolve_target_spec
from kubex.dynamic import DynamicResourceApi
from kubex.errors import FatalRemoteError, KubexError
from kubex.kubeconfig import determine_context, determine_namespace
from kubex.models.config import KubexConfig
from kubex.models.resources import AllOf, AllResources, AnyOf, APIResourceDescriptor, ResourceTargetSpec
from kubex.observability.logging import setup_logging
from kubex.retry.api import ApiRetry
from kubex.retry.executor import retry_with_policy
from kubex.retry.policy import RetryPolicy

# ---------------------------------------------------------------------------
# Cluster access helpers
# ---------------------------------------------------------------------------


@contextlib.asynccontextmanager
async def _api_client(context: str) -> AsyncIterator[Any]:
    """Yield a kubernetes_asyncio ApiClient configured for *context*."""
    configuration = k8s_client.Configuration()
    await k8s_config.load_kube_config(context=context, client_configuration=configuration)
    async with k8s_client.ApiClient(configuration) as api_client:
        yield api_client


async def _discover(context: str, policy: RetryPolicy) -> list[APIResourceDescriptor]:
    """Run live discovery for *context* under *policy*."""
    async with _api_client(context) as api_client:
        discovery = DiscoveryClient(api_client)
        return await retry_with_policy(policy, discovery.list_api_resources, name="discovery")


async def _resolve(
    spec: ResourceTargetSpec,
    context: str,
    config: KubexConfig,
    refresh: bool = False,
) -> list[APIResourceDescriptor]:
    policy = config.retry.to_policy()
    return await resolve_target_spec(
        spec,
        context,
        lambda: _discover(context, policy),
        cache_path=_cache_path(context, config),
        ttl=config.discovery.cache_ttl,
        refresh=refresh,
    )


def _cache_path(context: str, config: KubexConfig) -> Path:
    return cache_path_for(context, config.discovery.config_dir, config.discovery.app_name)


async def _fetch_objects(
    context: str,
    config: KubexConfig,
    token: str,
    name: str | None,
    namespace: str | None,
) -> tuple[APIResourceDescriptor, list[dict[str, Any]]]:
    policy = config.retry.to_policy()
    async with _api_client(context) as api_client:
        discovery = DiscoveryClient(api_client)
        resolved = await resolve_target_spec(
            AllOf([token]),
            context,
            lambda: retry_with_policy(policy, discovery.list_api_resources, name="discovery"),
            cache_path=_cache_path(context, config),
            ttl=config.discovery.cache_ttl,
        )
        descriptor = resolved[0]
        verb = "get" if name else "list"
        if not descriptor.supports(verb):
            raise FatalRemoteError(f"resource {descriptor.qualified_name} does not support {verb!r}")
        api = ApiRetry(DynamicResourceApi(api_client, descriptor, namespace), policy)
        if name:
            return descriptor, [await api.get_with_retry(name)]
        listing = await api.list_with_retry()
        return descriptor, list(listing.get("items") or [])


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _descriptor_dict(descriptor: APIResourceDescriptor) -> dict[str, object]:
    return {
        "name": descriptor.name,
        "shortNames": list(descriptor.short_names),
        "apiVersion": descriptor.api_version,
        "namespaced": descriptor.namespaced,
        "kind": descriptor.kind,
    }


def _print_descriptors(descriptors: Sequence[APIResourceDescriptor], output_json: bool) -> None:
    if output_json:
        click.echo(json.dumps([_descriptor_dict(d) for d in descriptors], indent=2))
        return

    headers = ("NAME", "SHORTNAMES", "APIVERSION", "NAMESPACED", "KIND")
    rows = [
        (d.name, ",".join(d.short_names), d.api_version, str(d.namespaced).lower(), d.kind) for d in descriptors
    ]
    widths = [max([len(h), *(len(r[i]) for r in rows)]) for i, h in enumerate(headers)]
    click.echo(click.style("   ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True)).rstrip(), bold=True))
    for row in rows:
        click.echo("   ".join(c.ljust(w) for c, w in zip(row, widths, strict=True)).rstrip())


def _describe(exc: BaseException) -> str:
    if isinstance(exc, ApiException):
        return f"API error {exc.status}: {exc.reason}"
    return str(exc) or type(exc).__name__


@contextlib.contextmanager
def _reported_errors() -> Iterator[None]:
    """Turn kubex, API, kubeconfig and transport errors into click errors."""
    try:
        yield
    except KubexError as exc:
        cause = f" ({_describe(exc.__cause__)})" if exc.__cause__ is not None else ""
        raise click.ClickException(f"{exc}{cause}") from exc
    except ApiException as exc:
        raise click.ClickException(_describe(exc)) from exc
    except k8s_config.ConfigException as exc:
        raise click.ClickException(f"invalid kubeconfig: {exc}") from exc
    except (aiohttp.ClientError, OSError, TimeoutError) as exc:
        raise click.ClickException(f"cannot reach the Kubernetes API server: {_describe(exc)}") from exc


def _run(coro: Any) -> Any:
    with _reported_errors():
        return asyncio.run(coro)


def _require_context(ctx: click.Context) -> str:
    try:
        return determine_context(ctx.obj["context"])
    except KubexError as exc:
        raise click.ClickException(str(exc)) from exc


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--context",
    default=None,
    envvar="KUBEX_CONTEXT",
    shell_complete=complete_context,
    help="Kubeconfig context to target.  Defaults to the current context.",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["debug", "info", "warning", "error", "critical"], case_sensitive=False),
    help="Log level for diagnostics on stderr.  Overrides KUBEX_LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, context: str | None, log_level: str | None) -> None:
    """kubex - cache-aware Kubernetes resource discovery."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    setup_logging(log_level or config.log.level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["context"] = context


# ---------------------------------------------------------------------------
# kubex version
# ---------------------------------------------------------------------------


@cli.command("version")
def cmd_version() -> None:
    """Print the kubex version and exit."""
    click.echo(f"kubex {__version__}")


# ---------------------------------------------------------------------------
# kubex context
# ---------------------------------------------------------------------------


@cli.command("context")
@click.option("--namespace", "-n", default=None, metavar="NS", help="Explicit namespace.")
@click.pass_context
def cmd_context(ctx: click.Context, namespace: str | None) -> None:
    """Show which context and namespace commands will use."""
    context = _require_context(ctx)
    click.echo(f"context={context}")
    click.echo(f"namespace={determine_namespace(namespace, context)}")


# ---------------------------------------------------------------------------
# kubex api-resources
# ---------------------------------------------------------------------------


@cli.command("api-resources")
@click.option("--refresh", is_flag=True, default=False, help="Ignore the cached snapshot and rediscover.")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def cmd_api_resources(ctx: click.Context, refresh: bool, output_json: bool) -> None:
    """List the API resources served by the cluster."""
    config: KubexConfig = ctx.obj["config"]
    context = _require_context(ctx)
    descriptors = _run(_resolve(AllResources(), context, config, refresh=refresh))
    _print_descriptors(descriptors, output_json)


# ---------------------------------------------------------------------------
# kubex resolve
# ---------------------------------------------------------------------------


@cli.command("resolve")
@click.argument("tokens", nargs=-1, required=True, shell_complete=complete_resource)
@click.option("--any", "any_of", is_flag=True, default=False, help="Succeed if at least one token resolves.")
@click.option(
    "--cache-only",
    is_flag=True,
    default=False,
    help="Never contact the cluster; fail if the cache is missing or expired.",
)
@click.option("--json", "output_json", is_flag=True, default=False, help="Print JSON.")
@click.pass_context
def cmd_resolve(
    ctx: click.Context,
    tokens: tuple[str, ...],
    any_of: bool,
    cache_only: bool,
    output_json: bool,
) -> None:
    """Resolve resource TOKENS (short, singular, plural or group-qualified names).

    Example:

        kubex resolve po svc deployments.apps
    """
    config: KubexConfig = ctx.obj["config"]
    context = _require_context(ctx)
    spec = AnyOf(tokens) if any_of else AllOf(tokens)

    if cache_only:
        with _reported_errors():
            descriptors = resolve_from_cache_only(spec, _cache_path(context, config), ttl=config.discovery.cache_ttl)
    else:
        descriptors = _run(_resolve(spec, context, config))
    _print_descriptors(descriptors, output_json)


# ---------------------------------------------------------------------------
# kubex get
# ---------------------------------------------------------------------------


@cli.command("get")
@click.argument("resource", shell_complete=complete_resource)
@click.argument("name", required=False)
@click.option("--namespace", "-n", default=None, metavar="NS", help="Namespace; defaults to the context's.")
@click.option("--all-namespaces", "-A", is_flag=True, default=False, help="List across all namespaces.")
@click.option("--json", "output_json", is_flag=True, default=False, help="Print raw JSON objects.")
@click.pass_context
def cmd_get(
    ctx: click.Context,
    resource: str,
    name: str | None,
    namespace: str | None,
    all_namespaces: bool,
    output_json: bool,
) -> None:
    """Get one object of RESOURCE, or list them all when NAME is omitted."""
    if all_namespaces and name:
        raise click.UsageError("a NAME cannot be combined with --all-namespaces")

    config: KubexConfig = ctx.obj["config"]
    context = _require_context(ctx)
    target_ns = None if all_namespaces else determine_namespace(namespace, context)

    descriptor, objects = _run(_fetch_objects(context, config, resource, name, target_ns))

    if output_json:
        click.echo(json.dumps(objects if not name else objects[0], indent=2))
        return

    if not objects:
        click.echo(f"No {descriptor.name} found.")
        return

    show_ns = descriptor.namespaced and target_ns is None
    click.echo(click.style("NAMESPACE   NAME" if show_ns else "NAME", bold=True))
    for obj in objects:
        meta = obj.get("metadata") or {}
        if show_ns:
            click.echo(f"{meta.get('namespace', ''):<11} {meta.get('name', '?')}")
        else:
            click.echo(str(meta.get("name", "?")))


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
