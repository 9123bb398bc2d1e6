"""Context and namespace defaults from the user's kubeconfig.

Only the bits kubex needs are read: the context list, the current context,
and each context's cluster and default namespace.  Parsing is delegated to
``kubernetes_asyncio.config``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kubernetes_asyncio.config import ConfigException, list_kube_config_contexts

from kubex.errors import ContextNotFound
from kubex.observability.logging import get_logger

_log = get_logger("kubeconfig")

_DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True)
class KubeContext:
    name: str
    cluster: str = ""
    namespace: str | None = None
    is_current: bool = False


def _plain(node: Any) -> Any:
    # kubernetes_asyncio wraps some entries in ConfigNode; .value is the dict.
    return getattr(node, "value", node)


def _read_contexts(config_file: str | None = None) -> tuple[list[dict[str, Any]], str | None]:
    contexts, current = list_kube_config_contexts(config_file=config_file)
    current_name: str | None = None
    current_plain = _plain(current)
    if isinstance(current_plain, dict):
        current_name = current_plain.get("name")
    return [_plain(c) for c in contexts or []], current_name


def list_contexts(config_file: str | None = None) -> list[KubeContext]:
    """Return every context in the kubeconfig; empty if it cannot be read."""
    try:
        contexts, current = _read_contexts(config_file)
    except (ConfigException, OSError, ValueError) as exc:
        _log.debug("kubeconfig_unreadable", error=str(exc))
        return []

    result: list[KubeContext] = []
    for entry in contexts:
        name = entry.get("name")
        if not name:
            continue
        details = entry.get("context") or {}
        result.append(
            KubeContext(
                name=str(name),
                cluster=str(details.get("cluster") or ""),
                namespace=details.get("namespace"),
                is_current=name == current,
            )
        )
    return result


def determine_context(context: str | None = None, config_file: str | None = None) -> str:
    """Return *context* if given, else the kubeconfig's current context.

    Raises:
        ContextNotFound: No context was given and none is current.
    """
    if context:
        return context
    try:
        _, current = _read_contexts(config_file)
    except (ConfigException, OSError, ValueError) as exc:
        raise ContextNotFound(f"cannot read kubeconfig: {exc}") from exc
    if not current:
        raise ContextNotFound("current_context is not set")
    return current


def determine_namespace(namespace: str | None, context: str, config_file: str | None = None) -> str:
    """Return *namespace* if given, else the context's namespace, else ``default``."""
    if namespace:
        return namespace
    for entry in list_contexts(config_file):
        if entry.name == context:
            return entry.namespace or _DEFAULT_NAMESPACE
    return _DEFAULT_NAMESPACE
