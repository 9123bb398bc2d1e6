"""Exception hierarchy for kubex.

Remote failures raised by ``kubernetes_asyncio`` (``ApiException``) are
never wrapped by the retry layer; they reach callers unchanged so that
callers can branch on ``exc.status``.  The types below cover everything
kubex itself reports.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path


class KubexError(Exception):
    """Base class for every error raised by kubex."""


# ---------------------------------------------------------------------------
# Remote operations
# ---------------------------------------------------------------------------


class RemoteOperationError(KubexError):
    """A remote call failed.

    Collaborators that do not speak ``ApiException`` raise this (or one of
    its subclasses) so the default classifier can still read a status code.
    """

    retryable: bool | None = None

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class TransientRemoteError(RemoteOperationError):
    """A remote failure that is expected to clear up on its own."""

    retryable = True


class FatalRemoteError(RemoteOperationError):
    """A remote failure that retrying will not fix."""

    retryable = False


# ---------------------------------------------------------------------------
# Discovery cache
# ---------------------------------------------------------------------------


class CacheUnreadable(KubexError):
    """The discovery cache is missing or cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"discovery cache at {path} is unreadable: {reason}")
        self.path = path
        self.reason = reason


class CacheExpired(KubexError):
    """The discovery cache is older than the configured TTL."""

    def __init__(self, path: Path, age: timedelta, ttl: timedelta) -> None:
        super().__init__(
            f"discovery cache at {path} is expired: "
            f"age {age.total_seconds():.0f}s exceeds ttl {ttl.total_seconds():.0f}s"
        )
        self.path = path
        self.age = age
        self.ttl = ttl


class PersistenceFailure(KubexError):
    """Writing the discovery cache failed."""

    def __init__(self, path: Path, reason: str = "") -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"failed to write discovery cache to {path}{detail}")
        self.path = path


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class UnresolvedResources(KubexError):
    """One or more requested tokens matched no API resource."""

    def __init__(self, tokens: list[str]) -> None:
        super().__init__(f"resource not found: {', '.join(tokens)}")
        self.tokens = tokens


class NoResourcesResolved(KubexError):
    """None of the requested tokens matched an API resource."""

    def __init__(self, tokens: list[str]) -> None:
        super().__init__(f"no resources matched any of: {', '.join(tokens)}")
        self.tokens = tokens


class DiscoveryFailed(KubexError):
    """Live discovery failed and no cached snapshot could answer instead.

    The underlying error is available as ``__cause__``.
    """

    def __init__(self, context: str) -> None:
        super().__init__(f"failed to discover Kubernetes API resources for context {context!r}")
        self.context = context


# ---------------------------------------------------------------------------
# Kubeconfig
# ---------------------------------------------------------------------------


class ContextNotFound(KubexError):
    """No context was given and the kubeconfig has no current context."""
