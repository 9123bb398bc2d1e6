"""kubex - resilient, cache-aware Kubernetes API access for CLI tooling."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kubex")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
