"""Error types raised while building client reference manifests."""

from __future__ import annotations


class ManifestError(RuntimeError):
    """Base class for manifest build failures."""


class GraphSnapshotError(ManifestError):
    """Raised when a graph snapshot or module id table cannot be loaded."""


class ManifestInvariantError(ManifestError):
    """Raised when the module graph breaks an assumption the builder relies on."""


class ConfigError(ManifestError):
    """Raised when manifest configuration is invalid."""


__all__ = [
    "ConfigError",
    "GraphSnapshotError",
    "ManifestError",
    "ManifestInvariantError",
]
