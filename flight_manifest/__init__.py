"""Client reference manifest builder for server component bundles."""

__version__ = "0.1.0"
from .build import (
    AsyncClientModules,
    ManifestAssets,
    ManifestBuilder,
    ManifestBuildResult,
    build_manifest,
    load_graph,
    load_manifest,
    write_manifest_assets,
)
from .config import ManifestConfig, load_config
from .errors import ConfigError, GraphSnapshotError, ManifestError, ManifestInvariantError
from .schemas import BuildGraph, ClientReferenceManifest, ManifestKey, ModuleRecord

__all__ = [
    "__version__",
    "AsyncClientModules",
    "BuildGraph",
    "ClientReferenceManifest",
    "ConfigError",
    "GraphSnapshotError",
    "ManifestAssets",
    "ManifestBuildResult",
    "ManifestBuilder",
    "ManifestConfig",
    "ManifestError",
    "ManifestInvariantError",
    "ManifestKey",
    "ModuleRecord",
    "build_manifest",
    "load_config",
    "load_graph",
    "load_manifest",
    "write_manifest_assets",
]
