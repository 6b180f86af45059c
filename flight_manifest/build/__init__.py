"""Client reference manifest construction and emission."""

from .assets import ManifestAssets, dump_manifest, load_manifest, write_manifest_assets
from .async_modules import AsyncClientModules
from .builder import ManifestBuilder, ManifestBuildResult, build_manifest
from .snapshot import load_async_modules, load_graph, load_module_ids

__all__ = [
    "AsyncClientModules",
    "ManifestAssets",
    "ManifestBuildResult",
    "ManifestBuilder",
    "build_manifest",
    "dump_manifest",
    "load_async_modules",
    "load_graph",
    "load_manifest",
    "load_module_ids",
    "write_manifest_assets",
]
