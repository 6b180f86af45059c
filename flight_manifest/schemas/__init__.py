"""Schema definitions for graph snapshots and client reference manifests."""

from .graph import BuildGraph, ChunkGroupInfo, ChunkInfo, DependencyInfo, ModuleInfo, RscInfo
from .manifest import ClientReferenceManifest, ManifestKey, ModuleRecord

__all__ = [
    "BuildGraph",
    "ChunkGroupInfo",
    "ChunkInfo",
    "ClientReferenceManifest",
    "DependencyInfo",
    "ManifestKey",
    "ModuleInfo",
    "ModuleRecord",
    "RscInfo",
]
