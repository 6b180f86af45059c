"""Client reference manifest construction."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from ..config import ManifestConfig
from ..errors import ManifestInvariantError
from ..schemas.graph import BuildGraph, ChunkGroupInfo, ChunkInfo, ModuleId, ModuleInfo
from ..schemas.manifest import (
    ANONYMOUS_EXPORT,
    NAMESPACE_EXPORT,
    ClientReferenceManifest,
    ManifestKey,
    ModuleRecord,
)
from .classify import ModuleKind, classify_module, collect_client_requests
from .entry_css import EntryCssAggregator, is_app_group
from .exports import observed_export_names
from .ssr import ModuleIdTable, link_ssr_record, ssr_module_path

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ManifestBuildResult:
    manifest: ClientReferenceManifest
    consumed_async_modules: FrozenSet[str]
    # Async module state to carry into the next build; the pass consumes it all.
    async_client_modules: FrozenSet[str] = field(default_factory=frozenset)


class ManifestBuilder:
    """Summarizes a frozen module graph into a client reference manifest."""

    def __init__(
        self,
        config: ManifestConfig,
        *,
        server_module_ids: Optional[ModuleIdTable] = None,
        edge_server_module_ids: Optional[ModuleIdTable] = None,
    ) -> None:
        self.config = config
        self.server_module_ids: ModuleIdTable = dict(server_module_ids or {})
        self.edge_server_module_ids: ModuleIdTable = dict(edge_server_module_ids or {})
        self._library_pattern = _subtree_pattern(config.library_dist)
        self._library_replacement = _subtree_replacement(config.library_esm)

    def build(self, graph: BuildGraph, async_client_modules: Iterable[str] = ()) -> ManifestBuildResult:
        """Build the manifest for one completed build."""

        consumed = frozenset(async_client_modules)
        build = _ManifestPass(self, graph, consumed)
        for group in graph.chunk_groups:
            build.process_group(group)
        manifest = build.finish()

        logger.info(
            "Client reference manifest built: %d records, %d ssr modules, %d edge ssr modules, %d entries",
            len(manifest.records),
            len(manifest.ssr_module_mapping),
            len(manifest.edge_ssr_module_mapping),
            len(manifest.entry_css_files),
        )
        return ManifestBuildResult(manifest=manifest, consumed_async_modules=consumed)

    def mirror_path(self, resource: str) -> Optional[str]:
        """Path of the alternate library build for resources inside the library subtree."""

        if not self._library_pattern.search(resource):
            return None
        return self._library_pattern.sub(lambda _match: self._library_replacement, resource, count=1)

    def chunk_descriptor(self, chunk: ChunkInfo) -> str:
        descriptor = f"{chunk.id}:{chunk.name or chunk.id}"
        if self.config.dev:
            return descriptor
        return f"{descriptor}-{chunk.hash}"


class _ManifestPass:
    """State owned by a single build pass."""

    def __init__(self, builder: ManifestBuilder, graph: BuildGraph, async_modules: FrozenSet[str]) -> None:
        self.builder = builder
        self.config = builder.config
        self.graph = graph
        self.async_modules = async_modules
        self.manifest = ClientReferenceManifest()
        self.client_requests = collect_client_requests(graph.modules)
        self.entry_css = EntryCssAggregator(app_dir=self.config.app_dir, prefix=self.config.app_group_prefix)
        self._required_chunks: Dict[int, List[str]] = {}

    def process_group(self, group: ChunkGroupInfo) -> None:
        chunks = self.graph.group_chunks(group)
        logger.debug("Processing chunk group %s with %d chunks", group.name, len(chunks))

        for chunk in chunks:
            chunk_css = [
                path
                for path in chunk.files
                if path.endswith(".css") and not path.startswith(self.config.excluded_css_prefix)
            ]
            for module in self.graph.chunk_modules(chunk):
                self.record_module(group, module.id, module, chunk_css)
                # Modules folded into a concatenated unit resolve to the unit's id.
                for identifier in module.modules:
                    self.record_module(group, module.id, self.graph.module(identifier), chunk_css)

        css_files = [path for path in self.graph.group_files(group) if path.endswith(".css")]
        self.entry_css.add_group(group.name, group.parents, css_files)

    def finish(self) -> ClientReferenceManifest:
        self.entry_css.inherit_ancestor_files()
        self.manifest.entry_css_files = self.entry_css.entries
        return self.manifest

    def record_module(
        self,
        group: ChunkGroupInfo,
        module_id: Optional[ModuleId],
        module: ModuleInfo,
        chunk_css: List[str],
    ) -> None:
        kind, resource = classify_module(module, self.config, self.client_requests)
        if kind is ModuleKind.SKIPPED or resource is None:
            return
        if kind is ModuleKind.STYLESHEET:
            self.record_stylesheet(resource, "" if module_id is None else str(module_id), chunk_css)
            return
        if module_id is None:
            raise ManifestInvariantError(
                f"Client module '{resource}' in chunk group '{group.name}' has no module id."
            )
        self.record_client_script(group, str(module_id), module, resource)

    def record_stylesheet(self, resource: str, module_id: str, chunk_css: List[str]) -> None:
        key = ManifestKey(resource, ANONYMOUS_EXPORT)
        existing = self.manifest.records.get(key)
        if existing is None:
            self.manifest.records[key] = ModuleRecord(id=module_id, name="", chunks=list(chunk_css))
            return
        if existing.is_async is not None:
            raise ManifestInvariantError(f"Stylesheet '{resource}' collides with a client module record.")
        # The same stylesheet can be extracted into several groups; keep every chunk.
        existing.chunks = list(dict.fromkeys([*existing.chunks, *chunk_css]))

    def record_client_script(self, group: ChunkGroupInfo, module_id: str, module: ModuleInfo, resource: str) -> None:
        records = self.manifest.records
        required_chunks = self.required_chunks(group)
        is_async = resource in self.async_modules
        mirror = self.builder.mirror_path(resource)
        ssr_path = ssr_module_path(module, resource, self.config.context)

        anonymous = records.get(ManifestKey(resource, ANONYMOUS_EXPORT))
        if anonymous is not None and anonymous.is_async is None:
            raise ManifestInvariantError(f"Client module '{resource}' collides with a stylesheet record.")

        def add_reference(name: str) -> None:
            record = ModuleRecord(id=module_id, name=name, chunks=list(required_chunks), is_async=is_async)
            records[ManifestKey.for_export(resource, name)] = record
            if mirror is not None:
                records[ManifestKey.for_export(mirror, name)] = record

        def add_ssr_mapping(name: str) -> None:
            record = records.get(ManifestKey.for_export(resource, name))
            link_ssr_record(
                self.manifest.ssr_module_mapping, self.builder.server_module_ids, ssr_path, module_id, name, record
            )
            link_ssr_record(
                self.manifest.edge_ssr_module_mapping,
                self.builder.edge_server_module_ids,
                ssr_path,
                module_id,
                name,
                record,
            )

        add_reference(NAMESPACE_EXPORT)
        add_reference(ANONYMOUS_EXPORT)
        add_ssr_mapping(NAMESPACE_EXPORT)
        add_ssr_mapping(ANONYMOUS_EXPORT)

        app_group = is_app_group(group.name, self.config.app_group_prefix)
        for name in observed_export_names(module):
            # App route groups win over overlapping records from other groups.
            if ManifestKey.for_export(resource, name) not in records or app_group:
                add_reference(name)
            add_ssr_mapping(name)

    def required_chunks(self, group: ChunkGroupInfo) -> List[str]:
        cached = self._required_chunks.get(id(group))
        if cached is None:
            system = set(self.config.system_entrypoints)
            cached = [
                self.builder.chunk_descriptor(chunk)
                for chunk in self.graph.group_chunks(group)
                if chunk.name not in system
            ]
            self._required_chunks[id(group)] = cached
        return cached


def _subtree_pattern(subtree: str) -> re.Pattern[str]:
    segments = [re.escape(segment) for segment in subtree.strip("/").split("/")]
    return re.compile(r"[\\/]" + r"[\\/]".join(segments) + r"[\\/]")


def _subtree_replacement(subtree: str) -> str:
    return ("/" + subtree.strip("/") + "/").replace("/", os.sep)


def build_manifest(
    graph: BuildGraph,
    config: ManifestConfig,
    *,
    server_module_ids: Optional[Mapping[str, ModuleId]] = None,
    edge_server_module_ids: Optional[Mapping[str, ModuleId]] = None,
    async_client_modules: Iterable[str] = (),
) -> ManifestBuildResult:
    builder = ManifestBuilder(
        config,
        server_module_ids=server_module_ids,
        edge_server_module_ids=edge_server_module_ids,
    )
    return builder.build(graph, async_client_modules)
