"""Pydantic models describing a frozen module graph snapshot."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..errors import ManifestInvariantError

ModuleId = Union[int, str]


class RscInfo(BaseModel):
    type: Optional[str] = Field(default=None, description="Module directive type, e.g. 'client'.")
    requests: List[str] = Field(default_factory=list, description="Client entry requests recorded by a client entry.")

    model_config = ConfigDict(extra="forbid")


class DependencyInfo(BaseModel):
    type: str
    base: Optional[str] = None
    names: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ModuleInfo(BaseModel):
    identifier: str
    id: Optional[ModuleId] = Field(default=None, description="Bundle-assigned module id.")
    type: str = "javascript/auto"
    resource: str = ""
    resource_resolve_path: Optional[str] = None
    layer: Optional[str] = None
    loaders: List[str] = Field(default_factory=list)
    provided_exports: List[str] = Field(default_factory=list)
    dependencies: List[DependencyInfo] = Field(default_factory=list)
    rsc: Optional[RscInfo] = None
    modules: List[str] = Field(
        default_factory=list,
        description="Identifiers of modules folded into this concatenated unit.",
    )

    model_config = ConfigDict(extra="forbid")


class ChunkInfo(BaseModel):
    id: ModuleId
    name: Optional[str] = None
    hash: str = ""
    files: List[str] = Field(default_factory=list)
    modules: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ChunkGroupInfo(BaseModel):
    name: Optional[str] = None
    chunks: List[ModuleId] = Field(default_factory=list)
    parents: List[Optional[str]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class BuildGraph(BaseModel):
    """Read-only view of one completed build."""

    chunks: List[ChunkInfo] = Field(default_factory=list)
    chunk_groups: List[ChunkGroupInfo] = Field(default_factory=list)
    modules: List[ModuleInfo] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    _chunks_by_id: Dict[str, ChunkInfo] = PrivateAttr(default_factory=dict)
    _modules_by_identifier: Dict[str, ModuleInfo] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        self._chunks_by_id = {str(chunk.id): chunk for chunk in self.chunks}
        self._modules_by_identifier = {module.identifier: module for module in self.modules}

    def chunk(self, chunk_id: ModuleId) -> ChunkInfo:
        try:
            return self._chunks_by_id[str(chunk_id)]
        except KeyError:
            raise ManifestInvariantError(f"Chunk group references unknown chunk '{chunk_id}'.") from None

    def module(self, identifier: str) -> ModuleInfo:
        try:
            return self._modules_by_identifier[identifier]
        except KeyError:
            raise ManifestInvariantError(f"Unknown module identifier '{identifier}'.") from None

    def group_chunks(self, group: ChunkGroupInfo) -> List[ChunkInfo]:
        return [self.chunk(chunk_id) for chunk_id in group.chunks]

    def chunk_modules(self, chunk: ChunkInfo) -> Iterator[ModuleInfo]:
        for identifier in chunk.modules:
            yield self.module(identifier)

    def group_files(self, group: ChunkGroupInfo) -> List[str]:
        """Return the de-duplicated files of every chunk in the group, in chunk order."""

        files: List[str] = []
        seen: set[str] = set()
        for chunk in self.group_chunks(group):
            for path in chunk.files:
                if path not in seen:
                    seen.add(path)
                    files.append(path)
        return files
