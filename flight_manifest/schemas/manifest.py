"""Typed client reference manifest and its wire format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .graph import ModuleId

SSR_MODULE_MAPPING_KEY = "__ssr_module_mapping__"
EDGE_SSR_MODULE_MAPPING_KEY = "__edge_ssr_module_mapping__"
ENTRY_CSS_FILES_KEY = "__entry_css_files__"

NAMESPACE_EXPORT = "*"
ANONYMOUS_EXPORT = ""


class ModuleRecord(BaseModel):
    """Client loading metadata for one module export."""

    id: ModuleId
    name: str
    chunks: List[str] = Field(default_factory=list)
    is_async: Optional[bool] = Field(default=None, alias="async")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True, slots=True)
class ManifestKey:
    """Structured form of the ``path``, ``path#`` and ``path#export`` keys."""

    path: str
    export: Optional[str] = None

    @classmethod
    def for_export(cls, path: str, name: str) -> "ManifestKey":
        if name == NAMESPACE_EXPORT:
            return cls(path)
        return cls(path, name)

    @classmethod
    def parse(cls, raw: str, name: Optional[str] = None) -> "ManifestKey":
        """Rebuild a key from its wire form.

        Paths may contain ``#``, so the record's export ``name`` is used to
        split the key when it is known.
        """

        if name is not None:
            if name == NAMESPACE_EXPORT:
                return cls(raw)
            suffix = f"#{name}"
            if not raw.endswith(suffix):
                raise ValueError(f"Manifest key '{raw}' does not end with export '{name}'.")
            return cls(raw[: -len(suffix)], name)
        path, sep, export = raw.rpartition("#")
        if not sep:
            return cls(raw)
        return cls(path, export)

    @property
    def export_name(self) -> str:
        return NAMESPACE_EXPORT if self.export is None else self.export

    def __str__(self) -> str:
        if self.export is None:
            return self.path
        return f"{self.path}#{self.export}"


ModuleIdMapping = Dict[str, Dict[str, ModuleRecord]]


@dataclass
class ClientReferenceManifest:
    records: Dict[ManifestKey, ModuleRecord] = field(default_factory=dict)
    ssr_module_mapping: ModuleIdMapping = field(default_factory=dict)
    edge_ssr_module_mapping: ModuleIdMapping = field(default_factory=dict)
    entry_css_files: Dict[str, List[str]] = field(default_factory=dict)

    def __contains__(self, key: ManifestKey) -> bool:
        return key in self.records

    def __len__(self) -> int:
        return len(self.records)

    def get(self, key: ManifestKey) -> Optional[ModuleRecord]:
        return self.records.get(key)

    def items(self) -> Iterator[Tuple[ManifestKey, ModuleRecord]]:
        return iter(self.records.items())

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready structure, reserved mappings first."""

        payload: Dict[str, Any] = {
            SSR_MODULE_MAPPING_KEY: _dump_mapping(self.ssr_module_mapping),
            EDGE_SSR_MODULE_MAPPING_KEY: _dump_mapping(self.edge_ssr_module_mapping),
            ENTRY_CSS_FILES_KEY: {key: list(files) for key, files in self.entry_css_files.items()},
        }
        for key, record in self.records.items():
            payload[str(key)] = record.to_payload()
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClientReferenceManifest":
        manifest = cls()
        for raw_key, value in payload.items():
            if raw_key == SSR_MODULE_MAPPING_KEY:
                manifest.ssr_module_mapping = _load_mapping(value)
            elif raw_key == EDGE_SSR_MODULE_MAPPING_KEY:
                manifest.edge_ssr_module_mapping = _load_mapping(value)
            elif raw_key == ENTRY_CSS_FILES_KEY:
                manifest.entry_css_files = {key: list(files) for key, files in value.items()}
            else:
                record = ModuleRecord.model_validate(value)
                manifest.records[ManifestKey.parse(raw_key, record.name)] = record
        return manifest


def _dump_mapping(mapping: ModuleIdMapping) -> Dict[str, Dict[str, Any]]:
    return {
        module_id: {name: record.to_payload() for name, record in exports.items()}
        for module_id, exports in mapping.items()
    }


def _load_mapping(payload: Mapping[str, Mapping[str, Any]]) -> ModuleIdMapping:
    return {
        str(module_id): {name: ModuleRecord.model_validate(record) for name, record in exports.items()}
        for module_id, exports in payload.items()
    }
