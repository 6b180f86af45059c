"""Cross-linking of client records to SSR build module ids."""

from __future__ import annotations

import os
from typing import Mapping, Optional

from ..schemas.graph import ModuleId, ModuleInfo
from ..schemas.manifest import ModuleIdMapping, ModuleRecord

ModuleIdTable = Mapping[str, ModuleId]


def ssr_module_path(module: ModuleInfo, resource: str, context: str) -> str:
    """Return the build-relative path SSR builds key their module ids by."""

    relative = os.path.relpath(module.resource_resolve_path or resource, context)
    relative = relative.replace("\\", "/")
    if not relative.startswith("."):
        relative = f"./{relative}"
    return relative


def link_ssr_record(
    mapping: ModuleIdMapping,
    table: ModuleIdTable,
    ssr_path: str,
    client_id: str,
    name: str,
    record: Optional[ModuleRecord],
) -> bool:
    """Write a shadow record carrying the SSR module id, if the table knows the path."""

    if record is None or ssr_path not in table:
        return False
    mapping.setdefault(client_id, {})[name] = record.model_copy(update={"id": table[ssr_path]})
    return True
