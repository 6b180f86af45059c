"""Export name inference for client modules."""

from __future__ import annotations

from typing import List

from ..schemas.graph import ModuleInfo

CJS_SELF_EXPORTS_REFERENCE = "cjs self exports reference"
ES_MODULE_MARKER = "__esModule"


def cjs_export_names(module: ModuleInfo) -> List[str]:
    """Names exposed through ``module.exports`` / ``exports.x`` assignments."""

    names: List[str] = []
    for dependency in module.dependencies:
        if dependency.type != CJS_SELF_EXPORTS_REFERENCE:
            continue
        if dependency.base == "module.exports":
            names.append("default")
        elif dependency.base == "exports":
            names.extend(name for name in dependency.names if name != ES_MODULE_MARKER)
    return names


def observed_export_names(module: ModuleInfo) -> List[str]:
    """Provided exports followed by CommonJS exports, first occurrence wins."""

    ordered: List[str] = []
    seen: set[str] = set()
    for name in [*module.provided_exports, *cjs_export_names(module)]:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered
