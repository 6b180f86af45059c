"""Loading of graph snapshots and sibling build lookup tables."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import yaml

from ..errors import GraphSnapshotError
from ..schemas.graph import BuildGraph, ModuleId
from .utils import read_structured


def load_graph(path: Path) -> BuildGraph:
    """Load a module graph snapshot from JSON or YAML."""

    try:
        payload = read_structured(Path(path))
        return BuildGraph.model_validate(payload)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        # pydantic ValidationError is a ValueError.
        raise GraphSnapshotError(f"Invalid graph snapshot at {path}: {exc}") from exc


def load_module_ids(path: Path) -> Dict[str, ModuleId]:
    """Load an SSR build's module id table, keyed by relative module path."""

    try:
        payload = read_structured(Path(path))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise GraphSnapshotError(f"Invalid module id table at {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise GraphSnapshotError(f"Module id table at {path} must be a mapping.")
    table: Dict[str, ModuleId] = {}
    for key, value in payload.items():
        if not isinstance(value, (int, str)) or isinstance(value, bool):
            raise GraphSnapshotError(f"Module id for '{key}' in {path} must be a string or number.")
        table[str(key)] = value
    return table


def load_async_modules(path: Path) -> List[str]:
    try:
        payload = read_structured(Path(path))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise GraphSnapshotError(f"Invalid async module list at {path}: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(item, str) for item in payload):
        raise GraphSnapshotError(f"Async module list at {path} must be a list of paths.")
    return list(payload)
