"""Command-line helpers for client reference manifest builds."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, get_origin

from flight_manifest.build.assets import load_manifest, write_manifest_assets
from flight_manifest.build.async_modules import AsyncClientModules
from flight_manifest.build.builder import ManifestBuilder
from flight_manifest.build.snapshot import load_async_modules, load_graph, load_module_ids
from flight_manifest.config import ManifestConfig, load_config
from flight_manifest.errors import ConfigError, ManifestError
from flight_manifest.schemas.manifest import ClientReferenceManifest

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "build":
            return _handle_build(args)
        if args.command == "validate":
            return _handle_validate(args)
    except ManifestError as exc:
        logger.error("%s", exc)
        _print_json({"ok": False, "errors": [str(exc)]})
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flight-manifest", description="Client reference manifest tooling.")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the client reference manifest from a graph snapshot.")
    build.add_argument("--graph", required=True, help="Module graph snapshot (JSON or YAML).")
    build.add_argument("--server-module-ids", help="SSR build module id table.")
    build.add_argument("--edge-server-module-ids", help="Edge SSR build module id table.")
    build.add_argument("--async-modules", help="List of async client module paths.")
    build.add_argument("--config", help="Manifest config YAML.")
    build.add_argument("--override", action="append", help="Config overrides key=value (repeatable). List fields take comma-separated values.")
    build.add_argument("--dev", action=argparse.BooleanOptionalAction, default=None)
    build.add_argument("--app-dir")
    build.add_argument("--context")
    build.add_argument("--output-dir")
    build.add_argument("--workspace-root")

    validate = subparsers.add_parser("validate", help="Validate an emitted manifest.")
    validate.add_argument("--manifest", required=True)
    validate.add_argument("--workspace-root")

    return parser


def _handle_build(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)

    overrides = _parse_overrides(args.override)
    if args.dev is not None:
        overrides["dev"] = args.dev
    if args.app_dir:
        overrides["app_dir"] = str(_resolve_path(args.app_dir, workspace))
    if args.context:
        overrides["context"] = str(_resolve_path(args.context, workspace))
    config = load_config(_resolve_optional_path(args.config, workspace), overrides)

    graph = load_graph(_resolve_path(args.graph, workspace))
    server_ids = _load_table(args.server_module_ids, workspace)
    edge_server_ids = _load_table(args.edge_server_module_ids, workspace)

    ledger = AsyncClientModules()
    async_path = _resolve_optional_path(args.async_modules, workspace)
    if async_path is not None:
        for path in load_async_modules(async_path):
            ledger.add(path)

    builder = ManifestBuilder(
        config,
        server_module_ids=server_ids,
        edge_server_module_ids=edge_server_ids,
    )
    result = builder.build(graph, ledger.handoff())

    output_dir = _resolve_path(args.output_dir, workspace) if args.output_dir else workspace / ".next"
    assets = write_manifest_assets(result.manifest, output_dir, config)

    manifest = result.manifest
    payload = {
        "ok": True,
        "json_path": str(assets.json_path),
        "script_path": str(assets.script_path),
        "records": len(manifest.records),
        "ssr_modules": len(manifest.ssr_module_mapping),
        "edge_ssr_modules": len(manifest.edge_ssr_module_mapping),
        "entries": sorted(manifest.entry_css_files),
        "async_modules": sorted(result.consumed_async_modules),
        "logs": [
            f"Manifest JSON written to {assets.json_path}",
            f"Manifest script written to {assets.script_path}",
        ],
    }
    _print_json(payload)
    return 0


def _handle_validate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    manifest_path = _resolve_path(args.manifest, workspace)

    errors: List[str] = []
    manifest = _load_manifest_safe(manifest_path, errors)

    payload = {
        "ok": manifest is not None,
        "manifest_path": str(manifest_path),
        "records": len(manifest.records) if manifest is not None else 0,
        "ssr_modules": len(manifest.ssr_module_mapping) if manifest is not None else 0,
        "edge_ssr_modules": len(manifest.edge_ssr_module_mapping) if manifest is not None else 0,
        "entries": sorted(manifest.entry_css_files) if manifest is not None else [],
        "errors": errors,
    }
    _print_json(payload)
    return 0 if manifest is not None else 1


def _load_table(value: Optional[str], workspace: Path) -> Dict[str, Any]:
    path = _resolve_optional_path(value, workspace)
    if path is None:
        return {}
    return load_module_ids(path)


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _resolve_optional_path(value: Optional[str], workspace: Path) -> Optional[Path]:
    if not value:
        return None
    return _resolve_path(value, workspace)


def _parse_overrides(values: Optional[Sequence[str]]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if not values:
        return overrides
    for entry in values:
        if "=" not in entry:
            raise ConfigError(f"Config override must be key=value (got '{entry}')")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        overrides[key] = _coerce_override_value(raw_value.strip(), _is_list_field(key))
    return overrides


def _coerce_override_value(value: str, as_list: bool = False) -> object:
    if as_list:
        return [item.strip() for item in value.split(",") if item.strip()]
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    return value


def _is_list_field(key: str) -> bool:
    field = ManifestConfig.model_fields.get(key)
    return field is not None and get_origin(field.annotation) is list


def _load_manifest_safe(path: Path, errors: List[str]) -> Optional[ClientReferenceManifest]:
    try:
        return load_manifest(path)
    except ManifestError as exc:
        errors.append(str(exc))
        return None


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
