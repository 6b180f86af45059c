"""Serialization of client reference manifests to build assets."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from ..config import ManifestConfig
from ..errors import GraphSnapshotError
from ..schemas.manifest import ClientReferenceManifest
from .utils import write_text


@dataclass(slots=True)
class ManifestAssets:
    json_path: Path
    script_path: Path


def render_manifest_json(manifest: ClientReferenceManifest, *, dev: bool) -> str:
    """Pretty-printed JSON in development builds, minified otherwise."""

    payload = manifest.to_payload()
    if dev:
        return json.dumps(payload, indent=2, ensure_ascii=False)
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def render_manifest_script(json_text: str, global_name: str = "__RSC_MANIFEST") -> str:
    return f"self.{global_name}={json_text}"


def write_manifest_assets(
    manifest: ClientReferenceManifest,
    output_dir: Path,
    config: ManifestConfig,
) -> ManifestAssets:
    """Write the JSON and script variants of the manifest."""

    json_text = render_manifest_json(manifest, dev=config.dev)
    base = Path(output_dir) / config.output_subdir / config.manifest_name
    json_path = base.with_name(f"{base.name}.json")
    script_path = base.with_name(f"{base.name}.js")
    write_text(json_path, json_text)
    write_text(script_path, render_manifest_script(json_text, config.global_name))
    return ManifestAssets(json_path=json_path, script_path=script_path)


def load_manifest(path: Path) -> ClientReferenceManifest:
    """Load an emitted JSON manifest back into the typed model."""

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return ClientReferenceManifest.from_payload(payload)
    except (OSError, ValueError, AttributeError) as exc:
        raise GraphSnapshotError(f"Invalid client reference manifest at {path}: {exc}") from exc


def dump_manifest(manifest: ClientReferenceManifest, path: Path, *, dev: bool = True) -> None:
    write_text(Path(path), render_manifest_json(manifest, dev=dev))
