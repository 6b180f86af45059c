"""Configuration for client reference manifest builds."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

DEFAULT_SYSTEM_ENTRYPOINTS = ["main-app", "react-refresh", "amp", "polyfills"]


class ManifestConfig(BaseModel):
    dev: bool = False
    app_dir: str = Field(default="", description="Absolute app directory used as the entry CSS key prefix.")
    context: str = Field(default_factory=os.getcwd, description="Base directory for SSR module paths.")
    client_layer: str = "app-client"
    app_group_prefix: str = "app"
    system_entrypoints: List[str] = Field(default_factory=lambda: list(DEFAULT_SYSTEM_ENTRYPOINTS))
    excluded_css_prefix: str = "static/css/pages/"
    library_dist: str = "next/dist"
    library_esm: str = "next/dist/esm"
    manifest_name: str = "client-reference-manifest"
    output_subdir: str = "server"
    global_name: str = "__RSC_MANIFEST"

    model_config = ConfigDict(extra="forbid")


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ManifestConfig:
    """Load configuration from YAML and apply overrides on top."""

    payload: Dict[str, Any] = {}
    if path is not None:
        try:
            loaded = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Unable to read manifest config at {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Manifest config at {path} must be a mapping.")
        payload.update(loaded)
    if overrides:
        payload.update(overrides)
    try:
        return ManifestConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid manifest config: {exc}") from exc

