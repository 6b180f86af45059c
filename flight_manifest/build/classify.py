"""Module classification for the client reference manifest."""

from __future__ import annotations

import enum
import re
from typing import Iterable, Optional, Set

from ..config import ManifestConfig
from ..schemas.graph import ModuleInfo

CSS_PATTERN = re.compile(r"\.(css|scss|sass)(\?.*)?$")
IMAGE_PATTERN = re.compile(r"\.(png|jpg|jpeg|gif|webp|avif|ico|bmp|svg)$")

MINI_EXTRACT_TYPE = "css/mini-extract"
DEV_STYLE_LOADER = "next-style-loader/index.js"
PROD_STYLE_LOADER = "mini-css-extract-plugin/loader.js"
CLIENT_DIRECTIVE = "client"


class ModuleKind(enum.Enum):
    STYLESHEET = "stylesheet"
    CLIENT_SCRIPT = "client-script"
    SKIPPED = "skipped"


def is_css_module(module: ModuleInfo, *, dev: bool) -> bool:
    if CSS_PATTERN.search(module.resource) or module.type == MINI_EXTRACT_TYPE:
        return True
    style_loader = DEV_STYLE_LOADER if dev else PROD_STYLE_LOADER
    return any(style_loader in loader for loader in module.loaders)


def is_client_component_module(module: ModuleInfo) -> bool:
    has_client_directive = module.rsc is not None and module.rsc.type == CLIENT_DIRECTIVE
    return has_client_directive or bool(IMAGE_PATTERN.search(module.resource))


def resolve_resource(module: ModuleInfo) -> str:
    """Return the file path a module stands for, or an empty string."""

    if module.type == MINI_EXTRACT_TYPE:
        # Extracted CSS only carries its source path in the loader request.
        return module.identifier[module.identifier.rfind("!") + 1 :]
    return module.resource


def collect_client_requests(modules: Iterable[ModuleInfo]) -> Set[str]:
    """Gather the client entry requests recorded on resource-less entry modules."""

    requests: Set[str] = set()
    for module in modules:
        if module.resource == "" and module.rsc is not None:
            requests.update(module.rsc.requests)
    return requests


def classify_module(
    module: ModuleInfo,
    config: ManifestConfig,
    client_requests: Set[str],
) -> tuple[ModuleKind, Optional[str]]:
    """Decide how a module contributes to the manifest.

    Returns the kind together with the resolved resource path. Stylesheets
    skip the layer check because extracted CSS carries no layer.
    """

    css = is_css_module(module, dev=config.dev)
    if not css and module.layer != config.client_layer:
        return ModuleKind.SKIPPED, None

    resource = resolve_resource(module)
    if not resource:
        return ModuleKind.SKIPPED, None

    if css:
        return ModuleKind.STYLESHEET, resource

    if resource not in client_requests and not is_client_component_module(module):
        return ModuleKind.SKIPPED, None
    return ModuleKind.CLIENT_SCRIPT, resource
