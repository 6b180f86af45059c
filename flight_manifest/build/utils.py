"""Shared helpers used by manifest tooling."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml


def write_text(path: Path, content: str, *, newline: Optional[str] = None) -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline=newline)


def read_structured(path: Path) -> Any:
    """Read a JSON or YAML document, chosen by file suffix."""

    text = path.read_text(encoding="utf-8")
    if path.suffix in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)
