"""Per-entry stylesheet aggregation for app-route bundle groups."""

from __future__ import annotations

import os
import re
from typing import Dict, Iterable, List, Optional

_EXTENSION_PATTERN = re.compile(r"\.[^\\/.]+$")


def is_app_group(name: Optional[str], prefix: str) -> bool:
    """Whether a bundle group name belongs to the application-route namespace."""

    return bool(name) and (name.startswith(f"{prefix}/") or name.startswith(f"{prefix}\\"))


def entry_key(entry_name: str, app_dir: str, prefix: str) -> str:
    """Absolute entry path without extension, using the platform separator."""

    relative = entry_name[len(prefix) :].replace("/", os.sep)
    return app_dir + _EXTENSION_PATTERN.sub("", relative)


class EntryCssAggregator:
    """Collects stylesheet files for each app-route entry, first-seen order."""

    def __init__(self, *, app_dir: str, prefix: str = "app") -> None:
        self.app_dir = app_dir
        self.prefix = prefix
        self.entries: Dict[str, List[str]] = {}
        self._group_files: Dict[str, List[str]] = {}
        self._group_parents: Dict[str, List[str]] = {}

    def add(self, entry_name: Optional[str], files: Iterable[str]) -> Optional[str]:
        if not is_app_group(entry_name, self.prefix):
            return None
        key = entry_key(entry_name, self.app_dir, self.prefix)
        existing = self.entries.setdefault(key, [])
        for path in files:
            if path not in existing:
                existing.append(path)
        return key

    def add_group(self, name: Optional[str], parents: Iterable[Optional[str]], files: List[str]) -> None:
        """Record files for a group and every parent group it is nested under."""

        parents = list(parents)
        if name is not None:
            self._group_files.setdefault(name, []).extend(files)
            known = self._group_parents.setdefault(name, [])
            known.extend(parent for parent in parents if parent is not None and parent not in known)
        if not files:
            return
        self.add(name, files)
        for parent in parents:
            self.add(parent, files)

    def inherit_ancestor_files(self) -> None:
        """Give every app-route group the stylesheets of its ancestor groups."""

        for name in list(self._group_parents):
            if not is_app_group(name, self.prefix):
                continue
            inherited: List[str] = []
            for ancestor in self._ancestors(name):
                inherited.extend(self._group_files.get(ancestor, []))
            if inherited:
                self.add(name, inherited)

    def _ancestors(self, name: str) -> List[str]:
        # Breadth-first, nearest parents first.
        seen = {name}
        order: List[str] = []
        queue = list(self._group_parents.get(name, []))
        while queue:
            parent = queue.pop(0)
            if parent in seen:
                continue
            seen.add(parent)
            order.append(parent)
            queue.extend(self._group_parents.get(parent, []))
        return order
