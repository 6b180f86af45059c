"""Handoff of module paths that were compiled as async client modules."""

from __future__ import annotations

from typing import FrozenSet, Iterable, Set


class AsyncClientModules:
    """Accumulates async client module paths between manifest builds.

    Compilation records paths with :meth:`add`; the manifest build takes the
    whole set with :meth:`handoff`, which leaves the ledger empty for the next
    build.
    """

    def __init__(self, paths: Iterable[str] = ()) -> None:
        self._paths: Set[str] = set(paths)

    def add(self, path: str) -> None:
        self._paths.add(path)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def handoff(self) -> FrozenSet[str]:
        paths = frozenset(self._paths)
        self._paths.clear()
        return paths
