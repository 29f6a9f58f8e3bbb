"""Dependency relation over discovered component descriptors."""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from compound.components.descriptor import ComponentDescriptor

_log = logging.getLogger(__name__)


class DependencyGraph:
    """Forward edges (component -> unresolved dependencies) plus reverse edges.

    Built in one validation pass. A component naming a dependency that was not
    discovered is reported in :attr:`missing` and keeps no forward edges; the
    scheduler fails it before any load attempt. Cycles are left for the
    scheduler's deadlock rule; :meth:`find_cycles` is diagnostic only.
    """

    def __init__(self) -> None:
        self._edges: Dict[str, Set[str]] = {}
        self._reverse: Dict[str, Set[str]] = {}
        self._declared: Dict[str, Tuple[str, ...]] = {}
        self.missing: Dict[str, str] = {}

    @classmethod
    def build(cls, descriptors: Mapping[str, ComponentDescriptor] | Iterable[ComponentDescriptor]) -> 'DependencyGraph':
        if isinstance(descriptors, Mapping):
            items = list(descriptors.values())
        else:
            items = list(descriptors)
        graph = cls()
        names = {d.name for d in items}
        for descriptor in items:
            graph._declared[descriptor.name] = descriptor.dependencies
            graph._edges.setdefault(descriptor.name, set())
            graph._reverse.setdefault(descriptor.name, set())
        for descriptor in items:
            name = descriptor.name
            for dep in descriptor.dependencies:
                if dep not in names:
                    graph.missing[name] = dep
                    graph._drop_forward(name)
                    _log.error("component name=%s status=missing_dependency dep=%s", name, dep)
                    break
                graph._edges[name].add(dep)
                graph._reverse[dep].add(name)
        return graph

    def _drop_forward(self, name: str) -> None:
        for dep in self._edges.get(name, set()):
            self._reverse[dep].discard(name)
        self._edges[name] = set()

    def __contains__(self, name: object) -> bool:
        return name in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def declared(self, name: str) -> Tuple[str, ...]:
        return self._declared.get(name, ())

    def dependencies_of(self, name: str) -> Set[str]:
        """Dependencies ``name`` still waits on."""
        return set(self._edges.get(name, ()))

    def dependents_of(self, name: str) -> Set[str]:
        return set(self._reverse.get(name, ()))

    def missing_dependency(self, name: str) -> Optional[str]:
        return self.missing.get(name)

    def mark_resolved(self, name: str) -> None:
        """Clear every forward edge that targets ``name``."""
        for dependent in self._reverse.get(name, set()):
            self._edges[dependent].discard(name)
        self._reverse[name] = set()

    def find_cycles(self, names: Iterable[str] | None = None) -> List[List[str]]:
        """Depth-first search for cycles among ``names`` (all nodes by default).

        Each cycle is returned as a path that starts and ends at the same node.
        Overlapping cycles may be reported more than once.
        """
        scope = set(self._edges if names is None else names)
        cycles: List[List[str]] = []
        visited: Set[str] = set()
        on_stack: Set[str] = set()
        path: List[str] = []

        def dfs(node: str) -> None:
            visited.add(node)
            on_stack.add(node)
            path.append(node)
            for neighbor in sorted(self._edges.get(node, ())):
                if neighbor not in scope:
                    continue
                if neighbor not in visited:
                    dfs(neighbor)
                elif neighbor in on_stack:
                    start = path.index(neighbor)
                    cycles.append(path[start:] + [neighbor])
            path.pop()
            on_stack.discard(node)

        for node in sorted(scope):
            if node not in visited:
                dfs(node)
        return cycles

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: sorted(deps) for name, deps in self._edges.items()}
