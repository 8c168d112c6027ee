from __future__ import annotations

from typing import Dict, Iterable, List, Set

from .types import simple_name


class DependencyGraph:
    """Edges from a record to the records whose builders its defaults call.

    A cycle means the generated builders would construct each other forever.
    """

    def __init__(self) -> None:
        self._edges: Dict[str, Set[str]] = {}

    def add(self, record: str, dependencies: Iterable[str]) -> None:
        bucket = self._edges.setdefault(record, set())
        bucket.update(simple_name(name) for name in dependencies)

    def dependencies(self, record: str) -> Set[str]:
        return set(self._edges.get(record, set()))

    def find_cycles(self) -> List[List[str]]:
        """Return each elementary cycle once, rotated to start at its smallest name."""
        cycles: List[List[str]] = []
        seen: Set[tuple] = set()
        for start in sorted(self._edges):
            stack = [(start, [start])]
            while stack:
                node, path = stack.pop()
                for target in sorted(self._edges.get(node, ())):
                    if target == start:
                        pivot = path.index(min(path))
                        rotated = path[pivot:] + path[:pivot]
                        key = tuple(rotated)
                        if key not in seen:
                            seen.add(key)
                            cycles.append(rotated)
                    elif target not in path and target in self._edges:
                        stack.append((target, path + [target]))
        return cycles

    def records_in_cycles(self) -> Dict[str, List[str]]:
        """Map each record on a cycle to the first cycle found through it."""
        members: Dict[str, List[str]] = {}
        for cycle in self.find_cycles():
            for name in cycle:
                members.setdefault(name, cycle)
        return members
