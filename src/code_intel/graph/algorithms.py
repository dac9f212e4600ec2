"""Cycle detection and clustering over adjacency lists."""

from typing import Iterable


def find_cycles(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """Depth-first cycle search with an explicit stack.

    A cycle is reported as the slice of the current DFS path starting at
    the node that was re-entered, so ``a -> b -> c -> a`` yields
    ``[a, b, c]``. Cycles reachable from several roots may be reported
    more than once, each in its own discovery order.
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()
    on_path: set[str] = set()
    path: list[str] = []

    for root in adjacency:
        if root in visited:
            continue
        visited.add(root)
        on_path.add(root)
        path.append(root)
        stack = [(root, iter(adjacency.get(root, ())))]

        while stack:
            node, neighbors = stack[-1]
            descended = False
            for neighbor in neighbors:
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_path.add(neighbor)
                    path.append(neighbor)
                    stack.append((neighbor, iter(adjacency.get(neighbor, ()))))
                    descended = True
                    break
                if neighbor in on_path:
                    cycles.append(path[path.index(neighbor):])
            if not descended:
                stack.pop()
                path.pop()
                on_path.discard(node)

    return cycles


class UnionFind:
    """Disjoint sets with path compression."""

    def __init__(self, items: Iterable[str] = ()) -> None:
        self.parent: dict[str, str] = {}
        for item in items:
            self.add(item)

    def add(self, item: str) -> None:
        self.parent.setdefault(item, item)

    def find(self, item: str) -> str:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            self.parent[root_a] = root_b

    def groups(self) -> list[list[str]]:
        grouped: dict[str, list[str]] = {}
        for item in self.parent:
            grouped.setdefault(self.find(item), []).append(item)
        return list(grouped.values())


def find_clusters(edges: Iterable[tuple[str, str]]) -> list[list[str]]:
    """Connected components of size >= 2, ignoring edge direction."""
    uf = UnionFind()
    for source, target in edges:
        uf.add(source)
        uf.add(target)
        uf.union(source, target)
    return [group for group in uf.groups() if len(group) > 1]
