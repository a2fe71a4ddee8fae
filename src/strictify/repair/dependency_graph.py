"""Dependency graph over under-typed declarations and its resolution.

Vertices are canonical declaration keys. An edge ``a -> b`` means every type
``a`` may hold flows into ``b``. Resolution propagates candidate witnesses
along edges to a fixed point, then marks unresolved every vertex that lacks
usable evidence together with everything reachable from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Iterable, Sequence, TypeVar

from strictify.frontend.types import filter_unnecessary_types, is_untyped, sort_witnesses

K = TypeVar("K", bound=Hashable)


def topo_sort(vertices: Sequence[K], successors: Callable[[K], Iterable[K]]) -> list[K]:
    """Reversed DFS post-order. Exact for acyclic graphs, discovery order in cycles."""
    visited: set[K] = set()
    post: list[K] = []
    for root in vertices:
        if root in visited:
            continue
        visited.add(root)
        stack = [(root, iter(successors(root)))]
        while stack:
            vertex, pending = stack[-1]
            for nxt in pending:
                if nxt not in visited:
                    visited.add(nxt)
                    stack.append((nxt, iter(successors(nxt))))
                    break
            else:
                stack.pop()
                post.append(vertex)
    post.reverse()
    return post


@dataclass
class DependencyGraph(Generic[K]):
    vertices: list[K] = field(default_factory=list)
    edges: dict[K, set[K]] = field(default_factory=dict)
    candidates: dict[K, set[str]] = field(default_factory=dict)

    def add_vertex(self, key: K) -> None:
        if key not in self.edges:
            self.vertices.append(key)
            self.edges[key] = set()
            self.candidates[key] = set()

    def __contains__(self, key: object) -> bool:
        return key in self.edges

    def add_edge(self, predecessor: K, successor: K) -> None:
        self.add_vertex(predecessor)
        self.add_vertex(successor)
        if predecessor != successor:
            self.edges[predecessor].add(successor)

    def seed(self, key: K, witnesses: Iterable[str]) -> None:
        self.add_vertex(key)
        self.candidates[key].update(witnesses)

    def successors(self, key: K) -> list[K]:
        return sorted(self.edges.get(key, ()))

    def reachable(self, key: K) -> set[K]:
        """Vertices reachable from ``key`` through at least one edge."""
        seen: set[K] = set()
        stack = list(self.successors(key))
        while stack:
            vertex = stack.pop()
            if vertex in seen:
                continue
            seen.add(vertex)
            stack.extend(self.successors(vertex))
        return seen


@dataclass(frozen=True)
class Resolution(Generic[K]):
    order: list[K]
    resolved: dict[K, tuple[str, ...]]
    unresolved: frozenset[K]
    roots: list[K]
    blast_radius: dict[K, int]

    def annotation(self, key: K) -> str | None:
        witnesses = self.resolved.get(key)
        if witnesses is None:
            return None
        return " | ".join(witnesses)


def is_usable(witnesses: set[str]) -> bool:
    if not witnesses or witnesses <= {"None"}:
        return False
    return not any(is_untyped(witness) for witness in witnesses)


def propagate(graph: DependencyGraph[K], order: Sequence[K]) -> dict[K, set[str]]:
    candidates = {key: set(graph.candidates.get(key, ())) for key in order}
    for _ in range(len(order) + 1):
        changed = False
        for key in order:
            for successor in graph.successors(key):
                before = len(candidates[successor])
                candidates[successor] |= candidates[key]
                changed = changed or len(candidates[successor]) != before
        if not changed:
            break
    return candidates


def resolve(graph: DependencyGraph[K]) -> Resolution[K]:
    order = topo_sort(graph.vertices, graph.successors)
    candidates = propagate(graph, order)
    unresolved: set[K] = set()
    roots: list[K] = []
    blast_radius: dict[K, int] = {}
    for key in order:
        if key in unresolved:
            continue
        if is_usable(filter_unnecessary_types(candidates[key])):
            continue
        affected = graph.reachable(key) - unresolved - {key}
        roots.append(key)
        blast_radius[key] = len(affected)
        unresolved.add(key)
        unresolved |= affected
    resolved = {
        key: tuple(sort_witnesses(filter_unnecessary_types(candidates[key])))
        for key in order
        if key not in unresolved
    }
    return Resolution(
        order=order,
        resolved=resolved,
        unresolved=frozenset(unresolved),
        roots=roots,
        blast_radius=blast_radius,
    )
