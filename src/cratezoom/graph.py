"""Crate dependency DAG with size information.

Each node is a crate and each directed edge ``a -> b`` means crate ``a``
depends on crate ``b``.  Nodes live in an arena of optional slots, so an
index stays valid (and is never reused) after other nodes are removed.
Indices may therefore be sparse: iterate with :meth:`node_indices` and
size per-node lists with :attr:`node_capacity`.

The graph can only shrink.  Every public mutation (:meth:`change_root`,
:meth:`remove_indices`, :meth:`remove_deep_deps`) leaves every remaining
node, apart from the optional ``std`` node, reachable from the root.
"""

from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Iterable, Iterator

from cratezoom.errors import AmbiguousSelectorError
from cratezoom.model import CrateEdge, CrateNode

logger = logging.getLogger(__name__)


class DependencyGraph:
    def __init__(self) -> None:
        self._nodes: list[CrateNode | None] = []
        self._outgoing: list[dict[int, CrateEdge]] = []
        self._incoming: list[dict[int, CrateEdge]] = []
        self._sizes: dict[str, int] = {}
        self._std: int | None = None
        self._root = 0

    @classmethod
    def from_parts(
        cls,
        nodes: Iterable[CrateNode],
        edges: Iterable[tuple],
    ) -> DependencyGraph:
        """Build a graph from nodes and ``(source, target[, features])`` edges.

        The first node becomes the root.
        """
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for source, target, *rest in edges:
            edge = graph.add_edge(source, target)
            if rest:
                for feature, enabled in rest[0].items():
                    edge.features.setdefault(feature, []).extend(enabled)
        return graph

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, node: CrateNode) -> int:
        self._nodes.append(node)
        self._outgoing.append({})
        self._incoming.append({})
        return len(self._nodes) - 1

    def add_edge(self, source: int, target: int) -> CrateEdge:
        """Return the edge ``source -> target``, creating it if needed."""
        self._check(source)
        self._check(target)
        if source == target:
            raise ValueError(f"self-dependency on node {source}")
        edge = self._outgoing[source].get(target)
        if edge is None:
            edge = CrateEdge()
            self._outgoing[source][target] = edge
            self._incoming[target][source] = edge
        return edge

    def add_std_node(self) -> int:
        """Add the standalone ``std`` node, which is never removed."""
        if self._std is None:
            self._std = self.add_node(CrateNode(short="std"))
        return self._std

    def set_sizes(self, sizes: dict[str, int], bin: str | None = None) -> None:
        """Attach a short-name -> bytes table and normalize it.

        *bin* is the binary name when it differs from the root crate name;
        its size is credited to the root crate.
        """
        self._sizes = dict(sizes)
        if bin is not None and self._root in self:
            root_short = self.node(self._root).short
            self._sizes[root_short] = self._sizes.get(root_short, 0) + self._sizes.get(
                bin, 0
            )
        self._normalize_sizes()

    def _normalize_sizes(self) -> None:
        """Share each size entry among the crates with that short name.

        Several versions of one crate are reported by cargo-bloat as a
        single entry, so each version gets an equal (floored) part.
        """
        counts: dict[str, int] = {}
        for index in self.node_indices():
            short = self.node(index).short
            counts[short] = counts.get(short, 0) + 1
        for name, size in self._sizes.items():
            self._sizes[name] = size // counts.get(name, 1)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def root(self) -> int:
        return self._root

    @property
    def std(self) -> int | None:
        return self._std

    @property
    def node_count(self) -> int:
        return sum(1 for node in self._nodes if node is not None)

    @property
    def node_capacity(self) -> int:
        """Upper bound (exclusive) of node indices."""
        return len(self._nodes)

    def __contains__(self, index: object) -> bool:
        return (
            isinstance(index, int)
            and 0 <= index < len(self._nodes)
            and self._nodes[index] is not None
        )

    def _check(self, index: int) -> None:
        if index not in self:
            raise IndexError(f"no crate at index {index}")

    def node_indices(self) -> Iterator[int]:
        return (i for i, node in enumerate(self._nodes) if node is not None)

    def node(self, index: int) -> CrateNode:
        self._check(index)
        return self._nodes[index]

    def edge(self, source: int, target: int) -> CrateEdge:
        self._check(source)
        try:
            return self._outgoing[source][target]
        except KeyError:
            raise KeyError(f"no edge {source} -> {target}") from None

    def edges(self) -> Iterator[tuple[int, int, CrateEdge]]:
        for source in self.node_indices():
            for target, edge in self._outgoing[source].items():
                yield source, target, edge

    @property
    def edge_count(self) -> int:
        return sum(len(self._outgoing[i]) for i in self.node_indices())

    def neighbors(self, index: int, outgoing: bool = True) -> list[int]:
        """Dependencies of *index* (or its dependents if not *outgoing*)."""
        self._check(index)
        if outgoing:
            return list(self._outgoing[index])
        return list(self._incoming[index])

    def size(self, index: int) -> int | None:
        """Size in bytes of the crate, or None if cargo-bloat did not list it."""
        return self._sizes.get(self.node(index).short)

    # ------------------------------------------------------------------
    # Traversals
    # ------------------------------------------------------------------

    def topo(self) -> list[int]:
        """Node indices with every crate before its dependencies."""
        in_degree = {i: len(self._incoming[i]) for i in self.node_indices()}
        queue = deque(i for i, d in in_degree.items() if d == 0)
        order: list[int] = []
        while queue:
            node = queue.popleft()
            order.append(node)
            for target in self._outgoing[node]:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)
        if len(order) != len(in_degree):
            raise ValueError("dependency graph contains a cycle")
        return order

    def dfs(self) -> list[int]:
        """Node indices reachable from the root, in depth-first preorder."""
        visited: set[int] = set()
        order: list[int] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            order.append(node)
            stack.extend(reversed(self._outgoing[node]))
        return order

    def bfs(self) -> list[int]:
        """Node indices reachable from the root, in breadth-first order."""
        visited = {self._root}
        order: list[int] = []
        queue = deque([self._root])
        while queue:
            node = queue.popleft()
            order.append(node)
            for target in self._outgoing[node]:
                if target not in visited:
                    visited.add(target)
                    queue.append(target)
        return order

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def find(self, pattern: str) -> list[int]:
        """Indices of crates matching the regex *pattern*.

        The pattern is searched in the short name, or in the full name when
        it contains a space (e.g. ``"syn v1"``).
        """
        regex = re.compile(pattern)
        use_full = " " in pattern
        matches = []
        for index in self.node_indices():
            if index == self._std:
                continue
            node = self.node(index)
            if regex.search(node.full if use_full else node.short):
                matches.append(index)
        return matches

    def find_one(self, pattern: str) -> int:
        matches = self.find(pattern)
        if len(matches) != 1:
            raise AmbiguousSelectorError(
                pattern, [self.node(i).full for i in matches]
            )
        return matches[0]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _remove_node(self, index: int) -> None:
        for target in self._outgoing[index]:
            del self._incoming[target][index]
        for source in self._incoming[index]:
            del self._outgoing[source][index]
        self._outgoing[index] = {}
        self._incoming[index] = {}
        self._nodes[index] = None

    def _remove_not_visited(self, visited: set[int]) -> None:
        removed = [
            i for i in self.node_indices() if i not in visited and i != self._std
        ]
        for index in removed:
            self._remove_node(index)
        if removed:
            logger.debug("Removed %d crates, %d remain", len(removed), self.node_count)

    def _remove_unreachable(self) -> None:
        self._remove_not_visited(set(self.dfs()))

    def change_root(self, index: int) -> None:
        """Make *index* the root and drop everything it does not depend on."""
        self._check(index)
        self._root = index
        self._remove_unreachable()

    def remove_indices(self, indices: Iterable[int]) -> None:
        """Remove the given crates and whatever becomes unreachable.

        Raises ValueError, leaving the graph untouched, if the root is listed.
        """
        indices = list(indices)
        if self._root in indices:
            raise ValueError("cannot remove the root crate")
        for index in indices:
            if index in self and index != self._std:
                self._remove_node(index)
        self._remove_unreachable()

    def remove_deep_deps(self, max_depth: int) -> None:
        """Remove crates more than *max_depth* edges away from the root."""
        visited = {self._root}
        queue = deque([(self._root, 0)])
        while queue:
            node, depth = queue.popleft()
            if depth >= max_depth:
                continue
            for target in self._outgoing[node]:
                if target not in visited:
                    visited.add(target)
                    queue.append((target, depth + 1))
        self._remove_not_visited(visited)

    def __repr__(self) -> str:
        return (
            f"<DependencyGraph {self.node_count} crates, {self.edge_count} edges, "
            f"root={self._root}>"
        )
