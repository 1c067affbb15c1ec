"""Per-crate metrics computed from a DependencyGraph snapshot.

Every function returns a list of length ``graph.node_capacity`` indexed by
node index; slots of removed nodes hold zero.  Nothing is cached, so call
again after mutating the graph.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from cratezoom.graph import DependencyGraph


def cumulative_sizes(graph: DependencyGraph) -> list[int]:
    """Size of each crate plus its apportioned share of its dependencies.

    A dependency shared by *n* dependents contributes ``1/n`` of its own
    cumulative size to each of them, so nothing is counted twice and the
    root's value approximates the binary size.  Shares are floored: up to
    ``n - 1`` bytes per shared crate are dropped.
    """
    values = [0] * graph.node_capacity
    for index in graph.node_indices():
        values[index] = graph.size(index) or 0

    for node in reversed(graph.topo()):
        sources = graph.neighbors(node, outgoing=False)
        for source in sources:
            values[source] += values[node] // len(sources)

    return values


def dependency_counts(graph: DependencyGraph) -> list[int]:
    """Number of transitive dependency relations below each crate."""
    values = [0] * graph.node_capacity
    for node in reversed(graph.topo()):
        for target in graph.neighbors(node):
            values[node] += values[target] + 1
    return values


def reverse_dependency_counts(graph: DependencyGraph) -> list[int]:
    """Number of distinct paths from the root to each crate.

    The root counts its own empty path.  Crates the root does not reach
    (the ``std`` node) stay at zero.
    """
    values = [0] * graph.node_capacity
    values[graph.root] = 1
    for node in graph.topo():
        for target in graph.neighbors(node):
            values[target] += values[node]
    return values


def node_classes(graph: DependencyGraph, dependencies: bool = True) -> list[list[int]]:
    """Highlight groups each crate belongs to.

    With *dependencies*, crate ``v`` is in the group of every crate that
    (transitively) depends on it, so hovering a crate lights up all its
    dependencies.  Otherwise ``v`` is in the group of each of its
    dependencies, lighting up the reverse dependencies instead.  A crate is
    always in its own group.
    """
    classes: list[set[int]] = [set() for _ in range(graph.node_capacity)]
    order = graph.topo()

    if dependencies:
        for node in order:
            classes[node].add(node)
            for target in graph.neighbors(node):
                classes[target] |= classes[node]
    else:
        for node in reversed(order):
            classes[node].add(node)
            for target in graph.neighbors(node):
                classes[node] |= classes[target]

    return [sorted(c) for c in classes]


def threshold_indices(
    graph: DependencyGraph, cumulative: list[int], threshold: int
) -> list[int]:
    """Crates whose cumulative size is below *threshold* (never root or std)."""
    return [
        i
        for i in graph.node_indices()
        if cumulative[i] < threshold and i != graph.root and i != graph.std
    ]


class ColoringScheme(enum.Enum):
    CUM_SUM = "cum-sum"
    DEP_COUNT = "dep-count"
    REV_DEP_COUNT = "rev-dep-count"

    @property
    def description(self) -> str:
        return _SCHEME_DESCRIPTIONS[self]

    @property
    def default_gamma(self) -> float:
        # Skewed distributions (a few crates dominating) are compressed so
        # the low end stays distinguishable.
        return 0.5 if self is ColoringScheme.REV_DEP_COUNT else 0.25


_SCHEME_DESCRIPTIONS = {
    ColoringScheme.CUM_SUM: "cumulative sum",
    ColoringScheme.DEP_COUNT: "dependency count",
    ColoringScheme.REV_DEP_COUNT: "reverse dependency count",
}

_SCHEME_FUNCTIONS = {
    ColoringScheme.CUM_SUM: cumulative_sizes,
    ColoringScheme.DEP_COUNT: dependency_counts,
    ColoringScheme.REV_DEP_COUNT: reverse_dependency_counts,
}


@dataclass
class ColoringValues:
    """Metric values of one scheme, normalized for color mapping."""

    scheme: ColoringScheme
    values: list[int]
    gamma: float
    max: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self.gamma = min(max(self.gamma, 0.0), 1.0)
        self.max = max(self.values, default=0)

    @classmethod
    def for_scheme(
        cls,
        graph: DependencyGraph,
        scheme: ColoringScheme,
        gamma: float | None = None,
    ) -> ColoringValues:
        values = _SCHEME_FUNCTIONS[scheme](graph)
        return cls(
            scheme=scheme,
            values=values,
            gamma=scheme.default_gamma if gamma is None else gamma,
        )

    def value(self, index: int) -> int:
        return self.values[index]

    def output(self, index: int) -> float:
        """``(value / max) ** gamma``, in ``[0, 1]``."""
        if self.max == 0:
            return 0.0
        return (self.values[index] / self.max) ** self.gamma
