"""Render a DependencyGraph to a Graphviz DOT digraph."""

from __future__ import annotations

import math
from dataclasses import dataclass

import graphviz

from cratezoom.analysis import ColoringValues, node_classes
from cratezoom.coloring import Gradient
from cratezoom.graph import DependencyGraph
from cratezoom.template import LabelTemplates


@dataclass
class DotOptions:
    # True: hovering a crate highlights its dependencies,
    # False: its reverse dependencies, None: no highlighting.
    highlight: bool | None = None
    inverse_gradient: bool = False
    dark_mode: bool = False


def _escape(text: str) -> str:
    # Graphviz turns the two-character "\n" escape into a line break.
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _class_names(indices: list[int]) -> str:
    return " ".join(f"node{i}" for i in indices)


def node_width(size: int) -> float:
    """Node diameter in inches, logarithmic in the crate size."""
    return math.log10(size / 4096 + 1.0)


def build_dot(
    graph: DependencyGraph,
    templates: LabelTemplates,
    values: ColoringValues | None = None,
    gradient: Gradient = Gradient.REDS,
    options: DotOptions | None = None,
) -> graphviz.Digraph:
    """Build the DOT digraph; *values* may predate node removals."""
    options = options or DotOptions()
    classes = (
        node_classes(graph, dependencies=options.highlight)
        if options.highlight is not None
        else None
    )

    dot = graphviz.Digraph(name=graph.node(graph.root).short)

    for index in graph.node_indices():
        node = graph.node(index)
        size = graph.size(index) or 0
        label, tooltip = templates.node(node, size, index, values)
        t = values.output(index) if values is not None else None
        attrs = {
            "label": _escape(label),
            "tooltip": _escape(tooltip),
            "width": f"{node_width(size):.4f}",
            "fillcolor": gradient.color(
                t, dark_mode=options.dark_mode, inverse=options.inverse_gradient
            ),
        }
        if classes is not None:
            attrs["class"] = _class_names(classes[index])
        dot.node(str(index), **attrs)

    for source, target, edge in graph.edges():
        label, tooltip = templates.edge(graph.node(source), graph.node(target), edge)
        attrs = {
            "label": _escape(label),
            "edgetooltip": _escape(tooltip),
            "labeltooltip": _escape(tooltip),
        }
        if classes is not None:
            owner = source if options.highlight else target
            attrs["class"] = _class_names(classes[owner])
        dot.edge(str(source), str(target), **attrs)

    return dot
