"""Lay out a DOT digraph with Graphviz and post-process the SVG."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import graphviz

from cratezoom.graph import DependencyGraph

logger = logging.getLogger(__name__)


@dataclass
class SvgOptions:
    scale_factor: float | None = None
    separation_factor: float | None = None
    padding: float | None = None
    dark_mode: bool = False
    highlight: bool | None = None
    highlight_amount: float | None = None


def style_graph(dot: graphviz.Digraph, graph: DependencyGraph, options: SvgOptions) -> None:
    """Set global graph, node and edge attributes, scaled with the crate count."""
    node_count_factor = math.floor(graph.node_count / 32)
    scale_factor = options.scale_factor if options.scale_factor is not None else 1.0
    node_font_size = (node_count_factor * 3.0 + 15.0) * scale_factor
    arrow_size = (node_count_factor * 0.2 + 0.6) * scale_factor
    edge_width = arrow_size * 2.0

    separation = options.separation_factor if options.separation_factor is not None else 1.0
    node_sep = 0.35 * separation
    padding = options.padding if options.padding is not None else 1.0

    dot.graph_attr.update(
        pad=f"{padding}",
        nodesep=f"{node_sep}",
        ranksep=f"{node_sep * 2.0}",
    )
    dot.node_attr.update(
        shape="circle",
        style="filled",
        fixedsize="shape",
        fontname="monospace",
        fontsize=f"{node_font_size}",
        penwidth=f"{edge_width * 0.75}",
    )
    dot.edge_attr.update(
        fontname="monospace",
        fontsize=f"{node_font_size * 0.75}",
        arrowsize=f"{arrow_size}",
        arrowhead="onormal",
        penwidth=f"{edge_width}",
    )

    if options.dark_mode:
        dot.graph_attr["bgcolor"] = "#000000"
        dot.node_attr.update(color="#FFFFFF", fontcolor="#FFFFFF")
        dot.edge_attr.update(color="#FFFFFF9F", fontcolor="#FFFFFFFF")
    else:
        dot.node_attr.update(color="#000000", fontcolor="#000000")
        dot.edge_attr.update(color="#0000009F", fontcolor="#000000")


def highlight_style(graph: DependencyGraph, amount: float | None = None) -> str:
    """CSS dimming everything outside the hovered crate's group.

    Needs a browser supporting the ``:has()`` pseudo-class.
    """
    opacity = 1.0 - min(max(amount if amount is not None else 0.5, 0.0), 1.0)
    rules = "\n".join(
        f".graph:has(.node{i}:hover) > g:not(.node{i}) {{ opacity: {opacity} }}"
        for i in graph.node_indices()
    )
    return f"<style>\n{rules}\n</style>\n"


def render_svg(dot: graphviz.Digraph, graph: DependencyGraph, options: SvgOptions) -> str:
    """Run ``dot -Tsvg`` and return the SVG document.

    Raises graphviz.ExecutableNotFound when Graphviz is not installed.
    """
    style_graph(dot, graph, options)
    svg = dot.pipe(format="svg", encoding="utf-8")

    if options.highlight is not None:
        start = svg.find('<g id="graph0"')
        if start == -1:
            logger.warning("Could not find the graph group in the SVG; highlighting disabled")
        else:
            svg = svg[:start] + highlight_style(graph, options.highlight_amount) + svg[start:]

    return svg
