"""Orchestrator: cargo → graph → prune → metrics → render."""

from __future__ import annotations

import logging
from pathlib import Path

from cratezoom.analysis import (
    ColoringScheme,
    ColoringValues,
    cumulative_sizes,
    threshold_indices,
)
from cratezoom.config import Config
from cratezoom.errors import UsageError
from cratezoom.extractors.cargo import (
    is_cargo_project,
    parse_cargo_tree,
    parse_size_report,
    run_cargo_bloat,
    run_cargo_tree,
)
from cratezoom.graph import DependencyGraph
from cratezoom.renderer.dot import build_dot
from cratezoom.renderer.svg import render_svg

logger = logging.getLogger(__name__)


def build_graph(
    tree_output: str,
    bloat_output: str,
    *,
    std: bool = False,
    bin: str | None = None,
) -> DependencyGraph:
    """Build a sized DependencyGraph from ``cargo tree`` and ``cargo bloat`` output."""
    graph = parse_cargo_tree(tree_output)
    if std:
        graph.add_std_node()
    graph.set_sizes(parse_size_report(bloat_output), bin=bin)
    return graph


def prune_graph(graph: DependencyGraph, config: Config) -> None:
    """Apply the root, exclude and depth options in place."""
    if config.root:
        new_root = graph.find_one(config.root)
        logger.debug("Changing root to %s", graph.node(new_root).full)
        graph.change_root(new_root)

    if config.excludes:
        excluded = [graph.find_one(pattern) for pattern in config.excludes]
        if graph.root in excluded:
            raise UsageError("cannot exclude the root crate")
        graph.remove_indices(excluded)

    if config.depth is not None:
        graph.remove_deep_deps(config.depth)


def render(graph: DependencyGraph, config: Config) -> str:
    """Compute metrics, apply the size threshold and return DOT or SVG text."""
    templates = config.label_templates()

    values = None
    if config.scheme is not None:
        values = ColoringValues.for_scheme(graph, config.scheme, config.gamma)

    if config.threshold is not None:
        cumulative = (
            values.values
            if values is not None and values.scheme is ColoringScheme.CUM_SUM
            else cumulative_sizes(graph)
        )
        small = threshold_indices(graph, cumulative, config.threshold)
        logger.debug("%d crates below threshold %d", len(small), config.threshold)
        graph.remove_indices(small)

    dot = build_dot(graph, templates, values, config.gradient, config.dot_options())
    if config.dot_only:
        return dot.source
    return render_svg(dot, graph, config.svg_options())


def run(project_dir: Path, config: Config) -> Path:
    """Run the full cratezoom pipeline and return the output path."""
    project_dir = project_dir.resolve()
    if not is_cargo_project(project_dir):
        raise UsageError(f"no Cargo.toml in {project_dir}")

    options = config.cargo_options()
    tree_output = run_cargo_tree(project_dir, options)
    if tree_output is None:
        raise UsageError("cargo tree failed")
    bloat_output = run_cargo_bloat(project_dir, options)
    if bloat_output is None:
        raise UsageError("cargo bloat failed (is cargo-bloat installed?)")

    graph = build_graph(tree_output, bloat_output, std=config.std, bin=config.bin)
    logger.debug("Graph: %r", graph)

    prune_graph(graph, config)
    output = render(graph, config)

    default_name = "output.gv" if config.dot_only else "output.svg"
    out_path = Path(config.output) if config.output else Path(default_name)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(output, encoding="utf-8")

    logger.info("Generated %s", out_path)

    if not config.dot_only and not config.no_open:
        import webbrowser

        webbrowser.open(out_path.resolve().as_uri())

    return out_path
