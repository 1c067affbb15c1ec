"""Command-line interface for cratezoom."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import graphviz

from cratezoom.config import (
    load_config,
    parse_gradient,
    parse_highlight,
    parse_scheme,
    parse_threshold,
)
from cratezoom.errors import CratezoomError
from cratezoom.pipeline import run

logger = logging.getLogger("cratezoom")


def _parser() -> argparse.ArgumentParser:
    # Options that are not given stay out of the namespace, so that only
    # explicit flags override the config file.
    parser = argparse.ArgumentParser(
        prog="cratezoom",
        description="Visualize the dependency graph of a Rust crate, sized by binary bloat.",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument(
        "project_dir",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Path to the Cargo project (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: cratezoom.toml or [package.metadata.cratezoom])",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable verbose (debug) output",
    )

    cargo = parser.add_argument_group("cargo")
    cargo.add_argument("-p", "--package", help="Package to inspect")
    cargo.add_argument("--bin", metavar="BINARY", help="Binary to inspect")
    cargo.add_argument(
        "-F", "--features", help="Space or comma separated list of features to activate"
    )
    cargo.add_argument(
        "--all-features", action="store_true", help="Activate all available features"
    )
    cargo.add_argument(
        "--no-default-features",
        action="store_true",
        help="Do not activate the `default` feature",
    )
    cargo.add_argument(
        "--release", action="store_true", help="Build artifacts in release mode"
    )

    graph = parser.add_argument_group("graph")
    graph.add_argument(
        "-E",
        "--exclude",
        dest="excludes",
        action="append",
        metavar="PATTERN",
        help="Remove the unique crate matching the regex (repeatable)",
    )
    graph.add_argument(
        "-R", "--root", metavar="PATTERN", help="Use the unique crate matching the regex as root"
    )
    graph.add_argument("--std", action="store_true", help="Add a standalone std node")
    graph.add_argument(
        "-t",
        "--threshold",
        type=parse_threshold,
        help='Remove crates with cumulative size below this, e.g. "21KiB", "non-zero"',
    )
    graph.add_argument(
        "-d",
        "--depth",
        type=int,
        metavar="MAX_DEPTH",
        help="Remove crates more than MAX_DEPTH levels deep",
    )

    coloring = parser.add_argument_group("coloring")
    coloring.add_argument(
        "-s",
        "--scheme",
        type=parse_scheme,
        help="cum-sum (default), dep-count, rev-dep-count or none",
    )
    coloring.add_argument(
        "-g",
        "--gradient",
        type=parse_gradient,
        help="reds (default), oranges, purples, greens, blues, bu-pu, or-rd, "
        "pu-rd, rd-pu, viridis, cividis, plasma",
    )
    coloring.add_argument(
        "--gamma", type=float, help="Color gamma between 0.0 and 1.0 (scheme-specific default)"
    )
    coloring.add_argument(
        "--inverse-gradient", action="store_true", help="Invert the color gradient"
    )
    coloring.add_argument("--dark-mode", action="store_true", help="Dark output")

    output = parser.add_argument_group("output")
    output.add_argument("--padding", type=float, help="SVG padding (default: 1.0)")
    output.add_argument("--scale-factor", type=float, help="SVG scale factor")
    output.add_argument("--separation-factor", type=float, help="SVG separation factor")
    output.add_argument(
        "--highlight",
        type=parse_highlight,
        help="Highlight on hover: dep (dependencies) or rev-dep (reverse dependencies)",
    )
    output.add_argument(
        "--highlight-amount", type=float, help="Highlight amount between 0.0 and 1.0 (default: 0.5)"
    )
    output.add_argument("--node-label-template", help='default: "$short"')
    output.add_argument(
        "--node-tooltip-template", help='default: "$full\\n$size_binary\\n$features"'
    )
    output.add_argument("--edge-label-template", help='default: "$features"')
    output.add_argument("--edge-tooltip-template", help='default: "$source -> $target"')
    output.add_argument("--dot-only", action="store_true", help="Write the DOT file only")
    output.add_argument("-o", "--output", help="Output file (default: output.svg / output.gv)")
    output.add_argument(
        "--no-open", action="store_true", help="Do not open the SVG in a browser"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = vars(_parser().parse_args(argv))
    project_dir = args.pop("project_dir")
    config_path = args.pop("config")
    verbose = args.pop("verbose")

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if verbose:
        logger.setLevel(logging.DEBUG)

    try:
        config = load_config(project_dir, config_path, overrides=args)
        run(project_dir, config)
    except CratezoomError as e:
        logger.error("error: %s", e)
        sys.exit(1)
    except graphviz.ExecutableNotFound:
        logger.error("error: Graphviz `dot` not found; install Graphviz or use --dot-only")
        sys.exit(1)
