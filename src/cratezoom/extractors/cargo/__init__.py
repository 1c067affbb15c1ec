"""Cargo extractors: run cargo and parse its output."""

from __future__ import annotations

from pathlib import Path

from cratezoom.extractors.cargo._command import (
    CargoOptions,
    run_cargo_bloat,
    run_cargo_tree,
)
from cratezoom.extractors.cargo.bloat import parse_size_report
from cratezoom.extractors.cargo.tree import parse_cargo_tree

__all__ = [
    "CargoOptions",
    "is_cargo_project",
    "parse_cargo_tree",
    "parse_size_report",
    "run_cargo_bloat",
    "run_cargo_tree",
]


def is_cargo_project(project_dir: Path) -> bool:
    """Return True if *project_dir* contains a Cargo.toml."""
    return (project_dir / "Cargo.toml").exists()
