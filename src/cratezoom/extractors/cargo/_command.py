"""Run ``cargo tree`` and ``cargo bloat`` for a project."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CargoOptions:
    """Package selection and build flags shared by both cargo commands."""

    package: str | None = None
    bin: str | None = None
    features: str | None = None
    all_features: bool = False
    no_default_features: bool = False
    release: bool = False

    def feature_args(self) -> list[str]:
        args = []
        if self.package:
            args.append(f"--package={self.package}")
        if self.features:
            args.append(f"--features={self.features}")
        if self.all_features:
            args.append("--all-features")
        if self.no_default_features:
            args.append("--no-default-features")
        return args


def cargo_tree_command(options: CargoOptions) -> list[str]:
    return [
        "cargo",
        "tree",
        "--edges=no-build,no-proc-macro,no-dev,features",
        "--prefix=depth",
        "--color=never",
        *options.feature_args(),
    ]


def cargo_bloat_command(options: CargoOptions) -> list[str]:
    cmd = ["cargo", "bloat", "-n0", "--message-format=json", "--crates"]
    cmd.extend(options.feature_args())
    if options.bin:
        cmd.append(f"--bin={options.bin}")
    if options.release:
        cmd.append("--release")
    return cmd


def run_cargo_tree(project_dir: Path, options: CargoOptions) -> str | None:
    """Return ``cargo tree`` output, or None on failure."""
    return _run_cargo(cargo_tree_command(options), project_dir, timeout=120)


def run_cargo_bloat(project_dir: Path, options: CargoOptions) -> str | None:
    """Return ``cargo bloat`` JSON output, or None on failure.

    cargo-bloat builds the project, hence the long timeout.
    """
    return _run_cargo(cargo_bloat_command(options), project_dir, timeout=1800)


def _run_cargo(cmd: list[str], project_dir: Path, timeout: int) -> str | None:
    if shutil.which(cmd[0]) is None:
        logger.warning("cargo not found; install a Rust toolchain to analyse crates")
        return None

    name = " ".join(cmd[:2])
    logger.info("Running %s...", name)
    logger.debug("Command: %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(project_dir),
            timeout=timeout,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not run %s: %s", name, e)
        return None

    if result.returncode != 0:
        logger.warning(
            "%s failed: %s",
            name,
            result.stderr.strip() if result.stderr else "unknown error",
        )
        return None

    return result.stdout
